from fastapi import HTTPException, status


class BaseAPIException(HTTPException):
    """Base API exception with status code and detail"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        code: str = "error",
        headers: dict = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.code = code


class ValidationError(BaseAPIException):
    """Exception for malformed or missing input"""

    def __init__(self, detail: str = "Validation error"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            code="validation_error",
        )


class NotFoundException(BaseAPIException):
    """Exception for resource not found"""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            code="not_found",
        )


class ResourceNotFoundError(NotFoundException):
    """Exception for a named resource missing under a given id"""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(detail=f"{resource} not found")
        self.resource = resource
        self.resource_id = resource_id


class DatabaseError(BaseAPIException):
    """Exception for failures of the underlying store"""

    def __init__(self, detail: str = "Database error"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            code="store_error",
        )
