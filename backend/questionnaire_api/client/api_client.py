from typing import Any, Dict, List, Optional

import httpx
from loguru import logger
from pydantic_settings import BaseSettings


class ClientSettings(BaseSettings):
    host: str = "http://localhost:8000"
    api_prefix: str = "/api"
    timeout: float = 30.0

    model_config = {
        "env_prefix": "QUESTIONNAIRE_API_",
        "case_sensitive": False,
    }


class APIClientError(Exception):
    """Failed call to the questionnaire API"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class QuestionnaireAPIClient:
    """
    Async client for the questionnaire REST API, shared by the catalog,
    builder and runner views.
    """

    def __init__(
            self,
            settings: Optional[ClientSettings] = None,
            transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or ClientSettings()
        self.client = httpx.AsyncClient(
            base_url=f"{self.settings.host.rstrip('/')}{self.settings.api_prefix}",
            timeout=self.settings.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "QuestionnaireAPIClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Error calling {method} {path}: {e}")
            raise APIClientError(f"Could not reach the server: {e}") from e

        if response.is_error:
            try:
                data = response.json()
            except ValueError:
                data = None
            message = data.get("message") if isinstance(data, dict) else None
            raise APIClientError(message or f"Request failed with status {response.status_code}",
                                 status_code=response.status_code)

        return response.json()

    async def list_questionnaires(self, page: int = 1, limit: int = 9) -> Dict[str, Any]:
        return await self._request("GET", "/questionnaires", params={"page": page, "limit": limit})

    async def get_questionnaire(self, questionnaire_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/questionnaires/{questionnaire_id}")

    async def create_questionnaire(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/questionnaires", json=payload)

    async def update_questionnaire(self, questionnaire_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/questionnaires/{questionnaire_id}", json=payload)

    async def delete_questionnaire(self, questionnaire_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/questionnaires/{questionnaire_id}")

    async def submit_response(
            self, questionnaire_id: str, answers: List[Dict[str, Any]], completion_time: int
    ) -> Dict[str, Any]:
        return await self._request("POST", "/responses", json={
            "questionnaireId": questionnaire_id,
            "answers": answers,
            "completionTime": completion_time,
        })

    async def list_responses(self, questionnaire_id: str) -> List[Dict[str, Any]]:
        return await self._request("GET", f"/responses/questionnaire/{questionnaire_id}")

    async def get_stats(self, questionnaire_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/responses/stats/{questionnaire_id}")
