from typing import Any, Dict, List, Optional

from questionnaire_api.client.api_client import APIClientError, QuestionnaireAPIClient

CATALOG_PAGE_SIZE = 9


class CatalogView:
    """Browse-and-manage screen: one page of questionnaires at a time"""

    def __init__(self, client: QuestionnaireAPIClient, limit: int = CATALOG_PAGE_SIZE):
        self.client = client
        self.limit = limit
        self.page = 1
        self.total = 0
        self.total_pages = 0
        self.questionnaires: List[Dict[str, Any]] = []
        self.is_loading = False
        self.is_deleting = False
        self.error: Optional[str] = None

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    async def load(self, page: Optional[int] = None) -> None:
        """Fetch a page; failures land in the page-level error"""
        if page is not None:
            self.page = page

        self.is_loading = True
        self.error = None
        try:
            data = await self.client.list_questionnaires(page=self.page, limit=self.limit)
            self.questionnaires = data["questionnaires"]
            self.total = data["total"]
            self.total_pages = data["totalPages"]
        except APIClientError as e:
            self.error = e.message
        finally:
            self.is_loading = False

    async def next_page(self) -> None:
        if self.has_next:
            await self.load(self.page + 1)

    async def previous_page(self) -> None:
        if self.has_previous:
            await self.load(self.page - 1)

    async def delete(self, questionnaire_id: str) -> None:
        """Delete a questionnaire and refresh the current page; ignored while another delete runs"""
        if self.is_deleting:
            return

        self.is_deleting = True
        self.error = None
        try:
            await self.client.delete_questionnaire(questionnaire_id)
        except APIClientError as e:
            self.error = e.message
            return
        finally:
            self.is_deleting = False

        await self.load()
        # Deleting the last entry of the last page leaves it empty
        if not self.questionnaires and self.has_previous:
            await self.load(self.page - 1)
