import asyncio
import json

import httpx
import pytest

from questionnaire_api.client.api_client import APIClientError, ClientSettings, QuestionnaireAPIClient
from questionnaire_api.client.builder import QuestionnaireDraft
from questionnaire_api.client.catalog import CatalogView
from questionnaire_api.client.runner import QuestionnaireRunner, RunnerState

QUESTIONNAIRE = {
    "id": "q-1",
    "title": "Lunch",
    "description": "Where to eat",
    "number": 1,
    "questions": [
        {"id": "a", "type": "text", "text": "Name?"},
        {"id": "b", "type": "single_choice", "text": "Place?", "options": ["Cafe", "Deli"]},
        {"id": "c", "type": "multiple_choice", "text": "Extras?", "options": ["Soup", "Cake"]},
    ],
}


class FakeAPI:
    """Records requests and answers them from canned data"""

    def __init__(self):
        self.requests = []
        self.fail_submit = False
        self.last_params = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, body))
        path = request.url.path
        self.last_params = dict(request.url.params)

        if request.method == "GET" and path == "/api/questionnaires/q-1":
            return httpx.Response(200, json=QUESTIONNAIRE)
        if request.method == "GET" and path.startswith("/api/questionnaires/"):
            return httpx.Response(404, json={"message": "Questionnaire not found", "code": "not_found"})
        if request.method == "POST" and path == "/api/responses":
            if self.fail_submit:
                return httpx.Response(400, json={"message": "Expected 3 answers, got 2"})
            return httpx.Response(201, json={"id": "r-1", **body})
        if request.method == "POST" and path == "/api/questionnaires":
            return httpx.Response(201, json={"id": "new-id", **body})
        if request.method == "PUT" and path.startswith("/api/questionnaires/"):
            return httpx.Response(200, json={"id": path.rsplit("/", 1)[-1], **body})
        if request.method == "GET" and path == "/api/questionnaires":
            page = int(request.url.params["page"])
            return httpx.Response(200, json={
                "questionnaires": [{**QUESTIONNAIRE, "id": f"q-{page}"}],
                "total": 12,
                "page": page,
                "totalPages": 2,
            })
        if request.method == "DELETE":
            return httpx.Response(200, json={"message": "deleted"})
        return httpx.Response(500, text="unexpected")


class FakeClock:
    def __init__(self, start=100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def fake_api():
    return FakeAPI()


@pytest.fixture
async def api_client(fake_api):
    client = QuestionnaireAPIClient(
        settings=ClientSettings(host="http://testserver"),
        transport=httpx.MockTransport(fake_api),
    )
    yield client
    await client.close()


async def test_client_raises_with_server_message(api_client):
    with pytest.raises(APIClientError) as exc_info:
        await api_client.get_questionnaire("nope")

    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Questionnaire not found"


async def test_client_reports_unreachable_server():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with QuestionnaireAPIClient(transport=httpx.MockTransport(refuse)) as client:
        with pytest.raises(APIClientError) as exc_info:
            await client.list_questionnaires()

    assert exc_info.value.status_code is None


async def test_runner_walks_and_submits(api_client, fake_api):
    clock = FakeClock()
    runner = QuestionnaireRunner(api_client, "q-1", clock=clock)

    assert await runner.load() == RunnerState.READY
    assert runner.current_question["id"] == "a"

    runner.answer("Ada")
    await runner.next()
    runner.answer("Deli")
    await runner.next()
    runner.toggle_option("Soup")
    runner.toggle_option("Cake")
    runner.toggle_option("Soup")

    clock.now += 41.6
    assert await runner.next() == RunnerState.DONE

    method, path, body = fake_api.requests[-1]
    assert (method, path) == ("POST", "/api/responses")
    assert body == {
        "questionnaireId": "q-1",
        "answers": [
            {"questionId": "a", "value": ["Ada"]},
            {"questionId": "b", "value": "Deli"},
            {"questionId": "c", "value": ["Cake"]},
        ],
        "completionTime": 42,
    }
    assert runner.response["id"] == "r-1"


async def test_runner_stays_on_unanswered_question(api_client, fake_api):
    runner = QuestionnaireRunner(api_client, "q-1", clock=FakeClock())
    await runner.load()

    await runner.next()
    assert runner.index == 0
    assert runner.validation_message == "Please answer question 1: Name?"

    runner.answer("   ")
    await runner.next()
    assert runner.index == 0

    runner.answer("Ada")
    assert runner.validation_message is None
    await runner.next()
    assert runner.index == 1


async def test_runner_previous_keeps_answers(api_client):
    runner = QuestionnaireRunner(api_client, "q-1", clock=FakeClock())
    await runner.load()

    runner.previous()
    assert runner.index == 0

    runner.answer("Ada")
    await runner.next()
    runner.previous()

    assert runner.index == 0
    assert runner.answers == {"a": "Ada"}


async def test_runner_rechecks_every_answer_before_submitting(api_client, fake_api):
    runner = QuestionnaireRunner(api_client, "q-1", clock=FakeClock())
    await runner.load()
    runner.answer("Ada")
    await runner.next()
    runner.answer("Cafe")
    await runner.next()
    runner.answer(["Soup"])

    # Clearing an earlier answer is only caught at the end
    runner.answers["a"] = ""
    assert await runner.next() == RunnerState.READY
    assert runner.validation_message == "Please answer question 1: Name?"
    assert not any(method == "POST" for method, _, _ in fake_api.requests)


async def test_runner_load_failure_is_an_error(api_client):
    runner = QuestionnaireRunner(api_client, "missing", clock=FakeClock())

    assert await runner.load() == RunnerState.ERROR
    assert runner.error == "Questionnaire not found"
    assert runner.current_question is None


async def test_runner_submit_failure_is_an_error(api_client, fake_api):
    fake_api.fail_submit = True
    runner = QuestionnaireRunner(api_client, "q-1", clock=FakeClock())
    await runner.load()
    for value in ("Ada", "Cafe", ["Cake"]):
        runner.answer(value)
        await runner.next()

    assert runner.state == RunnerState.ERROR
    assert runner.error == "Expected 3 answers, got 2"
    assert runner.answers["a"] == "Ada"


def test_draft_payload_drops_builder_ids():
    ids = iter([101, 102])
    draft = QuestionnaireDraft(title="Lunch", description="Where", id_source=lambda: next(ids))

    text = draft.add_question("text")
    choice = draft.add_question("single_choice")
    draft.update_question(text.temp_id, text="Name?")
    draft.update_question(choice.temp_id, text="Place?")
    draft.update_option(choice.temp_id, 0, "Cafe")
    draft.add_option(choice.temp_id)
    draft.update_option(choice.temp_id, 1, "Deli")

    assert draft.validate() is None
    assert draft.to_payload() == {
        "title": "Lunch",
        "description": "Where",
        "questions": [
            {"type": "text", "text": "Name?"},
            {"type": "single_choice", "text": "Place?", "options": ["Cafe", "Deli"]},
        ],
    }


def test_draft_validation_messages():
    draft = QuestionnaireDraft()
    assert draft.validate() == "Title is required"

    draft.title, draft.description = "T", "D"
    assert draft.validate() == "At least one question is required"

    question = draft.add_question("multiple_choice")
    assert draft.validate() == "All questions must have text"

    draft.update_question(question.temp_id, text="Pick")
    assert draft.validate() == "All options must have text"

    draft.remove_option(question.temp_id, 0)
    assert draft.validate() == "Choice questions must have at least one option"

    draft.remove_question(question.temp_id)
    assert draft.questions == []


def test_timestamp_ids_are_unique():
    draft = QuestionnaireDraft()

    ids = [draft.add_question().temp_id for _ in range(5)]

    assert len(set(ids)) == 5


async def test_draft_save_creates_then_updates(api_client, fake_api):
    draft = QuestionnaireDraft(title="T", description="D")
    question = draft.add_question()
    draft.update_question(question.temp_id, text="Q1")

    created = await draft.save(api_client)
    assert created["id"] == "new-id"
    assert draft.questionnaire_id == "new-id"

    await draft.save(api_client)
    assert [r[:2] for r in fake_api.requests] == [
        ("POST", "/api/questionnaires"),
        ("PUT", "/api/questionnaires/new-id"),
    ]


async def test_draft_save_skips_request_when_invalid(api_client, fake_api):
    draft = QuestionnaireDraft(title="T")

    assert await draft.save(api_client) is None
    assert draft.error == "Description is required"
    assert fake_api.requests == []


async def test_draft_loads_stored_questionnaire(api_client):
    draft = await QuestionnaireDraft.load(api_client, "q-1")

    assert draft.questionnaire_id == "q-1"
    assert [q.text for q in draft.questions] == ["Name?", "Place?", "Extras?"]
    assert draft.questions[0].options is None


async def test_catalog_pages(api_client, fake_api):
    catalog = CatalogView(api_client)

    await catalog.load()
    assert catalog.questionnaires[0]["id"] == "q-1"
    assert catalog.has_next and not catalog.has_previous

    await catalog.next_page()
    assert catalog.page == 2
    assert not catalog.has_next
    assert fake_api.requests[-1][1] == "/api/questionnaires"

    await catalog.previous_page()
    assert catalog.page == 1


async def test_catalog_requests_nine_per_page(api_client, fake_api):
    catalog = CatalogView(api_client)

    await catalog.load()

    assert fake_api.last_params == {"page": "1", "limit": "9"}


async def test_catalog_delete_reloads(api_client, fake_api):
    catalog = CatalogView(api_client)
    await catalog.load()

    await catalog.delete("q-1")

    methods = [r[0] for r in fake_api.requests]
    assert methods == ["GET", "DELETE", "GET"]
    assert catalog.error is None


async def test_catalog_ignores_delete_while_one_is_running(fake_api):
    async def slow_api(request):
        await asyncio.sleep(0)
        return fake_api(request)

    async with QuestionnaireAPIClient(
        settings=ClientSettings(host="http://testserver"),
        transport=httpx.MockTransport(slow_api),
    ) as client:
        catalog = CatalogView(client)
        await catalog.load()

        await asyncio.gather(catalog.delete("q-1"), catalog.delete("q-1"))

    assert [r[0] for r in fake_api.requests].count("DELETE") == 1
    assert catalog.is_deleting is False


async def test_client_error_with_non_object_json_body():
    def reject(request):
        return httpx.Response(502, json=["upstream", "down"])

    async with QuestionnaireAPIClient(transport=httpx.MockTransport(reject)) as client:
        with pytest.raises(APIClientError) as exc_info:
            await client.get_questionnaire("q-1")

    assert exc_info.value.status_code == 502
    assert exc_info.value.message == "Request failed with status 502"
