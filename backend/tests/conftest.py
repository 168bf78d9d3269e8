import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from questionnaire_api.core.config import Settings
from questionnaire_api.db.session import Database
from questionnaire_api.main import create_app


@pytest.fixture
def settings() -> Settings:
    return Settings(
        ENVIRONMENT="test",
        DATABASE_URL="sqlite+aiosqlite://",
        LOG_TO_FILE=False,
    )


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def db():
    database = Database("sqlite+aiosqlite://")
    await database.create_all()
    async with database.session_factory() as session:
        yield session
    await database.dispose()


@pytest.fixture
def survey_payload():
    """One question of each kind"""
    return {
        "title": "Team survey",
        "description": "Quarterly check-in",
        "questions": [
            {"id": 1700000000001, "type": "text", "text": "What went well?"},
            {"id": 1700000000002, "type": "single_choice", "text": "Rate the quarter", "options": ["Good", "Bad"]},
            {"id": 1700000000003, "type": "multiple_choice", "text": "Pick tools", "options": ["Git", "CI", "Chat"]},
        ],
    }


@pytest.fixture
def create_questionnaire(client, survey_payload):
    def _create(**overrides):
        payload = {**survey_payload, **overrides}
        response = client.post("/api/questionnaires", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture
def answers_for():
    """Valid answers for the survey_payload questionnaire"""
    def _answers(questionnaire, text="Shipping", choice="Good", picks=("Git",)):
        first, second, third = questionnaire["questions"]
        return [
            {"questionId": first["id"], "value": [text]},
            {"questionId": second["id"], "value": choice},
            {"questionId": third["id"], "value": list(picks)},
        ]

    return _answers
