from fastapi import APIRouter

from questionnaire_api.api.routes import questionnaires, responses

# Create main API router
api_router = APIRouter()

# Include all route modules
api_router.include_router(questionnaires.router, prefix="/questionnaires", tags=["questionnaires"])
api_router.include_router(responses.router, prefix="/responses", tags=["responses"])
