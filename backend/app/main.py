import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.main import api_router
from app.core.config import settings
from app.grading.llm_client import LLMClient
from app.grading.orchestrator import GradingOrchestrator
from app.grading.rate_limit import build_admission_controller

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    admission = build_admission_controller(settings)
    llm = LLMClient(model_name=settings.MODEL_GRADER or settings.MODEL_DEFAULT)
    app.state.grading_orchestrator = GradingOrchestrator(admission=admission, llm=llm)
    logger.info(
        "Grading ready (model=%s, quota enforced=%s)",
        llm.model_name,
        admission.enforced,
    )
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)
app.include_router(api_router, prefix=settings.API_V1_STR)
