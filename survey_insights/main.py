# survey_insights/main.py
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from openai import AsyncOpenAI

from survey_insights.api.v1.endpoints import (
    ai_analysis,
    ai_statistics,
    dashboard,
    health,
    required_questions,
    responses,
    surveys,
)
from survey_insights.core.config import Settings, get_settings
from survey_insights.core.errors import (
    AmbiguousState,
    NotFound,
    NotFoundOrForbidden,
    SurveyInsightsError,
    ValidationError,
)
from survey_insights.core.logging import get_logger, setup_logging
from survey_insights.db.session import Store

API_V1_PREFIX = "/api/v1"

logger = get_logger(__name__)

_STATUS_BY_ERROR = (
    (NotFound, 404),
    (NotFoundOrForbidden, 404),
    (AmbiguousState, 409),
    (ValidationError, 400),
)


def status_for(exc: SurveyInsightsError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return status
    return 500


async def handle_domain_error(request: Request, exc: SurveyInsightsError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s %s", request.method, request.url.path, exc, exc.details)
    else:
        logger.info("%s %s -> %d %s", request.method, request.url.path, status, exc.code)
    return JSONResponse(status_code=status, content={"success": False, "error": exc.message})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Builds the API. The store and the model client live on `app.state` and
    only exist between lifespan startup and shutdown.
    """
    settings = settings or get_settings()
    setup_logging(settings.LOG_DIR, settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = Store(settings)
        if settings.AUTO_CREATE_TABLES:
            store.create_all()
        app.state.store = store
        app.state.llm = None
        if settings.OPENAI_API_KEY:
            app.state.llm = AsyncOpenAI(api_key=settings.OPENAI_API_KEY, base_url=settings.OPENAI_BASE_URL)
        else:
            logger.warning("OPENAI_API_KEY not set, AI analysis is disabled")
        logger.info("%s started (env=%s)", settings.APP_NAME, settings.ENV)
        try:
            yield
        finally:
            if app.state.llm is not None:
                await app.state.llm.close()
            store.dispose()
            logger.info("%s stopped", settings.APP_NAME)

    app = FastAPI(
        title=settings.APP_NAME,
        description="Restaurant customer survey API",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(SurveyInsightsError, handle_domain_error)

    app.include_router(health.router,             prefix=API_V1_PREFIX)
    app.include_router(required_questions.router, prefix=API_V1_PREFIX)
    app.include_router(surveys.router,            prefix=API_V1_PREFIX)
    app.include_router(responses.router,          prefix=API_V1_PREFIX)
    app.include_router(ai_statistics.router,      prefix=API_V1_PREFIX)
    app.include_router(ai_analysis.router,        prefix=API_V1_PREFIX)
    app.include_router(dashboard.router,          prefix=API_V1_PREFIX)

    @app.get("/health")
    def health_root():
        return {"status": "ok", "message": "API running"}

    @app.get("/")
    def root():
        return {
            "message": settings.APP_NAME,
            "version": "1.0.0",
            "docs": "/docs",
            "api_v1": API_V1_PREFIX,
        }

    return app
