import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from codeclash.admin.admin_router import router as admin_router
from codeclash.ai_agent.ai_agent_router import router as ai_agent_router
from codeclash.ai_agent.openrouter_client import OpenRouterClient
from codeclash.contests.contest_router import router as contest_router
from codeclash.contests.participant_router import router as participant_router
from codeclash.core import config
from codeclash.core.database import MongoStore
from codeclash.core.errors import install_error_handlers
from codeclash.execution.execution_router import router as execution_router
from codeclash.execution.judge_client import Judge0Client
from codeclash.problems.problem_router import router as problem_router
from codeclash.reviews.review_router import router as review_router
from codeclash.submissions.submission_router import (
    contest_router as contest_submission_router,
    router as submission_router,
)
from codeclash.teams.team_router import router as team_router
from codeclash.users.user_router import router as user_router

logger = logging.getLogger(__name__)


def configure_logging(level: str = None):
    logging.basicConfig(
        level=(level or config.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(
    store: Optional[MongoStore] = None,
    judge_client: Optional[Judge0Client] = None,
    ai_client: Optional[OpenRouterClient] = None,
) -> FastAPI:
    """
    Composition root: owns the store and the two remote clients
    """
    store = store or MongoStore(config.get_mongo_config_from_env())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await store.connect()
        await store.create_indexes()
        logger.info("CodeClash API ready")
        yield
        store.close()

    app = FastAPI(title="CodeClash API", lifespan=lifespan)
    app.state.store = store
    app.state.judge_client = judge_client or Judge0Client.from_config()
    app.state.ai_client = ai_client or OpenRouterClient.from_config()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)

    # ==================== ROUTER REGISTRATION ====================
    app.include_router(user_router)
    app.include_router(problem_router)
    app.include_router(contest_router)
    app.include_router(participant_router)
    app.include_router(team_router)
    app.include_router(submission_router)
    app.include_router(contest_submission_router)
    app.include_router(execution_router)
    app.include_router(ai_agent_router)
    app.include_router(review_router)
    app.include_router(admin_router)
    # ============================================================

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/version")
    def get_version():
        return {"version": config.VERSION or "unknown", "status": "stable"}

    @app.get("/", response_class=PlainTextResponse)
    def welcome():
        return "Welcome to CodeClash"

    return app


configure_logging()
app = create_app()
