"""
Bitcoin Agent Workflow Service
==============================

ASGI entry point: ``uvicorn bitcoin_agent.main:app``.

Startup loads the persisted knowledge index (and its embedding model)
once, before the first request, and logs the workflow limits the
supervisor will enforce. A missing or broken index never blocks startup:
vector search reports its own error per step and
``/api/health`` shows ``vector_store_ready: false``.
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from bitcoin_agent import __version__
from bitcoin_agent.api.routes import router
from bitcoin_agent.config import Settings, get_settings
from bitcoin_agent.vectorstore.faiss_store import get_knowledge_store

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
HANDLER_NAME = "bitcoin_agent"

# Chatty client libraries used by the agents and sources
QUIET_LOGGERS = ("httpx", "openai", "langchain", "aiosqlite", "faiss", "sentence_transformers")


def setup_logging(settings: Settings) -> None:
    """Send every log record to stdout. Safe to call more than once."""
    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level)

    if not any(h.get_name() == HANDLER_NAME for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(HANDLER_NAME)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


async def warm_knowledge_store() -> bool:
    """Load the knowledge index off the event loop. Returns readiness."""
    logger = logging.getLogger(__name__)
    try:
        store = await asyncio.to_thread(get_knowledge_store)
    except Exception as e:
        logger.warning(f"Knowledge store unavailable, vector search disabled: {e}")
        return False

    if store.is_ready:
        logger.info(f"Knowledge index loaded: {store.document_count} chunks")
    else:
        logger.info("Knowledge index is empty. Ingest texts via POST /api/knowledge/text")
    return store.is_ready


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings)
    logger = logging.getLogger(__name__)

    logger.info(f"Starting Bitcoin Agent Workflow Service v{__version__}")
    logger.info(f"LLM provider: {settings.llm_provider} ({settings.get_model_name()})")
    logger.info(
        f"Workflow limits: {settings.plan_step_count}-step plans, "
        f"researcher {settings.researcher_call_limit}, "
        f"executor {settings.executor_call_limit}, "
        f"replans {settings.max_replans}, "
        f"{settings.max_workflow_steps} node executions"
    )
    logger.info(f"Structured data source: {settings.structured_db_url}")

    app.state.knowledge_store_ready = await warm_knowledge_store()

    yield

    logger.info("Shutting down Bitcoin Agent Workflow Service")


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Bitcoin Agent Workflow Service",
        description=(
            "Answers questions about Bitcoin with a planner, a supervisor "
            "and researcher/executor agents backed by SQL, vector and web search."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # The dashboard calls the API from the browser
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.get("/", include_in_schema=False)
    async def root():
        return RedirectResponse(url="/docs")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "bitcoin_agent.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug_mode,
        log_level=settings.log_level.lower(),
    )
