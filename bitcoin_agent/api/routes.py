"""
API Routes
==========

FastAPI endpoints for the Bitcoin agent workflow.

ENDPOINTS:
- POST /api/ai/workflow:   Run the agent workflow for a question
- POST /api/ai/agent:      Legacy alias of /api/ai/workflow
- POST /api/ai/trace:      Render a workflow result as readable text
- POST /api/knowledge/text: Index knowledge texts for vector search
- GET  /api/health:        Health check endpoint

The workflow endpoint always answers 200 with a WorkflowResult once the
input is valid: agent failures are reported inside the result, never as
an HTTP error.
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from bitcoin_agent import __version__
from bitcoin_agent.config import get_settings
from bitcoin_agent.schemas.models import (
    HealthResponse,
    KnowledgeIngestRequest,
    KnowledgeIngestResponse,
    TraceRequest,
    TraceResponse,
    WorkflowRequest,
    WorkflowResult,
)
from bitcoin_agent.services.orchestrator import (
    WorkflowDriver,
    get_execution_trace,
    run_workflow,
)
from bitcoin_agent.vectorstore.faiss_store import get_knowledge_store

logger = logging.getLogger(__name__)

# Create router with prefix and tags for OpenAPI docs
router = APIRouter(prefix="/api", tags=["agent"])


def get_driver() -> Optional[WorkflowDriver]:
    """
    Driver used for workflow requests.

    None selects the shared driver, created lazily on the first run so the
    API starts even when no LLM is configured.
    """
    return None


# =============================================================================
# Health Check
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Check if the API is running and the knowledge index is loaded",
)
async def health_check() -> HealthResponse:
    """Return the API status and configured model."""
    settings = get_settings()

    try:
        vector_store_ready = get_knowledge_store().is_ready
    except Exception as e:
        logger.warning(f"Knowledge store unavailable: {e}")
        vector_store_ready = False

    return HealthResponse(
        status="healthy",
        version=__version__,
        llm_provider=settings.llm_provider,
        model=settings.get_model_name(),
        vector_store_ready=vector_store_ready,
    )


# =============================================================================
# Agent Workflow
# =============================================================================

@router.post(
    "/ai/workflow",
    response_model=WorkflowResult,
    response_model_exclude_none=True,
    summary="Run Agent Workflow",
    description="Plan, research and answer a question about Bitcoin",
)
async def run_agent_workflow(
    request: WorkflowRequest,
    driver: Optional[WorkflowDriver] = Depends(get_driver),
) -> WorkflowResult:
    """
    Run the plan-supervise-work workflow for the user's question.

    Raises:
        HTTPException: 400 if the input is missing or blank
    """
    if not request.input or not request.input.strip():
        raise HTTPException(status_code=400, detail="Input is required")

    result = await run_workflow(request.input.strip(), driver=driver)

    logger.info(
        f"Workflow completed: {request.input[:50]}... -> "
        f"{len(result.past_steps)} steps, error={result.error is not None}"
    )
    return result


@router.post(
    "/ai/agent",
    response_model=WorkflowResult,
    response_model_exclude_none=True,
    summary="Run Agent Workflow (legacy)",
    description="Alias of /api/ai/workflow kept for older clients",
)
async def run_agent_legacy(
    request: WorkflowRequest,
    driver: Optional[WorkflowDriver] = Depends(get_driver),
) -> WorkflowResult:
    """Legacy alias of the workflow endpoint."""
    return await run_agent_workflow(request, driver)


@router.post(
    "/ai/trace",
    response_model=TraceResponse,
    summary="Execution Trace",
    description="Render a workflow result as a human-readable trace",
)
async def execution_trace(request: TraceRequest) -> TraceResponse:
    """
    Render the plan and executed steps of a workflow result.

    Raises:
        HTTPException: 400 if no state is provided
    """
    if request.state is None:
        raise HTTPException(status_code=400, detail="State is required")

    return TraceResponse(trace=get_execution_trace(request.state))


# =============================================================================
# Knowledge Ingestion
# =============================================================================

@router.post(
    "/knowledge/text",
    response_model=KnowledgeIngestResponse,
    summary="Ingest Knowledge",
    description="Index raw knowledge texts for the researcher's vector search",
)
async def ingest_knowledge(request: KnowledgeIngestRequest) -> KnowledgeIngestResponse:
    """
    Chunk, embed and index knowledge texts.

    Raises:
        HTTPException: If indexing fails
    """
    try:
        store = get_knowledge_store()
        # Embedding is CPU-bound and synchronous
        chunks = await asyncio.to_thread(store.add_texts, request.texts, request.source)

        return KnowledgeIngestResponse(
            success=True,
            chunks_created=chunks,
            document_count=store.document_count,
        )

    except Exception as e:
        logger.error(f"Knowledge ingestion failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to ingest knowledge: {str(e)}"
        )
