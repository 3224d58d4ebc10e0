"""
Data Models
===========

This module defines the Pydantic models used at the edges of the workflow:
- Request/response validation for API endpoints
- The WorkflowResult returned to callers of run_workflow
- Enums naming the agents and the routing targets

The JSON wire format is camelCase (``pastSteps``, ``needsReplan``) because the
dashboard consumes it directly; Python code uses the snake_case names.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class AgentType(str, Enum):
    """
    Agents taking part in the plan-execute-supervise workflow.

    - PLANNER: Produces the initial fixed-size plan
    - SUPERVISOR: Routes to the next agent and decides termination
    - RESEARCHER: Gathers information for one plan step
    - EXECUTOR: Performs one plan step, synthesizes the answer on the last one
    - REPLANNER: Revises the remaining plan or finishes directly
    """
    PLANNER = "planner"
    SUPERVISOR = "supervisor"
    RESEARCHER = "researcher"
    EXECUTOR = "executor"
    REPLANNER = "replanner"


class Route(str, Enum):
    """
    Routing targets read by the workflow driver after every node.

    FINISH is terminal: the driver stops dispatching once it is set.
    """
    SUPERVISOR = "supervisor"
    RESEARCHER = "researcher"
    EXECUTOR = "executor"
    REPLAN = "replan"
    FINISH = "FINISH"


# =============================================================================
# Workflow Result
# =============================================================================

class WorkflowResult(BaseModel):
    """
    Final outcome of one workflow run.

    This is the only shape that crosses the engine boundary. A run that
    failed fatally still produces one, with ``error`` populated.
    """
    input: str = Field(..., description="The user's original question")
    plan: list[str] = Field(
        default_factory=list,
        description="Plan steps that were not consumed by a worker"
    )
    past_steps: list[tuple[str, str]] = Field(
        default_factory=list,
        alias="pastSteps",
        description="(step, result) pairs in execution order"
    )
    response: Optional[str] = Field(
        default=None,
        description="Terminal answer for the user"
    )
    needs_replan: bool = Field(
        default=False,
        alias="needsReplan",
        description="Whether a replan was pending when the run ended"
    )
    error: Optional[str] = Field(
        default=None,
        description="Message of the run-fatal error, if any"
    )

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "input": "What is Bitcoin's current price trend?",
                "plan": [],
                "pastSteps": [
                    [
                        "Collect recent BTC price data",
                        "Researcher Result: Research Results for: ..."
                    ]
                ],
                "response": "- BTC is up 4% over the last week...",
                "needsReplan": False,
            }
        }


# =============================================================================
# API Request/Response Models
# =============================================================================

class WorkflowRequest(BaseModel):
    """
    Question submitted to the agent workflow.

    ``input`` is optional here so the route can answer 400 with a clear
    message instead of a validation error.

    Example:
        {"input": "What is Bitcoin's current price trend?"}
    """
    input: Optional[str] = Field(
        default=None,
        max_length=2000,
        description="The user's question about Bitcoin"
    )


class TraceRequest(BaseModel):
    """Request body for rendering a human-readable execution trace."""
    state: Optional[dict[str, Any]] = Field(
        default=None,
        description="A WorkflowResult as returned by the workflow endpoint"
    )


class TraceResponse(BaseModel):
    """Rendered execution trace."""
    trace: str = Field(..., description="Plan and executed steps as text")


class HealthResponse(BaseModel):
    """API health check response."""
    status: str = Field(..., description="'healthy' or 'unhealthy'")
    version: str = Field(..., description="API version")
    llm_provider: str = Field(..., description="Configured LLM provider")
    model: str = Field(..., description="Configured chat model")
    vector_store_ready: bool = Field(
        ...,
        description="Whether the knowledge index is loaded"
    )


class KnowledgeIngestRequest(BaseModel):
    """
    Raw knowledge texts to index for vector search.

    Example:
        {"texts": ["The block subsidy halves every 210,000 blocks..."], "source": "halving_notes"}
    """
    texts: list[str] = Field(
        ...,
        min_length=1,
        description="Knowledge texts to chunk, embed and index"
    )
    source: str = Field(
        default="knowledge_base",
        max_length=200,
        description="Source label stored with every chunk"
    )


class KnowledgeIngestResponse(BaseModel):
    """Result of a knowledge ingestion."""
    success: bool = Field(..., description="Whether indexing succeeded")
    chunks_created: int = Field(default=0, description="Number of chunks indexed")
    document_count: int = Field(default=0, description="Chunks in the index after ingestion")
