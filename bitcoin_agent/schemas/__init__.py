"""
Pydantic Schemas
================

Workflow state, tool-call unions and request/response models.
"""

from bitcoin_agent.schemas.models import (
    AgentType,
    Route,
    WorkflowResult,
    WorkflowRequest,
    TraceRequest,
    TraceResponse,
    HealthResponse,
    KnowledgeIngestRequest,
    KnowledgeIngestResponse,
)
from bitcoin_agent.schemas.state import (
    WorkflowState,
    StateUpdate,
    merge_state,
)

__all__ = [
    "AgentType",
    "Route",
    "WorkflowResult",
    "WorkflowRequest",
    "TraceRequest",
    "TraceResponse",
    "HealthResponse",
    "KnowledgeIngestRequest",
    "KnowledgeIngestResponse",
    "WorkflowState",
    "StateUpdate",
    "merge_state",
]
