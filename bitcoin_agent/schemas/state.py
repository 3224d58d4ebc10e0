"""
Workflow State
==============

The single record threaded through every node of a workflow run.

OWNERSHIP:
- The driver creates one WorkflowState per run and is its only writer.
- Nodes receive the current state and return a StateUpdate.
- merge_state() folds an update into a new state value; nothing is
  modified in place.

MERGE RULES:
    ┌───────────────────┬─────────────────────────────────┐
    │ Field             │ Merge                           │
    ├───────────────────┼─────────────────────────────────┤
    │ past_steps        │ appended                        │
    │ messages          │ appended                        │
    │ everything else   │ replaced when set on the update │
    └───────────────────┴─────────────────────────────────┘
"""

from typing import Optional, Sequence

from langchain_core.messages import BaseMessage
from pydantic import BaseModel, Field

from bitcoin_agent.schemas.models import Route, WorkflowResult


APPEND_FIELDS = frozenset({"past_steps", "messages"})


class WorkflowState(BaseModel):
    """
    Shared state of one run.

    ``messages`` only feeds the supervisor prompt. Routing never reads it.
    """
    objective: str
    plan: list[str] = Field(default_factory=list)
    initial_plan: list[str] = Field(default_factory=list)
    past_steps: list[tuple[str, str]] = Field(default_factory=list)
    response: Optional[str] = None
    draft_response: Optional[str] = None
    next: Route = Route.SUPERVISOR
    researcher_call_count: int = Field(default=0, ge=0)
    executor_call_count: int = Field(default=0, ge=0)
    replan_count: int = Field(default=0, ge=0)
    needs_replan: bool = False
    messages: list[BaseMessage] = Field(default_factory=list)

    class Config:
        frozen = True

    @property
    def current_step(self) -> Optional[str]:
        """The plan step a worker would consume next."""
        return self.plan[0] if self.plan else None

    @property
    def is_finished(self) -> bool:
        return self.next == Route.FINISH

    def to_result(self) -> WorkflowResult:
        """Project the state onto the public result shape."""
        return WorkflowResult(
            input=self.objective,
            plan=list(self.plan),
            past_steps=list(self.past_steps),
            response=self.response,
            needs_replan=self.needs_replan,
        )


class StateUpdate(BaseModel):
    """
    Partial update returned by a node.

    Only fields explicitly passed to the constructor are merged, so
    ``StateUpdate(plan=[])`` clears the plan while ``StateUpdate()`` leaves
    it alone.
    """
    plan: Optional[list[str]] = None
    initial_plan: Optional[list[str]] = None
    past_steps: Optional[list[tuple[str, str]]] = None
    response: Optional[str] = None
    draft_response: Optional[str] = None
    next: Optional[Route] = None
    researcher_call_count: Optional[int] = None
    executor_call_count: Optional[int] = None
    replan_count: Optional[int] = None
    needs_replan: Optional[bool] = None
    messages: Optional[list[BaseMessage]] = None


def merge_state(state: WorkflowState, update: StateUpdate) -> WorkflowState:
    """
    Apply a node's update to the state and return the new state.

    Args:
        state: Current state (left untouched)
        update: Partial update produced by a node

    Returns:
        New WorkflowState with list fields appended and scalars replaced
    """
    changes = {}
    for name in update.model_fields_set:
        value = getattr(update, name)
        if name in APPEND_FIELDS:
            value = [*getattr(state, name), *(value or [])]
        changes[name] = value

    return state.model_copy(update=changes)


# =============================================================================
# Prompt formatting helpers
# =============================================================================

def format_plan(plan: Sequence[str], empty: str = "No plan created yet.") -> str:
    """Render a plan as a numbered list."""
    if not plan:
        return empty
    return "\n".join(f"{i}. {step}" for i, step in enumerate(plan, 1))


def format_progress(
    past_steps: Sequence[tuple[str, str]],
    empty: str = "No previous steps executed yet.",
) -> str:
    """Render past steps as numbered step/result blocks."""
    if not past_steps:
        return empty
    return "\n\n".join(
        f"Step {i}: {step}\nResult: {result}"
        for i, (step, result) in enumerate(past_steps, 1)
    )


def format_findings(past_steps: Sequence[tuple[str, str]]) -> str:
    """Render past steps as ``step: result`` pairs."""
    return "\n\n".join(f"{step}: {result}" for step, result in past_steps)
