"""
Workflow Driver
===============

The driver is the "conductor" of the agent workflow. It owns the run loop,
the routing table and the only copy of the state.

WORKFLOW:

    ┌─────────┐
    │ Planner │ ──► runs once, always first
    └────┬────┘
         │
    ┌────▼───────┐  researcher  ┌────────────┐
    │            │ ───────────► │ Researcher │ ──┐
    │            │  executor    ├────────────┤   │
    │ Supervisor │ ───────────► │  Executor  │ ──┤
    │            │  replan      ├────────────┤   │
    │            │ ───────────► │ Replanner  │ ──┤ (replanner may FINISH)
    │            │ ◄────────────┴────────────┘ ◄─┘
    └────┬───────┘
         │ FINISH
    ┌────▼─────┐
    │ Response │
    └──────────┘

RULES:
- Nodes never call each other; they return a StateUpdate and set ``next``
- The driver merges every update with merge_state() and dispatches on
  ``state.next`` through the routing table
- Nothing is stored on the driver per run, so one driver serves
  concurrent runs
- run() never raises: a run-fatal error becomes the apology result
"""

import logging
from typing import Any, Awaitable, Callable, Optional, Union

from langchain_core.language_models.chat_models import BaseChatModel
from pydantic import BaseModel

from bitcoin_agent.agents.base_agent import BaseAgent, create_llm
from bitcoin_agent.agents.executor_agent import ExecutorAgent
from bitcoin_agent.agents.planner_agent import PlannerAgent
from bitcoin_agent.agents.replanner_agent import ReplannerAgent
from bitcoin_agent.agents.researcher_agent import ResearcherAgent
from bitcoin_agent.agents.supervisor_agent import SupervisorAgent
from bitcoin_agent.config import Settings, get_settings
from bitcoin_agent.schemas.models import Route, WorkflowResult
from bitcoin_agent.schemas.state import (
    StateUpdate,
    WorkflowState,
    format_plan,
    format_progress,
    merge_state,
)

logger = logging.getLogger(__name__)


APOLOGY_RESPONSE = (
    "I'm unable to process your request at the moment. The AI services might be "
    "unavailable or misconfigured. Please contact the administrator for assistance."
)
TRACE_ERROR = "Error: Could not generate execution trace due to an unexpected error."

Node = Callable[[WorkflowState], Awaitable[StateUpdate]]
StepCallback = Callable[[WorkflowState], None]


class WorkflowStepLimitError(RuntimeError):
    """Raised when a run executes more nodes than ``max_workflow_steps``."""


class WorkflowDriver:
    """
    Runs plan-supervise-work workflows.

    Usage:
        driver = WorkflowDriver()
        result = await driver.run("What is Bitcoin's current price trend?")
        print(get_execution_trace(result))
    """

    def __init__(
        self,
        planner: Optional[BaseAgent] = None,
        supervisor: Optional[BaseAgent] = None,
        researcher: Optional[BaseAgent] = None,
        executor: Optional[BaseAgent] = None,
        replanner: Optional[BaseAgent] = None,
        llm: Optional[BaseChatModel] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the driver with all agents.

        Args:
            planner, supervisor, researcher, executor, replanner:
                Pre-built agents (created from ``llm`` if not provided)
            llm: Chat model shared by the agents created here
            settings: Override application settings
        """
        self._settings = settings or get_settings()

        if llm is None and None in (planner, supervisor, researcher, executor, replanner):
            llm = create_llm()
        agent_kwargs = {"llm": llm, "settings": self._settings}

        self._planner = planner or PlannerAgent(**agent_kwargs)
        self._supervisor = supervisor or SupervisorAgent(**agent_kwargs)
        self._researcher = researcher or ResearcherAgent(**agent_kwargs)
        self._executor = executor or ExecutorAgent(**agent_kwargs)
        self._replanner = replanner or ReplannerAgent(**agent_kwargs)

        # Routing table. The planner is not in it: it only runs first.
        # The supervisor's execute() handles its own fallbacks; workers and
        # the replanner recover through safe_execute().
        self._nodes: dict[Route, Node] = {
            Route.SUPERVISOR: self._supervisor.execute,
            Route.RESEARCHER: self._researcher.safe_execute,
            Route.EXECUTOR: self._executor.safe_execute,
            Route.REPLAN: self._replanner.safe_execute,
        }

        logger.info("Workflow driver initialized")

    async def run(
        self,
        objective: str,
        on_step: Optional[StepCallback] = None,
    ) -> WorkflowResult:
        """
        Run one workflow to completion.

        Args:
            objective: The user's question
            on_step: Called with the state after every merged update

        Returns:
            WorkflowResult; the apology result if the run failed fatally
        """
        logger.info(f"Starting workflow: {objective[:100]}")

        try:
            state = WorkflowState(objective=objective)
            state = await self._advance(state, self._planner.execute, on_step)
            executed = 1

            while not state.is_finished:
                if executed >= self._settings.max_workflow_steps:
                    raise WorkflowStepLimitError(
                        f"Workflow exceeded {self._settings.max_workflow_steps} steps"
                    )
                state = await self._advance(state, self._nodes[state.next], on_step)
                executed += 1

        except Exception as e:
            logger.error(f"Workflow execution failed: {type(e).__name__}: {e}", exc_info=True)
            return error_result(objective, e)

        logger.info(
            f"Workflow finished after {executed} node executions, "
            f"{len(state.past_steps)} worker steps"
        )
        return state.to_result()

    @staticmethod
    async def _advance(
        state: WorkflowState,
        node: Node,
        on_step: Optional[StepCallback],
    ) -> WorkflowState:
        update = await node(state)
        state = merge_state(state, update)
        if on_step is not None:
            on_step(state)
        return state


def error_result(objective: str, error: Exception) -> WorkflowResult:
    """The fixed result returned when a run fails fatally."""
    message = str(error) or type(error).__name__
    return WorkflowResult(
        input=objective,
        plan=[],
        past_steps=[("Error", f"The AI agent encountered an error: {message}")],
        response=APOLOGY_RESPONSE,
        needs_replan=False,
        error=message,
    )


# Lazy initialization: created on first use to avoid startup delays
_driver: Optional[WorkflowDriver] = None


def get_workflow_driver() -> WorkflowDriver:
    """Get or create the shared driver instance."""
    global _driver
    if _driver is None:
        _driver = WorkflowDriver()
    return _driver


async def run_workflow(
    objective: str,
    driver: Optional[WorkflowDriver] = None,
) -> WorkflowResult:
    """
    Run the agent workflow for a question. Never raises.

    Args:
        objective: The user's question
        driver: Driver to use (the shared one if not provided)
    """
    if driver is None:
        try:
            driver = get_workflow_driver()
        except Exception as e:
            logger.error(f"Could not create workflow driver: {e}", exc_info=True)
            return error_result(objective, e)

    return await driver.run(objective)


def get_execution_trace(state: Union[WorkflowResult, WorkflowState, dict[str, Any]]) -> str:
    """
    Render a run as human-readable text. Never raises.

    Accepts a WorkflowResult, a WorkflowState, or the JSON dict returned
    by the workflow endpoint (camelCase or snake_case keys).
    """
    try:
        if isinstance(state, WorkflowState):
            state = state.to_result()
        if isinstance(state, BaseModel):
            data = state.model_dump(by_alias=True)
        else:
            data = dict(state)

        past_steps = data.get("pastSteps", data.get("past_steps")) or []

        trace = f"Input: {data.get('input', '')}\n\n"

        plan = data.get("plan") or []
        if plan:
            trace += f"Plan:\n{format_plan(plan)}\n\n"
        else:
            trace += "No plan was generated.\n\n"

        if past_steps:
            trace += f"Execution Steps:\n{format_progress(past_steps)}\n\n"
        else:
            trace += "No execution steps were performed.\n\n"

        if data.get("response"):
            trace += f"Final Response: {data['response']}\n"

        return trace

    except Exception as e:
        logger.error(f"Error generating execution trace: {e}", exc_info=True)
        return TRACE_ERROR
