"""
Planner Agent
=============

Turns the user's objective into a short, fixed-size plan.

The planner runs exactly once per workflow, before anything else. Its
output is validated strictly: a plan with the wrong number of steps, or
with a blank step, is an error. Planner errors are NOT recovered here;
without a plan the run cannot proceed, so the driver turns the failure
into the fixed apology result.
"""

import logging

from langchain_core.messages import AIMessage
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field

from bitcoin_agent.agents.base_agent import BaseAgent
from bitcoin_agent.schemas.models import AgentType, Route
from bitcoin_agent.schemas.state import StateUpdate, WorkflowState, format_plan

logger = logging.getLogger(__name__)


class PlanOutput(BaseModel):
    """This tool is used to plan the steps to follow."""
    steps: list[str] = Field(
        description="different steps to follow, should be in sorted order"
    )


PLANNER_PROMPT = """For the given objective, come up with a simple {step_count} step plan. \
This plan should involve individual tasks, that if executed correctly will yield the correct answer. \
Do not add any superfluous steps. The result of the final step should be the final answer. \
Make sure that each step has all the information needed - do not skip steps.

{objective}"""


class PlannerAgent(BaseAgent):
    """Produces the initial plan for a workflow run."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._prompt = ChatPromptTemplate.from_template(PLANNER_PROMPT)
        self._structured_llm = self._llm.with_structured_output(PlanOutput)

    @property
    def agent_type(self) -> AgentType:
        return AgentType.PLANNER

    async def execute(self, state: WorkflowState) -> StateUpdate:
        """
        Create the plan for ``state.objective``.

        Raises:
            ValueError: If the model returns the wrong number of steps or a blank step
            pydantic.ValidationError: If the structured output is malformed
        """
        step_count = self._settings.plan_step_count

        messages = self._prompt.format_messages(
            step_count=step_count,
            objective=state.objective,
        )
        output = await self._structured_llm.ainvoke(messages)
        if isinstance(output, dict):
            output = PlanOutput.model_validate(output)

        steps = [step.strip() for step in output.steps]
        if len(steps) != step_count:
            raise ValueError(f"Planner returned {len(steps)} steps, expected {step_count}")
        if not all(steps):
            raise ValueError("Planner returned a blank step")

        logger.info(f"Created plan with {len(steps)} steps")

        return StateUpdate(
            plan=steps,
            initial_plan=steps,
            messages=[AIMessage(content=f"Plan:\n{format_plan(steps)}", name="Planner")],
            next=Route.SUPERVISOR,
        )
