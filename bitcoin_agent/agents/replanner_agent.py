"""
Replanner Agent
===============

Revises the remaining plan after some steps have run, or answers the user
directly when nothing is left to do.

The model gets two tools:
- plan:     replace the remaining plan with the steps still needed
- response: finish the workflow with this answer, bypassing the supervisor

Failures never end the run: the plan is left as it was and control returns
to the supervisor.
"""

import logging

from langchain_core.messages import AIMessage
from langchain_core.prompts import ChatPromptTemplate

from bitcoin_agent.agents.base_agent import BaseAgent
from bitcoin_agent.schemas.models import AgentType, Route
from bitcoin_agent.schemas.state import (
    StateUpdate,
    WorkflowState,
    format_plan,
    format_progress,
)
from bitcoin_agent.schemas.tool_calls import (
    PlanArgs,
    PlanCall,
    ResponseArgs,
    ResponseCall,
    parse_tool_calls,
    replan_call_adapter,
    tool_schema,
)

logger = logging.getLogger(__name__)


REPLANNER_PROMPT = """For the given objective, come up with a simple step by step plan.
This plan should involve individual tasks, that if executed correctly will yield the correct answer. Do not add any superfluous steps.
The result of the final step should be the final answer. Make sure that each step has all the information needed - do not skip steps.

Your objective was this:
{objective}

Your original plan was this:
{initial_plan}

The steps still left in the plan are:
{plan}

You have currently done the following steps:
{past_steps}

Update your plan accordingly. If no more steps are needed and you can return to the user, then respond with that and use the 'response' function.
Otherwise, fill out the plan.
Only add steps to the plan that still NEED to be done. Do not return previously done steps as part of the plan."""


class ReplannerAgent(BaseAgent):
    """Revises the plan or produces the final response."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._prompt = ChatPromptTemplate.from_template(REPLANNER_PROMPT)
        self._llm_with_tools = self._llm.bind_tools([
            tool_schema("plan", PlanArgs),
            tool_schema("response", ResponseArgs),
        ])

    @property
    def agent_type(self) -> AgentType:
        return AgentType.REPLANNER

    async def execute(self, state: WorkflowState) -> StateUpdate:
        """
        Ask the model for a revised plan or a direct answer.

        Raises:
            ValueError: If the model returned no usable plan/response call.
                A response call with blank text is not usable.
        """
        messages = self._prompt.format_messages(
            objective=state.objective,
            initial_plan=format_plan(state.initial_plan),
            plan=format_plan(state.plan, empty="No steps left."),
            past_steps=format_progress(state.past_steps),
        )
        ai_message = await self._llm_with_tools.ainvoke(messages)
        calls = parse_tool_calls(replan_call_adapter, getattr(ai_message, "tool_calls", None))

        if not calls:
            raise ValueError("Replanner returned no plan or response")

        # A direct response wins over a revised plan
        response = next((c for c in calls if isinstance(c, ResponseCall)), None)
        if response is not None:
            logger.info("Replanner finished the workflow with a direct response")
            return StateUpdate(
                response=response.response,
                needs_replan=False,
                messages=[AIMessage(content=response.response, name="Assistant")],
                next=Route.FINISH,
            )

        new_plan: PlanCall = calls[0]
        steps = [step.strip() for step in new_plan.steps if step.strip()]
        logger.info(f"Replanner revised plan to {len(steps)} steps")

        return StateUpdate(
            plan=steps,
            needs_replan=False,
            messages=[AIMessage(content=f"Revised plan:\n{format_plan(steps)}", name="Replanner")],
            next=Route.SUPERVISOR,
        )

    def recover(self, state: WorkflowState, error: Exception) -> StateUpdate:
        """Keep the current plan and hand control back to the supervisor."""
        return StateUpdate(needs_replan=False, next=Route.SUPERVISOR)
