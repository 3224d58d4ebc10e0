"""
Supervisor Agent
================

The supervisor decides who acts next, and when the workflow is done.

RESPONSIBILITIES:
1. Ask the model for the next route (researcher, executor, replan, FINISH)
2. Enforce the per-run call limits, overriding the model when needed
3. Write the final response when the workflow finishes
4. Count every dispatch it makes

WHY OVERRIDE THE MODEL?
The model is told about the limits, but nothing guarantees it respects
them. apply_call_limits() is the hard guarantee that a run ends after a
bounded number of worker steps, whatever the model says.

OVERRIDE RULES (defaults: researcher 2, executor 1, replan 1):
┌──────────────────────────────┬─────────────────────────────────────────┐
│ Decision + condition         │ Final decision                          │
├──────────────────────────────┼─────────────────────────────────────────┤
│ researcher, researcher full  │ executor if available and plan left,    │
│                              │ else FINISH                             │
│ executor, executor full      │ researcher if available and plan left,  │
│                              │ else FINISH                             │
│ replan, replans used up      │ first available worker if plan left,    │
│                              │ else FINISH                             │
└──────────────────────────────┴─────────────────────────────────────────┘
"""

import logging
from dataclasses import dataclass

from langchain_core.messages import AIMessage, HumanMessage
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder

from bitcoin_agent.agents.base_agent import BaseAgent, message_text
from bitcoin_agent.config import Settings
from bitcoin_agent.schemas.models import AgentType, Route
from bitcoin_agent.schemas.state import (
    StateUpdate,
    WorkflowState,
    format_findings,
)
from bitcoin_agent.schemas.tool_calls import (
    RouteArgs,
    parse_tool_call,
    route_call_adapter,
    tool_schema,
)

logger = logging.getLogger(__name__)


WORKER_AGENTS = ("researcher", "executor", "replan")
ROUTE_OPTIONS = (*WORKER_AGENTS, "FINISH")

SUPERVISOR_SYSTEM_PROMPT = """You are a supervisor agent that coordinates work between the \
following workers: {worker_agents}. Given the current plan and state, respond with the worker \
to act next. Each worker will perform a task and respond with their results. \
When finished with all tasks, respond with FINISH.

IMPORTANT CONSTRAINTS:
- The researcher agent can be called a maximum of {researcher_limit} times
- The executor agent can be called a maximum of {executor_limit} time
- Once these limits are reached, you must either use the remaining agent (if available) or finish the task
- Current researcher calls: {researcher_calls}/{researcher_limit}
- Current executor calls: {executor_calls}/{executor_limit}

Current question: {question}
Current plan:
{plan}

{previous_steps}"""

SUPERVISOR_HUMAN_PROMPT = (
    "Given the conversation and plan above, which worker should act next? "
    "Or should we FINISH? Select one of: {options}"
)

SYNTHESIS_PROMPT = """You are a helpful assistant that answers questions about Bitcoin and cryptocurrency.

You need to answer this question: "{question}"

Here is the information you've gathered:
{research}

The original plan was:
{plan}

FORMAT YOUR RESPONSE FOR MAXIMUM READABILITY:
- Use bullet points for listing information
- Break content into short paragraphs (3-4 lines maximum)
- Use clear headings for different sections
- Include line breaks between sections
- Highlight key information with concise statements
- Avoid long, dense paragraphs of text

Now, provide a clear, concise, and easy-to-read answer based on this information."""

NO_STEPS_RESPONSE = "No steps were executed."


@dataclass(frozen=True)
class RouteDecision:
    """Where to go next, and why."""
    next: Route
    reasoning: str


@dataclass(frozen=True)
class CallLimits:
    """Per-run dispatch ceilings."""
    researcher: int = 2
    executor: int = 1
    replans: int = 1

    @classmethod
    def from_settings(cls, settings: Settings) -> "CallLimits":
        return cls(
            researcher=settings.researcher_call_limit,
            executor=settings.executor_call_limit,
            replans=settings.max_replans,
        )


def apply_call_limits(
    decision: RouteDecision,
    state: WorkflowState,
    limits: CallLimits,
) -> RouteDecision:
    """
    Override a routing decision that would exceed a call limit.

    Pure function: the returned decision carries the override reason when
    it differs from the input decision.
    """
    researcher_open = state.researcher_call_count < limits.researcher
    executor_open = state.executor_call_count < limits.executor
    plan_left = bool(state.plan)

    if decision.next == Route.RESEARCHER and not researcher_open:
        if executor_open and plan_left:
            return RouteDecision(
                Route.EXECUTOR,
                f"Researcher limit reached ({limits.researcher} calls). Trying executor instead.",
            )
        return RouteDecision(Route.FINISH, "Both agent limits reached. Finishing workflow.")

    if decision.next == Route.EXECUTOR and not executor_open:
        if researcher_open and plan_left:
            return RouteDecision(
                Route.RESEARCHER,
                f"Executor limit reached ({limits.executor} call). Trying researcher instead.",
            )
        return RouteDecision(Route.FINISH, "Both agent limits reached. Finishing workflow.")

    if decision.next == Route.REPLAN and state.replan_count >= limits.replans:
        if plan_left and researcher_open:
            return RouteDecision(Route.RESEARCHER, "Replan limit reached. Trying researcher instead.")
        if plan_left and executor_open:
            return RouteDecision(Route.EXECUTOR, "Replan limit reached. Trying executor instead.")
        return RouteDecision(Route.FINISH, "Replan limit reached. Finishing workflow.")

    return decision


class SupervisorAgent(BaseAgent):
    """
    Routes the workflow and writes the final response.

    execute() does not raise for model failures: an unusable routing reply
    defaults to the researcher, and a failed synthesis falls back to the
    best answer already in the state.
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._limits = CallLimits.from_settings(self._settings)

        self._route_prompt = ChatPromptTemplate.from_messages([
            ("system", SUPERVISOR_SYSTEM_PROMPT),
            MessagesPlaceholder("messages"),
            ("human", SUPERVISOR_HUMAN_PROMPT),
        ])
        self._synthesis_prompt = ChatPromptTemplate.from_template(SYNTHESIS_PROMPT)

        self._router_llm = self._llm.bind_tools(
            [tool_schema("route", RouteArgs)],
            tool_choice="route",
        )

    @property
    def agent_type(self) -> AgentType:
        return AgentType.SUPERVISOR

    async def decide(self, state: WorkflowState) -> RouteDecision:
        """Ask the model for the next route. Never raises."""
        previous_steps = (
            "Past steps:\n" + format_findings(state.past_steps) if state.past_steps else ""
        )
        messages = self._route_prompt.format_messages(
            worker_agents=", ".join(WORKER_AGENTS),
            options=", ".join(ROUTE_OPTIONS),
            researcher_limit=self._limits.researcher,
            executor_limit=self._limits.executor,
            researcher_calls=state.researcher_call_count,
            executor_calls=state.executor_call_count,
            question=state.objective,
            plan="\n".join(state.plan),
            previous_steps=previous_steps,
            messages=[
                *state.messages,
                HumanMessage(content="Which agent should handle the next step in our plan?"),
            ],
        )

        try:
            ai_message = await self._router_llm.ainvoke(messages)
        except Exception as e:
            logger.error(f"Supervisor routing call failed: {type(e).__name__}: {e}", exc_info=True)
            return RouteDecision(Route.RESEARCHER, "Error processing output")

        tool_calls = getattr(ai_message, "tool_calls", None) or []
        if not tool_calls:
            logger.warning("No tool calls returned from model, defaulting to researcher")
            return RouteDecision(Route.RESEARCHER, "Defaulting to researcher")

        call = parse_tool_call(route_call_adapter, tool_calls[0])
        if call is None:
            logger.warning("Invalid route tool output, defaulting to researcher")
            return RouteDecision(Route.RESEARCHER, "Invalid tool output format")

        return RouteDecision(Route(call.next), call.reasoning)

    async def execute(self, state: WorkflowState) -> StateUpdate:
        """Route to the next node, or finish with the final response."""
        logger.info(
            f"Current call counts - Researcher: {state.researcher_call_count}/{self._limits.researcher}, "
            f"Executor: {state.executor_call_count}/{self._limits.executor}"
        )

        proposed = await self.decide(state)
        logger.info(f"Supervisor decision: {proposed.next.value} ({proposed.reasoning})")

        decision = apply_call_limits(proposed, state, self._limits)
        if decision.next != proposed.next:
            logger.info(
                f"Decision overridden: {proposed.next.value} -> {decision.next.value}. "
                f"Reason: {decision.reasoning}"
            )

        if decision.next == Route.FINISH:
            response = await self.synthesize(state)
            return StateUpdate(
                response=response,
                messages=[AIMessage(content=response, name="Assistant")],
                next=Route.FINISH,
            )

        if decision.next == Route.RESEARCHER:
            return StateUpdate(
                researcher_call_count=state.researcher_call_count + 1,
                next=Route.RESEARCHER,
            )

        if decision.next == Route.EXECUTOR:
            return StateUpdate(
                executor_call_count=state.executor_call_count + 1,
                next=Route.EXECUTOR,
            )

        return StateUpdate(
            replan_count=state.replan_count + 1,
            needs_replan=True,
            next=Route.REPLAN,
        )

    async def synthesize(self, state: WorkflowState) -> str:
        """
        Write the final answer from everything gathered.

        Falls back to the executor's draft, then the last step result, then
        a fixed message. Always returns a non-empty string.
        """
        messages = self._synthesis_prompt.format_messages(
            question=state.objective,
            research=format_findings(state.past_steps),
            plan="\n".join(state.initial_plan or state.plan),
        )
        try:
            response = message_text(await self._llm.ainvoke(messages)).strip()
            if response:
                return response
            logger.warning("Final synthesis returned empty text, using fallback")

        except Exception as e:
            logger.error(f"Final synthesis failed: {type(e).__name__}: {e}", exc_info=True)

        return self._fallback_response(state)

    @staticmethod
    def _fallback_response(state: WorkflowState) -> str:
        if state.draft_response:
            return state.draft_response
        if state.past_steps:
            return state.past_steps[-1][1]
        return NO_STEPS_RESPONSE
