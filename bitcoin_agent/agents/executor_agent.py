"""
Executor Agent
==============

Carries out one plan step: a calculation, an analysis of earlier findings,
or writing up the answer.

TWO MODES:
- Minimal (default): a plain completion over the step, the objective and
  everything done so far.
- Tool-augmented (``executor_tools_enabled``): the model may call
  ``execute_action`` and ``provide_result``. Actions are simulated, so
  nothing outside the workflow is ever touched.

When the executor handles the LAST step of the plan, its output is also
kept as ``draft_response``: the supervisor falls back to it if the final
synthesis fails.
"""

import json
import logging
from typing import Optional

from langchain_core.prompts import ChatPromptTemplate

from bitcoin_agent.agents.base_agent import WorkerAgent, message_text
from bitcoin_agent.schemas.models import AgentType
from bitcoin_agent.schemas.state import StateUpdate, WorkflowState, format_progress
from bitcoin_agent.schemas.tool_calls import (
    ExecuteActionArgs,
    ExecuteActionCall,
    ExecutorToolCall,
    ProvideResultArgs,
    ProvideResultCall,
    executor_call_adapter,
    parse_tool_calls,
    tool_schema,
)

logger = logging.getLogger(__name__)


EXECUTOR_PROMPT = """You are an executor agent in an AI system.
Your job is to execute tasks, perform calculations, analyze data, or generate the final response to the user's query.

USER QUERY: {objective}

CURRENT PLAN STEP: {step}

CONTEXT AND PREVIOUS STEPS:
{previous_steps}

Execute the current plan step based on the information available from previous steps.
If this is the final step in the plan, make sure to provide a complete and comprehensive answer to the user's query.
Be detailed and precise in your execution."""

TOOLS_SUFFIX = """

APPROACH:
1. Determine what specific action needs to be taken based on the step description
2. Define the necessary parameters for the action
3. Execute the action and provide the result
4. If you cannot execute the action, explain why and provide a meaningful error message"""


class ExecutorAgent(WorkerAgent):
    """Executes one plan step."""

    fallback_step = "No specific execution step provided."

    def __init__(self, use_tools: Optional[bool] = None, **kwargs):
        super().__init__(**kwargs)
        self._use_tools = (
            use_tools if use_tools is not None else self._settings.executor_tools_enabled
        )

        template = EXECUTOR_PROMPT + TOOLS_SUFFIX if self._use_tools else EXECUTOR_PROMPT
        self._prompt = ChatPromptTemplate.from_template(template)

        if self._use_tools:
            self._llm_with_tools = self._llm.bind_tools([
                tool_schema("execute_action", ExecuteActionArgs),
                tool_schema("provide_result", ProvideResultArgs),
            ])

        # Dispatch table for tool calls
        self.call_handlers = {
            ExecuteActionCall: self._format_action,
            ProvideResultCall: self._format_result,
        }

    @property
    def agent_type(self) -> AgentType:
        return AgentType.EXECUTOR

    async def execute(self, state: WorkflowState) -> StateUpdate:
        """Execute the current plan step."""
        step = self.step_for(state)
        messages = self._prompt.format_messages(
            objective=state.objective,
            step=step,
            previous_steps=format_progress(state.past_steps),
        )

        if self._use_tools:
            ai_message = await self._llm_with_tools.ainvoke(messages)
            calls = parse_tool_calls(executor_call_adapter, getattr(ai_message, "tool_calls", None))
            output = self._format_calls(calls) or message_text(ai_message)
        else:
            ai_message = await self._llm.ainvoke(messages)
            output = message_text(ai_message)

        logger.info(f"Executed step: {step[:80]}")

        # Consuming the last step makes this output the candidate answer
        if len(state.plan) == 1:
            return self.step_update(state, output, draft_response=output)
        return self.step_update(state, output)

    def _format_calls(self, calls: list[ExecutorToolCall]) -> str:
        return "\n\n".join(self.call_handlers[type(call)](call) for call in calls)

    def _format_action(self, call: ExecuteActionCall) -> str:
        """Simulate an action. No side effects."""
        logger.info(f"Simulating action: {call.action}")
        return (
            f"Action Executed: {call.action}\n"
            f"Result: SUCCESS\n"
            f"Details: Executed {call.action} with parameters: {json.dumps(call.parameters, default=str)}\n"
            f"Reasoning: {call.reasoning}"
        )

    def _format_result(self, call: ProvideResultCall) -> str:
        status = "Successful" if call.success else "Failed"
        return f"Execution {status}: {call.result}\nDetails: {call.details}"

