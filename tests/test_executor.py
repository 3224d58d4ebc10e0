"""
Tests for the executor agent.
"""

import pytest
from langchain_core.messages import AIMessage

from bitcoin_agent.agents.executor_agent import ExecutorAgent
from bitcoin_agent.schemas.models import Route

from conftest import FakeChatModel, ai_text, ai_tool_calls, tool_call


class TestMinimalExecutor:
    """Plain-completion executor."""

    @pytest.mark.asyncio
    async def test_records_result_and_consumes_step(self, make_state, test_settings):
        executor = ExecutorAgent(llm=FakeChatModel([ai_text("Average close: $66,900")]), settings=test_settings)

        update = await executor.safe_execute(make_state(plan=["Compute the average", "Summarize"]))

        assert update.past_steps == [("Compute the average", "Executor Result: Average close: $66,900")]
        assert update.plan == ["Summarize"]
        assert update.next == Route.SUPERVISOR
        assert update.messages[0].name == "Executor"

    @pytest.mark.asyncio
    async def test_last_step_sets_draft_response(self, make_state, test_settings):
        executor = ExecutorAgent(llm=FakeChatModel([ai_text("BTC is trending up.")]), settings=test_settings)

        update = await executor.safe_execute(make_state(plan=["Summarize the trend"]))

        assert update.draft_response == "BTC is trending up."
        assert update.plan == []
        # The terminal response is only ever written on FINISH
        assert "response" not in update.model_fields_set

    @pytest.mark.asyncio
    async def test_other_steps_leave_draft_alone(self, make_state, test_settings):
        executor = ExecutorAgent(llm=FakeChatModel([ai_text("partial")]), settings=test_settings)

        update = await executor.safe_execute(make_state(plan=["a", "b"]))

        assert "draft_response" not in update.model_fields_set

    @pytest.mark.asyncio
    async def test_prompt_includes_previous_steps(self, make_state, test_settings):
        llm = FakeChatModel([ai_text("ok")])
        executor = ExecutorAgent(llm=llm, settings=test_settings)

        await executor.safe_execute(make_state(
            plan=["Summarize"],
            past_steps=[("Collect prices", "Researcher Result: prices...")],
        ))

        prompt = llm.calls[0][0].content
        assert "CURRENT PLAN STEP: Summarize" in prompt
        assert "Step 1: Collect prices" in prompt

    @pytest.mark.asyncio
    async def test_content_blocks_are_joined(self, make_state, test_settings):
        reply = AIMessage(content=[{"type": "text", "text": "part one, "}, {"type": "text", "text": "part two"}])
        executor = ExecutorAgent(llm=FakeChatModel([reply]), settings=test_settings)

        update = await executor.safe_execute(make_state(plan=["a", "b"]))

        assert update.past_steps[0][1] == "Executor Result: part one, part two"

    @pytest.mark.asyncio
    async def test_error_becomes_step_error(self, make_state, test_settings):
        executor = ExecutorAgent(llm=FakeChatModel([TimeoutError("timed out")]), settings=test_settings)

        update = await executor.safe_execute(make_state(plan=["Summarize", "extra"]))

        assert update.past_steps == [("Summarize", "Executor Error: timed out")]
        assert update.plan == ["extra"]
        assert update.next == Route.SUPERVISOR

    @pytest.mark.asyncio
    async def test_empty_plan_uses_fallback_step(self, make_state, test_settings):
        executor = ExecutorAgent(llm=FakeChatModel([ai_text("nothing to do")]), settings=test_settings)

        update = await executor.safe_execute(make_state(plan=[]))

        assert update.past_steps[0][0] == "No specific execution step provided."
        assert "draft_response" not in update.model_fields_set


class TestToolExecutor:
    """Executor with execute_action / provide_result tools."""

    def test_tools_are_bound(self, test_settings):
        llm = FakeChatModel()
        ExecutorAgent(llm=llm, settings=test_settings, use_tools=True)

        assert llm.bound_tools[0][0] == ["execute_action", "provide_result"]

    def test_tools_follow_settings(self, test_settings):
        llm = FakeChatModel()
        settings = test_settings.model_copy(update={"executor_tools_enabled": True})

        ExecutorAgent(llm=llm, settings=settings)

        assert llm.bound_tools

    @pytest.mark.asyncio
    async def test_action_is_simulated(self, make_state, test_settings):
        llm = FakeChatModel([ai_tool_calls(tool_call(
            "execute_action",
            action="calculate_change",
            parameters={"from": 64000, "to": 67500},
            reasoning="Need the weekly change",
        ))])
        executor = ExecutorAgent(llm=llm, settings=test_settings, use_tools=True)

        update = await executor.safe_execute(make_state(plan=["Compute change", "Summarize"]))

        assert update.past_steps[0][1] == (
            "Executor Result: Action Executed: calculate_change\n"
            "Result: SUCCESS\n"
            'Details: Executed calculate_change with parameters: {"from": 64000, "to": 67500}\n'
            "Reasoning: Need the weekly change"
        )

    @pytest.mark.asyncio
    async def test_failed_result(self, make_state, test_settings):
        llm = FakeChatModel([ai_tool_calls(tool_call(
            "provide_result", result="No data", success=False, details="Empty table",
        ))])
        executor = ExecutorAgent(llm=llm, settings=test_settings, use_tools=True)

        update = await executor.safe_execute(make_state(plan=["Summarize"]))

        text = "Execution Failed: No data\nDetails: Empty table"
        assert update.past_steps[0][1] == f"Executor Result: {text}"
        assert update.draft_response == text

    @pytest.mark.asyncio
    async def test_plain_text_when_no_tool_call(self, make_state, test_settings):
        executor = ExecutorAgent(llm=FakeChatModel([ai_text("done")]), settings=test_settings, use_tools=True)

        update = await executor.safe_execute(make_state(plan=["a", "b"]))

        assert update.past_steps[0][1] == "Executor Result: done"
