"""
Pytest configuration and shared fixtures.

Agents are tested against a scripted chat model and in-memory information
sources, so no API key or network access is needed.
"""

import asyncio
from typing import Any, Callable, Optional

import pytest
from langchain_core.messages import AIMessage

from bitcoin_agent.config import Settings
from bitcoin_agent.schemas.state import WorkflowState
from bitcoin_agent.tools.sql_source import NO_TABLES, SchemaProbe


OBJECTIVE = "What is Bitcoin's current price trend?"

SAMPLE_SCHEMA = """TABLE: daily_prices
COLUMNS:
  - day (TEXT, not null)
  - close_usd (REAL, nullable)
"""


# =============================================================================
# Scripted chat model
# =============================================================================

class FakeChatModel:
    """
    Stand-in for a LangChain chat model.

    Each ainvoke() returns the next scripted response. A scripted
    Exception is raised, a callable is called with the messages, and
    ``default`` is returned once the script runs out.
    """

    def __init__(self, responses: Optional[list] = None, default: Any = None):
        self.responses = list(responses or [])
        self.default = default
        self.calls: list[list] = []
        self.bound_tools: list[tuple[list[str], dict]] = []
        self.structured_schema = None

    def bind_tools(self, tools: list[dict], **kwargs) -> "FakeChatModel":
        self.bound_tools.append(([tool["function"]["name"] for tool in tools], kwargs))
        return self

    def with_structured_output(self, schema, **kwargs) -> "FakeChatModel":
        self.structured_schema = schema
        return self

    async def ainvoke(self, messages, **kwargs):
        self.calls.append(messages)
        if self.responses:
            response = self.responses.pop(0)
        elif self.default is not None:
            response = self.default
        else:
            raise AssertionError("FakeChatModel ran out of scripted responses")

        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(messages)
        return response


def tool_call(name: str, **args) -> dict:
    """A tool call as found on ``AIMessage.tool_calls``."""
    return {"name": name, "args": args, "id": f"call_{name}", "type": "tool_call"}


def ai_tool_calls(*calls: dict) -> AIMessage:
    return AIMessage(content="", tool_calls=list(calls))


def route(next_agent: str, reasoning: str = "Scripted decision") -> AIMessage:
    """A supervisor reply choosing ``next_agent``."""
    return ai_tool_calls(tool_call("route", next=next_agent, reasoning=reasoning))


def ai_text(text: str) -> AIMessage:
    return AIMessage(content=text)


# =============================================================================
# In-memory information sources
# =============================================================================

class FakeSQLSource:
    """Structured source with a fixed schema probe."""

    def __init__(
        self,
        accessible: bool = True,
        description: str = SAMPLE_SCHEMA,
        rows: Optional[list[dict]] = None,
        error: Optional[Exception] = None,
    ):
        self.probe = SchemaProbe(accessible=accessible, description=description)
        self.rows = rows if rows is not None else [{"day": "2024-06-01", "close_usd": 67500.0}]
        self.error = error
        self.queries: list[str] = []

    async def describe_schema(self) -> SchemaProbe:
        return self.probe

    async def execute_query(self, query: str) -> list[dict]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.rows


class FakeSearchSource:
    """Vector or web source returning fixed results."""

    def __init__(
        self,
        results: Any = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.results = results if results is not None else [{"content": "BTC is trending up"}]
        self.error = error
        self.delay = delay
        self.queries: list[str] = []

    async def search(self, query: str) -> Any:
        self.queries.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.results


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        source_timeout_seconds=1.0,
        faiss_index_path=tmp_path / "faiss_index",
        structured_db_url=f"sqlite:///{tmp_path / 'metrics.db'}",
    )


@pytest.fixture
def make_state() -> Callable[..., WorkflowState]:
    """Build a WorkflowState for the standard question."""
    def _make(**fields) -> WorkflowState:
        fields.setdefault("objective", OBJECTIVE)
        return WorkflowState(**fields)
    return _make


@pytest.fixture
def sql_source() -> FakeSQLSource:
    return FakeSQLSource()


@pytest.fixture
def closed_sql_source() -> FakeSQLSource:
    """A database whose schema probe found no tables."""
    return FakeSQLSource(accessible=False, description=NO_TABLES)


@pytest.fixture
def vector_source() -> FakeSearchSource:
    return FakeSearchSource(results=[{"content": "Halvings cut issuance", "similarity": 0.82}])


@pytest.fixture
def web_source() -> FakeSearchSource:
    return FakeSearchSource(results=[{"url": "https://example.com/btc", "content": "BTC up 4% this week"}])
