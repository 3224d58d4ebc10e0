"""
Researcher Agent
================

Gathers information for one plan step from three sources:

1. Structured database  (query_sql)     - numerical and financial metrics
2. Vector knowledge base (query_vector) - embedded Bitcoin knowledge
3. Web search           (search_web)    - up-to-date information

FLOW:
    ┌──────────────┐    ┌──────────────┐    ┌──────────────────┐
    │ Probe schema │ ─► │ LLM picks    │ ─► │ Run each call,   │
    │ (DB usable?) │    │ tool calls   │    │ one source error │
    └──────────────┘    └──────────────┘    │ never stops the  │
                                            │ others           │
                                            └────────┬─────────┘
                                                     ▼
                                         ┌──────────────────────┐
                                         │ final_answer? return │
                                         │ else build summary   │
                                         └──────────────────────┘

query_sql is only offered when the schema probe succeeds, and a call to it
is ignored when the database is unavailable, even if the model asks.
When the model makes no usable tool call, the step falls back to a plain
web search of the step text.
"""

import asyncio
import json
import logging
from typing import Any, Optional

from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel

from bitcoin_agent.agents.base_agent import WorkerAgent
from bitcoin_agent.schemas.models import AgentType
from bitcoin_agent.schemas.state import StateUpdate, WorkflowState, format_progress
from bitcoin_agent.schemas.tool_calls import (
    FinalAnswerArgs,
    FinalAnswerCall,
    QuerySqlArgs,
    QuerySqlCall,
    QueryVectorArgs,
    QueryVectorCall,
    SearchWebArgs,
    SearchWebCall,
    parse_tool_calls,
    research_call_adapter,
    tool_schema,
)
from bitcoin_agent.tools.sql_source import SQLiteDataSource
from bitcoin_agent.tools.vector_source import VectorSearchSource
from bitcoin_agent.tools.web_search import WebSearchSource

logger = logging.getLogger(__name__)


RESEARCHER_PROMPT = """You are a researcher agent with access to multiple data sources:
1. A structured database with tables containing numerical and financial data
2. A vector database containing embedded knowledge and insights
3. Web search

Your task is to find information to answer a specific question or complete a research step.
Your goal is to gather as much relevant information as possible from ALL available sources.

USER QUERY: {objective}

CURRENT DATABASE SCHEMA:
{schema_info}

CONTEXT AND PREVIOUS STEPS:
{previous_steps}

RESEARCH QUESTION:
{question}

APPROACH:
1. If database schema is available and shows accessible tables, use SQL queries to retrieve relevant structured data.
2. ALWAYS search the vector database for relevant knowledge and insights, even if you used SQL or will use web search.
3. ALWAYS search the web to get the most up-to-date information available.
4. Combine information from all sources to provide the most comprehensive answer possible.

IMPORTANT RULES:
- Do NOT use SQL queries if the database schema shows the database is not accessible.
- ALWAYS use the vector database search regardless of other sources.
- ALWAYS use web search to supplement information from other sources.
- Use all available sources to gather as much information as possible.

Think step by step about how to gather comprehensive information from all available sources."""

NO_CALLS_REASONING = "No tool calls detected, falling back to web search"
NO_RESULTS_TEXT = (
    "Research completed but no structured data was returned. "
    "Please try a different query or approach."
)

# Summary sections, in the order they are written
SECTIONS = (
    ("query_sql", "DATABASE", "Query failed"),
    ("query_vector", "VECTOR DB", "Search failed"),
    ("search_web", "WEB SEARCH", "Search failed"),
)


class SourceResult(BaseModel):
    """Outcome of one information source call."""
    success: bool
    data: Any = None
    error: Optional[str] = None
    reasoning: str = ""


class ResearcherAgent(WorkerAgent):
    """
    Researches one plan step across the database, vector store and web.

    Sources are injectable so tests can run without any backend.
    """

    fallback_step = "Provide general information about the query."

    def __init__(
        self,
        sql_source: Optional[Any] = None,
        vector_source: Optional[Any] = None,
        web_source: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self._sql_source = sql_source or SQLiteDataSource()
        self._vector_source = vector_source or VectorSearchSource()
        self._web_source = web_source or WebSearchSource()
        self._prompt = ChatPromptTemplate.from_template(RESEARCHER_PROMPT)

        self._source_handlers = {
            "query_sql": self._sql_source.execute_query,
            "query_vector": self._vector_source.search,
            "search_web": self._web_source.search,
        }

    @property
    def agent_type(self) -> AgentType:
        return AgentType.RESEARCHER

    def _tools(self, db_accessible: bool) -> list[dict]:
        tools = [
            tool_schema("query_vector", QueryVectorArgs),
            tool_schema("search_web", SearchWebArgs),
            tool_schema("final_answer", FinalAnswerArgs),
        ]
        if db_accessible:
            tools.insert(0, tool_schema("query_sql", QuerySqlArgs))
        return tools

    async def plan_calls(
        self,
        step: str,
        db_accessible: bool,
        schema_info: str,
        objective: str,
        previous_steps: str,
    ) -> list:
        """Ask the model which sources to query for this step."""
        llm = self._llm.bind_tools(self._tools(db_accessible), tool_choice="auto")
        messages = self._prompt.format_messages(
            objective=objective,
            schema_info=schema_info,
            previous_steps=previous_steps,
            question=step,
        )
        ai_message = await llm.ainvoke(messages)

        calls = parse_tool_calls(research_call_adapter, getattr(ai_message, "tool_calls", None))
        if not calls:
            logger.info("Researcher made no tool calls, falling back to web search")
            calls = [SearchWebCall(query=step, reasoning=NO_CALLS_REASONING)]
        return calls

    async def _run_source(self, kind: str, query: str, reasoning: str) -> SourceResult:
        """Call one source with a timeout. Errors become a failed result."""
        handler = self._source_handlers[kind]
        try:
            data = await asyncio.wait_for(
                handler(query),
                timeout=self._settings.source_timeout_seconds,
            )
            return SourceResult(success=True, data=data, reasoning=reasoning)

        except asyncio.TimeoutError:
            logger.warning(f"{kind} timed out after {self._settings.source_timeout_seconds}s")
            return SourceResult(success=False, error="Request timed out", reasoning=reasoning)

        except Exception as e:
            logger.warning(f"{kind} failed: {type(e).__name__}: {e}")
            return SourceResult(success=False, error=str(e) or type(e).__name__, reasoning=reasoning)

    async def execute(self, state: WorkflowState) -> StateUpdate:
        """Research the current plan step."""
        step = self.step_for(state)
        result = await self.research(step, state.objective, format_progress(state.past_steps))
        return self.step_update(state, result)

    async def research(self, step: str, objective: str, previous_steps: str) -> str:
        """
        Gather information for a single step and return the result text.

        Args:
            step: The plan step being researched
            objective: The user's question
            previous_steps: Rendered results of the steps already run

        Raises:
            Exception: Only for failures outside the individual sources
        """
        probe = await self._sql_source.describe_schema()
        calls = await self.plan_calls(
            step, probe.accessible, probe.description, objective, previous_steps
        )

        results: dict[str, SourceResult] = {}
        for call in calls:
            if isinstance(call, FinalAnswerCall):
                return f"Final Answer: {call.answer}\nSources: {call.sources}"

            if isinstance(call, QuerySqlCall) and not probe.accessible:
                logger.info("Skipping query_sql: structured database is not accessible")
                continue

            if isinstance(call, (QuerySqlCall, QueryVectorCall, SearchWebCall)):
                results[call.kind] = await self._run_source(call.kind, call.query, call.reasoning)

        if not results:
            return NO_RESULTS_TEXT

        return format_research(step, results)


def format_research(step: str, results: dict[str, SourceResult]) -> str:
    """Render source results as the step's research summary."""
    text = f"Research Results for: {step}\n\n"
    for kind, title, failure in SECTIONS:
        result = results.get(kind)
        if result is None:
            continue
        if result.success:
            body = json.dumps(result.data, default=str)
        else:
            body = f"{failure}: {result.error}"
        text += f"{title}: {body}\n\n"
    return text
