"""
Tool Calls
==========

Structured function calls the language model can emit, parsed into closed
tagged unions as soon as they leave the model.

WHY TAGGED UNIONS?
- Agents dispatch on the model class, never on raw tool-name strings
- Arguments are validated once, at the boundary
- A malformed call becomes ``None`` here instead of a KeyError deep
  inside an agent

Each tool has an ``*Args`` model (the JSON schema shown to the model) and a
``*Call`` model (the same arguments plus the ``kind`` discriminator).
"""

import json
import logging
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)


# =============================================================================
# Researcher tools
# =============================================================================

class QuerySqlArgs(BaseModel):
    """Query structured Bitcoin metrics from the SQL database."""
    query: str = Field(description="SQL query to execute on the database")
    reasoning: str = Field(
        default="",
        description="Reasoning for why this query will retrieve the needed information"
    )


class QueryVectorArgs(BaseModel):
    """Search embedded Bitcoin knowledge using semantic search."""
    query: str = Field(
        description="Natural language query to execute against the vector database"
    )
    reasoning: str = Field(
        default="",
        description="Reasoning for why this vector search will retrieve the needed information"
    )


class SearchWebArgs(BaseModel):
    """Search the web for information not available in the database."""
    query: str = Field(description="Web search query to find information")
    reasoning: str = Field(
        default="",
        description="Reasoning for why web search is needed"
    )


class FinalAnswerArgs(BaseModel):
    """Provide the final answer to the research question."""
    answer: str = Field(description="Final answer to the research question")
    sources: str = Field(
        default="",
        description="Sources used to compile the answer"
    )


class QuerySqlCall(QuerySqlArgs):
    kind: Literal["query_sql"] = "query_sql"


class QueryVectorCall(QueryVectorArgs):
    kind: Literal["query_vector"] = "query_vector"


class SearchWebCall(SearchWebArgs):
    kind: Literal["search_web"] = "search_web"


class FinalAnswerCall(FinalAnswerArgs):
    kind: Literal["final_answer"] = "final_answer"


ResearchToolCall = Annotated[
    Union[QuerySqlCall, QueryVectorCall, SearchWebCall, FinalAnswerCall],
    Field(discriminator="kind"),
]


# =============================================================================
# Executor tools
# =============================================================================

class ExecuteActionArgs(BaseModel):
    """Execute a specific action with the given parameters."""
    action: str = Field(description="The action that should be executed")
    parameters: dict[str, Any] = Field(
        default_factory=dict,
        description="Parameters required for the action"
    )
    reasoning: str = Field(
        default="",
        description="Reasoning for why this action should be taken"
    )


class ProvideResultArgs(BaseModel):
    """Provide the result of the execution."""
    result: str = Field(description="The result of executing the step")
    success: bool = Field(
        default=True,
        description="Whether the execution was successful"
    )
    details: str = Field(
        default="",
        description="Additional details about the execution"
    )


class ExecuteActionCall(ExecuteActionArgs):
    kind: Literal["execute_action"] = "execute_action"


class ProvideResultCall(ProvideResultArgs):
    kind: Literal["provide_result"] = "provide_result"


ExecutorToolCall = Annotated[
    Union[ExecuteActionCall, ProvideResultCall],
    Field(discriminator="kind"),
]


# =============================================================================
# Supervisor and replanner tools
# =============================================================================

class RouteArgs(BaseModel):
    """Select the next agent to work on the task."""
    next: Literal["researcher", "executor", "replan", "FINISH"] = Field(
        description="The next agent to use, or FINISH if done"
    )
    reasoning: str = Field(
        default="No reasoning provided",
        description="Explanation for why this agent should handle the task next"
    )


class PlanArgs(BaseModel):
    """Plan the steps to follow."""
    steps: list[str] = Field(
        description="Different steps to follow, in sorted order"
    )


class ResponseArgs(BaseModel):
    """Respond to the user."""
    response: str = Field(min_length=1, description="Response to user.")

    class Config:
        # A blank answer is a malformed call, not a final response
        str_strip_whitespace = True


class RouteCall(RouteArgs):
    kind: Literal["route"] = "route"


class PlanCall(PlanArgs):
    kind: Literal["plan"] = "plan"


class ResponseCall(ResponseArgs):
    kind: Literal["response"] = "response"


ReplanToolCall = Annotated[
    Union[PlanCall, ResponseCall],
    Field(discriminator="kind"),
]


# =============================================================================
# Boundary helpers
# =============================================================================

research_call_adapter = TypeAdapter(ResearchToolCall)
executor_call_adapter = TypeAdapter(ExecutorToolCall)
route_call_adapter = TypeAdapter(RouteCall)
replan_call_adapter = TypeAdapter(ReplanToolCall)


def tool_schema(name: str, args_model: type[BaseModel]) -> dict:
    """
    Build an OpenAI-format function tool from an args model.

    The model's docstring becomes the tool description.
    """
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": (args_model.__doc__ or name).strip(),
            "parameters": args_model.model_json_schema(),
        },
    }


def _name_and_args(raw: dict) -> tuple[Optional[str], dict]:
    """Extract name and arguments from a LangChain or raw OpenAI tool call."""
    if "function" in raw and isinstance(raw["function"], dict):
        function = raw["function"]
        arguments = function.get("arguments") or "{}"
        if isinstance(arguments, str):
            arguments = json.loads(arguments)
        return function.get("name"), arguments
    return raw.get("name"), raw.get("args") or {}


def parse_tool_call(adapter: TypeAdapter, raw: dict) -> Optional[Any]:
    """
    Validate one model tool call against a tagged union.

    Args:
        adapter: TypeAdapter of the allowed union
        raw: Tool call dict as found on ``AIMessage.tool_calls``

    Returns:
        The parsed call model, or None if the call is unknown or malformed
    """
    try:
        name, args = _name_and_args(raw)
        return adapter.validate_python({**args, "kind": name})
    except (ValidationError, ValueError, TypeError) as e:
        logger.warning(f"Ignoring malformed tool call {raw!r}: {e}")
        return None


def parse_tool_calls(adapter: TypeAdapter, raw_calls: Optional[list]) -> list:
    """Parse every tool call on a message, dropping the malformed ones."""
    parsed = []
    for raw in raw_calls or []:
        call = parse_tool_call(adapter, raw)
        if call is not None:
            parsed.append(call)
    return parsed
