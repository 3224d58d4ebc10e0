"""
Tools Module
============

Information sources the researcher can query:

- SQLiteDataSource: structured Bitcoin metrics (read-only SQL)
- VectorSearchSource: semantic search over embedded knowledge
- WebSearchSource: Tavily web search
"""

from bitcoin_agent.tools.sql_source import SQLiteDataSource, SchemaProbe
from bitcoin_agent.tools.vector_source import VectorSearchSource
from bitcoin_agent.tools.web_search import WebSearchSource, create_tavily_tool

__all__ = [
    "SQLiteDataSource",
    "SchemaProbe",
    "VectorSearchSource",
    "WebSearchSource",
    "create_tavily_tool",
]
