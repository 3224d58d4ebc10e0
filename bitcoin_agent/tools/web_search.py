"""
Web Search Source
=================

Tavily web search for up-to-date Bitcoin information (prices, news,
network events). The Tavily client is created on first use so that the
service starts without a key; a missing key then surfaces as a web search
error in the research summary.
"""

import logging
from typing import Any, Optional

from langchain_community.tools.tavily_search import TavilySearchResults
from langchain_community.utilities.tavily_search import TavilySearchAPIWrapper

from bitcoin_agent.config import get_settings

logger = logging.getLogger(__name__)


def create_tavily_tool(
    max_results: Optional[int] = None,
    api_key: Optional[str] = None,
) -> TavilySearchResults:
    """
    Create the Tavily search tool with configuration from settings.

    Returns:
        Configured TavilySearchResults tool
    """
    settings = get_settings()
    api_key = api_key or settings.tavily_api_key
    wrapper_kwargs = {"tavily_api_key": api_key} if api_key else {}
    return TavilySearchResults(
        max_results=max_results or settings.web_search_max_results,
        api_wrapper=TavilySearchAPIWrapper(**wrapper_kwargs),
    )


class WebSearchSource:
    """Ranked web search results for the researcher."""

    def __init__(self, tool: Optional[Any] = None):
        """
        Args:
            tool: Any LangChain tool accepting a query string (Tavily by default)
        """
        self._tool = tool

    async def search(self, query: str) -> Any:
        """Search the web and return the ranked result list."""
        if self._tool is None:
            self._tool = create_tavily_tool()

        results = await self._tool.ainvoke(query)
        logger.info(f"Web search completed for: {query[:80]}")
        return results
