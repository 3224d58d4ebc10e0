"""
Tests for the web search source.
"""

import pytest

from bitcoin_agent.tools.web_search import WebSearchSource, create_tavily_tool


class FakeTool:
    def __init__(self, results):
        self.results = results
        self.queries = []

    async def ainvoke(self, query):
        self.queries.append(query)
        return self.results


class TestWebSearchSource:

    @pytest.mark.asyncio
    async def test_returns_tool_results(self):
        results = [{"url": "https://example.com/btc", "content": "BTC up 4% this week"}]
        tool = FakeTool(results)

        assert await WebSearchSource(tool=tool).search("bitcoin price") == results
        assert tool.queries == ["bitcoin price"]

    def test_tavily_tool_configuration(self):
        tool = create_tavily_tool(max_results=3, api_key="tvly-test")

        assert tool.max_results == 3
