"""
Tests for application startup.
"""

import logging

import pytest
from fastapi.testclient import TestClient

import bitcoin_agent.main as main_module
from bitcoin_agent.main import HANDLER_NAME, app, setup_logging


class ReadyStore:
    is_ready = True
    document_count = 12


class EmptyStore:
    is_ready = False
    document_count = 0


class TestStartup:
    """Lifespan warms the knowledge index."""

    def test_ready_index(self, monkeypatch, caplog):
        monkeypatch.setattr(main_module, "get_knowledge_store", lambda: ReadyStore())
        caplog.set_level(logging.INFO, logger="bitcoin_agent.main")

        with TestClient(app):
            assert app.state.knowledge_store_ready is True

        assert "Knowledge index loaded: 12 chunks" in caplog.text
        assert "Workflow limits: 3-step plans" in caplog.text

    def test_empty_index(self, monkeypatch):
        monkeypatch.setattr(main_module, "get_knowledge_store", lambda: EmptyStore())

        with TestClient(app):
            assert app.state.knowledge_store_ready is False

    def test_broken_index_does_not_block_startup(self, monkeypatch):
        def broken():
            raise RuntimeError("embedding model download failed")

        monkeypatch.setattr(main_module, "get_knowledge_store", broken)

        with TestClient(app) as client:
            assert app.state.knowledge_store_ready is False
            assert client.get("/", follow_redirects=False).status_code == 307

    @pytest.mark.asyncio
    async def test_warm_returns_readiness(self, monkeypatch):
        monkeypatch.setattr(main_module, "get_knowledge_store", lambda: ReadyStore())

        assert await main_module.warm_knowledge_store() is True


class TestSetupLogging:

    def test_single_handler(self, test_settings):
        setup_logging(test_settings)
        setup_logging(test_settings)

        handlers = [h for h in logging.getLogger().handlers if h.get_name() == HANDLER_NAME]
        assert len(handlers) == 1
        assert logging.getLogger("httpx").level == logging.WARNING
