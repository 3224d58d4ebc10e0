"""
API Module
==========

FastAPI routes and endpoint definitions.
"""

from bitcoin_agent.api.routes import router

__all__ = ["router"]
