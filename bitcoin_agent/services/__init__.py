"""
Services Module
===============

The workflow driver that runs the agents, plus the run/trace entry points.
"""

from bitcoin_agent.services.orchestrator import (
    WorkflowDriver,
    WorkflowStepLimitError,
    get_execution_trace,
    get_workflow_driver,
    run_workflow,
)

__all__ = [
    "WorkflowDriver",
    "WorkflowStepLimitError",
    "get_execution_trace",
    "get_workflow_driver",
    "run_workflow",
]
