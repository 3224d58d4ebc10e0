"""
Agents Module
=============

The agents of the plan-supervise-work workflow.

ARCHITECTURE:
                    ┌──────────────┐
                    │ User Question│
                    └──────┬───────┘
                           │
                    ┌──────▼───────┐
                    │   Planner    │ ◄─── 3-step plan
                    └──────┬───────┘
                           │
                    ┌──────▼───────┐
          ┌────────►│  Supervisor  │◄────────┐ ◄─── routes, enforces limits
          │         └──────┬───────┘         │
          │                │                 │
    ┌─────┴───────┐ ┌──────▼──────┐ ┌────────┴────┐
    │ Researcher  │ │  Executor   │ │  Replanner  │
    │ SQL/vec/web │ │ one step    │ │ plan/answer │
    └─────────────┘ └─────────────┘ └─────────────┘
                           │
                    ┌──────▼───────┐
                    │   Response   │ ◄─── written by the supervisor on FINISH
                    └──────────────┘
"""

from bitcoin_agent.agents.base_agent import BaseAgent, WorkerAgent, create_llm
from bitcoin_agent.agents.planner_agent import PlannerAgent
from bitcoin_agent.agents.supervisor_agent import SupervisorAgent
from bitcoin_agent.agents.researcher_agent import ResearcherAgent
from bitcoin_agent.agents.executor_agent import ExecutorAgent
from bitcoin_agent.agents.replanner_agent import ReplannerAgent

__all__ = [
    "BaseAgent",
    "WorkerAgent",
    "create_llm",
    "PlannerAgent",
    "SupervisorAgent",
    "ResearcherAgent",
    "ExecutorAgent",
    "ReplannerAgent",
]
