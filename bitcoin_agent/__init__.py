"""
Bitcoin Agent Workflow Service
==============================

Answers natural-language questions about Bitcoin by running a small
multi-agent plan -> supervise -> research/execute -> respond workflow.

Architecture:
- Planner Agent: Turns the question into a short plan
- Supervisor Agent: Routes between workers, enforces call limits, writes the answer
- Researcher Agent: Queries the SQL database, vector store and web for one step
- Executor Agent: Performs one step, drafts the answer on the last one
- Replanner Agent: Revises the remaining plan or answers directly
"""

__version__ = "1.0.0"
__author__ = "AI Engineer"
