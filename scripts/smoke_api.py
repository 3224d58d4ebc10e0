"""
API Smoke Script
================

Exercises the Bitcoin agent API endpoints against a running server.

Run the API server first:
    uvicorn bitcoin_agent.main:app --reload

Then run this script:
    python scripts/smoke_api.py
"""

import asyncio
import json

import httpx

BASE_URL = "http://localhost:8000/api"

SAMPLE_KNOWLEDGE = [
    "The Bitcoin block subsidy halves every 210,000 blocks, roughly every four years. "
    "The fourth halving, in April 2024, reduced the subsidy from 6.25 to 3.125 BTC.",
    "Bitcoin's supply is capped at 21 million coins. Hashrate measures the total "
    "computational power securing the network and tends to follow price over long periods.",
]


async def check_health():
    """Check the health endpoint."""
    print("\n" + "=" * 50)
    print("Health Endpoint")
    print("=" * 50)

    async with httpx.AsyncClient() as client:
        response = await client.get(f"{BASE_URL}/health")
        print(f"Status: {response.status_code}")
        print(f"Response: {json.dumps(response.json(), indent=2)}")
        return response.json()


async def ingest_knowledge():
    """Index a few knowledge texts for vector search."""
    print("\n" + "=" * 50)
    print("Knowledge Ingestion")
    print("=" * 50)

    async with httpx.AsyncClient(timeout=120.0) as client:
        response = await client.post(
            f"{BASE_URL}/knowledge/text",
            json={"texts": SAMPLE_KNOWLEDGE, "source": "smoke_script"}
        )
        print(f"Status: {response.status_code}")
        print(f"Response: {json.dumps(response.json(), indent=2)}")
        return response.json()


async def run_question(question: str):
    """Run a workflow and print its trace."""
    print("\n" + "=" * 50)
    print(f"Workflow: {question}")
    print("=" * 50)

    async with httpx.AsyncClient(timeout=300.0) as client:
        response = await client.post(f"{BASE_URL}/ai/workflow", json={"input": question})
        print(f"Status: {response.status_code}")

        if response.status_code != 200:
            print(f"Error: {response.text}")
            return None

        result = response.json()
        trace = await client.post(f"{BASE_URL}/ai/trace", json={"state": result})
        print(f"\n{trace.json()['trace']}")

        if result.get("error"):
            print(f"Workflow error: {result['error']}")
        return result


async def check_validation():
    """A blank question must be rejected with 400."""
    print("\n" + "=" * 50)
    print("Input Validation")
    print("=" * 50)

    async with httpx.AsyncClient() as client:
        response = await client.post(f"{BASE_URL}/ai/workflow", json={"input": "  "})
        print(f"Status: {response.status_code} (expected 400)")
        print(f"Response: {response.text}")


async def run_all():
    """Run every smoke check."""
    print("\n" + "#" * 60)
    print("# Bitcoin Agent Workflow Service - Smoke Checks")
    print("#" * 60)

    health = await check_health()
    if health["status"] != "healthy":
        print("ERROR: API is not healthy!")
        return

    if not health["vector_store_ready"]:
        await ingest_knowledge()

    await check_validation()

    questions = [
        "What is Bitcoin's current price trend?",
        "When is the next Bitcoin halving and what does it change?",
    ]
    for question in questions:
        await run_question(question)

    print("\n" + "#" * 60)
    print("# Smoke Checks Complete!")
    print("#" * 60)


if __name__ == "__main__":
    print("Starting smoke checks...")
    print("Make sure the API server is running at http://localhost:8000")
    asyncio.run(run_all())
