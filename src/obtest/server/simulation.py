"""
Simulated backend steps used by the data handlers.

Every step sleeps for a fixed duration and returns a canned value. Durations
are in milliseconds and scaled by the server's delay multiplier.
"""

import asyncio


# Handler-level delays (ms)
DATA_DELAY_MS = 500
COMPLEX_QUERY_INITIAL_DELAY_MS = 300
COMPLEX_QUERY_PROCESSING_DELAY_MS = 300
CACHE_DELAY_MS = 100
EXTERNAL_DELAY_MS = 1000

# Query step delays (ms)
QUERY_DELAY_MS = 200
ANOTHER_QUERY_DELAY_MS = 200

DB_RESPONSE = "Fake DB response: {'id': 1, 'name': 'Test Item'}"
ANOTHER_DB_RESPONSE = "Another DB response: {'id': 2, 'name': 'Another Item'}"
CACHED_DATA = "Cached data: {'key': 'cached_value'}"


async def simulate_latency(delay_ms: int, multiplier: float = 1.0):
    """Suspend the calling task for delay_ms * multiplier milliseconds."""
    seconds = delay_ms * multiplier / 1000
    if seconds > 0:
        await asyncio.sleep(seconds)


async def query_database(multiplier: float = 1.0) -> str:
    await simulate_latency(QUERY_DELAY_MS, multiplier)
    return DB_RESPONSE


async def another_database_query(multiplier: float = 1.0) -> str:
    await simulate_latency(ANOTHER_QUERY_DELAY_MS, multiplier)
    return ANOTHER_DB_RESPONSE


async def read_cache(multiplier: float = 1.0) -> str:
    """Always a hit. Nothing is stored."""
    await simulate_latency(CACHE_DELAY_MS, multiplier)
    return CACHED_DATA
