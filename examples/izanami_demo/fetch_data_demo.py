#!/usr/bin/env python3
# %% [markdown]
# # Izanami — Flaky API Demo
#
# A simulated API request that fails most of the time, run under
# ``IzanamiRunner``.  Depending on luck the run ends in success, in
# reflection (three errors) or in failure (attempts exhausted).
#
# Options come from ``IZANAMI_*`` variables in the project's ``.env``:
#
#     IZANAMI_MAX_ATTEMPTS=5
#     IZANAMI_ERROR_THRESHOLD=3
#     IZANAMI_INITIAL_DELAY=1000
#     IZANAMI_LOG_FILE=logs/error.log

# %% [markdown]
# ## Setup & Imports

# %%
import logging
import random
from pathlib import Path

# Jupyter already runs an asyncio event loop.  run_task() calls
# asyncio.run() internally, which would fail.  nest_asyncio patches the
# loop to allow nested calls.
import nest_asyncio

nest_asyncio.apply()

from dotenv import load_dotenv

_root = Path(__file__).resolve().parents[2] if "__file__" in dir() else Path.cwd()
load_dotenv(_root / ".env")

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

from izanami import IzanamiRunner, RunConfiguration, RunEvent, unique_messages

# %% [markdown]
# ## The task and a custom reflection strategy

# %%


async def fetch_data() -> str:
    """Randomly succeed or fail with one of three error types."""
    roll = random.random()
    if roll < 0.3:
        raise ConnectionError("Network error: Connection timeout")
    if roll < 0.6:
        raise RuntimeError("API error: Rate limit exceeded")
    if roll < 0.9:
        raise ValueError("Parameter error: Invalid query parameter")
    return "API data"


async def review_api_configuration(errors) -> None:
    print("Custom Reflection Phase:")
    for index, message in enumerate(unique_messages(errors), start=1):
        print(f"  {index}. {message}")
    print("Please review your API configuration and try again.")


# %% [markdown]
# ## Wire up listeners and run

# %%
config = RunConfiguration.from_env(
    fetch_data,
    backoff_factor=2,
    reflection_strategy=review_api_configuration,
)
runner = IzanamiRunner(config)

runner.on(RunEvent.BEFORE_ATTEMPT, lambda n: print(f"--- Before Attempt {n} ---"))
runner.on(RunEvent.SUCCESS, lambda n: print(f"Task succeeded on attempt {n}."))
runner.on(
    RunEvent.ERROR,
    lambda e: print(f"Handled error on attempt {e.attempt}: {e.error}"),
)
runner.on(RunEvent.REFLECTION, lambda errors: print("Reflection phase completed."))
runner.on(RunEvent.REFLECTION_EXIT, lambda: print("Ready to retry after reflection."))
runner.on(
    RunEvent.FAILURE,
    lambda errors: print("Task failed after maximum attempts:", [str(e) for e in errors]),
)

result = runner.run_task()
print(f"Outcome: {result.outcome.value} after {result.attempts} attempt(s)")
if result.succeeded:
    print(f"Value: {result.value!r}")
