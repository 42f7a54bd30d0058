"""
State Poller

Architectural Intent:
- One polling primitive that turns an eventually-consistent remote lifecycle
  transition into a single awaitable result
- Reused for every resource kind; only the fetch function, the state
  vocabulary and the terminal value change between callers

Contract:
- state in the waiting set  -> sleep the fixed delay and poll again
- state equals the terminal -> return
- any other state           -> UnexpectedStateError at once, never retried
- fetch raises              -> propagate unchanged
- bounded budget used up    -> MaxRetriesExceededError, without a final sleep
- max_retries == 0 means no bound. Cancelling the awaiting task interrupts
  the sleep immediately.
"""

from __future__ import annotations
import asyncio
import logging
from typing import Awaitable, Callable, Collection, TypeVar

from surrogate.domain.errors import MaxRetriesExceededError, UnexpectedStateError
from surrogate.domain.value_objects.wait_policy import WaitPolicy

logger = logging.getLogger(__name__)

S = TypeVar("S")

StateFetcher = Callable[[str], Awaitable[S]]


async def wait_for_state(
    fetch_state: StateFetcher[S],
    resource_id: str,
    waiting_states: Collection[S],
    terminal_state: S,
    max_retries: int = 0,
    delay: float = 5.0,
) -> None:
    """Poll ``fetch_state(resource_id)`` until it reports ``terminal_state``."""
    attempt = 0
    while max_retries == 0 or attempt < max_retries:
        attempt += 1
        state = await fetch_state(resource_id)

        if state in waiting_states:
            if attempt == max_retries:
                break
            logger.debug(
                "Resource %s is %s (poll %d), waiting %.1fs for %s",
                resource_id,
                state,
                attempt,
                delay,
                terminal_state,
            )
            await asyncio.sleep(delay)
            continue

        if state == terminal_state:
            logger.info("Resource %s reached %s after %d poll(s)", resource_id, state, attempt)
            return

        raise UnexpectedStateError(resource_id, state, waiting_states, terminal_state)

    raise MaxRetriesExceededError(resource_id, max_retries, terminal_state)


async def wait_with_policy(
    fetch_state: StateFetcher[S],
    resource_id: str,
    waiting_states: Collection[S],
    terminal_state: S,
    policy: WaitPolicy,
) -> None:
    await wait_for_state(
        fetch_state,
        resource_id,
        waiting_states,
        terminal_state,
        max_retries=policy.max_retries,
        delay=policy.delay_seconds,
    )
