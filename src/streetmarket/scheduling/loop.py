"""Drive a Marketplace's timer queue from an asyncio event loop."""

import asyncio

import structlog

logger = structlog.get_logger(__name__)

MAX_SLEEP_SECONDS = 1.0


async def run_timer_loop(marketplace, max_sleep: float = MAX_SLEEP_SECONDS):
    """Run due timers, then sleep until the next deadline (at most ``max_sleep``).

    Runs on the same loop as the HTTP handlers, so timer callbacks never
    interleave with a request half-way through a change.
    """
    logger.info("Timer loop started")
    try:
        while True:
            with marketplace.domain.domain_context():
                marketplace.tick()
                deadline = marketplace.timers.next_deadline()

            delay = max_sleep
            if deadline is not None:
                delay = min(max_sleep, max(0.0, (deadline - marketplace.clock.now()).total_seconds()))
            await asyncio.sleep(delay)
    except asyncio.CancelledError:
        logger.info("Timer loop stopped")
        raise
