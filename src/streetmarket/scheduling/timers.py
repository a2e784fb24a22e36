"""Cooperative timer queue.

Everything time-based in the marketplace (deferred order processing, the
recurring proximity scan) is a timer on one ``TimerQueue``. The queue never
runs anything on its own: the owner calls ``run_due(now)`` from its event
loop, and due callbacks run one at a time, to completion, in deadline order.
A failing callback is logged and the queue carries on.
"""

import heapq
import itertools
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from uuid import uuid4

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class _Timer:
    timer_id: str
    deadline: datetime
    callback: object
    args: tuple = ()
    interval: timedelta | None = None
    name: str | None = None
    seq: int = field(default=0)


class TimerQueue:
    def __init__(self, clock):
        self.clock = clock
        self._heap: list[tuple[datetime, int, str]] = []
        self._timers: dict[str, _Timer] = {}
        self._counter = itertools.count()

    def __len__(self):
        return len(self._timers)

    # -------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------
    def call_at(self, when: datetime, callback, *args, name: str | None = None) -> str:
        """Run ``callback(*args)`` once ``when`` has been reached."""
        timer = _Timer(timer_id=uuid4().hex, deadline=when, callback=callback, args=args, name=name)
        self._push(timer)
        return timer.timer_id

    def call_later(self, delay_seconds: float, callback, *args, name: str | None = None) -> str:
        when = self.clock.now() + timedelta(seconds=max(0.0, delay_seconds))
        return self.call_at(when, callback, *args, name=name)

    def call_every(
        self,
        interval_seconds: float,
        callback,
        *args,
        first_in: float = 0.0,
        name: str | None = None,
    ) -> str:
        """Run ``callback`` every ``interval_seconds``, the first time after ``first_in``."""
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        timer = _Timer(
            timer_id=uuid4().hex,
            deadline=self.clock.now() + timedelta(seconds=max(0.0, first_in)),
            callback=callback,
            args=args,
            interval=timedelta(seconds=interval_seconds),
            name=name,
        )
        self._push(timer)
        return timer.timer_id

    def cancel(self, timer_id: str | None) -> bool:
        """Forget a timer. Returns False when it was not scheduled."""
        if timer_id is None:
            return False
        # Heap entries of cancelled timers are discarded lazily in run_due
        return self._timers.pop(timer_id, None) is not None

    def cancel_all(self):
        self._timers.clear()
        self._heap.clear()

    def is_scheduled(self, timer_id: str | None) -> bool:
        return timer_id in self._timers

    def next_deadline(self) -> datetime | None:
        self._discard_stale()
        return self._heap[0][0] if self._heap else None

    # -------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------
    def run_due(self, now: datetime | None = None) -> int:
        """Run every timer whose deadline is at or before ``now``.

        Returns the number of callbacks that ran.
        """
        now = now or self.clock.now()
        ran = 0

        while True:
            self._discard_stale()
            if not self._heap or self._heap[0][0] > now:
                break

            _, _, timer_id = heapq.heappop(self._heap)
            timer = self._timers[timer_id]
            if timer.interval is None:
                del self._timers[timer_id]

            try:
                timer.callback(*timer.args)
            except Exception as exc:
                logger.exception("Timer callback failed", timer=timer.name or timer_id, error=str(exc))
            ran += 1

            # The callback may have cancelled its own repeating timer
            if timer.interval is not None and timer_id in self._timers:
                next_deadline = timer.deadline + timer.interval
                if next_deadline <= now:
                    next_deadline = now + timer.interval
                timer.deadline = next_deadline
                self._push(timer)

        return ran

    def _push(self, timer: _Timer):
        timer.seq = next(self._counter)
        self._timers[timer.timer_id] = timer
        heapq.heappush(self._heap, (timer.deadline, timer.seq, timer.timer_id))

    def _discard_stale(self):
        while self._heap:
            _, seq, timer_id = self._heap[0]
            timer = self._timers.get(timer_id)
            if timer is not None and timer.seq == seq:
                return
            heapq.heappop(self._heap)
