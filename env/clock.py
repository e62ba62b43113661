# env/clock.py
"""
Single-threaded discrete-event clock.

Callbacks are scheduled at a simulated time and fired in order by
run_until(). Nothing here blocks.
"""
import heapq
import itertools


class TimerHandle:
    def __init__(self, when, fn, interval=None):
        self.when = when
        self.fn = fn
        self.interval = interval
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class Clock:
    def __init__(self, start=0.0):
        self.now = float(start)
        self._queue = []
        self._seq = itertools.count()

    def _push(self, handle):
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle))

    def schedule(self, delay, fn):
        handle = TimerHandle(self.now + max(0.0, delay), fn)
        self._push(handle)
        return handle

    def every(self, interval, fn):
        if interval <= 0:
            raise ValueError("interval must be positive")
        handle = TimerHandle(self.now + interval, fn, interval=interval)
        self._push(handle)
        return handle

    def pending(self):
        return sum(1 for _, _, h in self._queue if not h.cancelled)

    def run_until(self, t, on_advance=None):
        """
        Fire every callback due at or before t.

        on_advance(dt) is called before each callback with the time elapsed
        since the previous one, so continuous processes (need decay) stay in
        step with discrete events. now already reads the new time while it
        runs, so anything it schedules counts from there.
        """
        while self._queue and self._queue[0][0] <= t:
            when, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            previous, self.now = self.now, max(self.now, when)
            if on_advance is not None and self.now > previous:
                on_advance(self.now - previous)
            # on_advance may have cancelled it (actor died)
            if handle.cancelled:
                continue
            if handle.interval is not None:
                handle.when = when + handle.interval
                self._push(handle)
            handle.fn()
        if t > self.now:
            previous, self.now = self.now, t
            if on_advance is not None:
                on_advance(t - previous)
