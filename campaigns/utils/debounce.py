# campaigns/utils/debounce.py
import threading


class Debouncer:
    """
    Runs a callback once the caller has been quiet for `delay` seconds.
    Every trigger() restarts the countdown, cancel() drops a pending run.
    """

    def __init__(self, delay, callback, timer_factory=threading.Timer):
        self.delay = delay
        self.callback = callback
        self.timer_factory = timer_factory
        self._timer = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def pending(self):
        return self._timer is not None

    def trigger(self):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            generation = self._generation
            self._timer = self.timer_factory(self.delay, lambda: self._fire(generation))
            if hasattr(self._timer, 'daemon'):
                self._timer.daemon = True
            self._timer.start()

    def _fire(self, generation):
        with self._lock:
            # A newer trigger() replaced this timer
            if generation != self._generation or self._timer is None:
                return
            self._timer = None
        self.callback()

    def cancel(self):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def flush(self):
        """Run a pending callback right away"""
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            self.callback()
