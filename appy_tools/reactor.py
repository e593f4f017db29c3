import collections
import threading
from typing import Callable, Deque, Optional

import frida


class Reactor:
    """
    Run the given function until return in the calling thread while a
    background thread works through the scheduled jobs in order.
    """

    def __init__(
        self, run_until_return: Callable[["Reactor"], None], on_stop: Optional[Callable[[], None]] = None
    ) -> None:
        self._running = False
        self._run_until_return = run_until_return
        self._on_stop = on_stop
        self._pending: Deque[Callable[[], None]] = collections.deque([])
        self._lock = threading.Lock()
        self._cond = threading.Condition(self._lock)
        self._stopped = threading.Event()

        self.io_cancellable = frida.Cancellable()

    def run(self) -> None:
        with self._lock:
            self._running = True

        worker = threading.Thread(target=self._run)
        worker.start()

        self._run_until_return(self)

        self.stop()
        worker.join()

    def wait_until_stopped(self, timeout: Optional[float] = None) -> bool:
        return self._stopped.wait(timeout)

    def _run(self) -> None:
        try:
            self._process_pending()
        finally:
            if self._on_stop is not None:
                self._on_stop()

            self._stopped.set()

    def _process_pending(self) -> None:
        running = True
        while running:
            work = None
            with self._lock:
                if len(self._pending) > 0:
                    work = self._pending.popleft()

            if work is not None:
                with self.io_cancellable:
                    try:
                        work()
                    except frida.OperationCancelledError:
                        pass

            with self._lock:
                if self._running and len(self._pending) == 0:
                    self._cond.wait()
                running = self._running or len(self._pending) > 0

    def stop(self) -> None:
        self.schedule(self._stop)

    def _stop(self) -> None:
        with self._lock:
            self._running = False

    def schedule(self, f: Callable[[], None]) -> None:
        """
        append a function to the job queue of the reactor
        """

        with self._lock:
            self._pending.append(f)
            self._cond.notify()

    def cancel_io(self) -> None:
        self.io_cancellable.cancel()
