import logging
import queue
import threading
from concurrent.futures import Future
from typing import Callable, Optional

from .. import config

_STOP = object()


class CommitWorker:
    """
    A single background thread draining a bounded job queue.

    Jobs run strictly one after another in submission order. Each submit()
    returns a Future for the job's result (or exception).
    """

    def __init__(self, maxsize: int = config.WORKER_QUEUE_SIZE, name: str = "movr-commit"):
        self._queue: queue.Queue = queue.Queue(maxsize)
        self._name = name
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

        self.submitted = 0
        self.completed = 0
        self.failed = 0

    @property
    def pending(self) -> int:
        with self._lock:
            return self.submitted - self.completed - self.failed

    @property
    def progress(self) -> float:
        with self._lock:
            done = self.completed + self.failed
            return done / self.submitted if self.submitted else 0.0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.is_running:
            return
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def submit(self, fn: Callable, *args, **kwargs) -> Future:
        """Queues `fn(*args, **kwargs)`. Blocks while the queue is full."""
        self.start()
        future: Future = Future()
        with self._lock:
            self.submitted += 1
        self._queue.put((future, fn, args, kwargs))
        return future

    def shutdown(self, wait: bool = True):
        """Lets queued jobs finish, then stops the thread."""
        if self._thread is None:
            return
        self._queue.put(_STOP)
        if wait:
            self._thread.join()
        self._thread = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()

    def _run(self):
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                future, fn, args, kwargs = item
                if not future.set_running_or_notify_cancel():
                    with self._lock:
                        self.failed += 1
                    continue
                try:
                    result = fn(*args, **kwargs)
                except Exception as e:
                    logging.exception(f"Background job {getattr(fn, '__name__', fn)} failed.")
                    with self._lock:
                        self.failed += 1
                    future.set_exception(e)
                else:
                    with self._lock:
                        self.completed += 1
                    future.set_result(result)
            finally:
                self._queue.task_done()
