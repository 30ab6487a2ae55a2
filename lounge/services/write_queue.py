import queue
import threading
from flask import has_app_context
from lounge.extensions import logger

_STOP = object()


class PersistenceQueue:
    """
    Fire-and-forget executor for durable writes.

    Callers apply their in-memory change first and then submit the write here.
    A failing write is logged and dropped: nothing is retried and nothing is
    rolled back in memory. With ``asynchronous=False`` tasks run inline on the
    caller's thread, which keeps tests deterministic.
    """

    def __init__(self, app, asynchronous: bool = True):
        self.app = app
        self.asynchronous = asynchronous
        self._queue = queue.Queue()
        self._worker = None
        self._lock = threading.Lock()

    @property
    def pending(self) -> int:
        """Number of submitted writes not finished yet"""
        return self._queue.unfinished_tasks

    def submit(self, description: str, fn, *args, **kwargs):
        if not self.asynchronous:
            self._run(description, fn, args, kwargs)
            return
        self._ensure_worker()
        self._queue.put((description, fn, args, kwargs))

    def join(self):
        """Blocks until every submitted write has been attempted"""
        self._queue.join()

    def stop(self):
        if self._worker is not None and self._worker.is_alive():
            self._queue.put(_STOP)
            self._worker.join(timeout=5)
        self._worker = None

    def _ensure_worker(self):
        with self._lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(
                    target=self._drain, name="persistence-queue", daemon=True
                )
                self._worker.start()

    def _drain(self):
        while True:
            task = self._queue.get()
            try:
                if task is _STOP:
                    return
                description, fn, args, kwargs = task
                self._run(description, fn, args, kwargs)
            finally:
                self._queue.task_done()

    def _run(self, description, fn, args, kwargs):
        try:
            if self.app is None or has_app_context():
                fn(*args, **kwargs)
            else:
                with self.app.app_context():
                    fn(*args, **kwargs)
        except Exception as e:
            logger.error(f"Persistence write '{description}' failed: {str(e)}", exc_info=True)
