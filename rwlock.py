import threading
from contextlib import contextmanager


class ReadWriteLock:
    """Shared/exclusive lock: many readers or a single writer.

    Writer-preferring: once a writer is waiting, newly arriving readers
    block until it has run, so readers cannot starve mutators. The lock is
    not re-entrant in either mode.

    :ivar _cond: Condition guarding the counters below.
    :type _cond: threading.Condition
    :ivar _readers: Number of threads currently holding the read side.
    :type _readers: int
    :ivar _writer: ``True`` while a thread holds the write side.
    :type _writer: bool
    :ivar _waiting_writers: Writers blocked in :meth:`acquire_write`.
    :type _waiting_writers: int
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    def acquire_read(self):
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1

    def release_read(self):
        with self._cond:
            if self._readers <= 0:
                raise RuntimeError("release_read called without a reader")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self):
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
                if not self._waiting_writers:
                    self._cond.notify_all()
            self._writer = True

    def release_write(self):
        with self._cond:
            if not self._writer:
                raise RuntimeError("release_write called without a writer")
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self):
        """Hold the shared side for the duration of a ``with`` block."""
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self):
        """Hold the exclusive side for the duration of a ``with`` block."""
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()
