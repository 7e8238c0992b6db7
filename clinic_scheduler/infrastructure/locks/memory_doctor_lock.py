import threading
import weakref
from contextlib import contextmanager
from datetime import date
from typing import Iterator, Tuple

from ...application.ports.doctor_lock import DoctorLock


class InMemoryDoctorLock(DoctorLock):
    """One mutex per (doctor, day); independent doctors never wait on each other.

    Entries are weak: a key's mutex is dropped once no caller holds or waits on it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[Tuple[int, date], threading.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, doctor_id: int, day: date) -> threading.Lock:
        with self._guard:
            lock = self._locks.get((doctor_id, day))
            if lock is None:
                lock = threading.Lock()
                self._locks[(doctor_id, day)] = lock
            return lock

    @contextmanager
    def hold(self, doctor_id: int, day: date) -> Iterator[None]:
        lock = self._lock_for(doctor_id, day)
        with lock:
            yield
