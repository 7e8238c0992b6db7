from contextlib import contextmanager
from datetime import date
from typing import Iterator

import redis
from redis.exceptions import LockError

from ...application.ports.doctor_lock import DoctorLock


class RedisDoctorLock(DoctorLock):
    """Per-(doctor, day) lock shared by every worker process pointed at the same Redis."""

    def __init__(self, url: str, prefix: str = "doctor-lock:", timeout: int = 10) -> None:
        self.client = redis.Redis.from_url(url)
        self.prefix = prefix
        self.timeout = timeout

    def key(self, doctor_id: int, day: date) -> str:
        return f"{self.prefix}{doctor_id}:{day.isoformat()}"

    @contextmanager
    def hold(self, doctor_id: int, day: date) -> Iterator[None]:
        lock = self.client.lock(self.key(doctor_id, day), timeout=self.timeout, blocking_timeout=self.timeout)
        if not lock.acquire():
            raise LockError(f"Could not acquire {self.key(doctor_id, day)}")
        try:
            yield
        finally:
            lock.release()
