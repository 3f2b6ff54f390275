# campaigns/utils/storage.py
"""
Size-bounded key/value storage for drafts.
Works on top of any mapping: the Django session in production, a plain dict
in tests. Only string values count towards the capacity.
"""

from dataclasses import dataclass
from typing import Optional

from django.conf import settings

from ..exceptions import StorageQuotaExceeded

DEFAULT_CAPACITY = 5 * 1024 * 1024


@dataclass(frozen=True)
class StorageUsage:
    used: int
    total: int

    @property
    def ratio(self) -> float:
        return self.used / self.total if self.total else 1.0

    @property
    def used_mb(self) -> float:
        return round(self.used / (1024 * 1024), 2)

    @property
    def total_mb(self) -> float:
        return round(self.total / (1024 * 1024), 2)

    def as_dict(self):
        return {
            'used': self.used,
            'total': self.total,
            'used_mb': self.used_mb,
            'total_mb': self.total_mb,
        }


class QuotaStorage:
    """Mapping wrapper that refuses writes beyond a byte capacity"""

    def __init__(self, backend, capacity: Optional[int] = None):
        self.backend = backend
        if capacity is None:
            capacity = getattr(settings, 'DRAFT_STORAGE_CAPACITY', DEFAULT_CAPACITY)
        self.capacity = capacity

    def _used(self, exclude: Optional[str] = None) -> int:
        used = 0
        for key in list(self.backend.keys()):
            if key == exclude:
                continue
            value = self.backend.get(key)
            if isinstance(value, str):
                used += len(key) + len(value)
        return used

    def usage(self) -> StorageUsage:
        return StorageUsage(used=self._used(), total=self.capacity)

    def get_item(self, key: str) -> Optional[str]:
        value = self.backend.get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str):
        required = self._used(exclude=key) + len(key) + len(value)
        if required > self.capacity:
            raise StorageQuotaExceeded(key, required, self.capacity)
        self.backend[key] = value

    def remove_item(self, key: str):
        if key in self.backend:
            del self.backend[key]
