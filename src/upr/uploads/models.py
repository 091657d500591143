"""Upload data models."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterator, List, Optional


@dataclass
class UploadItem:
    """One local file queued for upload, plus its public URL once uploaded."""

    name: str
    path: str
    object_key: str
    url: Optional[str] = None


@dataclass
class UploadGroup:
    """Arena of UploadItems grouped by the directory they came from.

    Items are addressed by their integer handle (index into the arena), so
    workers write results into the same records the comment is rendered from.
    """

    _items: List[UploadItem] = field(default_factory=list)
    _by_dir: Dict[str, List[int]] = field(default_factory=dict)

    def add(self, directory: str, item: UploadItem) -> int:
        """Append an item under its origin directory and return its handle."""
        handle = len(self._items)
        self._items.append(item)
        self._by_dir.setdefault(directory, []).append(handle)
        return handle

    def __getitem__(self, handle: int) -> UploadItem:
        return self._items[handle]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[UploadItem]:
        return iter(self._items)

    def handles(self) -> Iterator[int]:
        """Yield every handle, directory by directory, items in source order."""
        for handles in self._by_dir.values():
            yield from handles

    def directories(self) -> List[str]:
        return list(self._by_dir)

    def as_dict(self) -> Dict[str, List[UploadItem]]:
        """Map each origin directory to its items, as handed to the template."""
        return {
            directory: [self._items[handle] for handle in handles]
            for directory, handles in self._by_dir.items()
        }


@dataclass
class UploadReport:
    """Outcome counts of one scheduler run."""

    attempted: int = 0
    uploaded: int = 0
    failed: int = 0
    skipped: int = 0


def compute_expiry(days: int, now: Optional[datetime] = None) -> Optional[datetime]:
    """Compute the shared expiry instant for a retention of ``days``.

    The current time is truncated to midnight UTC, then ``days + 1`` whole
    days are added, so objects live at least ``days`` full days.

    Args:
        days: Retention in days; 0 means the uploads never expire
        now: Current time, defaults to datetime.now(timezone.utc)

    Returns:
        Timezone-aware UTC expiry, or None when days is 0
    """
    if not days:
        return None
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    midnight = now.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight + timedelta(days=days + 1)
