"""
The results matrix: the single source of truth for profile outcomes.

Entries keep insertion order, which is the order profiles were registered
with the engine. Every status write notifies the subscribed observers while
the matrix lock is still held, so an observer always sees the write that
triggered it and never a half-applied one.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator

from .profile import Profile, StatusKind

type MatrixObserver = Callable[[ResultsMatrix], None]


class ResultsMatrix:
    """Insertion-ordered ``Profile -> StatusKind`` mapping."""

    def __init__(self) -> None:
        self._entries: dict[Profile, StatusKind] = {}
        self._lock = threading.RLock()
        self._observers: list[MatrixObserver] = []

    def subscribe(self, observer: MatrixObserver) -> None:
        """Call ``observer`` after every status write."""
        self._observers.append(observer)

    def register(self, profile: Profile) -> bool:
        """Reserve a ``NONE`` slot for ``profile`` without notifying anyone.

        Returns True when a new slot was created.
        """
        with self._lock:
            if profile in self._entries:
                return False
            self._entries[profile] = StatusKind.NONE
            return True

    def status(self, profile: Profile) -> StatusKind:
        with self._lock:
            return self._entries.get(profile, StatusKind.NONE)

    def __getitem__(self, profile: Profile) -> StatusKind:
        with self._lock:
            return self._entries[profile]

    def __setitem__(self, profile: Profile, status: StatusKind) -> None:
        with self._lock:
            self._entries[profile] = status
            for observer in self._observers:
                observer(self)

    def __contains__(self, profile: object) -> bool:
        # None and Skip results do not count as being present.
        if not isinstance(profile, Profile):
            return False
        return self.status(profile) not in (StatusKind.NONE, StatusKind.SKIP)

    def is_decided(self, profile: Profile) -> bool:
        """True once a scheduling decision (including Skip) was recorded."""
        return self.status(profile) is not StatusKind.NONE

    def has_slot(self, profile: Profile) -> bool:
        with self._lock:
            return profile in self._entries

    def snapshot(self) -> dict[Profile, StatusKind]:
        """Copy of the entries, in insertion order."""
        with self._lock:
            return dict(self._entries)

    def items(self) -> list[tuple[Profile, StatusKind]]:
        with self._lock:
            return list(self._entries.items())

    def profiles(self) -> list[Profile]:
        with self._lock:
            return list(self._entries)

    def failures(self) -> list[Profile]:
        """Profiles with a judged failure, in insertion order.

        Diagnostic ``INFO`` records are excluded.
        """
        return [
            profile
            for profile, status in self.items()
            if status.is_failure and status is not StatusKind.INFO
        ]

    def __iter__(self) -> Iterator[Profile]:
        return iter(self.profiles())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __repr__(self) -> str:
        return f"ResultsMatrix({len(self)} profiles)"
