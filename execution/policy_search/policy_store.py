"""
Policy Storage - backing map for the policy index

``PolicyStorage`` is the interface the index talks to; the in-memory
implementation keeps policies in insertion order behind a lock so every
operation is atomic. A persistent or shared backend only needs to
implement the same six methods.
"""

import threading
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .policy_index import Policy


class PolicyStorage(ABC):
    """Keyed store of policies."""

    @abstractmethod
    def put(self, policy: "Policy") -> None:
        """Store a policy under its id."""

    @abstractmethod
    def get(self, policy_id: str) -> Optional["Policy"]:
        """Return the policy with this id, or None."""

    @abstractmethod
    def values(self) -> list["Policy"]:
        """Return a snapshot of all stored policies in a stable order."""

    @abstractmethod
    def delete(self, policy_id: str) -> bool:
        """Delete a policy; return whether one was removed."""

    @abstractmethod
    def clear(self) -> int:
        """Remove everything; return how many policies were removed."""

    @abstractmethod
    def __len__(self) -> int:
        ...


class InMemoryPolicyStorage(PolicyStorage):
    """Insertion-ordered dict guarded by a re-entrant lock."""

    def __init__(self):
        self._policies: dict[str, "Policy"] = {}
        self._lock = threading.RLock()

    def put(self, policy: "Policy") -> None:
        with self._lock:
            self._policies[policy.id] = policy

    def get(self, policy_id: str) -> Optional["Policy"]:
        with self._lock:
            return self._policies.get(policy_id)

    def values(self) -> list["Policy"]:
        with self._lock:
            return list(self._policies.values())

    def delete(self, policy_id: str) -> bool:
        with self._lock:
            return self._policies.pop(policy_id, None) is not None

    def clear(self) -> int:
        with self._lock:
            removed = len(self._policies)
            self._policies.clear()
            return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._policies)
