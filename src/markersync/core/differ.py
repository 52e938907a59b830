from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, Iterable


@dataclass(frozen=True)
class PriorState:
    """What a namespace showed on the last committed tick."""

    ids: frozenset[int] = frozenset()

    @property
    def count(self) -> int:
        return len(self.ids)


class ElementSetDiffer:
    """Remembers the element ids shown per namespace and yields what to retract.

    Namespace keys are any hashable; visualizers use `(topic, ns)` pairs.

    `reconcile` is `diff` followed by `commit`. Callers that need the delete
    batch to reach the channel before the state moves on call the two halves
    separately, so a failed send keeps the stale ids pending for the next tick.
    """

    def __init__(self) -> None:
        self._prior: dict[Hashable, PriorState] = {}

    def prior(self, key: Hashable) -> frozenset[int]:
        return self._prior.get(key, PriorState()).ids

    def prior_count(self, key: Hashable) -> int:
        return self._prior.get(key, PriorState()).count

    def keys(self) -> list[Hashable]:
        return list(self._prior)

    def diff(self, key: Hashable, current_ids: Iterable[int]) -> list[int]:
        current = frozenset(int(i) for i in current_ids)
        return sorted(self.prior(key) - current)

    def diff_count(self, key: Hashable, count: int) -> list[int]:
        # Positional ids are always 0..count-1, so only a shrink retracts.
        prior_count = self.prior_count(key)
        current = max(0, int(count))
        if current >= prior_count:
            return []
        return list(range(current, prior_count))

    def commit(self, key: Hashable, current_ids: Iterable[int]) -> None:
        self._prior[key] = PriorState(ids=frozenset(int(i) for i in current_ids))

    def commit_count(self, key: Hashable, count: int) -> None:
        self._prior[key] = PriorState(ids=frozenset(range(max(0, int(count)))))

    def reconcile(self, key: Hashable, current_ids: Iterable[int]) -> list[int]:
        current = frozenset(int(i) for i in current_ids)
        to_delete = self.diff(key, current)
        self.commit(key, current)
        return to_delete

    def reconcile_count(self, key: Hashable, count: int) -> list[int]:
        to_delete = self.diff_count(key, count)
        self.commit_count(key, count)
        return to_delete

    def reset(self) -> None:
        self._prior.clear()
