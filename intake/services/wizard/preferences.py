"""Ranked slot preferences."""

from typing import Dict, Iterator, List, Mapping, Optional, Tuple


class SlotPreferenceSet:
    """
    Immutable mapping of candidate slot ``iso`` to preference rank.

    Ranks are derived from insertion order, so they are always the
    contiguous sequence 1..n. Removing a slot moves every later slot up by
    one rank; earlier slots keep theirs.
    """

    __slots__ = ("_order",)

    def __init__(self, order: Tuple[str, ...] = ()):
        if len(set(order)) != len(order):
            raise ValueError("A slot can only hold one rank")
        self._order = tuple(order)

    @classmethod
    def from_ranks(cls, ranks: Mapping[str, int]) -> "SlotPreferenceSet":
        """
        Build from an ``{iso: rank}`` mapping.

        Raises:
            ValueError: If the ranks are not exactly 1..n
        """
        ordered = sorted(ranks.items(), key=lambda item: item[1])
        if [rank for _, rank in ordered] != list(range(1, len(ordered) + 1)):
            raise ValueError(f"Ranks must be contiguous from 1: {dict(ranks)}")
        return cls(tuple(iso for iso, _ in ordered))

    def rank_of(self, iso: str) -> Optional[int]:
        """Rank of ``iso``, or None when it is not selected."""
        try:
            return self._order.index(iso) + 1
        except ValueError:
            return None

    def select(self, iso: str) -> "SlotPreferenceSet":
        """Append ``iso`` with rank ``max + 1`` (no-op if already ranked)."""
        if iso in self._order:
            return self
        return SlotPreferenceSet(self._order + (iso,))

    def deselect(self, iso: str) -> "SlotPreferenceSet":
        """Drop ``iso`` and renumber the ranks after it."""
        if iso not in self._order:
            return self
        return SlotPreferenceSet(tuple(s for s in self._order if s != iso))

    def toggle(self, iso: str) -> "SlotPreferenceSet":
        return self.deselect(iso) if iso in self._order else self.select(iso)

    def ranked(self) -> List[Tuple[str, int]]:
        """``(iso, rank)`` pairs in ascending rank order."""
        return [(iso, index + 1) for index, iso in enumerate(self._order)]

    def as_dict(self) -> Dict[str, int]:
        return dict(self.ranked())

    def __len__(self) -> int:
        return len(self._order)

    def __bool__(self) -> bool:
        return bool(self._order)

    def __contains__(self, iso: object) -> bool:
        return iso in self._order

    def __iter__(self) -> Iterator[str]:
        return iter(self._order)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SlotPreferenceSet):
            return self._order == other._order
        if isinstance(other, Mapping):
            return self.as_dict() == dict(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._order)

    def __repr__(self) -> str:
        return f"SlotPreferenceSet({self.as_dict()!r})"


EMPTY_PREFERENCES = SlotPreferenceSet()
