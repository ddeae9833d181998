"""Generation counters for discarding stale async results.

An in-flight request is never aborted. Instead each operation captures a
token when it starts; when one of its inputs changes the counter is bumped
and a completion carrying an older token is dropped on arrival.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class GenerationToken:
    """Snapshot of a generation counter taken when an operation starts."""

    counter: "Generation"
    value: int

    @property
    def is_current(self) -> bool:
        """True while no dependency change happened since the snapshot."""
        return self.counter.current == self.value


class Generation:
    """Monotonic counter shared by one family of async operations."""

    def __init__(self, name: str):
        self.name = name
        self._value = 0

    @property
    def current(self) -> int:
        return self._value

    def bump(self) -> GenerationToken:
        """Invalidate every outstanding token and return a fresh one."""
        self._value += 1
        return GenerationToken(self, self._value)

    def __repr__(self) -> str:
        return f"Generation({self.name!r}, {self._value})"
