"""
Navigation state.

The navigator is either Live (the sentinel index -1) or At(i) for a
timeline index i.
"""

from dataclasses import dataclass

LIVE_INDEX = -1


@dataclass(frozen=True)
class NavigationState:
    """
    Immutable navigation state.

    Fields:
        index: LIVE_INDEX for the live sentinel, otherwise a timeline index
    """
    index: int = LIVE_INDEX

    @staticmethod
    def live() -> "NavigationState":
        return NavigationState(LIVE_INDEX)

    @staticmethod
    def at(index: int) -> "NavigationState":
        if index < 0:
            raise ValueError(f"At() requires a non-negative index, got {index}")
        return NavigationState(index)

    @property
    def is_live(self) -> bool:
        return self.index == LIVE_INDEX

    def __str__(self) -> str:
        return "Live" if self.is_live else f"At({self.index})"
