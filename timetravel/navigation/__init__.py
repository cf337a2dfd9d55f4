"""
Version navigation.

- VersionNavigator: Live / At(i) state machine over a timeline
- ThrottledDispatcher: trailing-edge rate limiting of seek requests
- TimeTravelSession: owns a document and wires everything together
"""

from .navigator import VersionNavigator
from .throttle import ThrottledDispatcher
from .session import TimeTravelSession

__all__ = [
    "VersionNavigator",
    "ThrottledDispatcher",
    "TimeTravelSession",
]
