"""
Timeline construction.

Linearizes a document's causal change graph into an ordered sequence of
addressable operation ids. Must be deterministic: same graph -> same timeline.
"""

from .linearizer import Timeline, build_timeline

__all__ = [
    "Timeline",
    "build_timeline",
]
