"""
Time-travel over CRDT edit history

Linearizes a document's causal change graph and lets callers scrub through it,
measuring how long each checkout takes.
"""

__version__ = "0.1.0"
