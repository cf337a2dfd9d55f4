"""
timetravel CLI - scrub through CRDT edit history

Commands:
- timetravel snapshot build/info - Seed snapshot operations
- timetravel seek - Check out one version
- timetravel scrub - Seek across the timeline and report checkout latency
"""

__version__ = "0.1.0"
