"""
Test suite for timetravel.

Focus areas:
- Timeline linearization order and length
- Navigation state machine and latency sampling
- Online statistics
- Throttled dispatch timing
- Engine adapters and edit traces
"""
