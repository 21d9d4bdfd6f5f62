"""
Scheduling core

- Canonical time grid and slot adjacency (time_sequence.py)
- Blocked-date overlay (blocked.py)
- Customer-facing availability (availability.py)
- Consecutive-slot chain resolution (resolver.py)
- Reservation write path: reserve / confirm / cancel / release (reservation.py)
"""
