"""
Recruitment Kernel

A small persisted state machine for the staff recruitment workflow:
- Recommendation intake with a short-lived proof handoff
- Background check with a single first-writer-wins finalization
- Fixed number of write-once observation slots
- Replica registry keeping every rendered message surface in sync
"""

__version__ = "0.1.0"
