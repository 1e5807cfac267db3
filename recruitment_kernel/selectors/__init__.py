"""Selectors for the recruitment kernel (read side)."""

from recruitment_kernel.selectors.candidate_selector import CandidateSelector

__all__ = [
    "CandidateSelector",
]
