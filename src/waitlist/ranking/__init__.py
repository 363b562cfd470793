"""Waitlist ordering policy engine."""

from .policies import INUKTITUT, POLICY_KEYS, WaitlistRanker

__all__ = [
    "INUKTITUT",
    "POLICY_KEYS",
    "WaitlistRanker",
]
