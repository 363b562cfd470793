"""Ordering policies for daycare waitlists."""

import random
from collections.abc import Callable, Iterable

from ..models.base import ChoiceStatus, WaitlistCandidate, WaitlistPolicy

INUKTITUT = "Inuktitut"

SortKey = Callable[[WaitlistCandidate], tuple]

# pending entries always come before waitlisted ones
STATUS_ORDER: dict[ChoiceStatus, int] = {
    ChoiceStatus.PENDING: 0,
    ChoiceStatus.WAITLISTED: 1,
}


def status_group(candidate: WaitlistCandidate) -> int:
    return STATUS_ORDER[candidate.status]


def by_application_date(candidate: WaitlistCandidate) -> tuple:
    return (candidate.application_date,)


def inuktitut_speakers_first(candidate: WaitlistCandidate) -> tuple:
    speaks = INUKTITUT in candidate.child.languages_spoken_at_home
    return (not speaks, candidate.application_date)


def inuk_first(candidate: WaitlistCandidate) -> tuple:
    return (not candidate.child.is_inuk, candidate.application_date)


def without_care_first(candidate: WaitlistCandidate) -> tuple:
    return (candidate.has_active_placement_elsewhere, candidate.application_date)


POLICY_KEYS: dict[WaitlistPolicy, SortKey] = {
    WaitlistPolicy.APPLICATION_DATE: by_application_date,
    WaitlistPolicy.LANGUAGE: inuktitut_speakers_first,
    WaitlistPolicy.INUK: inuk_first,
    WaitlistPolicy.ENROLLED_ELSEWHERE: without_care_first,
}


class WaitlistRanker:
    """Orders waitlist candidates by status group, then by the selected policy."""

    def __init__(self, seed: int | None = None):
        # an unseeded ranker shuffles from system entropy on every call
        self.seed = seed
        self._rng = random.Random(seed) if seed is not None else random.SystemRandom()

    def rank(
        self,
        entries: Iterable[WaitlistCandidate],
        policy: WaitlistPolicy | str | None = None
    ) -> list[WaitlistCandidate]:
        """
        Rank candidates for a daycare.

        Args:
            entries: Pending or waitlisted candidates, in insertion order
            policy: Policy or policy name; unknown names use application_date

        Returns:
            New list in ranked order. Sorting is stable, so ties keep input order.

        Raises:
            ValueError: If a candidate is not pending or waitlisted
        """
        candidates = list(entries)
        for candidate in candidates:
            if candidate.status not in STATUS_ORDER:
                raise ValueError(
                    f"Choice {candidate.choice_id} with status {candidate.status.value} "
                    f"is not a waitlist candidate"
                )

        resolved = WaitlistPolicy.resolve(policy)
        if resolved == WaitlistPolicy.RANDOM:
            return self._shuffle_within_groups(candidates)

        key = POLICY_KEYS[resolved]
        return sorted(candidates, key=lambda c: (status_group(c), *key(c)))

    def _shuffle_within_groups(self, candidates: list[WaitlistCandidate]) -> list[WaitlistCandidate]:
        shuffled = list(candidates)
        self._rng.shuffle(shuffled)
        return sorted(shuffled, key=status_group)
