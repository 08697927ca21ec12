from __future__ import annotations

"""
auditor_node/auditor_runtime/tally.py
-------------------------------------

VoteTallyEngine: keeps each candidate's `total_votes` equal to the sum of the
effective weights of every voter whose current set contains that candidate.

Delta rule for a vote change (old_set, old_w) -> (new_set, new_w):

    only in old set   -> -old_w
    only in new set   -> +new_w
    in both           -> +(new_w - old_w)   (zero when the weight is unchanged)

Retraction is the same rule with new_set = [] and new_w = 0.
"""

import logging
from typing import Dict, Iterable, List, Sequence

from .candidates import CandidateRegistry
from .errors import ConstraintViolation, InvalidState
from .votes import VoteRecord, VoteRegistry

log = logging.getLogger(__name__)


def tally_deltas(
    old_set: Iterable[str],
    old_weight: int,
    new_set: Iterable[str],
    new_weight: int,
) -> Dict[str, int]:
    old = set(old_set)
    new = set(new_set)
    deltas: Dict[str, int] = {}
    for name in old - new:
        deltas[name] = -int(old_weight)
    for name in new - old:
        deltas[name] = int(new_weight)
    if new_weight != old_weight:
        for name in old & new:
            deltas[name] = int(new_weight) - int(old_weight)
    return {k: v for k, v in deltas.items() if v != 0}


def validate_vote_set(
    candidates: CandidateRegistry,
    names: Sequence[str],
    maxvotes: int,
) -> List[str]:
    names = [str(n) for n in names]
    if len(names) > int(maxvotes):
        raise ConstraintViolation(
            "too_many_votes",
            f"{len(names)} candidates supplied, at most {maxvotes} allowed",
        )
    seen = set()
    for n in names:
        if n in seen:
            raise ConstraintViolation("duplicate_vote", f"candidate {n} listed more than once")
        seen.add(n)
    for n in names:
        if not candidates.is_active(n):
            raise ConstraintViolation("inactive_candidate", f"{n} is not an active candidate")
    return names


class VoteTallyEngine:
    def __init__(self, candidates: CandidateRegistry, votes: VoteRegistry):
        self.candidates = candidates
        self.votes = votes

    def apply_deltas(self, deltas: Dict[str, int]) -> None:
        # Validate every target first so a bad delta leaves nothing half-applied.
        staged = []
        for name in sorted(deltas):
            cand = self.candidates.get(name)
            if cand is None:
                raise InvalidState("tally_inconsistent", f"vote references unknown candidate {name}")
            updated = cand.total_votes + deltas[name]
            if updated < 0:
                raise InvalidState(
                    "tally_inconsistent",
                    f"tally for {name} would drop below zero",
                    total_votes=cand.total_votes,
                    delta=deltas[name],
                )
            cand.total_votes = updated
            staged.append(cand)
        for cand in staged:
            self.candidates.put(cand)

    def apply_vote_change(
        self,
        old_set: Iterable[str],
        old_weight: int,
        new_set: Iterable[str],
        new_weight: int,
    ) -> Dict[str, int]:
        deltas = tally_deltas(old_set, old_weight, new_set, new_weight)
        self.apply_deltas(deltas)
        return deltas

    def cast(self, voter: str, names: Sequence[str], weight: int, *, maxvotes: int) -> VoteRecord | None:
        """
        Record `voter`'s new candidate set at `weight`.

        An empty set retracts the vote: the old weight is withdrawn from every
        candidate it counted for and the record is deleted. Returns the stored
        record, or None after a retraction.
        """
        new_set = validate_vote_set(self.candidates, names, maxvotes)
        prev = self.votes.get(voter)
        old_set = prev.candidates if prev else []
        old_weight = prev.weight if prev else 0

        if not new_set:
            self.apply_vote_change(old_set, old_weight, [], 0)
            self.votes.remove(voter)
            log.info("vote retracted voter=%s", voter)
            return None

        self.apply_vote_change(old_set, old_weight, new_set, weight)
        rec = VoteRecord(voter=voter, weight=int(weight), candidates=new_set, proxy="")
        self.votes.put(rec)
        return rec

    def refresh_weight(self, voter: str, new_weight: int) -> bool:
        """
        Re-apply a voter's existing set at a new effective weight.

        Returns True when the record changed. Candidates in the set are not
        re-validated; a vote stays counted even if a candidate later withdrew.
        """
        rec = self.votes.get(voter)
        if rec is None or rec.weight == int(new_weight):
            return False
        self.apply_vote_change(rec.candidates, rec.weight, rec.candidates, new_weight)
        rec.weight = int(new_weight)
        self.votes.put(rec)
        return True
