"""Voting result classification for Planning Poker."""

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from app.domain.participant import Participant
from app.domain.scales import VotingScale, parse_number, scale_values


class ResultKind(Enum):
    NONE = "none"
    CONSENSUS = "consensus"
    MAJORITY = "majority"
    JOINT = "joint"


@dataclass(frozen=True)
class VoteStatistics:
    average: float
    minimum: float
    maximum: float
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "average": self.average,
            "min": self.minimum,
            "max": self.maximum,
            "count": self.count,
        }


@dataclass(frozen=True)
class VoteResult:
    """Outcome of a round: the kind plus the value(s) backing it."""

    kind: ResultKind
    values: Tuple[str, ...] = ()
    max_count: int = 0
    total_votes: int = 0
    statistics: Optional[VoteStatistics] = None

    @property
    def value(self) -> Optional[str]:
        """Single backing value for consensus/majority."""
        if self.kind in (ResultKind.CONSENSUS, ResultKind.MAJORITY):
            return self.values[0]
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "values": list(self.values),
            "maxCount": self.max_count,
            "totalVotes": self.total_votes,
            "statistics": self.statistics.to_dict() if self.statistics else None,
        }


class VotingService:
    """Service for classifying votes."""

    @staticmethod
    def collect_votes(participants: Iterable[Participant]) -> List[str]:
        """Votes cast by voters, in participant order. Observers never count."""
        return [p.vote for p in participants if p.can_vote and p.vote is not None]

    @staticmethod
    def has_votes(participants: Iterable[Participant]) -> bool:
        """Whether any voter has voted; gates the reveal control."""
        return bool(VotingService.collect_votes(participants))

    @staticmethod
    def vote_statistics(
        votes: Iterable[str],
        scale: Optional[VotingScale] = None,
    ) -> Optional[VoteStatistics]:
        """Average/min/max over numeric votes, or None when there are none."""
        allowed = set(scale_values(scale)) if scale is not None else None
        numeric_votes = []
        for vote in votes:
            if allowed is not None and vote not in allowed:
                continue
            number = parse_number(vote)
            if number is None:
                continue
            numeric_votes.append(number)
        if not numeric_votes:
            return None
        return VoteStatistics(
            average=sum(numeric_votes) / len(numeric_votes),
            minimum=min(numeric_votes),
            maximum=max(numeric_votes),
            count=len(numeric_votes),
        )

    @staticmethod
    def classify(
        participants: Iterable[Participant],
        scale: Optional[VotingScale] = None,
    ) -> VoteResult:
        """Classify the current round.

        A lone vote is a majority, never a consensus: agreement needs at
        least two voters.
        """
        votes = VotingService.collect_votes(participants)
        if not votes:
            return VoteResult(kind=ResultKind.NONE)

        vote_counts = Counter(votes)
        max_count = max(vote_counts.values())
        top_values = tuple(vote for vote, count in vote_counts.items() if count == max_count)
        statistics = VotingService.vote_statistics(votes, scale)

        if len(votes) > 1 and len(top_values) == 1 and max_count == len(votes):
            kind = ResultKind.CONSENSUS
        elif len(top_values) > 1:
            kind = ResultKind.JOINT
        else:
            kind = ResultKind.MAJORITY

        return VoteResult(
            kind=kind,
            values=top_values,
            max_count=max_count,
            total_votes=len(votes),
            statistics=statistics,
        )

    @staticmethod
    def consensus_vote(participants: Iterable[Participant]) -> Optional[str]:
        """The agreed value when 2+ voters all picked the same card."""
        votes = VotingService.collect_votes(participants)
        if len(votes) < 2:
            return None
        first_vote = votes[0]
        if all(vote == first_vote for vote in votes):
            return first_vote
        return None
