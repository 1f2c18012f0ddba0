'''Events emitted by the ledger and responses returned to queries.

Events describe successful state changes and are meant for real-time fan-out
by the host; the ledger does not keep them. Responses wrap the answer to a
single :mod:`trustballot.operation` query.

Every variant is a frozen dataclass, so variants compare by value and can be
serialized with :func:`trustballot.persist.to_dict`.
'''

from __future__ import annotations

import dataclasses
from typing import Any, List, Optional, Tuple

from trustballot.entity import (
    Candidate, Voter, ElectionData, ElectionState, VotingMethod, AuditEntry,
    AnalyticsData,
)
from trustballot.persist import simple_serialization


class Event:
    '''Base of all event variants.'''
    pass


@simple_serialization
@dataclasses.dataclass(frozen=True)
class CandidateAdded(Event):
    id: int
    name: str


@simple_serialization
@dataclasses.dataclass(frozen=True)
class VoterRegistered(Event):
    voter: Any
    name: str


@simple_serialization
@dataclasses.dataclass(frozen=True)
class ElectionStarted(Event):
    pass


@simple_serialization
@dataclasses.dataclass(frozen=True)
class ElectionEnded(Event):
    pass


@simple_serialization
@dataclasses.dataclass(frozen=True)
class VoteCast(Event):
    '''A vote was recorded.

    :param vote_count: The candidate's total after this vote, so subscribers
        can keep running tallies without querying.
    '''
    voter: Any
    candidate_id: int
    vote_count: int


@simple_serialization
@dataclasses.dataclass(frozen=True)
class CandidatesUpdated(Event):
    pass


@simple_serialization
@dataclasses.dataclass(frozen=True)
class VotersUpdated(Event):
    pass


@simple_serialization
@dataclasses.dataclass(frozen=True)
class WinnerDeclared(Event):
    id: int
    name: str
    votes: int


@simple_serialization
@dataclasses.dataclass(frozen=True)
class ElectionStateChanged(Event):
    state: ElectionState


@simple_serialization
@dataclasses.dataclass(frozen=True)
class ElectionCreated(Event):
    election_id: str
    name: str


@simple_serialization
@dataclasses.dataclass(frozen=True)
class ElectionSwitched(Event):
    election_id: str


@simple_serialization
@dataclasses.dataclass(frozen=True)
class VotingMethodChanged(Event):
    method: VotingMethod


class Response:
    '''Base of all query response variants.'''
    pass


@simple_serialization
@dataclasses.dataclass(frozen=True)
class StateResponse(Response):
    state: ElectionState


@simple_serialization
@dataclasses.dataclass(frozen=True)
class CandidateResponse(Response):
    candidate: Optional[Candidate]


@simple_serialization
@dataclasses.dataclass(frozen=True)
class CandidatesResponse(Response):
    candidates: List[Candidate]


@simple_serialization
@dataclasses.dataclass(frozen=True)
class VoterResponse(Response):
    voter: Optional[Voter]


@simple_serialization
@dataclasses.dataclass(frozen=True)
class VotersResponse(Response):
    voters: List[Tuple[Any, Voter]]


@simple_serialization
@dataclasses.dataclass(frozen=True)
class WinnerResponse(Response):
    winner: Optional[Tuple[int, str, int, str]]


@simple_serialization
@dataclasses.dataclass(frozen=True)
class BoolResponse(Response):
    value: bool


@simple_serialization
@dataclasses.dataclass(frozen=True)
class PerformanceMetricsResponse(Response):
    total_votes: int
    avg_votes: int


@simple_serialization
@dataclasses.dataclass(frozen=True)
class StatisticsResponse(Response):
    total_votes: int
    total_candidates: int
    total_voters: int
    participation_rate: float


@simple_serialization
@dataclasses.dataclass(frozen=True)
class LeaderboardResponse(Response):
    rows: List[Tuple[int, Candidate, int, float]]


@simple_serialization
@dataclasses.dataclass(frozen=True)
class ElectionsResponse(Response):
    elections: List[Tuple[str, ElectionData]]


@simple_serialization
@dataclasses.dataclass(frozen=True)
class ElectionResponse(Response):
    election: Optional[ElectionData]


@simple_serialization
@dataclasses.dataclass(frozen=True)
class VotingMethodResponse(Response):
    method: VotingMethod


@simple_serialization
@dataclasses.dataclass(frozen=True)
class AuditTrailResponse(Response):
    entries: List[AuditEntry]


@simple_serialization
@dataclasses.dataclass(frozen=True)
class AdvancedAnalyticsResponse(Response):
    analytics: AnalyticsData
