'''Plain data records of the election ledger.

Contains the lifecycle and voting method enumerations
(:class:`ElectionState`, :class:`VotingMethod`), the per-election records
(:class:`Candidate`, :class:`Voter`, :class:`ElectionData`), the audit record
(:class:`AuditEntry`) and the analytics view (:class:`AnalyticsData` with its
parts). None of them carries behavior; the rules live in :mod:`state`.

All records are dataclasses decorated with
:func:`trustballot.persist.simple_serialization` so that the host can turn
them into JSON-ready dictionaries.
'''

from __future__ import annotations

import dataclasses
import enum
from typing import Any, Dict, Hashable, List, Optional, Tuple

from trustballot.persist import simple_serialization

Identity = Hashable


class ElectionState(enum.Enum):
    '''Lifecycle of a single election. Strictly ordered.'''
    CREATED = 'Created'
    ONGOING = 'Ongoing'
    ENDED = 'Ended'

    @property
    def order(self) -> int:
        return list(ElectionState).index(self)


class VotingMethod(enum.Enum):
    '''How a ballot is interpreted.

    Only ``SIMPLE`` (one vote for one candidate) has a tally rule; the other
    methods can be selected but votes cast under them are rejected.
    '''
    SIMPLE = 'Simple'
    RANKED_CHOICE = 'RankedChoice'
    APPROVAL = 'Approval'
    WEIGHTED = 'Weighted'


@simple_serialization
@dataclasses.dataclass
class Candidate:
    '''A candidate standing in the active election.

    :param id: Sequential identifier, starting at 1 for every election.
    :param name: Display name.
    :param meta: Free-form metadata supplied by the owner (party, bio...).
    :param vote_count: Number of votes received so far.
    '''
    id: int
    name: str
    meta: str = ''
    vote_count: int = 0


@simple_serialization
@dataclasses.dataclass
class Voter:
    '''A registered voter, keyed by the voter's identity in the ballot.

    :param voted_candidate_id: Candidate the voter voted for; 0 until a vote
        is cast and fixed afterwards.
    '''
    name: str
    image: str = ''
    is_registered: bool = True
    has_voted: bool = False
    voted_candidate_id: int = 0


@simple_serialization
@dataclasses.dataclass
class ElectionData:
    '''A named, self-contained snapshot of one election in the registry.'''
    id: str
    name: str
    state: ElectionState = ElectionState.CREATED
    candidates: Dict[int, Candidate] = dataclasses.field(default_factory=dict)
    voters: Dict[Identity, Voter] = dataclasses.field(default_factory=dict)
    start_time: Optional[int] = None
    end_time: Optional[int] = None
    voting_method: VotingMethod = VotingMethod.SIMPLE


@simple_serialization
@dataclasses.dataclass(frozen=True)
class AuditEntry:
    '''An immutable record of one state-changing action.

    :param timestamp: Host-supplied time of the action.
    :param action: Machine-readable action name, e.g. ``vote``.
    :param actor: Identity of the caller, or of the peer ledger that sent a
        received message (None if the host did not name it).
    :param details: Human-readable description. Mentions the election id the
        action belongs to, which is what the audit trail filter matches on.
    :param tx_hash: Host transaction reference; empty if none was supplied.
    '''
    timestamp: int
    action: str
    actor: Any
    details: str
    tx_hash: str = ''


@simple_serialization
@dataclasses.dataclass
class CandidatePerformance:
    vote_share: float = 0.0
    trend: str = 'stable'
    growth_rate: float = 0.0


@simple_serialization
@dataclasses.dataclass
class VoterEngagement:
    registered: int = 0
    voted: int = 0
    participation_rate: float = 0.0
    average_time_to_vote: float = 0.0


@simple_serialization
@dataclasses.dataclass
class AnalyticsData:
    '''Derived view of voting activity, maintained by :mod:`analytics`.

    :param votes_over_time: ``(timestamp, cumulative vote count)`` pairs, one
        per vote cast or peer report that changed the counts, in order.
    :param candidate_performance: Performance per candidate id.
    :param voter_engagement: Turnout figures.
    '''
    votes_over_time: List[Tuple[int, int]] = dataclasses.field(
        default_factory=list
    )
    candidate_performance: Dict[int, CandidatePerformance] = dataclasses.field(
        default_factory=dict
    )
    voter_engagement: VoterEngagement = dataclasses.field(
        default_factory=VoterEngagement
    )
