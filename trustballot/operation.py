'''Operations and queries accepted by the ledger.

Operations change state and are submitted through
:meth:`trustballot.ledger.Ledger.apply` together with the caller identity;
queries are read-only and answered by
:meth:`trustballot.ledger.Ledger.answer`.

Operations fall into three groups:

-   **Admin** operations, allowed to the owner only: :class:`AddCandidate`,
    :class:`RegisterVoter`, :class:`StartElection`, :class:`EndElection`,
    :class:`CreateElection`, :class:`SwitchElection`,
    :class:`SetVotingMethod`.
-   **Voter** operations: :class:`SelfRegister`, :class:`Vote` and the
    method-specific :class:`VoteRankedChoice`, :class:`VoteApproval`,
    :class:`VoteWeighted`.
-   **Batch** operations (:class:`AddCandidates`, :class:`RegisterVoters`)
    that apply a single-item admin operation repeatedly, all or nothing.
'''

from __future__ import annotations

import dataclasses
from typing import Any, List, Optional, Tuple

from trustballot.entity import VotingMethod
from trustballot.persist import simple_serialization


class Operation:
    '''Base of all operation variants.'''
    pass


class BatchOperation(Operation):
    '''Base of operations applying many single-item operations at once.'''
    pass


@simple_serialization
@dataclasses.dataclass(frozen=True)
class AddCandidate(Operation):
    name: str
    meta: str = ''


@simple_serialization
@dataclasses.dataclass(frozen=True)
class RegisterVoter(Operation):
    voter: Any
    name: str
    image: str = ''


@simple_serialization
@dataclasses.dataclass(frozen=True)
class SelfRegister(Operation):
    name: str
    image: str = ''


@simple_serialization
@dataclasses.dataclass(frozen=True)
class StartElection(Operation):
    pass


@simple_serialization
@dataclasses.dataclass(frozen=True)
class EndElection(Operation):
    pass


@simple_serialization
@dataclasses.dataclass(frozen=True)
class Vote(Operation):
    candidate_id: int


@simple_serialization
@dataclasses.dataclass(frozen=True)
class CreateElection(Operation):
    name: str


@simple_serialization
@dataclasses.dataclass(frozen=True)
class SwitchElection(Operation):
    election_id: str


@simple_serialization
@dataclasses.dataclass(frozen=True)
class SetVotingMethod(Operation):
    method: VotingMethod


@simple_serialization
@dataclasses.dataclass(frozen=True)
class VoteRankedChoice(Operation):
    '''A ranked ballot as ``(candidate_id, rank)`` pairs.'''
    rankings: Tuple[Tuple[int, int], ...]


@simple_serialization
@dataclasses.dataclass(frozen=True)
class VoteApproval(Operation):
    candidate_ids: Tuple[int, ...]


@simple_serialization
@dataclasses.dataclass(frozen=True)
class VoteWeighted(Operation):
    '''A weighted ballot as ``(candidate_id, weight)`` pairs.'''
    votes: Tuple[Tuple[int, int], ...]


@simple_serialization
@dataclasses.dataclass(frozen=True)
class AddCandidates(BatchOperation):
    '''Add candidates given as ``(name, meta)`` pairs, in order.'''
    candidates: Tuple[Tuple[str, str], ...]


@simple_serialization
@dataclasses.dataclass(frozen=True)
class RegisterVoters(BatchOperation):
    '''Register voters given as ``(voter, name, image)`` triples, in order.'''
    voters: Tuple[Tuple[Any, str, str], ...]


class Query:
    '''Base of all query variants.'''
    pass


@simple_serialization
@dataclasses.dataclass(frozen=True)
class GetState(Query):
    pass


@simple_serialization
@dataclasses.dataclass(frozen=True)
class GetCandidate(Query):
    id: int


@simple_serialization
@dataclasses.dataclass(frozen=True)
class GetAllCandidates(Query):
    pass


@simple_serialization
@dataclasses.dataclass(frozen=True)
class GetVoter(Query):
    address: Any


@simple_serialization
@dataclasses.dataclass(frozen=True)
class GetAllVoters(Query):
    pass


@simple_serialization
@dataclasses.dataclass(frozen=True)
class GetWinner(Query):
    pass


@simple_serialization
@dataclasses.dataclass(frozen=True)
class IsVoterRegistered(Query):
    address: Any


@simple_serialization
@dataclasses.dataclass(frozen=True)
class HasVoted(Query):
    address: Any


@simple_serialization
@dataclasses.dataclass(frozen=True)
class GetPerformanceMetrics(Query):
    pass


@simple_serialization
@dataclasses.dataclass(frozen=True)
class GetStatistics(Query):
    pass


@simple_serialization
@dataclasses.dataclass(frozen=True)
class GetLeaderboard(Query):
    pass


@simple_serialization
@dataclasses.dataclass(frozen=True)
class GetAllElections(Query):
    pass


@simple_serialization
@dataclasses.dataclass(frozen=True)
class GetElection(Query):
    election_id: str


@simple_serialization
@dataclasses.dataclass(frozen=True)
class GetVotingMethod(Query):
    pass


@simple_serialization
@dataclasses.dataclass(frozen=True)
class GetAuditTrail(Query):
    election_id: Optional[str] = None


@simple_serialization
@dataclasses.dataclass(frozen=True)
class GetAdvancedAnalytics(Query):
    pass


ADMIN_OPERATIONS: List[type] = [
    AddCandidate, RegisterVoter, StartElection, EndElection,
    CreateElection, SwitchElection, SetVotingMethod,
    AddCandidates, RegisterVoters,
]
'''Operation types that are gated by the owner rule.'''
