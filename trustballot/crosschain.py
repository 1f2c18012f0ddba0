'''Messages exchanged with peer ledgers and their folding into local state.

Delivering and reconciling messages between chains is the host's job; this
module only defines the message shapes and how a received message changes the
local :class:`trustballot.state.Ballot`. Folding is monotonic: vote counts
only grow and the lifecycle only moves forward, so a message delivered twice
has no further effect.
'''

from __future__ import annotations

import dataclasses
import logging
from typing import List, Optional, Tuple

from trustballot import event
from trustballot.entity import Candidate, ElectionState
from trustballot.persist import simple_serialization
from trustballot.state import Ballot, UnknownCandidate

logger = logging.getLogger(__name__)


class CrossChainMessage:
    '''Base of all cross-chain message variants.'''
    pass


@simple_serialization
@dataclasses.dataclass(frozen=True)
class VoteUpdate(CrossChainMessage):
    candidate_id: int
    vote_count: int


@simple_serialization
@dataclasses.dataclass(frozen=True)
class ElectionStateUpdate(CrossChainMessage):
    state: ElectionState


@simple_serialization
@dataclasses.dataclass(frozen=True)
class CandidateAdded(CrossChainMessage):
    candidate: Candidate


@simple_serialization
@dataclasses.dataclass(frozen=True)
class WinnerAnnouncement(CrossChainMessage):
    winner: Tuple[int, str, int]


def fold_vote_update(ballot: Ballot,
                     message: VoteUpdate,
                     now: Optional[int] = None,
                     ) -> event.Event:
    '''Raise the local count of a candidate to the count reported by a peer.'''
    candidate = ballot.candidates.get(message.candidate_id)
    if candidate is None:
        raise UnknownCandidate(message.candidate_id)
    if message.vote_count > candidate.vote_count:
        logger.debug('candidate %d raised from %d to %d by peer',
                     candidate.id, candidate.vote_count, message.vote_count)
        candidate.vote_count = message.vote_count
    return event.CandidatesUpdated()


def fold_election_state(ballot: Ballot,
                        message: ElectionStateUpdate,
                        now: Optional[int] = None,
                        ) -> event.Event:
    '''Adopt a peer's election state if it is further in the lifecycle.

    Adopting ``Ongoing`` starts the election exactly as a local start would,
    clearing the candidate and voter tables.
    '''
    if message.state.order > ballot.state.order:
        logger.info('election state %s adopted from peer', message.state.value)
        if message.state == ElectionState.ONGOING:
            ballot.begin(now)
        else:
            ballot.finish(now)
    return event.ElectionStateChanged(state=ballot.state)


def fold_candidate_added(ballot: Ballot,
                         message: CandidateAdded,
                         now: Optional[int] = None,
                         ) -> event.Event:
    '''Insert a candidate announced by a peer unless its id is taken.'''
    cand = message.candidate
    if cand.id not in ballot.candidates:
        ballot.candidates[cand.id] = dataclasses.replace(cand)
        ballot.next_candidate_id = max(ballot.next_candidate_id, cand.id + 1)
    return event.CandidatesUpdated()


def fold_winner_announcement(ballot: Ballot,
                             message: WinnerAnnouncement,
                             now: Optional[int] = None,
                             ) -> event.Event:
    cand_id, name, votes = message.winner
    return event.WinnerDeclared(id=cand_id, name=name, votes=votes)


FOLDERS = {
    VoteUpdate: fold_vote_update,
    ElectionStateUpdate: fold_election_state,
    CandidateAdded: fold_candidate_added,
    WinnerAnnouncement: fold_winner_announcement,
}


def fold(ballot: Ballot,
         message: CrossChainMessage,
         now: Optional[int] = None,
         ) -> List[event.Event]:
    '''Fold a single cross-chain message into the ballot.

    Rules are checked before anything changes, so a rejected message leaves
    the ballot untouched.

    :param now: Time of receipt, used as the start or end time when the
        peer moves the lifecycle forward.
    :raises ValueError: If the message is not a known variant.
    '''
    try:
        folder = FOLDERS[type(message)]
    except KeyError as e:
        raise ValueError(f'unknown cross-chain message: {message!r}') from e
    return [folder(ballot, message, now)]
