'''Single-election state: owner rule, lifecycle and vote recording.

The :class:`Ballot` holds the active election: its lifecycle state, the
candidate and voter tables, the next candidate id and the voting method,
together with the ledger owner. Its mutating methods check every rule before
touching any field and raise an :class:`ElectionError` subclass on violation,
so a rejected call never leaves the ballot partially changed.

Each successful mutation returns the event describing it
(see :mod:`trustballot.event`).
'''

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from trustballot import event
from trustballot.entity import (
    Candidate, Voter, ElectionState, VotingMethod, Identity
)
from trustballot.persist import simple_serialization

logger = logging.getLogger(__name__)


class ElectionError(Exception):
    '''An operation is not permitted by the election rules.

    Subclasses name the specific rule; ``kind`` is the stable identifier the
    host can report.
    '''
    kind = 'ElectionError'


class Unauthorized(ElectionError):
    '''A caller other than the owner attempted an admin-only action.

    :param caller: Identity of the rejected caller.
    :param action: Name of the action attempted.
    '''
    kind = 'Unauthorized'

    def __init__(self, caller: Any, action: str):
        self.caller = caller
        self.action = action
        super().__init__(f'only the owner can {action}, not {caller!r}')


class InvalidState(ElectionError):
    '''The operation is not valid in the current election state.'''
    kind = 'InvalidState'

    def __init__(self, state: ElectionState, action: str):
        self.state = state
        self.action = action
        super().__init__(f'cannot {action} while election is {state.value}')


class AlreadyRegistered(ElectionError):
    kind = 'AlreadyRegistered'

    def __init__(self, voter: Any):
        self.voter = voter
        super().__init__(f'voter already registered: {voter!r}')


class AlreadyVoted(ElectionError):
    kind = 'AlreadyVoted'

    def __init__(self, voter: Any):
        self.voter = voter
        super().__init__(f'voter already voted: {voter!r}')


class NotRegistered(ElectionError):
    kind = 'NotRegistered'

    def __init__(self, voter: Any):
        self.voter = voter
        super().__init__(f'not a registered voter: {voter!r}')


class UnknownCandidate(ElectionError):
    kind = 'UnknownCandidate'

    def __init__(self, candidate_id: int):
        self.candidate_id = candidate_id
        super().__init__(f'candidate does not exist: {candidate_id}')


class ElectionNotFound(ElectionError):
    kind = 'ElectionNotFound'

    def __init__(self, election_id: str):
        self.election_id = election_id
        super().__init__(f'election not found: {election_id!r}')


class UnsupportedVotingMethod(ElectionError):
    '''A vote was cast under a method that has no tally rule.'''
    kind = 'UnsupportedVotingMethod'

    def __init__(self, method: VotingMethod):
        self.method = method
        super().__init__(f'{method.value} votes cannot be tallied')


@simple_serialization
class Ballot:
    '''The active election together with the ledger owner.

    :param owner: Identity bound as the owner; None until the first
        owner-gated call binds its caller.
    :param state: Current lifecycle state.
    :param candidates: Candidates by id.
    :param voters: Voters by identity.
    :param next_candidate_id: Id to assign to the next candidate added.
    :param voting_method: Voting method of the active election.
    :param current_election_id: Registry id of the active election, if it was
        loaded from the registry.
    :param start_time: Time the election was last started.
    :param end_time: Time the election was last ended.
    '''
    def __init__(self,
                 owner: Optional[Identity] = None,
                 state: ElectionState = ElectionState.CREATED,
                 candidates: Optional[Dict[int, Candidate]] = None,
                 voters: Optional[Dict[Identity, Voter]] = None,
                 next_candidate_id: int = 1,
                 voting_method: VotingMethod = VotingMethod.SIMPLE,
                 current_election_id: Optional[str] = None,
                 start_time: Optional[int] = None,
                 end_time: Optional[int] = None,
                 ):
        self.owner = owner
        self.state = state
        self.candidates = candidates if candidates is not None else {}
        self.voters = voters if voters is not None else {}
        self.next_candidate_id = next_candidate_id
        self.voting_method = voting_method
        self.current_election_id = current_election_id
        self.start_time = start_time
        self.end_time = end_time

    def bind_owner_if_unset(self, caller: Identity) -> Identity:
        '''Bind the caller as owner if nobody is bound yet; return the owner.'''
        if self.owner is None:
            logger.info('binding %r as ledger owner', caller)
            self.owner = caller
        return self.owner

    def is_owner(self, caller: Identity) -> bool:
        return self.owner is not None and self.owner == caller

    def require_owner(self, caller: Identity, action: str) -> None:
        if not self.is_owner(caller):
            raise Unauthorized(caller, action)

    def add_candidate(self,
                      caller: Identity,
                      name: str,
                      meta: str = '',
                      ) -> event.CandidateAdded:
        self.require_owner(caller, 'add candidates')
        cand_id = self.next_candidate_id
        self.next_candidate_id += 1
        self.candidates[cand_id] = Candidate(cand_id, name, meta)
        logger.info('added candidate %d: %s', cand_id, name)
        return event.CandidateAdded(id=cand_id, name=name)

    def register_voter(self,
                       caller: Identity,
                       voter: Identity,
                       name: str,
                       image: str = '',
                       ) -> event.VoterRegistered:
        self.require_owner(caller, 'register voters')
        return self._register(voter, name, image)

    def self_register(self,
                      caller: Identity,
                      name: str,
                      image: str = '',
                      ) -> event.VoterRegistered:
        return self._register(caller, name, image)

    def check_unregistered(self, voters: List[Identity]) -> None:
        '''Fail if any of the voters is registered already or listed twice.'''
        seen = set()
        for voter in voters:
            if voter in self.voters or voter in seen:
                raise AlreadyRegistered(voter)
            seen.add(voter)

    def _register(self,
                  voter: Identity,
                  name: str,
                  image: str,
                  ) -> event.VoterRegistered:
        if voter in self.voters:
            raise AlreadyRegistered(voter)
        self.voters[voter] = Voter(name, image)
        logger.info('registered voter %r', voter)
        return event.VoterRegistered(voter=voter, name=name)

    def start_election(self,
                       caller: Identity,
                       now: Optional[int] = None,
                       ) -> event.ElectionStarted:
        '''Start a new election in this slot.

        This is a hard reset: all candidates and voters registered so far are
        discarded and candidate ids restart at 1.
        '''
        self.require_owner(caller, 'start the election')
        if self.state == ElectionState.ONGOING:
            raise InvalidState(self.state, 'start the election')
        self.begin(now)
        return event.ElectionStarted()

    def end_election(self,
                     caller: Identity,
                     now: Optional[int] = None,
                     ) -> event.ElectionEnded:
        self.require_owner(caller, 'end the election')
        if self.state != ElectionState.ONGOING:
            raise InvalidState(self.state, 'end the election')
        self.finish(now)
        return event.ElectionEnded()

    def begin(self, now: Optional[int] = None) -> None:
        '''Move to the ongoing state, discarding candidates and voters.

        Shared by a local start and a start reported by a peer ledger; no
        rules are checked.
        '''
        self.candidates.clear()
        self.voters.clear()
        self.next_candidate_id = 1
        self.state = ElectionState.ONGOING
        self.start_time = now
        self.end_time = None
        logger.info('election started')

    def finish(self, now: Optional[int] = None) -> None:
        self.state = ElectionState.ENDED
        self.end_time = now
        logger.info('election ended')

    def vote(self, caller: Identity, candidate_id: int) -> event.VoteCast:
        '''Record a simple vote of the caller for a candidate.

        :returns: A vote event carrying the candidate's vote count after this
            vote.
        '''
        if self.state != ElectionState.ONGOING:
            raise InvalidState(self.state, 'vote')
        voter = self.voters.get(caller)
        if voter is None:
            raise NotRegistered(caller)
        if voter.has_voted:
            raise AlreadyVoted(caller)
        candidate = self.candidates.get(candidate_id)
        if candidate is None:
            raise UnknownCandidate(candidate_id)
        candidate.vote_count += 1
        voter.has_voted = True
        voter.voted_candidate_id = candidate_id
        logger.debug('%r voted for %d, now at %d',
                     caller, candidate_id, candidate.vote_count)
        return event.VoteCast(
            voter=caller,
            candidate_id=candidate_id,
            vote_count=candidate.vote_count,
        )

    def set_voting_method(self,
                          caller: Identity,
                          method: VotingMethod,
                          ) -> event.VotingMethodChanged:
        self.require_owner(caller, 'set the voting method')
        if self.state == ElectionState.ONGOING:
            raise InvalidState(self.state, 'change the voting method')
        self.voting_method = method
        logger.info('voting method set to %s', method.value)
        return event.VotingMethodChanged(method=method)

    # TODO: tally rules for ranked, approval and weighted ballots; until then
    # these only reject.
    def vote_ranked_choice(self,
                           caller: Identity,
                           rankings: List[Tuple[int, int]],
                           ) -> event.Event:
        raise UnsupportedVotingMethod(VotingMethod.RANKED_CHOICE)

    def vote_approval(self,
                      caller: Identity,
                      candidate_ids: List[int],
                      ) -> event.Event:
        raise UnsupportedVotingMethod(VotingMethod.APPROVAL)

    def vote_weighted(self,
                      caller: Identity,
                      votes: List[Tuple[int, int]],
                      ) -> event.Event:
        raise UnsupportedVotingMethod(VotingMethod.WEIGHTED)

    def voted_count(self) -> int:
        return sum(1 for voter in self.voters.values() if voter.has_voted)

    def __repr__(self) -> str:
        return (
            f'<Ballot({self.state.value},{len(self.candidates)} candidates,'
            f'{len(self.voters)} voters)>'
        )
