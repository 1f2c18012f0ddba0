'''The ledger: the entry point through which the host drives the core.

The :class:`Ledger` owns the whole application state - the active
:class:`trustballot.state.Ballot`, the
:class:`trustballot.registry.ElectionRegistry`, the
:class:`trustballot.audit.AuditTrail` and the
:class:`trustballot.analytics.Analytics` tracker - and exposes three calls:

-   :meth:`Ledger.apply` executes an operation from
    :mod:`trustballot.operation` on behalf of a caller and returns the events
    it produced, or raises :class:`trustballot.state.ElectionError`.
-   :meth:`Ledger.answer` answers a query with a response from
    :mod:`trustballot.event`. Queries never fail.
-   :meth:`Ledger.receive` folds a message from a peer ledger (see
    :mod:`trustballot.crosschain`).

Each call is atomic. Every handler checks all of its rules (for a batch, the
rules of every item) before it changes anything, and an owner bound by a
call that is then rejected is unbound again, so a rejected operation leaves
no trace. Nothing is copied on the way, so a call costs the same however long
the election has been running. Every successful operation, and every peer
message that can change the tables, is recorded in the audit trail.

The ledger is configured through constructor arguments only. The host
supplies the current time and transaction hash with each call.
'''

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Optional

import trustballot.crosschain
import trustballot.operation as op
import trustballot.tally
from trustballot import event
from trustballot.analytics import Analytics
from trustballot.audit import AuditTrail
from trustballot.crosschain import CrossChainMessage
from trustballot.entity import ElectionState, Identity
from trustballot.persist import simple_serialization
from trustballot.registry import ElectionRegistry
from trustballot.state import Ballot, ElectionError

logger = logging.getLogger(__name__)


@simple_serialization
class Ledger:
    '''Election ledger state with its operation and query dispatcher.

    :param ballot: The active election and ledger owner.
    :param registry: Named elections.
    :param audit: Audit trail.
    :param analytics: Analytics tracker of the active election.
    :param announce_winner: If True, a successful :class:`EndElection`
        operation is followed by a :class:`WinnerDeclared` event when a
        unique winner exists. Otherwise, announcing the winner is left to the
        host (via the :class:`GetWinner` query).
    '''
    def __init__(self,
                 ballot: Optional[Ballot] = None,
                 registry: Optional[ElectionRegistry] = None,
                 audit: Optional[AuditTrail] = None,
                 analytics: Optional[Analytics] = None,
                 announce_winner: bool = False,
                 ):
        self.ballot = ballot if ballot is not None else Ballot()
        self.registry = registry if registry is not None else ElectionRegistry()
        self.audit = audit if audit is not None else AuditTrail()
        self.analytics = analytics if analytics is not None else Analytics()
        self.announce_winner = announce_winner

    def apply(self,
              caller: Identity,
              operation: op.Operation,
              now: int = 0,
              tx_hash: str = '',
              ) -> List[event.Event]:
        '''Execute an operation on behalf of a caller.

        If the operation is gated by the owner rule and no owner is bound
        yet, the caller becomes the owner, provided the operation succeeds.

        :param caller: Authenticated identity of the caller.
        :param operation: The operation to execute.
        :param now: Current time as supplied by the host.
        :param tx_hash: Host transaction reference, recorded in the audit
            trail.
        :returns: Events produced, one per applied item.
        :raises ElectionError: If the operation is not permitted; the ledger
            is left unchanged.
        '''
        try:
            handler_name = OPERATION_HANDLERS[type(operation)]
        except KeyError as e:
            raise ValueError(f'unknown operation: {operation!r}') from e
        binds_owner = (
            type(operation) in op.ADMIN_OPERATIONS and self.ballot.owner is None
        )
        if binds_owner:
            self.ballot.bind_owner_if_unset(caller)
        try:
            events = getattr(self, handler_name)(caller, operation, now)
        except ElectionError as err:
            if binds_owner:
                self.ballot.owner = None
            logger.info('rejected %s from %r: %s',
                        type(operation).__name__, caller, err)
            raise
        for evt in events:
            if type(evt) in AUDITED_EVENTS:
                action, details = AUDITED_EVENTS[type(evt)](evt)
                self._audit(caller, action, details, now, tx_hash,
                            tag=not isinstance(evt, UNTAGGED_EVENTS))
        return events

    def answer(self, query: op.Query) -> event.Response:
        '''Answer a read-only query.

        Unknown candidates, voters and elections resolve to None or empty
        results. The response holds copies, so modifying it does not affect
        the ledger.
        '''
        try:
            handler_name = QUERY_HANDLERS[type(query)]
        except KeyError as e:
            raise ValueError(f'unknown query: {query!r}') from e
        return copy.deepcopy(getattr(self, handler_name)(query))

    def receive(self,
                message: CrossChainMessage,
                now: int = 0,
                tx_hash: str = '',
                source: Optional[Identity] = None,
                ) -> List[event.Event]:
        '''Fold a message received from a peer ledger into the local state.

        Messages that can change the tables are recorded in the audit trail
        with the sending peer as the actor.

        :param source: Identity of the sending peer, if known to the host.
        :raises ElectionError: If the message refers to an unknown candidate;
            the ledger is left unchanged.
        '''
        state = self.ballot.state
        total = trustballot.tally.total_votes(self.ballot.candidates)
        events = trustballot.crosschain.fold(self.ballot, message, now)
        if (self.ballot.state != state
                and self.ballot.state == ElectionState.ONGOING):
            self.analytics.reset(self.ballot)
        elif trustballot.tally.total_votes(self.ballot.candidates) != total:
            self.analytics.record_tally(self.ballot, now)
        else:
            self.analytics.refresh(self.ballot)
        if type(message) in AUDITED_MESSAGES:
            action, details = AUDITED_MESSAGES[type(message)](message)
            self._audit(source, action, details, now, tx_hash)
        logger.debug('folded %s at %s', type(message).__name__, now)
        return events

    def _audit(self,
               actor: Optional[Identity],
               action: str,
               details: str,
               now: int,
               tx_hash: str,
               tag: bool = True,
               ) -> None:
        election_id = self.ballot.current_election_id
        if tag and election_id is not None:
            details += f' [{election_id}]'
        self.audit.add_audit_entry(action, actor, details, tx_hash, now)

    # operation handlers; each checks its rules before changing anything

    def _add_candidate(self,
                       caller: Identity,
                       operation: op.AddCandidate,
                       now: int,
                       ) -> List[event.Event]:
        evt = self.ballot.add_candidate(caller, operation.name, operation.meta)
        self.analytics.refresh(self.ballot)
        return [evt]

    def _register_voter(self,
                        caller: Identity,
                        operation: op.RegisterVoter,
                        now: int,
                        ) -> List[event.Event]:
        evt = self.ballot.register_voter(
            caller, operation.voter, operation.name, operation.image
        )
        self.analytics.record_registration(self.ballot, operation.voter, now)
        return [evt]

    def _self_register(self,
                       caller: Identity,
                       operation: op.SelfRegister,
                       now: int,
                       ) -> List[event.Event]:
        evt = self.ballot.self_register(caller, operation.name, operation.image)
        self.analytics.record_registration(self.ballot, caller, now)
        return [evt]

    def _start_election(self,
                        caller: Identity,
                        operation: op.StartElection,
                        now: int,
                        ) -> List[event.Event]:
        evt = self.ballot.start_election(caller, now)
        self.analytics.reset(self.ballot)
        return [evt]

    def _end_election(self,
                      caller: Identity,
                      operation: op.EndElection,
                      now: int,
                      ) -> List[event.Event]:
        events = [self.ballot.end_election(caller, now)]
        if self.announce_winner:
            winner = trustballot.tally.get_winner(
                self.ballot.state, self.ballot.candidates
            )
            if winner.status == trustballot.tally.WINNER_DECLARED:
                events.append(event.WinnerDeclared(
                    id=winner.id, name=winner.name, votes=winner.votes
                ))
        return events

    def _vote(self,
              caller: Identity,
              operation: op.Vote,
              now: int,
              ) -> List[event.Event]:
        evt = self.ballot.vote(caller, operation.candidate_id)
        self.analytics.record_vote(self.ballot, caller, now)
        return [evt]

    def _create_election(self,
                         caller: Identity,
                         operation: op.CreateElection,
                         now: int,
                         ) -> List[event.Event]:
        election_id = self.registry.create_election(
            self.ballot, caller, operation.name
        )
        return [event.ElectionCreated(election_id=election_id,
                                      name=operation.name)]

    def _switch_election(self,
                         caller: Identity,
                         operation: op.SwitchElection,
                         now: int,
                         ) -> List[event.Event]:
        self.registry.switch_election(
            self.ballot, caller, operation.election_id
        )
        self.analytics.reset(self.ballot)
        return [event.ElectionSwitched(election_id=operation.election_id)]

    def _set_voting_method(self,
                           caller: Identity,
                           operation: op.SetVotingMethod,
                           now: int,
                           ) -> List[event.Event]:
        return [self.ballot.set_voting_method(caller, operation.method)]

    def _vote_ranked_choice(self,
                            caller: Identity,
                            operation: op.VoteRankedChoice,
                            now: int,
                            ) -> List[event.Event]:
        return [self.ballot.vote_ranked_choice(caller, operation.rankings)]

    def _vote_approval(self,
                       caller: Identity,
                       operation: op.VoteApproval,
                       now: int,
                       ) -> List[event.Event]:
        return [self.ballot.vote_approval(caller, operation.candidate_ids)]

    def _vote_weighted(self,
                       caller: Identity,
                       operation: op.VoteWeighted,
                       now: int,
                       ) -> List[event.Event]:
        return [self.ballot.vote_weighted(caller, operation.votes)]

    def _add_candidates(self,
                        caller: Identity,
                        operation: op.AddCandidates,
                        now: int,
                        ) -> List[event.Event]:
        # adding cannot fail once the owner is confirmed
        self.ballot.require_owner(caller, 'add candidates')
        events = []
        for name, meta in operation.candidates:
            events.extend(
                self._add_candidate(caller, op.AddCandidate(name, meta), now)
            )
        return events

    def _register_voters(self,
                         caller: Identity,
                         operation: op.RegisterVoters,
                         now: int,
                         ) -> List[event.Event]:
        self.ballot.require_owner(caller, 'register voters')
        self.ballot.check_unregistered(
            [voter for voter, _, _ in operation.voters]
        )
        events = []
        for voter, name, image in operation.voters:
            events.extend(self._register_voter(
                caller, op.RegisterVoter(voter, name, image), now
            ))
        return events

    # query handlers

    def _get_state(self, query: op.Query) -> event.Response:
        return event.StateResponse(self.ballot.state)

    def _get_candidate(self, query: op.Query) -> event.Response:
        return event.CandidateResponse(self.ballot.candidates.get(query.id))

    def _get_all_candidates(self, query: op.Query) -> event.Response:
        return event.CandidatesResponse(
            trustballot.tally.ordered_candidates(self.ballot.candidates)
        )

    def _get_voter(self, query: op.Query) -> event.Response:
        return event.VoterResponse(self.ballot.voters.get(query.address))

    def _get_all_voters(self, query: op.Query) -> event.Response:
        return event.VotersResponse(list(self.ballot.voters.items()))

    def _get_winner(self, query: op.Query) -> event.Response:
        return event.WinnerResponse(trustballot.tally.get_winner(
            self.ballot.state, self.ballot.candidates
        ))

    def _is_voter_registered(self, query: op.Query) -> event.Response:
        voter = self.ballot.voters.get(query.address)
        return event.BoolResponse(voter is not None and voter.is_registered)

    def _has_voted(self, query: op.Query) -> event.Response:
        voter = self.ballot.voters.get(query.address)
        return event.BoolResponse(voter is not None and voter.has_voted)

    def _get_performance_metrics(self, query: op.Query) -> event.Response:
        return event.PerformanceMetricsResponse(
            *trustballot.tally.get_performance_metrics(self.ballot.candidates)
        )

    def _get_statistics(self, query: op.Query) -> event.Response:
        return event.StatisticsResponse(*trustballot.tally.get_statistics(
            self.ballot.candidates, self.ballot.voters
        ))

    def _get_leaderboard(self, query: op.Query) -> event.Response:
        return event.LeaderboardResponse(
            trustballot.tally.get_leaderboard(self.ballot.candidates)
        )

    def _get_all_elections(self, query: op.Query) -> event.Response:
        return event.ElectionsResponse(
            self.registry.get_all_elections(self.ballot)
        )

    def _get_election(self, query: op.Query) -> event.Response:
        return event.ElectionResponse(
            self.registry.get_election(query.election_id, self.ballot)
        )

    def _get_voting_method(self, query: op.Query) -> event.Response:
        return event.VotingMethodResponse(self.ballot.voting_method)

    def _get_audit_trail(self, query: op.Query) -> event.Response:
        return event.AuditTrailResponse(
            self.audit.get_audit_trail(query.election_id)
        )

    def _get_advanced_analytics(self, query: op.Query) -> event.Response:
        return event.AdvancedAnalyticsResponse(self.analytics.data)


OPERATION_HANDLERS: Dict[type, str] = {
    op.AddCandidate: '_add_candidate',
    op.RegisterVoter: '_register_voter',
    op.SelfRegister: '_self_register',
    op.StartElection: '_start_election',
    op.EndElection: '_end_election',
    op.Vote: '_vote',
    op.CreateElection: '_create_election',
    op.SwitchElection: '_switch_election',
    op.SetVotingMethod: '_set_voting_method',
    op.VoteRankedChoice: '_vote_ranked_choice',
    op.VoteApproval: '_vote_approval',
    op.VoteWeighted: '_vote_weighted',
    op.AddCandidates: '_add_candidates',
    op.RegisterVoters: '_register_voters',
}

QUERY_HANDLERS: Dict[type, str] = {
    op.GetState: '_get_state',
    op.GetCandidate: '_get_candidate',
    op.GetAllCandidates: '_get_all_candidates',
    op.GetVoter: '_get_voter',
    op.GetAllVoters: '_get_all_voters',
    op.GetWinner: '_get_winner',
    op.IsVoterRegistered: '_is_voter_registered',
    op.HasVoted: '_has_voted',
    op.GetPerformanceMetrics: '_get_performance_metrics',
    op.GetStatistics: '_get_statistics',
    op.GetLeaderboard: '_get_leaderboard',
    op.GetAllElections: '_get_all_elections',
    op.GetElection: '_get_election',
    op.GetVotingMethod: '_get_voting_method',
    op.GetAuditTrail: '_get_audit_trail',
    op.GetAdvancedAnalytics: '_get_advanced_analytics',
}

AUDITED_EVENTS: Dict[type, Any] = {
    event.CandidateAdded: lambda e: (
        'add_candidate', f'Added candidate {e.id}: {e.name}'
    ),
    event.VoterRegistered: lambda e: (
        'register_voter', f'Registered voter {e.voter}: {e.name}'
    ),
    event.ElectionStarted: lambda e: ('start_election', 'Started election'),
    event.ElectionEnded: lambda e: ('end_election', 'Ended election'),
    event.VoteCast: lambda e: (
        'vote', f'Vote cast for candidate {e.candidate_id}'
    ),
    event.ElectionCreated: lambda e: (
        'create_election', f'Created election: {e.name} ({e.election_id})'
    ),
    event.ElectionSwitched: lambda e: (
        'switch_election', f'Switched to election: {e.election_id}'
    ),
    event.VotingMethodChanged: lambda e: (
        'set_voting_method', f'Voting method set to {e.method.value}'
    ),
}
'''Audit action name and details for each event produced by an operation.'''

UNTAGGED_EVENTS = (event.ElectionCreated, event.ElectionSwitched)
'''Events whose audit details name their election already.'''

AUDITED_MESSAGES: Dict[type, Any] = {
    trustballot.crosschain.VoteUpdate: lambda m: (
        'peer_vote_update',
        f'Peer reported {m.vote_count} votes for candidate {m.candidate_id}'
    ),
    trustballot.crosschain.ElectionStateUpdate: lambda m: (
        'peer_state_update', f'Peer reported election {m.state.value}'
    ),
    trustballot.crosschain.CandidateAdded: lambda m: (
        'peer_candidate_added',
        f'Peer added candidate {m.candidate.id}: {m.candidate.name}'
    ),
}
'''Audit action name and details for each peer message that can change the
tables; winner announcements change nothing and are not recorded.'''
