
import sys
import os

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import trustballot.crosschain as cc
import trustballot.event as ev
import trustballot.ledger
import trustballot.operation as op
import trustballot.state
from trustballot.entity import Candidate, ElectionState


@pytest.fixture
def ledger():
    ledger = trustballot.ledger.Ledger()
    ledger.apply('admin', op.StartElection())
    ledger.apply('admin', op.AddCandidates((('Alice', ''), ('Bob', ''))))
    return ledger


def analytics(ledger):
    return ledger.answer(op.GetAdvancedAnalytics()).analytics


def test_vote_update_monotonic(ledger):
    assert ledger.receive(cc.VoteUpdate(1, 5)) == [ev.CandidatesUpdated()]
    assert ledger.ballot.candidates[1].vote_count == 5
    ledger.receive(cc.VoteUpdate(1, 3))
    ledger.receive(cc.VoteUpdate(1, 5))
    assert ledger.ballot.candidates[1].vote_count == 5


def test_vote_update_moves_shares(ledger):
    ledger.receive(cc.VoteUpdate(1, 5), now=5)
    data = analytics(ledger)
    assert data.votes_over_time == [(5, 5)]
    perf = data.candidate_performance
    assert (perf[1].vote_share, perf[1].trend, perf[1].growth_rate) == (100.0, 'up', 100.0)
    assert (perf[2].vote_share, perf[2].trend) == (0.0, 'stable')
    # a stale report changes no count and adds no point
    ledger.receive(cc.VoteUpdate(1, 5), now=6)
    assert analytics(ledger).votes_over_time == [(5, 5)]


def test_vote_update_after_local_votes(ledger):
    ledger.apply('v1', op.SelfRegister('V1'), now=1)
    ledger.apply('v1', op.Vote(1), now=2)
    ledger.receive(cc.VoteUpdate(2, 3), now=3)
    data = analytics(ledger)
    assert data.votes_over_time == [(2, 1), (3, 4)]
    perf = data.candidate_performance
    assert (perf[1].vote_share, perf[1].trend) == (25.0, 'down')
    assert (perf[2].vote_share, perf[2].trend) == (75.0, 'up')
    assert data.voter_engagement.voted == 1


def test_vote_update_unknown(ledger):
    with pytest.raises(trustballot.state.UnknownCandidate):
        ledger.receive(cc.VoteUpdate(7, 1))
    assert len(ledger.audit) == 3


def test_peer_messages_audited(ledger):
    ledger.receive(cc.VoteUpdate(1, 50), now=8, tx_hash='0xpeer',
                   source='chain-b')
    ledger.receive(cc.ElectionStateUpdate(ElectionState.ENDED), now=9)
    ledger.receive(cc.CandidateAdded(Candidate(5, 'Eve')), now=10)
    entries = ledger.answer(op.GetAuditTrail()).entries
    assert len(entries) == 6
    vote_entry, state_entry, cand_entry = entries[3:]
    assert (vote_entry.timestamp, vote_entry.action, vote_entry.actor,
            vote_entry.tx_hash) == (8, 'peer_vote_update', 'chain-b', '0xpeer')
    assert vote_entry.details == 'Peer reported 50 votes for candidate 1'
    assert (state_entry.action, state_entry.actor) == ('peer_state_update', None)
    assert state_entry.details == 'Peer reported election Ended'
    assert cand_entry.details == 'Peer added candidate 5: Eve'


def test_peer_audit_tagged_with_election():
    ledger = trustballot.ledger.Ledger()
    ledger.apply('admin', op.CreateElection('Board'))
    ledger.apply('admin', op.SwitchElection('election_1'))
    ledger.apply('admin', op.StartElection())
    ledger.apply('admin', op.AddCandidate('Alice'))
    ledger.receive(cc.VoteUpdate(1, 2))
    entries = ledger.answer(op.GetAuditTrail('election_1')).entries
    assert entries[-1].action == 'peer_vote_update'


@pytest.mark.parametrize(('local', 'remote', 'expected'), [
    (ElectionState.ONGOING, ElectionState.ENDED, ElectionState.ENDED),
    (ElectionState.ONGOING, ElectionState.CREATED, ElectionState.ONGOING),
    (ElectionState.ENDED, ElectionState.ONGOING, ElectionState.ENDED),
    (ElectionState.CREATED, ElectionState.ONGOING, ElectionState.ONGOING),
])
def test_state_update_forward_only(ledger, local, remote, expected):
    ledger.ballot.state = local
    events = ledger.receive(cc.ElectionStateUpdate(remote))
    assert events == [ev.ElectionStateChanged(expected)]
    assert ledger.ballot.state == expected


def test_peer_start_resets_tables():
    ledger = trustballot.ledger.Ledger()
    ledger.apply('admin', op.AddCandidate('Early'), now=1)
    ledger.apply('v1', op.SelfRegister('V1'), now=2)
    ledger.receive(cc.ElectionStateUpdate(ElectionState.ONGOING), now=9)
    assert ledger.ballot.state == ElectionState.ONGOING
    assert ledger.ballot.candidates == {}
    assert ledger.ballot.voters == {}
    assert ledger.ballot.next_candidate_id == 1
    assert ledger.ballot.start_time == 9
    data = analytics(ledger)
    assert data.candidate_performance == {}
    assert data.voter_engagement.registered == 0
    ledger.apply('admin', op.AddCandidate('Alice'), now=10)
    assert ledger.answer(op.GetCandidate(1)).candidate.name == 'Alice'


def test_peer_end_keeps_tables(ledger):
    ledger.receive(cc.ElectionStateUpdate(ElectionState.ENDED), now=12)
    assert ledger.ballot.end_time == 12
    assert list(ledger.ballot.candidates) == [1, 2]


def test_candidate_added(ledger):
    ledger.receive(cc.CandidateAdded(Candidate(5, 'Eve', 'peer', 2)))
    assert ledger.ballot.candidates[5].name == 'Eve'
    assert ledger.ballot.next_candidate_id == 6
    ledger.receive(cc.CandidateAdded(Candidate(1, 'Impostor')))
    assert ledger.ballot.candidates[1].name == 'Alice'


def test_winner_announcement(ledger):
    before = ledger.answer(op.GetAllCandidates())
    assert ledger.receive(cc.WinnerAnnouncement((2, 'Bob', 9))) == [
        ev.WinnerDeclared(2, 'Bob', 9)
    ]
    assert ledger.answer(op.GetAllCandidates()) == before
    assert len(ledger.audit) == 3


def test_unknown_message(ledger):
    with pytest.raises(ValueError):
        ledger.receive(op.Vote(1))
