
import sys
import os

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import trustballot.registry
import trustballot.state
from trustballot.entity import ElectionState, VotingMethod


@pytest.fixture
def ballot():
    ballot = trustballot.state.Ballot()
    ballot.bind_owner_if_unset('admin')
    return ballot


@pytest.fixture
def registry():
    return trustballot.registry.ElectionRegistry()


def test_create_sequential_ids(ballot, registry):
    assert registry.create_election(ballot, 'admin', 'Board') == 'election_1'
    assert registry.create_election(ballot, 'admin', 'Chair') == 'election_2'
    assert len(registry) == 2
    created = registry.get_election('election_2')
    assert created.name == 'Chair'
    assert created.state == ElectionState.CREATED
    assert created.candidates == {}
    assert created.voters == {}
    assert created.voting_method == VotingMethod.SIMPLE


def test_create_leaves_active_ballot(ballot, registry):
    ballot.start_election('admin')
    ballot.add_candidate('admin', 'Alice')
    registry.create_election(ballot, 'admin', 'Board')
    assert ballot.state == ElectionState.ONGOING
    assert list(ballot.candidates) == [1]
    assert ballot.current_election_id is None


def test_create_unauthorized(ballot, registry):
    with pytest.raises(trustballot.state.Unauthorized):
        registry.create_election(ballot, 'mallory', 'Board')
    assert len(registry) == 0


def test_switch_not_found(ballot, registry):
    with pytest.raises(trustballot.state.ElectionNotFound):
        registry.switch_election(ballot, 'admin', 'election_7')
    assert ballot.current_election_id is None


def test_switch_loads_snapshot(ballot, registry):
    ballot.start_election('admin')
    ballot.add_candidate('admin', 'Unsaved')
    registry.create_election(ballot, 'admin', 'Board')
    registry.switch_election(ballot, 'admin', 'election_1')
    assert ballot.current_election_id == 'election_1'
    assert ballot.state == ElectionState.CREATED
    assert ballot.candidates == {}
    assert ballot.next_candidate_id == 1


def test_switch_saves_back(ballot, registry):
    registry.create_election(ballot, 'admin', 'Board')
    registry.create_election(ballot, 'admin', 'Chair')
    registry.switch_election(ballot, 'admin', 'election_1')
    ballot.start_election('admin')
    ballot.add_candidate('admin', 'Alice')
    ballot.add_candidate('admin', 'Bob')
    ballot.register_voter('admin', 'v1', 'V1')
    ballot.vote('v1', 2)
    registry.switch_election(ballot, 'admin', 'election_2')
    assert ballot.candidates == {}
    saved = registry.get_election('election_1')
    assert saved.state == ElectionState.ONGOING
    assert saved.candidates[2].vote_count == 1
    assert saved.voters['v1'].voted_candidate_id == 2
    registry.switch_election(ballot, 'admin', 'election_1')
    assert ballot.candidates[2].vote_count == 1
    assert ballot.next_candidate_id == 3
    assert ballot.add_candidate('admin', 'Carol').id == 3


def test_loaded_data_is_copied(ballot, registry):
    registry.create_election(ballot, 'admin', 'Board')
    registry.switch_election(ballot, 'admin', 'election_1')
    ballot.add_candidate('admin', 'Alice')
    assert registry.elections['election_1'].candidates == {}


def test_get_election_live_view(ballot, registry):
    registry.create_election(ballot, 'admin', 'Board')
    registry.switch_election(ballot, 'admin', 'election_1')
    ballot.start_election('admin', now=5)
    ballot.add_candidate('admin', 'Alice')
    live = registry.get_election('election_1', ballot)
    assert live.state == ElectionState.ONGOING
    assert live.start_time == 5
    assert live.candidates[1].name == 'Alice'
    assert registry.get_election('election_1').state == ElectionState.CREATED
    assert registry.get_election('election_9', ballot) is None


def test_get_all_elections(ballot, registry):
    registry.create_election(ballot, 'admin', 'Board')
    registry.create_election(ballot, 'admin', 'Chair')
    listed = registry.get_all_elections()
    assert [eid for eid, elec in listed] == ['election_1', 'election_2']
    assert [elec.name for eid, elec in listed] == ['Board', 'Chair']


def test_initial_slot_discarded_on_switch(ballot, registry):
    ballot.start_election('admin')
    ballot.add_candidate('admin', 'Unregistered')
    registry.create_election(ballot, 'admin', 'Board')
    registry.switch_election(ballot, 'admin', 'election_1')
    registry.switch_election(ballot, 'admin', 'election_1')
    assert ballot.candidates == {}
    assert all(
        data.candidates == {} for _, data in registry.get_all_elections()
    )
