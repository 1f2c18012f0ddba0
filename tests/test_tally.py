
import sys
import os

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import trustballot.tally
from trustballot.entity import Candidate, ElectionState, Voter


def make_candidates(counts, names=None):
    if names is None:
        names = [chr(ord('A') + i) for i in range(len(counts))]
    return {
        i: Candidate(i, name, '', count)
        for i, (name, count) in enumerate(zip(names, counts), start=1)
    }


@pytest.mark.parametrize(('counts', 'expected'), [
    ([5, 5, 3], (0, '', 5, 'Election tied')),
    ([3, 5, 5], (0, '', 5, 'Election tied')),
    ([7, 3, 3], (1, 'A', 7, 'Winner declared')),
    ([3, 3, 7], (3, 'C', 7, 'Winner declared')),
    ([0, 0], (0, '', 0, 'No winner')),
    ([], (0, '', 0, 'No winner')),
    ([4], (1, 'A', 4, 'Winner declared')),
])
def test_winner(counts, expected):
    cands = make_candidates(counts)
    assert trustballot.tally.get_winner(ElectionState.ENDED, cands) == expected


@pytest.mark.parametrize('state', [ElectionState.CREATED, ElectionState.ONGOING])
def test_winner_before_end(state):
    cands = make_candidates([7, 3])
    assert trustballot.tally.get_winner(state, cands) is None


def test_winner_insertion_order_independent():
    forward = make_candidates([2, 9, 9])
    backward = dict(reversed(list(forward.items())))
    assert (
        trustballot.tally.get_winner(ElectionState.ENDED, forward)
        == trustballot.tally.get_winner(ElectionState.ENDED, backward)
        == (0, '', 9, 'Election tied')
    )


@pytest.mark.parametrize(('votes', 'expected'), [
    ({'A': 3, 'B': 1}, 'A'),
    ({'A': 3, 'B': 3}, trustballot.tally.Tie(['A', 'B'])),
    ({}, None),
])
def test_get_best(votes, expected):
    assert trustballot.tally.get_best(votes) == expected


def test_leaderboard_percentage():
    cands = make_candidates([1, 3], names=['B', 'A'])
    board = trustballot.tally.get_leaderboard(cands)
    assert [(r.rank, r.candidate.name, r.votes, r.percentage) for r in board] == [
        (1, 'A', 3, 75.0),
        (2, 'B', 1, 25.0),
    ]


def test_leaderboard_positional_ties():
    cands = make_candidates([2, 5, 2])
    board = trustballot.tally.get_leaderboard(cands)
    assert [(r.rank, r.candidate.id) for r in board] == [(1, 2), (2, 1), (3, 3)]


def test_leaderboard_no_votes():
    board = trustballot.tally.get_leaderboard(make_candidates([0, 0]))
    assert [r.percentage for r in board] == [0.0, 0.0]
    assert trustballot.tally.get_leaderboard({}) == []


@pytest.mark.parametrize(('counts', 'expected'), [
    ([3, 4], (7, 3)),
    ([1, 1, 1], (3, 1)),
    ([], (0, 0)),
])
def test_performance_metrics(counts, expected):
    assert trustballot.tally.get_performance_metrics(
        make_candidates(counts)
    ) == expected


def test_statistics():
    voters = {
        'v1': Voter('V1', has_voted=True, voted_candidate_id=1),
        'v2': Voter('V2'),
        'v3': Voter('V3', has_voted=True, voted_candidate_id=2),
        'v4': Voter('V4'),
    }
    stats = trustballot.tally.get_statistics(make_candidates([1, 1]), voters)
    assert stats == (2, 2, 4, 50.0)
    assert stats.participation_rate == 50.0


def test_statistics_no_voters():
    assert trustballot.tally.get_statistics({}, {}) == (0, 0, 0, 0.0)
