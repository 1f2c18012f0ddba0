'''Tallying of the active election: winner, leaderboard and statistics.

All functions here are pure: they read candidate and voter tables and never
modify them. Candidate tables are mappings from candidate id to
:class:`trustballot.entity.Candidate`; the functions process them in
ascending id order so results never depend on insertion order.
'''

from __future__ import annotations

import operator
from typing import Any, Dict, List, NamedTuple, Optional, Union

from trustballot.entity import Candidate, ElectionState, Voter

NO_WINNER = 'No winner'
TIED = 'Election tied'
WINNER_DECLARED = 'Winner declared'


class Tie(frozenset):
    '''Candidate ids tied for the first place.

    Produced by :func:`get_best` when two or more candidates share the
    maximum number of votes.
    '''
    pass


class Winner(NamedTuple):
    id: int
    name: str
    votes: int
    status: str


class LeaderboardRow(NamedTuple):
    rank: int
    candidate: Candidate
    votes: int
    percentage: float


class PerformanceMetrics(NamedTuple):
    total_votes: int
    avg_votes: int


class Statistics(NamedTuple):
    total_votes: int
    total_candidates: int
    total_voters: int
    participation_rate: float


def ordered_candidates(candidates: Dict[int, Candidate]) -> List[Candidate]:
    return [candidates[cand_id] for cand_id in sorted(candidates)]


def vote_counts(candidates: Dict[int, Candidate]) -> Dict[int, int]:
    return {cand.id: cand.vote_count for cand in ordered_candidates(candidates)}


def total_votes(candidates: Dict[int, Candidate]) -> int:
    return sum(cand.vote_count for cand in candidates.values())


def get_best(votes: Dict[Any, int]) -> Optional[Union[Any, Tie]]:
    '''Return the key with the highest number of votes.

    Determined in a single pass over the votes, counting how many keys share
    the running maximum.

    :param votes: Mapping of candidates to the number of votes obtained.
    :returns: The unique leader, a :class:`Tie` of all keys sharing the
        maximum, or None if there are no keys.
    '''
    best = []
    top_votes = None
    for key, n_votes in votes.items():
        if top_votes is None or n_votes > top_votes:
            top_votes = n_votes
            best = [key]
        elif n_votes == top_votes:
            best.append(key)
    if not best:
        return None
    elif len(best) == 1:
        return best[0]
    else:
        return Tie(best)


def get_winner(state: ElectionState,
               candidates: Dict[int, Candidate],
               ) -> Optional[Winner]:
    '''Determine the winner of an ended election.

    :param state: Current election state; only ended elections have winners.
    :param candidates: Candidate table.
    :returns: None unless the election has ended. Otherwise a winner tuple;
        if nobody received any vote, it is ``(0, '', 0, 'No winner')``, if
        two or more candidates share the highest count, it is
        ``(0, '', top_votes, 'Election tied')``.
    '''
    if state != ElectionState.ENDED:
        return None
    counts = vote_counts(candidates)
    best = get_best(counts)
    top_votes = 0 if best is None else max(counts.values())
    if top_votes == 0:
        return Winner(0, '', 0, NO_WINNER)
    elif isinstance(best, Tie):
        return Winner(0, '', top_votes, TIED)
    else:
        return Winner(best, candidates[best].name, top_votes, WINNER_DECLARED)


def get_leaderboard(candidates: Dict[int, Candidate]) -> List[LeaderboardRow]:
    '''Rank candidates by votes received, best first.

    Ranks are positional: candidates with equal votes still get consecutive
    distinct ranks, the lower id ranking first.

    :param candidates: Candidate table.
    :returns: One row per candidate with its share of all votes in percent
        (0 if no votes were cast).
    '''
    total = total_votes(candidates)
    ranked = sorted(
        ordered_candidates(candidates),
        key=operator.attrgetter('vote_count'),
        reverse=True,
    )
    return [
        LeaderboardRow(
            rank,
            cand,
            cand.vote_count,
            (cand.vote_count / total * 100) if total > 0 else 0.0,
        )
        for rank, cand in enumerate(ranked, start=1)
    ]


def get_performance_metrics(candidates: Dict[int, Candidate],
                            ) -> PerformanceMetrics:
    total = total_votes(candidates)
    n_candidates = len(candidates)
    return PerformanceMetrics(
        total,
        total // n_candidates if n_candidates > 0 else 0,
    )


def get_statistics(candidates: Dict[int, Candidate],
                   voters: Dict[Any, Voter],
                   ) -> Statistics:
    n_voters = len(voters)
    n_voted = sum(1 for voter in voters.values() if voter.has_voted)
    return Statistics(
        total_votes(candidates),
        len(candidates),
        n_voters,
        (n_voted / n_voters * 100.0) if n_voters > 0 else 0.0,
    )
