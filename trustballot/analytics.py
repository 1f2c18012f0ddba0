'''Voting analytics maintained alongside the active election.

The :class:`Analytics` tracker keeps the :class:`AnalyticsData` view up to
date as the ledger applies operations: every vote appends to the time series
and moves the candidates' vote shares, every registration and vote updates
voter engagement. The view starts over whenever the active election is reset
or replaced.

Trends compare a candidate's vote share after the latest vote with its share
before it. A candidate that gained the vote trends ``up``, the others trend
``down`` (or stay ``stable`` if their share did not move, e.g. with zero
votes).
'''

from __future__ import annotations

import dataclasses
import logging
from typing import Dict, Optional

from trustballot.entity import (
    AnalyticsData, CandidatePerformance, Identity, VoterEngagement
)
from trustballot.persist import simple_serialization
from trustballot.state import Ballot
from trustballot.tally import total_votes

logger = logging.getLogger(__name__)

TREND_UP = 'up'
TREND_DOWN = 'down'
TREND_STABLE = 'stable'


@simple_serialization
class Analytics:
    '''Incrementally maintained analytics of the active election.

    Each registration and vote updates the view in constant time (plus one
    pass over the candidates for a vote); only a reset rescans the voters.

    :param data: The current analytics view.
    :param registered_at: Registration time per voter, where known.
    :param voted_at: Voting time per voter.
    :param time_to_vote_total: Sum of registration-to-vote times over the
        voters whose both times are known.
    :param timed_votes: Number of voters counted in `time_to_vote_total`.
    '''
    def __init__(self,
                 data: Optional[AnalyticsData] = None,
                 registered_at: Optional[Dict[Identity, int]] = None,
                 voted_at: Optional[Dict[Identity, int]] = None,
                 time_to_vote_total: int = 0,
                 timed_votes: int = 0,
                 ):
        self.data = data if data is not None else AnalyticsData()
        self.registered_at = registered_at if registered_at is not None else {}
        self.voted_at = voted_at if voted_at is not None else {}
        self.time_to_vote_total = time_to_vote_total
        self.timed_votes = timed_votes

    def reset(self, ballot: Ballot) -> None:
        '''Start over from the ballot's current tables.

        Registration and voting times of voters already in the ballot are
        unknown, so they do not count towards the average time to vote.
        '''
        self.data = AnalyticsData()
        self.registered_at = {}
        self.voted_at = {}
        self.time_to_vote_total = 0
        self.timed_votes = 0
        self.refresh(ballot)
        self._set_engagement(
            registered=sum(
                1 for voter in ballot.voters.values() if voter.is_registered
            ),
            voted=ballot.voted_count(),
        )
        logger.debug('analytics reset')

    def record_registration(self,
                            ballot: Ballot,
                            voter: Identity,
                            now: int,
                            ) -> None:
        self.registered_at[voter] = now
        engagement = self.data.voter_engagement
        self._set_engagement(engagement.registered + 1, engagement.voted)

    def record_vote(self, ballot: Ballot, voter: Identity, now: int) -> None:
        self.voted_at[voter] = now
        if voter in self.registered_at:
            self.time_to_vote_total += now - self.registered_at[voter]
            self.timed_votes += 1
        engagement = self.data.voter_engagement
        self._set_engagement(engagement.registered, engagement.voted + 1)
        self.record_tally(ballot, now)

    def record_tally(self, ballot: Ballot, now: int) -> None:
        '''Append the current vote total and move every candidate's share.

        Called after each vote, and after a peer message changed the counts.
        '''
        total = total_votes(ballot.candidates)
        self.data.votes_over_time.append((now, total))
        performance = self.data.candidate_performance
        self._drop_removed(ballot)
        for cand_id, cand in ballot.candidates.items():
            share = _share(cand.vote_count, total)
            previous = performance.get(cand_id)
            growth = share - (previous.vote_share if previous else 0.0)
            performance[cand_id] = CandidatePerformance(
                vote_share=share,
                trend=_trend(growth),
                growth_rate=growth,
            )

    def refresh(self, ballot: Ballot) -> None:
        '''Bring candidate entries in line with the ballot.

        Candidates without a performance entry get one with a stable trend,
        entries of candidates no longer in the ballot are dropped and every
        vote share is recomputed. Trends are left as the last tally set them.
        '''
        total = total_votes(ballot.candidates)
        performance = self.data.candidate_performance
        self._drop_removed(ballot)
        for cand_id, cand in ballot.candidates.items():
            share = _share(cand.vote_count, total)
            previous = performance.get(cand_id)
            if previous is None:
                performance[cand_id] = CandidatePerformance(vote_share=share)
            elif previous.vote_share != share:
                performance[cand_id] = dataclasses.replace(
                    previous, vote_share=share
                )

    def _drop_removed(self, ballot: Ballot) -> None:
        performance = self.data.candidate_performance
        for cand_id in list(performance):
            if cand_id not in ballot.candidates:
                del performance[cand_id]

    def _set_engagement(self, registered: int, voted: int) -> None:
        self.data.voter_engagement = VoterEngagement(
            registered=registered,
            voted=voted,
            participation_rate=(
                voted / registered * 100.0 if registered > 0 else 0.0
            ),
            average_time_to_vote=(
                self.time_to_vote_total / self.timed_votes
                if self.timed_votes else 0.0
            ),
        )


def _share(count: int, total: int) -> float:
    return count / total * 100 if total > 0 else 0.0


def _trend(growth: float) -> str:
    if growth > 0:
        return TREND_UP
    elif growth < 0:
        return TREND_DOWN
    else:
        return TREND_STABLE
