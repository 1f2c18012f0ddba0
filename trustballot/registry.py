'''Registry of named elections and switching of the active one.

The registry keeps an :class:`trustballot.entity.ElectionData` snapshot per
election id. Only one election is active at a time; its live data is held by
the :class:`trustballot.state.Ballot`. Switching saves the active ballot back
into its registry entry before loading the next one, so no mutation of a
previously active registry election is lost. The initial slot the ledger
starts with has no registry entry: whatever was done there is discarded on
the first switch.
'''

from __future__ import annotations

import copy
import logging
from typing import Dict, List, Optional, Tuple

from trustballot.entity import ElectionData, Identity
from trustballot.persist import simple_serialization
from trustballot.state import Ballot, ElectionNotFound

logger = logging.getLogger(__name__)

ID_PREFIX = 'election_'


@simple_serialization
class ElectionRegistry:
    '''A mapping from election id to election snapshot.

    :param elections: Snapshots by election id, in creation order.
    '''
    def __init__(self, elections: Optional[Dict[str, ElectionData]] = None):
        self.elections = elections if elections is not None else {}

    def __len__(self) -> int:
        return len(self.elections)

    def __contains__(self, election_id: str) -> bool:
        return election_id in self.elections

    def create_election(self,
                        ballot: Ballot,
                        caller: Identity,
                        name: str,
                        ) -> str:
        '''Create a fresh election; the active ballot is left unchanged.

        :returns: The new election id, ``election_N`` where N is the registry
            size after creation.
        '''
        ballot.require_owner(caller, 'create elections')
        election_id = f'{ID_PREFIX}{len(self.elections) + 1}'
        self.elections[election_id] = ElectionData(election_id, name)
        logger.info('created election %s: %s', election_id, name)
        return election_id

    def switch_election(self,
                        ballot: Ballot,
                        caller: Identity,
                        election_id: str,
                        ) -> None:
        '''Make the given election the active one.

        The currently active election, if it came from the registry, is
        saved back first. The loaded election continues numbering its
        candidates after the highest existing id.
        '''
        ballot.require_owner(caller, 'switch elections')
        if election_id not in self.elections:
            raise ElectionNotFound(election_id)
        self.save(ballot)
        loaded = self.elections[election_id]
        ballot.state = loaded.state
        ballot.candidates = copy.deepcopy(loaded.candidates)
        ballot.voters = copy.deepcopy(loaded.voters)
        ballot.voting_method = loaded.voting_method
        ballot.start_time = loaded.start_time
        ballot.end_time = loaded.end_time
        ballot.next_candidate_id = max(loaded.candidates, default=0) + 1
        ballot.current_election_id = election_id
        logger.info('switched to election %s', election_id)

    def save(self, ballot: Ballot) -> None:
        '''Copy the active ballot into its registry entry, if it has one.'''
        election_id = ballot.current_election_id
        if election_id is None or election_id not in self.elections:
            return
        saved = self.elections[election_id]
        saved.state = ballot.state
        saved.candidates = copy.deepcopy(ballot.candidates)
        saved.voters = copy.deepcopy(ballot.voters)
        saved.voting_method = ballot.voting_method
        saved.start_time = ballot.start_time
        saved.end_time = ballot.end_time
        logger.debug('saved active ballot into %s', election_id)

    def get_election(self,
                     election_id: str,
                     ballot: Optional[Ballot] = None,
                     ) -> Optional[ElectionData]:
        '''Return a copy of the election, or None if it does not exist.

        :param ballot: The active ballot; if given and it belongs to the
            requested election, the returned data reflects its live state.
        '''
        if election_id not in self.elections:
            return None
        if ballot is not None and ballot.current_election_id == election_id:
            current = self.elections[election_id]
            return ElectionData(
                id=current.id,
                name=current.name,
                state=ballot.state,
                candidates=copy.deepcopy(ballot.candidates),
                voters=copy.deepcopy(ballot.voters),
                start_time=ballot.start_time,
                end_time=ballot.end_time,
                voting_method=ballot.voting_method,
            )
        return copy.deepcopy(self.elections[election_id])

    def get_all_elections(self,
                          ballot: Optional[Ballot] = None,
                          ) -> List[Tuple[str, ElectionData]]:
        return [
            (election_id, self.get_election(election_id, ballot))
            for election_id in self.elections
        ]
