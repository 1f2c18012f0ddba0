'''Append-only audit trail of state-changing actions.'''

from __future__ import annotations

from typing import Any, List, Optional

from trustballot.entity import AuditEntry
from trustballot.persist import simple_serialization


@simple_serialization
class AuditTrail:
    '''An append-only log of audit entries in causal order.

    :param entries: Entries recorded so far, oldest first.
    '''
    def __init__(self, entries: Optional[List[AuditEntry]] = None):
        self.entries = list(entries) if entries is not None else []

    def add_audit_entry(self,
                        action: str,
                        actor: Any,
                        details: str,
                        tx_hash: str = '',
                        timestamp: int = 0,
                        ) -> AuditEntry:
        entry = AuditEntry(timestamp, action, actor, details, tx_hash)
        self.entries.append(entry)
        return entry

    def get_audit_trail(self,
                        election_id: Optional[str] = None,
                        ) -> List[AuditEntry]:
        '''Return audit entries, optionally only those of one election.

        :param election_id: If given, only entries whose details mention this
            election id (as a plain substring) are returned.
        '''
        if election_id is None:
            return list(self.entries)
        return [entry for entry in self.entries if election_id in entry.details]

    def __len__(self) -> int:
        return len(self.entries)
