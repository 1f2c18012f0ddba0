"""TrustBallot - the state-transition core of an election ledger.

TrustBallot tracks candidates, registered voters and cast votes for one or
more elections and derives their results, under rules that restrict who may
do what and when.

The core is organized as follows:

-   The ``entity`` module defines the plain records (candidates, voters,
    election snapshots, audit entries, analytics).
-   The ``state`` module holds the active election in a :class:`Ballot`,
    which enforces the owner rule and the Created - Ongoing - Ended
    lifecycle, and defines the errors raised when a rule is violated.
-   The ``tally`` module computes winners, leaderboards and statistics.
-   The ``registry``, ``audit`` and ``analytics`` modules keep named
    elections, the audit trail and voting analytics.
-   The ``ledger`` module ties everything together: its :class:`Ledger`
    applies the operations of the ``operation`` module, answers its queries
    and returns the events and responses of the ``event`` module.

Transport, consensus and storage are left to the host, which calls the
ledger with an authenticated caller identity and the current time. Ledger
state and all messages can be converted to JSON-ready dictionaries with the
``persist`` module.
"""
