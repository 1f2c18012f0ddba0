"""A commandline tool to replay an operation script against a fresh ledger.

The script is a JSON list of steps. Each step holds an optional ``time`` and
``tx_hash``, and either an ``operation`` with its ``caller`` or a peer
``message`` with an optional ``source`` peer, in the dictionary format of
:mod:`trustballot.persist`. The class of an operation or message may be given
by its bare name (e.g. ``"Vote"``).

After the replay, the tool prints the election state, leaderboard, statistics
and winner.
"""

import argparse
import io
import json
import logging
import sys
import warnings
from typing import Any, Dict, List

import trustballot.operation as op
import trustballot.persist
from trustballot.event import LeaderboardResponse
from trustballot.ledger import Ledger
from trustballot.state import ElectionError

argparser = argparse.ArgumentParser(
    description=__doc__,
    formatter_class=argparse.ArgumentDefaultsHelpFormatter,
)
argparser.add_argument(
    '-i', '--input-file',
    type=argparse.FileType('r', encoding='utf8'),
    help='file to load the operation script from',
)
argparser.add_argument(
    '-I', '--use-stdin',
    action='store_true',
    help='load the operation script from standard input',
)
argparser.add_argument(
    '-w', '--announce-winner',
    action='store_true',
    help='emit a winner event when the election is ended',
)
argparser.add_argument(
    '-a', '--show-audit',
    action='store_true',
    help='print the audit trail after the replay',
)
argparser.add_argument(
    '-v', '--verbose',
    action='store_true',
    help='show all ledger log messages and every event',
)
argparser.add_argument(
    '-q', '--quiet',
    action='store_true',
    help='do not show any ledger log messages or other info',
)

OPERATION_MODULE = 'trustballot.operation'
MESSAGE_MODULE = 'trustballot.crosschain'


def main(input_file: io.TextIOBase,
         use_stdin: bool = False,
         announce_winner: bool = False,
         show_audit: bool = False,
         verbose: bool = False,
         quiet: bool = False,
         ) -> Ledger:
    logging.basicConfig(
        level=(
            logging.DEBUG if verbose
            else (logging.WARNING if quiet else logging.INFO)
        ),
        format='%(levelname)-10s %(message)s'
    )
    if use_stdin:
        input_file = sys.stdin
    steps = json.load(input_file)
    if not steps:
        warnings.warn('empty script: nothing to replay, terminating')
    ledger = Ledger(announce_winner=announce_winner)
    replay(ledger, steps, show_events=verbose)
    if not quiet:
        show_results(ledger)
        if show_audit:
            show_audit_trail(ledger)
    return ledger


def parse_step_object(objdef: Dict[str, Any], default_module: str) -> Any:
    """Parse an operation or message, completing a bare class name."""
    objdef = dict(objdef)
    if 'class' in objdef and '.' not in objdef['class']:
        objdef['class'] = f"{default_module}.{objdef['class']}"
    return trustballot.persist.from_dict(objdef)


def replay(ledger: Ledger,
           steps: List[Dict[str, Any]],
           show_events: bool = False,
           ) -> int:
    """Apply the script steps in order; return the number of rejected steps.

    Rejected operations are reported as warnings and skipped.
    """
    n_rejected = 0
    for i, step in enumerate(steps):
        now = step.get('time', i)
        try:
            if 'message' in step:
                message = parse_step_object(step['message'], MESSAGE_MODULE)
                events = ledger.receive(
                    message, now=now, tx_hash=step.get('tx_hash', ''),
                    source=step.get('source'),
                )
            else:
                operation = parse_step_object(
                    step['operation'], OPERATION_MODULE
                )
                events = ledger.apply(
                    step['caller'], operation,
                    now=now, tx_hash=step.get('tx_hash', ''),
                )
        except ElectionError as err:
            warnings.warn(f'step {i} rejected ({err.kind}): {err}')
            n_rejected += 1
            continue
        if show_events:
            for evt in events:
                print(f'{i:>4}  {evt}')
    return n_rejected


def show_results(ledger: Ledger) -> None:
    print()
    print(f'Election state: {ledger.answer(op.GetState()).state.value}')
    board: LeaderboardResponse = ledger.answer(op.GetLeaderboard())
    if not board.rows:
        print('No candidates')
    else:
        n_just_chars = len(max((row.candidate.name for row in board.rows),
                               key=len))
        for row in board.rows:
            print(f'{row.rank:>3}  {row.candidate.name.ljust(n_just_chars)}'
                  f'  {row.votes:>6}  {row.percentage:6.2f} %')
    stats = ledger.answer(op.GetStatistics())
    print(f'{stats.total_votes} votes from {stats.total_voters} voters'
          f' ({stats.participation_rate:.1f} % participation)')
    winner = ledger.answer(op.GetWinner()).winner
    if winner is not None:
        cand_id, name, votes, status = winner
        print(status + (f': {name} with {votes} votes' if cand_id else ''))


def show_audit_trail(ledger: Ledger) -> None:
    print()
    print('Audit trail:')
    for entry in ledger.answer(op.GetAuditTrail()).entries:
        print(f'{entry.timestamp:>8}  {entry.action:<18} {entry.actor}'
              f'  {entry.details}')


if __name__ == '__main__':
    args = argparser.parse_args()
    if not args.input_file and not args.use_stdin:
        argparser.print_usage()
    else:
        main(**vars(args))
