"""
cli.py - Command Line Entry Point

Run:
    txledger transactions.csv                # one summary row per applied transaction
    txledger transactions.csv --final        # final account listing only
    txledger transactions.csv --verbose      # report rejected records on stderr
    python -m txledger transactions.csv
"""

from __future__ import annotations
import argparse
import sys
from typing import List, Optional

from .engine import TransactionProcessor
from .feed import FeedFormatError, SummaryWriter, write_summaries
from .ledger import Ledger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="txledger",
        description="Replay a CSV transaction feed and print client account summaries.",
    )
    parser.add_argument("input", help="CSV file with type,client,tx,amount columns")
    parser.add_argument(
        "--final", action="store_true",
        help="print every account once, sorted by client, after the whole feed is applied",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="report rejected, skipped and malformed records on stderr",
    )
    parser.add_argument(
        "--strict", action="store_true",
        help="stop at the first malformed row instead of skipping it",
    )
    parser.add_argument(
        "--verify-owner", action="store_true",
        help="reject disputes, resolutions and chargebacks from a client that does not own the transaction",
    )
    parser.add_argument(
        "--reject-duplicates", action="store_true",
        help="reject deposits and withdrawals that reuse a transaction id",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    ledger = Ledger(
        verify_owner=args.verify_owner,
        reject_duplicate_txids=args.reject_duplicates,
    )
    processor = TransactionProcessor(ledger, verbose=args.verbose, strict=args.strict)

    try:
        with open(args.input, newline="") as stream:
            summaries = processor.process_csv(stream)
            if args.final:
                for _ in summaries:
                    pass
                write_summaries(ledger.list_accounts(), sys.stdout)
            else:
                writer = SummaryWriter(sys.stdout)
                for summary in summaries:
                    writer.write(summary)
                writer.close()
    except OSError as e:
        print(f"error: cannot read {args.input}: {e.strerror or e}", file=sys.stderr)
        return 1
    except FeedFormatError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.verbose:
        stats = processor.stats
        print(
            f"applied={stats.applied} rejected={stats.rejected} "
            f"skipped={stats.skipped} malformed={stats.malformed}",
            file=sys.stderr,
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
