#!/usr/bin/env python3
"""
Calculation audit

Re-runs the ensemble on recorded cases and diffs every model probability
against the results of an independent implementation.

Usage:
    python run_audit.py --cases audit_cases.json                 # Default tolerance
    python run_audit.py --cases audit_cases.json --tolerance 0.5 # Stricter tolerance
    python run_audit.py --cases audit_cases.json --jobs 4        # Parallel workers

Exit code is 1 when any case fails.
"""

import argparse
import sys

from tennis_predictor import HistoryLoader
from tennis_predictor.audit import CalculationAudit, format_audit_summary
from tennis_predictor.config import AUDIT_TOLERANCE_PP


def main():
    parser = argparse.ArgumentParser(
        description='Calculation audit - compare engine results with oracle results'
    )
    parser.add_argument(
        '--cases', '-c',
        type=str,
        required=True,
        help='Audit case file'
    )
    parser.add_argument(
        '--tolerance', '-t',
        type=float,
        default=AUDIT_TOLERANCE_PP,
        help=f'Allowed absolute difference in percentage points (default: {AUDIT_TOLERANCE_PP})'
    )
    parser.add_argument(
        '--jobs', '-j',
        type=int,
        default=1,
        help='Number of parallel workers (default: 1)'
    )
    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Hide progress bar'
    )

    args = parser.parse_args()

    try:
        cases = HistoryLoader(verbose=not args.quiet).load_audit_cases(args.cases)
        audit = CalculationAudit(
            tolerance=args.tolerance,
            n_jobs=args.jobs,
            verbose=not args.quiet,
        )
        summary = audit.run(cases)

    except FileNotFoundError as e:
        print(f"\n❌ Error: {e}")
        return 1

    except ValueError as e:
        print(f"\n❌ Error: {e}")
        return 1

    print(format_audit_summary(summary))
    return 0 if summary.passed else 1


if __name__ == "__main__":
    sys.exit(main())
