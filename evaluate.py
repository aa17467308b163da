#!/usr/bin/env python3
"""
Outcome evaluation for the ensemble and its four models.

Runs every finished match through the engine and reports how often each
model (and the fused probability) picked the actual winner.

Usage:
    python evaluate.py --results finished.json            # Hit rates per model
    python evaluate.py --results finished.json --details  # Also list every match
"""

import argparse
import sys

from tqdm import tqdm

from tennis_predictor import HistoryLoader, run_models
from tennis_predictor.config import MODEL_NAMES
from tennis_predictor.scoring import format_accuracy, pick_side, summarize_component_hits


def main():
    parser = argparse.ArgumentParser(
        description='Outcome evaluation - hit rates of every model on finished matches'
    )
    parser.add_argument(
        '--results', '-r',
        type=str,
        required=True,
        help='File with finished matches (home, away, winner_side)'
    )
    parser.add_argument(
        '--details', '-d',
        action='store_true',
        help='Print the pick for every match'
    )
    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Hide progress bar'
    )

    args = parser.parse_args()

    try:
        matches = HistoryLoader(verbose=not args.quiet).load_outcome_cases(args.results)
    except FileNotFoundError as e:
        print(f"\n❌ Error: {e}")
        return 1
    except ValueError as e:
        print(f"\n❌ Error: {e}")
        return 1

    records = []
    for match in tqdm(matches, desc="Evaluating", ncols=60, disable=args.quiet):
        result = run_models(match['home'], match['away'])
        records.append({'label': match['label'], 'result': result, 'winner_side': match['winner_side']})

    if args.details:
        print()
        for record in records:
            pick = pick_side(record['result'].final_p1)
            mark = "✓" if pick == record['winner_side'] else "✗"
            print(f"  {mark} {record['label']:<40} P1={record['result'].final_p1:5.1f} "
                  f"pick={pick} winner={record['winner_side']}")

    summary = summarize_component_hits(records)

    print("\n" + "=" * 60)
    print(f"EVALUATION ({len(records)} matches)")
    print("=" * 60)
    print(f"  {'Model':<20} {'Hits':>16} {'Brier':>8}")
    print("  " + "-" * 46)
    for name, stats in summary.items():
        label = MODEL_NAMES.get(name, 'ENSEMBLE')
        brier = f"{stats['brier']:.3f}" if stats['brier'] is not None else "-"
        print(f"  {label:<20} {format_accuracy(stats):>16} {brier:>8}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
