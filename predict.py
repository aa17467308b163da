#!/usr/bin/env python3
"""
Tennis Match Predictor

Predict the winner of a match from both players' exported match histories.

Usage:
    python predict.py --match match.json                      # Formatted output
    python predict.py --match match.json --json               # Output prediction as JSON
    python predict.py --home a.json --away b.json             # Separate history files
    python predict.py --match match.json --save out.json      # Also save to a custom file

Prerequisites:
    Histories are exported by the collection stage as JSON documents.
"""

import argparse
import json
import sys

from tennis_predictor import HistoryLoader, MatchContext, TennisPredictor
from tennis_predictor.config import PREDICTIONS_FILE
from tennis_predictor.predictor import save_predictions


def main():
    parser = argparse.ArgumentParser(
        description='Tennis Match Predictor - Predict a match from player histories'
    )
    parser.add_argument(
        '--match', '-m',
        type=str,
        default=None,
        help='Match file with context, home and away histories'
    )
    parser.add_argument(
        '--home',
        type=str,
        default=None,
        help='History file of player A (used with --away)'
    )
    parser.add_argument(
        '--away',
        type=str,
        default=None,
        help='History file of player B (used with --home)'
    )
    parser.add_argument(
        '--json', '-j',
        action='store_true',
        help='Output prediction as JSON'
    )
    parser.add_argument(
        '--save', '-s',
        type=str,
        default=None,
        help='Save prediction to file'
    )
    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Quiet mode - minimal output'
    )

    args = parser.parse_args()

    if not args.match and not (args.home and args.away):
        parser.error('either --match or both --home and --away are required')

    try:
        verbose = not args.quiet and not args.json
        loader = HistoryLoader(verbose=verbose)

        if args.match:
            context, home, away = loader.load_match(args.match)
        else:
            home = loader.load_player_history(args.home)
            away = loader.load_player_history(args.away)
            context = MatchContext(
                match_url='',
                player_a_name=home.player_name,
                player_b_name=away.player_name,
            )

        predictor = TennisPredictor(verbose=verbose)
        prediction = predictor.predict_match(context, home, away)

        if args.json:
            print(json.dumps(prediction, indent=2))
        else:
            predictor.print_prediction(prediction)

        # Always save predictions to standard location
        save_predictions([prediction], PREDICTIONS_FILE)
        if not args.json:
            print(f"\nPrediction saved to {PREDICTIONS_FILE}")

        if args.save:
            save_predictions([prediction], args.save)
            if not args.json:
                print(f"Also saved to {args.save}")

        return 0

    except FileNotFoundError as e:
        print(f"\n❌ Error: {e}")
        print("\nExport the player histories first.")
        return 1

    except ValueError as e:
        print(f"\n❌ Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
