#!/usr/bin/env python3
"""
AP Activation Search

Main entry point. Chooses which M of L candidate access-point sites to
switch on so that enough measurement points receive enough power, and
compares the GA variants against greedy, local search and random baselines.
All settings live in a YAML run file.

Usage:
    python3 main.py config.yaml
    python3 main.py config.yaml --trials 100 --seed 7
    python3 main.py config.yaml --plots output/plots
    python3 main.py config.yaml --validate
"""

import sys
import argparse
from pathlib import Path

# Add current directory to path for imports
sys.path.append(str(Path(__file__).parent))


def main():
    """Main entry point with command line interface"""
    parser = argparse.ArgumentParser(
        description="AP Activation Search - choose M of L sites to meet a coverage target",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python3 main.py config.yaml                   # Run the configured mode
  python3 main.py config.yaml --trials 10       # Override the trial count
  python3 main.py config.yaml --oracle direct   # Skip building the combination table
  python3 main.py config.yaml --validate        # Only check the configuration
        """
    )

    parser.add_argument('config', nargs='?', default='config.yaml',
                        help='Run configuration file (default: config.yaml)')
    parser.add_argument('--trials', type=int,
                        help='Number of trials per scenario')
    parser.add_argument('--seed', type=int,
                        help='Root random seed')
    parser.add_argument('--oracle', choices=['table', 'direct'],
                        help='Coverage oracle backend')
    parser.add_argument('--plots', metavar='DIR',
                        help='Save convergence and comparison plots to DIR')
    parser.add_argument('--validate', action='store_true',
                        help='Validate the configuration and exit')

    args = parser.parse_args()

    from ap_search.cli import run_from_config

    try:
        run_from_config(
            args.config,
            validate_only=args.validate,
            trials=args.trials,
            seed=args.seed,
            plots=args.plots,
            oracle=args.oracle
        )
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(1)
    except Exception as e:
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
