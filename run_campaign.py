#!/usr/bin/env python3
"""
Campaign runner for the NR link-adaptation dataset framework.

This script sweeps a seed x run matrix over a fixed channel configuration,
runs one simulation per trial and collects the trace files of each trial
into its own directory.

Usage:
    python run_campaign.py --config campaigns/threegpp_nlos_sweep.json
    python run_campaign.py --channel-model ThreeGpp --channel-condition NLOS
    python run_campaign.py --create-config campaign.yaml
    python run_campaign.py --help
"""

import argparse
import logging
import sys
import traceback

import jsonschema
import yaml

from nr_campaign.core.config import CampaignConfig
from nr_campaign.core.errors import ConfigurationError
from nr_campaign.simulation.campaign import CampaignOrchestrator
from nr_campaign.utils.config_parser import CampaignConfigParser

EXIT_OK = 0
EXIT_TRIALS_FAILED = 1
EXIT_CONFIGURATION_ERROR = 2


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='NR link-adaptation dataset campaign runner',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --config campaigns/threegpp_nlos_sweep.json
  %(prog)s --channel-model NYU --channel-condition LOS --start-seed 1 --end-seed 5
  %(prog)s --dry-run --runs-per-seed 2 --summary results.csv
  %(prog)s --create-config campaign.yaml
        """
    )

    parser.add_argument('--config', '-c', type=str,
                        help='Configuration file path (JSON or YAML)')
    parser.add_argument('--create-config', type=str, metavar='FILE',
                        help='Write a default configuration file and exit')

    # Overrides
    parser.add_argument('--output-root', '-o', type=str,
                        help='Directory receiving one sub-directory per trial')
    parser.add_argument('--start-seed', type=int, help='First seed (inclusive)')
    parser.add_argument('--end-seed', type=int, help='Last seed (exclusive)')
    parser.add_argument('--runs-per-seed', type=int, help='Runs per seed, numbered from 1')
    parser.add_argument('--channel-model', type=str,
                        help='ThreeGpp, NYU, TwoRay or Friis')
    parser.add_argument('--channel-condition', type=str,
                        help='Default, LOS, NLOS or Buildings')
    parser.add_argument('--workers', type=int,
                        help='Concurrent trials (isolated workspace only)')
    parser.add_argument('--dry-run', action='store_true',
                        help='Replay trials in-process instead of running ns-3')
    parser.add_argument('--summary', type=str, metavar='FILE',
                        help='Export the trial table (.csv or .json)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose output')

    return parser.parse_args(argv)


def build_config(args) -> CampaignConfig:
    """Load the configuration file, if any, and apply command-line overrides."""
    if args.config:
        print(f"Loading configuration from: {args.config}")
        config = CampaignConfigParser.load_config(args.config)
    else:
        config = CampaignConfig()

    if args.output_root is not None:
        config.output_root = args.output_root
    if args.start_seed is not None:
        config.start_seed = args.start_seed
    if args.end_seed is not None:
        config.end_seed = args.end_seed
    if args.runs_per_seed is not None:
        config.runs_per_seed = args.runs_per_seed
    if args.channel_model is not None:
        config.scenario.channel_model = args.channel_model
    if args.channel_condition is not None:
        config.scenario.channel_condition_model = args.channel_condition
    if args.workers is not None:
        config.max_workers = args.workers
    if args.dry_run:
        config.engine = "dry_run"
    if args.verbose:
        config.log_level = "DEBUG"

    return config


def run_campaign(config: CampaignConfig, args) -> int:
    """Run a campaign and return the process exit status."""
    print("\n" + "=" * 60)
    print("NR LINK-ADAPTATION DATASET CAMPAIGN")
    print("=" * 60)
    print(f"Output root: {config.output_root}")
    print(f"Channel: {config.scenario.channel_model} / {config.scenario.channel_condition_model}")
    print(f"Seeds: [{config.start_seed}, {config.end_seed}), runs per seed: {config.runs_per_seed}")

    if args.verbose:
        scenario = config.scenario
        print("Configuration:")
        print(f"  Scenario: {scenario.scenario}")
        print(f"  gNBs: {scenario.num_gnbs}")
        print(f"  UEs: {scenario.num_ues}")
        print(f"  Frequency: {scenario.frequency / 1e9} GHz")
        print(f"  Error model: {scenario.error_model_type}")
        print(f"  AMC: {scenario.amc_selection_model}")
        print(f"  Engine: {config.engine}")
        print(f"  Workspace: {config.workspace} ({config.max_workers} workers)")
        print()

    try:
        orchestrator = CampaignOrchestrator(config)
        result = orchestrator.run()
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        return EXIT_CONFIGURATION_ERROR
    except KeyboardInterrupt:
        print("\nCampaign interrupted by user")
        return EXIT_TRIALS_FAILED

    summary = result.summary()
    print("\n" + "-" * 50)
    print("CAMPAIGN COMPLETED")
    print("-" * 50)
    print(f"Trials: {summary['total_trials']}")
    print(f"  Complete: {summary['complete']}")
    print(f"  Incomplete: {summary['incomplete']} ({summary['missing_files']} missing files)")
    print(f"  Failed: {summary['failed']}")
    print(f"  Skipped: {summary['skipped']}")

    if args.summary:
        result.export(args.summary)
        print(f"Trial table saved to: {args.summary}")

    print("\n" + "=" * 60)
    return EXIT_TRIALS_FAILED if result.failed else EXIT_OK


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    if args.create_config:
        try:
            CampaignConfigParser.create_default_config(args.create_config)
        except IOError as e:
            print(f"Error creating configuration: {e}")
            return EXIT_CONFIGURATION_ERROR
        print(f"Configuration created: {args.create_config}")
        print("You can now modify this file and run it with:")
        print(f"  python run_campaign.py --config {args.create_config}")
        return EXIT_OK

    try:
        config = build_config(args)
    except (OSError, ValueError, TypeError, yaml.YAMLError, jsonschema.ValidationError) as e:
        print(f"Error loading configuration: {e}")
        if args.verbose:
            traceback.print_exc()
        return EXIT_CONFIGURATION_ERROR

    logging.getLogger().setLevel(config.log_level)
    return run_campaign(config, args)


if __name__ == '__main__':
    sys.exit(main())
