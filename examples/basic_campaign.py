#!/usr/bin/env python3
"""
Basic NR Campaign Example

This script demonstrates a small dry-run campaign: two seeds, two runs per
seed, traces collected per trial and loaded back as a pandas corpus.
"""

import sys
import os
import logging

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from nr_campaign.core.config import CampaignConfig, ScenarioConfig
from nr_campaign.simulation.campaign import CampaignOrchestrator
from nr_campaign.simulation.corpus import TraceCorpus
from nr_campaign.simulation.engine import DryRunEngine


def main():
    """Run basic campaign example"""

    # Setup logging
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)

    logger.info("Starting basic NR campaign example")

    config = CampaignConfig(
        output_root="examples/results/basic_campaign",
        start_seed=100,
        end_seed=102,
        runs_per_seed=2,
        scenario=ScenarioConfig(
            channel_model="ThreeGpp",
            channel_condition_model="NLOS",
            num_ues=4,
            simulation_time=2.0  # 2 seconds
        )
    )

    orchestrator = CampaignOrchestrator(config, DryRunEngine())
    result = orchestrator.run()

    logger.info("Campaign Results:")
    for key, value in result.summary().items():
        logger.info(f"  {key}: {value}")

    corpus = TraceCorpus(config.output_root)
    logger.info(f"Corpus completeness:\n{corpus.summary()}")

    result.export(os.path.join(config.output_root, "trials.csv"))
    logger.info(f"Results saved to {config.output_root}/")
    logger.info("Basic campaign example completed successfully!")


if __name__ == "__main__":
    main()
