"""
Configuration classes for scenario construction and campaign execution
"""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np


@dataclass
class ScenarioConfig:
    """Parameters shared by every trial of a campaign"""
    # Channel configuration
    channel_model: str = "ThreeGpp"
    channel_condition_model: str = "Default"
    scenario: str = "UMa"  # Urban Macro

    # Network configuration
    num_gnbs: int = 1
    num_ues: int = 4
    frequency: float = 30.5e9  # Hz
    bandwidth: float = 100e6  # Hz
    num_component_carriers: int = 1
    numerology: int = 1
    bs_tx_power: float = 41.0  # dBm
    ue_tx_power: float = 23.0  # dBm

    # Link adaptation
    error_model_type: str = "ns3::NrEesmCcT1"
    amc_selection_model: str = "ErrorModel"

    # Topology (TR 38.901 UMa heights)
    inter_site_distance: float = 200.0  # meters
    sectorization: int = 1
    ue_height: float = 1.5  # meters
    bs_height: float = 25.0  # meters
    ue_speed: float = 30.0  # m/s
    ue_placement: str = "anchored"
    velocity_profile: str = "zigzag"

    # Antenna arrays
    ue_antenna_rows: int = 1
    ue_antenna_columns: int = 1
    gnb_antenna_rows: int = 4
    gnb_antenna_columns: int = 8

    # Traffic and tracing
    traffic_start_time: float = 0.0  # seconds
    simulation_time: float = 10.0  # seconds
    dl_port: int = 1234

    logging: bool = True


@dataclass
class CampaignConfig:
    """Seed x run sweep parameters"""
    output_root: str = "sim_results"
    start_seed: int = 100
    end_seed: int = 110  # exclusive
    runs_per_seed: int = 3
    trace_files: Optional[List[str]] = None

    # Execution
    workspace: str = "isolated"  # "isolated" or "shared"
    working_directory: Optional[str] = None
    max_workers: int = 1
    on_configuration_error: str = "abort"  # "abort" or "skip"
    log_level: str = "INFO"

    # Engine
    engine: str = "ns3"  # "ns3" or "dry_run"
    ns3_path: str = "./ns3"
    ns3_program: str = "scratch/opt-gsoc-nr-channel-models-error"

    scenario: ScenarioConfig = field(default_factory=ScenarioConfig)


@dataclass(frozen=True)
class RunSpec:
    """
    Identity of a single trial.

    (seed, run) is the reproducibility key: two equal RunSpecs draw
    bit-identical random streams.
    """
    seed: int
    run: int
    channel_model: str = "ThreeGpp"
    channel_condition: str = "Default"
    ue_count: int = 4
    gnb_count: int = 1
    center_frequency: float = 30.5e9
    error_model_type: str = "ns3::NrEesmCcT1"
    amc_selection_model: str = "ErrorModel"
    logging: bool = True

    @property
    def trial_name(self) -> str:
        return f"seed{self.seed}_run{self.run}"

    def rng(self) -> np.random.Generator:
        """Random generator for this trial's (seed, run) stream"""
        return np.random.default_rng(np.random.SeedSequence(self.seed, spawn_key=(self.run,)))

    @classmethod
    def from_scenario(cls, scenario: ScenarioConfig, seed: int, run: int) -> 'RunSpec':
        return cls(
            seed=seed,
            run=run,
            channel_model=scenario.channel_model,
            channel_condition=scenario.channel_condition_model,
            ue_count=scenario.num_ues,
            gnb_count=scenario.num_gnbs,
            center_frequency=scenario.frequency,
            error_model_type=scenario.error_model_type,
            amc_selection_model=scenario.amc_selection_model,
            logging=scenario.logging
        )
