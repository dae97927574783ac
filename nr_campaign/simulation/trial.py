"""
Trial assembly.

A trial is built in four stages: topology, channel configuration, link
adaptation and trace harness. The result is a TrialSetup carrying every
attribute the engine needs, including an explicit EngineConfig in place of
process-wide engine defaults, so distinct trials never share configuration
state.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping

from ..core.config import RunSpec, ScenarioConfig
from ..mobility.topology import BandDescriptor, Topology, TopologyBuilder
from ..network.channel import ChannelConfig, ChannelConfigSelector
from ..network.link_adaptation import LinkAdaptationConfig, LinkAdaptationConfigurator
from .harness import HarnessPlan, TraceHarness

logger = logging.getLogger(__name__)

# Per-trial descriptor written by the engines and collected with the traces
TRIAL_CONFIG_FILE = "trial-config.json"


@dataclass(frozen=True)
class EngineConfig:
    """Engine-wide defaults and helper attributes of one trial."""
    defaults: Mapping[str, str] = field(default_factory=dict)
    attributes: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'defaults', MappingProxyType(dict(self.defaults)))
        object.__setattr__(self, 'attributes', MappingProxyType(dict(self.attributes)))


@dataclass
class TrialSetup:
    """Fully configured trial handed to a simulation engine."""
    run_spec: RunSpec
    topology: Topology
    channel: ChannelConfig
    link_adaptation: LinkAdaptationConfig
    harness: HarnessPlan
    engine_config: EngineConfig

    @property
    def trial_name(self) -> str:
        return self.run_spec.trial_name

    def command_line_args(self) -> List[str]:
        """Arguments of the NR scenario program for this trial."""
        spec = self.run_spec
        return [
            f"--channelModel={self.channel.model.value}",
            f"--channelConditionModel={self.channel.condition.value}",
            f"--ueNum={spec.ue_count}",
            f"--gNbNum={spec.gnb_count}",
            f"--frequency={spec.center_frequency:.0f}",
            f"--errorModelType={self.link_adaptation.error_model_type}",
            f"--amcSelectionModel={self.link_adaptation.amc_model.value}",
            f"--seed={spec.seed}",
            f"--run={spec.run}",
            f"--logging={'true' if spec.logging else 'false'}",
        ]

    def to_dict(self) -> Dict[str, Any]:
        """Everything the engine is configured with for this trial."""
        spec = self.run_spec
        nodes = []
        for node in self.topology.nodes:
            nodes.append({
                'id': node.node_id,
                'role': node.role.value,
                'position': [float(v) for v in node.position.as_tuple()],
                'velocity': [float(v) for v in node.velocity.as_tuple()] if node.velocity else None,
                'antenna': [node.antenna_rows, node.antenna_columns],
                'sector': node.sector,
                'orientation_deg': float(node.orientation_deg),
                'attached_to': node.attached_to,
            })

        return {
            'trial': spec.trial_name,
            'seed': spec.seed,
            'run': spec.run,
            'arguments': self.command_line_args(),
            'defaults': dict(self.engine_config.defaults),
            'attributes': dict(self.engine_config.attributes),
            'band': asdict(self.topology.band),
            'nodes': nodes,
            'flows': [asdict(flow) for flow in self.harness.flows],
            'traces': self.harness.trace_files,
        }

    def write_config(self, directory: Path) -> Path:
        """Write the trial descriptor into a working directory."""
        path = Path(directory) / TRIAL_CONFIG_FILE
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)
        return path


class TrialBuilder:
    """Builds TrialSetups from campaign-wide scenario parameters."""

    def __init__(self, scenario: ScenarioConfig):
        self.scenario = scenario
        ue_antenna = (scenario.ue_antenna_rows, scenario.ue_antenna_columns)
        gnb_antenna = (scenario.gnb_antenna_rows, scenario.gnb_antenna_columns)

        self.topology_builder = TopologyBuilder(
            inter_site_distance=scenario.inter_site_distance,
            sectorization=scenario.sectorization,
            ue_height=scenario.ue_height,
            bs_height=scenario.bs_height,
            ue_speed=scenario.ue_speed,
            ue_antenna=ue_antenna,
            gnb_antenna=gnb_antenna,
            placement=scenario.ue_placement,
            velocity_profile=scenario.velocity_profile
        )
        self.channel_selector = ChannelConfigSelector(
            scenario=scenario.scenario,
            ue_antenna=ue_antenna,
            gnb_antenna=gnb_antenna
        )
        self.link_configurator = LinkAdaptationConfigurator()
        self.harness = TraceHarness(
            start_time=scenario.traffic_start_time,
            stop_time=scenario.simulation_time,
            dl_port=scenario.dl_port
        )

    def build(self, run_spec: RunSpec) -> TrialSetup:
        """
        Configure one trial.

        Raises:
            ConfigurationError: On any invalid model selection
            EngineFailure: If a UE cannot be attached
        """
        band = BandDescriptor(
            center_frequency=run_spec.center_frequency,
            bandwidth=self.scenario.bandwidth,
            num_component_carriers=self.scenario.num_component_carriers,
            numerology=self.scenario.numerology
        )
        topology = self.topology_builder.build(run_spec.ue_count, run_spec.gnb_count, band,
                                               rng=run_spec.rng())
        channel = self.channel_selector.configure(run_spec.channel_model, run_spec.channel_condition)
        link_adaptation = self.link_configurator.configure(run_spec.error_model_type,
                                                           run_spec.amc_selection_model)
        harness = self.harness.install(topology)

        setup = TrialSetup(
            run_spec=run_spec,
            topology=topology,
            channel=channel,
            link_adaptation=link_adaptation,
            harness=harness,
            engine_config=self._engine_config(channel, link_adaptation)
        )
        logger.debug(f"Trial {run_spec.trial_name} configured: {setup.command_line_args()}")
        return setup

    def _engine_config(self, channel: ChannelConfig,
                       link_adaptation: LinkAdaptationConfig) -> EngineConfig:
        attributes: Dict[str, str] = {
            "GnbPhy::TxPower": str(self.scenario.bs_tx_power),
            "GnbPhy::Numerology": str(self.scenario.numerology),
            "UePhy::TxPower": str(self.scenario.ue_tx_power),
        }
        attributes.update(channel.to_attributes())
        attributes.update(link_adaptation.to_attributes())
        return EngineConfig(defaults=link_adaptation.engine_defaults(), attributes=attributes)
