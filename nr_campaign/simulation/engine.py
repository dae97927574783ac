"""
Simulation engine adapters.

The engine is an external collaborator: given a configured trial it runs to
completion and writes trace files with fixed names into a working directory.
Ns3Engine drives an ns-3 build through its ``ns3`` launcher; DryRunEngine
replays the trial timeline in-process with SimPy to exercise campaigns
without an ns-3 build.
"""

import logging
import os
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import simpy

from ..core.errors import ConfigurationError, EngineFailure
from ..mobility.topology import Topology
from .harness import TOPOLOGY_DIAGRAM_FILE, TRACE_CHANNEL_FILES, TraceChannel, TrafficFlow
from .trial import TRIAL_CONFIG_FILE, TrialSetup

logger = logging.getLogger(__name__)

# Environment variable pointing the scenario program at its trial descriptor
TRIAL_CONFIG_ENV = "NR_TRIAL_CONFIG"


class SimulationEngine(ABC):
    """Runs one configured trial inside a working directory."""

    @abstractmethod
    def run(self, setup: TrialSetup, working_directory: Path):
        """
        Run a trial to completion.

        Raises:
            EngineFailure: If the engine cannot complete the trial
        """
        pass


class Ns3Engine(SimulationEngine):
    """Runs the NR scenario program through the ns-3 launcher."""

    STDERR_TAIL_LINES = 20

    def __init__(self, ns3_path: str = "./ns3",
                 program: str = "scratch/opt-gsoc-nr-channel-models-error",
                 export_defaults: bool = True):
        self.ns3_path = ns3_path
        self.program = program
        self.export_defaults = export_defaults
        self.ns3_root = os.path.dirname(os.path.abspath(ns3_path))

    def build_command(self, setup: TrialSetup, working_directory: Path) -> List[str]:
        program_line = " ".join([self.program] + setup.command_line_args())
        return [self.ns3_path, "run", program_line, f"--cwd={Path(working_directory).resolve()}"]

    def build_environment(self, setup: TrialSetup, working_directory: Optional[Path] = None) -> Dict[str, str]:
        """Process environment carrying this trial's attribute defaults and descriptor path."""
        env = os.environ.copy()
        if self.export_defaults and setup.engine_config.defaults:
            env["NS_ATTRIBUTE_DEFAULT"] = ";".join(
                f"{name}={value}" for name, value in setup.engine_config.defaults.items()
            )
        if working_directory is not None:
            env[TRIAL_CONFIG_ENV] = str((Path(working_directory) / TRIAL_CONFIG_FILE).resolve())
        return env

    def run(self, setup: TrialSetup, working_directory: Path):
        command = self.build_command(setup, working_directory)
        logger.info(f">>> Running {setup.trial_name}: {command[2]}")

        try:
            setup.write_config(working_directory)
            completed = subprocess.run(command, cwd=self.ns3_root,
                                       env=self.build_environment(setup, working_directory),
                                       capture_output=True, text=True, check=True)
        except FileNotFoundError as e:
            raise EngineFailure(f"ns-3 launcher not found: {self.ns3_path}") from e
        except subprocess.CalledProcessError as e:
            stderr_tail = "\n".join((e.stderr or "").splitlines()[-self.STDERR_TAIL_LINES:])
            raise EngineFailure(f"Trial {setup.trial_name} exited with code {e.returncode}",
                                returncode=e.returncode, stderr=stderr_tail) from e
        except (OSError, subprocess.SubprocessError) as e:
            raise EngineFailure(f"Trial {setup.trial_name} could not be launched: {e}") from e

        for line in completed.stdout.splitlines():
            logger.debug(f"[{setup.trial_name}] {line}")


# Column headers of the NR trace files
TRACE_HEADERS = {
    TRACE_CHANNEL_FILES[TraceChannel.DL_MAC_SCHED]:
        "% time(s)\tcellId\tbwpId\tIMSI\tRNTI\tframe\tsframe\tslot\tsymStart\tnumSym\tstream\t"
        "harqId\tndi\trv\tmcs\ttbSize",
    TRACE_CHANNEL_FILES[TraceChannel.DL_DATA_PHY]:
        "Time\tCellId\tBwpId\tRnti\tAvgSinr(dB)",
    TRACE_CHANNEL_FILES[TraceChannel.GNB_MAC_CTRL_MSGS]:
        "Time\tEntity\tFrame\tSF\tSlot\tnodeId\tRNTI\tbwpId\tMsgType",
    TRACE_CHANNEL_FILES[TraceChannel.PATHLOSS]:
        "Time(sec)\tCellId\tIMSI\tpathLoss(dB)",
}


class DryRunEngine(SimulationEngine):
    """
    In-process replay of a trial's traffic and mobility timeline.

    Writes the trial descriptor, every enabled trace file (headers only) and
    the topology diagram, except the names listed in ``omit``.
    """

    def __init__(self, packet_interval: float = 0.04, sample_interval: float = 0.1,
                 omit: Iterable[str] = ()):
        self.packet_interval = packet_interval
        self.sample_interval = sample_interval
        self.omit = frozenset(omit)

    def run(self, setup: TrialSetup, working_directory: Path):
        working_directory = Path(working_directory)
        if TRIAL_CONFIG_FILE not in self.omit:
            setup.write_config(working_directory)

        env = simpy.Environment()
        packets: Dict[int, int] = {flow.ue_id: 0 for flow in setup.harness.flows}
        trajectories: Dict[int, List[Tuple[float, float, float]]] = {
            ue.node_id: [] for ue in setup.topology.user_equipments
        }

        for flow in setup.harness.flows:
            env.process(self._traffic_source(env, flow, packets))
        env.process(self._mobility_sampler(env, setup.topology, trajectories))
        env.run(until=setup.harness.stop_time)

        for name in setup.harness.trace_files:
            if name not in self.omit:
                header = TRACE_HEADERS.get(name, "")
                (working_directory / name).write_text(header + "\n")
        if TOPOLOGY_DIAGRAM_FILE not in self.omit:
            (working_directory / TOPOLOGY_DIAGRAM_FILE).write_text(
                topology_gnuplot(setup.topology, trajectories)
            )

        logger.info(f"Dry run {setup.trial_name}: {sum(packets.values())} packets over "
                    f"{len(packets)} flows, {setup.harness.stop_time}s simulated")

    def _traffic_source(self, env: simpy.Environment, flow: TrafficFlow, packets: Dict[int, int]):
        yield env.timeout(flow.start_time)
        while env.now < flow.stop_time:
            packets[flow.ue_id] += 1
            yield env.timeout(self.packet_interval)

    def _mobility_sampler(self, env: simpy.Environment, topology: Topology,
                          trajectories: Dict[int, List[Tuple[float, float, float]]]):
        while True:
            for ue in topology.user_equipments:
                velocity = ue.velocity
                x = ue.position.x + (velocity.x * env.now if velocity else 0.0)
                y = ue.position.y + (velocity.y * env.now if velocity else 0.0)
                trajectories[ue.node_id].append((env.now, x, y))
            yield env.timeout(self.sample_interval)


def topology_gnuplot(topology: Topology,
                     trajectories: Optional[Dict[int, List[Tuple[float, float, float]]]] = None) -> str:
    """Gnuplot script drawing the gNB sites, UE positions and UE trajectories."""
    lines = ["set term pdf", "set output \"hexagonal-topology.pdf\"", "set style arrow 1 lc \"black\" lt 1 head filled"]
    radius = topology.layout.inter_site_distance / 2.0

    for index, bs in enumerate(topology.base_stations, start=1):
        lines.append(f"set object {index} circle at {bs.position.x:.2f},{bs.position.y:.2f} "
                     f"size {radius:.2f} fc rgb \"blue\" fs transparent solid 0.1")
        lines.append(f"set label \"gNB {bs.node_id}\" at {bs.position.x:.2f},{bs.position.y:.2f} center")

    for ue in topology.user_equipments:
        lines.append(f"set label \"UE {ue.node_id}\" at {ue.position.x:.2f},{ue.position.y:.2f} "
                     f"point pointtype 7 ps 0.5")
        samples = (trajectories or {}).get(ue.node_id, [])
        if len(samples) > 1:
            _, x0, y0 = samples[0]
            _, x1, y1 = samples[-1]
            lines.append(f"set arrow from {x0:.2f},{y0:.2f} to {x1:.2f},{y1:.2f} arrowstyle 1")

    lines.append("unset key")
    lines.append("plot 1/0")
    return "\n".join(lines) + "\n"


def create_engine(engine: str, ns3_path: str = "./ns3",
                  ns3_program: str = "scratch/opt-gsoc-nr-channel-models-error") -> SimulationEngine:
    """Create an engine adapter by name ('ns3' or 'dry_run')."""
    if engine == "ns3":
        return Ns3Engine(ns3_path=ns3_path, program=ns3_program)
    if engine == "dry_run":
        return DryRunEngine()
    raise ConfigurationError("engine", engine, ["ns3", "dry_run"])
