"""
Trace harness: UE attachment, downlink traffic and measurement traces.

The harness only describes what the engine must run and trace. The engine
writes trace files with fixed names into its working directory; moving them
is the campaign orchestrator's job.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Tuple

from ..core.errors import ConfigurationError
from ..mobility.topology import Topology

logger = logging.getLogger(__name__)


class TraceChannel(Enum):
    """Engine trace channels required by the corpus format."""
    DL_DATA_PHY = "DlDataPhy"
    DL_MAC_SCHED = "DlMacSched"
    GNB_MAC_CTRL_MSGS = "GnbMacCtrlMsgs"
    PATHLOSS = "Pathloss"


# Files written by each trace channel
TRACE_CHANNEL_FILES = {
    TraceChannel.DL_DATA_PHY: "DlDataSinr.txt",
    TraceChannel.DL_MAC_SCHED: "NrDlMacStats.txt",
    TraceChannel.GNB_MAC_CTRL_MSGS: "RxedGnbMacCtrlMsgsTrace.txt",
    TraceChannel.PATHLOSS: "DlPathlossTrace.txt",
}

TOPOLOGY_DIAGRAM_FILE = "hexagonal-topology.gnuplot"

DEFAULT_TRACE_FILES = (
    TRACE_CHANNEL_FILES[TraceChannel.DL_MAC_SCHED],
    TRACE_CHANNEL_FILES[TraceChannel.DL_DATA_PHY],
    TRACE_CHANNEL_FILES[TraceChannel.GNB_MAC_CTRL_MSGS],
    TOPOLOGY_DIAGRAM_FILE,
)


@dataclass(frozen=True)
class TraceFileSet:
    """Fixed, ordered set of trace file names expected after each trial."""
    names: Tuple[str, ...] = DEFAULT_TRACE_FILES

    def __post_init__(self):
        seen = set()
        for name in self.names:
            if not name or "/" in name or "\\" in name or any(c in name for c in "*?[]"):
                raise ConfigurationError("trace file name", name, ["plain file names"],
                                         "Trace files are collected by exact name")
            if name in seen:
                raise ConfigurationError("trace file name", name, ["unique file names"],
                                         "Duplicate trace file")
            seen.add(name)

    @classmethod
    def from_names(cls, names: Optional[Iterable[str]] = None) -> 'TraceFileSet':
        if names is None:
            return cls()
        return cls(tuple(names))

    def __iter__(self) -> Iterator[str]:
        return iter(self.names)

    def __len__(self) -> int:
        return len(self.names)

    def __contains__(self, name) -> bool:
        return name in self.names


@dataclass(frozen=True)
class TrafficFlow:
    """Downlink flow from the remote host to one UE."""
    ue_id: int
    gnb_id: int
    port: int
    start_time: float  # seconds
    stop_time: float  # seconds
    traffic_type: str
    socket_factory: str


@dataclass
class HarnessPlan:
    """Traffic and traces the engine must set up for a trial."""
    flows: List[TrafficFlow] = field(default_factory=list)
    traces: Tuple[TraceChannel, ...] = ()
    start_time: float = 0.0
    stop_time: float = 10.0

    @property
    def trace_files(self) -> List[str]:
        return [TRACE_CHANNEL_FILES[trace] for trace in self.traces]


class TraceHarness:
    """Attaches UEs, plans downlink traffic and enables the corpus traces."""

    TRACES = (
        TraceChannel.DL_DATA_PHY,
        TraceChannel.DL_MAC_SCHED,
        TraceChannel.GNB_MAC_CTRL_MSGS,
        TraceChannel.PATHLOSS,
    )

    def __init__(self, start_time: float = 0.0, stop_time: float = 10.0, dl_port: int = 1234,
                 traffic_type: str = "ns3::TrafficGeneratorNgmnGaming",
                 socket_factory: str = "ns3::UdpSocketFactory"):
        if stop_time <= start_time:
            raise ConfigurationError("simulation time", stop_time, [f"> {start_time}"],
                                     "Traffic must stop after it starts")
        self.start_time = start_time
        self.stop_time = stop_time
        self.dl_port = dl_port
        self.traffic_type = traffic_type
        self.socket_factory = socket_factory

    def install(self, topology: Topology) -> HarnessPlan:
        """
        Attach UEs to their closest gNB and plan one downlink flow per UE.

        Args:
            topology: Trial topology

        Returns:
            HarnessPlan

        Raises:
            EngineFailure: If a UE cannot be attached to any gNB
        """
        topology.attach_to_closest()

        flows = [
            TrafficFlow(
                ue_id=ue.node_id,
                gnb_id=ue.attached_to,
                port=self.dl_port,
                start_time=self.start_time,
                stop_time=self.stop_time,
                traffic_type=self.traffic_type,
                socket_factory=self.socket_factory
            )
            for ue in topology.user_equipments
        ]

        plan = HarnessPlan(flows=flows, traces=self.TRACES,
                           start_time=self.start_time, stop_time=self.stop_time)
        logger.info(f"Harness installed: {len(flows)} downlink flows, "
                    f"traces {[t.value for t in plan.traces]}")
        return plan
