"""
Topology construction for NR link-adaptation scenarios.

This module lays out base stations on a hexagonal grid and places user
equipments with deterministic positions and constant velocities so that
every trial of a campaign sees the same geometry for the same parameters.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

from ..core.errors import ConfigurationError, EngineFailure

logger = logging.getLogger(__name__)


class NodeRole(Enum):
    """Role of a radio node in the topology."""
    BASE_STATION = "BaseStation"
    USER_EQUIPMENT = "UserEquipment"


class UePlacement(Enum):
    """UE placement strategies."""
    ANCHORED = "anchored"
    SCATTERED = "scattered"


class VelocityProfile(Enum):
    """UE velocity assignment strategies."""
    ZIGZAG = "zigzag"
    UNIFORM = "uniform"


# Anchor of UE 0 in the anchored placement
UE_ANCHOR = (10.0, 20.0)

# Sectors per site supported by the hexagonal grid helper
SUPPORTED_SECTORIZATIONS = (1, 3)

# Axial directions of a hexagonal lattice
_HEX_DIRECTIONS = [(1, 0), (1, -1), (0, -1), (-1, 0), (-1, 1), (0, 1)]


@dataclass
class Vector:
    """3D vector in meters (positions) or m/s (velocities)."""
    x: float
    y: float
    z: float = 0.0

    def distance_to(self, other: 'Vector') -> float:
        """Calculate 3D distance to another point."""
        return math.sqrt((self.x - other.x)**2 + (self.y - other.y)**2 + (self.z - other.z)**2)

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.x**2 + self.y**2 + self.z**2)

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass
class RadioNode:
    """A base station or a user terminal."""
    node_id: int
    role: NodeRole
    position: Vector
    antenna_rows: int = 1
    antenna_columns: int = 1
    velocity: Optional[Vector] = None
    sector: int = 0
    orientation_deg: float = 0.0
    attached_to: Optional[int] = None  # serving BS node id (UEs only)

    @property
    def is_base_station(self) -> bool:
        return self.role == NodeRole.BASE_STATION


@dataclass(frozen=True)
class HexagonalLayout:
    """Hexagonal grid descriptor."""
    inter_site_distance: float
    sectorization: int
    bs_height: float
    ue_height: float


@dataclass(frozen=True)
class BandDescriptor:
    """Operation band: one contiguous set of component carriers."""
    center_frequency: float  # Hz
    bandwidth: float  # Hz
    num_component_carriers: int = 1
    numerology: int = 1


@dataclass
class Topology:
    """Base stations and UEs of one trial."""
    layout: HexagonalLayout
    band: BandDescriptor
    base_stations: List[RadioNode] = field(default_factory=list)
    user_equipments: List[RadioNode] = field(default_factory=list)

    @property
    def nodes(self) -> List[RadioNode]:
        return self.base_stations + self.user_equipments

    @property
    def is_empty(self) -> bool:
        return not self.base_stations and not self.user_equipments

    def attach_to_closest(self):
        """
        Attach every UE to its nearest base station.

        Raises:
            EngineFailure: If UEs exist but there is no base station to serve them
        """
        if self.user_equipments and not self.base_stations:
            raise EngineFailure(
                f"UE {self.user_equipments[0].node_id} is unreachable: topology has no base station"
            )

        for ue in self.user_equipments:
            distances = [ue.position.distance_to(bs.position) for bs in self.base_stations]
            closest = self.base_stations[int(np.argmin(distances))]
            ue.attached_to = closest.node_id
            logger.debug(f"UE {ue.node_id} attached to gNB {closest.node_id} "
                         f"at {min(distances):.1f} m")

    def serving_base_station(self, ue: RadioNode) -> Optional[RadioNode]:
        """Get the base station a UE is attached to."""
        for bs in self.base_stations:
            if bs.node_id == ue.attached_to:
                return bs
        return None


def hexagonal_site_positions(num_sites: int, inter_site_distance: float) -> np.ndarray:
    """
    Positions of hexagonal grid sites, origin first then ring by ring.

    Args:
        num_sites: Number of sites
        inter_site_distance: Distance between neighbouring sites in meters

    Returns:
        Array of shape (num_sites, 2)
    """
    axial = [(0, 0)]
    ring = 1
    while len(axial) < num_sites:
        q, r = (_HEX_DIRECTIONS[4][0] * ring, _HEX_DIRECTIONS[4][1] * ring)
        for dq, dr in _HEX_DIRECTIONS:
            for _ in range(ring):
                axial.append((q, r))
                q, r = q + dq, r + dr
        ring += 1

    coords = np.array(axial[:num_sites], dtype=float).reshape(-1, 2)
    x = inter_site_distance * (coords[:, 0] + coords[:, 1] / 2.0)
    y = inter_site_distance * (coords[:, 1] * math.sqrt(3) / 2.0)
    return np.column_stack([x, y])


class TopologyBuilder:
    """Builds the hexagonal-grid topology of a trial."""

    def __init__(self, inter_site_distance: float = 200.0, sectorization: int = 1,
                 ue_height: float = 1.5, bs_height: float = 25.0, ue_speed: float = 30.0,
                 ue_antenna: Tuple[int, int] = (1, 1), gnb_antenna: Tuple[int, int] = (4, 8),
                 placement: str = "anchored", velocity_profile: str = "zigzag"):
        self.inter_site_distance = inter_site_distance
        self.sectorization = sectorization
        self.ue_height = ue_height
        self.bs_height = bs_height
        self.ue_speed = ue_speed
        self.ue_antenna = ue_antenna
        self.gnb_antenna = gnb_antenna
        self.placement = self._parse(UePlacement, placement, "ue placement")
        self.velocity_profile = self._parse(VelocityProfile, velocity_profile, "velocity profile")

        if sectorization not in SUPPORTED_SECTORIZATIONS:
            raise ConfigurationError("sectorization", sectorization,
                                     [str(s) for s in SUPPORTED_SECTORIZATIONS])

    @staticmethod
    def _parse(enum_cls, value: str, field_name: str):
        try:
            return enum_cls(value)
        except ValueError:
            raise ConfigurationError(field_name, value, [m.value for m in enum_cls]) from None

    def build(self, ue_count: int, gnb_count: int, band: BandDescriptor,
              rng: Optional[np.random.Generator] = None) -> Topology:
        """
        Build a topology.

        Args:
            ue_count: Number of UEs
            gnb_count: Number of base stations
            band: Operation band descriptor
            rng: Trial random generator, used by the scattered placement

        Returns:
            Topology with unattached UEs
        """
        layout = HexagonalLayout(
            inter_site_distance=self.inter_site_distance,
            sectorization=self.sectorization,
            bs_height=self.bs_height,
            ue_height=self.ue_height
        )
        topology = Topology(layout=layout, band=band)

        num_sites = math.ceil(gnb_count / self.sectorization) if gnb_count > 0 else 0
        sites = hexagonal_site_positions(num_sites, self.inter_site_distance)

        topology.base_stations = self._create_base_stations(gnb_count, sites)
        topology.user_equipments = self._create_user_equipments(ue_count, gnb_count, sites, rng)

        logger.info(f"Topology built: {len(topology.base_stations)} gNBs on {num_sites} sites, "
                    f"{len(topology.user_equipments)} UEs")
        return topology

    def _create_base_stations(self, gnb_count: int, sites: np.ndarray) -> List[RadioNode]:
        base_stations = []
        sector_offset = 30.0 if self.sectorization == 3 else 0.0

        for i in range(gnb_count):
            site = i // self.sectorization
            sector = i % self.sectorization
            x, y = sites[site]
            bs = RadioNode(
                node_id=i,
                role=NodeRole.BASE_STATION,
                position=Vector(float(x), float(y), self.bs_height),
                antenna_rows=self.gnb_antenna[0],
                antenna_columns=self.gnb_antenna[1],
                sector=sector,
                orientation_deg=sector_offset + sector * 360.0 / self.sectorization
            )
            base_stations.append(bs)
        return base_stations

    def _create_user_equipments(self, ue_count: int, gnb_count: int, sites: np.ndarray,
                                rng: Optional[np.random.Generator]) -> List[RadioNode]:
        if self.placement == UePlacement.SCATTERED and ue_count > 0:
            if rng is None:
                raise ConfigurationError("ue placement", self.placement.value, ["anchored"],
                                         "Scattered placement needs the trial random stream")
            if len(sites) == 0:
                sites = np.zeros((1, 2))

        user_equipments = []
        for index in range(ue_count):
            if self.placement == UePlacement.ANCHORED:
                position = self._anchored_position(index)
            else:
                position = self._scattered_position(index, sites, rng)

            ue = RadioNode(
                node_id=gnb_count + index,
                role=NodeRole.USER_EQUIPMENT,
                position=position,
                antenna_rows=self.ue_antenna[0],
                antenna_columns=self.ue_antenna[1],
                velocity=Vector(self.ue_speed, 0.0, 0.0)
            )
            if self.velocity_profile == VelocityProfile.ZIGZAG:
                ue.velocity = self.zigzag_velocity(index)
            user_equipments.append(ue)
            logger.debug(f"UE [{index}] position set to ({position.x:.2f}, {position.y:.2f}, "
                         f"{position.z:.2f})")
        return user_equipments

    def _anchored_position(self, index: int) -> Vector:
        """UE 0 sits at the anchor, the others alternate above and below the x-axis."""
        if index == 0:
            return Vector(UE_ANCHOR[0], UE_ANCHOR[1], self.ue_height)
        return Vector(50.0 * index, 30.0 * (1 if index % 2 == 0 else -1), self.ue_height)

    def _scattered_position(self, index: int, sites: np.ndarray,
                            rng: np.random.Generator) -> Vector:
        """Uniform draw inside the hexagonal cell of site index % sites."""
        center = sites[index % len(sites)]
        apothem = self.inter_site_distance / 2.0
        radius = apothem * 2.0 / math.sqrt(3)
        normals = np.array([[math.cos(a), math.sin(a)] for a in (0.0, math.pi / 3, 2 * math.pi / 3)])

        while True:
            offset = rng.uniform(-radius, radius, size=2)
            if np.all(np.abs(normals @ offset) <= apothem):
                break
        return Vector(float(center[0] + offset[0]), float(center[1] + offset[1]), self.ue_height)

    @staticmethod
    def zigzag_velocity(index: int) -> Vector:
        """Speed 1 + 3*index m/s, heading alternating between +45 and -45 degrees."""
        speed = 1.0 + index * 3.0
        return Vector(speed, (1 if index % 2 == 0 else -1) * speed, 0.0)
