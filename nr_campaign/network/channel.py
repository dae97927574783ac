"""
Channel configuration for NR link-adaptation scenarios.

This module maps a requested channel model and channel condition to a
consistent antenna, propagation and beamforming configuration.

Phased-array propagation models (3GPP, NYU, Two-Ray) assume array-aware
antennas: a uniform planar array of isotropic elements and ideal direct-path
beamforming. The Friis model uses a parabolic antenna with no array and no
beamforming. The two families are incompatible, so each model resolves to
exactly one of two immutable configuration variants and any unrecognized
value fails closed with a ConfigurationError.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from ..core.errors import ConfigurationError

logger = logging.getLogger(__name__)


class ChannelModel(Enum):
    """Available channel models."""
    THREE_GPP = "ThreeGpp"
    NYU = "NYU"
    TWO_RAY = "TwoRay"
    FRIIS = "Friis"

    @property
    def is_phased_array(self) -> bool:
        return self != ChannelModel.FRIIS


class ChannelCondition(Enum):
    """Channel condition models."""
    DEFAULT = "Default"
    LOS = "LOS"
    NLOS = "NLOS"
    BUILDINGS = "Buildings"


UNIFORM_PLANAR_ARRAY = "ns3::UniformPlanarArray"
ISOTROPIC_ELEMENT = "ns3::IsotropicAntennaModel"
PARABOLIC_ANTENNA = "ns3::ParabolicAntennaModel"
IDEAL_BEAMFORMING = "ns3::IdealBeamformingHelper"
DIRECT_PATH_BEAMFORMING = "ns3::DirectPathBeamforming"
FRIIS_PATHLOSS = "ns3::FriisPropagationLossModel"

# scenario -> (3GPP pathloss model, scenario channel condition model)
THREE_GPP_SCENARIOS = {
    "RMa": ("ns3::ThreeGppRmaPropagationLossModel", "ns3::ThreeGppRmaChannelConditionModel"),
    "UMa": ("ns3::ThreeGppUmaPropagationLossModel", "ns3::ThreeGppUmaChannelConditionModel"),
    "UMi": ("ns3::ThreeGppUmiStreetCanyonPropagationLossModel",
            "ns3::ThreeGppUmiStreetCanyonChannelConditionModel"),
    "InH-OfficeOpen": ("ns3::ThreeGppIndoorOfficePropagationLossModel",
                       "ns3::ThreeGppIndoorOpenOfficeChannelConditionModel"),
    "InH-OfficeMixed": ("ns3::ThreeGppIndoorOfficePropagationLossModel",
                        "ns3::ThreeGppIndoorMixedOfficeChannelConditionModel"),
    "V2V-Highway": ("ns3::ThreeGppV2vHighwayPropagationLossModel",
                    "ns3::ThreeGppV2vHighwayChannelConditionModel"),
    "V2V-Urban": ("ns3::ThreeGppV2vUrbanPropagationLossModel",
                  "ns3::ThreeGppV2vUrbanChannelConditionModel"),
}

NYU_PATHLOSS = {
    "RMa": "ns3::NYURmaPropagationLossModel",
    "UMa": "ns3::NYUUmaPropagationLossModel",
    "UMi": "ns3::NYUUmiPropagationLossModel",
    "InH-OfficeOpen": "ns3::NYUInHPropagationLossModel",
    "InH-OfficeMixed": "ns3::NYUInHPropagationLossModel",
}

# model -> (spectrum propagation loss model, fast-fading channel model)
SPECTRUM_MODELS = {
    ChannelModel.THREE_GPP: ("ns3::ThreeGppSpectrumPropagationLossModel", "ns3::ThreeGppChannelModel"),
    ChannelModel.NYU: ("ns3::NYUSpectrumPropagationLossModel", "ns3::NYUChannelModel"),
    ChannelModel.TWO_RAY: ("ns3::TwoRaySpectrumPropagationLossModel", None),
}

SUPPORTED_SCENARIOS = {
    ChannelModel.THREE_GPP: tuple(THREE_GPP_SCENARIOS),
    ChannelModel.NYU: tuple(NYU_PATHLOSS),
    ChannelModel.TWO_RAY: tuple(NYU_PATHLOSS),
}

FIXED_CONDITION_MODELS = {
    ChannelCondition.LOS: "ns3::AlwaysLosChannelConditionModel",
    ChannelCondition.NLOS: "ns3::NeverLosChannelConditionModel",
    ChannelCondition.BUILDINGS: "ns3::BuildingsChannelConditionModel",
}

# Free space has no obstruction model
FRIIS_CONDITIONS = (ChannelCondition.DEFAULT, ChannelCondition.LOS)


def parse_channel_model(value: Union[str, ChannelModel]) -> ChannelModel:
    """Resolve a channel model identifier, failing closed on unknown values."""
    if isinstance(value, ChannelModel):
        return value
    try:
        return ChannelModel(value)
    except ValueError:
        raise ConfigurationError("channel model", value, [m.value for m in ChannelModel]) from None


def parse_channel_condition(value: Union[str, ChannelCondition]) -> ChannelCondition:
    """Resolve a channel condition identifier, failing closed on unknown values."""
    if isinstance(value, ChannelCondition):
        return value
    try:
        return ChannelCondition(value)
    except ValueError:
        raise ConfigurationError("channel condition model", value,
                                 [c.value for c in ChannelCondition]) from None


@dataclass(frozen=True)
class AntennaConfig:
    """Antenna model of one device class (all UEs or all gNBs)."""
    antenna_type: str
    element_type: Optional[str] = None
    num_rows: int = 1
    num_columns: int = 1

    @property
    def is_array(self) -> bool:
        return self.antenna_type == UNIFORM_PLANAR_ARRAY

    def to_attributes(self, prefix: str) -> Dict[str, str]:
        attributes = {f"{prefix}::AntennaTypeId": self.antenna_type}
        if self.is_array:
            attributes[f"{prefix}::NumRows"] = str(self.num_rows)
            attributes[f"{prefix}::NumColumns"] = str(self.num_columns)
            attributes[f"{prefix}::AntennaElement"] = self.element_type
        return attributes


class ChannelConfig:
    """
    Common interface of the channel configuration variants.

    Concrete variants are PhasedArrayChannelConfig and FriisChannelConfig.
    """

    @property
    def is_phased_array(self) -> bool:
        return self.model.is_phased_array

    def to_attributes(self) -> Dict[str, str]:
        raise NotImplementedError


@dataclass(frozen=True)
class PhasedArrayChannelConfig(ChannelConfig):
    """3GPP-family channel with array antennas and ideal beamforming."""
    model: ChannelModel
    condition: ChannelCondition
    scenario: str
    ue_antenna: AntennaConfig
    gnb_antenna: AntennaConfig
    pathloss_model: str
    spectrum_model: str
    channel_condition_model: str
    fading_model: Optional[str] = None
    beamforming_method: str = DIRECT_PATH_BEAMFORMING
    shadowing_enabled: bool = True
    condition_update_period_ms: Optional[int] = None

    def __post_init__(self):
        if not self.model.is_phased_array:
            raise ConfigurationError("channel model", self.model.value,
                                     [m.value for m in ChannelModel if m.is_phased_array],
                                     "Not a phased-array model")
        for antenna in (self.ue_antenna, self.gnb_antenna):
            if not antenna.is_array or antenna.element_type == PARABOLIC_ANTENNA:
                raise ConfigurationError("antenna model", antenna.antenna_type, [UNIFORM_PLANAR_ARRAY],
                                         f"{self.model.value} requires array antennas")

    def to_attributes(self) -> Dict[str, str]:
        attributes = {
            "NrChannelHelper::Scenario": self.scenario,
            "NrChannelHelper::Condition": self.condition.value,
            "NrChannelHelper::ChannelModel": self.model.value,
            "NrChannelHelper::PathlossModel": self.pathloss_model,
            "NrChannelHelper::SpectrumModel": self.spectrum_model,
            "NrChannelHelper::ChannelConditionModel": self.channel_condition_model,
            "Pathloss::ShadowingEnabled": "true" if self.shadowing_enabled else "false",
            "NrHelper::BeamformingHelper": IDEAL_BEAMFORMING,
            "IdealBeamformingHelper::BeamformingMethod": self.beamforming_method,
        }
        if self.fading_model:
            attributes["NrChannelHelper::FadingModel"] = self.fading_model
        if self.condition_update_period_ms is not None:
            attributes["ChannelConditionModel::UpdatePeriod"] = f"{self.condition_update_period_ms}ms"
        attributes.update(self.ue_antenna.to_attributes("UeAntenna"))
        attributes.update(self.gnb_antenna.to_attributes("GnbAntenna"))
        return attributes


@dataclass(frozen=True)
class FriisChannelConfig(ChannelConfig):
    """Free-space channel with parabolic (non-array) antennas."""
    condition: ChannelCondition
    ue_antenna: AntennaConfig
    gnb_antenna: AntennaConfig
    model: ChannelModel = ChannelModel.FRIIS
    pathloss_model: str = FRIIS_PATHLOSS

    def __post_init__(self):
        if self.model != ChannelModel.FRIIS:
            raise ConfigurationError("channel model", self.model.value, [ChannelModel.FRIIS.value])
        for antenna in (self.ue_antenna, self.gnb_antenna):
            if antenna.antenna_type != PARABOLIC_ANTENNA:
                raise ConfigurationError("antenna model", antenna.antenna_type, [PARABOLIC_ANTENNA],
                                         "Friis requires non-array antennas")

    @property
    def beamforming_method(self) -> None:
        return None

    @property
    def shadowing_enabled(self) -> bool:
        return False

    def to_attributes(self) -> Dict[str, str]:
        attributes = {
            "NrChannelHelper::PropagationFactory": self.pathloss_model,
        }
        attributes.update(self.ue_antenna.to_attributes("UeAntenna"))
        attributes.update(self.gnb_antenna.to_attributes("GnbAntenna"))
        return attributes


class ChannelConfigSelector:
    """Selects the channel configuration of a trial."""

    # Every ChannelModel member must have a branch here
    BRANCHES = {
        ChannelModel.THREE_GPP: "_configure_phased_array",
        ChannelModel.NYU: "_configure_phased_array",
        ChannelModel.TWO_RAY: "_configure_phased_array",
        ChannelModel.FRIIS: "_configure_friis",
    }

    def __init__(self, scenario: str = "UMa", ue_antenna: Tuple[int, int] = (1, 1),
                 gnb_antenna: Tuple[int, int] = (4, 8), condition_update_period_ms: int = 100):
        self.scenario = scenario
        self.ue_antenna = ue_antenna
        self.gnb_antenna = gnb_antenna
        self.condition_update_period_ms = condition_update_period_ms

    def configure(self, channel_model: Union[str, ChannelModel],
                  channel_condition: Union[str, ChannelCondition]) -> ChannelConfig:
        """
        Build the channel configuration for a model and condition.

        Args:
            channel_model: 'ThreeGpp', 'NYU', 'TwoRay' or 'Friis'
            channel_condition: 'Default', 'LOS', 'NLOS' or 'Buildings'

        Returns:
            PhasedArrayChannelConfig or FriisChannelConfig

        Raises:
            ConfigurationError: On an unknown model or condition, or an
                unsupported model/scenario/condition combination
        """
        model = parse_channel_model(channel_model)
        condition = parse_channel_condition(channel_condition)

        config = getattr(self, self.BRANCHES[model])(model, condition)
        logger.info(f"Channel configured: model={model.value}, condition={condition.value}, "
                    f"scenario={self.scenario}, phased_array={config.is_phased_array}")
        return config

    def _configure_phased_array(self, model: ChannelModel,
                                condition: ChannelCondition) -> PhasedArrayChannelConfig:
        if self.scenario not in SUPPORTED_SCENARIOS[model]:
            raise ConfigurationError("scenario", self.scenario, SUPPORTED_SCENARIOS[model],
                                     f"Not supported by the {model.value} channel model")

        three_gpp_pathloss, scenario_condition_model = THREE_GPP_SCENARIOS[self.scenario]
        if model == ChannelModel.NYU:
            pathloss_model = NYU_PATHLOSS[self.scenario]
        else:
            pathloss_model = three_gpp_pathloss

        if condition == ChannelCondition.DEFAULT:
            condition_model = scenario_condition_model
        else:
            condition_model = FIXED_CONDITION_MODELS[condition]

        update_period = None
        if condition in (ChannelCondition.DEFAULT, ChannelCondition.BUILDINGS):
            update_period = self.condition_update_period_ms

        spectrum_model, fading_model = SPECTRUM_MODELS[model]
        return PhasedArrayChannelConfig(
            model=model,
            condition=condition,
            scenario=self.scenario,
            ue_antenna=AntennaConfig(UNIFORM_PLANAR_ARRAY, ISOTROPIC_ELEMENT, *self.ue_antenna),
            gnb_antenna=AntennaConfig(UNIFORM_PLANAR_ARRAY, ISOTROPIC_ELEMENT, *self.gnb_antenna),
            pathloss_model=pathloss_model,
            spectrum_model=spectrum_model,
            channel_condition_model=condition_model,
            fading_model=fading_model,
            condition_update_period_ms=update_period
        )

    def _configure_friis(self, model: ChannelModel, condition: ChannelCondition) -> FriisChannelConfig:
        if condition not in FRIIS_CONDITIONS:
            raise ConfigurationError("channel condition model", condition.value,
                                     [c.value for c in FRIIS_CONDITIONS],
                                     "Friis is a free-space model")
        return FriisChannelConfig(
            condition=condition,
            ue_antenna=AntennaConfig(PARABOLIC_ANTENNA),
            gnb_antenna=AntennaConfig(PARABOLIC_ANTENNA)
        )


_uncovered = set(ChannelModel) - set(ChannelConfigSelector.BRANCHES)
if _uncovered:
    raise RuntimeError(f"No channel configuration branch for {sorted(m.value for m in _uncovered)}")
