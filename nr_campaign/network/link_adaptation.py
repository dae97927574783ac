"""
Link adaptation (AMC and error model) configuration.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Union

from ..core.errors import ConfigurationError

logger = logging.getLogger(__name__)


class AmcModel(Enum):
    """MCS selection strategies of the NR AMC."""
    ERROR_MODEL = "ErrorModel"
    SHANNON_MODEL = "ShannonModel"


ERROR_MODEL_TYPES = (
    "ns3::NrEesmCcT1",
    "ns3::NrEesmCcT2",
    "ns3::NrEesmIrT1",
    "ns3::NrEesmIrT2",
    "ns3::NrLteMiErrorModel",
)

# Unbounded RLC UM buffer so traffic is never dropped before scheduling
RLC_UM_MAX_TX_BUFFER = 999999999


@dataclass(frozen=True)
class LinkAdaptationConfig:
    """Error model and AMC strategy, identical for uplink and downlink."""
    error_model_type: str
    amc_model: AmcModel
    fixed_mcs_dl: bool = False
    fixed_mcs_ul: bool = False

    def engine_defaults(self) -> Dict[str, str]:
        """Type-wide defaults applied before device creation."""
        return {
            "ns3::NrAmc::ErrorModelType": self.error_model_type,
            "ns3::NrAmc::AmcModel": self.amc_model.value,
            "ns3::NrRlcUm::MaxTxBufferSize": str(RLC_UM_MAX_TX_BUFFER),
        }

    def to_attributes(self) -> Dict[str, str]:
        """Scheduler, error model and per-direction gNB AMC attributes."""
        return {
            "Scheduler::FixedMcsDl": "true" if self.fixed_mcs_dl else "false",
            "Scheduler::FixedMcsUl": "true" if self.fixed_mcs_ul else "false",
            "NrHelper::DlErrorModel": self.error_model_type,
            "NrHelper::UlErrorModel": self.error_model_type,
            "GnbDlAmc::AmcModel": self.amc_model.value,
            "GnbUlAmc::AmcModel": self.amc_model.value,
        }


class LinkAdaptationConfigurator:
    """Validates and builds the link adaptation settings of a trial."""

    def configure(self, error_model_type: str,
                  amc_selection_model: Union[str, AmcModel]) -> LinkAdaptationConfig:
        """
        Build the link adaptation configuration.

        Args:
            error_model_type: NR error model type id, e.g. 'ns3::NrEesmCcT1'
            amc_selection_model: 'ErrorModel' or 'ShannonModel'

        Returns:
            LinkAdaptationConfig with adaptive MCS in both directions

        Raises:
            ConfigurationError: On an unknown AMC model or error model
        """
        if isinstance(amc_selection_model, AmcModel):
            amc_model = amc_selection_model
        else:
            try:
                amc_model = AmcModel(amc_selection_model)
            except ValueError:
                raise ConfigurationError("amcSelectionModel", amc_selection_model,
                                         [m.value for m in AmcModel]) from None

        if error_model_type not in ERROR_MODEL_TYPES:
            raise ConfigurationError("errorModelType", error_model_type, ERROR_MODEL_TYPES)

        config = LinkAdaptationConfig(error_model_type=error_model_type, amc_model=amc_model)
        logger.info(f"Link adaptation: error model {error_model_type}, AMC {amc_model.value}")
        return config
