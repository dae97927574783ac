"""Core configuration and error types."""

from .config import ScenarioConfig, CampaignConfig, RunSpec
from .errors import ConfigurationError, EngineFailure, CollectionWarning

__all__ = ['ScenarioConfig', 'CampaignConfig', 'RunSpec',
           'ConfigurationError', 'EngineFailure', 'CollectionWarning']
