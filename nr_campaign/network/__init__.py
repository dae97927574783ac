"""
Network module for NR campaign scenarios.

This module implements the channel and link adaptation configuration.
"""

from .channel import (ChannelConfigSelector, ChannelConfig, PhasedArrayChannelConfig,
                      FriisChannelConfig, ChannelModel, ChannelCondition)
from .link_adaptation import LinkAdaptationConfigurator, LinkAdaptationConfig, AmcModel

__all__ = ['ChannelConfigSelector', 'ChannelConfig', 'PhasedArrayChannelConfig',
           'FriisChannelConfig', 'ChannelModel', 'ChannelCondition',
           'LinkAdaptationConfigurator', 'LinkAdaptationConfig', 'AmcModel']
