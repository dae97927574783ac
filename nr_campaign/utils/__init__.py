"""
Utility modules for NR trace campaigns.

This module provides configuration file management.
"""

from .config_parser import CampaignConfigParser

__all__ = ['CampaignConfigParser']
