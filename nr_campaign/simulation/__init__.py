"""
Simulation module for NR trace campaigns.

This module assembles trials, drives the simulation engine and collects
the resulting trace corpus.
"""

from .harness import TraceHarness, TraceFileSet, HarnessPlan, TraceChannel
from .trial import TrialBuilder, TrialSetup, EngineConfig
from .engine import SimulationEngine, Ns3Engine, DryRunEngine, create_engine
from .campaign import CampaignOrchestrator, CampaignResult, TrialResult, TrialStatus
from .corpus import TraceCorpus

__all__ = ['TraceHarness', 'TraceFileSet', 'HarnessPlan', 'TraceChannel',
           'TrialBuilder', 'TrialSetup', 'EngineConfig',
           'SimulationEngine', 'Ns3Engine', 'DryRunEngine', 'create_engine',
           'CampaignOrchestrator', 'CampaignResult', 'TrialResult', 'TrialStatus',
           'TraceCorpus']
