"""
Tests for the trace harness and trace file set
"""

import unittest
import os
import sys

# Add repository root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from nr_campaign.core.errors import ConfigurationError, EngineFailure
from nr_campaign.mobility.topology import TopologyBuilder, BandDescriptor
from nr_campaign.simulation.harness import (TraceHarness, TraceFileSet, TraceChannel,
                                            DEFAULT_TRACE_FILES, TOPOLOGY_DIAGRAM_FILE)


class TestTraceFileSet(unittest.TestCase):
    """Test cases for TraceFileSet"""

    def test_default_names(self):
        """Test the default corpus files in collection order"""
        trace_files = TraceFileSet.from_names(None)
        self.assertEqual(list(trace_files), [
            "NrDlMacStats.txt",
            "DlDataSinr.txt",
            "RxedGnbMacCtrlMsgsTrace.txt",
            "hexagonal-topology.gnuplot",
        ])
        self.assertEqual(len(trace_files), 4)
        self.assertIn(TOPOLOGY_DIAGRAM_FILE, trace_files)

    def test_custom_names(self):
        """Test a custom trace file list"""
        trace_files = TraceFileSet.from_names(["DlDataSinr.txt", "DlPathlossTrace.txt"])
        self.assertEqual(trace_files.names, ("DlDataSinr.txt", "DlPathlossTrace.txt"))

    def test_rejects_patterns_and_paths(self):
        """Test names must be exact file names"""
        for name in ("*.txt", "Dl?ataSinr.txt", "logs/DlDataSinr.txt", "", "a\\b.txt"):
            with self.assertRaises(ConfigurationError):
                TraceFileSet.from_names([name])

    def test_rejects_duplicates(self):
        """Test duplicate names"""
        with self.assertRaises(ConfigurationError):
            TraceFileSet.from_names(["DlDataSinr.txt", "DlDataSinr.txt"])


class TestTraceHarness(unittest.TestCase):
    """Test cases for TraceHarness"""

    def setUp(self):
        """Set up test fixtures"""
        self.band = BandDescriptor(center_frequency=30.5e9, bandwidth=100e6)
        self.harness = TraceHarness()

    def test_one_flow_per_ue(self):
        """Test every UE receives one downlink gaming flow"""
        topology = TopologyBuilder().build(4, 1, self.band)
        plan = self.harness.install(topology)

        self.assertEqual(len(plan.flows), 4)
        self.assertEqual([f.ue_id for f in plan.flows], [ue.node_id for ue in topology.user_equipments])
        for flow in plan.flows:
            self.assertEqual(flow.gnb_id, 0)
            self.assertEqual(flow.port, 1234)
            self.assertEqual(flow.start_time, 0.0)
            self.assertEqual(flow.stop_time, 10.0)
            self.assertEqual(flow.traffic_type, "ns3::TrafficGeneratorNgmnGaming")
            self.assertEqual(flow.socket_factory, "ns3::UdpSocketFactory")

    def test_ues_attached(self):
        """Test installation attaches every UE"""
        topology = TopologyBuilder().build(3, 2, self.band)
        self.harness.install(topology)
        self.assertTrue(all(ue.attached_to is not None for ue in topology.user_equipments))

    def test_trace_channels(self):
        """Test exactly the four corpus traces are enabled"""
        plan = self.harness.install(TopologyBuilder().build(1, 1, self.band))
        self.assertEqual(set(plan.traces), set(TraceChannel))
        self.assertIn("DlDataSinr.txt", plan.trace_files)
        self.assertIn("NrDlMacStats.txt", plan.trace_files)
        self.assertIn("RxedGnbMacCtrlMsgsTrace.txt", plan.trace_files)
        self.assertIn("DlPathlossTrace.txt", plan.trace_files)

    def test_default_files_are_traced_or_diagram(self):
        """Test every default corpus file is produced by a trace or is the diagram"""
        plan = self.harness.install(TopologyBuilder().build(1, 1, self.band))
        for name in DEFAULT_TRACE_FILES:
            self.assertTrue(name in plan.trace_files or name == TOPOLOGY_DIAGRAM_FILE)

    def test_empty_topology(self):
        """Test no flows without UEs"""
        plan = self.harness.install(TopologyBuilder().build(0, 0, self.band))
        self.assertEqual(plan.flows, [])

    def test_unreachable_ue(self):
        """Test UEs without gNB"""
        with self.assertRaises(EngineFailure):
            self.harness.install(TopologyBuilder().build(2, 0, self.band))

    def test_invalid_time_window(self):
        """Test traffic must stop after it starts"""
        with self.assertRaises(ConfigurationError):
            TraceHarness(start_time=5.0, stop_time=5.0)


if __name__ == '__main__':
    unittest.main()
