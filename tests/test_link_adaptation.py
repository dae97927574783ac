"""
Tests for link adaptation configuration
"""

import unittest
import os
import sys

# Add repository root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from nr_campaign.core.errors import ConfigurationError
from nr_campaign.network.link_adaptation import (LinkAdaptationConfigurator, AmcModel,
                                                 ERROR_MODEL_TYPES, RLC_UM_MAX_TX_BUFFER)


class TestLinkAdaptationConfigurator(unittest.TestCase):
    """Test cases for LinkAdaptationConfigurator"""

    def setUp(self):
        """Set up test fixtures"""
        self.configurator = LinkAdaptationConfigurator()

    def test_error_model_amc(self):
        """Test error-model based AMC"""
        config = self.configurator.configure("ns3::NrEesmCcT1", "ErrorModel")
        self.assertEqual(config.amc_model, AmcModel.ERROR_MODEL)
        self.assertEqual(config.error_model_type, "ns3::NrEesmCcT1")
        self.assertFalse(config.fixed_mcs_dl)
        self.assertFalse(config.fixed_mcs_ul)

    def test_uplink_downlink_symmetry(self):
        """Test identical settings in both directions"""
        for error_model in ERROR_MODEL_TYPES:
            for amc in ("ErrorModel", "ShannonModel"):
                attributes = self.configurator.configure(error_model, amc).to_attributes()
                self.assertEqual(attributes["NrHelper::DlErrorModel"], attributes["NrHelper::UlErrorModel"])
                self.assertEqual(attributes["GnbDlAmc::AmcModel"], attributes["GnbUlAmc::AmcModel"])
                self.assertEqual(attributes["GnbDlAmc::AmcModel"], amc)
                self.assertEqual(attributes["Scheduler::FixedMcsDl"], "false")
                self.assertEqual(attributes["Scheduler::FixedMcsUl"], "false")

    def test_engine_defaults(self):
        """Test type-wide AMC defaults and unbounded RLC buffer"""
        defaults = self.configurator.configure("ns3::NrLteMiErrorModel", "ShannonModel").engine_defaults()
        self.assertEqual(defaults["ns3::NrAmc::ErrorModelType"], "ns3::NrLteMiErrorModel")
        self.assertEqual(defaults["ns3::NrAmc::AmcModel"], "ShannonModel")
        self.assertEqual(defaults["ns3::NrRlcUm::MaxTxBufferSize"], str(RLC_UM_MAX_TX_BUFFER))
        self.assertEqual(RLC_UM_MAX_TX_BUFFER, 999999999)

    def test_enum_input(self):
        """Test AmcModel members are accepted"""
        config = self.configurator.configure("ns3::NrEesmIrT2", AmcModel.SHANNON_MODEL)
        self.assertEqual(config.amc_model, AmcModel.SHANNON_MODEL)

    def test_unknown_amc_model(self):
        """Test AMC must be exactly ErrorModel or ShannonModel"""
        for value in ("Fixed", "errormodel", ""):
            with self.assertRaises(ConfigurationError) as ctx:
                self.configurator.configure("ns3::NrEesmCcT1", value)
            self.assertEqual(ctx.exception.field, "amcSelectionModel")
            self.assertEqual(set(ctx.exception.accepted), {"ErrorModel", "ShannonModel"})

    def test_unknown_error_model(self):
        """Test unknown error model type"""
        with self.assertRaises(ConfigurationError) as ctx:
            self.configurator.configure("ns3::NrEesmCcT3", "ErrorModel")
        self.assertEqual(ctx.exception.field, "errorModelType")
        self.assertIn("ns3::NrEesmCcT3", str(ctx.exception))


if __name__ == '__main__':
    unittest.main()
