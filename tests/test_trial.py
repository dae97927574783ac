"""
Tests for trial assembly
"""

import unittest
import json
import os
import sys
import tempfile

# Add repository root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from nr_campaign.core.config import RunSpec, ScenarioConfig
from nr_campaign.core.errors import ConfigurationError, EngineFailure
from nr_campaign.network.channel import FriisChannelConfig, PhasedArrayChannelConfig
from nr_campaign.simulation.trial import TrialBuilder, EngineConfig, TRIAL_CONFIG_FILE


class TestRunSpec(unittest.TestCase):
    """Test cases for RunSpec"""

    def test_trial_name(self):
        """Test directory naming"""
        self.assertEqual(RunSpec(seed=100, run=3).trial_name, "seed100_run3")

    def test_random_streams(self):
        """Test equal (seed, run) pairs draw identical streams"""
        first = RunSpec(seed=100, run=1).rng().random(8)
        second = RunSpec(seed=100, run=1).rng().random(8)
        other_run = RunSpec(seed=100, run=2).rng().random(8)
        other_seed = RunSpec(seed=101, run=1).rng().random(8)

        self.assertEqual(first.tolist(), second.tolist())
        self.assertNotEqual(first.tolist(), other_run.tolist())
        self.assertNotEqual(first.tolist(), other_seed.tolist())

    def test_from_scenario(self):
        """Test campaign-wide parameters are carried into the trial identity"""
        scenario = ScenarioConfig(channel_model="NYU", channel_condition_model="LOS", num_ues=6)
        spec = RunSpec.from_scenario(scenario, 104, 2)
        self.assertEqual((spec.seed, spec.run), (104, 2))
        self.assertEqual(spec.channel_model, "NYU")
        self.assertEqual(spec.channel_condition, "LOS")
        self.assertEqual(spec.ue_count, 6)
        self.assertEqual(spec.gnb_count, 1)


class TestTrialBuilder(unittest.TestCase):
    """Test cases for TrialBuilder"""

    def setUp(self):
        """Set up test fixtures"""
        self.builder = TrialBuilder(ScenarioConfig())

    def test_command_line_args(self):
        """Test the scenario program arguments"""
        setup = self.builder.build(RunSpec(seed=100, run=1))
        self.assertEqual(setup.command_line_args(), [
            "--channelModel=ThreeGpp",
            "--channelConditionModel=Default",
            "--ueNum=4",
            "--gNbNum=1",
            "--frequency=30500000000",
            "--errorModelType=ns3::NrEesmCcT1",
            "--amcSelectionModel=ErrorModel",
            "--seed=100",
            "--run=1",
            "--logging=true",
        ])

    def test_stages(self):
        """Test topology, channel, link adaptation and harness are assembled"""
        setup = self.builder.build(RunSpec(seed=100, run=1, channel_condition="NLOS"))

        self.assertEqual(setup.trial_name, "seed100_run1")
        self.assertEqual(len(setup.topology.user_equipments), 4)
        self.assertIsInstance(setup.channel, PhasedArrayChannelConfig)
        self.assertEqual(len(setup.harness.flows), 4)
        self.assertEqual(setup.link_adaptation.error_model_type, "ns3::NrEesmCcT1")

    def test_engine_config(self):
        """Test engine defaults and attributes of one trial"""
        setup = self.builder.build(RunSpec(seed=100, run=1))
        engine_config = setup.engine_config

        self.assertEqual(engine_config.defaults["ns3::NrAmc::AmcModel"], "ErrorModel")
        self.assertEqual(engine_config.defaults["ns3::NrRlcUm::MaxTxBufferSize"], "999999999")
        self.assertEqual(engine_config.attributes["GnbPhy::TxPower"], "41.0")
        self.assertEqual(engine_config.attributes["UePhy::TxPower"], "23.0")
        self.assertEqual(engine_config.attributes["GnbPhy::Numerology"], "1")
        self.assertEqual(engine_config.attributes["NrHelper::DlErrorModel"], "ns3::NrEesmCcT1")

    def test_trial_descriptor(self):
        """Test the descriptor carries the trial identity and engine configuration"""
        setup = self.builder.build(RunSpec(seed=100, run=2))
        data = setup.to_dict()

        self.assertEqual((data['trial'], data['seed'], data['run']), ("seed100_run2", 100, 2))
        self.assertEqual(data['arguments'], setup.command_line_args())
        self.assertEqual(data['defaults']["ns3::NrAmc::AmcModel"], "ErrorModel")
        self.assertEqual(data['attributes']["GnbPhy::TxPower"], "41.0")
        self.assertEqual(data['band']['numerology'], 1)
        self.assertEqual(len(data['nodes']), 5)
        self.assertEqual(data['nodes'][1]['position'], [10.0, 20.0, 1.5])
        self.assertEqual(len(data['flows']), 4)

        with tempfile.TemporaryDirectory() as directory:
            path = setup.write_config(directory)
            self.assertEqual(path.name, TRIAL_CONFIG_FILE)
            with open(path) as f:
                self.assertEqual(json.load(f), json.loads(json.dumps(data)))

    def test_engine_config_is_read_only(self):
        """Test an EngineConfig cannot be mutated after creation"""
        engine_config = EngineConfig(defaults={"a": "1"})
        with self.assertRaises(TypeError):
            engine_config.defaults["a"] = "2"

    def test_trials_do_not_share_state(self):
        """Test distinct trials get distinct topologies and configurations"""
        first = self.builder.build(RunSpec(seed=100, run=1))
        second = self.builder.build(RunSpec(seed=100, run=2))
        self.assertIsNot(first.topology, second.topology)
        self.assertIsNot(first.engine_config.attributes, second.engine_config.attributes)
        self.assertEqual(dict(first.engine_config.attributes), dict(second.engine_config.attributes))

    def test_friis_trial(self):
        """Test a Friis trial"""
        setup = self.builder.build(RunSpec(seed=1, run=1, channel_model="Friis", channel_condition="LOS"))
        self.assertIsInstance(setup.channel, FriisChannelConfig)
        self.assertNotIn("GnbAntenna::NumRows", setup.engine_config.attributes)

    def test_invalid_selection(self):
        """Test configuration errors surface from trial assembly"""
        with self.assertRaises(ConfigurationError):
            self.builder.build(RunSpec(seed=1, run=1, channel_model="Friis", channel_condition="NLOS"))
        with self.assertRaises(ConfigurationError):
            self.builder.build(RunSpec(seed=1, run=1, amc_selection_model="Fixed"))

    def test_unreachable_ue(self):
        """Test a trial with UEs but no gNB"""
        with self.assertRaises(EngineFailure):
            self.builder.build(RunSpec(seed=1, run=1, gnb_count=0))


if __name__ == '__main__':
    unittest.main()
