"""
Tests for Configuration Parser
"""

import unittest
import json
import tempfile
import os
import sys

import jsonschema
import yaml

# Add repository root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from nr_campaign.utils.config_parser import CampaignConfigParser
from nr_campaign.core.config import CampaignConfig, ScenarioConfig
from nr_campaign.simulation.campaign import CampaignOrchestrator


class TestConfigParser(unittest.TestCase):
    """Test cases for Configuration Parser"""

    def setUp(self):
        """Set up test fixtures"""
        self.temp_dir = tempfile.TemporaryDirectory()
        self.valid_config = {
            "campaign": {
                "output_root": "results/nlos",
                "start_seed": 100,
                "end_seed": 110,
                "runs_per_seed": 3,
                "max_workers": 2
            },
            "scenario": {
                "channel_model": "ThreeGpp",
                "channel_condition_model": "NLOS",
                "num_ues": 6
            },
            "topology": {
                "inter_site_distance": 300.0
            },
            "engine": {
                "type": "dry_run"
            }
        }

    def tearDown(self):
        """Clean up test fixtures"""
        self.temp_dir.cleanup()

    def path(self, name):
        return os.path.join(self.temp_dir.name, name)

    def write_json(self, name, data):
        with open(self.path(name), 'w') as f:
            json.dump(data, f)
        return self.path(name)

    def test_valid_config_loading(self):
        """Test loading a valid configuration"""
        config = CampaignConfigParser.load_config(self.write_json("campaign.json", self.valid_config))

        self.assertIsInstance(config, CampaignConfig)
        self.assertEqual(config.output_root, "results/nlos")
        self.assertEqual((config.start_seed, config.end_seed, config.runs_per_seed), (100, 110, 3))
        self.assertEqual(config.max_workers, 2)
        self.assertEqual(config.engine, "dry_run")
        self.assertEqual(config.scenario.channel_condition_model, "NLOS")
        self.assertEqual(config.scenario.num_ues, 6)
        self.assertEqual(config.scenario.inter_site_distance, 300.0)

    def test_defaults_for_omitted_values(self):
        """Test omitted sections fall back to defaults"""
        config = CampaignConfigParser.load_config(self.write_json("campaign.json", self.valid_config))
        self.assertEqual(config.scenario.frequency, 30.5e9)
        self.assertEqual(config.scenario.gnb_antenna_columns, 8)
        self.assertEqual(config.workspace, "isolated")
        self.assertIsNone(config.trace_files)

    def test_yaml_config(self):
        """Test loading a YAML configuration"""
        with open(self.path("campaign.yaml"), 'w') as f:
            yaml.safe_dump(self.valid_config, f)

        config = CampaignConfigParser.load_config(self.path("campaign.yaml"))
        self.assertEqual(config.scenario.channel_model, "ThreeGpp")
        self.assertEqual(config.max_workers, 2)

    def test_invalid_json(self):
        """Test handling of invalid JSON"""
        with open(self.path("broken.json"), 'w') as f:
            f.write("{ invalid json }")

        with self.assertRaises(json.JSONDecodeError):
            CampaignConfigParser.load_config(self.path("broken.json"))

    def test_missing_file(self):
        """Test handling of missing configuration file"""
        with self.assertRaises(FileNotFoundError):
            CampaignConfigParser.load_config(self.path("nonexistent.json"))

    def test_schema_validation(self):
        """Test schema violations"""
        invalid = CampaignConfigParser.merge_configs(self.valid_config, {"campaign": {"runs_per_seed": -1}})
        with self.assertRaises(jsonschema.ValidationError):
            CampaignConfigParser.from_dict(invalid)

        unknown_key = CampaignConfigParser.merge_configs(self.valid_config, {"scenario": {"fading": "Rayleigh"}})
        with self.assertRaises(jsonschema.ValidationError):
            CampaignConfigParser.from_dict(unknown_key)

        negative_seed = CampaignConfigParser.merge_configs(self.valid_config, {"campaign": {"start_seed": -1}})
        with self.assertRaises(jsonschema.ValidationError):
            CampaignConfigParser.from_dict(negative_seed)

        missing_section = {"scenario": {"channel_model": "NYU"}}
        with self.assertRaises(jsonschema.ValidationError):
            CampaignConfigParser.from_dict(missing_section)

    def test_model_names_checked_at_campaign_start(self):
        """Test an unknown channel model passes the schema and fails in the campaign"""
        data = CampaignConfigParser.merge_configs(self.valid_config, {"scenario": {"channel_model": "Rayleigh"}})
        config = CampaignConfigParser.from_dict(data)
        self.assertEqual(config.scenario.channel_model, "Rayleigh")

        with self.assertRaises(ValueError):
            CampaignOrchestrator(config).plan()

    def test_create_default_config(self):
        """Test the default template loads back to the default configuration"""
        for name in ("template.json", "template.yaml"):
            CampaignConfigParser.create_default_config(self.path(name))
            self.assertTrue(os.path.exists(self.path(name)))
            self.assertEqual(CampaignConfigParser.load_config(self.path(name)), CampaignConfig())

    def test_config_to_dict_sections(self):
        """Test sectioned layout of a configuration"""
        data = CampaignConfigParser.config_to_dict(CampaignConfig(scenario=ScenarioConfig(num_ues=9)))
        self.assertEqual(set(data), {"campaign", "scenario", "topology", "antenna", "traffic", "engine"})
        self.assertEqual(data["scenario"]["num_ues"], 9)
        self.assertEqual(data["engine"]["type"], "ns3")
        self.assertEqual(data["antenna"]["gnb_antenna_rows"], 4)

    def test_validate_config_file(self):
        """Test validation helper"""
        self.assertTrue(CampaignConfigParser.validate_config_file(
            self.write_json("valid.json", self.valid_config)))
        self.assertFalse(CampaignConfigParser.validate_config_file(
            self.write_json("invalid.json", {"campaign": {"start_seed": "one"}})))
        self.assertFalse(CampaignConfigParser.validate_config_file(self.path("nonexistent.json")))

    def test_scenario_configs(self):
        """Test predefined campaign configurations"""
        scenarios = CampaignConfigParser.get_scenario_configs()

        expected_scenarios = ["threegpp_nlos_sweep", "friis_los_baseline", "shannon_amc_comparison",
                              "multi_cell_scattered", "quick_dry_run"]
        for scenario_name in expected_scenarios:
            self.assertIn(scenario_name, scenarios)
            config = CampaignConfigParser.from_dict(scenarios[scenario_name])
            self.assertIsInstance(config, CampaignConfig)

        sweep = CampaignConfigParser.from_dict(scenarios["threegpp_nlos_sweep"])
        self.assertEqual(sweep.scenario.channel_condition_model, "NLOS")
        self.assertEqual(sweep.output_root, "sim_results")
        self.assertEqual((sweep.start_seed, sweep.end_seed, sweep.runs_per_seed), (100, 110, 3))

    def test_scenario_presets_are_valid_campaigns(self):
        """Test every preset configures its first trial"""
        for name, data in CampaignConfigParser.get_scenario_configs().items():
            orchestrator = CampaignOrchestrator(CampaignConfigParser.from_dict(data))
            spec = orchestrator.run_specs()[0]
            orchestrator.trial_builder.build(spec)

    def test_create_scenario_configs(self):
        """Test writing the predefined configurations"""
        output_dir = self.path("campaigns")
        CampaignConfigParser.create_scenario_configs(output_dir)
        files = sorted(os.listdir(output_dir))
        self.assertEqual(len(files), 5)
        self.assertIn("quick_dry_run.json", files)

    def test_merge_configs(self):
        """Test configuration merging"""
        base_config = {
            "campaign": {"start_seed": 100, "runs_per_seed": 3},
            "scenario": {"channel_model": "ThreeGpp"}
        }

        override_config = {
            "campaign": {"runs_per_seed": 5},
            "engine": {"type": "dry_run"}
        }

        merged = CampaignConfigParser.merge_configs(base_config, override_config)

        self.assertEqual(merged["campaign"]["start_seed"], 100)
        self.assertEqual(merged["campaign"]["runs_per_seed"], 5)
        self.assertEqual(merged["scenario"]["channel_model"], "ThreeGpp")
        self.assertEqual(merged["engine"]["type"], "dry_run")
        self.assertEqual(base_config["campaign"]["runs_per_seed"], 3)


if __name__ == '__main__':
    unittest.main()
