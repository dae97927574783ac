"""
Configuration Parser for NR trace campaigns

This module handles loading and validation of campaign configuration files.
"""

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict

import jsonschema
import yaml

from ..core.config import CampaignConfig, ScenarioConfig

logger = logging.getLogger(__name__)

# ScenarioConfig fields grouped by file section
SCENARIO_SECTIONS = ("scenario", "topology", "antenna", "traffic")


class CampaignConfigParser:
    """
    Configuration parser and validator for campaign parameters
    """

    # Model names are checked by the configurators; the schema only checks types.
    CONFIG_SCHEMA = {
        "type": "object",
        "properties": {
            "campaign": {
                "type": "object",
                "properties": {
                    "output_root": {"type": "string"},
                    "start_seed": {"type": "integer", "minimum": 0},
                    "end_seed": {"type": "integer", "minimum": 0},
                    "runs_per_seed": {"type": "integer", "minimum": 0},
                    "trace_files": {
                        "type": ["array", "null"],
                        "items": {"type": "string"}
                    },
                    "workspace": {"type": "string"},
                    "working_directory": {"type": ["string", "null"]},
                    "max_workers": {"type": "integer", "minimum": 1},
                    "on_configuration_error": {"type": "string"},
                    "log_level": {"type": "string", "enum": ["DEBUG", "INFO", "WARNING", "ERROR"]}
                },
                "required": ["start_seed", "end_seed", "runs_per_seed"],
                "additionalProperties": False
            },
            "scenario": {
                "type": "object",
                "properties": {
                    "channel_model": {"type": "string"},
                    "channel_condition_model": {"type": "string"},
                    "scenario": {"type": "string"},
                    "num_gnbs": {"type": "integer", "minimum": 0},
                    "num_ues": {"type": "integer", "minimum": 0},
                    "frequency": {"type": "number", "minimum": 1e8},
                    "bandwidth": {"type": "number", "minimum": 1e6},
                    "num_component_carriers": {"type": "integer", "minimum": 1},
                    "numerology": {"type": "integer", "minimum": 0, "maximum": 6},
                    "bs_tx_power": {"type": "number"},
                    "ue_tx_power": {"type": "number"},
                    "error_model_type": {"type": "string"},
                    "amc_selection_model": {"type": "string"},
                    "logging": {"type": "boolean"}
                },
                "additionalProperties": False
            },
            "topology": {
                "type": "object",
                "properties": {
                    "inter_site_distance": {"type": "number", "exclusiveMinimum": 0},
                    "sectorization": {"type": "integer"},
                    "ue_height": {"type": "number", "minimum": 0},
                    "bs_height": {"type": "number", "minimum": 0},
                    "ue_speed": {"type": "number", "minimum": 0},
                    "ue_placement": {"type": "string"},
                    "velocity_profile": {"type": "string"}
                },
                "additionalProperties": False
            },
            "antenna": {
                "type": "object",
                "properties": {
                    "ue_antenna_rows": {"type": "integer", "minimum": 1},
                    "ue_antenna_columns": {"type": "integer", "minimum": 1},
                    "gnb_antenna_rows": {"type": "integer", "minimum": 1},
                    "gnb_antenna_columns": {"type": "integer", "minimum": 1}
                },
                "additionalProperties": False
            },
            "traffic": {
                "type": "object",
                "properties": {
                    "traffic_start_time": {"type": "number", "minimum": 0},
                    "simulation_time": {"type": "number", "exclusiveMinimum": 0},
                    "dl_port": {"type": "integer", "minimum": 1, "maximum": 65535}
                },
                "additionalProperties": False
            },
            "engine": {
                "type": "object",
                "properties": {
                    "type": {"type": "string"},
                    "ns3_path": {"type": "string"},
                    "ns3_program": {"type": "string"}
                },
                "additionalProperties": False
            }
        },
        "required": ["campaign"],
        "additionalProperties": False
    }

    @classmethod
    def read_file(cls, config_path: str) -> Dict[str, Any]:
        """Read a JSON or YAML file into a dictionary"""
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, 'r') as f:
            if config_file.suffix.lower() in ['.yaml', '.yml']:
                return yaml.safe_load(f) or {}
            return json.load(f)

    @classmethod
    def load_config(cls, config_path: str) -> CampaignConfig:
        """
        Load configuration from a JSON or YAML file

        Args:
            config_path: Path to configuration file

        Returns:
            CampaignConfig object

        Raises:
            FileNotFoundError: If config file doesn't exist
            json.JSONDecodeError: If JSON is invalid
            yaml.YAMLError: If YAML is invalid
            jsonschema.ValidationError: If config doesn't match schema
        """
        logger.info(f"Loading configuration from {config_path}")

        try:
            config_data = cls.read_file(config_path)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            logger.error(f"Invalid configuration file: {e}")
            raise

        config = cls.from_dict(config_data)
        logger.info("Configuration loaded and validated successfully")
        return config

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> CampaignConfig:
        """Validate a configuration dictionary and convert it"""
        try:
            jsonschema.validate(config_data, cls.CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            logger.error(f"Configuration validation error: {e.message}")
            raise

        return cls._dict_to_config(config_data)

    @classmethod
    def _dict_to_config(cls, config_data: Dict[str, Any]) -> CampaignConfig:
        """Convert configuration dictionary to CampaignConfig object"""
        scenario_values: Dict[str, Any] = {}
        for section in SCENARIO_SECTIONS:
            scenario_values.update(config_data.get(section, {}))

        engine_config = dict(config_data.get('engine', {}))
        if 'type' in engine_config:
            engine_config['engine'] = engine_config.pop('type')

        return CampaignConfig(
            scenario=ScenarioConfig(**scenario_values),
            **config_data.get('campaign', {}),
            **engine_config
        )

    @classmethod
    def config_to_dict(cls, config: CampaignConfig) -> Dict[str, Any]:
        """Convert a CampaignConfig back to the sectioned file layout"""
        scenario_values = asdict(config.scenario)
        section_properties = cls.CONFIG_SCHEMA['properties']

        config_data: Dict[str, Any] = {
            'campaign': {
                key: getattr(config, key) for key in section_properties['campaign']['properties']
            }
        }
        for section in SCENARIO_SECTIONS:
            config_data[section] = {
                key: scenario_values[key] for key in section_properties[section]['properties']
            }
        config_data['engine'] = {
            'type': config.engine,
            'ns3_path': config.ns3_path,
            'ns3_program': config.ns3_program
        }
        return config_data

    @classmethod
    def save_config(cls, config_data: Dict[str, Any], output_path: str):
        """Write a configuration dictionary as JSON or YAML depending on the suffix"""
        output_file = Path(output_path)
        try:
            with open(output_file, 'w') as f:
                if output_file.suffix.lower() in ['.yaml', '.yml']:
                    yaml.dump(config_data, f, default_flow_style=False, indent=2, sort_keys=False)
                else:
                    json.dump(config_data, f, indent=2)
        except IOError as e:
            logger.error(f"Failed to write configuration {output_path}: {e}")
            raise

    @classmethod
    def create_default_config(cls, output_path: str = "campaign_template.json"):
        """Create a default configuration file template"""
        cls.save_config(cls.config_to_dict(CampaignConfig()), output_path)
        logger.info(f"Default configuration template created: {output_path}")

    @classmethod
    def validate_config_file(cls, config_path: str) -> bool:
        """
        Validate configuration file without running it

        Args:
            config_path: Path to configuration file

        Returns:
            True if valid, False otherwise
        """
        try:
            cls.load_config(config_path)
            return True
        except (OSError, ValueError, TypeError, yaml.YAMLError, jsonschema.ValidationError) as e:
            logger.error(f"Configuration validation failed: {e}")
            return False

    @classmethod
    def get_scenario_configs(cls) -> Dict[str, Dict]:
        """Get predefined campaign configurations"""
        base = cls.config_to_dict(CampaignConfig())

        overrides = {
            "threegpp_nlos_sweep": {
                "campaign": {
                    "output_root": "sim_results",
                    "start_seed": 100,
                    "end_seed": 110,
                    "runs_per_seed": 3
                },
                "scenario": {
                    "channel_model": "ThreeGpp",
                    "channel_condition_model": "NLOS"
                }
            },

            "friis_los_baseline": {
                "campaign": {
                    "output_root": "sim_results/friis_los",
                    "start_seed": 100,
                    "end_seed": 105,
                    "runs_per_seed": 2
                },
                "scenario": {
                    "channel_model": "Friis",
                    "channel_condition_model": "LOS"
                }
            },

            "shannon_amc_comparison": {
                "campaign": {
                    "output_root": "sim_results/shannon_amc",
                    "start_seed": 100,
                    "end_seed": 110,
                    "runs_per_seed": 3
                },
                "scenario": {
                    "channel_model": "ThreeGpp",
                    "channel_condition_model": "NLOS",
                    "amc_selection_model": "ShannonModel"
                }
            },

            "multi_cell_scattered": {
                "campaign": {
                    "output_root": "sim_results/multi_cell",
                    "start_seed": 200,
                    "end_seed": 205,
                    "runs_per_seed": 2,
                    "max_workers": 4
                },
                "scenario": {
                    "channel_model": "NYU",
                    "channel_condition_model": "Default",
                    "num_gnbs": 7,
                    "num_ues": 21
                },
                "topology": {
                    "inter_site_distance": 500.0,
                    "sectorization": 3,
                    "ue_placement": "scattered",
                    "velocity_profile": "uniform",
                    "ue_speed": 3.0
                }
            },

            "quick_dry_run": {
                "campaign": {
                    "output_root": "sim_results/dry_run",
                    "start_seed": 1,
                    "end_seed": 3,
                    "runs_per_seed": 2
                },
                "traffic": {
                    "simulation_time": 1.0
                },
                "engine": {
                    "type": "dry_run"
                }
            }
        }

        return {name: cls.merge_configs(base, override) for name, override in overrides.items()}

    @classmethod
    def create_scenario_configs(cls, output_dir: str = "campaigns"):
        """Create all predefined campaign configuration files"""
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        for scenario_name, config in cls.get_scenario_configs().items():
            config_file = output_path / f"{scenario_name}.json"

            try:
                cls.save_config(config, str(config_file))
                logger.info(f"Created campaign config: {config_file}")
            except IOError as e:
                logger.error(f"Failed to create campaign {scenario_name}: {e}")

    @classmethod
    def merge_configs(cls, base_config: Dict, override_config: Dict) -> Dict:
        """
        Merge two configuration dictionaries

        Args:
            base_config: Base configuration
            override_config: Override values

        Returns:
            Merged configuration
        """
        def deep_merge(base: Dict, override: Dict) -> Dict:
            result = base.copy()

            for key, value in override.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = deep_merge(result[key], value)
                else:
                    result[key] = value

            return result

        return deep_merge(base_config, override_config)
