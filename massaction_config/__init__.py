"""
massaction_config -- YAML-defined mass action configurations.

Parses YAML into frozen ``MassActionConfigDef`` dataclasses and seeds them
into the ``mass_action_configs`` table.  This package sits above
``massaction_batch``; nothing in the batch or kernel packages imports it.
"""

from massaction_config.loader import (
    load_mass_action_configs,
    load_yaml_file,
    parse_mass_action_config,
)
from massaction_config.schema import MassActionConfigDef
from massaction_config.seeding import seed_configurations

__all__ = [
    "MassActionConfigDef",
    "load_mass_action_configs",
    "load_yaml_file",
    "parse_mass_action_config",
    "seed_configurations",
]
