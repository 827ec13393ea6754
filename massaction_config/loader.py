"""
Configuration Loader (``massaction_config.loader``).

Responsibility
--------------
Loads YAML files and parses them into typed ``massaction_config.schema``
dataclass instances.  A file holds a top-level ``mass_actions`` list; a
directory is loaded file by file in name order.

Invariants enforced
-------------------
* All parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; no silent defaults for required fields.
* Every parsed object is a frozen dataclass from ``schema.py``.
* Configuration names are unique across everything loaded in one call.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys in parsed dict  -> ``KeyError`` propagates.
* Unknown source type, frequency or bad batch size  -> ``ValueError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from massaction_batch.domain.schedule import parse_cron
from massaction_batch.domain.types import ScheduleFrequency, SourceType
from massaction_kernel.exceptions import InvalidCronExpressionError

from massaction_config.schema import DEFAULT_BATCH_SIZE, MassActionConfigDef


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_field_mappings(value: Any) -> dict[str, str]:
    """Parse a ``target: source`` mapping; None means no mappings."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"field_mappings must be a mapping, got {type(value).__name__}")
    return {str(target): str(source) for target, source in value.items()}


def parse_batch_size(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"batch_size must be a positive integer, got {value!r}")
    return value


def parse_mass_action_config(data: dict[str, Any]) -> MassActionConfigDef:
    """
    Parse a ``MassActionConfigDef`` from a dict.

    Preconditions:
        - ``data`` must contain ``name`` and ``source_type``.
    Raises:
        KeyError: if a required key is missing.
        ValueError: if a value is outside its allowed set.
    """
    name = str(data["name"]).strip()
    if not name:
        raise ValueError("Mass action name must not be blank")

    source_type = str(data["source_type"])
    if source_type not in SourceType.values():
        raise ValueError(
            f"Mass action {name!r}: unknown source_type {source_type!r}. "
            f"Valid: {', '.join(SourceType.values())}"
        )

    frequency = str(data.get("schedule_frequency", ScheduleFrequency.ON_DEMAND.value))
    try:
        ScheduleFrequency(frequency)
    except ValueError:
        raise ValueError(
            f"Mass action {name!r}: unknown schedule_frequency {frequency!r}"
        ) from None

    cron = _optional_str(data, "schedule_cron")
    if cron is not None:
        try:
            parse_cron(cron)
        except InvalidCronExpressionError as exc:
            raise ValueError(f"Mass action {name!r}: {exc}") from exc

    return MassActionConfigDef(
        name=name,
        source_type=source_type,
        batch_size=parse_batch_size(data.get("batch_size", DEFAULT_BATCH_SIZE)),
        active=bool(data.get("active", True)),
        target_action=_optional_str(data, "target_action"),
        field_mappings=parse_field_mappings(data.get("field_mappings")),
        source_report_id=_optional_str(data, "source_report_id"),
        source_list_view_id=_optional_str(data, "source_list_view_id"),
        source_soql_query=_optional_str(data, "source_soql_query"),
        source_apex_class=_optional_str(data, "source_apex_class"),
        schedule_frequency=frequency,
        schedule_cron=cron,
        description=_optional_str(data, "description"),
    )


def load_mass_action_configs(path: Path | str) -> tuple[MassActionConfigDef, ...]:
    """
    Load every configuration under ``path`` (a YAML file or a directory).

    Raises:
        ValueError: if two configurations share a name.
    """
    path = Path(path)
    if path.is_dir():
        files = sorted([*path.glob("*.yaml"), *path.glob("*.yml")])
    else:
        files = [path]

    defs: list[MassActionConfigDef] = []
    seen: dict[str, Path] = {}
    for file in files:
        data = load_yaml_file(file)
        for item in data.get("mass_actions", []) or []:
            config = parse_mass_action_config(item)
            if config.name in seen:
                raise ValueError(
                    f"Duplicate mass action {config.name!r} in {file} "
                    f"(first defined in {seen[config.name]})"
                )
            seen[config.name] = file
            defs.append(config)
    return tuple(defs)
