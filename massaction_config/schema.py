"""
Configuration schema (``massaction_config.schema``).

Frozen dataclasses describing mass action configurations as they appear
in YAML.  The loader produces these; ``seed_configurations`` turns them
into ``mass_action_configs`` rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_BATCH_SIZE = 200


@dataclass(frozen=True)
class MassActionConfigDef:
    """Declarative mass action configuration from YAML."""

    name: str
    source_type: str  # Matches SourceType values
    batch_size: int = DEFAULT_BATCH_SIZE
    active: bool = True
    target_action: str | None = None
    field_mappings: dict[str, str] = field(default_factory=dict)  # target -> source
    source_report_id: str | None = None
    source_list_view_id: str | None = None
    source_soql_query: str | None = None
    source_apex_class: str | None = None
    schedule_frequency: str = "on_demand"  # Matches ScheduleFrequency values
    schedule_cron: str | None = None
    description: str | None = None
