"""
Seed ``mass_action_configs`` rows from parsed configuration definitions.

Rows are matched by name: an existing row is updated in place (its id,
and therefore its log history, is kept) and a missing one is inserted.
Run-state fields (``last_run_*``, ``next_run_at``) are never touched.
Does NOT commit -- the caller owns the transaction.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from massaction_kernel.logging_config import get_logger

from massaction_batch.domain.types import MassActionConfig
from massaction_batch.models.mass_action import MassActionConfigModel
from massaction_config.schema import MassActionConfigDef

logger = get_logger("config.seeding")

_SEEDED_FIELDS = (
    "description",
    "active",
    "source_type",
    "batch_size",
    "target_action",
    "source_report_id",
    "source_list_view_id",
    "source_soql_query",
    "source_apex_class",
    "schedule_frequency",
    "schedule_cron",
)


def seed_configurations(
    session: Session,
    defs: Iterable[MassActionConfigDef],
    actor_id: UUID,
) -> tuple[MassActionConfig, ...]:
    """Insert or update one configuration row per definition."""
    seeded: list[MassActionConfigModel] = []
    created = updated = 0

    for definition in defs:
        model = session.execute(
            select(MassActionConfigModel).where(MassActionConfigModel.name == definition.name)
        ).scalar_one_or_none()

        if model is None:
            model = MassActionConfigModel(name=definition.name, created_by_id=actor_id)
            session.add(model)
            created += 1
        else:
            model.touch(actor_id)
            updated += 1

        for name in _SEEDED_FIELDS:
            setattr(model, name, getattr(definition, name))
        model.field_mappings = dict(definition.field_mappings)
        seeded.append(model)

    session.flush()
    logger.info(
        "configurations_seeded",
        extra={"created_count": created, "updated_count": updated},
    )
    return tuple(model.to_dto() for model in seeded)
