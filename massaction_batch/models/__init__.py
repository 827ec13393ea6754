"""
massaction_batch.models -- ORM models for mass action persistence.

Architecture: massaction_batch/models. Imports from massaction_kernel.db.base only.
"""

from massaction_batch.models.batch import BatchJobModel
from massaction_batch.models.mass_action import (
    MassActionConfigModel,
    MassActionLogModel,
)
from massaction_batch.models.sources import SavedFilterModel, SavedReportModel

__all__ = [
    "BatchJobModel",
    "MassActionConfigModel",
    "MassActionLogModel",
    "SavedFilterModel",
    "SavedReportModel",
]
