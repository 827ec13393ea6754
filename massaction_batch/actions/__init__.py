"""
massaction_batch.actions -- Target actions invoked once per chunk.
"""

from massaction_batch.actions.base import (
    ActionChunkWork,
    ActionRegistry,
    TargetAction,
    build_action_inputs,
)
from massaction_batch.actions.builtin import InsertRowsAction, LogRowsAction

__all__ = [
    "ActionChunkWork",
    "ActionRegistry",
    "InsertRowsAction",
    "LogRowsAction",
    "TargetAction",
    "build_action_inputs",
]
