"""
TargetAction protocol, ActionRegistry, and field-mapping helpers.

Contract:
    A ``TargetAction`` receives one chunk of mapped inputs at a time.
    ``ActionRegistry`` stores actions keyed by ``name``.
    ``build_action_inputs()`` turns source rows into action inputs using
    the configuration's field mappings (target field -> source field),
    matching source fields case-insensitively.
    ``ActionChunkWork`` is the chunk work function the runner calls.

Invariants enforced:
    - One action per name.
    - A mapped source field missing from a row maps to None.
    - With no mappings a row is passed through unchanged.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from massaction_kernel.exceptions import ActionNotRegisteredError
from massaction_kernel.logging_config import get_logger
from massaction_kernel.utils.keys import CaseInsensitiveDict

from massaction_batch.domain.types import ChunkContext

logger = get_logger("batch.actions")


# =============================================================================
# TargetAction Protocol
# =============================================================================


@runtime_checkable
class TargetAction(Protocol):
    """Protocol for the action a mass action performs on each chunk.

    Contract:
        - ``name``: unique key registered in ActionRegistry.
        - ``invoke()``: processes ONE chunk; raising fails that chunk only.
    """

    @property
    def name(self) -> str: ...

    def invoke(self, inputs: list[dict[str, Any]]) -> None: ...


# =============================================================================
# ActionRegistry
# =============================================================================


class ActionRegistry:
    """Registry mapping action names to TargetAction implementations.

    Contract:
        - ``register()`` adds an action; raises ValueError on duplicate.
        - ``get()`` retrieves by name; raises ActionNotRegisteredError if missing.
        - ``list_actions()`` returns all registered names, sorted.
    """

    def __init__(self) -> None:
        self._actions: dict[str, TargetAction] = {}

    def register(self, action: TargetAction) -> None:
        if action.name in self._actions:
            raise ValueError(f"Target action '{action.name}' is already registered")
        self._actions[action.name] = action

    def get(self, name: str) -> TargetAction:
        try:
            return self._actions[name]
        except KeyError:
            raise ActionNotRegisteredError(name, self.list_actions()) from None

    def list_actions(self) -> tuple[str, ...]:
        return tuple(sorted(self._actions))

    def __len__(self) -> int:
        return len(self._actions)

    def __contains__(self, name: str) -> bool:
        return name in self._actions


# =============================================================================
# Field mapping
# =============================================================================


def build_action_inputs(
    rows: Iterable[Mapping[str, Any]],
    field_mappings: Mapping[str, str] | None,
) -> list[dict[str, Any]]:
    """Map source rows to action inputs.

    Args:
        rows: Row mappings from a source adapter.
        field_mappings: target field -> source field.  Empty or None
            passes rows through.

    Returns:
        One dict per row keyed by target field.
    """
    if not field_mappings:
        return [dict(row) for row in rows]

    inputs: list[dict[str, Any]] = []
    for row in rows:
        lookup = CaseInsensitiveDict(row)
        inputs.append({
            target: lookup.get(source)
            for target, source in field_mappings.items()
        })
    return inputs


class ActionChunkWork:
    """Chunk work function binding a target action to field mappings."""

    def __init__(
        self,
        action: TargetAction,
        field_mappings: Mapping[str, str] | None = None,
    ) -> None:
        self._action = action
        self._field_mappings = dict(field_mappings or {})

    @property
    def action(self) -> TargetAction:
        return self._action

    def __call__(self, rows: Sequence[Mapping[str, Any]], context: ChunkContext) -> None:
        inputs = build_action_inputs(rows, self._field_mappings)
        logger.debug(
            "action_chunk_invoked",
            extra={
                "action": self._action.name,
                "job_id": context.job_id,
                "chunk_index": context.chunk_index,
                "row_count": len(inputs),
            },
        )
        self._action.invoke(inputs)
