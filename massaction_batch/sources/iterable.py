"""
IterableSourceAdapter -- rows produced by a registered custom factory.

This is the Apex source type: the configuration names a class, the
AdapterRegistry resolves the name to a factory, and the factory's
iterable is wrapped here so it honours the one-pass contract.
"""

from __future__ import annotations

from collections.abc import Iterator

from massaction_batch.domain.types import MassActionConfig, SourceType
from massaction_batch.sources.base import AdapterFactory, Row, SingleUseAdapter


class IterableSourceAdapter(SingleUseAdapter):
    """Row stream over a registered factory's iterable."""

    source_type = SourceType.APEX.value

    def __init__(self, factory: AdapterFactory, config: MassActionConfig) -> None:
        super().__init__()
        self._factory = factory
        self._config = config

    def _rows(self) -> Iterator[Row]:
        for row in self._factory(self._config):
            yield dict(row)
