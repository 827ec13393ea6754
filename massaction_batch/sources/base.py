"""
DataSourceAdapter protocol, single-use adapter base, and AdapterRegistry.

Contract:
    ``DataSourceAdapter`` is what the runner iterates: a lazy, finite,
    non-restartable sequence of row mappings (field name -> value).
    ``AdapterRegistry`` maps registered class names to factories that
    build the iterable for the Apex source type.

Architecture:
    massaction_batch/sources.  Imports from massaction_batch.domain and
    massaction_kernel only.

Invariants enforced:
    - Iterating an adapter a second time raises AdapterExhaustedError.
    - Registry keys are case-insensitive; one factory per qualified name.
    - Lookup of a dotted name tries the namespace-qualified key first,
      then the whole name in the registry's own namespace.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any, Protocol, runtime_checkable

from massaction_kernel.exceptions import AdapterExhaustedError, UnresolvedAdapterError
from massaction_kernel.utils.keys import normalize_key

from massaction_batch.domain.types import MassActionConfig

Row = Mapping[str, Any]
AdapterFactory = Callable[[MassActionConfig], Iterable[Row]]


# =============================================================================
# DataSourceAdapter Protocol
# =============================================================================


@runtime_checkable
class DataSourceAdapter(Protocol):
    """Protocol for the row sequence a job processes.

    Contract:
        - ``source_type``: the SourceType value this adapter serves.
        - ``__iter__()``: yields row mappings lazily, exactly once.

    Non-goals:
        - Does NOT chunk -- the runner slices the stream by chunk size.
    """

    @property
    def source_type(self) -> str: ...

    def __iter__(self) -> Iterator[Row]: ...


class SingleUseAdapter(ABC):
    """Base class enforcing the one-pass contract.

    Subclasses implement ``_rows()``; nothing is read from the source
    until the first ``next()`` on the iterator.
    """

    source_type: str = ""

    def __init__(self) -> None:
        self._consumed = False

    @property
    def consumed(self) -> bool:
        return self._consumed

    def __iter__(self) -> Iterator[Row]:
        if self._consumed:
            raise AdapterExhaustedError(self.source_type)
        self._consumed = True
        return self._rows()

    @abstractmethod
    def _rows(self) -> Iterator[Row]: ...


# =============================================================================
# AdapterRegistry
# =============================================================================


class AdapterRegistry:
    """Registry mapping ``[namespace.]ClassName[.Inner]`` names to factories.

    Contract:
        - ``register()`` adds a factory; raises ValueError on duplicate.
        - ``resolve()`` is a single exact lookup; returns None if missing.
        - ``lookup()`` is the two-stage qualified/unqualified lookup;
          raises UnresolvedAdapterError if both stages miss.
        - ``list_names()`` returns all registered qualified names.
    """

    def __init__(self, default_namespace: str | None = None) -> None:
        self._default_namespace = default_namespace
        self._factories: dict[str, tuple[str, AdapterFactory]] = {}

    @staticmethod
    def _qualify(namespace: str | None, class_name: str) -> str:
        if namespace:
            return f"{namespace}.{class_name}"
        return class_name

    @property
    def default_namespace(self) -> str | None:
        return self._default_namespace

    def register(
        self,
        class_name: str,
        factory: AdapterFactory,
        namespace: str | None = None,
    ) -> None:
        """Register an adapter factory.

        ``namespace`` defaults to the registry's own namespace.

        Raises:
            ValueError: If the qualified name is already registered.
        """
        qualified = self._qualify(namespace or self._default_namespace, class_name)
        key = normalize_key(qualified)
        if key in self._factories:
            raise ValueError(f"Adapter '{qualified}' is already registered")
        self._factories[key] = (qualified, factory)

    def resolve(self, namespace: str | None, class_name: str) -> AdapterFactory | None:
        entry = self._factories.get(normalize_key(self._qualify(namespace, class_name)))
        return entry[1] if entry is not None else None

    def lookup(self, dotted_name: str) -> AdapterFactory:
        """Resolve a configured class reference.

        Stage (a): ``first.rest`` as namespace ``first``, class ``rest``.
        Stage (b): the whole dotted name in the registry's own namespace,
        which is how inner classes of local classes are named.

        Raises:
            UnresolvedAdapterError: If neither stage finds a factory.
        """
        name = (dotted_name or "").strip()
        attempted: list[str] = []

        if "." in name:
            namespace, class_name = name.split(".", 1)
            attempted.append(self._qualify(namespace, class_name))
            factory = self.resolve(namespace, class_name)
            if factory is not None:
                return factory

        unqualified = self._qualify(self._default_namespace, name)
        if name and unqualified not in attempted:
            attempted.append(unqualified)
            factory = self.resolve(self._default_namespace, name)
            if factory is not None:
                return factory

        raise UnresolvedAdapterError(name, tuple(attempted))

    def list_names(self) -> tuple[str, ...]:
        return tuple(sorted(qualified for qualified, _ in self._factories.values()))

    def __len__(self) -> int:
        return len(self._factories)

    def __contains__(self, qualified_name: str) -> bool:
        return normalize_key(qualified_name) in self._factories
