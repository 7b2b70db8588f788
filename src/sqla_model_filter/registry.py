"""
Registry of model filters keyed by mapped model class.

Sibling filters for related entities are resolved here instead of by
naming convention: populate a ``FilterRegistry`` at startup and pass it
to the root filter.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

from .exceptions import FilterNotRegisteredError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from .model_filter import ModelFilter
    from .query import IFilterQuery

logger = logging.getLogger(__name__)


class FilterFactory(Protocol):
    """Build a filter for one model over a query handle."""

    def __call__(
        self,
        query: IFilterQuery,
        input: Mapping[str, Any],  # noqa: A002
        *,
        registry: FilterRegistry | None = None,
        model: type[Any] | None = None,
    ) -> ModelFilter: ...


class FilterRegistry:
    """
    Maps mapped model classes to ``FilterFactory`` callables.

    A ``ModelFilter`` subclass is itself a valid factory. Factories are
    called with ``registry`` and ``model`` keyword arguments. Lookups walk
    the model's MRO, so a polymorphic subclass without its own filter
    uses its parent's.
    """

    def __init__(self) -> None:
        self._filters: dict[type[Any], FilterFactory] = {}

    def __contains__(self, model: object) -> bool:
        return isinstance(model, type) and self.get(model) is not None

    def __len__(self) -> int:
        return len(self._filters)

    def register(
        self, model: type[Any], factory: FilterFactory | None = None
    ) -> Any:
        """
        Register ``factory`` for ``model``.

        Without ``factory`` this returns a class decorator::

            @registry.register(Comment)
            class CommentFilter(ModelFilter): ...
        """
        if factory is None:

            def decorator(f: Callable[..., Any]) -> Callable[..., Any]:
                self._store(model, f)  # type: ignore[arg-type]
                return f

            return decorator
        self._store(model, factory)
        return factory

    def _store(self, model: type[Any], factory: FilterFactory) -> None:
        previous = self._filters.get(model)
        if previous is not None and previous is not factory:
            logger.debug(
                "Replacing filter %r for %s with %r",
                previous,
                model.__name__,
                factory,
            )
        self._filters[model] = factory

    def unregister(self, model: type[Any]) -> None:
        self._filters.pop(model, None)

    def get(self, model: type[Any]) -> FilterFactory | None:
        for klass in model.__mro__:
            factory = self._filters.get(klass)
            if factory is not None:
                return factory
        return None

    def has(self, model: type[Any]) -> bool:
        return self.get(model) is not None

    def resolve(self, model: type[Any]) -> FilterFactory:
        """
        Return the factory for ``model``.

        Raises:
            FilterNotRegisteredError: If neither ``model`` nor a base
                class has a registered filter.
        """
        factory = self.get(model)
        if factory is None:
            raise FilterNotRegisteredError(model)
        return factory

    def build(
        self,
        model: type[Any],
        query: IFilterQuery,
        input: Mapping[str, Any],  # noqa: A002
    ) -> ModelFilter:
        """Construct the filter for ``model`` over ``query``."""
        return self.resolve(model)(query, input, registry=self, model=model)

    @property
    def models(self) -> set[type[Any]]:
        return set(self._filters.keys())
