"""
ModelFilter: dispatch request input to per-field filter methods.

Subclasses define one method per filterable field. When the subclass is
created its public methods are collected into a dispatch table, so
``handle()`` maps each input key to a method without reflection::

    @registry.register(User)
    class UserFilter(ModelFilter):
        relations = {"posts": ["title", "published"]}

        def name(self, value):
            self.query.where(User.name == value)

        def company(self, value):  # handles ``company_id``
            self.query.where(User.company_id == value)

    UserFilter(SelectQuery(User), request_args, registry=registry).handle()

Input keys are normalised with :func:`method_name_for` (``_id`` suffix
dropped, snake_case). Keys without a method are ignored. Keys listed under
``relations`` are forwarded to the related model's filter: in place when
the related table is already joined, inside an ``EXISTS`` sub-query
otherwise.
"""

from __future__ import annotations

import logging
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

from .exceptions import FilterNotRegisteredError, UnknownFilterMethodError
from .naming import method_name_for

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Mapping

    from .query import IFilterQuery
    from .registry import FilterRegistry

logger = logging.getLogger(__name__)

F = TypeVar("F", bound="Callable[..., Any]")

_FILTER_FIELDS_ATTR = "__filter_fields__"


def filter_method(*fields: str) -> Callable[[F], F]:
    """
    Route additional input fields to the decorated method.

    Field names go through the same normalisation as input keys, so
    ``@filter_method("q", "search_term")`` makes the method handle both
    ``?q=`` and ``?search_term=`` on top of its own name.
    """

    def decorator(func: F) -> F:
        target = getattr(func, "__func__", func)
        existing = getattr(target, _FILTER_FIELDS_ATTR, ())
        setattr(
            target,
            _FILTER_FIELDS_ATTR,
            (*existing, *(method_name_for(f) for f in fields)),
        )
        return func

    return decorator


class RelationStrategy(str, Enum):
    """How input for a related entity is applied."""

    JOINED = "joined"
    EXISTS = "exists"


class ModelFilter:
    """
    Narrows a query handle from a mapping of request input.

    Attributes:
        relations: ``{relationship_name: field_names}`` for related models
            that have filters of their own.
        model: Mapped class this filter is written for. Defaults to the
            query handle's model.
    """

    relations: ClassVar[Mapping[str, Collection[str]]] = {}
    model: ClassVar[type[Any] | None] = None

    _filter_methods: ClassVar[dict[str, str]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._filter_methods = _collect_filter_methods(cls)

    def __init__(
        self,
        query: IFilterQuery,
        input: Mapping[str, Any],  # noqa: A002
        *,
        registry: FilterRegistry | None = None,
        model: type[Any] | None = None,
    ) -> None:
        self.query = query
        self.registry = registry
        self.entity: type[Any] = model or type(self).model or query.model
        self._input: Mapping[str, Any] = MappingProxyType(
            self.remove_empty_input(input)
        )
        self._joined_tables: frozenset[str] | None = None

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} entity={self.entity.__name__} "
            f"input={dict(self._input)!r}>"
        )

    @staticmethod
    def remove_empty_input(input: Mapping[str, Any]) -> dict[str, Any]:  # noqa: A002
        """
        Drop entries whose value is the empty string.

        Only ``""`` is removed. ``None``, ``False``, ``0`` and empty lists
        are kept and reach the filter methods, unlike a loose ``!= ''``
        comparison that would also discard ``None`` and ``False``.
        """
        return {
            key: value
            for key, value in input.items()
            if not (isinstance(value, str) and value == "")
        }

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    @classmethod
    def filter_methods(cls) -> Mapping[str, str]:
        """``{normalised field name: method name}`` for this filter class."""
        return MappingProxyType(cls._filter_methods)

    def resolve_filter_method(self, key: str) -> Callable[[Any], Any] | None:
        """Return the bound filter method for an input key, if any."""
        name = self._filter_methods.get(method_name_for(key))
        if name is None:
            return None
        return getattr(self, name)  # type: ignore[no-any-return]

    def handle(self) -> IFilterQuery:
        """Apply every matching filter method, then the relation filters."""
        for key, value in self._input.items():
            method = self.resolve_filter_method(key)
            if method is None:
                logger.debug("%s: no filter method for %r", type(self).__name__, key)
                continue
            method(value)

        self.filter_relations()
        return self.query

    def call(self, method: str, *args: Any, **kwargs: Any) -> Any:
        """
        Invoke ``method`` on this filter or, failing that, on the query handle.

        Raises:
            UnknownFilterMethodError: If neither defines ``method``.
        """
        name = self._filter_methods.get(method)
        if name is not None:
            return getattr(self, name)(*args, **kwargs)
        target = None if method.startswith("_") else getattr(self.query, method, None)
        if not callable(target):
            raise UnknownFilterMethodError(type(self).__name__, method)
        return target(*args, **kwargs)

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    def filter_relations(self) -> ModelFilter:
        """Forward relation input to the related models' filters."""
        if not self.relations:
            return self

        for relation in self.relations:
            filterable_input = self.relation_input(relation)
            if not filterable_input:
                continue
            strategy = self.relation_strategy(relation)
            logger.debug(
                "%s: filtering relation %r via %s with %s",
                type(self).__name__,
                relation,
                strategy.value,
                sorted(filterable_input),
            )
            if strategy is RelationStrategy.JOINED:
                self.filter_joined_relation(relation, filterable_input)
            else:
                self.filter_unjoined_relation(relation, filterable_input)

        return self

    def relation_input(self, relation: str) -> dict[str, Any]:
        """Subset of the input that belongs to ``relation``."""
        fields = self.relations[relation]
        allowed = {fields} if isinstance(fields, str) else set(fields)
        return {key: value for key, value in self._input.items() if key in allowed}

    def relation_strategy(self, relation: str) -> RelationStrategy:
        if self.relation_is_joined(relation):
            return RelationStrategy.JOINED
        return RelationStrategy.EXISTS

    def relation_is_joined(self, relation: str) -> bool:
        return self.related_table(relation) in self.joined_tables()

    def joined_tables(self) -> frozenset[str]:
        """Tables joined into the query, computed once per filter."""
        if self._joined_tables is None:
            self._joined_tables = frozenset(self.query.joined_tables())
        return self._joined_tables

    def relationship(self, relation: str) -> Any:
        """Relationship attribute on this filter's entity."""
        return getattr(self.entity, relation)

    def related_model(self, relation: str) -> type[Any]:
        return self.query.related_model(self.relationship(relation))

    def related_table(self, relation: str) -> str:
        return self.query.related_table(self.relationship(relation))

    def filter_joined_relation(
        self, relation: str, filterable_input: Mapping[str, Any]
    ) -> None:
        """Run the related filter directly against this query."""
        related = self.related_model(relation)
        self.build_sibling(related, self.query, filterable_input).handle()

    def filter_unjoined_relation(
        self, relation: str, filterable_input: Mapping[str, Any]
    ) -> None:
        """Run the related filter inside an ``EXISTS`` sub-query."""

        def constrain(nested: IFilterQuery) -> None:
            self.build_sibling(nested.model, nested, filterable_input).handle()

        self.query.where_has(self.relationship(relation), constrain)

    def build_sibling(
        self,
        model: type[Any],
        query: IFilterQuery,
        filterable_input: Mapping[str, Any],
    ) -> ModelFilter:
        """
        Construct the filter for ``model`` over ``query``.

        The registry wins when it has an entry for ``model``; otherwise the
        model's own ``__model_filter__`` is used.

        Raises:
            FilterNotRegisteredError: If neither provides a filter.
        """
        if self.registry is not None and self.registry.has(model):
            return self.registry.build(model, query, filterable_input)
        factory = getattr(model, "__model_filter__", None)
        if factory is None:
            raise FilterNotRegisteredError(model)
        return factory(  # type: ignore[no-any-return]
            query, filterable_input, registry=self.registry, model=model
        )

    # ------------------------------------------------------------------
    # Input access
    # ------------------------------------------------------------------

    def input(self, key: str | None = None, default: Any = None) -> Any:
        """Return all sanitized input, or the value for ``key``."""
        if key is None:
            return self._input
        return self._input.get(key, default)


_RESERVED_NAMES = frozenset(
    {name for name in vars(ModelFilter) if not name.startswith("_")}
    | {"query", "registry", "entity"}
)


def _collect_filter_methods(cls: type[ModelFilter]) -> dict[str, str]:
    """Build ``{field name: method name}`` from the public methods of ``cls``."""
    table: dict[str, str] = {}
    for klass in reversed(cls.__mro__):
        if klass in ModelFilter.__mro__:
            continue
        for name, attr in vars(klass).items():
            if name.startswith("_") or name in _RESERVED_NAMES:
                continue
            func = getattr(attr, "__func__", attr)
            if isinstance(func, type) or not callable(func):
                # Overridden by a non-method in a subclass.
                table = {k: v for k, v in table.items() if v != name}
                continue
            table[name] = name
            for alias in getattr(func, _FILTER_FIELDS_ATTR, ()):
                table[alias] = name
    return table
