"""Convention-based request filtering for SQLAlchemy select statements."""

from __future__ import annotations

from .config import DEFAULT_CONFIG, ModelFilterConfig
from .exceptions import (
    ConfigurationError,
    FilterNotRegisteredError,
    InvalidPaginationError,
    ModelFilterError,
    UnknownFilterMethodError,
)
from .filterable import Filterable, apply_filter
from .model_filter import ModelFilter, RelationStrategy, filter_method
from .naming import method_name_for
from .pagination import Page, paginate
from .query import IFilterQuery, SelectQuery
from .registry import FilterFactory, FilterRegistry
from .utils import joined_table_names

__all__ = [
    "DEFAULT_CONFIG",
    "ConfigurationError",
    "FilterFactory",
    "FilterNotRegisteredError",
    "FilterRegistry",
    "Filterable",
    "IFilterQuery",
    "InvalidPaginationError",
    "ModelFilter",
    "ModelFilterConfig",
    "ModelFilterError",
    "Page",
    "RelationStrategy",
    "SelectQuery",
    "UnknownFilterMethodError",
    "apply_filter",
    "filter_method",
    "joined_table_names",
    "method_name_for",
    "paginate",
]
