"""Exceptions raised by sqla-model-filter.

Errors raised by SQLAlchemy itself (unknown relationship attributes,
invalid columns) are not translated and reach the caller unchanged.
"""

from __future__ import annotations


class ModelFilterError(Exception):
    """Root exception for the sqla-model-filter package."""


class ConfigurationError(ModelFilterError, ValueError):
    """Raised when a ``ModelFilterConfig`` value is out of range."""


class FilterNotRegisteredError(ModelFilterError, LookupError):
    """Raised when no filter class is known for a mapped model."""

    def __init__(self, model: object) -> None:
        self.model = model
        name = getattr(model, "__name__", repr(model))
        super().__init__(f"No model filter registered for {name}")


class UnknownFilterMethodError(ModelFilterError, AttributeError):
    """Raised when neither the filter nor its query handle define a method."""

    def __init__(self, filter_name: str, method: str) -> None:
        self.filter_name = filter_name
        self.method = method
        super().__init__(
            f"{filter_name} has no filter method {method!r} and the query "
            "handle does not define it either"
        )


class InvalidPaginationError(ModelFilterError, ValueError):
    """Raised when a page number cannot be served."""


__all__: list[str] = [
    "ConfigurationError",
    "FilterNotRegisteredError",
    "InvalidPaginationError",
    "ModelFilterError",
    "UnknownFilterMethodError",
]
