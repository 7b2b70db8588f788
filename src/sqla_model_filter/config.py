"""Runtime configuration for model filters and pagination."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

PAGINATION_LIMIT_ENV = "PAGINATION_LIMIT_DEFAULT"
PAGINATION_MAX_ENV = "PAGINATION_LIMIT_MAX"


@dataclass(frozen=True)
class ModelFilterConfig:
    """Configuration shared by ``paginate`` and the ``Filterable`` mixin.

    Filter classes are resolved through a ``FilterRegistry`` passed in
    explicitly, so no lookup namespace lives here.

    Attributes:
        paginate_limit: Page size used when the caller does not pass one.
        max_paginate_limit: Upper bound applied to caller-supplied page sizes.
    """

    paginate_limit: int = 15
    max_paginate_limit: int = 100

    def __post_init__(self) -> None:
        if self.paginate_limit < 1:
            raise ConfigurationError(
                f"paginate_limit must be at least 1, got {self.paginate_limit}"
            )
        if self.max_paginate_limit < self.paginate_limit:
            raise ConfigurationError(
                "max_paginate_limit must not be lower than paginate_limit "
                f"({self.max_paginate_limit} < {self.paginate_limit})"
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ModelFilterConfig:
        """Build a config from the ``PAGINATION_LIMIT_*`` environment variables."""
        env = os.environ if environ is None else environ
        defaults = cls()
        limit = _int_env(env, PAGINATION_LIMIT_ENV, defaults.paginate_limit)
        upper = _int_env(
            env, PAGINATION_MAX_ENV, max(limit, defaults.max_paginate_limit)
        )
        return cls(paginate_limit=limit, max_paginate_limit=upper)


def _int_env(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from e


DEFAULT_CONFIG = ModelFilterConfig()
