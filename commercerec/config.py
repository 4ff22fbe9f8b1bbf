"""Runtime settings for CommerceRec.

Settings are read once from ``COMMERCEREC_*`` environment variables and
validated with pydantic.
"""

import os
from typing import Optional

from pydantic import BaseModel, Field, model_validator

ENV_PREFIX = "COMMERCEREC_"


class Settings(BaseModel):
    """Service configuration.

    Attributes:
        ratings_csv: CSV file with one row per rating.
        products_csv: CSV file with one row per catalog item.
        log_level: Root logging level.
        min_limit: Smallest accepted result size; smaller requests are raised to it.
        max_limit: Largest accepted result size; larger requests are cut to it.
        default_limit: Result size used when the caller gives none.
        cache_enabled: Whether recommendation results are cached per user.
    """

    ratings_csv: str = "data/ratings.csv"
    products_csv: str = "data/products.csv"
    log_level: str = "INFO"
    min_limit: int = Field(default=1, ge=1)
    max_limit: int = Field(default=100, ge=1)
    default_limit: int = Field(default=5, ge=1)
    cache_enabled: bool = True

    @model_validator(mode="after")
    def _check_limit_range(self) -> "Settings":
        if self.max_limit < self.min_limit:
            raise ValueError(
                f"max_limit ({self.max_limit}) must be >= min_limit ({self.min_limit})"
            )
        return self

    def clamp_limit(self, limit: Optional[int]) -> int:
        """Clamp a requested result size into [min_limit, max_limit]."""
        if limit is None:
            limit = self.default_limit
        return min(max(limit, self.min_limit), self.max_limit)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment.

        Only variables that are set override the defaults.
        """
        values = {}
        for name in cls.model_fields:
            raw = os.getenv(ENV_PREFIX + name.upper())
            if raw is not None:
                values[name] = raw
        return cls(**values)
