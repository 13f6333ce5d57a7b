"""Runtime settings for the insights engine.

The recurring-detection thresholds, the result cap and the budget markup are
product-tuned constants. They live here as validated settings so hosts can
adjust them without touching the algorithms. Values come from keyword
arguments or ``SPENDING_INSIGHTS_*`` environment variables, e.g.
``SPENDING_INSIGHTS_RECURRING_MAX_VARIANCE_RATIO=0.15``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "SPENDING_INSIGHTS_"


class InsightsSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, str_strip_whitespace=True)

    recurring_min_transactions: int = Field(default=2, ge=1)
    recurring_max_variance_ratio: float = Field(default=0.2, ge=0.0)
    recurring_limit: int = Field(default=6, ge=0)
    next_date_offset_days: int = Field(default=30, ge=0)
    budget_markup: float = Field(default=1.2, gt=0.0)
    default_currency: str = Field(default="EUR", min_length=1)


def load_settings(
    environ: Mapping[str, str] | None = None, **overrides: Any
) -> InsightsSettings:
    """Build settings from the environment, then apply explicit overrides.

    Only ``SPENDING_INSIGHTS_<FIELD>`` variables naming a known field are
    read; blank values are ignored. Invalid values raise
    ``pydantic.ValidationError``.
    """

    env = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    for name in InsightsSettings.model_fields:
        raw = env.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None and raw.strip():
            values[name] = raw.strip()
    values.update(overrides)
    return InsightsSettings.model_validate(values)


__all__ = ["ENV_PREFIX", "InsightsSettings", "load_settings"]
