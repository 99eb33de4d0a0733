"""
Budget Module Configuration Schema.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Self

import yaml

from analytic_kernel.domain.dtos import BudgetStatus
from analytic_kernel.logging_config import get_logger

logger = get_logger("modules.budget.config")

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


@dataclass
class BudgetConfig:
    """Configuration schema for the analytical budget module.

    Attributes:
        default_currency: ISO 4217 code used when rendering amounts.
        allow_over_budget: When False, saving a cost document that would
            overrun a budget raises BudgetLimitExceededError.
        warning_statuses: Budget statuses checked for projected overruns.
        dedupe_source_orders: Leave out orders that a finalized bill or
            invoice names as its source, so the same spend is not counted
            twice.  Warnings also leave out the order a draft bill was
            created from.
        dashboard_months: Length of the dashboard's monthly series.
    """

    default_currency: str = "USD"
    allow_over_budget: bool = True
    warning_statuses: tuple[BudgetStatus, ...] = (BudgetStatus.CONFIRMED,)
    dedupe_source_orders: bool = False
    dashboard_months: int = 6

    def __post_init__(self):
        if not _CURRENCY_RE.match(self.default_currency or ""):
            raise ValueError(
                f"default_currency must be a 3-letter ISO code, got {self.default_currency!r}"
            )
        if isinstance(self.warning_statuses, (str, BudgetStatus)):
            self.warning_statuses = (self.warning_statuses,)
        self.warning_statuses = tuple(BudgetStatus(s) for s in self.warning_statuses)
        if not self.warning_statuses:
            raise ValueError("warning_statuses cannot be empty")
        if self.dashboard_months < 1:
            raise ValueError("dashboard_months must be at least 1")
        logger.info("budget_config_initialized", extra={
            "allow_over_budget": self.allow_over_budget,
            "warning_statuses": [s.value for s in self.warning_statuses],
            "dedupe_source_orders": self.dedupe_source_orders,
        })

    @classmethod
    def with_defaults(cls) -> Self:
        return cls()

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> Self:
        """Build from a plain mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown budget config keys: {', '.join(unknown)}")
        return cls(**data)


def load_budget_config(path: str | Path) -> BudgetConfig:
    """
    Load BudgetConfig from a YAML file.

    The file holds the config keys either at top level or under a
    ``budget:`` section.  An empty file yields the defaults.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: on unknown keys or invalid values.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Budget config must be a mapping, got {type(data).__name__}")
    if set(data) == {"budget"}:
        data = data["budget"] or {}
    return BudgetConfig.from_mapping(data)
