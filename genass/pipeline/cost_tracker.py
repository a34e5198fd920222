"""
Persistent cost ledger.

Every generation run appends an entry to a JSON ledger so spend can be
summarized across runs and checked against a monthly budget. The ledger is
bookkeeping only: read and write failures are logged and never interrupt
generation.
"""

import json
import os
from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Callable

from genass.core.config import get_config_value
from genass.core.constants import DEFAULT_MONTHLY_BUDGET
from genass.core.logging_config import get_logger
from genass.core.utils import ensure_dir, write_atomic

# Initialize logger
logger = get_logger(__name__)

DEFAULT_COSTS_FILE = "~/.genass/costs.json"


@dataclass
class CostEntry:
    operation: str
    cost: float
    model: str
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    tokens_used: Optional[int] = None
    assets_generated: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CostEntry":
        return cls(
            operation=data.get("operation", "unknown"),
            cost=float(data.get("cost", 0.0)),
            model=data.get("model", "unknown"),
            timestamp=data.get("timestamp") or datetime.now().isoformat(),
            tokens_used=data.get("tokens_used"),
            assets_generated=data.get("assets_generated"),
        )


@dataclass(frozen=True)
class CostSummary:
    total_cost: float
    total_assets: int
    total_operations: int
    average_cost_per_asset: float
    today: float
    this_week: float
    this_month: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BudgetStatus:
    within_budget: bool
    spent: float
    limit: float
    remaining: float


class CostTracker:
    """
    Records generation costs and summarizes spend.
    """

    def __init__(
        self,
        costs_file: Optional[str] = None,
        monthly_budget: Optional[float] = None,
        now: Callable[[], datetime] = datetime.now
    ):
        """
        Initialize the tracker.

        Args:
            costs_file (str, optional): Ledger path. Defaults to the configured costs.file
            monthly_budget (float, optional): Budget for the last 30 days
            now: Current time provider
        """
        self.costs_file = os.path.expanduser(costs_file or get_config_value("costs.file", DEFAULT_COSTS_FILE))
        if monthly_budget is None:
            monthly_budget = get_config_value("costs.monthly_budget", DEFAULT_MONTHLY_BUDGET)
        self.monthly_budget = float(monthly_budget)
        self.now = now

    def load_entries(self) -> List[CostEntry]:
        if not os.path.exists(self.costs_file):
            return []
        try:
            with open(self.costs_file, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read cost ledger {self.costs_file}: {e}")
            return []

        if not isinstance(data, list):
            logger.warning(f"Ignoring malformed cost ledger {self.costs_file}")
            return []
        return [CostEntry.from_dict(item) for item in data if isinstance(item, dict)]

    def _save_entries(self, entries: List[CostEntry]) -> bool:
        try:
            ensure_dir(os.path.dirname(self.costs_file) or ".")
            data = json.dumps([asdict(entry) for entry in entries], indent=2)
            write_atomic(self.costs_file, data.encode("utf-8"))
        except OSError as e:
            logger.warning(f"Could not write cost ledger {self.costs_file}: {e}")
            return False
        return True

    def track_cost(self, entry: CostEntry) -> bool:
        """
        Append an entry to the ledger.

        Returns:
            bool: True if the ledger was written
        """
        entries = self.load_entries()
        entries.append(entry)
        saved = self._save_entries(entries)
        if saved:
            logger.debug(f"Tracked ${entry.cost:.4f} for {entry.operation}")
        return saved

    def get_cost_summary(self) -> CostSummary:
        """
        Summarize all ledger entries, plus spend for today, the last 7 days
        and the last 30 days.
        """
        entries = self.load_entries()
        now = self.now()
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        week_ago = now - timedelta(days=7)
        month_ago = now - timedelta(days=30)

        def spent_since(since: datetime) -> float:
            total = 0.0
            for entry in entries:
                try:
                    when = datetime.fromisoformat(entry.timestamp)
                except ValueError:
                    continue
                if when >= since:
                    total += entry.cost
            return round(total, 6)

        total_cost = round(sum(entry.cost for entry in entries), 6)
        total_assets = sum(entry.assets_generated or 0 for entry in entries)

        return CostSummary(
            total_cost=total_cost,
            total_assets=total_assets,
            total_operations=len(entries),
            average_cost_per_asset=round(total_cost / total_assets, 6) if total_assets else 0.0,
            today=spent_since(start_of_day),
            this_week=spent_since(week_ago),
            this_month=spent_since(month_ago),
        )

    def check_budget(self, limit: Optional[float] = None) -> BudgetStatus:
        """
        Compare the last 30 days of spend with the monthly budget.
        """
        limit = self.monthly_budget if limit is None else float(limit)
        spent = self.get_cost_summary().this_month
        return BudgetStatus(
            within_budget=spent <= limit,
            spent=spent,
            limit=limit,
            remaining=round(max(0.0, limit - spent), 6),
        )

    def reset_costs(self) -> bool:
        """
        Clear the ledger.

        Returns:
            bool: True if the ledger was written
        """
        saved = self._save_entries([])
        if saved:
            logger.info(f"Cost ledger reset: {self.costs_file}")
        return saved
