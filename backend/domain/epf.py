from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Union


class EpfValidationError(ValueError):
    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


@dataclass(frozen=True)
class EpfAccount:
    organization_name: str
    epf_amount: float
    credit_day: int
    start_date: date
    end_date: Optional[date] = None


@dataclass(frozen=True)
class MonthlyContribution:
    date: date
    amount: float
    organization: str


@dataclass
class ContributionRow:
    organization: str
    monthly_contribution: float
    start_date: date
    # None while the employment is still running ("Present")
    end_date: Optional[date]
    contribution_months: int
    total_contribution: float


@dataclass
class InterestRow:
    financial_year: int
    interest_credit_date: date
    interest: int


TimelineRow = Union[ContributionRow, InterestRow]


@dataclass
class TimelineSummary:
    total_current_balance: float = 0.0
    total_contributions: float = 0.0
    total_interest: int = 0
    timeline: List[TimelineRow] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
