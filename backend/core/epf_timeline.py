"""EPF contribution and interest timeline.

Accounts are laid end to end by start date: each employment runs until the
next one begins (or until its explicit ``end_date``), and the last one runs
until ``today``. Every month of a window produces one contribution of the
account's fixed amount. Interest is accrued monthly on the balance carried
over from earlier months, bucketed by Indian financial year (April-March),
and only reported once the year's credit date (March 31) has passed.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from operator import attrgetter
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from dateutil.relativedelta import relativedelta

from backend.domain.epf import (
    ContributionRow,
    EpfAccount,
    EpfValidationError,
    InterestRow,
    MonthlyContribution,
    TimelineSummary,
)

# Statutory EPF rate; callers override it through configuration.
DEFAULT_ANNUAL_RATE = 0.0825

# Financial years start in April.
FY_START_MONTH = 4


@dataclass
class Window:
    account: EpfAccount
    start: date
    end: date
    display_end: Optional[date]


def financial_year_of(day: date) -> int:
    """Return the calendar year in which ``day``'s financial year starts."""
    return day.year if day.month >= FY_START_MONTH else day.year - 1


def interest_credit_date(financial_year: int) -> date:
    return date(financial_year + 1, 3, 31)


def financial_year_label(financial_year: int) -> str:
    return f"FY {financial_year}-{financial_year + 1}"


def round_amount(value: float) -> int:
    # x.5 goes up; Python's round() would pick the even neighbour
    return int(math.floor(value + 0.5))


def derive_windows(
    accounts: Sequence[EpfAccount],
    today: date,
) -> Tuple[List[Window], List[str], List[str]]:
    """Turn date-sorted accounts into contiguous contribution windows.

    Without an explicit ``end_date`` an account ends where the next one
    starts. An explicit ``end_date`` past the next start is an overlap
    (error); one before it leaves a gap with no contributions (warning).
    """
    windows: List[Window] = []
    errors: List[str] = []
    warnings: List[str] = []

    for index, account in enumerate(accounts):
        label = account.organization_name
        next_start = accounts[index + 1].start_date if index + 1 < len(accounts) else None

        if account.end_date is not None:
            if account.end_date <= account.start_date:
                errors.append(
                    f"{label} end date {account.end_date.isoformat()} is not after "
                    f"start date {account.start_date.isoformat()}"
                )
            if next_start is not None:
                next_label = accounts[index + 1].organization_name
                if account.end_date > next_start:
                    errors.append(
                        f"{label} overlaps {next_label} "
                        f"{next_start.isoformat()}-{account.end_date.isoformat()}"
                    )
                elif account.end_date < next_start:
                    warnings.append(
                        f"gap between {label} and {next_label} "
                        f"{account.end_date.isoformat()}-{next_start.isoformat()}"
                    )
            end = min(account.end_date, today)
            # an exit date still ahead of today is shown as a running job
            display_end: Optional[date] = account.end_date if account.end_date <= today else None
        elif next_start is not None:
            if next_start == account.start_date:
                warnings.append(
                    f"{label} shares start date {next_start.isoformat()} with "
                    f"{accounts[index + 1].organization_name}; no months attributed"
                )
            end = next_start
            display_end = next_start
        else:
            end = today
            display_end = None

        windows.append(Window(account=account, start=account.start_date, end=end, display_end=display_end))

    return windows, errors, warnings


def validate_accounts(accounts: Iterable[EpfAccount], today: date) -> List[str]:
    """Raise ``EpfValidationError`` if the accounts cannot be laid end to end.

    Returns the gap and shared-start warnings.
    """
    ordered = sorted(accounts, key=attrgetter("start_date"))
    _, errors, warnings = derive_windows(ordered, today)
    if errors:
        raise EpfValidationError(errors)
    return warnings


def generate_monthly_contributions(account: EpfAccount, end: date) -> List[MonthlyContribution]:
    """One contribution per month from the account's start date while before ``end``.

    Months are counted from the start date itself so a 31st start clamps to
    short months without drifting (Jan 31, Feb 28, Mar 31, ...).
    """
    events: List[MonthlyContribution] = []
    current = account.start_date
    step = 0
    while current < end:
        events.append(
            MonthlyContribution(
                date=current,
                amount=account.epf_amount,
                organization=account.organization_name,
            )
        )
        step += 1
        current = account.start_date + relativedelta(months=step)
    return events


def accrue_interest(
    events: Iterable[MonthlyContribution],
    annual_rate: float = DEFAULT_ANNUAL_RATE,
) -> Dict[int, float]:
    """Raw (unrounded) interest per financial year.

    Each month earns interest on the opening balance, then its own
    contribution is added. The first month overall has no opening balance.
    """
    monthly_rate = annual_rate / 12
    yearly: Dict[int, float] = {}
    running_balance = 0.0

    for index, event in enumerate(sorted(events, key=attrgetter("date"))):
        if index > 0:
            year = financial_year_of(event.date)
            yearly[year] = yearly.get(year, 0.0) + running_balance * monthly_rate
        running_balance += event.amount

    return yearly


def compute_epf_timeline(
    accounts: Iterable[EpfAccount],
    today: date,
    annual_rate: float = DEFAULT_ANNUAL_RATE,
) -> TimelineSummary:
    """Build the contribution/interest timeline for one member's accounts as of ``today``."""
    ordered = sorted(accounts, key=attrgetter("start_date"))
    summary = TimelineSummary()
    if not ordered:
        return summary

    windows, errors, warnings = derive_windows(ordered, today)
    if errors:
        raise EpfValidationError(errors)
    summary.warnings = warnings

    contributions: List[MonthlyContribution] = []
    for window in windows:
        events = generate_monthly_contributions(window.account, window.end)
        contributions.extend(events)

        months = len(events)
        total = window.account.epf_amount * months
        summary.total_contributions += total
        summary.timeline.append(
            ContributionRow(
                organization=window.account.organization_name,
                monthly_contribution=window.account.epf_amount,
                start_date=window.start,
                end_date=window.display_end,
                contribution_months=months,
                total_contribution=total,
            )
        )

    yearly = accrue_interest(contributions, annual_rate)
    for year in sorted(yearly):
        credit_date = interest_credit_date(year)
        if credit_date > today:
            continue
        interest = round_amount(yearly[year])
        summary.total_interest += interest
        summary.timeline.append(
            InterestRow(
                financial_year=year,
                interest_credit_date=credit_date,
                interest=interest,
            )
        )

    summary.total_current_balance = summary.total_contributions + summary.total_interest
    return summary
