"""Data contracts for EPF accounts and the EPF timeline."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from backend.core.epf_timeline import financial_year_label
from backend.domain.epf import ContributionRow, EpfAccount, TimelineSummary

# None renders en-IN style: day/month/year without leading zeros
DEFAULT_DATE_FORMAT: Optional[str] = None
PRESENT = "Present"


def format_display_date(value: Optional[date], fmt: Optional[str] = DEFAULT_DATE_FORMAT) -> str:
    """Render a date day-first (en-IN); a missing end date means the job is current."""
    if value is None:
        return PRESENT
    if fmt is None:
        return f"{value.day}/{value.month}/{value.year}"
    return value.strftime(fmt)


class EpfAccountCreate(BaseModel):
    """Inputs required to register an EPF account with an employer."""

    model_config = ConfigDict(extra="forbid")

    organizationName: str = Field(..., min_length=1)
    epfAmount: float = Field(..., gt=0, description="Fixed monthly contribution.")
    creditDay: int = Field(..., ge=1, le=31, description="Day of month the contribution is credited.")
    startDate: date
    endDate: Optional[date] = Field(
        default=None,
        description="Exit date (exclusive). Omit to run until the next employer starts.",
    )

    @model_validator(mode="after")
    def ensure_dates(self) -> "EpfAccountCreate":
        if self.endDate is not None and self.endDate <= self.startDate:
            raise ValueError("endDate must be after startDate")
        return self

    def to_domain(self) -> EpfAccount:
        return EpfAccount(
            organization_name=self.organizationName,
            epf_amount=self.epfAmount,
            credit_day=self.creditDay,
            start_date=self.startDate,
            end_date=self.endDate,
        )


class EpfAccountUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    organizationName: Optional[str] = Field(default=None, min_length=1)
    epfAmount: Optional[float] = Field(default=None, gt=0)
    creditDay: Optional[int] = Field(default=None, ge=1, le=31)
    startDate: Optional[date] = None
    endDate: Optional[date] = None


class EpfAccountRecord(EpfAccountCreate):
    """Stored account as returned to the owner."""

    model_config = ConfigDict(extra="ignore")

    id: int
    createdAt: datetime
    updatedAt: datetime

    @classmethod
    def from_row(cls, row: dict) -> "EpfAccountRecord":
        return cls(
            id=row["id"],
            organizationName=row["organization_name"],
            epfAmount=row["epf_amount"],
            creditDay=row["credit_day"],
            startDate=row["start_date"],
            endDate=row["end_date"],
            createdAt=row["created_at"],
            updatedAt=row["updated_at"],
        )


class ContributionTimelineRow(BaseModel):
    type: Literal["contribution"] = "contribution"
    organization: str
    monthlyContribution: float
    startDate: str
    endDate: str
    contributionMonths: int
    totalContribution: float


class InterestTimelineRow(BaseModel):
    type: Literal["interest"] = "interest"
    financialYear: str
    interestCreditDate: str
    # keeps the field name shared with contribution rows; holds the rounded interest
    totalContribution: int


class EpfTimelineResponse(BaseModel):
    totalCurrentBalance: float
    totalContributions: float
    totalInterest: int
    timeline: List[Union[ContributionTimelineRow, InterestTimelineRow]] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @classmethod
    def from_summary(
        cls,
        summary: TimelineSummary,
        date_format: Optional[str] = DEFAULT_DATE_FORMAT,
    ) -> "EpfTimelineResponse":
        rows: List[Union[ContributionTimelineRow, InterestTimelineRow]] = []
        for row in summary.timeline:
            if isinstance(row, ContributionRow):
                rows.append(
                    ContributionTimelineRow(
                        organization=row.organization,
                        monthlyContribution=row.monthly_contribution,
                        startDate=format_display_date(row.start_date, date_format),
                        endDate=format_display_date(row.end_date, date_format),
                        contributionMonths=row.contribution_months,
                        totalContribution=row.total_contribution,
                    )
                )
            else:
                rows.append(
                    InterestTimelineRow(
                        financialYear=financial_year_label(row.financial_year),
                        interestCreditDate=format_display_date(row.interest_credit_date, date_format),
                        totalContribution=row.interest,
                    )
                )

        return cls(
            totalCurrentBalance=summary.total_current_balance,
            totalContributions=summary.total_contributions,
            totalInterest=summary.total_interest,
            timeline=rows,
            warnings=list(summary.warnings),
        )
