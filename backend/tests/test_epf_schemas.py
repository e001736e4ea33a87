from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from backend.domain.epf import ContributionRow, InterestRow, TimelineSummary
from backend.schemas.epf import (
    EpfAccountCreate,
    EpfAccountRecord,
    EpfTimelineResponse,
    format_display_date,
)


def test_format_display_date_is_day_first():
    assert format_display_date(date(2024, 3, 31)) == "31/3/2024"
    assert format_display_date(None) == "Present"
    assert format_display_date(date(2024, 3, 31), "%Y-%m-%d") == "2024-03-31"
    assert format_display_date(date(2021, 4, 1)) == "1/4/2021"
    assert format_display_date(date(2021, 11, 25)) == "25/11/2021"
    assert format_display_date(date(2021, 4, 1), "%d/%m/%Y") == "01/04/2021"


def test_account_accepts_iso_strings():
    account = EpfAccountCreate.model_validate(
        {"organizationName": "Acme", "epfAmount": 1800, "creditDay": 10, "startDate": "2020-06-01"}
    )

    assert account.startDate == date(2020, 6, 1)
    assert account.endDate is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"organizationName": ""},
        {"epfAmount": -5},
        {"creditDay": 0},
        {"startDate": "not-a-date"},
        {"unexpected": True},
    ],
)
def test_account_rejects_bad_fields(overrides):
    payload = {"organizationName": "Acme", "epfAmount": 1800, "creditDay": 10, "startDate": "2020-06-01"}
    payload.update(overrides)

    with pytest.raises(ValidationError):
        EpfAccountCreate.model_validate(payload)


def test_record_converts_to_domain_account():
    record = EpfAccountRecord.from_row(
        {
            "id": 7,
            "user_id": "user-1",
            "organization_name": "Acme",
            "epf_amount": 1800.0,
            "credit_day": 10,
            "start_date": "2020-06-01",
            "end_date": "2021-06-01",
            "created_at": "2024-01-01T10:00:00",
            "updated_at": "2024-01-01T10:00:00",
        }
    )

    account = record.to_domain()
    assert account.organization_name == "Acme"
    assert account.start_date == date(2020, 6, 1)
    assert account.end_date == date(2021, 6, 1)


def test_timeline_response_from_summary():
    summary = TimelineSummary(
        total_current_balance=12454,
        total_contributions=12000,
        total_interest=454,
        timeline=[
            ContributionRow(
                organization="Acme",
                monthly_contribution=1000,
                start_date=date(2022, 4, 1),
                end_date=None,
                contribution_months=12,
                total_contribution=12000,
            ),
            InterestRow(financial_year=2022, interest_credit_date=date(2023, 3, 31), interest=454),
        ],
    )

    dumped = EpfTimelineResponse.from_summary(summary).model_dump()

    assert dumped["timeline"][0]["type"] == "contribution"
    assert dumped["timeline"][0]["startDate"] == "1/4/2022"
    assert dumped["timeline"][0]["endDate"] == "Present"
    assert dumped["timeline"][1] == {
        "type": "interest",
        "financialYear": "FY 2022-2023",
        "interestCreditDate": "31/3/2023",
        "totalContribution": 454,
    }
    assert dumped["totalCurrentBalance"] == 12454
