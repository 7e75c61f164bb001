"""Tests for transaction draft validation."""

import pytest
from datetime import date

from src.config import AppSettings
from src.models.transaction import (
    InvestmentType,
    TransactionDraft,
    TransactionType,
    User,
)
from src.validation import TransactionValidator


TODAY = date(2024, 3, 15)


@pytest.fixture
def validator():
    return TransactionValidator(AppSettings(
        max_transaction_amount_inr=100000,
        future_date_tolerance_days=7,
    ))


def make_draft(**overrides) -> TransactionDraft:
    fields = {
        "user_id": "u1",
        "user_name": "Alice",
        "date": TODAY,
        "type": TransactionType.EXPENSE,
        "category": "Food",
        "amount": 120.0,
    }
    fields.update(overrides)
    return TransactionDraft(**fields)


class TestTransactionValidator:
    """Tests for business-rule validation of drafts."""

    def test_clean_draft(self, validator):
        result = validator.validate(make_draft(), today=TODAY)
        assert result.is_valid is True
        assert result.issues == []
        assert validator.get_user_friendly_summary(result) == "✅ All checks passed."

    def test_zero_amount_is_error(self, validator):
        result = validator.validate(make_draft(amount=0), today=TODAY)
        assert result.is_valid is False
        assert result.error_count == 1
        assert result.issues[0].field == "amount"

    def test_team_split_without_investors_is_error(self, validator):
        draft = make_draft(investment_type=InvestmentType.TEAM, investors=[])
        result = validator.validate(draft, today=TODAY)
        assert result.is_valid is False
        assert result.issues[0].field == "investors"
        assert result.issues[0].suggested_fix is not None

    def test_future_date_is_warning(self, validator):
        """Test dates past the tolerance warn but don't block."""
        result = validator.validate(make_draft(date=date(2024, 3, 30)), today=TODAY)
        assert result.is_valid is True
        assert [i.issue_type for i in result.issues] == ["future_date"]
        assert len(result.warnings) == 1

    def test_date_within_tolerance(self, validator):
        result = validator.validate(make_draft(date=date(2024, 3, 22)), today=TODAY)
        assert result.issues == []

    def test_large_amount_is_warning(self, validator):
        result = validator.validate(make_draft(amount=250000), today=TODAY)
        assert result.is_valid is True
        assert result.issues[0].issue_type == "suspicious_value"

    def test_unknown_investor_is_warning(self, validator):
        """Test off-roster investors are flagged, not rejected."""
        draft = make_draft(
            investment_type=InvestmentType.TEAM,
            investors=["Alice", "Ghost"],
        )
        roster = [User(id="u1", name="Alice")]
        result = validator.validate(draft, roster=roster, today=TODAY)
        assert result.is_valid is True
        assert result.issues[0].issue_type == "unknown_investor"
        assert "Ghost" in result.issues[0].message
        assert "Alice" not in result.issues[0].message.split(": ", 1)[1]

    def test_investors_unchecked_without_roster(self, validator):
        draft = make_draft(investment_type=InvestmentType.TEAM, investors=["Ghost"])
        result = validator.validate(draft, today=TODAY)
        assert result.issues == []

    def test_summary_lists_errors_and_warnings(self, validator):
        draft = make_draft(
            amount=0,
            date=date(2024, 4, 30),
            investment_type=InvestmentType.TEAM,
            investors=[],
        )
        result = validator.validate(draft, today=TODAY)
        summary = validator.get_user_friendly_summary(result)
        assert result.error_count == 2
        assert "can't be saved" in summary
        assert "Please verify" in summary
        assert "Amount must be greater than zero" in summary
