"""
Tests for Crew Ledger

Test strategy:
1. Unit tests for individual components (models, engine, validators)
2. Integration tests for flows (with in-memory or mocked stores)
3. No real API calls in tests (use httpx.MockTransport)
"""

import pytest
from datetime import date
from uuid import uuid4

from pydantic import ValidationError

from src.models.transaction import (
    InvestmentType,
    PaymentMethod,
    Transaction,
    TransactionDraft,
    TransactionType,
    User,
    UserDraft,
    ValidationIssue,
    ValidationResult,
    parse_transactions,
    parse_users,
)
from src.models.sip import (
    PlanMember,
    SipPlan,
    SipPlanDraft,
    SplitType,
    parse_sip_plans,
)
from src.models.stats import (
    DashboardResult,
    PaymentChannelEntry,
    PaymentChannelSummary,
    ReportType,
    SipProjection,
    StatementQuery,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestTransactionParsing:
    """Tests for lenient parsing of store records."""

    def test_wire_names_accepted(self):
        """Test camelCase and _id wire names map to fields."""
        t = Transaction.model_validate({
            "_id": "abc",
            "userId": "u1",
            "userName": "Alice",
            "date": "2024-03-15",
            "type": "EXPENSE",
            "category": "Food",
            "amount": 250,
            "paymentMethod": "GPAY",
            "investmentType": "SINGLE",
        })
        assert t.id == "abc"
        assert t.user_id == "u1"
        assert t.user_name == "Alice"
        assert t.date == date(2024, 3, 15)
        assert t.type == TransactionType.EXPENSE
        assert t.amount == 250.0
        assert t.payment_method == PaymentMethod.GPAY
        assert t.investment_type == InvestmentType.SINGLE

    def test_iso_timestamp_date(self):
        """Test a full ISO timestamp is reduced to its date."""
        t = Transaction.model_validate({"date": "2024-03-15T18:30:00.000Z"})
        assert t.date == date(2024, 3, 15)

    def test_unreadable_fields_become_none(self):
        """Test that bad values never reject the record."""
        t = Transaction.model_validate({
            "id": "x",
            "date": "not a date",
            "type": "TRANSFER",
            "amount": "lots",
            "paymentMethod": "CHEQUE",
            "investors": "Alice",
        })
        assert t.id == "x"
        assert t.date is None
        assert t.type is None
        assert t.amount is None
        assert t.payment_method is None
        assert t.investors is None

    def test_numeric_string_amount(self):
        """Test amounts sent as strings are read."""
        t = Transaction.model_validate({"amount": " 99.5 "})
        assert t.amount == 99.5

    def test_non_finite_and_boolean_amounts_rejected(self):
        """Test NaN, infinity and booleans are treated as missing."""
        assert Transaction.model_validate({"amount": "nan"}).amount is None
        assert Transaction.model_validate({"amount": float("inf")}).amount is None
        assert Transaction.model_validate({"amount": True}).amount is None

    def test_investors_keep_only_names(self):
        """Test non-string investor entries are dropped, order kept."""
        t = Transaction.model_validate({"investors": ["Bob", 7, None, "Alice"]})
        assert t.investors == ["Bob", "Alice"]
        assert t.is_team_split is True

    def test_empty_investors_is_not_a_split(self):
        t = Transaction.model_validate({"investors": []})
        assert t.is_team_split is False

    def test_category_not_normalized(self):
        """Test category is kept exactly as sent."""
        t = Transaction.model_validate({"category": " food "})
        assert t.category == " food "

    def test_records_are_frozen(self):
        """Test records cannot be mutated in place."""
        t = Transaction.model_validate({"amount": 10})
        with pytest.raises(ValidationError):
            t.amount = 20

    def test_parse_transactions_skips_non_objects(self):
        """Test that non-dict items are dropped from a list payload."""
        records = parse_transactions([{"id": "1"}, "garbage", None, {"id": "2"}])
        assert [t.id for t in records] == ["1", "2"]

    def test_parse_transactions_non_list(self):
        assert parse_transactions({"id": "1"}) == []

    def test_parse_users(self):
        users = parse_users([{"_id": "u1", "name": "Alice"}, 42])
        assert len(users) == 1
        assert users[0].id == "u1"
        assert users[0].name == "Alice"

    def test_export_row(self):
        """Test conversion to an export row."""
        t = Transaction.model_validate({
            "date": "2024-03-15",
            "type": "EXPENSE",
            "category": "Travel",
            "amount": 300,
            "paymentMethod": "CASH",
            "description": "Cab",
            "userName": "Alice",
            "investmentType": "TEAM",
            "investors": ["Alice", "Bob"],
        })
        row = t.to_export_row()
        assert row == {
            "Date": "2024-03-15",
            "Type": "EXPENSE",
            "Category": "Travel",
            "Amount": 300.0,
            "Method": "CASH",
            "Description": "Cab",
            "CreatedBy": "Alice",
            "InvestmentType": "TEAM",
            "TeamMembers": "Alice, Bob",
        }

    def test_export_column_order(self):
        """Test columns follow the exported sheet header order."""
        t = Transaction.model_validate({"type": "EXPENSE", "investmentType": "TEAM", "investors": ["A"]})
        assert list(t.to_export_row()) == [
            "Date", "Type", "Category", "Amount", "Method",
            "Description", "CreatedBy", "InvestmentType", "TeamMembers",
        ]

    def test_export_row_missing_values(self):
        row = Transaction().to_export_row()
        assert row["Date"] == ""
        assert row["Amount"] == 0
        assert row["TeamMembers"] == ""
        assert row["InvestmentType"] == ""


class TestSipPlanModels:
    """Tests for SIP plan records and drafts."""

    def test_wire_names_accepted(self):
        plan = SipPlan.model_validate({
            "_id": "p1",
            "name": "Nifty Index",
            "totalAmount": "1000",
            "startDate": "2024-01-01T00:00:00.000Z",
            "dayOfMonth": 15,
            "splitType": "EQUAL",
            "members": [{"name": "Alice", "amount": 500}, {"name": "Bob", "amount": "500"}],
            "goalName": "House",
            "goalTarget": 500000,
        })
        assert plan.id == "p1"
        assert plan.total_amount == 1000
        assert plan.start_date == date(2024, 1, 1)
        assert plan.day_of_month == 15
        assert plan.split_type == SplitType.EQUAL
        assert plan.member_names == ["Alice", "Bob"]
        assert plan.share_of("Bob") == 500
        assert plan.share_of("Cara") is None
        assert plan.goal_target == 500000

    def test_unreadable_fields_fall_back(self):
        """Test bad plan fields never reject the record."""
        plan = SipPlan.model_validate({
            "dayOfMonth": 45,
            "splitType": "RANDOM",
            "totalAmount": "lots",
            "members": [{"name": "Alice", "amount": "x"}, {"name": "  "}, "Bob", {"amount": 5}],
        })
        assert plan.day_of_month == 1
        assert plan.split_type is None
        assert plan.total_amount is None
        assert [(m.name, m.amount) for m in plan.members] == [("Alice", 0)]

    def test_infinite_due_day(self):
        assert SipPlan.model_validate({"dayOfMonth": float("inf")}).day_of_month == 1

    def test_parse_sip_plans_skips_non_objects(self):
        plans = parse_sip_plans([{"_id": "p1"}, None, {"_id": "p2"}])
        assert [p.id for p in plans] == ["p1", "p2"]
        assert parse_sip_plans({"_id": "p1"}) == []

    def _draft(self, **overrides) -> SipPlanDraft:
        fields = {
            "name": " Nifty Index ",
            "total_amount": 1000,
            "start_date": date(2024, 1, 1),
            "day_of_month": 10,
            "members": [PlanMember(name="Alice", amount=500), PlanMember(name="Bob", amount=500)],
        }
        fields.update(overrides)
        return SipPlanDraft(**fields)

    def test_draft_payload(self):
        payload = self._draft(goal_name="House").to_payload()
        assert payload == {
            "name": "Nifty Index",
            "totalAmount": 1000.0,
            "startDate": "2024-01-01",
            "dayOfMonth": 10,
            "splitType": "EQUAL",
            "members": [{"name": "Alice", "amount": 500.0}, {"name": "Bob", "amount": 500.0}],
            "active": True,
            "goalName": "House",
        }

    def test_draft_rejects_duplicate_members(self):
        with pytest.raises(ValidationError):
            self._draft(members=[PlanMember(name="Alice"), PlanMember(name="Alice")])

    def test_draft_needs_members(self):
        with pytest.raises(ValidationError):
            self._draft(members=[])

    def test_draft_rejects_bad_due_day(self):
        with pytest.raises(ValidationError):
            self._draft(day_of_month=32)


class TestDrafts:
    """Tests for strict draft models."""

    def _draft(self, **overrides) -> TransactionDraft:
        fields = {
            "user_id": "u1",
            "user_name": "Alice",
            "date": date(2024, 3, 15),
            "type": TransactionType.EXPENSE,
            "category": "Food",
            "amount": 120.0,
        }
        fields.update(overrides)
        return TransactionDraft(**fields)

    def test_draft_defaults(self):
        """Test default method and investment type."""
        draft = self._draft()
        assert draft.payment_method == PaymentMethod.CASH
        assert draft.investment_type == InvestmentType.SINGLE
        assert draft.investors is None

    def test_draft_strips_whitespace(self):
        draft = self._draft(category="  Food  ")
        assert draft.category == "Food"

    def test_draft_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValidationError):
            self._draft(amount=-1)

    def test_draft_rejects_nan_amount(self):
        with pytest.raises(ValidationError):
            self._draft(amount=float("nan"))

    def test_draft_rejects_blank_category(self):
        with pytest.raises(ValidationError):
            self._draft(category="   ")

    def test_single_draft_drops_investors(self):
        """Test investors only survive on team splits."""
        draft = self._draft(investors=["Alice", "Bob"])
        assert draft.investors is None

    def test_team_payload(self):
        """Test the camelCase payload of a team split."""
        draft = self._draft(
            investment_type=InvestmentType.TEAM,
            investors=["Alice", "Bob"],
            payment_method=PaymentMethod.GPAY,
        )
        payload = draft.to_payload()
        assert payload["userId"] == "u1"
        assert payload["date"] == "2024-03-15"
        assert payload["type"] == "EXPENSE"
        assert payload["paymentMethod"] == "GPAY"
        assert payload["investmentType"] == "TEAM"
        assert payload["investors"] == ["Alice", "Bob"]
        assert "bankName" not in payload

    def test_payload_round_trips_into_record(self):
        record = Transaction.model_validate(self._draft().to_payload())
        assert record.user_name == "Alice"
        assert record.amount == 120.0

    def test_user_draft_lowercases_email(self):
        draft = UserDraft(name="Alice", email="Alice@Example.COM")
        assert draft.email == "alice@example.com"
        assert "password" not in draft.to_payload()

    def test_user_draft_rejects_bad_email(self):
        with pytest.raises(ValidationError):
            UserDraft(name="Alice", email="not-an-email")


class TestDerivedModels:
    """Tests for statement and result models."""

    def test_monthly_query_needs_month(self):
        with pytest.raises(ValidationError):
            StatementQuery(report_type=ReportType.MONTHLY, year=2024)

    def test_yearly_query_without_month(self):
        query = StatementQuery(report_type=ReportType.YEARLY, year=2024)
        assert query.describe() == "Year 2024 | ALL"

    def test_monthly_query_description(self):
        query = StatementQuery(year=2024, month=3, payment_method=PaymentMethod.GPAY)
        assert query.describe() == "March 2024 | GPAY"

    def test_channel_summary_helpers(self):
        summary = PaymentChannelSummary(entries=[
            PaymentChannelEntry(method=PaymentMethod.GPAY, amount=800),
            PaymentChannelEntry(method=PaymentMethod.CASH, amount=-50),
        ])
        assert summary.as_dict() == {"GPAY": 800, "CASH": -50}
        assert summary.total_volume == 850

    def test_sip_projection_gain(self):
        assert SipProjection(invested=12000, total=12809).gain == 809

    def test_result_timestamps_are_utc_aware(self):
        executed_at = DashboardResult(success=True).executed_at
        assert executed_at.tzinfo is not None
        assert executed_at.utcoffset().total_seconds() == 0


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            description="Transaction recorded",
        )
        assert event.event_type == AuditEventType.TRANSACTION_CREATED
        assert event.severity == AuditSeverity.INFO
        assert event.entity_id is None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.STATEMENT_GENERATED,
            description="Statement generated",
            details={"period": "March 2024 | ALL"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "statement_generated"
        assert log_dict["details"]["period"] == "March 2024 | ALL"
        assert log_dict["correlation_id"] is None

    def test_builder_transaction_created(self):
        """Test AuditEventBuilder.transaction_created."""
        correlation_id = uuid4()
        event = AuditEventBuilder.transaction_created(
            transaction_id="t1",
            category="Food",
            amount=1500.0,
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.TRANSACTION_CREATED
        assert event.entity_id == "t1"
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True
        assert "1,500.00" in event.description

    def test_builder_member_removed_is_warning(self):
        event = AuditEventBuilder.member_changed(
            event_type=AuditEventType.MEMBER_DELETED,
            user_id="u1",
            name="",
            correlation_id=uuid4(),
        )
        assert event.severity == AuditSeverity.WARNING
        assert event.description.endswith("u1")

    def test_audit_timestamp_is_utc_aware(self):
        event = AuditEvent(event_type=AuditEventType.SYSTEM_ERROR, description="boom")
        assert event.timestamp.tzinfo is not None
        assert event.to_log_dict()["timestamp"].endswith("+00:00")

    def test_builder_sip_plan_deleted_is_warning(self):
        event = AuditEventBuilder.sip_plan_changed(
            event_type=AuditEventType.SIP_PLAN_DELETED,
            plan_id="p1",
            name="",
            correlation_id=uuid4(),
        )
        assert event.severity == AuditSeverity.WARNING
        assert event.entity_type == "sip_plan"
        assert event.description == "SIP plan deleted: p1"

    def test_builder_snapshot_refreshed_is_debug(self):
        event = AuditEventBuilder.snapshot_refreshed(
            transaction_count=10,
            member_count=3,
            correlation_id=uuid4(),
        )
        assert event.severity == AuditSeverity.DEBUG
        assert event.details == {"transaction_count": 10, "member_count": 3}


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Amount must be greater than zero",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="date",
                    issue_type="future_date",
                    message="Date in future",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0

    def test_issue_severity_is_restricted(self):
        with pytest.raises(ValidationError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


class TestUser:
    """Tests for directory records."""

    def test_user_defaults(self):
        user = User.model_validate({"name": "Alice"})
        assert user.id == ""
        assert user.position == ""


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
