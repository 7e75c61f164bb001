"""
Transaction Draft Validation

Runs after the draft model has accepted the input (types, required
fields, non-negative amount) and before anything is sent to the store.

ERRORS block the save:
- Zero amount
- Team split with nobody to split between

WARNINGS are shown but don't block:
- Date too far in the future
- Unusually large amount
- Investor names that are not on the roster (they will still be
  credited, as a label that matches no member)

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for human review.
"""

from datetime import date, timedelta
from typing import Iterable, Optional

from src.config import AppSettings, get_settings
from src.models.transaction import (
    InvestmentType,
    TransactionDraft,
    User,
    ValidationIssue,
    ValidationResult,
)


class TransactionValidator:
    """Validates a transaction draft against business rules."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def validate(
        self,
        draft: TransactionDraft,
        roster: Optional[Iterable[User]] = None,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Check a draft.

        Args:
            draft: The transaction about to be recorded
            roster: Current team members, for the investor name check.
                    If None, investor names are not checked.
            today: Reference date for the future-date check
        """
        issues = []
        today = today or date.today()

        if draft.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
            ))

        if draft.investment_type == InvestmentType.TEAM and not draft.investors:
            issues.append(ValidationIssue(
                field="investors",
                issue_type="missing",
                message="A team split needs at least one team member",
                severity="error",
                suggested_fix="Select who shares this expense, or record it as single",
            ))

        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if draft.date > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({draft.date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        if draft.amount > self._settings.max_transaction_amount_inr:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount (₹{draft.amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if roster is not None and draft.investors:
            known = {user.name for user in roster}
            unknown = [name for name in draft.investors if name not in known]
            if unknown:
                issues.append(ValidationIssue(
                    field="investors",
                    issue_type="unknown_investor",
                    message=f"Not on the team roster: {', '.join(unknown)}",
                    severity="warning",
                    suggested_fix="Check the spelling, or add them as team members first",
                ))

        return ValidationResult(
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
            warnings=[issue.message for issue in issues if issue.severity == "warning"],
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Render validation results for display."""
        if result.is_valid and not result.warnings:
            return "✅ All checks passed."

        lines = []

        if not result.is_valid:
            lines.append("❌ This transaction can't be saved yet:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
