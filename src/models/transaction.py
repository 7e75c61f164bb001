"""
Core Data Models for Crew Ledger

These models define the schemas for transactions and team members.
There are two families:
1. Records (Transaction, User) - what the remote store hands back.
   Parsing is LENIENT: one bad field never rejects a whole record.
2. Drafts (TransactionDraft, UserDraft) - what we send to the store.
   Parsing is STRICT: bad input is rejected before it leaves the client.

DESIGN DECISION: Records are frozen. The remote store owns them and the
client never mutates one in place - it sends an update and re-fetches.
"""

import math
import datetime as dt
from enum import Enum
from typing import Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money flow."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class PaymentMethod(str, Enum):
    """
    Payment channels.

    Statements group net cash flow by these values.
    """
    CASH = "CASH"
    GPAY = "GPAY"
    PHONEPE = "PHONEPE"
    PAYTM = "PAYTM"
    FAMPAY = "FAMPAY"
    DEBIT_CARD = "DEBIT_CARD"
    BANK_TRANSFER = "BANK_TRANSFER"


class InvestmentType(str, Enum):
    """
    Who bears the cost of a transaction.

    SINGLE: the creator pays the full amount.
    TEAM: the amount is split evenly among the named investors.
    """
    SINGLE = "SINGLE"
    TEAM = "TEAM"


# =============================================================================
# LENIENT COERCION HELPERS
# =============================================================================

def parse_date_value(value: Any) -> Optional[dt.date]:
    """
    Best-effort conversion of a wire value to a calendar date.

    Accepts date, datetime and ISO strings (with or without time part).
    Returns None for anything that cannot be read as a date.
    """
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return dt.datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return dt.date.fromisoformat(text[:10])
    except ValueError:
        return None


def parse_amount_value(value: Any) -> Optional[float]:
    """
    Best-effort conversion of a wire value to a finite float.

    Booleans, NaN and infinities are treated as missing.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None

    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _enum_or_none(enum_cls: type[Enum], value: Any) -> Any:
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


# =============================================================================
# RECORDS (owned by the remote store / directory)
# =============================================================================

class Transaction(BaseModel):
    """
    A single income or expense record as returned by the Transaction Store.

    CRITICAL: Never raise on a malformed field. The dashboard must still
    render when one record out of hundreds is broken. Unreadable values
    become None and the aggregation layer decides what to do with them.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
    )

    id: str = Field(
        default="",
        validation_alias=AliasChoices("id", "_id"),
        description="Opaque identifier assigned by the store"
    )
    user_id: str = Field(
        default="",
        validation_alias=AliasChoices("user_id", "userId"),
        description="Creator's user id"
    )
    user_name: str = Field(
        default="",
        validation_alias=AliasChoices("user_name", "userName"),
        description="Creator's name at the time of creation (denormalized)"
    )
    date: Optional[dt.date] = Field(
        default=None,
        description="Calendar date of the transaction"
    )
    type: Optional[TransactionType] = None
    category: str = Field(
        default="",
        description="Free-text category (case-sensitive, not normalized)"
    )
    amount: Optional[float] = Field(
        default=None,
        description="Non-negative amount in INR"
    )
    payment_method: Optional[PaymentMethod] = Field(
        default=None,
        validation_alias=AliasChoices("payment_method", "paymentMethod"),
    )
    description: str = ""
    investment_type: Optional[InvestmentType] = Field(
        default=None,
        validation_alias=AliasChoices("investment_type", "investmentType"),
    )
    investors: Optional[list[str]] = Field(
        default=None,
        description="Participant names for a team split, in order"
    )

    # Carried through for export, not used by aggregation
    bank_account_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("bank_account_id", "bankAccountId"),
    )
    bank_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("bank_name", "bankName"),
    )
    attachment: Optional[str] = None
    created_at: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("created_at", "createdAt"),
    )

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def coerce_identifier(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v)

    @field_validator("user_name", "category", "description", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        """Missing text becomes empty. No stripping - grouping is exact."""
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> Optional[dt.date]:
        return parse_date_value(v)

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Optional[float]:
        return parse_amount_value(v)

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: Any) -> Optional[TransactionType]:
        return _enum_or_none(TransactionType, v)

    @field_validator("payment_method", mode="before")
    @classmethod
    def coerce_payment_method(cls, v: Any) -> Optional[PaymentMethod]:
        return _enum_or_none(PaymentMethod, v)

    @field_validator("investment_type", mode="before")
    @classmethod
    def coerce_investment_type(cls, v: Any) -> Optional[InvestmentType]:
        return _enum_or_none(InvestmentType, v)

    @field_validator("investors", mode="before")
    @classmethod
    def coerce_investors(cls, v: Any) -> Optional[list[str]]:
        if not isinstance(v, (list, tuple)):
            return None
        return [name for name in v if isinstance(name, str)]

    @field_validator(
        "bank_account_id", "bank_name", "attachment", "created_at", mode="before"
    )
    @classmethod
    def coerce_optional_text(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        return str(v)

    @property
    def is_team_split(self) -> bool:
        """True when the amount is divided among named investors."""
        return bool(self.investors)

    def to_export_row(self) -> dict[str, Any]:
        """
        Convert to a row for the spreadsheet export.

        Column names match the exported sheet headers.
        """
        return {
            "Date": self.date.isoformat() if self.date else "",
            "Type": self.type.value if self.type else "",
            "Category": self.category,
            "Amount": self.amount if self.amount is not None else 0,
            "Method": self.payment_method.value if self.payment_method else "",
            "Description": self.description,
            "CreatedBy": self.user_name,
            "InvestmentType": self.investment_type.value if self.investment_type else "",
            "TeamMembers": ", ".join(self.investors or []),
        }


class User(BaseModel):
    """
    A team member from the User Directory.

    NOTE: `name` is the attribution join key and is NOT guaranteed unique.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
    )

    id: str = Field(
        default="",
        validation_alias=AliasChoices("id", "_id"),
    )
    name: str = ""
    email: str = ""
    position: str = ""
    created_at: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("created_at", "createdAt"),
    )

    @field_validator("id", "name", "email", "position", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)

    @field_validator("created_at", mode="before")
    @classmethod
    def coerce_created_at(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        return str(v)


# =============================================================================
# DRAFTS (what the client sends)
# =============================================================================

class TransactionDraft(BaseModel):
    """
    A transaction the user is about to record.

    Stricter than Transaction: required fields must be present and sane.
    Semantic checks (future dates, unknown investors) live in the validator.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: str = Field(..., min_length=1)
    user_name: str = Field(..., min_length=1)
    date: dt.date
    type: TransactionType
    category: str = Field(..., min_length=1, max_length=100)
    amount: float = Field(..., ge=0, allow_inf_nan=False)
    payment_method: PaymentMethod = PaymentMethod.CASH
    description: str = Field(default="", max_length=500)
    investment_type: InvestmentType = InvestmentType.SINGLE
    investors: Optional[list[str]] = None
    bank_account_id: Optional[str] = None
    bank_name: Optional[str] = None
    attachment: Optional[str] = None

    @model_validator(mode="after")
    def drop_investors_for_single(self) -> "TransactionDraft":
        """Only team splits carry an investors list."""
        if self.investment_type != InvestmentType.TEAM:
            self.investors = None
        return self

    def to_payload(self) -> dict[str, Any]:
        """Render the camelCase JSON body the backend expects."""
        payload: dict[str, Any] = {
            "userId": self.user_id,
            "userName": self.user_name,
            "date": self.date.isoformat(),
            "type": self.type.value,
            "category": self.category,
            "amount": self.amount,
            "paymentMethod": self.payment_method.value,
            "description": self.description,
            "investmentType": self.investment_type.value,
        }
        if self.investors is not None:
            payload["investors"] = list(self.investors)
        if self.bank_account_id:
            payload["bankAccountId"] = self.bank_account_id
        if self.bank_name:
            payload["bankName"] = self.bank_name
        if self.attachment:
            payload["attachment"] = self.attachment
        return payload


class UserDraft(BaseModel):
    """A team member being added to the directory."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=200)
    position: str = Field(default="", max_length=100)
    password: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        if "@" not in v:
            raise ValueError(f"Invalid email address: {v}")
        return v.lower()

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": self.name,
            "email": self.email,
            "position": self.position,
        }
        if self.password:
            payload["password"] = self.password
        return payload


def parse_transactions(payload: Any) -> list[Transaction]:
    """
    Turn a deserialized JSON list into Transaction records.

    Non-object items are dropped. Field-level problems never drop a record.
    """
    if not isinstance(payload, list):
        return []
    return [Transaction.model_validate(item) for item in payload if isinstance(item, dict)]


def parse_users(payload: Any) -> list[User]:
    """Turn a deserialized JSON list into User records."""
    if not isinstance(payload, list):
        return []
    return [User.model_validate(item) for item in payload if isinstance(item, dict)]


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found on a draft."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'unknown_investor')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """Result of validating a transaction draft."""

    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")
