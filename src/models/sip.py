"""
SIP Plan Models

A SIP plan is a recurring team investment: a monthly amount, due on a
fixed day of the month, shared between named members. The installments
themselves are ordinary transactions; a plan only says who owes what.

Same two families as transaction.py: a lenient, frozen SipPlan record
owned by the remote store, and a strict SipPlanDraft we send to it.
"""

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

from src.models.transaction import parse_amount_value, parse_date_value


class SplitType(str, Enum):
    """How a plan's monthly amount is divided between members."""
    EQUAL = "EQUAL"
    CUSTOM = "CUSTOM"


class PaymentStatus(str, Enum):
    """Whether a member has paid the current month's installment."""
    PAID = "PAID"
    PENDING = "PENDING"


class PlanMember(BaseModel):
    """One member's monthly share of a plan."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    amount: float = Field(default=0.0, ge=0, allow_inf_nan=False)


class SipPlan(BaseModel):
    """
    A SIP plan as returned by the plan store.

    Parsing is lenient like Transaction: unreadable members are dropped,
    unreadable numbers become None, a bad due day falls back to the 1st.
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
    name: str = Field(
        default="",
        description="Fund name; installments mention it in their description"
    )
    total_amount: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("total_amount", "totalAmount"),
    )
    start_date: Optional[dt.date] = Field(
        default=None,
        validation_alias=AliasChoices("start_date", "startDate"),
    )
    day_of_month: int = Field(
        default=1,
        validation_alias=AliasChoices("day_of_month", "dayOfMonth"),
        description="Day of the month the installment is due (1-31)"
    )
    split_type: Optional[SplitType] = Field(
        default=None,
        validation_alias=AliasChoices("split_type", "splitType"),
    )
    members: list[PlanMember] = Field(default_factory=list)
    active: bool = True
    goal_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("goal_name", "goalName"),
    )
    goal_target: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("goal_target", "goalTarget"),
    )

    @field_validator("id", "name", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)

    @field_validator("total_amount", "goal_target", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Optional[float]:
        return parse_amount_value(v)

    @field_validator("start_date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> Optional[dt.date]:
        return parse_date_value(v)

    @field_validator("day_of_month", mode="before")
    @classmethod
    def coerce_day(cls, v: Any) -> int:
        if isinstance(v, bool) or not isinstance(v, (int, float, str)):
            return 1
        try:
            day = int(v)
        except (ValueError, OverflowError):
            return 1
        return day if 1 <= day <= 31 else 1

    @field_validator("split_type", mode="before")
    @classmethod
    def coerce_split_type(cls, v: Any) -> Optional[SplitType]:
        try:
            return SplitType(v)
        except ValueError:
            return None

    @field_validator("members", mode="before")
    @classmethod
    def coerce_members(cls, v: Any) -> list[PlanMember]:
        if not isinstance(v, (list, tuple)):
            return []
        members = []
        for item in v:
            if isinstance(item, PlanMember):
                members.append(item)
                continue
            if not isinstance(item, dict):
                continue
            name = item.get("name")
            if not isinstance(name, str) or not name.strip():
                continue
            amount = parse_amount_value(item.get("amount"))
            members.append(PlanMember(name=name, amount=max(amount or 0.0, 0.0)))
        return members

    @property
    def member_names(self) -> list[str]:
        return [member.name for member in self.members]

    def share_of(self, member_name: str) -> Optional[float]:
        """Monthly share of one member, or None if they are not on the plan."""
        for member in self.members:
            if member.name == member_name:
                return member.amount
        return None


class SipPlanDraft(BaseModel):
    """A SIP plan about to be created."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)
    total_amount: float = Field(..., gt=0, allow_inf_nan=False)
    start_date: dt.date
    day_of_month: int = Field(..., ge=1, le=31)
    split_type: SplitType = SplitType.EQUAL
    members: list[PlanMember] = Field(..., min_length=1)
    goal_name: Optional[str] = None
    goal_target: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)

    @model_validator(mode="after")
    def reject_duplicate_members(self) -> "SipPlanDraft":
        names = [member.name for member in self.members]
        if len(names) != len(set(names)):
            raise ValueError("Each member can appear on a plan only once")
        return self

    def to_payload(self) -> dict[str, Any]:
        """Render the camelCase JSON body the backend expects."""
        payload: dict[str, Any] = {
            "name": self.name,
            "totalAmount": self.total_amount,
            "startDate": self.start_date.isoformat(),
            "dayOfMonth": self.day_of_month,
            "splitType": self.split_type.value,
            "members": [{"name": m.name, "amount": m.amount} for m in self.members],
            "active": True,
        }
        if self.goal_name:
            payload["goalName"] = self.goal_name
        if self.goal_target is not None:
            payload["goalTarget"] = self.goal_target
        return payload


class MemberPaymentStatus(BaseModel):
    """Where one member stands on the current installment of a plan."""

    name: str
    amount: float
    status: PaymentStatus
    next_due_date: dt.date
    days_remaining: int = Field(..., ge=0)


def parse_sip_plans(payload: Any) -> list[SipPlan]:
    """Turn a deserialized JSON list into SipPlan records."""
    if not isinstance(payload, list):
        return []
    return [SipPlan.model_validate(item) for item in payload if isinstance(item, dict)]
