"""
Pydantic schemas for Tortoise ORM models.

These schemas provide request/response models for the tracking and expense
endpoints.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from ..timeutils import Currency, from_minor


class ClientCreate(BaseModel):
    """Schema for creating a client."""

    name: str = Field(..., min_length=1, max_length=255)


class ClientResponse(BaseModel):
    """Schema for client responses."""

    id: UUID
    name: str
    archived: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ProjectCreate(BaseModel):
    """Schema for creating a project."""

    name: str = Field(..., min_length=1, max_length=255)
    client_id: Optional[UUID] = None
    rate_hour: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)


class ProjectResponse(BaseModel):
    """Schema for project responses."""

    id: UUID
    name: str
    client_id: Optional[UUID] = None
    archived: bool
    rate_hour: Optional[Decimal] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class TimeEntryCreate(BaseModel):
    """Schema for a manually entered interval."""

    project_id: UUID
    started_at: datetime
    stopped_at: datetime
    notes: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_interval(self) -> "TimeEntryCreate":
        if self.stopped_at <= self.started_at:
            raise ValueError("stopped_at must be after started_at")
        return self


class TimerStart(BaseModel):
    """Schema for starting a timer."""

    project_id: UUID
    notes: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class TimerStop(BaseModel):
    """Schema for stopping the running timer."""

    notes: Optional[str] = None


class TimeEntryResponse(BaseModel):
    """Schema for time entry responses."""

    id: UUID
    project_id: UUID
    started_at: datetime
    stopped_at: Optional[datetime] = None
    notes: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_at: datetime

    model_config = {"from_attributes": True}


class ExpenseUpsert(BaseModel):
    """
    Schema for creating or replacing an expense.

    ``unit_amount`` is given in major units of ``currency``.
    """

    project_id: UUID
    spent_on: Optional[date] = None
    vendor: Optional[str] = Field(default=None, max_length=255)
    category: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = None
    quantity: Decimal = Field(default=Decimal("1"), gt=0, decimal_places=3)
    unit_amount: Decimal = Field(..., ge=0, decimal_places=2)
    currency: Currency = "CHF"
    vat_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100, decimal_places=2)
    billable: bool = True
    reimbursable: bool = False
    receipt_url: Optional[str] = Field(default=None, max_length=1024)

    @field_validator("currency", mode="before")
    @classmethod
    def upper_currency(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value


class ExpenseResponse(BaseModel):
    """Schema for expense responses."""

    id: UUID
    project_id: UUID
    client_id: Optional[UUID] = None
    spent_on: date
    vendor: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    quantity: Decimal
    unit_amount_cents: int
    currency: Currency
    vat_rate: Decimal
    net_amount_cents: int
    vat_amount_cents: int
    gross_amount_cents: int
    billable: bool
    reimbursable: bool
    receipt_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @computed_field  # type: ignore[prop-decorator]
    @property
    def gross_amount(self) -> Decimal:
        return from_minor(self.gross_amount_cents, self.currency)


class ExpenseTotal(BaseModel):
    """Billable gross amount of a project in one currency."""

    currency: Currency
    gross_amount_cents: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def gross_amount(self) -> Decimal:
        return from_minor(self.gross_amount_cents, self.currency)


class ProjectExpenseTotals(BaseModel):
    """Billable expense totals of a project, one entry per currency."""

    project_id: UUID
    totals: List[ExpenseTotal] = Field(default_factory=list)
