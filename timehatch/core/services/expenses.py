"""
Project expenses using Tortoise ORM directly.

Amounts are authoritative on the server: net, VAT and gross minor-unit
amounts are recomputed from quantity, unit amount and VAT rate whenever an
expense is written.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import List, NamedTuple, Optional
from uuid import UUID

from tortoise.functions import Sum

from ..database.tortoise_schemas import (
    ExpenseResponse,
    ExpenseTotal,
    ExpenseUpsert,
    ProjectExpenseTotals,
)
from ..errors import NotFoundError
from ..logging import get_logger
from ..models.tortoise_models import Expense, Project
from ..timeutils import to_minor
from .onboarding import mark_step

logger = get_logger(__name__)


class ExpenseAmounts(NamedTuple):
    net_cents: int
    vat_cents: int
    gross_cents: int


def _round_cents(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), ROUND_HALF_UP))


def calculate_amounts(
    quantity: Decimal, unit_cents: int, vat_rate: Decimal
) -> ExpenseAmounts:
    """
    Net, VAT and gross amounts in minor units.

    >>> calculate_amounts(Decimal("2.5"), 1000, Decimal("7.7"))
    ExpenseAmounts(net_cents=2500, vat_cents=193, gross_cents=2693)
    """
    net = _round_cents(quantity * unit_cents)
    vat = _round_cents(net * vat_rate / 100)
    return ExpenseAmounts(net, vat, net + vat)


class ExpenseService:
    """Expenses booked on the projects of one user."""

    def __init__(self, user_id: UUID) -> None:
        self.user_id = user_id

    async def _get_project(self, project_id: UUID) -> Project:
        project = await Project.get_or_none(id=project_id, user_id=self.user_id)
        if project is None:
            raise NotFoundError("Project not found", {"project_id": str(project_id)})
        return project

    async def list_project_expenses(self, project_id: UUID) -> List[ExpenseResponse]:
        await self._get_project(project_id)
        expenses = await Expense.filter(
            user_id=self.user_id, project_id=project_id
        ).order_by("-spent_on", "-created_at")
        return [ExpenseResponse.model_validate(expense) for expense in expenses]

    async def project_total(self, project_id: UUID) -> ProjectExpenseTotals:
        """Sum the gross amounts of billable expenses per currency."""
        await self._get_project(project_id)
        rows = (
            await Expense.filter(
                user_id=self.user_id, project_id=project_id, billable=True
            )
            .annotate(total=Sum("gross_amount_cents"))
            .group_by("currency")
            .order_by("currency")
            .values("currency", "total")
        )
        return ProjectExpenseTotals(
            project_id=project_id,
            totals=[
                ExpenseTotal(
                    currency=row["currency"], gross_amount_cents=int(row["total"])
                )
                for row in rows
            ],
        )

    async def upsert_expense(
        self, data: ExpenseUpsert, expense_id: Optional[UUID] = None
    ) -> ExpenseResponse:
        """
        Create an expense, or replace the one with ``expense_id``.

        Raises:
            NotFoundError: If the project or the expense is not the user's
        """
        project = await self._get_project(data.project_id)
        unit_cents = to_minor(data.unit_amount, data.currency)
        amounts = calculate_amounts(data.quantity, unit_cents, data.vat_rate)
        values = {
            "project_id": project.id,
            "client_id": project.client_id,
            "spent_on": data.spent_on or datetime.now(timezone.utc).date(),
            "vendor": data.vendor,
            "category": data.category,
            "description": data.description,
            "quantity": data.quantity,
            "unit_amount_cents": unit_cents,
            "currency": data.currency,
            "vat_rate": data.vat_rate,
            "net_amount_cents": amounts.net_cents,
            "vat_amount_cents": amounts.vat_cents,
            "gross_amount_cents": amounts.gross_cents,
            "billable": data.billable,
            "reimbursable": data.reimbursable,
            "receipt_url": data.receipt_url,
        }

        if expense_id is None:
            expense = await Expense.create(user_id=self.user_id, **values)
            await mark_step(self.user_id, "expense_added")
            logger.info("Expense created", expense_id=str(expense.id))
            return ExpenseResponse.model_validate(expense)

        expense = await Expense.get_or_none(id=expense_id, user_id=self.user_id)
        if expense is None:
            raise NotFoundError("Expense not found", {"expense_id": str(expense_id)})
        expense.update_from_dict(values)
        await expense.save()
        logger.info("Expense updated", expense_id=str(expense.id))
        return ExpenseResponse.model_validate(expense)

    async def delete_expense(self, expense_id: UUID) -> None:
        deleted = await Expense.filter(id=expense_id, user_id=self.user_id).delete()
        if not deleted:
            raise NotFoundError("Expense not found", {"expense_id": str(expense_id)})
