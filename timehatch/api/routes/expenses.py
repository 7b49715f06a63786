"""
Expense endpoints: project expenses and their billable totals.
"""

from typing import Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from ...core.database.tortoise_schemas import (
    ExpenseResponse,
    ExpenseUpsert,
    ProjectExpenseTotals,
)
from ...core.services import ExpenseService
from ..dependencies import get_expense_service

router = APIRouter(tags=["expenses"])


@router.get("/projects/{project_id}/expenses", response_model=List[ExpenseResponse])
async def list_project_expenses(
    project_id: UUID, service: ExpenseService = Depends(get_expense_service)
) -> List[ExpenseResponse]:
    """Expenses of a project, most recent first."""
    return await service.list_project_expenses(project_id)


@router.get(
    "/projects/{project_id}/expenses/total", response_model=ProjectExpenseTotals
)
async def project_expense_total(
    project_id: UUID, service: ExpenseService = Depends(get_expense_service)
) -> ProjectExpenseTotals:
    """Billable gross totals of a project per currency."""
    return await service.project_total(project_id)


@router.post(
    "/expenses", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED
)
async def create_expense(
    data: ExpenseUpsert, service: ExpenseService = Depends(get_expense_service)
) -> ExpenseResponse:
    return await service.upsert_expense(data)


@router.put("/expenses/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: UUID,
    data: ExpenseUpsert,
    service: ExpenseService = Depends(get_expense_service),
) -> ExpenseResponse:
    """Replace an expense. Amounts are recomputed from the new values."""
    return await service.upsert_expense(data, expense_id)


@router.delete("/expenses/{expense_id}")
async def delete_expense(
    expense_id: UUID, service: ExpenseService = Depends(get_expense_service)
) -> Dict[str, str]:
    await service.delete_expense(expense_id)
    return {"message": "Expense deleted successfully"}
