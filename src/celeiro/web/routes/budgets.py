"""Budgets, budget items, progress and planned entries."""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from celeiro.domain.entities import OrganizationWithPermissions, Session
from celeiro.web.dependencies import active_organization, current_session, get_services
from celeiro.web.responses import success
from celeiro.web.services import Services

router = APIRouter(prefix="/financial", tags=["budgets"])


class BudgetRequest(BaseModel):
    name: str
    month: int
    year: int
    budget_type: str = "fixed"
    amount: Decimal = Decimal("0")


class BudgetUpdateRequest(BaseModel):
    name: Optional[str] = None
    budget_type: Optional[str] = None
    amount: Optional[Decimal] = None
    is_active: Optional[bool] = None


class BudgetItemRequest(BaseModel):
    category_id: int
    planned_amount: Decimal


class BudgetItemUpdateRequest(BaseModel):
    planned_amount: Decimal


class PlannedEntryRequest(BaseModel):
    category_id: int
    description: str
    amount: Decimal
    entry_type: str = "expense"
    amount_min: Optional[Decimal] = None
    amount_max: Optional[Decimal] = None
    expected_day: Optional[int] = None
    expected_day_start: Optional[int] = None
    expected_day_end: Optional[int] = None
    is_recurrent: bool = False
    parent_entry_id: Optional[int] = None
    pattern_id: Optional[int] = None
    is_saved_pattern: bool = False


class PlannedEntryUpdateRequest(BaseModel):
    category_id: Optional[int] = None
    description: Optional[str] = None
    amount: Optional[Decimal] = None
    entry_type: Optional[str] = None
    amount_min: Optional[Decimal] = None
    amount_max: Optional[Decimal] = None
    expected_day: Optional[int] = None
    expected_day_start: Optional[int] = None
    expected_day_end: Optional[int] = None
    is_recurrent: Optional[bool] = None
    is_active: Optional[bool] = None
    pattern_id: Optional[int] = None


class MatchRequest(BaseModel):
    month: int
    year: int
    transaction_id: int


class DismissRequest(BaseModel):
    month: int
    year: int
    reason: Optional[str] = None


class PeriodRequest(BaseModel):
    month: int
    year: int


# Budgets


@router.get("/budgets")
def list_budgets(
    month: Optional[int] = None,
    year: Optional[int] = None,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    return success(services.budgets.list_budgets(organization.organization_id, month=month, year=year))


@router.post("/budgets")
def create_budget(
    req: BudgetRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    session: Session = Depends(current_session),
    services: Services = Depends(get_services),
):
    budget = services.budgets.create_budget(
        user_id=session.info.user.id,
        organization_id=organization.organization_id,
        name=req.name,
        month=req.month,
        year=req.year,
        budget_type=req.budget_type,
        amount=req.amount,
    )
    return success(budget, status_code=201)


@router.get("/budgets/{budget_id}")
def get_budget(
    budget_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    return success(services.budgets.get_budget_with_items(organization.organization_id, budget_id))


@router.patch("/budgets/{budget_id}")
def update_budget(
    budget_id: int,
    req: BudgetUpdateRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    budget = services.budgets.update_budget(
        organization.organization_id, budget_id, **req.model_dump(exclude_unset=True)
    )
    return success(budget)


@router.delete("/budgets/{budget_id}")
def delete_budget(
    budget_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    services.budgets.delete_budget(organization.organization_id, budget_id)
    return success(message="budget deleted")


@router.get("/budgets/{budget_id}/progress")
def get_budget_progress(
    budget_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    return success(services.progress.calculate_budget_progress(organization.organization_id, budget_id))


@router.post("/budgets/{budget_id}/items")
def add_budget_item(
    budget_id: int,
    req: BudgetItemRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    item = services.budgets.add_budget_item(
        organization.organization_id, budget_id, req.category_id, req.planned_amount
    )
    return success(item, status_code=201)


@router.patch("/budgets/{budget_id}/items/{item_id}")
def update_budget_item(
    budget_id: int,
    item_id: int,
    req: BudgetItemUpdateRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    item = services.budgets.update_budget_item(
        organization.organization_id, budget_id, item_id, req.planned_amount
    )
    return success(item)


@router.delete("/budgets/{budget_id}/items/{item_id}")
def delete_budget_item(
    budget_id: int,
    item_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    services.budgets.delete_budget_item(organization.organization_id, budget_id, item_id)
    return success(message="budget item deleted")


# Planned entries


@router.get("/planned-entries")
def list_planned_entries(
    is_recurrent: Optional[bool] = None,
    is_active: Optional[bool] = None,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    entries = services.planned_entries.list_planned_entries(
        organization.organization_id, is_recurrent=is_recurrent, is_active=is_active
    )
    return success(entries)


@router.post("/planned-entries")
def create_planned_entry(
    req: PlannedEntryRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    session: Session = Depends(current_session),
    services: Services = Depends(get_services),
):
    entry = services.planned_entries.create_planned_entry(
        user_id=session.info.user.id,
        organization_id=organization.organization_id,
        **req.model_dump(),
    )
    return success(entry, status_code=201)


@router.get("/planned-entries/patterns")
def list_saved_patterns(
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    entries = services.planned_entries.list_planned_entries(
        organization.organization_id, is_saved_pattern=True
    )
    return success(entries)


@router.get("/planned-entries/month")
def get_planned_entries_for_month(
    month: int,
    year: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    entries = services.planned_entries.get_planned_entries_for_month(
        organization.organization_id, month, year
    )
    return success(entries)


@router.get("/planned-entries/{entry_id}")
def get_planned_entry(
    entry_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    return success(services.planned_entries.get_planned_entry(organization.organization_id, entry_id))


@router.put("/planned-entries/{entry_id}")
def update_planned_entry(
    entry_id: int,
    req: PlannedEntryUpdateRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    entry = services.planned_entries.update_planned_entry(
        organization.organization_id, entry_id, **req.model_dump(exclude_unset=True)
    )
    return success(entry)


@router.delete("/planned-entries/{entry_id}")
def delete_planned_entry(
    entry_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    services.planned_entries.delete_planned_entry(organization.organization_id, entry_id)
    return success(message="planned entry deleted")


@router.get("/planned-entries/{entry_id}/status")
def get_planned_entry_status(
    entry_id: int,
    month: int,
    year: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    status = services.planned_entries.get_entry_status(organization.organization_id, entry_id, month, year)
    return success(status)


@router.post("/planned-entries/{entry_id}/match")
def match_planned_entry(
    entry_id: int,
    req: MatchRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    status = services.planned_entries.match_planned_entry(
        organization.organization_id, entry_id, req.month, req.year, req.transaction_id
    )
    return success(status)


@router.delete("/planned-entries/{entry_id}/match")
def unmatch_planned_entry(
    entry_id: int,
    month: int,
    year: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    status = services.planned_entries.unmatch_planned_entry(
        organization.organization_id, entry_id, month, year
    )
    return success(status)


@router.post("/planned-entries/{entry_id}/dismiss")
def dismiss_planned_entry(
    entry_id: int,
    req: DismissRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    status = services.planned_entries.dismiss_planned_entry(
        organization.organization_id, entry_id, req.month, req.year, req.reason
    )
    return success(status)


@router.delete("/planned-entries/{entry_id}/dismiss")
def undismiss_planned_entry(
    entry_id: int,
    month: int,
    year: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    status = services.planned_entries.undismiss_planned_entry(
        organization.organization_id, entry_id, month, year
    )
    return success(status)


@router.post("/planned-entries/{entry_id}/generate")
def generate_monthly_instances(
    entry_id: int,
    req: PeriodRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    session: Session = Depends(current_session),
    services: Services = Depends(get_services),
):
    instances = services.planned_entries.generate_monthly_instances(
        session.info.user.id, organization.organization_id, entry_id, req.month, req.year
    )
    return success(instances, status_code=201)
