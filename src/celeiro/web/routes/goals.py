"""Savings goals and income planning."""

from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from celeiro.domain.entities import OrganizationWithPermissions, Session
from celeiro.web.dependencies import active_organization, current_session, get_services
from celeiro.web.responses import success
from celeiro.web.services import Services

router = APIRouter(prefix="/financial", tags=["savings-goals"])


class SavingsGoalRequest(BaseModel):
    name: str
    goal_type: str
    target_amount: Decimal
    initial_amount: Decimal = Decimal("0")
    due_date: Optional[date] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    notes: Optional[str] = None


class SavingsGoalUpdateRequest(BaseModel):
    name: Optional[str] = None
    target_amount: Optional[Decimal] = None
    due_date: Optional[date] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    notes: Optional[str] = None


class ContributionRequest(BaseModel):
    amount: Decimal


@router.get("/income-planning")
def get_income_planning(
    month: int,
    year: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    report = services.income_planning.get_income_planning(organization.organization_id, month, year)
    return success(report)


@router.get("/savings-goals")
def list_savings_goals(
    is_active: Optional[bool] = None,
    is_completed: Optional[bool] = None,
    goal_type: Optional[str] = None,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    goals = services.savings_goals.list_savings_goals(
        organization.organization_id,
        is_active=is_active,
        is_completed=is_completed,
        goal_type=goal_type,
    )
    return success(goals)


@router.post("/savings-goals")
def create_savings_goal(
    req: SavingsGoalRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    session: Session = Depends(current_session),
    services: Services = Depends(get_services),
):
    goal = services.savings_goals.create_savings_goal(
        user_id=session.info.user.id,
        organization_id=organization.organization_id,
        **req.model_dump(),
    )
    return success(goal, status_code=201)


@router.get("/savings-goals/{goal_id}")
def get_savings_goal(
    goal_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    return success(services.savings_goals.get_savings_goal(organization.organization_id, goal_id))


@router.get("/savings-goals/{goal_id}/progress")
def get_savings_goal_progress(
    goal_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    progress = services.savings_goals.get_savings_goal_progress(organization.organization_id, goal_id)
    return success(progress)


@router.get("/savings-goals/{goal_id}/summary")
def get_savings_goal_summary(
    goal_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    return success(services.savings_goals.get_goal_summary(organization.organization_id, goal_id))


@router.put("/savings-goals/{goal_id}")
def update_savings_goal(
    goal_id: int,
    req: SavingsGoalUpdateRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    goal = services.savings_goals.update_savings_goal(
        organization.organization_id, goal_id, **req.model_dump(exclude_unset=True)
    )
    return success(goal)


@router.delete("/savings-goals/{goal_id}")
def delete_savings_goal(
    goal_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    services.savings_goals.delete_savings_goal(organization.organization_id, goal_id)
    return success(message="savings goal deleted")


@router.post("/savings-goals/{goal_id}/complete")
def complete_savings_goal(
    goal_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    return success(services.savings_goals.complete_savings_goal(organization.organization_id, goal_id))


@router.post("/savings-goals/{goal_id}/reopen")
def reopen_savings_goal(
    goal_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    return success(services.savings_goals.reopen_savings_goal(organization.organization_id, goal_id))


@router.post("/savings-goals/{goal_id}/contribute")
def add_contribution(
    goal_id: int,
    req: ContributionRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    progress = services.savings_goals.add_contribution(
        organization.organization_id, goal_id, req.amount
    )
    return success(progress)


@router.post("/savings-goals/{goal_id}/transactions/{transaction_id}")
def link_transaction(
    goal_id: int,
    transaction_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    tx = services.savings_goals.link_transaction(organization.organization_id, goal_id, transaction_id)
    return success(tx)


@router.delete("/transactions/{transaction_id}/savings-goal")
def unlink_transaction(
    transaction_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    tx = services.savings_goals.unlink_transaction(organization.organization_id, transaction_id)
    return success(tx)
