"""Classification rules, advanced patterns and pattern matching."""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from celeiro.domain.entities import OrganizationWithPermissions, Session
from celeiro.web.dependencies import active_organization, current_session, get_services
from celeiro.web.responses import success
from celeiro.web.services import Services

router = APIRouter(prefix="/financial", tags=["classification"])


class RuleRequest(BaseModel):
    category_id: int
    name: str
    priority: int = 0
    match_description: Optional[str] = None
    match_amount_min: Optional[Decimal] = None
    match_amount_max: Optional[Decimal] = None
    match_transaction_type: Optional[str] = None


class RuleUpdateRequest(BaseModel):
    category_id: Optional[int] = None
    name: Optional[str] = None
    priority: Optional[int] = None
    is_active: Optional[bool] = None
    match_description: Optional[str] = None
    match_amount_min: Optional[Decimal] = None
    match_amount_max: Optional[Decimal] = None
    match_transaction_type: Optional[str] = None


class ApplyRulesRequest(BaseModel):
    transaction_ids: Optional[list[int]] = None


class PatternRequest(BaseModel):
    description_pattern: str
    target_description: str
    target_category_id: int
    date_pattern: Optional[str] = None
    weekday_pattern: Optional[str] = None
    amount_min: Optional[Decimal] = None
    amount_max: Optional[Decimal] = None
    apply_retroactively: bool = False


class PatternUpdateRequest(BaseModel):
    is_active: bool


class ApplyPatternRequest(BaseModel):
    pattern_id: int


class SavePatternRequest(BaseModel):
    is_recurrent: bool = False
    expected_day: Optional[int] = None


# Classification rules


@router.get("/classification-rules")
def list_rules(
    active_only: bool = False,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    return success(services.classification.list_rules(organization.organization_id, active_only))


@router.post("/classification-rules")
def create_rule(
    req: RuleRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    session: Session = Depends(current_session),
    services: Services = Depends(get_services),
):
    rule = services.classification.create_rule(
        user_id=session.info.user.id,
        organization_id=organization.organization_id,
        **req.model_dump(),
    )
    return success(rule, status_code=201)


@router.post("/classification-rules/apply")
def apply_rules(
    req: ApplyRulesRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    result = services.classification.apply_classification_rules(
        organization.organization_id, req.transaction_ids
    )
    return success(result)


@router.get("/classification-rules/{rule_id}")
def get_rule(
    rule_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    return success(services.classification.get_rule(organization.organization_id, rule_id))


@router.patch("/classification-rules/{rule_id}")
def update_rule(
    rule_id: int,
    req: RuleUpdateRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    rule = services.classification.update_rule(
        organization.organization_id, rule_id, **req.model_dump(exclude_unset=True)
    )
    return success(rule)


@router.delete("/classification-rules/{rule_id}")
def delete_rule(
    rule_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    services.classification.delete_rule(organization.organization_id, rule_id)
    return success(message="rule deleted")


# Advanced patterns


@router.get("/patterns")
def list_patterns(
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    return success(services.patterns.list_patterns(organization.organization_id))


@router.post("/patterns")
def create_pattern(
    req: PatternRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    session: Session = Depends(current_session),
    services: Services = Depends(get_services),
):
    pattern = services.patterns.create_pattern(
        user_id=session.info.user.id,
        organization_id=organization.organization_id,
        **req.model_dump(),
    )
    return success(pattern, status_code=201)


@router.post("/patterns/apply")
def apply_patterns(
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    return success({"applied_count": services.patterns.apply_patterns(organization.organization_id)})


@router.get("/patterns/{pattern_id}")
def get_pattern(
    pattern_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    return success(services.patterns.get_pattern(organization.organization_id, pattern_id))


@router.patch("/patterns/{pattern_id}")
def update_pattern(
    pattern_id: int,
    req: PatternUpdateRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    pattern = services.patterns.set_active(organization.organization_id, pattern_id, req.is_active)
    return success(pattern)


@router.delete("/patterns/{pattern_id}")
def delete_pattern(
    pattern_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    services.patterns.delete_pattern(organization.organization_id, pattern_id)
    return success(message="pattern deleted")


@router.post("/patterns/{pattern_id}/apply-retroactively")
def apply_pattern_retroactively(
    pattern_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    pattern = services.patterns.get_pattern(organization.organization_id, pattern_id)
    applied = services.patterns.apply_retroactively(organization.organization_id, pattern)
    return success({"applied_count": applied})


# Matching against saved patterns


@router.get("/transactions/{transaction_id}/suggestions")
def get_match_suggestions(
    transaction_id: int,
    category_id: Optional[int] = None,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    suggestions = services.matching.get_match_suggestions(
        organization.organization_id, transaction_id, category_id
    )
    return success(suggestions)


@router.post("/transactions/{transaction_id}/apply-pattern")
def apply_pattern(
    transaction_id: int,
    req: ApplyPatternRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    transaction = services.matching.apply_pattern_to_transaction(
        organization.organization_id, transaction_id, req.pattern_id
    )
    return success(transaction)


@router.post("/transactions/{transaction_id}/auto-match")
def auto_match(
    transaction_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    matched = services.matching.auto_match_transaction(organization.organization_id, transaction_id)
    return success({"matched": matched})


@router.post("/transactions/{transaction_id}/save-pattern")
def save_as_pattern(
    transaction_id: int,
    req: SavePatternRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    session: Session = Depends(current_session),
    services: Services = Depends(get_services),
):
    pattern = services.matching.save_transaction_as_pattern(
        session.info.user.id,
        organization.organization_id,
        transaction_id,
        is_recurrent=req.is_recurrent,
        expected_day=req.expected_day,
    )
    return success(pattern, status_code=201)
