"""Accounts, categories, transactions and OFX import."""

from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from celeiro.domain.entities import OrganizationWithPermissions, Session
from celeiro.domain.errors import missing_required_fields
from celeiro.web.dependencies import active_organization, current_session, get_services
from celeiro.web.responses import success
from celeiro.web.services import Services

router = APIRouter(prefix="/financial", tags=["financial"])

OFX_FORM_FIELD = "ofx_file"


class AccountRequest(BaseModel):
    name: str
    account_type: str = "checking"
    bank_name: str = ""
    balance: Decimal = Decimal("0")
    currency: str = "BRL"


class AccountUpdateRequest(BaseModel):
    name: Optional[str] = None
    account_type: Optional[str] = None
    bank_name: Optional[str] = None
    balance: Optional[Decimal] = None
    currency: Optional[str] = None
    is_active: Optional[bool] = None


class CategoryRequest(BaseModel):
    name: str
    category_type: str = "expense"
    icon: str = ""
    color: str = ""


class CategoryUpdateRequest(BaseModel):
    name: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None


class TransactionRequest(BaseModel):
    description: str
    amount: Decimal
    transaction_date: date
    transaction_type: str
    category_id: Optional[int] = None
    notes: Optional[str] = None
    tags: list[str] = []


class TransactionUpdateRequest(BaseModel):
    category_id: Optional[int] = None
    description: Optional[str] = None
    amount: Optional[Decimal] = None
    notes: Optional[str] = None
    is_ignored: Optional[bool] = None
    tags: Optional[list[str]] = None


# Accounts


@router.get("/accounts")
def list_accounts(
    include_inactive: bool = False,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    return success(services.accounts.list_accounts(organization.organization_id, include_inactive))


@router.post("/accounts")
def create_account(
    req: AccountRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    session: Session = Depends(current_session),
    services: Services = Depends(get_services),
):
    account = services.accounts.create_account(
        user_id=session.info.user.id,
        organization_id=organization.organization_id,
        name=req.name,
        account_type=req.account_type,
        bank_name=req.bank_name,
        balance=req.balance,
        currency=req.currency,
    )
    return success(account, status_code=201)


@router.get("/accounts/{account_id}")
def get_account(
    account_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    return success(services.accounts.get_account(organization.organization_id, account_id))


@router.patch("/accounts/{account_id}")
def update_account(
    account_id: int,
    req: AccountUpdateRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    account = services.accounts.update_account(
        organization.organization_id, account_id, **req.model_dump(exclude_unset=True)
    )
    return success(account)


@router.delete("/accounts/{account_id}")
def delete_account(
    account_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    services.accounts.delete_account(organization.organization_id, account_id)
    return success(message="account deleted")


# Categories


@router.get("/categories")
def list_categories(
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    return success(services.categories.list_categories(organization.organization_id))


@router.post("/categories")
def create_category(
    req: CategoryRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    session: Session = Depends(current_session),
    services: Services = Depends(get_services),
):
    category = services.categories.create_category(
        user_id=session.info.user.id,
        organization_id=organization.organization_id,
        name=req.name,
        category_type=req.category_type,
        icon=req.icon,
        color=req.color,
    )
    return success(category, status_code=201)


@router.patch("/categories/{category_id}")
def update_category(
    category_id: int,
    req: CategoryUpdateRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    category = services.categories.update_category(
        organization.organization_id, category_id, **req.model_dump(exclude_unset=True)
    )
    return success(category)


@router.delete("/categories/{category_id}")
def delete_category(
    category_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    services.categories.delete_category(organization.organization_id, category_id)
    return success(message="category deleted")


# Transactions


@router.get("/accounts/{account_id}/transactions")
def list_account_transactions(
    account_id: int,
    month: Optional[int] = None,
    year: Optional[int] = None,
    category_id: Optional[int] = None,
    limit: Optional[int] = None,
    offset: int = 0,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    services.accounts.get_account(organization.organization_id, account_id)
    transactions = services.transactions.list_transactions(
        organization.organization_id,
        account_id=account_id,
        category_id=category_id,
        month=month,
        year=year,
        limit=limit,
        offset=offset,
    )
    return success(transactions)


@router.post("/accounts/{account_id}/transactions")
def create_transaction(
    account_id: int,
    req: TransactionRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    transaction = services.transactions.create_transaction(
        organization_id=organization.organization_id,
        account_id=account_id,
        description=req.description,
        amount=req.amount,
        transaction_date=req.transaction_date,
        transaction_type=req.transaction_type,
        category_id=req.category_id,
        notes=req.notes,
        tags=req.tags,
    )
    return success(transaction, status_code=201)


@router.post("/accounts/{account_id}/transactions/import")
async def import_ofx(
    account_id: int,
    request: Request,
    organization: OrganizationWithPermissions = Depends(active_organization),
    session: Session = Depends(current_session),
    services: Services = Depends(get_services),
):
    """Import an OFX statement sent as multipart ``ofx_file`` or as the raw body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        upload = form.get(OFX_FORM_FIELD)
        if upload is None or isinstance(upload, str):
            raise missing_required_fields(OFX_FORM_FIELD)
        data = await upload.read()
    else:
        data = await request.body()
    if not data:
        raise missing_required_fields(OFX_FORM_FIELD)

    result = await run_in_threadpool(
        services.imports.import_ofx,
        session.info.user.id,
        organization.organization_id,
        account_id,
        data,
    )
    return success(result)


@router.get("/transactions")
def list_transactions(
    month: Optional[int] = None,
    year: Optional[int] = None,
    account_id: Optional[int] = None,
    category_id: Optional[int] = None,
    limit: Optional[int] = None,
    offset: int = 0,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    transactions = services.transactions.list_transactions(
        organization.organization_id,
        account_id=account_id,
        category_id=category_id,
        month=month,
        year=year,
        limit=limit,
        offset=offset,
    )
    return success(transactions)


@router.get("/transactions/uncategorized")
def list_uncategorized(
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    return success(services.transactions.list_uncategorized(organization.organization_id))


@router.get("/transactions/{transaction_id}")
def get_transaction(
    transaction_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    return success(services.transactions.get_transaction(organization.organization_id, transaction_id))


@router.patch("/transactions/{transaction_id}")
def update_transaction(
    transaction_id: int,
    req: TransactionUpdateRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    transaction = services.transactions.update_transaction(
        organization.organization_id, transaction_id, **req.model_dump(exclude_unset=True)
    )
    return success(transaction)


@router.delete("/transactions/{transaction_id}")
def delete_transaction(
    transaction_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    services.transactions.delete_transaction(organization.organization_id, transaction_id)
    return success(message="transaction deleted")


@router.get("/transactions/{transaction_id}/planned-entry")
def get_transaction_planned_entry(
    transaction_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    entry = services.planned_entries.get_planned_entry_for_transaction(
        organization.organization_id, transaction_id
    )
    return success(entry)
