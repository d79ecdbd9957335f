"""/v1/savings - open qurban savings accounts and submit deposits"""

import logging
import uuid
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from qurban_savings.api.dependencies import get_catalog_client, get_request_id, require_role
from qurban_savings.api.errors import to_http_exception
from qurban_savings.api.v1.schemas import (
    CreateSavingsRequest,
    DepositResponse,
    InstallmentSchema,
    QuoteRequest,
    QuoteResponse,
    RecordDepositRequest,
    SavingsDetailResponse,
    SavingsListResponse,
    SavingsResponse,
)
from qurban_savings.config import settings
from qurban_savings.domain.exceptions import CatalogAPIError, DomainException
from qurban_savings.domain.models import SAVINGS_MANAGER_ROLES, Actor, SavingsStatus
from qurban_savings.infrastructure.clients.catalog import CatalogClient
from qurban_savings.infrastructure.database.models import DepositTransaction, SavingsAccount
from qurban_savings.infrastructure.database.session import get_db
from qurban_savings.infrastructure.observability.logging import log_deposit_recorded, log_savings_created
from qurban_savings.infrastructure.observability.metrics import catalog_fetch_failures_counter
from qurban_savings.services.savings import SavingsService, quote_savings_plan
from qurban_savings.utils.numbering import resolve_proof_url

router = APIRouter()


def parse_uuid(value: str, label: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {label} ID format")


def savings_response(savings: SavingsAccount) -> SavingsResponse:
    return SavingsResponse(
        id=str(savings.id),
        savings_number=savings.savings_number,
        donor_name=savings.donor_name,
        donor_phone=savings.donor_phone,
        target_period_id=savings.target_period_id,
        target_package_period_id=savings.target_package_period_id,
        period_name=savings.period_name,
        target_amount=savings.target_amount,
        current_amount=savings.current_amount,
        installment_frequency=savings.installment_frequency,
        installment_count=savings.installment_count,
        installment_amount=savings.installment_amount,
        installment_day=savings.installment_day,
        start_date=savings.start_date,
        status=savings.status,
        created_at=savings.created_at,
    )


def deposit_response(deposit: DepositTransaction) -> DepositResponse:
    return DepositResponse(
        id=str(deposit.id),
        savings_id=str(deposit.savings_id),
        transaction_number=deposit.transaction_number,
        amount=deposit.amount,
        transaction_type=deposit.transaction_type,
        transaction_date=deposit.transaction_date,
        payment_method=deposit.payment_method,
        payment_channel=deposit.payment_channel,
        payment_proof_url=resolve_proof_url(deposit.payment_proof, settings.media_base_url),
        status=deposit.status,
        notes=deposit.notes,
        verified_at=deposit.verified_at,
        verified_by=deposit.verified_by,
        rejected_at=deposit.rejected_at,
        rejected_by=deposit.rejected_by,
        rejection_reason=deposit.rejection_reason,
        created_at=deposit.created_at,
    )


@router.post("/savings/quote", response_model=QuoteResponse)
async def quote_savings(
    request_body: QuoteRequest,
    actor: Actor = Depends(require_role(SAVINGS_MANAGER_ROLES)),
    catalog: CatalogClient = Depends(get_catalog_client),
):
    """
    Preview target, installment amount and schedule for a package and period.

    Selecting a different period is another call; nothing is stored.
    """
    try:
        quote = await quote_savings_plan(
            catalog,
            request_body.target_package_period_id,
            request_body.target_period_id,
            request_body.installment_frequency,
            request_body.installment_count,
            request_body.installment_day,
            request_body.start_date,
        )
    except DomainException as e:
        if isinstance(e, CatalogAPIError):
            catalog_fetch_failures_counter.inc()
        raise to_http_exception(e)

    return QuoteResponse(
        target_package_period_id=request_body.target_package_period_id,
        target_period_id=request_body.target_period_id,
        period_name=quote.period_name,
        package_name=quote.package.name,
        package_price=quote.package_price,
        unit_fee=quote.unit_fee,
        target_amount=quote.plan.target_amount,
        installment_amount=quote.plan.installment_amount,
        installment_count=quote.plan.installment_count,
        installment_frequency=quote.plan.frequency,
        schedule=[InstallmentSchema(due_date=i.due_date, amount=i.amount) for i in quote.schedule],
    )


@router.post("/savings", response_model=SavingsResponse, status_code=201)
async def create_savings(
    request_body: CreateSavingsRequest,
    request: Request,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(SAVINGS_MANAGER_ROLES)),
    catalog: CatalogClient = Depends(get_catalog_client),
):
    """
    Open a savings account.

    Flow:
    1. Validate donor data, installment count and day
    2. Look up package price/type and base fees from the catalog
    3. Compute fee, target and installment amount
    4. Persist the account in active state with the target frozen
    """
    request_id = get_request_id(request)

    try:
        savings = await SavingsService(db).create_savings_account(
            catalog,
            donor_name=request_body.donor_name,
            donor_phone=request_body.donor_phone,
            target_period_id=request_body.target_period_id,
            target_package_period_id=request_body.target_package_period_id,
            installment_frequency=request_body.installment_frequency,
            installment_count=request_body.installment_count,
            installment_day=request_body.installment_day,
            start_date=request_body.start_date,
        )
    except DomainException as e:
        if isinstance(e, CatalogAPIError):
            catalog_fetch_failures_counter.inc()
            logging.error(f"Catalog API error: {e}", extra={"request_id": request_id})
        else:
            logging.warning(f"Savings creation refused: {e}", extra={"request_id": request_id})
        raise to_http_exception(e)

    log_savings_created(request_id, str(savings.id), savings.savings_number, savings.target_amount, actor.id)
    return savings_response(savings)


@router.get("/savings", response_model=SavingsListResponse)
def list_savings(
    status: Optional[SavingsStatus] = Query(None, description="Filter by account status"),
    period_id: Optional[str] = Query(None, description="Filter by target period"),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(SAVINGS_MANAGER_ROLES)),
):
    """List savings accounts, newest first"""
    accounts = SavingsService(db).list_savings(status=status, period_id=period_id)
    return SavingsListResponse(data=[savings_response(s) for s in accounts])


@router.get("/savings/{savings_id}", response_model=SavingsDetailResponse)
def get_savings(
    savings_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(SAVINGS_MANAGER_ROLES)),
):
    """
    Savings account with its schedule and every deposit.

    Returns:
        Account, installment schedule, deposits newest first and progress
    """
    savings_uuid = parse_uuid(savings_id, "savings")

    try:
        detail = SavingsService(db).get_savings_detail(savings_uuid)
    except DomainException as e:
        raise to_http_exception(e)

    return SavingsDetailResponse(
        savings=savings_response(detail.savings),
        transactions=[deposit_response(d) for d in detail.deposits],
        schedule=[InstallmentSchema(due_date=i.due_date, amount=i.amount) for i in detail.schedule],
        installments_paid=detail.installments_paid,
        verified_total=detail.verified_total,
        remaining_amount=detail.remaining_amount,
        progress_pct=detail.progress_pct,
    )


@router.post("/savings/{savings_id}/deposits", response_model=DepositResponse, status_code=201)
def record_deposit(
    savings_id: str,
    request_body: RecordDepositRequest,
    request: Request,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(SAVINGS_MANAGER_ROLES)),
):
    """Record a deposit with its payment proof; it stays pending until verified"""
    savings_uuid = parse_uuid(savings_id, "savings")
    request_id = get_request_id(request)

    try:
        deposit = SavingsService(db).record_deposit(
            savings_uuid,
            amount=request_body.amount,
            proof_ref=request_body.payment_proof,
            payment_channel=request_body.payment_channel,
            payment_method=request_body.payment_method,
            notes=request_body.notes,
        )
    except DomainException as e:
        logging.warning(f"Deposit refused: {e}", extra={"request_id": request_id})
        raise to_http_exception(e)

    log_deposit_recorded(request_id, str(deposit.id), str(deposit.savings_id), deposit.amount)
    return deposit_response(deposit)
