"""/v1/deposits - pending deposit queue and staff verification"""

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from qurban_savings.api.dependencies import (
    get_ledger_client,
    get_request_id,
    require_role,
)
from qurban_savings.api.errors import to_http_exception
from qurban_savings.api.v1.savings import deposit_response, parse_uuid
from qurban_savings.api.v1.schemas import (
    AccountSummarySchema,
    BulkItemSchema,
    BulkVerifyRequest,
    BulkVerifyResponse,
    DepositResponse,
    PendingCountResponse,
    PendingDepositSchema,
    PendingDepositsResponse,
    RejectRequest,
    VerifyResponse,
)
from qurban_savings.config import settings
from qurban_savings.domain.exceptions import DomainException
from qurban_savings.domain.models import PENDING_VIEWER_ROLES, VERIFIER_ROLES, Actor
from qurban_savings.infrastructure.clients.ledger import LedgerClient
from qurban_savings.infrastructure.database.repositories import PendingDepositQueue
from qurban_savings.infrastructure.database.session import get_db
from qurban_savings.services.verification import AccountSummary, VerificationResult, VerificationWorkflow
from qurban_savings.utils.numbering import resolve_proof_url

router = APIRouter()


def account_schema(account: AccountSummary) -> AccountSummarySchema:
    return AccountSummarySchema(
        savings_id=str(account.savings_id),
        savings_number=account.savings_number,
        current_amount=account.current_amount,
        target_amount=account.target_amount,
        status=account.status,
        is_completed=account.is_completed,
    )


def schedule_ledger_event(
    background_tasks: BackgroundTasks,
    ledger_client: LedgerClient,
    result: VerificationResult,
    actor: Actor,
) -> None:
    """Report a committed verification to the accounting system"""
    background_tasks.add_task(
        ledger_client.send_deposit_verified,
        {
            "deposit_id": str(result.deposit_id),
            "savings_id": str(result.account.savings_id),
            "savings_number": result.account.savings_number,
            "amount": result.amount,
            "current_amount": result.account.current_amount,
            "is_completed": result.account.is_completed,
            "verified_by": actor.id,
        },
    )


@router.get("/deposits/pending", response_model=PendingDepositsResponse)
def list_pending_deposits(
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(PENDING_VIEWER_ROLES)),
):
    """
    Deposits waiting for verification, oldest first.

    Clients poll this every `refresh_interval_seconds`; a stale list is safe
    because every verify/reject re-checks the deposit status.
    """
    rows = PendingDepositQueue(db).list_pending()

    deposits = [
        PendingDepositSchema(
            id=str(deposit.id),
            transaction_number=deposit.transaction_number,
            amount=deposit.amount,
            transaction_type=deposit.transaction_type,
            transaction_date=deposit.transaction_date,
            payment_method=deposit.payment_method,
            payment_channel=deposit.payment_channel,
            payment_proof_url=resolve_proof_url(deposit.payment_proof, settings.media_base_url),
            status=deposit.status,
            notes=deposit.notes,
            created_at=deposit.created_at,
            savings_id=str(savings.id),
            savings_number=savings.savings_number,
            donor_name=savings.donor_name,
            donor_phone=savings.donor_phone,
            current_amount=savings.current_amount,
            target_amount=savings.target_amount,
            period_name=savings.period_name or "-",
        )
        for deposit, savings in rows
    ]

    return PendingDepositsResponse(data=deposits, refresh_interval_seconds=settings.pending_refresh_seconds)


@router.get("/deposits/pending/count", response_model=PendingCountResponse)
def count_pending_deposits(
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(PENDING_VIEWER_ROLES)),
):
    return PendingCountResponse(count=PendingDepositQueue(db).count_pending())


@router.post("/deposits/verify-bulk", response_model=BulkVerifyResponse)
def verify_deposits_bulk(
    request_body: BulkVerifyRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(VERIFIER_ROLES)),
    ledger_client: LedgerClient = Depends(get_ledger_client),
):
    """
    Verify many deposits, each independently.

    Always 200; inspect per-item `ok`/`error`. Deposits another actor
    already finalized come back as `already_finalized`.
    """
    workflow = VerificationWorkflow(db, request_id=get_request_id(request))
    try:
        result = workflow.verify_bulk(request_body.deposit_ids, actor)
    except DomainException as e:
        raise to_http_exception(e)

    items = []
    for item in result.items:
        if item.ok:
            schedule_ledger_event(background_tasks, ledger_client, item, actor)
        items.append(
            BulkItemSchema(
                deposit_id=str(item.deposit_id),
                ok=item.ok,
                account=account_schema(item.account) if item.account else None,
                error=item.error,
                detail=item.detail,
            )
        )

    return BulkVerifyResponse(
        items=items,
        success_count=result.success_count,
        failure_count=result.failure_count,
    )


@router.post("/deposits/{deposit_id}/verify", response_model=VerifyResponse)
def verify_deposit(
    deposit_id: str,
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(VERIFIER_ROLES)),
    ledger_client: LedgerClient = Depends(get_ledger_client),
):
    """
    Verify one deposit and credit its savings account.

    409 when the deposit was already verified or rejected.
    """
    deposit_uuid = parse_uuid(deposit_id, "deposit")
    workflow = VerificationWorkflow(db, request_id=get_request_id(request))

    try:
        result = workflow.verify_one(deposit_uuid, actor)
    except DomainException as e:
        raise to_http_exception(e)

    schedule_ledger_event(background_tasks, ledger_client, result, actor)
    return VerifyResponse(deposit_id=str(result.deposit_id), account=account_schema(result.account))


@router.post("/deposits/{deposit_id}/reject", response_model=DepositResponse)
def reject_deposit(
    deposit_id: str,
    request_body: RejectRequest,
    request: Request,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(VERIFIER_ROLES)),
):
    """Reject one deposit; the reason is mandatory and the balance is untouched"""
    deposit_uuid = parse_uuid(deposit_id, "deposit")
    workflow = VerificationWorkflow(db, request_id=get_request_id(request))

    try:
        deposit = workflow.reject_one(deposit_uuid, actor, request_body.reason)
    except DomainException as e:
        raise to_http_exception(e)

    return deposit_response(deposit)
