"""Data access layer for qurban savings entities"""

import uuid
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session
from qurban_savings.infrastructure.database.models import SavingsAccount, DepositTransaction
from qurban_savings.domain.models import DepositStatus, InstallmentPlan, SavingsStatus
from qurban_savings.domain.exceptions import (
    AlreadyFinalized,
    MissingReason,
    NotFound,
    SavingsNotActive,
    ValidationError,
)


class SavingsRepository:
    """Repository for savings accounts"""

    def __init__(self, db: Session):
        self.db = db

    def create_savings(
        self,
        savings_number: str,
        donor_name: str,
        donor_phone: str,
        target_period_id: str,
        target_package_period_id: str,
        period_name: Optional[str],
        plan: InstallmentPlan,
        installment_day: int,
        start_date: date,
    ) -> SavingsAccount:
        """Persist a new active account; target and installment amounts are frozen here"""
        db_savings = SavingsAccount(
            savings_number=savings_number,
            donor_name=donor_name,
            donor_phone=donor_phone,
            target_period_id=target_period_id,
            target_package_period_id=target_package_period_id,
            period_name=period_name,
            target_amount=plan.target_amount,
            current_amount=0,
            installment_frequency=plan.frequency.value,
            installment_count=plan.installment_count,
            installment_amount=plan.installment_amount,
            installment_day=installment_day,
            start_date=start_date,
            status=SavingsStatus.ACTIVE.value,
        )
        self.db.add(db_savings)
        self.db.flush()
        return db_savings

    def get_savings(self, savings_id: uuid.UUID) -> SavingsAccount:
        savings = self.db.get(SavingsAccount, savings_id)
        if savings is None:
            raise NotFound(f"Savings {savings_id} not found")
        return savings

    def list_savings(
        self,
        status: Optional[str] = None,
        period_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[SavingsAccount]:
        """Newest accounts first, optionally filtered by status and target period"""
        query = self.db.query(SavingsAccount)
        if status:
            query = query.filter(SavingsAccount.status == status)
        if period_id:
            query = query.filter(SavingsAccount.target_period_id == period_id)
        return query.order_by(SavingsAccount.created_at.desc(), SavingsAccount.id).limit(limit).all()

    def verified_summary(self, savings_id: uuid.UUID) -> Tuple[int, int]:
        """(count, total amount) of verified deposits on an account"""
        count, total = (
            self.db.query(func.count(DepositTransaction.id), func.coalesce(func.sum(DepositTransaction.amount), 0))
            .filter(
                DepositTransaction.savings_id == savings_id,
                DepositTransaction.status == DepositStatus.VERIFIED.value,
            )
            .one()
        )
        return int(count), int(total)


class DepositLedger:
    """
    Deposit records and their pending -> verified/rejected transitions.

    Transitions are conditional UPDATEs on (id, status='pending'), so two
    actors racing on the same deposit cannot both succeed. Nothing here
    commits; the caller commits or rolls back the unit per deposit.
    """

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        savings_id: uuid.UUID,
        amount: int,
        proof_ref: Optional[str],
        transaction_number: str,
        payment_method: Optional[str] = None,
        payment_channel: Optional[str] = None,
        notes: Optional[str] = None,
        transaction_date: Optional[datetime] = None,
    ) -> DepositTransaction:
        """Create a deposit in pending state against an active account"""
        if amount is None or amount <= 0:
            raise ValidationError(f"Deposit amount must be positive, got {amount}")

        savings = self.db.get(SavingsAccount, savings_id)
        if savings is None:
            raise NotFound(f"Savings {savings_id} not found")
        if savings.status != SavingsStatus.ACTIVE.value:
            raise SavingsNotActive(f"Savings {savings.savings_number} is {savings.status}, deposits are closed")

        deposit = DepositTransaction(
            savings_id=savings.id,
            transaction_number=transaction_number,
            amount=amount,
            transaction_type="deposit",
            transaction_date=transaction_date or datetime.now(timezone.utc),
            payment_method=payment_method or "bank_transfer",
            payment_channel=payment_channel,
            payment_proof=proof_ref,
            status=DepositStatus.PENDING.value,
            notes=notes,
        )
        self.db.add(deposit)
        self.db.flush()
        return deposit

    def get_deposit(self, deposit_id: uuid.UUID) -> DepositTransaction:
        deposit = self.db.get(DepositTransaction, deposit_id)
        if deposit is None:
            raise NotFound(f"Deposit {deposit_id} not found")
        return deposit

    def list_for_savings(self, savings_id: uuid.UUID) -> List[DepositTransaction]:
        """All deposits of an account, newest first"""
        return (
            self.db.query(DepositTransaction)
            .filter(DepositTransaction.savings_id == savings_id)
            .order_by(DepositTransaction.created_at.desc(), DepositTransaction.transaction_date.desc())
            .all()
        )

    def mark_verified(
        self,
        deposit_id: uuid.UUID,
        verified_by: str,
        verified_at: Optional[datetime] = None,
    ) -> SavingsAccount:
        """
        Flip a pending deposit to verified and credit its account.

        The status flip, the balance increment and the completion flip run in
        the caller's transaction; the increment is evaluated in the database
        so a stale in-memory balance is never written back.

        Raises:
            NotFound: unknown deposit
            AlreadyFinalized: deposit is no longer pending
        """
        deposit = self.get_deposit(deposit_id)
        verified_at = verified_at or datetime.now(timezone.utc)

        updated = (
            self.db.query(DepositTransaction)
            .filter(
                DepositTransaction.id == deposit_id,
                DepositTransaction.status == DepositStatus.PENDING.value,
            )
            .update(
                {
                    DepositTransaction.status: DepositStatus.VERIFIED.value,
                    DepositTransaction.verified_at: verified_at,
                    DepositTransaction.verified_by: verified_by,
                },
                synchronize_session=False,
            )
        )
        if updated == 0:
            raise AlreadyFinalized(deposit_id, self._current_status(deposit_id))

        self.db.query(SavingsAccount).filter(SavingsAccount.id == deposit.savings_id).update(
            {SavingsAccount.current_amount: SavingsAccount.current_amount + deposit.amount},
            synchronize_session=False,
        )

        # Only active accounts complete; a cancelled account keeps its status
        self.db.query(SavingsAccount).filter(
            SavingsAccount.id == deposit.savings_id,
            SavingsAccount.status == SavingsStatus.ACTIVE.value,
            SavingsAccount.current_amount >= SavingsAccount.target_amount,
        ).update({SavingsAccount.status: SavingsStatus.COMPLETED.value}, synchronize_session=False)

        self.db.refresh(deposit)
        return self.db.get(SavingsAccount, deposit.savings_id, populate_existing=True)

    def mark_rejected(
        self,
        deposit_id: uuid.UUID,
        rejected_by: str,
        reason: str,
        rejected_at: Optional[datetime] = None,
    ) -> DepositTransaction:
        """
        Flip a pending deposit to rejected; the account balance is untouched.

        Raises:
            MissingReason: empty reason
            NotFound: unknown deposit
            AlreadyFinalized: deposit is no longer pending
        """
        if not reason or not reason.strip():
            raise MissingReason(f"Rejecting deposit {deposit_id} requires a reason")

        deposit = self.get_deposit(deposit_id)
        rejected_at = rejected_at or datetime.now(timezone.utc)
        reason = reason.strip()

        updated = (
            self.db.query(DepositTransaction)
            .filter(
                DepositTransaction.id == deposit_id,
                DepositTransaction.status == DepositStatus.PENDING.value,
            )
            .update(
                {
                    DepositTransaction.status: DepositStatus.REJECTED.value,
                    DepositTransaction.rejected_at: rejected_at,
                    DepositTransaction.rejected_by: rejected_by,
                    DepositTransaction.rejection_reason: reason,
                    DepositTransaction.notes: reason,
                },
                synchronize_session=False,
            )
        )
        if updated == 0:
            raise AlreadyFinalized(deposit_id, self._current_status(deposit_id))

        self.db.refresh(deposit)
        return deposit

    def _current_status(self, deposit_id: uuid.UUID) -> str:
        status = (
            self.db.query(DepositTransaction.status)
            .filter(DepositTransaction.id == deposit_id)
            .scalar()
        )
        return status or "missing"


class PendingDepositQueue:
    """Read model of deposits waiting for verification across all accounts"""

    def __init__(self, db: Session):
        self.db = db

    def list_pending(self) -> List[Tuple[DepositTransaction, SavingsAccount]]:
        """Pending deposits with their account, oldest transaction first"""
        return (
            self.db.query(DepositTransaction, SavingsAccount)
            .join(SavingsAccount, DepositTransaction.savings_id == SavingsAccount.id)
            .filter(DepositTransaction.status == DepositStatus.PENDING.value)
            .order_by(
                DepositTransaction.transaction_date.asc(),
                DepositTransaction.created_at.asc(),
                DepositTransaction.id.asc(),
            )
            .all()
        )

    def count_pending(self) -> int:
        return (
            self.db.query(func.count(DepositTransaction.id))
            .filter(DepositTransaction.status == DepositStatus.PENDING.value)
            .scalar()
        )
