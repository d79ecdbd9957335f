"""Staff verification of savings deposits: single verify, reject and bulk verify"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from qurban_savings.domain.exceptions import AlreadyFinalized, DomainException, Forbidden, MissingReason, NotFound
from qurban_savings.domain.models import VERIFIER_ROLES, Actor, SavingsStatus
from qurban_savings.infrastructure.database.models import DepositTransaction, SavingsAccount
from qurban_savings.infrastructure.database.repositories import DepositLedger
from qurban_savings.infrastructure.observability.logging import log_bulk_verification, log_transition
from qurban_savings.infrastructure.observability.metrics import bulk_batch_size_histogram, record_transition


@dataclass
class AccountSummary:
    """Balance view of a savings account right after a transition"""

    savings_id: uuid.UUID
    savings_number: str
    current_amount: int
    target_amount: int
    status: str

    @property
    def is_completed(self) -> bool:
        return self.status == SavingsStatus.COMPLETED.value

    @classmethod
    def from_savings(cls, savings: SavingsAccount) -> "AccountSummary":
        return cls(
            savings_id=savings.id,
            savings_number=savings.savings_number,
            current_amount=savings.current_amount,
            target_amount=savings.target_amount,
            status=savings.status,
        )


@dataclass
class VerificationResult:
    """Outcome for one deposit"""

    deposit_id: uuid.UUID | str
    ok: bool
    amount: Optional[int] = None
    account: Optional[AccountSummary] = None
    error: Optional[str] = None
    detail: Optional[str] = None


@dataclass
class BulkVerificationResult:
    items: List[VerificationResult] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for item in self.items if item.ok)

    @property
    def failure_count(self) -> int:
        return len(self.items) - self.success_count


class VerificationWorkflow:
    """
    Operation surface staff use to finalize deposits.

    Each deposit is its own unit of work: the ledger transition runs, then
    the session is committed, or rolled back on any failure. Bulk
    verification repeats that per id, so one failed deposit never undoes or
    blocks the others.
    """

    def __init__(
        self,
        db: Session,
        request_id: str = "unknown",
        clock: Callable[[], datetime] | None = None,
    ):
        self.db = db
        self.ledger = DepositLedger(db)
        self.request_id = request_id
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def _authorize(self, actor: Actor) -> None:
        if not actor.has_any_role(VERIFIER_ROLES):
            raise Forbidden(f"Actor {actor.id} may not verify or reject deposits")

    def verify_one(self, deposit_id: uuid.UUID, actor: Actor) -> VerificationResult:
        """
        Verify a pending deposit and credit its account.

        Raises:
            Forbidden: actor holds no verifier role
            AlreadyFinalized: another actor got there first; refresh and move on
            NotFound: unknown deposit
        """
        self._authorize(actor)

        try:
            savings = self.ledger.mark_verified(deposit_id, verified_by=actor.id, verified_at=self.clock())
            amount = self.ledger.get_deposit(deposit_id).amount
            account = AccountSummary.from_savings(savings)
            self.db.commit()
        except DomainException as e:
            self.db.rollback()
            record_transition(e.code if isinstance(e, (AlreadyFinalized, NotFound)) else "error")
            log_transition(self.request_id, str(deposit_id), actor.id, e.code, str(e))
            raise
        except SQLAlchemyError:
            self.db.rollback()
            record_transition("error")
            logging.exception(
                f"Database error verifying deposit {deposit_id}",
                extra={"request_id": self.request_id, "deposit_id": str(deposit_id)},
            )
            raise

        record_transition("verified", completed=account.is_completed)
        log_transition(self.request_id, str(deposit_id), actor.id, "verified")
        return VerificationResult(deposit_id=deposit_id, ok=True, amount=amount, account=account)

    def reject_one(self, deposit_id: uuid.UUID, actor: Actor, reason: str) -> DepositTransaction:
        """
        Reject a pending deposit with a mandatory reason.

        Raises:
            Forbidden: actor holds no verifier role
            MissingReason: reason empty or blank (checked before touching the ledger)
            AlreadyFinalized: deposit no longer pending
            NotFound: unknown deposit
        """
        self._authorize(actor)
        if not reason or not reason.strip():
            raise MissingReason(f"Rejecting deposit {deposit_id} requires a reason")

        try:
            deposit = self.ledger.mark_rejected(deposit_id, rejected_by=actor.id, reason=reason, rejected_at=self.clock())
            self.db.commit()
        except DomainException as e:
            self.db.rollback()
            record_transition(e.code if isinstance(e, (AlreadyFinalized, NotFound)) else "error")
            log_transition(self.request_id, str(deposit_id), actor.id, e.code, str(e))
            raise
        except SQLAlchemyError:
            self.db.rollback()
            record_transition("error")
            logging.exception(
                f"Database error rejecting deposit {deposit_id}",
                extra={"request_id": self.request_id, "deposit_id": str(deposit_id)},
            )
            raise

        record_transition("rejected")
        log_transition(self.request_id, str(deposit_id), actor.id, "rejected", deposit.rejection_reason)
        return deposit

    def verify_bulk(self, deposit_ids: Iterable[uuid.UUID | str], actor: Actor) -> BulkVerificationResult:
        """
        Verify each id independently, best effort.

        Every id gets its own result in input order; a conflict or error on
        one id is recorded and processing continues with the next.

        Raises:
            Forbidden: actor holds no verifier role; nothing is processed
        """
        self._authorize(actor)
        start_time = time.time()
        deposit_ids = list(deposit_ids)
        bulk_batch_size_histogram.observe(len(deposit_ids))

        result = BulkVerificationResult()
        for raw_id in deposit_ids:
            try:
                deposit_id = raw_id if isinstance(raw_id, uuid.UUID) else uuid.UUID(str(raw_id))
            except ValueError:
                result.items.append(
                    VerificationResult(deposit_id=raw_id, ok=False, error="invalid_id", detail=f"Invalid deposit id {raw_id!r}")
                )
                continue

            try:
                result.items.append(self.verify_one(deposit_id, actor))
            except DomainException as e:
                result.items.append(
                    VerificationResult(deposit_id=deposit_id, ok=False, error=e.code, detail=str(e))
                )
            except SQLAlchemyError:
                result.items.append(
                    VerificationResult(
                        deposit_id=deposit_id,
                        ok=False,
                        error="internal_error",
                        detail=f"Database error while verifying deposit {deposit_id}",
                    )
                )

        duration_ms = (time.time() - start_time) * 1000
        log_bulk_verification(self.request_id, actor.id, len(deposit_ids), result.success_count, duration_ms)
        return result
