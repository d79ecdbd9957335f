"""Savings account opening and deposit submission"""

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from qurban_savings.config import settings
from qurban_savings.domain.exceptions import ValidationError
from qurban_savings.domain.fees import unit_fee_for_package
from qurban_savings.domain.installments import (
    generate_installment_schedule,
    plan_installments,
    resolve_period_name,
    resolve_period_price,
    validate_installment_count,
    validate_schedule_day,
)
from qurban_savings.domain.models import (
    Installment,
    InstallmentFrequency,
    InstallmentPlan,
    PackagePeriod,
    SavingsStatus,
)
from qurban_savings.infrastructure.clients.catalog import CatalogClient
from qurban_savings.infrastructure.database.models import DepositTransaction, SavingsAccount
from qurban_savings.infrastructure.database.repositories import DepositLedger, SavingsRepository
from qurban_savings.infrastructure.observability.metrics import deposit_recorded_counter, savings_created_counter
from qurban_savings.utils.date_utils import current_year
from qurban_savings.utils.numbering import generate_deposit_number, generate_savings_number


@dataclass
class SavingsQuote:
    """What the creation form shows before the account exists"""

    package: PackagePeriod
    period_name: Optional[str]
    package_price: int
    unit_fee: int
    plan: InstallmentPlan
    schedule: List[Installment]


@dataclass
class SavingsDetail:
    savings: SavingsAccount
    deposits: List[DepositTransaction]
    schedule: List[Installment]
    installments_paid: int
    verified_total: int

    @property
    def remaining_amount(self) -> int:
        return max(0, self.savings.target_amount - self.savings.current_amount)

    @property
    def progress_pct(self) -> int:
        if self.savings.target_amount <= 0:
            return 0
        # Half up, matching the percentage shown to donors
        return int(self.savings.current_amount * 100 / self.savings.target_amount + 0.5)


async def quote_savings_plan(
    catalog: CatalogClient,
    target_package_period_id: str,
    target_period_id: str,
    frequency: InstallmentFrequency,
    installment_count: int,
    installment_day: int,
    start_date: date | None = None,
) -> SavingsQuote:
    """
    Price a savings plan for a package and period.

    Cheap input checks run before the catalog is called. Choosing another
    period is simply another quote; nothing is persisted.
    """
    frequency = InstallmentFrequency(frequency)
    validate_installment_count(installment_count, settings.allowed_installment_counts)
    validate_schedule_day(frequency, installment_day)

    package = await catalog.get_package_period(target_package_period_id)
    fees = await catalog.get_fee_settings()

    package_price = resolve_period_price(package, target_period_id)
    unit_fee = unit_fee_for_package(package, fees)
    plan = plan_installments(
        package_price,
        unit_fee,
        frequency,
        installment_count,
        allowed_counts=settings.allowed_installment_counts,
    )

    return SavingsQuote(
        package=package,
        period_name=resolve_period_name(package, target_period_id),
        package_price=package_price,
        unit_fee=unit_fee,
        plan=plan,
        schedule=generate_installment_schedule(plan, installment_day, start_date),
    )


class SavingsService:
    """Opens savings accounts and records deposits; commits its own unit of work"""

    def __init__(self, db: Session):
        self.db = db
        self.savings_repo = SavingsRepository(db)
        self.ledger = DepositLedger(db)

    async def create_savings_account(
        self,
        catalog: CatalogClient,
        donor_name: Optional[str],
        donor_phone: Optional[str],
        target_period_id: str,
        target_package_period_id: str,
        installment_frequency: InstallmentFrequency,
        installment_count: int,
        installment_day: int,
        start_date: date | None = None,
    ) -> SavingsAccount:
        """
        Open an active account with a frozen target.

        Raises:
            ValidationError: missing donor data, bad count/day or unknown period
            InvalidConfiguration: shared package without slots
            NotFound / CatalogAPIError: package lookup failed
        """
        if not donor_name or not donor_name.strip():
            raise ValidationError("Donor name is required")
        if not donor_phone or not donor_phone.strip():
            raise ValidationError("Donor phone is required")
        if not target_period_id:
            raise ValidationError("Target period is required")

        start_date = start_date or date.today()
        quote = await quote_savings_plan(
            catalog,
            target_package_period_id,
            target_period_id,
            installment_frequency,
            installment_count,
            installment_day,
            start_date,
        )

        try:
            savings = self.savings_repo.create_savings(
                savings_number=generate_savings_number(current_year(settings.timezone)),
                donor_name=donor_name.strip(),
                donor_phone=donor_phone.strip(),
                target_period_id=target_period_id,
                target_package_period_id=target_package_period_id,
                period_name=quote.period_name,
                plan=quote.plan,
                installment_day=installment_day,
                start_date=start_date,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        savings_created_counter.labels(frequency=quote.plan.frequency.value).inc()
        return savings

    def record_deposit(
        self,
        savings_id: uuid.UUID,
        amount: int,
        proof_ref: Optional[str],
        payment_channel: Optional[str] = None,
        payment_method: Optional[str] = None,
        notes: Optional[str] = None,
        transaction_date: Optional[datetime] = None,
    ) -> DepositTransaction:
        """Record a deposit awaiting verification"""
        try:
            deposit = self.ledger.record(
                savings_id=savings_id,
                amount=amount,
                proof_ref=proof_ref,
                transaction_number=generate_deposit_number(current_year(settings.timezone)),
                payment_method=payment_method,
                payment_channel=payment_channel,
                notes=notes,
                transaction_date=transaction_date,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        deposit_recorded_counter.inc()
        return deposit

    def list_savings(self, status: Optional[SavingsStatus] = None, period_id: Optional[str] = None) -> List[SavingsAccount]:
        return self.savings_repo.list_savings(
            status=SavingsStatus(status).value if status else None,
            period_id=period_id,
        )

    def get_savings_detail(self, savings_id: uuid.UUID) -> SavingsDetail:
        savings = self.savings_repo.get_savings(savings_id)
        installments_paid, verified_total = self.savings_repo.verified_summary(savings_id)
        plan = InstallmentPlan(
            target_amount=savings.target_amount,
            installment_amount=savings.installment_amount,
            installment_count=savings.installment_count,
            frequency=InstallmentFrequency(savings.installment_frequency),
        )
        return SavingsDetail(
            savings=savings,
            deposits=self.ledger.list_for_savings(savings_id),
            schedule=generate_installment_schedule(plan, savings.installment_day, savings.start_date),
            installments_paid=installments_paid,
            verified_total=verified_total,
        )
