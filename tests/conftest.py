"""Pytest fixtures for testing"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from datetime import date, datetime, timedelta, timezone
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from qurban_savings.api.main import create_app
from qurban_savings.api.dependencies import get_catalog_client, get_ledger_client
from qurban_savings.domain.models import (
    AnimalType,
    AvailablePeriod,
    FeeSettings,
    InstallmentFrequency,
    InstallmentPlan,
    PackagePeriod,
    PackageType,
)
from qurban_savings.infrastructure.database.models import Base
from qurban_savings.infrastructure.database.repositories import DepositLedger, SavingsRepository
from qurban_savings.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeCatalogClient:
    """In-memory stand-in for the catalog HTTP client"""

    def __init__(self, packages: dict[str, PackagePeriod], fees: FeeSettings):
        self.packages = packages
        self.fees = fees
        self.package_calls = 0

    async def get_package_period(self, package_period_id: str) -> PackagePeriod:
        from qurban_savings.domain.exceptions import NotFound

        self.package_calls += 1
        if package_period_id not in self.packages:
            raise NotFound(f"Package period {package_period_id} not found")
        return self.packages[package_period_id]

    async def get_fee_settings(self) -> FeeSettings:
        return self.fees


class FakeLedgerClient:
    """Collects verified-deposit events instead of posting them"""

    def __init__(self):
        self.events = []

    async def send_deposit_verified(self, payload: dict) -> None:
        self.events.append(payload)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def other_db(db: Session) -> Generator[Session, None, None]:
    """Second, independent session on the same database (another staff member)"""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fee_settings() -> FeeSettings:
    return FeeSettings(amil_qurban_sapi_fee=1_200_000, amil_qurban_perekor_fee=150_000)


@pytest.fixture
def packages() -> dict[str, PackagePeriod]:
    return {
        "pp_cow_shared": PackagePeriod(
            id="pp_cow_shared",
            package_id="pkg_cow_shared",
            name="Sapi Patungan 1/7",
            animal_type=AnimalType.COW,
            package_type=PackageType.SHARED,
            price=3_000_000,
            max_slots=7,
            available_periods=[
                AvailablePeriod(period_id="period_1447", period_name="Idul Adha 1447 H", price=3_000_000),
                AvailablePeriod(period_id="period_1448", period_name="Idul Adha 1448 H", price=3_300_000),
            ],
        ),
        "pp_goat": PackagePeriod(
            id="pp_goat",
            package_id="pkg_goat",
            name="Kambing",
            animal_type=AnimalType.GOAT,
            package_type=PackageType.INDIVIDUAL,
            price=2_350_000,
        ),
        "pp_shared_broken": PackagePeriod(
            id="pp_shared_broken",
            package_id="pkg_shared_broken",
            name="Patungan tanpa slot",
            animal_type=AnimalType.COW,
            package_type=PackageType.SHARED,
            price=3_000_000,
            max_slots=None,
        ),
    }


@pytest.fixture
def catalog(packages, fee_settings) -> FakeCatalogClient:
    return FakeCatalogClient(packages, fee_settings)


@pytest.fixture
def ledger() -> FakeLedgerClient:
    return FakeLedgerClient()


@pytest.fixture
def client(db: Session, catalog: FakeCatalogClient, ledger: FakeLedgerClient) -> TestClient:
    """Create FastAPI test client with test database and in-memory catalog"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_catalog_client] = lambda: catalog
    app.dependency_overrides[get_ledger_client] = lambda: ledger
    return TestClient(app)


@pytest.fixture
def make_savings(db: Session):
    """Factory persisting an active savings account with a given target"""
    counter = {"n": 0}

    def _make(target_amount: int = 1_000_000, installment_count: int = 3):
        counter["n"] += 1
        plan = InstallmentPlan(
            target_amount=target_amount,
            installment_amount=-(-target_amount // installment_count),
            installment_count=installment_count,
            frequency=InstallmentFrequency.MONTHLY,
        )
        savings = SavingsRepository(db).create_savings(
            savings_number=f"SAV-QBN-2026-TEST{counter['n']:05d}",
            donor_name=f"Donor {counter['n']}",
            donor_phone=f"08120000{counter['n']:04d}",
            target_period_id="period_1447",
            target_package_period_id="pp_cow_shared",
            period_name="Idul Adha 1447 H",
            plan=plan,
            installment_day=5,
            start_date=date(2026, 1, 1),
        )
        db.commit()
        return savings

    return _make


@pytest.fixture
def make_deposit(db: Session):
    """Factory recording a pending deposit; older `age_days` sort first in the queue"""
    counter = {"n": 0}

    def _make(savings, amount: int, age_days: int = 0, proof: str | None = "/uploads/proof.jpg"):
        counter["n"] += 1
        deposit = DepositLedger(db).record(
            savings_id=savings.id,
            amount=amount,
            proof_ref=proof,
            transaction_number=f"PAY-SAV-QBN-2026-{counter['n']:06d}",
            payment_channel="bca",
            transaction_date=datetime(2026, 3, 1, tzinfo=timezone.utc) - timedelta(days=age_days),
        )
        db.commit()
        return deposit

    return _make
