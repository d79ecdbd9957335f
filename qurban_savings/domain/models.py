"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional


class AnimalType(str, Enum):
    COW = "cow"
    GOAT = "goat"


class PackageType(str, Enum):
    INDIVIDUAL = "individual"
    SHARED = "shared"


class InstallmentFrequency(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class SavingsStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class DepositStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


@dataclass
class AvailablePeriod:
    """A period in which a package is offered, with its price"""

    period_id: str
    period_name: str
    price: int


@dataclass
class PackagePeriod:
    """Package/period lookup result from the catalog service (read-only)"""

    id: str
    package_id: str
    name: str
    animal_type: AnimalType
    package_type: PackageType
    price: int
    max_slots: Optional[int] = None
    available_periods: List[AvailablePeriod] = field(default_factory=list)


@dataclass
class FeeSettings:
    """Base amil fees from the settings service"""

    amil_qurban_sapi_fee: int
    amil_qurban_perekor_fee: int


@dataclass
class Installment:
    """Single payment in a savings schedule"""

    due_date: date
    amount: int


@dataclass
class InstallmentPlan:
    """Target and per-installment amount derived from a package price"""

    target_amount: int
    installment_amount: int
    installment_count: int
    frequency: InstallmentFrequency


@dataclass
class Actor:
    """Staff member invoking an operation, as forwarded by the gateway"""

    id: str
    roles: List[str] = field(default_factory=list)

    def has_any_role(self, allowed: List[str]) -> bool:
        return any(role in allowed for role in self.roles)


# Role sets per operation
SAVINGS_MANAGER_ROLES = ["super_admin", "admin_campaign"]
VERIFIER_ROLES = ["super_admin", "admin_campaign"]
PENDING_VIEWER_ROLES = ["super_admin", "admin_finance", "admin_campaign", "program_coordinator", "employee"]
