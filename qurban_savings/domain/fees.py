"""Amil (administrative) fee per qurban unit"""

from typing import Optional
from qurban_savings.domain.models import AnimalType, PackageType, FeeSettings, PackagePeriod
from qurban_savings.domain.exceptions import InvalidConfiguration


def ceil_div(numerator: int, denominator: int) -> int:
    """Integer ceiling division without going through floats"""
    return -(-numerator // denominator)


def compute_unit_fee(
    animal_type: AnimalType,
    package_type: PackageType,
    max_slots: Optional[int],
    base_fee_cow: int,
    base_fee_other: int,
) -> int:
    """
    Fee owed by one buyer of a package.

    Cows use the sapi fee, every other animal the per-head fee. Shared
    (patungan) packages split the fee across slots, rounding up so the
    slots together never collect less than the full fee.

    Example:
        fee 1,200,000 shared by 7 slots -> 171,429 per slot

    Raises:
        InvalidConfiguration: shared package with missing or non-positive max_slots
    """
    base_fee = base_fee_cow if AnimalType(animal_type) == AnimalType.COW else base_fee_other

    if PackageType(package_type) == PackageType.INDIVIDUAL:
        return base_fee

    if max_slots is None or max_slots <= 0:
        raise InvalidConfiguration(
            f"Shared package requires a positive max_slots, got {max_slots!r}"
        )

    return ceil_div(base_fee, max_slots)


def unit_fee_for_package(package: PackagePeriod, fees: FeeSettings) -> int:
    """Fee for a catalog package using the configured base fees"""
    return compute_unit_fee(
        package.animal_type,
        package.package_type,
        package.max_slots,
        base_fee_cow=fees.amil_qurban_sapi_fee,
        base_fee_other=fees.amil_qurban_perekor_fee,
    )
