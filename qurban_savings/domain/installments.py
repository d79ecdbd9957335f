"""Installment planning for qurban savings"""

from datetime import date, timedelta
from typing import Iterable, List
from qurban_savings.domain.models import (
    Installment,
    InstallmentFrequency,
    InstallmentPlan,
    PackagePeriod,
)
from qurban_savings.domain.exceptions import (
    InvalidInstallmentCount,
    InvalidScheduleDay,
    ValidationError,
)
from qurban_savings.domain.fees import ceil_div
from qurban_savings.utils.date_utils import add_months, next_month_day, next_weekday

DEFAULT_INSTALLMENT_COUNTS = (3, 6, 12, 24)

# Inclusive bounds for installment_day per frequency. Monthly stops at 28 so
# every month of the year has the day.
SCHEDULE_DAY_BOUNDS = {
    InstallmentFrequency.WEEKLY: (1, 7),
    InstallmentFrequency.MONTHLY: (1, 28),
}


def validate_installment_count(count: int, allowed: Iterable[int] = DEFAULT_INSTALLMENT_COUNTS) -> None:
    allowed = tuple(allowed)
    if count not in allowed:
        raise InvalidInstallmentCount(
            f"Installment count {count} not allowed; choose one of {', '.join(str(c) for c in allowed)}"
        )


def validate_schedule_day(frequency: InstallmentFrequency, installment_day: int) -> None:
    low, high = SCHEDULE_DAY_BOUNDS[InstallmentFrequency(frequency)]
    if not low <= installment_day <= high:
        raise InvalidScheduleDay(
            f"Installment day {installment_day} out of range {low}-{high} for {InstallmentFrequency(frequency).value} savings"
        )


def plan_installments(
    package_price: int,
    unit_fee: int,
    frequency: InstallmentFrequency,
    count: int,
    allowed_counts: Iterable[int] = DEFAULT_INSTALLMENT_COUNTS,
) -> InstallmentPlan:
    """
    Derive the savings target and the per-installment amount.

    target = price + fee, installment = ceil(target / count). Paying every
    installment at the full rounded amount may overshoot the target by
    at most count-1; that overshoot is accepted.

    Example:
        target 2,500,000 over 6 -> 416,667 per installment (6x = 2,500,002)

    Raises:
        InvalidInstallmentCount: count outside allowed_counts, or so large for the target
            that the last installment would be empty
    """
    validate_installment_count(count, allowed_counts)
    if package_price < 0 or unit_fee < 0:
        raise ValidationError("Package price and fee must not be negative")

    target_amount = package_price + unit_fee
    installment_amount = ceil_div(target_amount, count)
    # Every scheduled installment must carry a positive amount
    if installment_amount * (count - 1) >= target_amount:
        raise InvalidInstallmentCount(
            f"Target {target_amount} is too small to spread over {count} installments"
        )

    return InstallmentPlan(
        target_amount=target_amount,
        installment_amount=installment_amount,
        installment_count=count,
        frequency=InstallmentFrequency(frequency),
    )


def generate_installment_schedule(
    plan: InstallmentPlan,
    installment_day: int,
    start_date: date | None = None,
) -> List[Installment]:
    """
    Dated due list for a plan.

    - Weekly: installment_day is the ISO weekday (1=Monday), 7 days apart
    - Monthly: installment_day is the day of month, one month apart
    - First due date is the first matching date on or after start_date
    - Last installment is trimmed so the schedule sums exactly to the target

    Example:
        target 1,000,000 over 3 -> [333,334, 333,334, 333,332]
    """
    validate_schedule_day(plan.frequency, installment_day)

    if start_date is None:
        start_date = date.today()

    if plan.frequency == InstallmentFrequency.WEEKLY:
        first_due = next_weekday(start_date, installment_day)
    else:
        first_due = next_month_day(start_date, installment_day)

    installments = []
    remaining = plan.target_amount
    for i in range(plan.installment_count):
        if plan.frequency == InstallmentFrequency.WEEKLY:
            due_date = first_due + timedelta(weeks=i)
        else:
            due_date = add_months(first_due, i, installment_day)

        amount = min(plan.installment_amount, remaining)
        remaining -= amount

        installments.append(Installment(due_date=due_date, amount=amount))

    return installments


def resolve_period_price(package: PackagePeriod, target_period_id: str) -> int:
    """
    Price of the package for the selected period.

    Falls back to the package-period price when the package does not list
    its periods.

    Raises:
        ValidationError: period not offered by this package
    """
    if not package.available_periods:
        return package.price

    for period in package.available_periods:
        if period.period_id == target_period_id:
            return period.price

    raise ValidationError(f"Period {target_period_id} is not available for package {package.id}")


def resolve_period_name(package: PackagePeriod, target_period_id: str) -> str | None:
    for period in package.available_periods:
        if period.period_id == target_period_id:
            return period.period_name
    return None
