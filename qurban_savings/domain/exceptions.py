"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    code = "domain_error"


class ValidationError(DomainException):
    """Input rejected; caller must correct it, never retried automatically"""

    code = "validation_error"


class InvalidInstallmentCount(ValidationError):
    """Installment count outside the allowed set"""

    code = "invalid_installment_count"


class InvalidScheduleDay(ValidationError):
    """Installment day outside the range allowed for the frequency"""

    code = "invalid_schedule_day"


class MissingReason(ValidationError):
    """Rejection attempted without a reason"""

    code = "missing_reason"


class SavingsNotActive(ValidationError):
    """Deposit submitted against a completed or cancelled savings account"""

    code = "savings_not_active"


class InvalidConfiguration(DomainException):
    """Package data is inconsistent (e.g. shared package without slots)"""

    code = "invalid_configuration"


class Forbidden(DomainException):
    """Actor lacks a role allowed to perform the operation"""

    code = "forbidden"


class NotFound(DomainException):
    """Unknown savings account or deposit id"""

    code = "not_found"


class AlreadyFinalized(DomainException):
    """Deposit already left the pending state, usually via another actor"""

    code = "already_finalized"

    def __init__(self, deposit_id, status: str):
        self.deposit_id = deposit_id
        self.status = status
        super().__init__(f"Deposit {deposit_id} is already {status}")


class CatalogAPIError(DomainException):
    """Package/settings lookup service returned an error or is unavailable"""

    code = "catalog_unavailable"
