"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import List, Optional
from qurban_savings.domain.models import InstallmentFrequency


class InstallmentSchema(BaseModel):
    """Single installment in a savings schedule"""

    due_date: date
    amount: int


class QuoteRequest(BaseModel):
    """Request body for POST /v1/savings/quote"""

    target_period_id: str
    target_package_period_id: str = Field(..., min_length=1)
    installment_frequency: InstallmentFrequency
    installment_count: int
    installment_day: int
    start_date: Optional[date] = None


class QuoteResponse(BaseModel):
    """Response for POST /v1/savings/quote"""

    target_package_period_id: str
    target_period_id: str
    period_name: Optional[str] = None
    package_name: str
    package_price: int
    unit_fee: int
    target_amount: int
    installment_amount: int
    installment_count: int
    installment_frequency: InstallmentFrequency
    schedule: List[InstallmentSchema]


class CreateSavingsRequest(QuoteRequest):
    """Request body for POST /v1/savings"""

    donor_name: Optional[str] = Field(None, description="Donor name; required, blank is rejected")
    donor_phone: Optional[str] = Field(None, description="Donor phone; required, blank is rejected")


class SavingsResponse(BaseModel):
    """Savings account as returned by create/list"""

    id: str
    savings_number: str
    donor_name: str
    donor_phone: str
    target_period_id: str
    target_package_period_id: str
    period_name: Optional[str] = None
    target_amount: int
    current_amount: int
    installment_frequency: InstallmentFrequency
    installment_count: int
    installment_amount: int
    installment_day: int
    start_date: date
    status: str
    created_at: Optional[datetime] = None


class SavingsListResponse(BaseModel):
    data: List[SavingsResponse]


class DepositResponse(BaseModel):
    """Deposit transaction"""

    id: str
    savings_id: str
    transaction_number: str
    amount: int
    transaction_type: str
    transaction_date: datetime
    payment_method: Optional[str] = None
    payment_channel: Optional[str] = None
    payment_proof_url: Optional[str] = None
    status: str
    notes: Optional[str] = None
    verified_at: Optional[datetime] = None
    verified_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None


class SavingsDetailResponse(BaseModel):
    """Response for GET /v1/savings/{savings_id}"""

    savings: SavingsResponse
    transactions: List[DepositResponse]
    schedule: List[InstallmentSchema]
    installments_paid: int
    verified_total: int
    remaining_amount: int
    progress_pct: int


class RecordDepositRequest(BaseModel):
    """Request body for POST /v1/savings/{savings_id}/deposits"""

    amount: int = Field(..., description="Deposit amount in the smallest currency unit; must be positive")
    payment_proof: Optional[str] = Field(None, description="Opaque media reference or URL")
    payment_channel: Optional[str] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None


class PendingDepositSchema(BaseModel):
    """Pending deposit joined with its savings account summary"""

    id: str
    transaction_number: str
    amount: int
    transaction_type: str
    transaction_date: datetime
    payment_method: Optional[str] = None
    payment_channel: Optional[str] = None
    payment_proof_url: Optional[str] = None
    status: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    savings_id: str
    savings_number: str
    donor_name: str
    donor_phone: str
    current_amount: int
    target_amount: int
    period_name: str


class PendingDepositsResponse(BaseModel):
    """Response for GET /v1/deposits/pending"""

    data: List[PendingDepositSchema]
    refresh_interval_seconds: int


class PendingCountResponse(BaseModel):
    count: int


class AccountSummarySchema(BaseModel):
    savings_id: str
    savings_number: str
    current_amount: int
    target_amount: int
    status: str
    is_completed: bool


class VerifyResponse(BaseModel):
    """Response for POST /v1/deposits/{deposit_id}/verify"""

    deposit_id: str
    status: str = "verified"
    account: AccountSummarySchema


class RejectRequest(BaseModel):
    reason: Optional[str] = Field(None, description="Why the payment proof was refused; required")


class BulkVerifyRequest(BaseModel):
    deposit_ids: List[str] = Field(..., min_length=1)


class BulkItemSchema(BaseModel):
    deposit_id: str
    ok: bool
    account: Optional[AccountSummarySchema] = None
    error: Optional[str] = None
    detail: Optional[str] = None


class BulkVerifyResponse(BaseModel):
    """Response for POST /v1/deposits/verify-bulk"""

    items: List[BulkItemSchema]
    success_count: int
    failure_count: int
