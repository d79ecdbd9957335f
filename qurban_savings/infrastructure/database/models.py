"""SQLAlchemy ORM models for qurban savings accounts and their deposits"""

import uuid
from sqlalchemy import Column, BigInteger, Date, DateTime, ForeignKey, Integer, Text, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class SavingsAccount(Base):
    """Qurban savings (tabungan) toward a package target"""

    __tablename__ = "qurban_savings"
    __table_args__ = (
        CheckConstraint("current_amount >= 0", name="ck_qurban_savings_current_amount"),
        CheckConstraint("installment_count > 0", name="ck_qurban_savings_installment_count"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    savings_number = Column(Text, nullable=False, unique=True)
    donor_name = Column(Text, nullable=False)
    donor_phone = Column(Text, nullable=False)
    target_period_id = Column(Text, nullable=False, index=True)
    target_package_period_id = Column(Text, nullable=False)
    period_name = Column(Text, nullable=True)
    target_amount = Column(BigInteger, nullable=False)
    current_amount = Column(BigInteger, nullable=False, default=0)
    installment_frequency = Column(Text, nullable=False)
    installment_count = Column(Integer, nullable=False)
    installment_amount = Column(BigInteger, nullable=False)
    installment_day = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=False)
    status = Column(Text, nullable=False, default="active", index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    deposits = relationship(
        "DepositTransaction",
        back_populates="savings",
        cascade="all, delete-orphan",
    )


class DepositTransaction(Base):
    """Installment deposit awaiting or past staff verification"""

    __tablename__ = "qurban_savings_deposit"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_qurban_savings_deposit_amount"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    savings_id = Column(UUID(as_uuid=True), ForeignKey("qurban_savings.id", ondelete="CASCADE"), nullable=False, index=True)
    transaction_number = Column(Text, nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)
    transaction_type = Column(Text, nullable=False, default="deposit")
    transaction_date = Column(DateTime(timezone=True), nullable=False)
    payment_method = Column(Text, nullable=True)
    payment_channel = Column(Text, nullable=True)
    payment_proof = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="pending", index=True)
    notes = Column(Text, nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    verified_by = Column(Text, nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    rejected_by = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    savings = relationship("SavingsAccount", back_populates="deposits")
