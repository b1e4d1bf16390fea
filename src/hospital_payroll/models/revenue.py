"""Revenue-sharing models: stakeholders, share templates, invoice lines and shares."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from hospital_payroll.models.base import Base, TimestampMixin


class Stakeholder(Base, TimestampMixin):
    """Party entitled to a portion of service revenue."""

    __tablename__ = "stakeholder"

    stakeholder_id: Mapped[str] = mapped_column(String, primary_key=True)
    code: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[str] = mapped_column(String, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class ShareTemplate(Base, TimestampMixin):
    """Per-service split rule for one stakeholder."""

    __tablename__ = "share_template"

    template_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    service_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    # Not a foreign key: templates may outlive their stakeholder and are then skipped
    stakeholder_id: Mapped[str] = mapped_column(String, nullable=False)
    share_type: Mapped[str] = mapped_column(String, nullable=False)
    share_value: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint(
            "share_type IN ('PERCENTAGE', 'FIXED_AMOUNT')",
            name="share_template_type_check",
        ),
        CheckConstraint("share_value >= 0", name="share_template_value_nonneg"),
    )


class InvoiceLine(Base, TimestampMixin):
    """Billed service on a patient invoice."""

    __tablename__ = "invoice_line"

    invoice_line_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    invoice_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    service_id: Mapped[str] = mapped_column(String, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    line_total: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="invoice_line_quantity_positive"),
        CheckConstraint("line_total >= 0", name="invoice_line_total_nonneg"),
    )


class InvoiceShare(Base, TimestampMixin):
    """Stakeholder portion of an invoice line. Only payment columns change after insert."""

    __tablename__ = "invoice_share"

    share_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    invoice_id: Mapped[UUID] = mapped_column(nullable=False)
    invoice_line_id: Mapped[UUID] = mapped_column(
        ForeignKey("invoice_line.invoice_line_id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    stakeholder_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("stakeholder.stakeholder_id", ondelete="RESTRICT"),
        nullable=False,
    )
    template_id: Mapped[UUID | None] = mapped_column(nullable=True)
    share_type: Mapped[str] = mapped_column(String, nullable=False)
    share_percentage: Mapped[Decimal | None] = mapped_column(Numeric(7, 4), nullable=True)
    share_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    payment_status: Mapped[str] = mapped_column(String, nullable=False, default="PENDING")
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "payment_status IN ('PENDING', 'PARTIALLY_PAID', 'PAID')",
            name="invoice_share_payment_status_check",
        ),
        CheckConstraint(
            "amount_paid >= 0 AND amount_paid <= share_amount",
            name="invoice_share_paid_range",
        ),
        UniqueConstraint(
            "invoice_line_id", "template_id", name="invoice_share_line_template_unique"
        ),
    )
