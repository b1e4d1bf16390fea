"""Revenue-share service - allocating invoice lines and recording share payments."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from uuid import UUID

from hospital_payroll.calculators.share_allocator import allocate_line, apply_share_payment
from hospital_payroll.calculators.types import AllocationResult, InvoiceShare
from hospital_payroll.exceptions import (
    InvalidPaymentError,
    UnknownInvoiceLineError,
    UnknownShareError,
)
from hospital_payroll.services.repository import PayrollRepository

logger = logging.getLogger(__name__)


class RevenueShareService:
    """Service for revenue-share allocation.

    Shares are created once per invoice line. Allocating a line that already
    has shares, or losing a race to another allocation of it, returns the
    stored shares unchanged; an over-allocating template set persists
    nothing. Payments are written only against the amount paid they were
    computed from.
    """

    def __init__(self, repository: PayrollRepository):
        self.repository = repository

    async def allocate_shares(self, invoice_line_id: UUID) -> AllocationResult:
        line = await self.repository.get_invoice_line(invoice_line_id)
        if line is None:
            raise UnknownInvoiceLineError(invoice_line_id)

        existing = await self.repository.list_shares_for_line(invoice_line_id)
        if existing:
            logger.debug("Invoice line %s already allocated", invoice_line_id)
            return AllocationResult(
                invoice_line_id=invoice_line_id,
                line_total=line.line_total,
                shares=tuple(existing),
            )

        templates = await self.repository.list_share_templates(line.service_id)
        stakeholders = await self.repository.list_stakeholders()
        result = allocate_line(line, templates, stakeholders)

        if result.over_allocated:
            logger.error(
                "Invoice line %s not allocated: share templates for service %s exceed the line total",
                invoice_line_id,
                line.service_id,
            )
            return result

        if not await self.repository.add_shares(result.shares):
            stored = await self.repository.list_shares_for_line(invoice_line_id)
            return AllocationResult(
                invoice_line_id=invoice_line_id,
                line_total=line.line_total,
                shares=tuple(stored),
            )
        logger.info(
            "Allocated %d share(s) totalling %s on invoice line %s",
            len(result.shares),
            result.total_allocated,
            invoice_line_id,
        )
        return result

    async def list_shares(self, invoice_line_id: UUID) -> list[InvoiceShare]:
        if await self.repository.get_invoice_line(invoice_line_id) is None:
            raise UnknownInvoiceLineError(invoice_line_id)
        return await self.repository.list_shares_for_line(invoice_line_id)

    async def record_share_payment(
        self, share_id: UUID, amount: Decimal, paid_on: date
    ) -> InvoiceShare:
        share = await self.repository.get_share(share_id)
        if share is None:
            raise UnknownShareError(share_id)

        updated = apply_share_payment(share, amount, paid_on)
        if not await self.repository.save_share_payment(updated, share.amount_paid):
            raise InvalidPaymentError(
                f"Share {share_id} was paid concurrently; re-read it and retry"
            )
        logger.info(
            "Recorded payment of %s on share %s (%s)",
            amount,
            share_id,
            updated.payment_status.value,
        )
        return updated
