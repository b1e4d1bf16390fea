"""Revenue-share allocation of billed invoice lines among stakeholders."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import date
from decimal import Decimal

from hospital_payroll.calculators.rounding import floor_money, round_money
from hospital_payroll.calculators.types import (
    AllocationResult,
    IntegrityWarning,
    InvoiceLine,
    InvoiceShare,
    SharePaymentStatus,
    ShareTemplate,
    ShareType,
    Stakeholder,
    WarningCode,
)
from hospital_payroll.exceptions import InvalidPaymentError

logger = logging.getLogger(__name__)


def compute_share_amount(template: ShareTemplate, line_total: Decimal) -> Decimal:
    """Amount owed to a template's stakeholder for a line total.

    PERCENTAGE: round(line_total * pct / 100).
    FIXED_AMOUNT: the fixed amount, capped at the line total.
    """
    if template.share_type == ShareType.PERCENTAGE:
        return round_money(line_total * template.share_value / 100)
    return min(round_money(template.share_value), line_total)


def _reconciled_amounts(
    templates: list[ShareTemplate], line_total: Decimal
) -> tuple[list[Decimal], bool]:
    """Whole-unit amounts per template, and whether the set over-allocates.

    Each percentage share is rounded half-up on its own, then the percentage
    shares are reconciled by largest remainder: together they never exceed
    what the fixed shares leave of the line total, and they use it up exactly
    when the percentages sum to 100. Ties go to the earlier display order.
    Over-allocation is judged on the unrounded amounts.
    """
    amounts = [compute_share_amount(t, line_total) for t in templates]
    percentage = [i for i, t in enumerate(templates) if t.share_type == ShareType.PERCENTAGE]
    fixed_total = sum(
        (a for i, a in enumerate(amounts) if i not in percentage), Decimal("0")
    )
    percent_sum = sum((templates[i].share_value for i in percentage), Decimal("0"))
    if fixed_total + line_total * percent_sum / 100 > line_total:
        return amounts, True
    if not percentage:
        return amounts, False

    available = line_total - fixed_total
    if percent_sum == 100:
        target = available
    else:
        target = min(sum((amounts[i] for i in percentage), Decimal("0")), available)

    exact = {i: line_total * templates[i].share_value / 100 for i in percentage}
    for i in percentage:
        amounts[i] = floor_money(exact[i])
    short = int(target - sum((amounts[i] for i in percentage), Decimal("0")))
    by_remainder = sorted(percentage, key=lambda i: (amounts[i] - exact[i], i))
    for i in by_remainder[:short]:
        amounts[i] += 1
    return amounts, False


def allocate_line(
    line: InvoiceLine,
    templates: Iterable[ShareTemplate],
    stakeholders: Mapping[str, Stakeholder],
) -> AllocationResult:
    """Compute one share per applicable template for an invoice line.

    The sum of shares may be below the line total (the residual stays with
    the facility) but never exceeds it, and percentages summing to 100 leave
    no residual. An over-allocating template set is a configuration error:
    it is reported on the result and not corrected. The invoice line itself
    is never modified.
    """
    warnings: list[IntegrityWarning] = []

    applicable: list[ShareTemplate] = []
    for template in sorted(
        (t for t in templates if t.service_id == line.service_id),
        key=lambda t: t.display_order,
    ):
        if template.stakeholder_id not in stakeholders:
            message = (
                f"Share template {template.template_id} references unknown "
                f"stakeholder '{template.stakeholder_id}'; skipped"
            )
            logger.warning("Invoice line %s: %s", line.invoice_line_id, message)
            warnings.append(IntegrityWarning(code=WarningCode.UNKNOWN_STAKEHOLDER, message=message))
            continue
        applicable.append(template)

    amounts, over_allocated = _reconciled_amounts(applicable, line.line_total)
    shares = tuple(
        InvoiceShare(
            invoice_id=line.invoice_id,
            invoice_line_id=line.invoice_line_id,
            stakeholder_id=template.stakeholder_id,
            share_type=template.share_type,
            share_amount=amount,
            share_percentage=(
                template.share_value if template.share_type == ShareType.PERCENTAGE else None
            ),
            template_id=template.template_id,
        )
        for template, amount in zip(applicable, amounts)
    )

    if over_allocated:
        allocated = sum((s.share_amount for s in shares), Decimal("0"))
        message = (
            f"Templates for service '{line.service_id}' allocate {allocated}, "
            f"exceeding line total {line.line_total}"
        )
        logger.warning("Invoice line %s: %s", line.invoice_line_id, message)
        warnings.append(IntegrityWarning(code=WarningCode.SHARE_OVER_ALLOCATION, message=message))

    return AllocationResult(
        invoice_line_id=line.invoice_line_id,
        line_total=line.line_total,
        shares=shares,
        warnings=tuple(warnings),
        over_allocated=over_allocated,
    )


def apply_share_payment(share: InvoiceShare, amount: Decimal, paid_on: date) -> InvoiceShare:
    """Record a payment against a share, returning the updated share.

    Status moves PENDING -> PARTIALLY_PAID -> PAID as the amount paid grows.
    """
    if amount <= 0:
        raise InvalidPaymentError(f"Payment amount must be positive, got {amount}")
    if share.payment_status == SharePaymentStatus.PAID:
        raise InvalidPaymentError(f"Share {share.share_id} is already fully paid")
    if amount > share.outstanding:
        raise InvalidPaymentError(
            f"Payment {amount} exceeds outstanding {share.outstanding} on share {share.share_id}"
        )

    amount_paid = share.amount_paid + amount
    status = (
        SharePaymentStatus.PAID
        if amount_paid == share.share_amount
        else SharePaymentStatus.PARTIALLY_PAID
    )
    return replace(share, amount_paid=amount_paid, payment_status=status, payment_date=paid_on)
