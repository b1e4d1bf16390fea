"""Typed exceptions for the payroll core.

    PayrollCoreError (base)
    |
    +-- UnknownReferenceError
    |   +-- UnknownEmployeeError
    |   +-- UnknownPeriodError
    |   +-- UnknownInvoiceLineError
    |   +-- UnknownShareError
    |
    +-- MissingCompensationProfileError
    +-- DataIntegrityError
    +-- InvalidPaymentError

Invalid state transitions raise ``InvalidTransitionError`` from
``hospital_payroll.services.state_machine``.

Every exception carries a machine-readable ``code`` used by the API layer.
"""

from __future__ import annotations

from datetime import date


class PayrollCoreError(Exception):
    """Base class for all payroll core errors."""

    code: str = "PAYROLL_CORE_ERROR"


class UnknownReferenceError(PayrollCoreError):
    """A record references an entity that does not exist.

    Fatal to the single record being processed, never to a batch.
    """

    code = "UNKNOWN_REFERENCE"

    def __init__(self, entity_type: str, entity_id: object):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"Unknown {entity_type} '{entity_id}'")


class UnknownEmployeeError(UnknownReferenceError):
    code = "UNKNOWN_EMPLOYEE"

    def __init__(self, employee_id: str):
        super().__init__("employee", employee_id)


class UnknownPeriodError(UnknownReferenceError):
    code = "UNKNOWN_PERIOD"

    def __init__(self, period_id: object):
        super().__init__("payroll period", period_id)


class UnknownInvoiceLineError(UnknownReferenceError):
    code = "UNKNOWN_INVOICE_LINE"

    def __init__(self, invoice_line_id: object):
        super().__init__("invoice line", invoice_line_id)


class UnknownShareError(UnknownReferenceError):
    code = "UNKNOWN_SHARE"

    def __init__(self, share_id: object):
        super().__init__("invoice share", share_id)


class MissingCompensationProfileError(PayrollCoreError):
    """Employee has no compensation profile; no payroll line can be built."""

    code = "MISSING_COMPENSATION_PROFILE"

    def __init__(self, employee_id: str):
        self.employee_id = employee_id
        super().__init__(f"Employee '{employee_id}' has no compensation profile")


class DataIntegrityError(PayrollCoreError):
    """Input data violates an invariant that cannot be recovered from."""

    code = "DATA_INTEGRITY"

    def __init__(self, message: str, employee_id: str | None = None, work_date: date | None = None):
        self.employee_id = employee_id
        self.work_date = work_date
        super().__init__(message)


class InvalidPaymentError(PayrollCoreError):
    """A share payment is non-positive or exceeds the outstanding amount."""

    code = "INVALID_PAYMENT"
