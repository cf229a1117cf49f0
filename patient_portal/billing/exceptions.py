"""
Billing-specific exceptions.

Every payment failure is reported as a 400 so that the client sees a single
"payment could not be completed" class of error.
"""
from ..exceptions import ValidationException


class PaymentException(ValidationException):
    """Base exception for a payment that could not be completed."""
    default_detail = "Payment failed"


class BillNotFoundException(PaymentException):
    default_detail = "Bill not found"


class BillAlreadyPaidException(PaymentException):
    default_detail = "Bill already paid"


class PaymentDeclinedException(PaymentException):
    """Exception raised when the payment gateway rejects the charge."""
    default_detail = "Payment was declined"
