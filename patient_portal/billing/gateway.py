"""
Payment gateway used to charge bills.

Only a mock gateway exists: it approves every payment method except the
well-known decline test tokens, so the payment flow can be exercised end to
end without a processor account.
"""
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Dict, Optional

# Set up logging
logger = logging.getLogger(__name__)

DECLINE_MARKERS = ("declined", "4000000000000002")


@dataclass
class PaymentResult:
    success: bool
    payment_intent_id: Optional[str] = None
    error: Optional[str] = None


class MockPaymentGateway:
    """In-process stand-in for a card processor."""

    async def charge(
        self,
        amount_cents: int,
        payment_method_id: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> PaymentResult:
        """
        Charge a payment method.

        Args:
            amount_cents: Amount to charge in cents
            payment_method_id: Card or payment method token
            metadata: Context passed along with the charge

        Returns:
            PaymentResult: Outcome, with a mock intent id on success
        """
        if any(marker in payment_method_id for marker in DECLINE_MARKERS):
            logger.info(f"Mock charge of {amount_cents} cents declined")
            return PaymentResult(success=False, error="Your card was declined")

        intent_id = f"pi_mock_{int(time.time() * 1000)}_{secrets.token_hex(5)}"
        logger.info(f"Mock charge of {amount_cents} cents approved: {intent_id}")
        return PaymentResult(success=True, payment_intent_id=intent_id)


payment_gateway = MockPaymentGateway()


def get_payment_gateway() -> MockPaymentGateway:
    """Dependency returning the payment gateway."""
    return payment_gateway
