import secrets
import time
from dataclasses import dataclass, field
from typing import Dict, Optional
import stripe
from config.config import Config, STRIPE_PLACEHOLDER
from quickcourt.utils.errors import PaymentError
from quickcourt.utils.logger import get_logger

logger = get_logger(__name__)

MOCK_INTENT_PREFIX = 'pi_mock_'
STATUS_SUCCEEDED = 'succeeded'
STATUS_REQUIRES_PAYMENT_METHOD = 'requires_payment_method'


@dataclass
class PaymentIntentResult:
    id: str
    status: str
    client_secret: Optional[str] = None
    amount: Optional[int] = None  # minor units
    currency: Optional[str] = None
    metadata: Dict = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == STATUS_SUCCEEDED


def is_mock_intent(payment_intent_id: str) -> bool:
    return (payment_intent_id or '').startswith(MOCK_INTENT_PREFIX)


def to_minor_units(amount) -> int:
    return int(round(float(amount) * 100))


class PaymentGateway:
    """Common interface of the payment backends"""

    name = 'base'

    def create_intent(self, amount, currency: str = Config.CURRENCY,
                      metadata: Dict = None) -> PaymentIntentResult:
        raise NotImplementedError

    def confirm_intent(self, payment_intent_id: str) -> PaymentIntentResult:
        raise NotImplementedError

    def cancel_intent(self, payment_intent_id: str):
        logger.warning(f"{self.name} payment backend cannot cancel intent {payment_intent_id}")


class MockPaymentGateway(PaymentGateway):
    """Simulates Stripe so the whole booking flow runs without a live key"""

    name = 'mock'

    def create_intent(self, amount, currency: str = Config.CURRENCY,
                      metadata: Dict = None) -> PaymentIntentResult:
        intent_id = f"{MOCK_INTENT_PREFIX}{int(time.time() * 1000)}{secrets.token_hex(4)}"
        logger.info(f"Created mock payment intent {intent_id} for {amount} {currency}")
        return PaymentIntentResult(
            id=intent_id,
            status=STATUS_REQUIRES_PAYMENT_METHOD,
            client_secret=f"cs_test_{intent_id}",
            amount=to_minor_units(amount),
            currency=currency,
            metadata=metadata or {}
        )

    def confirm_intent(self, payment_intent_id: str) -> PaymentIntentResult:
        status = STATUS_SUCCEEDED if is_mock_intent(payment_intent_id) else 'failed'
        return PaymentIntentResult(id=payment_intent_id, status=status)

    def cancel_intent(self, payment_intent_id: str):
        logger.info(f"Cancelled mock payment intent {payment_intent_id}")


class StripePaymentGateway(PaymentGateway):
    """Wrapper for Stripe PaymentIntent operations"""

    name = 'stripe'

    def __init__(self, api_key: str):
        self.api_key = api_key
        stripe.api_key = api_key

    def create_intent(self, amount, currency: str = Config.CURRENCY,
                      metadata: Dict = None) -> PaymentIntentResult:
        try:
            intent = stripe.PaymentIntent.create(
                amount=to_minor_units(amount),
                currency=currency,
                metadata={k: str(v) for k, v in (metadata or {}).items()},
                automatic_payment_methods={"enabled": True}
            )
        except stripe.StripeError as e:
            logger.error(f"Error creating payment intent: {str(e)}")
            raise PaymentError(f"Failed to create payment intent: {str(e)}", status_code=500)

        return PaymentIntentResult(
            id=intent['id'],
            status=intent['status'],
            client_secret=intent['client_secret'],
            amount=intent['amount'],
            currency=intent['currency'],
            metadata=metadata or {}
        )

    def confirm_intent(self, payment_intent_id: str) -> PaymentIntentResult:
        # Intents minted while the server ran in mock mode stay payable
        if is_mock_intent(payment_intent_id):
            return PaymentIntentResult(id=payment_intent_id, status=STATUS_SUCCEEDED)

        try:
            intent = stripe.PaymentIntent.retrieve(payment_intent_id)
        except stripe.StripeError as e:
            logger.error(f"Error confirming payment intent {payment_intent_id}: {str(e)}")
            raise PaymentError(f"Failed to confirm Stripe payment: {str(e)}", status_code=500)

        return PaymentIntentResult(
            id=intent['id'],
            status=intent['status'],
            amount=intent['amount'],
            currency=intent['currency']
        )

    def cancel_intent(self, payment_intent_id: str):
        """Best effort; a failed cancel is logged and left for the provider to expire"""
        if is_mock_intent(payment_intent_id):
            return
        try:
            stripe.PaymentIntent.cancel(payment_intent_id)
            logger.info(f"Cancelled payment intent {payment_intent_id}")
        except stripe.StripeError as e:
            logger.error(f"Error cancelling payment intent {payment_intent_id}: {str(e)}")


def resolve_payment_backend(config) -> str:
    """'mock' or 'stripe', from PAYMENT_BACKEND or else the configured key"""
    backend = (getattr(config, 'PAYMENT_BACKEND', '') or '').lower()
    if backend in ('mock', 'stripe'):
        return backend
    if backend:
        raise ValueError(f"Unknown PAYMENT_BACKEND '{backend}'")

    key = getattr(config, 'STRIPE_SECRET_KEY', None)
    if not key or STRIPE_PLACEHOLDER in key:
        return 'mock'
    return 'stripe'


def build_payment_gateway(config) -> PaymentGateway:
    """Pick the payment backend once, at startup"""
    backend = resolve_payment_backend(config)
    if backend == 'stripe':
        logger.info("Payments: live Stripe backend")
        return StripePaymentGateway(config.STRIPE_SECRET_KEY)

    logger.warning("Payments: Stripe key not configured, using mock payment backend")
    return MockPaymentGateway()
