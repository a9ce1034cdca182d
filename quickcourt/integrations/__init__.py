from .stripe_client import (
    PaymentGateway, MockPaymentGateway, StripePaymentGateway, PaymentIntentResult, build_payment_gateway
)
from .sendgrid_client import SendGridClient

__all__ = [
    'PaymentGateway', 'MockPaymentGateway', 'StripePaymentGateway', 'PaymentIntentResult',
    'build_payment_gateway', 'SendGridClient'
]
