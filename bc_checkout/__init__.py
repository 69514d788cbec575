"""
BigCommerce Checkout/Cart APIクライアント
"""

from bc_checkout.composer import CheckoutClient, build_include_params
from bc_checkout.errors import (
    CheckoutClientError,
    ConfigurationError,
    InvalidArgument,
    MissingRedirectUrl,
    TransportError,
)
from bc_checkout.login_token import CustomerLoginTokenIssuer, TokenIssuer
from bc_checkout.models import CartSnapshot, UrlKind
from bc_checkout.redirect import RedirectResolver
from bc_checkout.transport import HttpTransport, Transport

__all__ = [
    "CheckoutClient",
    "build_include_params",
    "CheckoutClientError",
    "ConfigurationError",
    "InvalidArgument",
    "MissingRedirectUrl",
    "TransportError",
    "CustomerLoginTokenIssuer",
    "TokenIssuer",
    "CartSnapshot",
    "UrlKind",
    "RedirectResolver",
    "HttpTransport",
    "Transport",
]

__version__ = "0.1.0"
