from .inventory import Product
from .customers import Customer
from .sales import Sale
from .auth import User, SessionToken, OtpCode

__all__ = [
    'Product',
    'Customer',
    'Sale',
    'User', 'SessionToken', 'OtpCode',
]
