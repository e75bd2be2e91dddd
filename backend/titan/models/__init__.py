from .accounts import Account, Cashier
from .auth import OtpRecord, RevokedToken
from .ledger import Transaction

__all__ = [
    'Account', 'Cashier',
    'OtpRecord', 'RevokedToken',
    'Transaction',
]
