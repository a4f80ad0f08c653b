from .rooms import Room
from .stays import Stay, PaymentEntry
from .shop import ShopPurchase
from .payments import DirectPayment

__all__ = [
    'Room',
    'Stay', 'PaymentEntry',
    'ShopPurchase',
    'DirectPayment',
]
