from .inventory import StockItem, RentalAsset
from .sales import Sale, SaleLineItem, Return
from .promotions import Coupon
from .rentals import RentalCheckout
from .auth import Employee, SessionToken

__all__ = [
    'StockItem', 'RentalAsset',
    'Sale', 'SaleLineItem', 'Return',
    'Coupon',
    'RentalCheckout',
    'Employee', 'SessionToken',
]
