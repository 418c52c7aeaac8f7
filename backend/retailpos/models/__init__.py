from .auth import User, SessionToken
from .catalog import Category, Product
from .customers import Customer
from .sales import Sale, SaleItem
from .inventory import StockMovement

__all__ = [
    'User', 'SessionToken',
    'Category', 'Product',
    'Customer',
    'Sale', 'SaleItem',
    'StockMovement',
]
