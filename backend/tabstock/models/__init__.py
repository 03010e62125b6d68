from .users import User
from .inventory import Product, RestockMovement, RestockMovementLine
from .billing import Order, MonthlyDebt

__all__ = [
    'User',
    'Product', 'RestockMovement', 'RestockMovementLine',
    'Order', 'MonthlyDebt',
]
