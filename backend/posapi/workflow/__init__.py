from .errors import WorkflowError
from .ordering import PAYMENT_METHODS, CartLine, OrderingSession
from .staff import (
    StaffDashboard,
    cancel_order,
    confirm_payment,
    is_low_stock,
    load_ingredients,
    load_orders,
    low_stock_ingredients,
    restock_ingredient,
    stock_label,
    update_ingredient_stock,
)
from .steps import StepState, WriteSequence

__all__ = [
    'WorkflowError',
    'PAYMENT_METHODS',
    'CartLine',
    'OrderingSession',
    'StaffDashboard',
    'cancel_order',
    'confirm_payment',
    'is_low_stock',
    'load_ingredients',
    'load_orders',
    'low_stock_ingredients',
    'restock_ingredient',
    'stock_label',
    'update_ingredient_stock',
    'StepState',
    'WriteSequence',
]
