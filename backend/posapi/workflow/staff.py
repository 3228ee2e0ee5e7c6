"""Staff-facing operations: settle and cancel orders, keep ingredient stock."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, FrozenSet, Iterable, List, Optional, Set

from ..store import ChangeEvent, Store, StoreError
from .errors import WorkflowError
from .inventory import RESTORE, apply_recipe
from .ordering import ORDER_RELATIONS
from .steps import WriteSequence

logger = logging.getLogger(__name__)

LOW_STOCK = 'Low Stock'
IN_STOCK = 'In Stock'
RESTOCK_AMOUNT = Decimal('100')


def load_orders(store: Store, status: Optional[str] = None) -> List[dict]:
    filters = {'status': status} if status else None
    return store.select('orders', filters=filters, order_by=['-created_at', '-id'], related=ORDER_RELATIONS)


def load_ingredients(store: Store) -> List[dict]:
    return store.select('ingredients', order_by=['name'])


def confirm_payment(store: Store, order_id: int, table_id: Optional[int]) -> dict:
    """Mark the order paid and completed, then free its table.

    The two writes are independent; if freeing the table fails the order is
    already completed while the table still shows occupied.
    """
    sequence = WriteSequence('confirm_payment')
    try:
        with sequence.step('complete_order', order_id=order_id):
            order = store.update('orders', order_id, {'payment_status': 'paid', 'status': 'completed'})
        if table_id is not None:
            with sequence.step('free_table', table_id=table_id):
                store.update('tables', table_id, {'status': 'free'})
    except StoreError as exc:
        logger.exception("Error confirming payment for order #%s", order_id)
        raise WorkflowError("Failed to confirm payment", sequence) from exc

    logger.info("Payment confirmed for order #%s, table %s freed", order_id, table_id)
    return order


def cancel_order(store: Store, order_id: int, table_id: Optional[int]) -> dict:
    """Put every order line's ingredients back, cancel the order, free the table.

    The caller is expected to have asked the operator for confirmation. Stock
    is restored once per order line using the line's stored quantity.
    """
    sequence = WriteSequence('cancel_order')
    try:
        details = store.select('order_details', filters={'order_id': order_id}, order_by=['id'])
        for detail in details:
            apply_recipe(store, detail['menu_item_id'], detail['quantity'], RESTORE, sequence)

        with sequence.step('cancel_order', order_id=order_id):
            order = store.update('orders', order_id, {'status': 'cancelled'})
        if table_id is not None:
            with sequence.step('free_table', table_id=table_id):
                store.update('tables', table_id, {'status': 'free'})
    except StoreError as exc:
        logger.exception("Error cancelling order #%s", order_id)
        raise WorkflowError("Failed to cancel order", sequence) from exc

    logger.info("Order #%s cancelled, ingredients restored for %d line(s)", order_id, len(details))
    return order


def update_ingredient_stock(store: Store, ingredient_id: int, new_quantity: Decimal) -> dict:
    """Overwrite the stock level; any value is accepted, negative included."""
    try:
        ingredient = store.update('ingredients', ingredient_id, {'stock_quantity': new_quantity})
    except StoreError as exc:
        logger.exception("Error updating stock for ingredient %s", ingredient_id)
        raise WorkflowError("Failed to update stock") from exc

    logger.info("Stock of %s set to %s %s", ingredient['name'], ingredient['stock_quantity'], ingredient['unit'])
    return ingredient


def restock_ingredient(store: Store, ingredient_id: int, amount: Decimal = RESTOCK_AMOUNT) -> dict:
    """Add ``amount`` to the current stock level."""
    try:
        ingredient = store.select_one('ingredients', {'id': ingredient_id})
    except StoreError as exc:
        logger.exception("Error loading ingredient %s", ingredient_id)
        raise WorkflowError("Failed to update stock") from exc
    if ingredient is None:
        raise WorkflowError("Failed to update stock")
    return update_ingredient_stock(store, ingredient_id, ingredient['stock_quantity'] + amount)


def is_low_stock(ingredient: dict) -> bool:
    return ingredient['stock_quantity'] <= ingredient['minimum_stock']


def stock_label(ingredient: dict) -> str:
    return LOW_STOCK if is_low_stock(ingredient) else IN_STOCK


def low_stock_ingredients(ingredients: Iterable[dict]) -> List[dict]:
    return [ingredient for ingredient in ingredients if is_low_stock(ingredient)]


class StaffDashboard:
    """Orders and ingredients as the staff screen shows them.

    ``watch()`` subscribes to store changes. A change only marks the affected
    view stale; ``refresh()`` reloads whatever is stale.
    """

    # store table -> dashboard view it invalidates
    VIEW_FOR_TABLE = {
        'orders': 'orders',
        'order_details': 'orders',
        'ingredients': 'ingredients',
    }
    VIEWS = ('orders', 'ingredients')

    def __init__(self, store: Store):
        self.store = store
        self.orders: List[dict] = []
        self.ingredients: List[dict] = []
        self._stale: Set[str] = set(self.VIEWS)
        self._subscriptions: List[Callable[[], None]] = []

    def watch(self) -> None:
        if self._subscriptions:
            return
        for table in self.VIEW_FOR_TABLE:
            self._subscriptions.append(self.store.on_change(table, self._mark_stale))

    def close(self) -> None:
        while self._subscriptions:
            self._subscriptions.pop()()

    def _mark_stale(self, event: ChangeEvent) -> None:
        self._stale.add(self.VIEW_FOR_TABLE[event.table])

    @property
    def stale(self) -> FrozenSet[str]:
        return frozenset(self._stale)

    def refresh(self, force: bool = False) -> FrozenSet[str]:
        """Reload stale views (all views with ``force``); returns what was reloaded."""
        views = set(self.VIEWS) if force else set(self._stale)
        try:
            if 'orders' in views:
                self.orders = load_orders(self.store)
            if 'ingredients' in views:
                self.ingredients = load_ingredients(self.store)
        except StoreError as exc:
            logger.exception("Error loading staff dashboard")
            raise WorkflowError("Failed to load dashboard") from exc
        self._stale -= views
        return frozenset(views)

    def _with_status(self, status: str) -> List[dict]:
        return [order for order in self.orders if order['status'] == status]

    @property
    def pending_orders(self) -> List[dict]:
        return self._with_status('pending')

    @property
    def completed_orders(self) -> List[dict]:
        return self._with_status('completed')

    @property
    def cancelled_orders(self) -> List[dict]:
        return self._with_status('cancelled')

    @property
    def low_stock(self) -> List[dict]:
        return low_stock_ingredients(self.ingredients)
