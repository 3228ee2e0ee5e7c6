"""
Customer-facing ordering flow: pick a table, build a cart, place the order,
choose how to pay.

Cart edits never touch the store. ``place_order`` is the only operation that
writes, and it does so as a sequence of independent writes:

1. insert the order and mark the table occupied, or update the total of the
   table's pending order;
2. for every cart line, merge it into the order line for the same menu item
   or insert a new line;
3. for every cart line, deduct ``quantity_needed * quantity`` of each recipe
   ingredient.

Step 3 always deducts the full cart quantity, also for lines that were merged
into an existing order line. Reopening a pending order rebuilds the cart from
its lines, so placing it again deducts those portions a second time while the
order line grows by the same amount.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ..store import Store, StoreError
from .errors import WorkflowError
from .inventory import DEDUCT, apply_recipe
from .steps import WriteSequence

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ('cash', 'card', 'mobile_banking')

ORDER_RELATIONS = ['table', 'order_details.menu_item']


@dataclass
class CartLine:
    menu_item_id: int
    name: str
    price: Decimal
    quantity: int = 1

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


class OrderingSession:
    def __init__(
        self,
        store: Store,
        table: Optional[dict] = None,
        cart: Optional[List[CartLine]] = None,
        active_order_id: Optional[int] = None,
        placed_order: Optional[dict] = None,
    ):
        self.store = store
        self.table = table
        self.cart: Dict[int, CartLine] = {line.menu_item_id: line for line in cart or []}
        self.active_order_id = active_order_id
        self.placed_order = placed_order

    # Snapshots for keeping a session between requests

    def to_state(self) -> Dict[str, Any]:
        return {
            'table': self.table,
            'cart': [
                {'menu_item_id': line.menu_item_id, 'name': line.name, 'price': line.price, 'quantity': line.quantity}
                for line in self.cart.values()
            ],
            'active_order_id': self.active_order_id,
            'placed_order': self.placed_order,
        }

    @classmethod
    def from_state(cls, store: Store, state: Dict[str, Any]) -> 'OrderingSession':
        return cls(
            store,
            table=state.get('table'),
            cart=[CartLine(**line) for line in state.get('cart', [])],
            active_order_id=state.get('active_order_id'),
            placed_order=state.get('placed_order'),
        )

    # Reads

    def load_tables(self) -> List[dict]:
        try:
            return self.store.select('tables', order_by=['number'])
        except StoreError as exc:
            logger.exception("Error loading tables")
            raise WorkflowError("Failed to load tables. Please try again.") from exc

    def load_menu(self) -> List[dict]:
        try:
            return self.store.select('menu_items', filters={'available': True}, order_by=['name'])
        except StoreError as exc:
            logger.exception("Error loading menu")
            raise WorkflowError("Failed to load menu. Please try again.") from exc

    def select_table(self, table: dict) -> bool:
        """Start ordering for ``table``; returns False and does nothing unless it is free.

        A pending order already attached to the table becomes the active order
        and its lines are loaded back into the cart.
        """
        if table.get('status') != 'free':
            return False

        try:
            pending = self.store.select(
                'orders',
                filters={'table_id': table['id'], 'status': 'pending'},
                order_by=['-created_at', '-id'],
                related=['order_details.menu_item'],
            )
        except StoreError as exc:
            logger.exception("Error loading pending order for table %s", table.get('number'))
            raise WorkflowError("Failed to open table. Please try again.") from exc

        self.table = table
        self.cart = {}
        self.active_order_id = None
        self.placed_order = None

        if pending:
            existing = pending[0]
            self.active_order_id = existing['id']
            for detail in existing['order_details']:
                item = detail['menu_item']
                line = self.cart.get(item['id'])
                if line is None:
                    self.cart[item['id']] = CartLine(item['id'], item['name'], item['price'], detail['quantity'])
                else:
                    line.quantity += detail['quantity']
            logger.info("Table %s resumed pending order #%s", table.get('number'), existing['id'])
        return True

    # Cart edits

    def add_to_cart(self, item: dict) -> CartLine:
        line = self.cart.get(item['id'])
        if line is None:
            line = CartLine(item['id'], item['name'], Decimal(item['price']), 1)
            self.cart[item['id']] = line
        else:
            line.quantity += 1
        return line

    def update_quantity(self, menu_item_id: int, delta: int) -> Optional[CartLine]:
        # A change that would take the quantity below 1 is ignored.
        line = self.cart.get(menu_item_id)
        if line is None:
            return None
        if line.quantity + delta > 0:
            line.quantity += delta
        return line

    def remove_from_cart(self, menu_item_id: int) -> None:
        self.cart.pop(menu_item_id, None)

    def cart_total(self) -> Decimal:
        return sum((line.subtotal for line in self.cart.values()), Decimal('0'))

    # Writes

    def place_order(self) -> Optional[dict]:
        """Write the cart to the store and return the re-read order.

        Returns None for an empty cart. Any store failure stops the sequence
        where it is and raises ``WorkflowError`` carrying the writes that were
        already applied.
        """
        if not self.cart or self.table is None:
            return None

        sequence = WriteSequence('place_order')
        try:
            order_id = self.active_order_id
            if order_id is None:
                with sequence.step('create_order', table_id=self.table['id']) as record:
                    order = self.store.insert('orders', {
                        'table_id': self.table['id'],
                        'total_amount': self.cart_total(),
                        'status': 'pending',
                        'payment_status': 'pending',
                    })
                    order_id = order['id']
                    record.detail['order_id'] = order_id
                with sequence.step('occupy_table', table_id=self.table['id']):
                    self.table = self.store.update('tables', self.table['id'], {'status': 'occupied'})
            else:
                with sequence.step('update_total', order_id=order_id):
                    self.store.update('orders', order_id, {'total_amount': self._merged_total(order_id)})

            for line in self.cart.values():
                with sequence.step('merge_line', order_id=order_id, menu_item_id=line.menu_item_id):
                    self._merge_line(order_id, line)
                apply_recipe(self.store, line.menu_item_id, line.quantity, DEDUCT, sequence)

            placed = self.store.select_one('orders', {'id': order_id}, related=ORDER_RELATIONS)
        except StoreError as exc:
            logger.exception("Error placing order for table %s", self.table.get('number'))
            raise WorkflowError("Failed to place order. Please try again.", sequence) from exc

        logger.info(
            "Placed order #%s for table %s: %s item(s), total %s",
            order_id, self.table.get('number'), sum(line.quantity for line in self.cart.values()),
            placed['total_amount'],
        )
        self.placed_order = placed
        self.cart = {}
        self.active_order_id = None
        return placed

    def _order_lines(self, order_id: int, menu_item_id: Optional[int] = None) -> List[dict]:
        filters = {'order_id': order_id}
        if menu_item_id is not None:
            filters['menu_item_id'] = menu_item_id
        return self.store.select('order_details', filters=filters, order_by=['id'])

    def _merged_total(self, order_id: int) -> Decimal:
        """Sum of line subtotals the order will have once the cart is merged in."""
        total = Decimal('0')
        merged = set()
        for detail in self._order_lines(order_id):
            line = self.cart.get(detail['menu_item_id'])
            if line is not None and line.menu_item_id not in merged:
                merged.add(line.menu_item_id)
                total += line.price * (detail['quantity'] + line.quantity)
            else:
                total += detail['subtotal']
        for line in self.cart.values():
            if line.menu_item_id not in merged:
                total += line.subtotal
        return total

    def _merge_line(self, order_id: int, line: CartLine) -> dict:
        existing = self._order_lines(order_id, line.menu_item_id)
        if existing:
            detail = existing[0]
            quantity = detail['quantity'] + line.quantity
            return self.store.update('order_details', detail['id'], {
                'quantity': quantity,
                'subtotal': line.price * quantity,
            })
        return self.store.insert('order_details', {
            'order_id': order_id,
            'menu_item_id': line.menu_item_id,
            'quantity': line.quantity,
            'price': line.price,
            'subtotal': line.subtotal,
        })

    def select_payment_method(self, method: str) -> Optional[dict]:
        """Record how the guest will pay; staff confirm the payment later."""
        if method not in PAYMENT_METHODS:
            raise ValueError(f"Unknown payment method '{method}'")
        if self.placed_order is None:
            return None

        try:
            order = self.store.update('orders', self.placed_order['id'], {
                'payment_method': method,
                'payment_status': 'pending',
            })
        except StoreError as exc:
            logger.exception("Error selecting payment method for order #%s", self.placed_order['id'])
            raise WorkflowError("Failed to select payment method. Please try again.") from exc

        self.placed_order = {**self.placed_order, 'payment_method': method, 'payment_status': 'pending'}
        logger.info("Order #%s will be paid by %s", order['id'], method)
        return order

    def start_new_order(self) -> None:
        self.table = None
        self.cart = {}
        self.active_order_id = None
        self.placed_order = None
