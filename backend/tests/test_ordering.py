from decimal import Decimal

import pytest

from posapi.models import Order, OrderDetail, Table
from posapi.store import Store, StoreError
from posapi.workflow import CartLine, OrderingSession, WorkflowError

from .conftest import stock_of


def table_row(store, table):
    return store.select_one('tables', {'id': table.id})


def item_row(store, item):
    return store.select_one('menu_items', {'id': item.id})


@pytest.fixture()
def session(store):
    return OrderingSession(store)


@pytest.mark.django_db
def test_occupied_table_cannot_be_selected(store, session, table):
    table.status = 'occupied'
    table.save()

    assert session.select_table(table_row(store, table)) is False
    assert session.table is None
    assert session.cart == {}


@pytest.mark.django_db
def test_free_table_without_order_starts_empty_cart(store, session, table):
    assert session.select_table(table_row(store, table)) is True
    assert session.table['number'] == 3
    assert session.cart == {}
    assert session.active_order_id is None


@pytest.mark.django_db
def test_cart_edits_stay_in_memory(store, session, table, latte, croissant):
    session.select_table(table_row(store, table))

    session.add_to_cart(item_row(store, latte))
    session.add_to_cart(item_row(store, latte))
    session.add_to_cart(item_row(store, croissant))
    assert session.cart[latte.id].quantity == 2
    assert session.cart_total() == Decimal('11.00')

    session.update_quantity(latte.id, 3)
    assert session.cart[latte.id].quantity == 5

    session.update_quantity(croissant.id, -1)
    assert session.cart[croissant.id].quantity == 1

    session.remove_from_cart(croissant.id)
    assert list(session.cart) == [latte.id]
    assert not Order.objects.exists()


@pytest.mark.django_db
def test_latte_scenario(store, session, table, latte, milk, coffee):
    session.select_table(table_row(store, table))
    session.add_to_cart(item_row(store, latte))
    session.add_to_cart(item_row(store, latte))

    placed = session.place_order()

    assert placed['total_amount'] == Decimal('8.00')
    assert placed['status'] == 'pending'
    assert placed['payment_status'] == 'pending'
    assert placed['table']['number'] == 3
    assert [(d['menu_item']['name'], d['quantity']) for d in placed['order_details']] == [('Latte', 2)]
    assert stock_of(milk) == Decimal('48')
    assert stock_of(coffee) == Decimal('38')
    table.refresh_from_db()
    assert table.status == 'occupied'

    assert session.cart == {}
    assert session.active_order_id is None
    assert session.placed_order['id'] == placed['id']


@pytest.mark.django_db
def test_total_matches_line_subtotals(store, session, table, latte, croissant):
    session.select_table(table_row(store, table))
    for item in (latte, croissant, croissant, latte, croissant):
        session.add_to_cart(item_row(store, item))

    placed = session.place_order()

    order = Order.objects.get(pk=placed['id'])
    subtotals = [detail.subtotal for detail in order.order_details.all()]
    assert order.total_amount == sum(subtotals) == Decimal('17.00')


@pytest.mark.django_db
def test_empty_cart_places_nothing(store, session, table):
    session.select_table(table_row(store, table))

    assert session.place_order() is None
    assert not Order.objects.exists()


@pytest.mark.django_db
def test_placing_same_cart_twice_merges_lines_but_deducts_twice(store, table, latte, milk, coffee):
    first = OrderingSession(store)
    first.select_table(table_row(store, table))
    first.add_to_cart(item_row(store, latte))
    first.add_to_cart(item_row(store, latte))
    placed = first.place_order()

    again = OrderingSession(
        store,
        table=table_row(store, table),
        cart=[CartLine(latte.id, 'Latte', Decimal('4.00'), 2)],
        active_order_id=placed['id'],
    )
    replaced = again.place_order()

    # One line, quantity updated in place
    details = OrderDetail.objects.filter(order_id=placed['id'])
    assert details.count() == 1
    assert details.get().quantity == 4
    assert details.get().subtotal == Decimal('16.00')
    assert replaced['total_amount'] == Decimal('16.00')
    assert Order.objects.count() == 1
    # Full cart quantity deducted on both calls
    assert stock_of(milk) == Decimal('46')
    assert stock_of(coffee) == Decimal('36')


@pytest.mark.django_db
def test_reopened_pending_order_rebuilds_cart_and_deducts_it_again(store, table, latte, croissant, milk):
    first = OrderingSession(store)
    first.select_table(table_row(store, table))
    first.add_to_cart(item_row(store, latte))
    first.add_to_cart(item_row(store, latte))
    placed = first.place_order()
    Table.objects.filter(pk=table.pk).update(status='free')

    resumed = OrderingSession(store)
    assert resumed.select_table(table_row(store, table)) is True
    assert resumed.active_order_id == placed['id']
    assert {line.menu_item_id: line.quantity for line in resumed.cart.values()} == {latte.id: 2}

    resumed.add_to_cart(item_row(store, latte))
    resumed.add_to_cart(item_row(store, croissant))
    order = resumed.place_order()

    quantities = {d['menu_item_id']: d['quantity'] for d in order['order_details']}
    assert quantities == {latte.id: 5, croissant.id: 1}
    assert order['total_amount'] == Decimal('23.00')
    assert order['total_amount'] == sum(d['subtotal'] for d in order['order_details'])
    assert stock_of(milk) == Decimal('45')


@pytest.mark.django_db
def test_select_payment_method_keeps_payment_pending(store, session, table, latte):
    session.select_table(table_row(store, table))
    session.add_to_cart(item_row(store, latte))
    placed = session.place_order()

    session.select_payment_method('mobile_banking')

    order = Order.objects.get(pk=placed['id'])
    assert order.payment_method == 'mobile_banking'
    assert order.payment_status == 'pending'
    assert order.status == 'pending'
    assert session.placed_order['payment_method'] == 'mobile_banking'


@pytest.mark.django_db
def test_select_payment_method_without_order_is_noop(store, session, table):
    session.select_table(table_row(store, table))

    assert session.select_payment_method('cash') is None


def test_unknown_payment_method_is_rejected(store):
    with pytest.raises(ValueError):
        OrderingSession(store).select_payment_method('cheque')


class FailingLineStore(Store):
    """Store whose order line writes always fail."""

    def insert(self, table, values):
        if table == 'order_details':
            raise StoreError("connection reset", table=table)
        return super().insert(table, values)


@pytest.mark.django_db
def test_failure_leaves_partial_writes_in_place(table, latte, milk):
    store = FailingLineStore()
    session = OrderingSession(store)
    session.select_table(table_row(store, table))
    session.add_to_cart(item_row(store, latte))

    with pytest.raises(WorkflowError) as excinfo:
        session.place_order()

    error = excinfo.value
    assert error.message == "Failed to place order. Please try again."
    assert error.is_partial
    assert [step.name for step in error.sequence.applied] == ['create_order', 'occupy_table']
    assert error.sequence.failed_step.name == 'merge_line'

    # The order exists without lines; nothing is rolled back
    order = Order.objects.get()
    assert order.order_details.count() == 0
    table.refresh_from_db()
    assert table.status == 'occupied'
    assert stock_of(milk) == Decimal('50')
    # The cart survives so the guest can retry
    assert session.cart[latte.id].quantity == 1


@pytest.mark.django_db
def test_session_state_round_trip(store, session, table, latte):
    session.select_table(table_row(store, table))
    session.add_to_cart(item_row(store, latte))

    restored = OrderingSession.from_state(store, session.to_state())

    assert restored.table == session.table
    assert restored.cart[latte.id].quantity == 1
    assert restored.cart_total() == Decimal('4.00')


@pytest.mark.django_db
def test_load_menu_lists_available_items_by_name(store, session, latte, croissant):
    croissant.available = False
    croissant.save()

    assert [item['name'] for item in session.load_menu()] == ['Latte']
