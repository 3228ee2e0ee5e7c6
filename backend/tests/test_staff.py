from decimal import Decimal

import pytest

from posapi.models import Ingredient, Order, Table
from posapi.store import Store, StoreError
from posapi.workflow import (
    OrderingSession,
    StaffDashboard,
    WorkflowError,
    cancel_order,
    confirm_payment,
    is_low_stock,
    low_stock_ingredients,
    restock_ingredient,
    stock_label,
    update_ingredient_stock,
)

from .conftest import stock_of


def place_lattes(store, table, latte, quantity=2):
    session = OrderingSession(store)
    session.select_table(store.select_one('tables', {'id': table.id}))
    item = store.select_one('menu_items', {'id': latte.id})
    for _ in range(quantity):
        session.add_to_cart(item)
    return session.place_order()


@pytest.mark.django_db
def test_confirm_payment_completes_order_and_frees_table(store, table, latte):
    placed = place_lattes(store, table, latte)

    confirm_payment(store, placed['id'], table.id)

    order = Order.objects.get(pk=placed['id'])
    table.refresh_from_db()
    assert order.status == 'completed'
    assert order.payment_status == 'paid'
    assert table.status == 'free'


@pytest.mark.django_db
def test_cancel_restores_stock_and_frees_table(store, table, latte, milk, coffee):
    placed = place_lattes(store, table, latte)
    assert stock_of(milk) == Decimal('48')
    assert stock_of(coffee) == Decimal('38')

    cancel_order(store, placed['id'], table.id)

    order = Order.objects.get(pk=placed['id'])
    table.refresh_from_db()
    assert order.status == 'cancelled'
    assert table.status == 'free'
    assert stock_of(milk) == Decimal('50')
    assert stock_of(coffee) == Decimal('40')


@pytest.mark.django_db
def test_cancel_restores_stored_line_quantity_once(store, table, latte, milk):
    placed = place_lattes(store, table, latte, quantity=1)
    place_again = OrderingSession(
        store,
        table=store.select_one('tables', {'id': table.id}),
        cart=[],
        active_order_id=placed['id'],
    )
    place_again.add_to_cart(store.select_one('menu_items', {'id': latte.id}))
    place_again.place_order()
    assert stock_of(milk) == Decimal('48')

    cancel_order(store, placed['id'], table.id)

    assert stock_of(milk) == Decimal('50')


@pytest.mark.django_db
def test_update_ingredient_stock_overwrites_without_bounds(store, milk):
    update_ingredient_stock(store, milk.id, Decimal('-3'))
    assert stock_of(milk) == Decimal('-3')

    row = update_ingredient_stock(store, milk.id, Decimal('110'))
    assert row['stock_quantity'] == Decimal('110')


@pytest.mark.django_db
def test_low_stock_reclassified_after_restock(store):
    milk = Ingredient.objects.create(name='Milk', unit='l', stock_quantity=Decimal('5'), minimum_stock=Decimal('10'))
    row = store.select_one('ingredients', {'id': milk.id})
    assert is_low_stock(row)
    assert stock_label(row) == 'Low Stock'

    row = update_ingredient_stock(store, milk.id, Decimal('110'))

    assert not is_low_stock(row)
    assert stock_label(row) == 'In Stock'


def test_stock_equal_to_minimum_is_low():
    ingredients = [
        {'name': 'Sugar', 'stock_quantity': Decimal('10'), 'minimum_stock': Decimal('10')},
        {'name': 'Tea', 'stock_quantity': Decimal('11'), 'minimum_stock': Decimal('10')},
        {'name': 'Ice', 'stock_quantity': Decimal('-2'), 'minimum_stock': Decimal('0')},
    ]

    assert [i['name'] for i in low_stock_ingredients(ingredients)] == ['Sugar', 'Ice']


class FailingTableStore(Store):
    def update(self, table, row_id, values):
        if table == 'tables':
            raise StoreError("timeout", table=table)
        return super().update(table, row_id, values)


@pytest.mark.django_db
def test_confirm_payment_failure_can_leave_table_occupied(store, table, latte):
    placed = place_lattes(store, table, latte)

    with pytest.raises(WorkflowError) as excinfo:
        confirm_payment(FailingTableStore(), placed['id'], table.id)

    assert excinfo.value.is_partial
    assert excinfo.value.sequence.failed_step.name == 'free_table'
    table.refresh_from_db()
    assert Order.objects.get(pk=placed['id']).status == 'completed'
    assert table.status == 'occupied'


@pytest.mark.django_db
def test_dashboard_partitions_orders_and_flags_low_stock(store, latte, milk):
    tables = [Table.objects.create(number=n) for n in (1, 2, 3)]
    first = place_lattes(store, tables[0], latte)
    second = place_lattes(store, tables[1], latte)
    place_lattes(store, tables[2], latte)
    confirm_payment(store, first['id'], tables[0].id)
    cancel_order(store, second['id'], tables[1].id)
    Ingredient.objects.filter(pk=milk.pk).update(stock_quantity=Decimal('1'))

    dashboard = StaffDashboard(store)
    assert dashboard.refresh() == {'orders', 'ingredients'}

    assert len(dashboard.pending_orders) == 1
    assert [o['id'] for o in dashboard.completed_orders] == [first['id']]
    assert [o['id'] for o in dashboard.cancelled_orders] == [second['id']]
    assert [i['name'] for i in dashboard.low_stock] == ['Milk']
    assert dashboard.orders[0]['order_details'][0]['menu_item']['name'] == 'Latte'


@pytest.mark.django_db
def test_dashboard_reloads_only_views_touched_by_changes(store, table, latte, milk):
    dashboard = StaffDashboard(store)
    dashboard.watch()
    try:
        dashboard.refresh()
        assert dashboard.stale == frozenset()

        update_ingredient_stock(store, milk.id, Decimal('7'))
        assert dashboard.stale == {'ingredients'}
        assert dashboard.refresh() == {'ingredients'}

        place_lattes(store, table, latte)
        assert 'orders' in dashboard.stale
        dashboard.refresh()
        assert len(dashboard.pending_orders) == 1
    finally:
        dashboard.close()

    update_ingredient_stock(store, milk.id, Decimal('9'))
    assert dashboard.stale == frozenset()


@pytest.mark.django_db
def test_restock_adds_to_current_level(store, milk):
    update_ingredient_stock(store, milk.id, Decimal('-4'))

    row = restock_ingredient(store, milk.id)

    assert row['stock_quantity'] == Decimal('96')
    assert restock_ingredient(store, milk.id, Decimal('2.5'))['stock_quantity'] == Decimal('98.5')
