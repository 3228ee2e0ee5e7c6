from decimal import Decimal

import pytest
from django.core.cache import cache

from posapi.models import Ingredient, ItemIngredient, MenuItem, Table
from posapi.store import Store


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def store():
    return Store()


@pytest.fixture()
def table(db):
    return Table.objects.create(number=3, capacity=4)


@pytest.fixture()
def milk(db):
    return Ingredient.objects.create(
        name='Milk', unit='unit', stock_quantity=Decimal('50'), minimum_stock=Decimal('10'),
    )


@pytest.fixture()
def coffee(db):
    return Ingredient.objects.create(
        name='Coffee', unit='unit', stock_quantity=Decimal('40'), minimum_stock=Decimal('5'),
    )


@pytest.fixture()
def latte(db, milk, coffee):
    item = MenuItem.objects.create(name='Latte', description='Espresso with steamed milk', price=Decimal('4.00'))
    ItemIngredient.objects.create(menu_item=item, ingredient=milk, quantity_needed=Decimal('1'))
    ItemIngredient.objects.create(menu_item=item, ingredient=coffee, quantity_needed=Decimal('1'))
    return item


@pytest.fixture()
def croissant(db):
    butter = Ingredient.objects.create(
        name='Butter', unit='g', stock_quantity=Decimal('300'), minimum_stock=Decimal('50'),
    )
    item = MenuItem.objects.create(name='Croissant', price=Decimal('3.00'))
    ItemIngredient.objects.create(menu_item=item, ingredient=butter, quantity_needed=Decimal('30'))
    return item


def stock_of(ingredient):
    ingredient.refresh_from_db()
    return ingredient.stock_quantity
