from __future__ import annotations

from ..store import Store
from .steps import WriteSequence

DEDUCT = -1
RESTORE = 1


def apply_recipe(store: Store, menu_item_id: int, portions: int, direction: int, sequence: WriteSequence) -> None:
    """Move ingredient stock for ``portions`` servings of a menu item.

    ``DEDUCT`` takes ``quantity_needed * portions`` out of every ingredient in
    the item's recipe, ``RESTORE`` puts the same amount back. Stock has no
    floor.
    """
    step_name = 'deduct_stock' if direction == DEDUCT else 'restore_stock'
    with sequence.step(step_name, menu_item_id=menu_item_id, portions=portions) as record:
        record.detail['ingredients'] = []
        recipe = store.select('item_ingredients', filters={'menu_item_id': menu_item_id}, related=['ingredient'])
        for component in recipe:
            ingredient = component['ingredient']
            change = component['quantity_needed'] * portions * direction
            store.update(
                'ingredients',
                component['ingredient_id'],
                {'stock_quantity': ingredient['stock_quantity'] + change},
            )
            record.detail['ingredients'].append(component['ingredient_id'])
