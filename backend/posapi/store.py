"""
Row-level client for the cafe backend schema.

Every workflow talks to the database through one ``Store`` instance that is
created when the app starts and handed to the workflow code. Rows travel as
plain dicts keyed by column name, foreign keys as ``<name>_id``. Nothing here
opens a transaction: each call is one independent read or write.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from django.core.exceptions import (
    FieldError,
    MultipleObjectsReturned,
    ObjectDoesNotExist,
    ValidationError,
)
from django.db import DatabaseError, models
from django.db.models.signals import post_delete, post_save

from .models import Ingredient, ItemIngredient, MenuItem, Order, OrderDetail, Table

logger = logging.getLogger(__name__)

TABLES = {
    'tables': Table,
    'menu_items': MenuItem,
    'ingredients': Ingredient,
    'item_ingredients': ItemIngredient,
    'orders': Order,
    'order_details': OrderDetail,
}

# Failures of the underlying ORM call that surface as StoreError.
_STORE_FAILURES = (
    DatabaseError,
    FieldError,
    ValidationError,
    ObjectDoesNotExist,
    MultipleObjectsReturned,
    AttributeError,
    ValueError,
)


class StoreError(Exception):
    def __init__(self, message, table=None):
        super().__init__(message)
        self.table = table


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    kind: str  # insert | update | delete
    row_id: int


def _nest(related: Iterable[str]) -> Dict[str, List[str]]:
    """Group dotted relation paths by their first segment."""
    nested: Dict[str, List[str]] = {}
    for path in related:
        head, _, rest = path.partition('.')
        deeper = nested.setdefault(head, [])
        if rest:
            deeper.append(rest)
    return nested


def serialize_row(instance, related: Iterable[str] = ()) -> dict:
    row = {field.attname: field.value_from_object(instance) for field in instance._meta.concrete_fields}
    for name, deeper in _nest(related).items():
        value = getattr(instance, name)
        if isinstance(value, models.Manager):
            row[name] = [serialize_row(child, deeper) for child in value.all()]
        elif value is None:
            row[name] = None
        else:
            row[name] = serialize_row(value, deeper)
    return row


class Store:
    """Filtered reads, single-row inserts and updates, and change subscriptions."""

    def _model(self, table: str):
        try:
            return TABLES[table]
        except KeyError:
            raise StoreError(f"Unknown table '{table}'", table=table) from None

    def select(
        self,
        table: str,
        filters: Optional[Mapping] = None,
        order_by: Optional[Sequence[str]] = None,
        related: Iterable[str] = (),
    ) -> List[dict]:
        model = self._model(table)
        related = list(related)
        try:
            queryset = model.objects.filter(**dict(filters or {}))
            if order_by:
                queryset = queryset.order_by(*order_by)
            if related:
                queryset = queryset.prefetch_related(*[path.replace('.', '__') for path in related])
            return [serialize_row(instance, related) for instance in queryset]
        except _STORE_FAILURES as exc:
            raise StoreError(f"Select on '{table}' failed: {exc}", table=table) from exc

    def select_one(self, table: str, filters: Mapping, related: Iterable[str] = ()) -> Optional[dict]:
        rows = self.select(table, filters=filters, related=related)
        if len(rows) > 1:
            raise StoreError(f"Expected at most one row from '{table}', got {len(rows)}", table=table)
        return rows[0] if rows else None

    def insert(self, table: str, values: Mapping) -> dict:
        model = self._model(table)
        try:
            instance = model(**dict(values))
            instance.full_clean()
            instance.save()
        except _STORE_FAILURES as exc:
            raise StoreError(f"Insert into '{table}' failed: {exc}", table=table) from exc
        logger.debug("Inserted %s row %s", table, instance.pk)
        return serialize_row(instance)

    def update(self, table: str, row_id, values: Mapping) -> dict:
        model = self._model(table)
        values = dict(values)
        try:
            instance = model.objects.get(pk=row_id)
            for column, value in values.items():
                setattr(instance, column, value)
            instance.full_clean()
            fields = [model._meta.get_field(column).name for column in values]
            # auto_now columns are only written when listed
            fields += [
                field.name for field in model._meta.concrete_fields
                if getattr(field, 'auto_now', False) and field.name not in fields
            ]
            instance.save(update_fields=fields)
        except model.DoesNotExist as exc:
            raise StoreError(f"No row {row_id} in '{table}'", table=table) from exc
        except _STORE_FAILURES as exc:
            raise StoreError(f"Update of '{table}' row {row_id} failed: {exc}", table=table) from exc
        logger.debug("Updated %s row %s: %s", table, row_id, sorted(values))
        return serialize_row(instance)

    def on_change(self, table: str, callback: Callable[[ChangeEvent], None]) -> Callable[[], None]:
        """Call ``callback`` after every insert, update or delete on ``table``.

        Returns a function that removes the subscription.
        """
        model = self._model(table)

        def saved(sender, instance, created, **kwargs):
            callback(ChangeEvent(table, 'insert' if created else 'update', instance.pk))

        def deleted(sender, instance, **kwargs):
            callback(ChangeEvent(table, 'delete', instance.pk))

        post_save.connect(saved, sender=model, weak=False)
        post_delete.connect(deleted, sender=model, weak=False)

        def unsubscribe():
            post_save.disconnect(saved, sender=model)
            post_delete.disconnect(deleted, sender=model)

        return unsubscribe
