import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db.models.signals import post_delete, post_save

from .store import TABLES

logger = logging.getLogger(__name__)


def change_group(table):
    return f'changes_{table}'


def broadcast_change(table, kind, row_id):
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    async_to_sync(channel_layer.group_send)(
        change_group(table),
        {
            'type': 'row_change',
            'table': table,
            'event': kind,
            'id': row_id,
        }
    )


def _connect(table, model):
    def saved(sender, instance, created, **kwargs):
        broadcast_change(table, 'insert' if created else 'update', instance.pk)

    def deleted(sender, instance, **kwargs):
        broadcast_change(table, 'delete', instance.pk)

    post_save.connect(saved, sender=model, weak=False, dispatch_uid=f'broadcast_{table}_save')
    post_delete.connect(deleted, sender=model, weak=False, dispatch_uid=f'broadcast_{table}_delete')


for _table, _model in TABLES.items():
    _connect(_table, _model)
