"""Ordering sessions kept between requests, one per table."""
from django.apps import apps
from django.conf import settings
from django.core.cache import cache

from .workflow import OrderingSession


def get_store():
    return apps.get_app_config('posapi').store


def session_key(table_id):
    return f"ordering:table:{table_id}"


def load_session(table_id):
    state = cache.get(session_key(table_id))
    if state is None:
        return None
    return OrderingSession.from_state(get_store(), state)


def save_session(table_id, session):
    cache.set(session_key(table_id), session.to_state(), settings.ORDER_SESSION_TTL)


def clear_session(table_id):
    cache.delete(session_key(table_id))
