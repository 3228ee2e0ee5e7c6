from django.urls import re_path

from .consumers import ChangeFeedConsumer

websocket_urlpatterns = [
    re_path(r'ws/changes/(?P<table>\w+)/$', ChangeFeedConsumer.as_asgi()),
]
