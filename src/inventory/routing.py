"""WebSocket URL routing for the inventory app."""

from django.urls import path

from inventory.consumers import ScannerConsumer

websocket_urlpatterns = [
    path("ws/scanner/", ScannerConsumer.as_asgi()),
]
