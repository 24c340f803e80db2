"""Forwarding - Envío de lecturas a la API de colección."""

from .api_client import APIClient, Forwarder

__all__ = ["APIClient", "Forwarder"]
