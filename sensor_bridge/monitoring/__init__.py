"""Monitoring - Estadísticas del bridge."""

from .stats import Stats

__all__ = ["Stats"]
