"""Estadísticas de procesamiento."""

from __future__ import annotations

import threading
import time
from datetime import datetime, timezone


class Stats:
    """Contadores por resultado de despacho.

    Se actualiza desde el hilo de red de paho; los contadores se protegen
    con un lock para permitir handlers concurrentes.
    """

    FIELDS = (
        "received",
        "forwarded",
        "decode_failed",
        "no_route",
        "policy_rejected",
        "sensor_id_missing",
        "forward_failed",
    )

    def __init__(self):
        self._lock = threading.Lock()
        self._counts = dict.fromkeys(self.FIELDS, 0)
        self.last_message_at: float = 0
        self.started_at = datetime.now(timezone.utc)

    def incr(self, name: str) -> None:
        """Incrementa un contador."""
        with self._lock:
            self._counts[name] += 1
            if name == "received":
                self.last_message_at = time.time()

    def __getattr__(self, name: str) -> int:
        if name in Stats.FIELDS:
            return self._counts[name]
        raise AttributeError(name)

    @property
    def failed(self) -> int:
        """Mensajes descartados por cualquier motivo."""
        with self._lock:
            return sum(v for k, v in self._counts.items() if k not in ("received", "forwarded"))

    def __str__(self) -> str:
        return (
            f"Stats: received={self.received} forwarded={self.forwarded} "
            f"failed={self.failed}"
        )

    def to_dict(self) -> dict:
        """Convierte a diccionario."""
        with self._lock:
            data = dict(self._counts)
        data["failed"] = sum(v for k, v in data.items() if k not in ("received", "forwarded"))
        data["last_message_at"] = self.last_message_at
        data["started_at"] = self.started_at.isoformat()
        data["success_rate"] = self._success_rate(data)
        return data

    @staticmethod
    def _success_rate(data: dict) -> float:
        total = data["forwarded"] + data["failed"]
        if total == 0:
            return 1.0
        return data["forwarded"] / total
