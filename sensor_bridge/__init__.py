"""Sensor bridge: MQTT topics → HTTP sensor data collection API.

Estructura:
- routing/     → Matching de topics y tabla de reglas
- domain/      → Payload y lectura de sensor
- transport/   → Cliente MQTT y motor de despacho
- forwarding/  → Cliente HTTP de la API
- monitoring/  → Estadísticas
"""

__version__ = "1.0.0"
