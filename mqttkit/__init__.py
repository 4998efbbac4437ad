"""Building blocks for an MQTT client: connection status, topic validation, message routing and store keys."""

__version__ = "0.1.0"

__all__ = ["router", "status", "store", "topic"]