from .bus import LocalBusConnector

__all__ = ["LocalBusConnector"]
