from .connector import RedisConnector

__all__ = ["RedisConnector"]
