# src/services/realtime_ws/__init__.py
"""
Live-рассылка локаций геодезистов.

Обеспечивает:
- Реестр подписок по surveyor_id (LocationFanout)
- Ретрансляцию между инстансами через Redis Pub/Sub (RedisRelay)
"""

from src.services.realtime_ws.fanout import LocationFanout, Subscription
from src.services.realtime_ws.redis_relay import RedisRelay

__all__ = ["LocationFanout", "Subscription", "RedisRelay"]
