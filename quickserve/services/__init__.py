"""
                        Services Module

Collaborators of the ordering core, each with an in-memory implementation
(development, tests) and a SQL implementation (staging, production):
    - inventory: stock per menu item with atomic reservation
    - tables: dining table lookup
    - store: order persistence and order numbering
    - broadcast: real-time fan-out to connected screens
    - ordering: the order lifecycle service composing all of the above
"""

from quickserve.services.broadcast import EventBroadcaster, get_broadcaster
from quickserve.services.ordering import CartLine, OrderService, get_order_service

__all__ = ["EventBroadcaster", "get_broadcaster", "CartLine", "OrderService", "get_order_service"]
