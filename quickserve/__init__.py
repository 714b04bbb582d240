"""
                QuickServe Ordering

Order lifecycle and inventory backend for dine-in restaurants:
atomic stock reservation, an explicit order status state machine and
real-time fan-out of order events to kitchen and customer screens.
"""

__version__ = "1.0.0"
