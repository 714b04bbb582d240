"""
Kitchen display support: board state reducer and API client.
"""

from quickserve.kitchen.client import KitchenApiClient
from quickserve.kitchen.coordinator import KitchenBoard

__all__ = ["KitchenApiClient", "KitchenBoard"]
