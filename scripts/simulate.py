"""
Stock Contention Simulation Script

Fires many concurrent orders for the same menu item at a running API and
checks that accepted quantities never exceed the starting stock.
Run from project root: python scripts/simulate.py --item coke --stock 20
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime
from typing import Any

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:3000"
TOTAL_ORDERS = 50

TABLE_IDS = [f"T{n}" for n in range(1, 11)]
INSTRUCTIONS = [None, "No ice", "Extra spicy", "Less salt", "Pack separately"]


def generate_order_payload(menu_item_id: str, max_quantity: int) -> dict[str, Any]:
    """Generate a single-line order for the contended item."""
    return {
        "table_id": random.choice(TABLE_IDS),
        "items": [
            {
                "menu_item_id": menu_item_id,
                "quantity": random.randint(1, max_quantity),
                "special_instructions": random.choice(INSTRUCTIONS),
            }
        ],
        "payment_method": random.choice(["cash", "card"]),
    }


async def send_order(
    client: httpx.AsyncClient,
    order_num: int,
    menu_item_id: str,
    max_quantity: int,
) -> dict[str, Any]:
    """Send one order and classify the outcome."""
    payload = generate_order_payload(menu_item_id, max_quantity)
    quantity = payload["items"][0]["quantity"]
    start_time = time.time()

    try:
        response = await client.post("/api/orders", json=payload, timeout=30.0)
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 201:
            data = response.json()
            return {
                "order_num": order_num,
                "outcome": "accepted",
                "order_number": data.get("order_number"),
                "quantity": quantity,
                "time": elapsed,
            }
        error = response.json().get("error", "") if response.content else ""
        return {
            "order_num": order_num,
            "outcome": "out_of_stock" if error == "OutOfStock" else "error",
            "quantity": quantity,
            "error": response.text[:100],
            "time": elapsed,
        }
    except Exception as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "order_num": order_num,
            "outcome": "error",
            "quantity": quantity,
            "error": str(e)[:100],
            "time": elapsed,
        }


async def run_simulation(
    menu_item_id: str,
    stock: int,
    num_orders: int = TOTAL_ORDERS,
    max_quantity: int = 3,
) -> bool:
    """
    Restock the item, fire the orders concurrently and verify the ledger.

    Returns:
        bool: True if accepted units never exceeded the starting stock
    """
    print("=" * 70)
    print("🔥 STOCK CONTENTION SIMULATION")
    print("=" * 70)
    print(f"📋 Orders: {num_orders} (1-{max_quantity} units each)")
    print(f"🍕 Item: {menu_item_id} (starting stock {stock})")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    async with httpx.AsyncClient(base_url=API_BASE_URL) as client:
        response = await client.put(
            f"/api/menu/{menu_item_id}/inventory",
            json={"inventory_count": stock},
        )
        if response.status_code != 200:
            print(f"❌ Restock failed: {response.text}")
            return False

        start_time = time.time()
        tasks = [send_order(client, i + 1, menu_item_id, max_quantity) for i in range(num_orders)]
        results = await asyncio.gather(*tasks)
        total_time = round(time.time() - start_time, 2)

        accepted = [r for r in results if r["outcome"] == "accepted"]
        rejected = [r for r in results if r["outcome"] == "out_of_stock"]
        errors = [r for r in results if r["outcome"] == "error"]
        reserved = sum(r["quantity"] for r in accepted)

        active = await client.get("/api/orders/active")
        active_count = len(active.json()) if active.status_code == 200 else 0

    remaining = stock - reserved

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Accepted: {len(accepted)} orders, {reserved} units")
    print(f"🚫 Out of stock: {len(rejected)}")
    print(f"❌ Errors: {len(errors)}")
    print(f"📦 Expected remaining stock: {remaining}")
    print(f"🧾 Active orders visible: {active_count}")
    print(f"⏱️  Total Time: {total_time}s")

    numbers = sorted(r["order_number"] for r in accepted)
    if len(set(numbers)) != len(numbers):
        print("\n⚠️ Duplicate order numbers detected!")

    if errors:
        print("\n⚠️  Error Details (showing first 5):")
        for r in errors[:5]:
            print(f"   Order #{r['order_num']}: {r.get('error', 'Unknown error')}")

    oversold = reserved > stock
    print("\n" + "=" * 70)
    print("❌ OVERSOLD" if oversold else "✅ NO OVERSELLING")
    print("=" * 70)
    return not oversold


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Stock Contention Simulation")
    parser.add_argument("--item", default="coke", help="Menu item id to contend on")
    parser.add_argument("--stock", type=int, default=20, help="Starting stock")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--max-quantity", type=int, default=3, help="Max units per order")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url
    ok = asyncio.run(run_simulation(args.item, args.stock, args.orders, args.max_quantity))
    sys.exit(0 if ok else 1)
