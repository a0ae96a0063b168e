"""
Order Rush Simulation Script

Registers a crowd of diners and fires their orders concurrently at a
running pizza service to check the ordering path under load.
Run from project root: python scripts/simulate.py --orders 50

The admin account given on the command line is used to make sure a
franchise, a store and a menu exist before the rush starts.
"""

import argparse
import asyncio
import random
import time
import uuid
from datetime import datetime
from typing import Any

import httpx

# Configuration
API_BASE_URL = "http://localhost:3000"
TOTAL_ORDERS = 50

MENU = [
    {"title": "Veggie", "description": "A garden of delight", "image": "pizza1.png", "price": 0.0038},
    {"title": "Pepperoni", "description": "Spicy treat", "image": "pizza2.png", "price": 0.0042},
    {"title": "Margarita", "description": "Essential classic", "image": "pizza3.png", "price": 0.0042},
    {"title": "Crusty", "description": "A dry mouthed favorite", "image": "pizza4.png", "price": 0.0028},
]


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# SETUP
# =============================================================================

async def prepare_catalog(
    client: httpx.AsyncClient,
    admin_email: str,
    admin_password: str,
) -> tuple[dict, list[dict]]:
    """Log in as admin; return a store to order from and the menu."""
    response = await client.put("/api/auth", json={"email": admin_email, "password": admin_password})
    response.raise_for_status()
    token = response.json()["token"]

    menu = (await client.get("/api/order/menu")).json()
    if not menu:
        for item in MENU:
            response = await client.put("/api/order/menu", json=item, headers=_auth(token))
            response.raise_for_status()
        menu = response.json()

    franchise = (await client.post(
        "/api/franchise",
        json={"name": f"rush-{uuid.uuid4().hex[:6]}", "admins": []},
        headers=_auth(token),
    )).json()
    store = (await client.post(
        f"/api/franchise/{franchise['id']}/store",
        json={"name": "Rush Store"},
        headers=_auth(token),
    )).json()

    await client.delete("/api/auth", headers=_auth(token))
    return store, menu


# =============================================================================
# ONE DINER
# =============================================================================

async def diner_places_order(
    client: httpx.AsyncClient,
    order_num: int,
    store: dict,
    menu: list[dict],
) -> dict[str, Any]:
    """Register a diner, order 1-4 random pizzas, log out."""
    name = f"diner-{uuid.uuid4().hex[:8]}"
    start_time = time.time()

    try:
        response = await client.post(
            "/api/auth",
            json={"name": name, "email": f"{name}@rush.test", "password": "diner"},
        )
        response.raise_for_status()
        token = response.json()["token"]

        picks = random.choices(menu, k=random.randint(1, 4))
        response = await client.post(
            "/api/order",
            json={
                "franchiseId": store["franchiseId"],
                "storeId": store["id"],
                "items": [
                    {"menuId": p["id"], "description": p["title"], "price": p["price"]}
                    for p in picks
                ],
            },
            headers=_auth(token),
        )
        elapsed = round(time.time() - start_time, 3)
        await client.delete("/api/auth", headers=_auth(token))

        body = response.json()
        if response.status_code == 200:
            return {
                "order_num": order_num,
                "success": True,
                "order_id": body["order"]["id"],
                "total": sum(p["price"] for p in picks),
                "time": elapsed,
            }
        return {
            "order_num": order_num,
            "success": False,
            "error": body.get("message", response.text[:100]),
            "report": body.get("followLinkToEndChaos"),
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(
    base_url: str,
    admin_email: str,
    admin_password: str,
    num_orders: int = TOTAL_ORDERS,
) -> dict[str, Any]:
    print("=" * 70)
    print("🔥 ORDER RUSH SIMULATION")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {base_url}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    async with httpx.AsyncClient(base_url=base_url, timeout=30.0) as client:
        store, menu = await prepare_catalog(client, admin_email, admin_password)
        print(f"\n🏪 Ordering from store #{store['id']} ({len(menu)} menu items)")
        print("\n🚀 Firing orders...\n")

        start_time = time.time()
        results = await asyncio.gather(*[
            diner_places_order(client, i + 1, store, menu) for i in range(num_orders)
        ])
        total_time = round(time.time() - start_time, 2)

        franchises = (await client.get("/api/franchise", params={"limit": 100})).json()["franchises"]

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Fulfilled Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        times = [r["time"] for r in successful]
        print("\n📈 Performance Metrics:")
        print(f"   Average Response: {round(sum(times) / len(times), 3)}s")
        print(f"   Fastest: {min(times)}s")
        print(f"   Slowest: {max(times)}s")

    # Failed factory calls still count: the order is stored before fulfillment
    expected = sum(r.get("total", 0) for r in successful)
    stores = {s["id"]: s for f in franchises for s in f["stores"]}
    recorded = stores.get(store["id"], {}).get("totalRevenue", 0.0)
    print(f"\n💰 Store revenue: {recorded:.4f} (fulfilled orders alone: {expected:.4f})")

    if failed:
        print("\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f['error']} {f.get('report') or ''}")

    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Fire concurrent orders at the pizza service")
    parser.add_argument("--url", default=API_BASE_URL)
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS)
    parser.add_argument("--admin-email", default="a@jwt.com")
    parser.add_argument("--admin-password", default="admin")
    args = parser.parse_args()

    asyncio.run(run_simulation(args.url, args.admin_email, args.admin_password, args.orders))


if __name__ == "__main__":
    main()
