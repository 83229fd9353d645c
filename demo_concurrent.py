import asyncio
from decimal import Decimal

from sdk.billing_client import BillingClient


async def restore(client, label):
    try:
        owned = await client.fetch_purchases_async()
        print(f"✅ {label} restored: {owned}")
    except Exception as e:
        print(f"❌ {label} restore failed: {e}")


async def main():
    c = BillingClient(base_url="http://127.0.0.1:8085")
    c.reset()

    c.register_product("gold_skin", "Gold Skin", Decimal("4.99"))
    c.store_settings(owned=["starter_pack", "season_pass"])
    c.fetch_products(["gold_skin"])
    print("🛒 purchase:", c.purchase("gold_skin").json())

    # All restores below share a single store restore cycle
    print("\n⚡ Restoring from several callers at once...")
    await asyncio.gather(*(restore(c, f"caller-{i}") for i in range(5)))

    print("\n📦 Final state:", c.debug_state())


if __name__ == "__main__":
    asyncio.run(main())
