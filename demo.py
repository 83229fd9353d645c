#!/usr/bin/env python
from decimal import Decimal

from sdk.billing_client import BillingClient


def main():
    c = BillingClient(base_url="http://127.0.0.1:8085")

    # -----------------------------
    # Reset everything for demo
    # -----------------------------
    print("Resetting session...")
    c.reset()

    # -----------------------------
    # Seed the emulated store
    # -----------------------------
    print("\nSeeding store catalog...")
    print(c.register_product("coins_100", "100 Coins", Decimal("0.99")))
    print(c.register_product("remove_ads", "Remove Ads", Decimal("1.99")))
    print(c.register_product("vip_monthly", "VIP Monthly", Decimal("4.99"), product_type="subscription"))
    print(c.store_settings(owned=["starter_pack"]))

    # -----------------------------
    # Fetch products (fills the product cache)
    # -----------------------------
    print("\nFetching products...")
    print(c.fetch_products(["coins_100", "remove_ads", "unknown"]))

    # -----------------------------
    # Purchase
    # -----------------------------
    print("\nPurchasing remove_ads...")
    print(c.purchase("remove_ads").json())

    print("\nPurchasing something not in the catalog...")
    r = c.purchase("unknown")
    print(r.status_code, r.json())

    print("\nPurchasing coins_100 (consumed, so never restored)...")
    print(c.purchase("coins_100", consume=True).json())

    # -----------------------------
    # Subscriptions
    # -----------------------------
    print("\nFetching subscriptions...")
    print(c.fetch_subscriptions(["vip_monthly"]))
    print(c.subscribe("vip_monthly").json())

    # -----------------------------
    # Restore
    # -----------------------------
    print("\nRestoring purchases...")
    print(c.fetch_purchases())

    print("\nSession state...")
    print(c.debug_state())


if __name__ == "__main__":
    main()
