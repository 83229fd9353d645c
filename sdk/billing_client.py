# sdk/billing_client.py
import requests
import httpx
from decimal import Decimal
from typing import Any, Dict, List, Optional


class BillingClient:
    def __init__(self, base_url: str = "http://localhost:8085", timeout: int = 10):
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.timeout = timeout

    def reset(self):
        return self.session.post(f"{self.base_url}/reset", timeout=self.timeout).json()

    def debug_state(self):
        r = self.session.get(f"{self.base_url}/debug/state", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # Store emulator: seed catalog and behaviour
    def register_product(self, identifier: str, title: str, price: Decimal, currency_code: str = "USD",
                         description: str = "", locale_tag: str = "en_US", product_type: str = "product"):
        r = self.session.post(f"{self.base_url}/store/products", json={
            "identifier": identifier,
            "title": title,
            "description": description,
            "price": str(price),
            "currency_code": currency_code,
            "formatted_price": f"{Decimal(price):.2f} {currency_code}",
            "locale_tag": locale_tag,
            "type": product_type,
        }, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def store_settings(self, owned: Optional[List[str]] = None, declined: Optional[List[str]] = None,
                       fail_products: Optional[bool] = None, fail_restore: Optional[bool] = None,
                       supports_subscriptions: Optional[bool] = None):
        payload = {"owned": owned, "declined": declined, "fail_products": fail_products,
                   "fail_restore": fail_restore, "supports_subscriptions": supports_subscriptions}
        r = self.session.post(f"{self.base_url}/store/settings",
                              json={k: v for k, v in payload.items() if v is not None}, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # Billing
    def fetch_products(self, identifiers: List[str]):
        r = self.session.post(f"{self.base_url}/products/fetch", json={"identifiers": identifiers}, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def fetch_subscriptions(self, identifiers: List[str]):
        r = self.session.post(f"{self.base_url}/subscriptions/fetch", json={"identifiers": identifiers}, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def purchase(self, identifier: str, consume: bool = False):
        r = self.session.post(f"{self.base_url}/purchase", json={"identifier": identifier, "consume": consume}, timeout=self.timeout)
        # do not r.raise_for_status() — callers may want to inspect 402/404/409
        return r

    def subscribe(self, identifier: str):
        r = self.session.post(f"{self.base_url}/subscribe", json={"identifier": identifier}, timeout=self.timeout)
        # like purchase(), 501 means the store has no subscription support
        return r

    def fetch_purchases(self):
        r = self.session.get(f"{self.base_url}/purchases", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def call_method(self, method: str, arguments: Optional[Dict[str, Any]] = None):
        r = self.session.post(f"{self.base_url}/method/{method}", json=arguments, timeout=self.timeout)
        r.raise_for_status()
        return r.json()["result"]

    # Async variants (used by the concurrent demo)
    async def purchase_async(self, identifier: str):
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(f"{self.base_url}/purchase", json={"identifier": identifier})

    async def fetch_purchases_async(self):
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            r = await client.get(f"{self.base_url}/purchases")
            r.raise_for_status()
            return r.json()


if __name__ == "__main__":
    import argparse
    from rich import print

    parser = argparse.ArgumentParser(description="Billing bridge client")
    subparsers = parser.add_subparsers(dest="command", required=True)

    fp = subparsers.add_parser("fetch-products", help="Fetch product details from the store")
    fp.add_argument("identifiers", nargs="+", help="Product identifiers")

    bp = subparsers.add_parser("purchase", help="Purchase a product")
    bp.add_argument("identifier", help="Product identifier")
    bp.add_argument("--consume", action="store_true", help="Consume the product right after purchase")

    sp = subparsers.add_parser("subscribe", help="Subscribe to a subscription product")
    sp.add_argument("identifier", help="Subscription identifier")

    fs = subparsers.add_parser("fetch-subscriptions", help="Fetch subscription details from the store")
    fs.add_argument("identifiers", nargs="+", help="Subscription identifiers")

    subparsers.add_parser("fetch-purchases", help="Restore and list owned products")

    rp = subparsers.add_parser("register-product", help="Add a product to the emulated store")
    rp.add_argument("--identifier", required=True)
    rp.add_argument("--title", required=True)
    rp.add_argument("--price", type=Decimal, required=True, help="Price, e.g. 1.99")
    rp.add_argument("--currency", default="USD")
    rp.add_argument("--type", default="product", choices=["product", "subscription"])

    args = parser.parse_args()
    c = BillingClient(base_url="http://127.0.0.1:8085")

    if args.command == "fetch-products":
        print(c.fetch_products(args.identifiers))
    elif args.command == "purchase":
        print(c.purchase(args.identifier, consume=args.consume).json())
    elif args.command == "subscribe":
        print(c.subscribe(args.identifier).json())
    elif args.command == "fetch-subscriptions":
        print(c.fetch_subscriptions(args.identifiers))
    elif args.command == "fetch-purchases":
        print(c.fetch_purchases())
    elif args.command == "register-product":
        print(c.register_product(args.identifier, args.title, args.price, args.currency, product_type=args.type))
