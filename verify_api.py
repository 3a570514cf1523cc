import json
import os
import sys
import tempfile

import requests

from aurora.analytics import CartMirror, LocalStorage

BASE_URL = "http://localhost:3000"
PRODUCT_ID = "AUR-001"


def print_step(name, payload):
    print(f"--- {name} ---")
    print(json.dumps(payload, indent=2, default=str))
    print("\n")


def run_verification(base_url=BASE_URL):
    storage = LocalStorage(os.path.join(tempfile.mkdtemp(), "storage.json"))
    mirror = CartMirror(base_url=base_url, storage=storage, on_notice=lambda n: print(f"[{n.kind}] {n.message}"))

    # 1. Catalog
    print("1. Fetching products...")
    resp = requests.get(f"{base_url}/api/products")
    products = resp.json()
    print(f"Status: {resp.status_code}, {len(products)} products\n")
    if resp.status_code != 200 or not products:
        print("Catalog unavailable, aborting.")
        return False

    # 2. Page load + product click
    print("2. Loading storefront...")
    print_step("Cart count", mirror.start())
    mirror.product_click(products[0], position=1)

    # 3. Add the same variant twice
    print("3. Adding to cart...")
    mirror.add_to_cart(PRODUCT_ID, quantity=2, color="Black", size="M")
    print_step("Cart", mirror.add_to_cart(PRODUCT_ID, quantity=1, color="Black", size="M"))

    # 4. Quantity change
    print("4. Decreasing quantity...")
    print_step("Cart", mirror.update_quantity(PRODUCT_ID, -1, color="Black", size="M"))

    # 5. Checkout
    print("5. Checking out...")
    mirror.open_cart()
    order_id = mirror.checkout({
        "firstName": "Verify",
        "lastName": "Script",
        "email": "verify@example.com",
        "address": "1 Test Street",
        "city": "Portland",
        "state": "OR",
        "zip": "97201"
    })
    print_step("Order", mirror.data_layer.get_order())

    # 6. Empty cart checkout (expected soft failure)
    print("6. Checking out an empty cart (expected failure)...")
    print_step("Result", mirror.checkout({"firstName": "Verify"}))

    print_step("Events", [push["event"] for push in mirror.data_layer.get_all_pushes()])
    return order_id is not None


if __name__ == "__main__":
    ok = run_verification(sys.argv[1] if len(sys.argv) > 1 else BASE_URL)
    sys.exit(0 if ok else 1)
