#!/usr/bin/env python3
"""
Storefront E2E smoke checks against a running instance.

Run:
  storefront-seed          # prints the two tokens
  ADMIN_TOKEN=... CUSTOMER_TOKEN=... python e2e_smoke.py

Optional env:
  STOREFRONT_BASE=http://localhost:8000
  DEBUG=1
"""

from __future__ import annotations

import os
import sys
import time
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests


# =========================
# Simple CLI UI (ANSI)
# =========================

class Style:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    BLUE = "\033[94m"
    GRAY = "\033[90m"


def section_title(text: str):
    print(f"\n{Style.BLUE}{Style.BOLD}== {text} =={Style.RESET}")


def ok(msg: str):
    print(f"{Style.GREEN}✔ {msg}{Style.RESET}")


def fail(msg: str):
    print(f"{Style.RED}✘ {msg}{Style.RESET}")


# =========================
# Config
# =========================

BASE = os.getenv("STOREFRONT_BASE", "http://localhost:8000")
ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", "")
CUSTOMER_TOKEN = os.getenv("CUSTOMER_TOKEN", "")
DEBUG = os.getenv("DEBUG", "0").strip() in {"1", "true", "True", "YES", "yes"}

INITIAL_STOCK = 5
UNIT_PRICE = 10.0

SHIPPING = {
    "name": "Smoke Tester",
    "email": "smoke@example.com",
    "phone": "5551234567",
    "address": "1 Test Street",
    "city": "Testville",
    "postalCode": "12345",
    "country": "Testland",
}


def debug(msg: str):
    if DEBUG:
        print(f"{Style.GRAY}… {msg}{Style.RESET}")


@dataclass
class CheckResult:
    name: str
    success: bool
    details: str = ""


# =========================
# HTTP helpers
# =========================

def http(method: str, path: str, token: str = "", **kwargs) -> requests.Response:
    kwargs.setdefault("timeout", 8)
    if token:
        kwargs.setdefault("headers", {})["Authorization"] = f"Bearer {token}"
    debug(f"{method} {path} json={kwargs.get('json')}")
    return requests.request(method, BASE + path, **kwargs)


def wait_for_health(timeout: int = 30) -> bool:
    start = time.time()
    while time.time() - start < timeout:
        try:
            if http("GET", "/").status_code == 200:
                ok("Storefront is healthy.")
                return True
        except requests.exceptions.RequestException as e:
            debug(f"not ready: {e}")
        time.sleep(1)
    fail(f"Storefront did not become healthy in {timeout} seconds.")
    return False


def create_product() -> Dict[str, Any]:
    payload = {
        "name": f"Smoke Product {uuid.uuid4().hex[:8]}",
        "description": "Created by e2e_smoke.py",
        "price": UNIT_PRICE,
        "category": "Smoke",
        "stock": INITIAL_STOCK,
    }
    resp = http("POST", "/api/products", ADMIN_TOKEN, json=payload)
    resp.raise_for_status()
    return resp.json()["data"]


def product_stock(product_id: int) -> int:
    resp = http("GET", f"/api/products/{product_id}")
    resp.raise_for_status()
    return resp.json()["data"]["stock"]


def place_order(product_id: int, quantity: int) -> requests.Response:
    payload = {
        "products": [{"productId": product_id, "quantity": quantity}],
        "shippingAddress": SHIPPING,
        "paymentMethod": "paypal",
    }
    return http("POST", "/api/orders", CUSTOMER_TOKEN, json=payload)


# =========================
# Scenarios
# =========================

def scenario_happy_path() -> List[CheckResult]:
    section_title("Happy Path")
    product = create_product()
    resp = place_order(product["id"], 2)
    if resp.status_code != 201:
        return [CheckResult("Place order", False, f"HTTP {resp.status_code}: {resp.text}")]

    order = resp.json()["data"]
    results = [
        CheckResult("Order total", order["totalPrice"] == 2 * UNIT_PRICE, f"totalPrice={order['totalPrice']}"),
        CheckResult("Order status", order["status"] == "Pending", f"status={order['status']}"),
    ]
    stock = product_stock(product["id"])
    results.append(CheckResult("Stock decremented", stock == INITIAL_STOCK - 2, f"stock={stock}"))
    return results


def scenario_insufficient_stock() -> List[CheckResult]:
    section_title("Insufficient Stock")
    product = create_product()
    resp = place_order(product["id"], INITIAL_STOCK * 2)
    message = resp.json().get("message", "")
    results = [
        CheckResult("Rejected with 400", resp.status_code == 400, f"HTTP {resp.status_code}"),
        CheckResult("Names availability", f"Available: {INITIAL_STOCK}" in message, message),
    ]
    stock = product_stock(product["id"])
    results.append(CheckResult("Stock unchanged", stock == INITIAL_STOCK, f"stock={stock}"))
    return results


def scenario_status_walk() -> List[CheckResult]:
    section_title("Status Walk")
    product = create_product()
    resp = place_order(product["id"], 1)
    if resp.status_code != 201:
        return [CheckResult("Place order", False, f"HTTP {resp.status_code}: {resp.text}")]
    order_id = resp.json()["data"]["id"]

    results = []
    skip = http("PATCH", f"/api/orders/{order_id}", ADMIN_TOKEN, json={"status": "Shipped"})
    results.append(CheckResult("Pending -> Shipped rejected", skip.status_code == 400, skip.text))

    for target in ("Processing", "Shipped", "Delivered"):
        step = http("PATCH", f"/api/orders/{order_id}", ADMIN_TOKEN, json={"status": target})
        results.append(CheckResult(f"-> {target}", step.status_code == 200, f"HTTP {step.status_code}"))

    back = http("PATCH", f"/api/orders/{order_id}", ADMIN_TOKEN, json={"status": "Processing"})
    results.append(CheckResult("Delivered is terminal", back.status_code == 400, back.text))
    return results


# =========================
# Summary
# =========================

def print_results(results: List[CheckResult]) -> int:
    print(f"\n{Style.BOLD}================ RESULTS ================{Style.RESET}")
    failed = 0
    for r in results:
        color = Style.GREEN if r.success else Style.RED
        print(f"{color}{'✅' if r.success else '❌'} {r.name}{Style.RESET}")
        if r.details:
            print(f"    {Style.DIM}{r.details}{Style.RESET}")
        failed += 0 if r.success else 1
    print(f"Total: {len(results)}  |  Passed: {len(results) - failed}  |  Failed: {failed}")
    return failed


def main(argv: Optional[List[str]] = None) -> int:
    if not ADMIN_TOKEN or not CUSTOMER_TOKEN:
        fail("Set ADMIN_TOKEN and CUSTOMER_TOKEN (printed by storefront-seed).")
        return 2
    if not wait_for_health():
        return 1

    results: List[CheckResult] = []
    for scenario in (scenario_happy_path, scenario_insufficient_stock, scenario_status_walk):
        try:
            results.extend(scenario())
        except requests.exceptions.RequestException as e:
            results.append(CheckResult(scenario.__name__, False, str(e)))

    return 1 if print_results(results) else 0


if __name__ == "__main__":
    sys.exit(main())
