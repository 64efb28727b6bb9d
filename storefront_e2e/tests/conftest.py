"""
Shared fixtures: in-memory targets standing in for a browser.

FakeStorefront mimics just enough of the SauceDemo pages for the bundled
suites to run end to end. StubTarget serves fixed values for unit tests.
"""

import asyncio
import re
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

import pytest

from storefront_e2e.config import RunSettings
from storefront_e2e.target import InfrastructureError

BASE_URL = "https://shop.test"

PRODUCTS = [
    ("sauce-labs-backpack", "Sauce Labs Backpack", 29.99),
    ("sauce-labs-bike-light", "Sauce Labs Bike Light", 9.99),
    ("sauce-labs-bolt-t-shirt", "Sauce Labs Bolt T-Shirt", 15.99),
    ("sauce-labs-fleece-jacket", "Sauce Labs Fleece Jacket", 49.99),
    ("sauce-labs-onesie", "Sauce Labs Onesie", 7.99),
    ("test.allthethings()-t-shirt-(red)", "Test.allTheThings() T-Shirt (Red)", 15.99),
]

PAGE_PATHS = {
    "login": "/",
    "inventory": "/inventory.html",
    "details": "/inventory-item.html",
    "cart": "/cart.html",
    "checkout_info": "/checkout-step-one.html",
    "checkout_overview": "/checkout-step-two.html",
    "complete": "/checkout-complete.html",
}

TITLES = {
    "inventory": "Products",
    "cart": "Your Cart",
    "checkout_info": "Checkout: Your Information",
    "checkout_overview": "Checkout: Overview",
    "complete": "Checkout: Complete!",
}

CART_BUTTON = re.compile(r'\[data-test="(add-to-cart|remove)-(.+)"\]')


class FakeStorefront:
    """Single-page fake of the demo store."""

    def __init__(self, base_url: str = BASE_URL):
        self.base_url = base_url
        self.page = "blank"
        self.fields: Dict[str, str] = {}
        self.error: Optional[str] = None
        self.logged_in = False
        self.cart: List[str] = []
        self.sort = "az"
        self.details: Optional[str] = None
        self.calls: List[tuple] = []

    # Helpers

    def _go(self, page: str) -> None:
        self.page = page
        self.fields = {}
        self.error = None

    def _sorted_products(self) -> list:
        if self.sort == "lohi":
            return sorted(PRODUCTS, key=lambda p: p[2])
        if self.sort == "hilo":
            return sorted(PRODUCTS, key=lambda p: -p[2])
        return sorted(PRODUCTS, key=lambda p: p[1], reverse=(self.sort == "za"))

    def _elements(self) -> Dict[str, List[str]]:
        elements: Dict[str, List[str]] = {}
        if self.page in TITLES:
            elements[".title"] = [TITLES[self.page]]
        if self.error:
            elements['[data-test="error"]'] = [self.error]
        if self.logged_in and self.page != "login" and self.cart:
            elements[".shopping_cart_badge"] = [str(len(self.cart))]
        if self.page == "inventory":
            products = self._sorted_products()
            elements[".inventory_item"] = [p[1] for p in products]
            elements[".inventory_item_name"] = [p[1] for p in products]
            elements[".inventory_item_price"] = [f"${p[2]:.2f}" for p in products]
        if self.page == "details":
            product = next(p for p in PRODUCTS if p[0] == self.details)
            elements[".inventory_details_name"] = [product[1]]
            elements[".inventory_details_desc"] = [f"{product[1]} description"]
            elements[".inventory_details_price"] = [f"${product[2]:.2f}"]
        if self.page in ("cart", "checkout_overview"):
            elements[".cart_item"] = [p[1] for p in PRODUCTS if p[0] in self.cart]
        if self.page == "complete":
            elements[".complete-header"] = ["Thank you for your order!"]
        return elements

    def _missing(self, locator: str) -> TimeoutError:
        return TimeoutError(f"Element '{locator}' not found on {self.page}")

    # Actions

    async def navigate(self, url: str) -> None:
        self.calls.append(("navigate", url))
        path = url[len(self.base_url):] if url.startswith(self.base_url) else url
        page = next((name for name, p in PAGE_PATHS.items() if p == (path or "/")), None)
        if page is None:
            raise ConnectionError(f"net::ERR_NAME_NOT_RESOLVED at {url}")
        if page != "login" and not self.logged_in:
            page = "login"
        self._go(page)

    async def fill(self, locator: str, value: str) -> None:
        self.calls.append(("fill", locator, value))
        allowed = {
            "login": ("#user-name", "#password"),
            "checkout_info": (
                '[data-test="firstName"]',
                '[data-test="lastName"]',
                '[data-test="postalCode"]',
            ),
        }.get(self.page, ())
        if locator not in allowed:
            raise self._missing(locator)
        self.fields[locator] = value

    async def click(self, locator: str) -> None:
        self.calls.append(("click", locator))
        page = self.page

        if page == "login" and locator == "#login-button":
            username = self.fields.get("#user-name", "")
            password = self.fields.get("#password", "")
            if not username:
                self.error = "Epic sadface: Username is required"
            elif not password:
                self.error = "Epic sadface: Password is required"
            elif (username, password) == ("standard_user", "secret_sauce"):
                self.logged_in = True
                self._go("inventory")
            else:
                self.error = (
                    "Epic sadface: Username and password do not match any user in this service"
                )
            return

        match = CART_BUTTON.fullmatch(locator)
        if match and page in ("inventory", "details"):
            action, product = match.groups()
            if product not in {p[0] for p in PRODUCTS}:
                raise self._missing(locator)
            if action == "add-to-cart" and product not in self.cart:
                self.cart.append(product)
                return
            if action == "remove" and product in self.cart:
                self.cart.remove(product)
                return
            raise self._missing(locator)

        if locator == ".shopping_cart_link" and page != "login":
            self._go("cart")
        elif locator == ".inventory_item_name >> nth=0" and page == "inventory":
            self.details = self._sorted_products()[0][0]
            self._go("details")
        elif locator == '[data-test="checkout"]' and page == "cart":
            self._go("checkout_info")
        elif locator == '[data-test="continue"]' and page == "checkout_info":
            for field, label in (
                ('[data-test="firstName"]', "First Name"),
                ('[data-test="lastName"]', "Last Name"),
                ('[data-test="postalCode"]', "Postal Code"),
            ):
                if not self.fields.get(field):
                    self.error = f"Error: {label} is required"
                    return
            self._go("checkout_overview")
        elif locator == '[data-test="cancel"]' and page == "checkout_overview":
            self._go("inventory")
        elif locator == '[data-test="finish"]' and page == "checkout_overview":
            self.cart = []
            self._go("complete")
        else:
            raise self._missing(locator)

    async def select_option(self, locator: str, value: str) -> None:
        self.calls.append(("select_option", locator, value))
        if locator != '[data-test="product-sort-container"]' or self.page != "inventory":
            raise self._missing(locator)
        if value not in ("az", "za", "lohi", "hilo"):
            raise ValueError(f"No option '{value}'")
        self.sort = value

    # Reads

    async def read_text(self, locator: str) -> Optional[str]:
        texts = self._elements().get(locator, [])
        return texts[0] if texts else None

    async def read_texts(self, locator: str) -> List[str]:
        return list(self._elements().get(locator, []))

    async def read_visibility(self, locator: str) -> bool:
        return bool(self._elements().get(locator))

    async def read_count(self, locator: str) -> int:
        return len(self._elements().get(locator, []))

    async def read_url(self) -> str:
        return self.base_url + PAGE_PATHS.get(self.page, "/")

    async def wait_for_quiescence(self, timeout_s: float) -> None:
        await asyncio.sleep(0)


class StubTarget:
    """
    Target serving fixed values, with optional delays per operation.

    Attributes:
        values: Locator -> value returned by every read.
        delays: Operation name -> seconds to sleep before answering.
        calls: Operations received, in order.
    """

    def __init__(self, values: Optional[dict] = None, url: str = BASE_URL + "/"):
        self.values = dict(values or {})
        self.url = url
        self.delays: Dict[str, float] = {}
        self.calls: List[tuple] = []

    async def _op(self, name: str, *args):
        self.calls.append((name,) + args)
        if name in self.delays:
            await asyncio.sleep(self.delays[name])

    async def navigate(self, url: str) -> None:
        await self._op("navigate", url)
        self.url = url

    async def fill(self, locator: str, value: str) -> None:
        await self._op("fill", locator, value)

    async def click(self, locator: str) -> None:
        await self._op("click", locator)

    async def select_option(self, locator: str, value: str) -> None:
        await self._op("select_option", locator, value)

    async def read_text(self, locator: str) -> Optional[str]:
        await self._op("read_text", locator)
        return self.values.get(locator)

    async def read_texts(self, locator: str) -> List[str]:
        await self._op("read_texts", locator)
        return list(self.values.get(locator, []))

    async def read_visibility(self, locator: str) -> bool:
        await self._op("read_visibility", locator)
        return bool(self.values.get(locator))

    async def read_count(self, locator: str) -> int:
        await self._op("read_count", locator)
        return int(self.values.get(locator, 0))

    async def read_url(self) -> str:
        await self._op("read_url")
        return self.url

    async def wait_for_quiescence(self, timeout_s: float) -> None:
        await self._op("wait_for_quiescence")


class FakeTargets:
    """
    Target factory handing out a new target per open().

    Attributes:
        opened: Targets handed out, in order.
        released: Number of targets released.
        fail_after: Raise InfrastructureError on open once this many targets were opened.
    """

    def __init__(self, make=lambda: FakeStorefront(BASE_URL), fail_after: Optional[int] = None):
        self.make = make
        self.fail_after = fail_after
        self.opened: list = []
        self.released = 0

    @asynccontextmanager
    async def open(self):
        if self.fail_after is not None and len(self.opened) >= self.fail_after:
            raise InfrastructureError("Browser is not running")
        target = self.make()
        self.opened.append(target)
        try:
            yield target
        finally:
            self.released += 1


@pytest.fixture
def settings() -> RunSettings:
    return RunSettings(step_timeout_s=1.0, assertion_timeout_s=0.0, poll_interval_s=0.01, workers=1)


@pytest.fixture
def storefront() -> FakeStorefront:
    return FakeStorefront(BASE_URL)


@pytest.fixture
def targets() -> FakeTargets:
    return FakeTargets()
