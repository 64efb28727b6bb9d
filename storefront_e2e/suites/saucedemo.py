"""
SauceDemo end-to-end suites.

Login, product catalog, shopping cart and checkout flows of
https://www.saucedemo.com. Prices, counts and messages below are the values
the demo store is expected to show; they are fixtures, not logic.
"""

from typing import List

from storefront_e2e.precondition import Precondition
from storefront_e2e.registry import Case, Registry, Suite
from storefront_e2e.steps import (
    click,
    expect_count,
    expect_hidden,
    expect_non_decreasing,
    expect_text,
    expect_text_contains,
    expect_url,
    expect_visible,
    fill,
    navigate,
    select_option,
)

DEFAULT_BASE_URL = "https://www.saucedemo.com"

STANDARD_USER = "standard_user"
PASSWORD = "secret_sauce"

# Locators
USERNAME_FIELD = "#user-name"
PASSWORD_FIELD = "#password"
LOGIN_BUTTON = "#login-button"
ERROR_MESSAGE = '[data-test="error"]'
TITLE = ".title"
INVENTORY_ITEM = ".inventory_item"
INVENTORY_ITEM_NAME = ".inventory_item_name"
INVENTORY_ITEM_PRICE = ".inventory_item_price"
SORT_SELECT = '[data-test="product-sort-container"]'
DETAILS_NAME = ".inventory_details_name"
DETAILS_DESC = ".inventory_details_desc"
DETAILS_PRICE = ".inventory_details_price"
CART_BADGE = ".shopping_cart_badge"
CART_LINK = ".shopping_cart_link"
CART_ITEM = ".cart_item"
CHECKOUT_BUTTON = '[data-test="checkout"]'
FIRST_NAME_FIELD = '[data-test="firstName"]'
LAST_NAME_FIELD = '[data-test="lastName"]'
POSTAL_CODE_FIELD = '[data-test="postalCode"]'
CONTINUE_BUTTON = '[data-test="continue"]'
CANCEL_BUTTON = '[data-test="cancel"]'
FINISH_BUTTON = '[data-test="finish"]'
COMPLETE_HEADER = ".complete-header"

BACKPACK = "sauce-labs-backpack"
BIKE_LIGHT = "sauce-labs-bike-light"
BOLT_TSHIRT = "sauce-labs-bolt-t-shirt"

CUSTOMER = {"first_name": "John", "last_name": "Doe", "postal_code": "12345"}


def add_to_cart(product: str) -> str:
    """Locator of a product's add-to-cart button."""
    return f'[data-test="add-to-cart-{product}"]'


def remove_from_cart(product: str) -> str:
    """Locator of a product's remove button."""
    return f'[data-test="remove-{product}"]'


def login_steps(base_url: str, username: str = STANDARD_USER, password: str = PASSWORD) -> list:
    """Open the login page and submit credentials."""
    return [
        navigate(f"{base_url}/"),
        fill(USERNAME_FIELD, username),
        fill(PASSWORD_FIELD, password),
        click(LOGIN_BUTTON),
    ]


def checkout_info_steps() -> list:
    """Start checkout and submit customer information."""
    return [
        click(CHECKOUT_BUTTON),
        fill(FIRST_NAME_FIELD, CUSTOMER["first_name"]),
        fill(LAST_NAME_FIELD, CUSTOMER["last_name"]),
        fill(POSTAL_CODE_FIELD, CUSTOMER["postal_code"]),
        click(CONTINUE_BUTTON),
    ]


def logged_in(base_url: str) -> Precondition:
    """Precondition: standard user logged in, on the inventory page."""
    return Precondition(
        "logged in",
        login_steps(base_url)
        + [expect_url(f"{base_url}/inventory.html", label="landed on inventory")],
    )


def logged_in_with_cart(base_url: str) -> Precondition:
    """Precondition: logged in with backpack and bike light in the cart, cart open."""
    return Precondition(
        "logged in with two items in cart",
        logged_in(base_url).steps
        + (
            click(add_to_cart(BACKPACK)),
            click(add_to_cart(BIKE_LIGHT)),
            click(CART_LINK),
        ),
    )


def login_suite(base_url: str) -> Suite:
    return Suite(
        "SauceDemo - Login",
        tags=("login", "smoke"),
        cases=[
            Case(
                "should login successfully with valid credentials",
                login_steps(base_url)
                + [
                    expect_url(f"{base_url}/inventory.html"),
                    expect_text(TITLE, "Products"),
                ],
            ),
            Case(
                "should show error with invalid credentials",
                login_steps(base_url, "invalid_user", "wrong_password")
                + [
                    expect_visible(ERROR_MESSAGE),
                    expect_text_contains(ERROR_MESSAGE, "Username and password do not match"),
                ],
            ),
            Case(
                "should show error when fields are empty",
                [
                    navigate(f"{base_url}/"),
                    click(LOGIN_BUTTON),
                    expect_visible(ERROR_MESSAGE),
                    expect_text_contains(ERROR_MESSAGE, "Username is required"),
                ],
            ),
        ],
    )


def catalog_suite(base_url: str) -> Suite:
    return Suite(
        "SauceDemo - Product Catalog",
        precondition=logged_in(base_url),
        tags=("catalog",),
        cases=[
            Case(
                "should display all products",
                [expect_count(INVENTORY_ITEM, 6)],
            ),
            Case(
                "should sort products by price low to high",
                [
                    select_option(SORT_SELECT, "lohi"),
                    expect_non_decreasing(
                        INVENTORY_ITEM_PRICE, convert="price", label="prices are ascending"
                    ),
                ],
            ),
            Case(
                "should view product details",
                [
                    click(f"{INVENTORY_ITEM_NAME} >> nth=0", label="open first product"),
                    expect_visible(DETAILS_NAME),
                    expect_visible(DETAILS_DESC),
                    expect_visible(DETAILS_PRICE),
                ],
            ),
        ],
    )


def cart_suite(base_url: str) -> Suite:
    return Suite(
        "SauceDemo - Shopping Cart",
        precondition=logged_in(base_url),
        tags=("cart",),
        cases=[
            Case(
                "should add product to cart",
                [
                    click(add_to_cart(BACKPACK)),
                    expect_text(CART_BADGE, "1"),
                ],
            ),
            Case(
                "should add multiple products to cart",
                [
                    click(add_to_cart(BACKPACK)),
                    click(add_to_cart(BIKE_LIGHT)),
                    click(add_to_cart(BOLT_TSHIRT)),
                    expect_text(CART_BADGE, "3"),
                ],
            ),
            Case(
                "should remove product from cart",
                [
                    click(add_to_cart(BACKPACK)),
                    click(remove_from_cart(BACKPACK)),
                    expect_hidden(CART_BADGE),
                ],
            ),
            Case(
                "should view cart with added products",
                [
                    click(add_to_cart(BACKPACK)),
                    click(add_to_cart(BIKE_LIGHT)),
                    click(CART_LINK),
                    expect_url(f"{base_url}/cart.html"),
                    expect_count(CART_ITEM, 2),
                ],
            ),
        ],
    )


def checkout_suite(base_url: str) -> Suite:
    return Suite(
        "SauceDemo - Checkout Flow",
        precondition=logged_in_with_cart(base_url),
        tags=("checkout",),
        cases=[
            Case(
                "should complete checkout successfully",
                checkout_info_steps()
                + [
                    expect_url(f"{base_url}/checkout-step-two.html"),
                    expect_count(CART_ITEM, 2),
                    click(FINISH_BUTTON),
                    expect_url(f"{base_url}/checkout-complete.html"),
                    expect_text(COMPLETE_HEADER, "Thank you for your order!"),
                ],
            ),
            Case(
                "should show error when checkout info is incomplete",
                [
                    click(CHECKOUT_BUTTON),
                    click(CONTINUE_BUTTON),
                    expect_visible(ERROR_MESSAGE),
                    expect_text_contains(ERROR_MESSAGE, "Error: First Name is required"),
                ],
            ),
            Case(
                "should be able to cancel checkout",
                checkout_info_steps()
                + [
                    click(CANCEL_BUTTON),
                    expect_url(f"{base_url}/inventory.html"),
                ],
            ),
        ],
    )


def build_suites(base_url: str = DEFAULT_BASE_URL) -> List[Suite]:
    """
    Build all SauceDemo suites.

    Args:
        base_url: Store base URL, without trailing slash.

    Returns:
        Suites in execution order.
    """
    base_url = base_url.rstrip("/")
    return [
        login_suite(base_url),
        catalog_suite(base_url),
        cart_suite(base_url),
        checkout_suite(base_url),
    ]


def build_registry(base_url: str = DEFAULT_BASE_URL) -> Registry:
    """Registry holding every SauceDemo suite."""
    registry = Registry()
    for suite in build_suites(base_url):
        registry.register(suite)
    return registry
