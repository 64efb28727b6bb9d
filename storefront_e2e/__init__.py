"""
Storefront E2E - browser-driven scenario harness

Runs suites of ordered browser steps against isolated page targets and
reports a verdict per case. Ships with the SauceDemo login, catalog, cart
and checkout suites.
"""

__version__ = "0.1.0"
__author__ = "Storefront E2E Contributors"

from storefront_e2e.registry import Case, Registry, Suite

__all__ = ["Case", "Registry", "Suite", "__version__"]
