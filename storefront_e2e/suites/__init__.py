"""
Bundled scenario suites.
"""

from storefront_e2e.suites.saucedemo import build_registry, build_suites

__all__ = ["build_registry", "build_suites"]
