#!/usr/bin/env python3
"""
Locator probe tool.

Opens a page (optionally after the standard login) and prints what the
harness would read for a locator: text, all texts, visibility and count.
Useful when writing or repairing suite locators.
"""

import argparse
import asyncio
import sys

from storefront_e2e.config import RunSettings, TargetConfig
from storefront_e2e.playwright_target import PlaywrightTargets
from storefront_e2e.precondition import PreconditionError, apply_precondition
from storefront_e2e.suites.saucedemo import DEFAULT_BASE_URL, logged_in
from storefront_e2e.target import InfrastructureError


async def probe(args: argparse.Namespace) -> None:
    config = TargetConfig(base_url=args.base_url, headless=not args.headed)
    settings = RunSettings(step_timeout_s=args.timeout_ms / 1000.0)

    async with PlaywrightTargets(config, args.timeout_ms) as targets:
        async with targets.open() as target:
            if args.login:
                await apply_precondition(logged_in(args.base_url.rstrip("/")), target, settings)
            if args.path is not None:
                await target.navigate(f"{args.base_url.rstrip('/')}/{args.path.lstrip('/')}")
                await target.wait_for_quiescence(settings.step_timeout_s)

            print(f"URL:        {await target.read_url()}")
            for locator in args.locators:
                print()
                print(f"Locator:    {locator}")
                print(f"  count:    {await target.read_count(locator)}")
                print(f"  visible:  {await target.read_visibility(locator)}")
                print(f"  text:     {await target.read_text(locator)!r}")
                print(f"  texts:    {await target.read_texts(locator)!r}")


def main() -> int:
    """Main entry point for probe_target tool."""
    parser = argparse.ArgumentParser(description="Probe locators on the live store")
    parser.add_argument("locators", nargs="+", help="Locators to read")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help="Store base URL")
    parser.add_argument("--path", help="Page path to open (default: login page)")
    parser.add_argument("--login", action="store_true", help="Log in as the standard user first")
    parser.add_argument("--timeout-ms", type=int, default=10000, help="Per-operation timeout (ms)")
    parser.add_argument("--headed", action="store_true", help="Show the browser window")

    args = parser.parse_args()
    if not args.login and args.path is None:
        args.path = "/"

    try:
        asyncio.run(probe(args))
    except (InfrastructureError, PreconditionError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nStopped by user")
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
