"""
Terminal UI (TUI) for storefront_e2e.

Launch with: storefront-e2e-tui or python -m storefront_e2e.tui.app
"""

__all__ = ["main"]


def main():
    """Launch TUI (requires textual)."""
    from storefront_e2e.tui.app import main as _main
    _main()
