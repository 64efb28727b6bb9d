"""
Target control surface.

A Target is one isolated, remote-controlled page. The harness only talks
to targets through this protocol and never shares one between cases.
Every method is a coroutine; callers bound each await with a timeout.
"""

from typing import AsyncContextManager, List, Optional, Protocol, runtime_checkable

from storefront_e2e.steps import HarnessError


@runtime_checkable
class Target(Protocol):
    """Async control surface of a page under test."""

    async def navigate(self, url: str) -> None: ...

    async def fill(self, locator: str, value: str) -> None: ...

    async def click(self, locator: str) -> None: ...

    async def select_option(self, locator: str, value: str) -> None: ...

    async def read_text(self, locator: str) -> Optional[str]: ...

    async def read_texts(self, locator: str) -> List[str]: ...

    async def read_visibility(self, locator: str) -> bool: ...

    async def read_count(self, locator: str) -> int: ...

    async def read_url(self) -> str: ...

    async def wait_for_quiescence(self, timeout_s: float) -> None: ...


class TargetFactory(Protocol):
    """Source of fresh, isolated targets."""

    def open(self) -> AsyncContextManager[Target]:
        """Return a context manager yielding a new target and releasing it on exit."""
        ...


class InfrastructureError(HarnessError):
    """
    Target unreachable or crashed.

    Unlike step failures this is not contained by the case: the suite that
    hit it is aborted, since later cases would use the same broken browser.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)
