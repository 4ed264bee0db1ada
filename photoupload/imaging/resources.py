"""Revocable in-memory references to binary data.

A handle stands in for a browser object URL: it binds a short opaque string
to a block of bytes until it is released. Every acquire must be paired with
exactly one release; the registry counts both so tests can detect leaks and
double releases.
"""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from photoupload.imaging.exceptions import ResourceReleasedError
from photoupload.logging.logger import Log


@dataclass(frozen=True)
class ResourceHandle:
    """Opaque reference issued by a ResourceRegistry."""

    url: str
    size: int


class ResourceRegistry:
    """Issues and revokes handles bound to in-memory bytes."""

    SCHEME = "blob:"

    def __init__(self) -> None:
        self._bindings: dict[str, bytes] = {}
        self.acquired_count = 0
        self.released_count = 0

    @property
    def active_count(self) -> int:
        return len(self._bindings)

    def acquire(self, data: bytes) -> ResourceHandle:
        handle = ResourceHandle(url=f"{self.SCHEME}{uuid.uuid4()}", size=len(data))
        self._bindings[handle.url] = data
        self.acquired_count += 1
        Log.debug(f"Acquired {handle.url} ({handle.size} bytes)")
        return handle

    def resolve(self, handle: ResourceHandle) -> bytes:
        """Return the bytes bound to a live handle.

        Raises:
            ResourceReleasedError: if the handle was released or never issued.
        """
        try:
            return self._bindings[handle.url]
        except KeyError:
            raise ResourceReleasedError(f"{handle.url} is not live") from None

    def release(self, handle: ResourceHandle) -> None:
        """Revoke a handle.

        Raises:
            ResourceReleasedError: on a second release of the same handle.
        """
        if self._bindings.pop(handle.url, None) is None:
            raise ResourceReleasedError(f"{handle.url} already released")
        self.released_count += 1
        Log.debug(f"Released {handle.url}")

    def is_live(self, handle: ResourceHandle) -> bool:
        return handle.url in self._bindings

    @contextmanager
    def scoped(self, data: bytes) -> Iterator[ResourceHandle]:
        """Acquire a handle that is released on every exit path."""
        handle = self.acquire(data)
        try:
            yield handle
        finally:
            self.release(handle)
