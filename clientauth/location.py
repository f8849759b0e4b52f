from __future__ import annotations

import webbrowser
from abc import ABC, abstractmethod

from relay.constants import LOGGER


class Location(ABC):
    """The navigable location the sign-in flow redirects away from and back to."""

    href: str

    @abstractmethod
    def navigate(self, url: str) -> None:
        raise NotImplementedError

    def replace(self, url: str) -> None:
        self.href = url


class MemoryLocation(Location):
    def __init__(self, href: str = "") -> None:
        self.href = href
        self.history: list[str] = []

    def navigate(self, url: str) -> None:
        self.history.append(self.href)
        self.href = url


class BrowserLocation(Location):
    """Hands navigation off to the system web browser."""

    def __init__(self, href: str = "", *, opener=webbrowser.open) -> None:
        self.href = href
        self._opener = opener

    def navigate(self, url: str) -> None:
        LOGGER.info("Opening browser at %s", url)
        self._opener(url)
