# SPDX-License-Identifier: BSD-3-Clause

"""The parts of a host web application that plugins interact with.

Adapters for real web frameworks translate their own request and
response objects to and from these classes.
"""

from __future__ import annotations

from pathlib import Path
from tempfile import gettempdir
from typing import Dict, Iterator, Optional, Tuple, Union


class Application:
    """Application-wide state that plugins can access."""

    def __init__(self, debug: bool = False, temp_path: Optional[Path] = None):
        self.debug = debug
        """C{True} iff the application runs in debug (development) mode."""

        self.temp_path = Path(gettempdir()) if temp_path is None else Path(temp_path)
        """Root directory for temporary files."""


class Request:
    """An HTTP request, as far as plugins are concerned."""

    def __init__(self, path: str, method: str = "GET"):
        self.path = path or "/"
        """Path component of the request URL."""

        self.method = method
        """HTTP method."""

    def __repr__(self) -> str:
        return f"Request({self.path!r}, {self.method!r})"


class Headers:
    """Case-insensitive mapping of HTTP header names to values."""

    def __init__(self, headers: Optional[Dict[str, str]] = None):
        self._headers: Dict[str, Tuple[str, str]] = {}
        if headers:
            for name, value in headers.items():
                self[name] = value

    def __getitem__(self, name: str) -> str:
        return self._headers[name.lower()][1]

    def __setitem__(self, name: str, value: str) -> None:
        self._headers[name.lower()] = (name, value)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._headers

    def __iter__(self) -> Iterator[str]:
        for name, value_ in self._headers.values():
            yield name

    def __len__(self) -> int:
        return len(self._headers)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Returns the value of header C{name}, or C{default} if absent."""
        entry = self._headers.get(name.lower())
        return default if entry is None else entry[1]

    def items(self) -> Iterator[Tuple[str, str]]:
        """Iterates through C{(name, value)} pairs."""
        return iter(self._headers.values())


class Response:
    """A mutable HTTP response that plugins can inspect and replace."""

    def __init__(
        self,
        content: Union[str, bytes] = "",
        status_code: int = 200,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.content = content
        """The response body."""

        self.status_code = status_code
        """HTTP status code."""

        self.headers = Headers(headers)
        """HTTP response headers."""

    @property
    def content_type(self) -> str:
        """The C{Content-Type} header value, or an empty string."""
        return self.headers.get("Content-Type") or ""

    def set_header(self, name: str, value: str) -> None:
        """Sets header C{name}, replacing any existing value."""
        self.headers[name] = value

    def get_header(self, name: str) -> Optional[str]:
        """Returns the value of header C{name}, or C{None} if absent."""
        return self.headers.get(name)
