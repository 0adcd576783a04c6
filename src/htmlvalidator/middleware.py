# SPDX-License-Identifier: BSD-3-Clause

"""
WSGI middleware that checks the HTML produced by a web app.

To use it, wrap your WSGI application::

    application = HTMLValidatorMiddleware(application, debug=True)

The middleware collects the complete response of the wrapped app before
passing it on, so it should only be used during development.
"""

from __future__ import annotations

from http import HTTPStatus
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from htmlvalidator.config import PluginConfig
from htmlvalidator.host import Application, Request, Response
from htmlvalidator.plugin import HtmlValidatorPlugin, Plugin

StartResponse = Callable[..., Callable[[bytes], Any]]
WSGIApp = Callable[[Dict[str, Any], StartResponse], Iterable[bytes]]


def _status_line(code: int) -> str:
    try:
        return f"{code:d} {HTTPStatus(code).phrase}"
    except ValueError:
        return f"{code:d} Unknown"


class HTMLValidatorMiddleware:
    """Runs a plugin on every response of a WSGI application."""

    def __init__(
        self,
        app: WSGIApp,
        config: Optional[PluginConfig] = None,
        debug: bool = False,
        temp_path: Optional[Path] = None,
        plugin: Optional[Plugin] = None,
    ):
        """
        Wraps C{app}.

        @param config:
            Settings for the HTML validator plugin.
        @param debug:
            Whether the application runs in debug mode; the plugin only
            checks pages in debug mode unless the configuration forces it.
        @param temp_path:
            Root directory for temporary files; by default the system's
            temporary directory.
        @param plugin:
            Plugin to run instead of a L{HtmlValidatorPlugin} created
            from C{config}.
        """
        self.app = app
        self.application = Application(debug, temp_path)
        self.plugin = HtmlValidatorPlugin(config) if plugin is None else plugin

    def close(self) -> None:
        """Releases the plugin's resources."""
        self.plugin.close()

    def __call__(
        self, environ: Dict[str, Any], start_response: StartResponse
    ) -> Iterable[bytes]:
        captured: List[Any] = []
        chunks: List[bytes] = []

        def capture_start_response(
            status: str, headers: List[Tuple[str, str]], exc_info: Any = None
        ) -> Callable[[bytes], Any]:
            captured[:] = [status, headers, exc_info]
            return chunks.append

        app_iter = self.app(environ, capture_start_response)
        try:
            for chunk in app_iter:
                chunks.append(chunk)
        finally:
            close = getattr(app_iter, "close", None)
            if close is not None:
                close()

        status, headers, exc_info = captured
        original_status = int(status.split(None, 1)[0])
        response = Response(b"".join(chunks), original_status)
        # Only expose the content type: other headers, such as Set-Cookie,
        # can occur more than once and are passed on untouched.
        for name, value in headers:
            if name.lower() == "content-type":
                response.set_header(name, value)

        request = Request(
            environ.get("PATH_INFO", "/"), environ.get("REQUEST_METHOD", "GET")
        )
        self.plugin.on_post_request(self.application, request, response)

        body = response.content
        if isinstance(body, str):
            body = body.encode("utf-8")
        replaced = {name.lower() for name in response.headers} | {"content-length"}
        out_headers = [
            (name, value) for name, value in headers if name.lower() not in replaced
        ]
        out_headers += response.headers.items()
        out_headers.append(("Content-Length", str(len(body))))
        if response.status_code != original_status:
            status = _status_line(response.status_code)
        start_response(status, out_headers, exc_info)
        return [body]
