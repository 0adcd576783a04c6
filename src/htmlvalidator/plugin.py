# SPDX-License-Identifier: BSD-3-Clause

"""
Plugin infrastructure and the HTML validator plugin.

A host application calls L{Plugin.on_post_request} on each of its
plugins after a request has been processed. A plugin can inspect and
modify the response and tell the host to stop calling further plugins.
L{PluginCollection} takes care of calling a series of plugins in order.

L{HtmlValidatorPlugin} checks HTML responses and replaces the ones that
fail the check by an error page::

    builder = PluginConfigBuilder()
    builder.add_ignore_path('/static/')
    plugin = HtmlValidatorPlugin(builder.build())
    ...
    plugin.on_post_request(application, request, response)
"""

from __future__ import annotations

from http import HTTPStatus
from logging import getLogger
from threading import Lock
from typing import Dict, Iterable, Optional

from htmlvalidator.checker import HTMLChecker, ValidationOutcome
from htmlvalidator.config import PluginConfig
from htmlvalidator.host import Application, Request, Response
from htmlvalidator.typing import Clock
from htmlvalidator.vnuclient import VNUClient

_LOG = getLogger(__name__)

HEADER_NAME = "X-Html-Validator-Plugin"
"""Response header that reports the outcome of the check."""


class Plugin:
    """
    Plugin interface: your plugin class should inherit this and override
    one or more methods.
    """

    def close(self) -> None:
        """
        Tells the plugin to release any resources (connections etc.)
        that it may have acquired.

        There will not be any more calls to the plugin after it is closed.
        The default implementation does nothing.
        """

    def on_post_request(
        self, application: Application, request: Request, response: Response
    ) -> bool:
        """
        Called after a request has been processed.

        The default implementation does nothing.

        @return:
            C{True} if no further plugins should process this response,
            C{False} otherwise.
        """
        return False


class PluginCollection(Plugin):
    """
    Keeps a collection of L{Plugin} instances and dispatches calls to
    each of them.
    """

    def __init__(self, plugins: Iterable[Plugin]):
        """Initialize a collection containing C{plugins}."""
        self.plugins = tuple(plugins)

    def close(self) -> None:
        for plugin in self.plugins:
            plugin.close()

    def on_post_request(
        self, application: Application, request: Request, response: Response
    ) -> bool:
        for plugin in self.plugins:
            if plugin.on_post_request(application, request, response):
                _LOG.debug(
                    "Plugin %s stopped processing of %s",
                    plugin.__class__.__name__,
                    request.path,
                )
                return True
        return False


class HtmlValidatorPlugin(Plugin):
    """Checks HTML responses using the Nu Html Checker."""

    def __init__(
        self,
        config: Optional[PluginConfig] = None,
        client: Optional[VNUClient] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize the plugin.

        @param config:
            Plugin settings; the defaults are used if omitted.
        @param client:
            Client for the checker service, to override the one
            created from C{config}.
        @param clock:
            Time source for the result cache.
        """
        self.config = PluginConfig() if config is None else config
        self._client = client
        self._clock = clock
        self._checkers: Dict[str, HTMLChecker] = {}
        self._checkers_lock = Lock()

    def is_enabled(self, application: Application) -> bool:
        """Responses are checked in debug mode, or when forced."""
        return application.debug or self.config.force_enable

    def checker_for(self, application: Application) -> HTMLChecker:
        """Returns the checker that stores its cache under the
        application's temporary files root.
        """
        key = str(application.temp_path)
        with self._checkers_lock:
            checker = self._checkers.get(key)
            if checker is None:
                checker = HTMLChecker(
                    self.config, application.temp_path, self._client, self._clock
                )
                self._checkers[key] = checker
        return checker

    def close(self) -> None:
        with self._checkers_lock:
            for checker in self._checkers.values():
                checker.close()
            self._checkers.clear()

    def check(
        self, application: Application, request: Request, response: Response
    ) -> Optional[ValidationOutcome]:
        """
        Checks a response and replaces it if it fails.

        @return:
            The outcome, or C{None} if the plugin is disabled.
        """
        if not self.is_enabled(application):
            return None

        checker = self.checker_for(application)
        outcome, replacement = checker.handle(
            request.path, response.content_type, response.content
        )
        response.set_header(HEADER_NAME, outcome.status)
        if replacement is not None:
            response.content = replacement
            response.set_header("Content-Type", "text/html; charset=utf-8")
            response.status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value
        return outcome

    def on_post_request(
        self, application: Application, request: Request, response: Response
    ) -> bool:
        outcome = self.check(application, request, response)
        return outcome is not None and outcome.failed
