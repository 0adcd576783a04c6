# SPDX-License-Identifier: BSD-3-Clause

"""Configuration of the HTML validator plugin.

The configuration is assembled using a L{PluginConfigBuilder} while the
application is being set up, and then frozen into a L{PluginConfig}
that cannot change while requests are being served::

    builder = PluginConfigBuilder()
    builder.add_ignore_path('/static/')
    builder.add_ignore_path('/legacy/index.html')
    config = builder.build()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple
from urllib.parse import urlsplit

from htmlvalidator.pathmatch import IgnoreRule, normalize_ignore_path
from htmlvalidator.vnuclient import DEFAULT_TIMEOUT, DEFAULT_VALIDATOR_URL


class ConfigError(ValueError):
    """Raised when a configuration value is rejected."""


@dataclass(frozen=True)
class PluginConfig:
    """Settings for the HTML validator plugin."""

    validator_url: str = DEFAULT_VALIDATOR_URL
    """URL of the checker web service."""

    ignore_rules: Tuple[IgnoreRule, ...] = ()
    """Paths that are not checked, in the order they were added."""

    force_enable: bool = False
    """Check responses even when the application is not in debug mode."""

    timeout: Optional[float] = DEFAULT_TIMEOUT
    """Seconds to wait for the checker, or C{None} to wait forever."""


class PluginConfigBuilder:
    """Collects settings and produces a L{PluginConfig}.

    A builder can be used only once: after L{build} was called, any
    further calls raise L{ConfigError}.
    """

    def __init__(self) -> None:
        self._validator_url = DEFAULT_VALIDATOR_URL
        self._ignore_rules: List[IgnoreRule] = []
        self._force_enable = False
        self._timeout: Optional[float] = DEFAULT_TIMEOUT
        self._built = False

    def _check_open(self) -> None:
        if self._built:
            raise ConfigError("configuration has already been built")

    def add_ignore_path(self, path: str) -> "PluginConfigBuilder":
        """
        Excludes a path from checking.

        A path ending in a slash excludes everything below that directory,
        other paths exclude exactly that path. Paths are relative to the
        site root, whether or not they start with a slash.

        @raise TypeError:
            If C{path} is not a string.
        @raise ValueError:
            If C{path} is blank.
        """
        self._check_open()
        self._ignore_rules.append(normalize_ignore_path(path))
        return self

    def set_validator_url(self, url: str) -> "PluginConfigBuilder":
        """Uses the checker web service at C{url}."""
        self._check_open()
        if not isinstance(url, str):
            raise TypeError(f"validator URL must be a string, not {type(url).__name__}")
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ConfigError(f'validator URL "{url}" is not an HTTP(S) URL')
        self._validator_url = url
        return self

    def set_force_enable(self, force_enable: bool = True) -> "PluginConfigBuilder":
        """Checks responses even when the application is not in debug mode."""
        self._check_open()
        self._force_enable = bool(force_enable)
        return self

    def set_timeout(self, timeout: Optional[float]) -> "PluginConfigBuilder":
        """Sets the number of seconds to wait for the checker."""
        self._check_open()
        if timeout is not None and not timeout > 0:
            raise ConfigError(f"timeout must be positive, got {timeout!r}")
        self._timeout = timeout
        return self

    def build(self) -> PluginConfig:
        """Returns the configuration; the builder cannot be used after this."""
        self._check_open()
        self._built = True
        return PluginConfig(
            validator_url=self._validator_url,
            ignore_rules=tuple(self._ignore_rules),
            force_enable=self._force_enable,
            timeout=self._timeout,
        )
