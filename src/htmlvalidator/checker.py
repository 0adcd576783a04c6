# SPDX-License-Identifier: BSD-3-Clause

"""Decides what happens to a response: ignore it, pass it or replace it.

L{HTMLChecker.handle} takes the path, content type and body of
a response and returns a L{ValidationOutcome}, plus the content of an
error page if the body failed the check. The decision is made in this
order:

  1. the path matches an ignore rule: ignored;
  2. the body is empty or whitespace: ignored;
  3. the body is not C{text/html}: ignored;
  4. otherwise the checker result is taken from the cache or, if there
     is no fresh result, requested from the checker service;
  5. no messages: success; the response is left as it is;
  6. any messages: fail; the response should be replaced by the
     error page and get status 500.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from pathlib import Path
from time import time
from typing import Any, MutableMapping, Optional, Tuple, Union

from htmlvalidator.cache import ValidationCache, checksum
from htmlvalidator.classify import Eligibility, classify
from htmlvalidator.config import PluginConfig
from htmlvalidator.errorpage import render_error_page
from htmlvalidator.message import ValidationMessage
from htmlvalidator.pathmatch import PathMatcher
from htmlvalidator.typing import Clock, LoggerBase
from htmlvalidator.vnuclient import VNUClient

_LOG = getLogger(__name__)

CACHE_NAMESPACE = Path("htmlvalidator", "html-validator-plugin")
"""Location of the cache directory, relative to the temporary files root."""

SUCCESS = "success"
FAIL = "fail"
IGNORED = "ignored"
FROM_CACHE = "from-cache"


@dataclass(frozen=True)
class ValidationOutcome:
    """The result of handling one response."""

    messages: Tuple[ValidationMessage, ...]
    """Messages from the checker; empty if the response was not checked."""

    status: str
    """Summary of the decision, as sent in the outcome header."""

    @property
    def ignored(self) -> bool:
        """C{True} iff the response was not checked."""
        return self.status.startswith(IGNORED)

    @property
    def failed(self) -> bool:
        """C{True} iff the response was checked and problems were found."""
        return self.status.startswith(FAIL)

    @property
    def from_cache(self) -> bool:
        """C{True} iff the messages were taken from the cache."""
        return self.status.endswith("; " + FROM_CACHE)

    @classmethod
    def ignore(cls, reason: str) -> "ValidationOutcome":
        """Creates the outcome for a response that was not checked."""
        return cls((), f"{IGNORED}; {reason}")

    @classmethod
    def checked(
        cls, messages: Tuple[ValidationMessage, ...], cached: bool
    ) -> "ValidationOutcome":
        """Creates the outcome for a response that was checked."""
        status = FAIL if messages else SUCCESS
        if cached:
            status += "; " + FROM_CACHE
        return cls(messages, status)


class RequestLogger(LoggerBase):
    """Prefixes log messages with the path of the request being handled."""

    def __init__(self, path: str):
        super().__init__(_LOG, dict(path=path))

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        assert self.extra is not None
        return f"{self.extra['path']}: {msg}", kwargs


class HTMLChecker:
    """Checks response bodies, using the cache where possible."""

    def __init__(
        self,
        config: PluginConfig,
        temp_root: Path,
        client: Optional[VNUClient] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initializes a checker.

        @param config:
            Plugin settings.
        @param temp_root:
            Root directory for temporary files; the cache is kept in
            a subdirectory of it.
        @param client:
            Client for the checker service; by default a client for the
            service from C{config} is created.
        @param clock:
            Time source for the cache; by default C{time.time}.
        """
        self.config = config
        self.matcher = PathMatcher(config.ignore_rules)
        if client is None:
            client = VNUClient(config.validator_url, timeout=config.timeout)
        self.client = client
        cache_dir = Path(temp_root) / CACHE_NAMESPACE
        self.cache = ValidationCache(cache_dir, time if clock is None else clock)

    def close(self) -> None:
        """Closes the connection to the checker service, if any."""
        self.client.close()

    def evaluate(
        self, request_path: str, content_type: Optional[str], content: Union[str, bytes]
    ) -> ValidationOutcome:
        """Decides on a response without rendering the error page."""
        log = RequestLogger(request_path)

        rule = self.matcher.is_ignored(request_path)
        if rule is not None:
            log.debug('ignored because of rule "%s"', rule)
            return ValidationOutcome.ignore(f"ignore-path={rule}")

        content_type = content_type or ""
        eligibility = classify(content, content_type)
        if eligibility is not Eligibility.ELIGIBLE:
            log.debug("ignored: %s", eligibility.value)
            return ValidationOutcome.ignore(eligibility.value)

        digest = checksum(content)
        messages, cached = self.cache.get_or_compute(
            digest, lambda: self.client.validate(content_type, content)
        )
        outcome = ValidationOutcome.checked(messages, cached)
        if outcome.failed:
            log.info("%d problem(s) found (%s)", len(messages), outcome.status)
        else:
            log.debug(outcome.status)
        return outcome

    def handle(
        self, request_path: str, content_type: Optional[str], content: Union[str, bytes]
    ) -> Tuple[ValidationOutcome, Optional[str]]:
        """
        Decides on a response.

        @param request_path:
            Path component of the request URL.
        @param content_type:
            Value of the response's C{Content-Type} header.
        @param content:
            The response body.
        @return:
            The outcome, plus the content of the error page that should
            replace the response, or C{None} if the response should be
            left as it is.
        """
        outcome = self.evaluate(request_path, content_type, content)
        if not outcome.failed:
            return outcome, None
        if isinstance(content, bytes):
            content = content.decode("utf-8", "replace")
        return outcome, render_error_page(outcome.messages, content)
