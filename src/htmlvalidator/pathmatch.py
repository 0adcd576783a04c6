# SPDX-License-Identifier: BSD-3-Clause

"""Decides which request paths are exempt from checking.

An ignore rule that ends in a slash covers a directory: every path that
starts with the rule is ignored. Any other rule covers exactly one path.
"""

from __future__ import annotations

from dataclasses import dataclass
from posixpath import normpath
from typing import Iterable, Optional, Tuple


@dataclass(frozen=True)
class IgnoreRule:
    """A path or path prefix that is exempt from checking."""

    path: str
    """Normalized URL path, always starting with a slash."""

    is_prefix: bool
    """C{True} if this rule matches all paths below a directory."""

    def matches(self, request_path: str) -> bool:
        """Returns C{True} iff this rule covers C{request_path}."""
        if self.is_prefix:
            return request_path.startswith(self.path)
        else:
            return request_path == self.path

    def __str__(self) -> str:
        return self.path


def normalize_ignore_path(path: str) -> IgnoreRule:
    """
    Converts a path as written in the configuration to an L{IgnoreRule}.

    Relative paths are taken relative to the site root, so C{"foo/"} and
    C{"/foo/"} produce the same rule.

    @raise TypeError:
        If C{path} is not a string.
    @raise ValueError:
        If C{path} is blank.
    """
    if not isinstance(path, str):
        raise TypeError(f"ignore path must be a string, not {type(path).__name__}")
    path = path.strip().replace("\\", "/")
    if not path:
        raise ValueError("ignore path must not be empty")

    is_prefix = path.endswith("/")
    # normpath() keeps a double leading slash, which we do not want.
    normalized = normpath("/" + path.lstrip("/"))
    if is_prefix and not normalized.endswith("/"):
        normalized += "/"
    return IgnoreRule(normalized, is_prefix or normalized == "/")


class PathMatcher:
    """Checks request paths against an ordered collection of ignore rules."""

    def __init__(self, rules: Iterable[IgnoreRule] = ()):
        self.rules: Tuple[IgnoreRule, ...] = tuple(rules)

    def is_ignored(self, request_path: str) -> Optional[IgnoreRule]:
        """
        Finds the rule that exempts C{request_path} from checking.

        Rules are tried in the order in which they were configured;
        the first matching rule is returned.

        @return:
            The matching rule, or C{None} if the path should be checked.
        """
        for rule in self.rules:
            if rule.matches(request_path):
                return rule
        return None
