# SPDX-License-Identifier: BSD-3-Clause

"""Decides whether a response body is something we can check."""

from __future__ import annotations

from enum import Enum
from typing import Union

HTML_MIME_TYPE = "text/html"


class Eligibility(Enum):
    """Verdict on whether a response body should be checked.

    The value of each member is the reason reported when the body is
    ignored.
    """

    EMPTY_CONTENT = "empty-content"
    """The body contains nothing but whitespace."""

    NOT_HTML = "not-html"
    """The body is not of type C{text/html}."""

    ELIGIBLE = "eligible"
    """The body should be checked."""


def mime_type(content_type: str) -> str:
    """
    Returns the media type part of a C{Content-Type} header value,
    in lower case and without parameters.

        >>> mime_type('Text/HTML; charset=UTF-8')
        'text/html'
    """
    return content_type.split(";", 1)[0].strip().lower()


def classify(content: Union[str, bytes], content_type: str) -> Eligibility:
    """Classifies a response body using its C{Content-Type} header value."""
    if not content.strip():
        return Eligibility.EMPTY_CONTENT
    if mime_type(content_type) != HTML_MIME_TYPE:
        return Eligibility.NOT_HTML
    return Eligibility.ELIGIBLE
