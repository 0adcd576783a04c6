# SPDX-License-Identifier: BSD-3-Clause

"""Renders the page that replaces a response that failed the check.

The page lists the checker's messages, followed by the source of the
rejected document with line numbers, so the messages can be matched
to the offending lines. It is a single document without references to
external resources.
"""

from __future__ import annotations

import re
from typing import Iterable, Iterator, List

from htmlvalidator.htmlgen import DOCTYPE, HTMLContent, concat, html, raw
from htmlvalidator.message import ValidationMessage

TITLE = "HTML validation failed"

_LINE_SPLIT = re.compile(r"\r\n|\n|\r")

_STYLE_SHEET = raw(
    """
body {
    margin: 0;
    padding: 0 12pt;
    font-family: vera, arial, sans-serif;
}
h1 {
    color: #C00000;
}
pre {
    padding: 6pt;
    background: #F0F0F0;
    color: #000000;
}
span.lineno {
    color: #808080;
}
"""
)


def line_description(message: ValidationMessage) -> str:
    """
    Returns the line or line range a message applies to.

    A range is only given when the message spans multiple lines;
    otherwise the last line is used, which is 0 if unknown.
    """
    first, last = message.first_line, message.last_line
    if first != 0 and first != last:
        return f"{first:d}-{last:d}"
    else:
        return str(last)


def split_lines(content: str) -> List[str]:
    """
    Splits C{content} into lines, accepting CR LF, LF and CR as line
    terminators. A terminator at the end produces an empty last line.
    """
    return _LINE_SPLIT.split(content)


def _present_message(message: ValidationMessage) -> HTMLContent:
    return html.li[
        f"{message.type}: line {line_description(message)}: {message.message}"
    ]


def _present_source(content: str) -> Iterator[HTMLContent]:
    for number, line in enumerate(split_lines(content), 1):
        yield html.span(class_="lineno")[f"{number:3d}"], " ", line, html.br


def render_error_page(messages: Iterable[ValidationMessage], content: str) -> str:
    """
    Returns an HTML document presenting C{messages} together with
    the source of the document they were reported for.
    """
    page = concat(
        DOCTYPE,
        html.html[
            html.head[
                html.meta(charset="utf-8"),
                html.title[TITLE],
                html.style[_STYLE_SHEET],
            ],
            html.body[
                html.h1[TITLE],
                html.ul[(_present_message(message) for message in messages)],
                html.h2["Source"],
                html.pre[_present_source(content)],
            ],
        ],
    )
    return page.flatten()
