# SPDX-License-Identifier: BSD-3-Clause

"""A friendly syntax to create HTML documents in Python.

You create a tree of HTML objects and serialize it to a string; there is
no editable document model. An element is created like this::

    html.ul(class_='messages')[
        html.li['first'],
        html.li['second'],
        ]

C{html.I{name}} creates an element with the given name; use
C{html['I{tricky-name}']} for names that are not Python identifiers.
Keyword arguments become attributes: C{None} values are omitted and
trailing underscores are stripped, so C{class_} can be used for C{class}.

Nested content is added using brackets and can be elements, strings
(escaped as character data), iterables of content, C{None} (ignored) or
L{raw} text (not escaped). Sequences of siblings are built with L{concat}.

Serialization follows the HTML syntax rather than the XML syntax: void
elements such as C{br} and C{meta} are written without an end tag and
never get content, while all other elements always get an end tag, even
when they are empty.
"""

from __future__ import annotations

from html import escape
from typing import Iterable, Iterator, Mapping, Optional, Union

VOID_ELEMENTS = frozenset(
    (
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "source",
        "track",
        "wbr",
    )
)
"""Elements that cannot have content and are written without end tag."""


class _HTMLSerializable:
    """Base class for objects that can be serialized to HTML."""

    def __str__(self) -> str:
        return self.flatten()

    def _to_fragments(self) -> Iterator[str]:
        """Iterates through the strings that together form the
        serialization of this object.
        """
        raise NotImplementedError

    def flatten(self) -> str:
        """Creates the HTML string for this object."""
        return "".join(self._to_fragments())


HTML = _HTMLSerializable
HTMLContent = Union[str, None, HTML, Iterable]


class _Text(_HTMLSerializable):
    def __init__(self, text: str):
        _HTMLSerializable.__init__(self)
        self.__text = escape(text)

    def _to_fragments(self) -> Iterator[str]:
        yield self.__text


class _Raw(_HTMLSerializable):
    def __init__(self, text: str):
        _HTMLSerializable.__init__(self)
        self.__text = text

    def _to_fragments(self) -> Iterator[str]:
        yield self.__text


def raw(text: str) -> HTML:
    """Creates a segment that will appear in the output without escaping.

    Use it for style sheets and the document type declaration.
    """
    return _Raw(text)


DOCTYPE = raw("<!DOCTYPE html>")


class _HTMLSequence(_HTMLSerializable):
    def __init__(self, children: Iterable[HTML]):
        """Creates a sequence.
        The given children must all be _HTMLSerializable instances;
        if that is not guaranteed, use _adapt() to convert.
        """
        _HTMLSerializable.__init__(self)
        self.__children = tuple(children)

    def _to_fragments(self) -> Iterator[str]:
        for content in self.__children:
            # pylint: disable=protected-access
            yield from content._to_fragments()


class _HTMLElement(_HTMLSerializable):
    def __init__(
        self, name: str, attrs: Mapping[str, str], children: Optional[_HTMLSequence]
    ):
        _HTMLSerializable.__init__(self)
        self.__name = name
        self.__attributes = attrs
        self.__children = children

    def __call__(self, **attributes: Optional[object]) -> "_HTMLElement":
        attrs = dict(self.__attributes)
        attrs.update(
            (key.rstrip("_"), escape(str(value)))
            for key, value in attributes.items()
            if value is not None
        )
        return _HTMLElement(self.__name, attrs, self.__children)

    def __getitem__(self, index: HTMLContent) -> "_HTMLElement":
        if self.__name in VOID_ELEMENTS:
            raise TypeError(f'void element "{self.__name}" cannot have content')
        children = concat(self.__children, index)
        return _HTMLElement(self.__name, self.__attributes, children)

    def _to_fragments(self) -> Iterator[str]:
        attrib_str = "".join(' %s="%s"' % item for item in self.__attributes.items())
        yield f"<{self.__name}{attrib_str}>"
        if self.__name in VOID_ELEMENTS:
            return
        children = self.__children
        if children is not None:
            yield from children._to_fragments()  # pylint: disable=protected-access
        yield f"</{self.__name}>"


class _HTMLElementFactory:
    """Creates an _HTMLElement for any tag name that is requested."""

    def __getattribute__(self, key: str) -> _HTMLElement:
        return _HTMLElement(key, {}, None)

    def __getitem__(self, key: str) -> _HTMLElement:
        return _HTMLElement(key, {}, None)


html = _HTMLElementFactory()  # pylint: disable=invalid-name
"""Factory for HTML elements.

See the module level documentation for usage instructions.
"""


def _adapt(node: HTMLContent) -> Iterator[HTML]:
    if isinstance(node, _HTMLSerializable):
        yield node
    elif isinstance(node, str):
        yield _Text(node)
    elif node is None:
        pass
    elif hasattr(node, "__iter__"):
        for child in node:
            yield from _adapt(child)
    else:
        raise TypeError(f"cannot handle node of type {type(node).__name__}")


def concat(*siblings: HTMLContent) -> _HTMLSequence:
    """Creates a sequence by concatenating C{siblings}.

    @raise TypeError:
        If one of the C{siblings} is neither an HTML object nor convertible
        to HTML.
    """
    return _HTMLSequence(_adapt(siblings))


__all__ = ("html", "raw", "concat", "DOCTYPE")
