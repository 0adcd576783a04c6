# SPDX-License-Identifier: BSD-3-Clause

"""Messages produced by the checker.

The Nu Html Checker reports its findings as a JSON object that contains
a C{messages} array; every element of that array is an object with
optional C{type}, C{firstLine}, C{lastLine} and C{message} fields.
See U{https://github.com/validator/validator/wiki/Output-»-JSON}.

L{ValidationMessage} holds one such element with the absent fields
filled in, so code that presents messages does not have to deal with
missing keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Tuple


@dataclass(frozen=True)
class ValidationMessage:
    """A single message from the checker."""

    type: str
    """Message type, such as C{"error"} or C{"info"}."""

    first_line: int = 0
    """First line of the problem, or 0 if the checker did not report it."""

    last_line: int = 0
    """Last line of the problem, or 0 if the checker did not report it."""

    message: str = ""
    """Human readable description of the problem."""

    @classmethod
    def from_json(cls, obj: Mapping[str, Any]) -> "ValidationMessage":
        """
        Creates a message from one element of the checker's
        C{messages} array.

        @raise ValueError:
            If C{obj} is not a JSON object.
        """
        if not isinstance(obj, Mapping):
            raise ValueError(f"message is not an object: {obj!r}")
        return cls(
            type=str(obj.get("type", "")),
            first_line=_line_number(obj.get("firstLine")),
            last_line=_line_number(obj.get("lastLine")),
            message=str(obj.get("message", "")),
        )

    def to_json(self) -> Mapping[str, Any]:
        """Returns this message in the checker's JSON format."""
        obj: dict = {"type": self.type}
        if self.first_line:
            obj["firstLine"] = self.first_line
        if self.last_line:
            obj["lastLine"] = self.last_line
        obj["message"] = self.message
        return obj


def _line_number(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return 0


def iter_messages(result: Mapping[str, Any]) -> Iterator[ValidationMessage]:
    """
    Iterates through the messages in a checker result object.

    @raise ValueError:
        If C{result} does not have the structure of a checker result.
    """
    if not isinstance(result, Mapping):
        raise ValueError("checker result is not an object")
    messages = result.get("messages")
    if not isinstance(messages, list):
        raise ValueError('checker result lacks a "messages" array')
    for obj in messages:
        yield ValidationMessage.from_json(obj)


def parse_messages(result: Mapping[str, Any]) -> Tuple[ValidationMessage, ...]:
    """Returns all messages in a checker result object, in order."""
    return tuple(iter_messages(result))


CONTACT_ERROR = ValidationMessage("error", message="Error contacting validator.")
"""Message used in place of the checker's findings when the checker
could not be reached.
"""


def contact_error_result() -> Mapping[str, Any]:
    """Returns a checker result object containing only L{CONTACT_ERROR}."""
    return {"messages": [CONTACT_ERROR.to_json()]}
