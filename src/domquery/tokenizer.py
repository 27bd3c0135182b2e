# Lexical stage of the CSS selector to XPath compiler.
# Splits selector groups on commas and compound selectors on whitespace,
# never breaking inside a parenthesized pseudo-class argument.

from __future__ import annotations

from typing import TYPE_CHECKING

from .errors import SelectorError

if TYPE_CHECKING:
    from collections.abc import Callable

WHITESPACE = " \t\n\r\f"

COMBINATORS = (">", "~", "+")

# (character, was_escaped)
Span = tuple[str, bool]


class SelectorTokenizer:
    """Splits a selector string at top-level separators.

    A character is top-level when the number of `(` seen before it does not
    exceed the number of `)` seen before it. Backslash-escaped characters
    are never separators and never open or close a group.
    """

    __slots__ = ("length", "selector")

    selector: str
    length: int

    def __init__(self, selector: str) -> None:
        self.selector = selector
        self.length = len(selector)

    def _split(self, is_separator: Callable[[str], bool]) -> list[str]:
        parts: list[str] = []
        depth = 0
        start = 0
        pos = 0
        selector = self.selector

        while pos < self.length:
            ch = selector[pos]
            if ch == "\\":
                pos += 2
                continue
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
            elif depth <= 0 and is_separator(ch):
                parts.append(selector[start:pos])
                start = pos + 1
            pos += 1

        parts.append(selector[start:])
        return parts

    def split_groups(self) -> list[str]:
        """Split on top-level commas, trimming each alternative."""
        return [part.strip() for part in self._split(lambda ch: ch == ",")]

    def tokenize(self) -> list[str]:
        """Split on runs of top-level whitespace.

        Combinators written with surrounding spaces (`a > b`) come out as
        their own tokens, interleaved with the compound selectors.
        """
        return [token for token in self._split(lambda ch: ch in WHITESPACE) if token]


def split_groups(selector: str) -> list[str]:
    return SelectorTokenizer(selector).split_groups()


def tokenize(selector: str) -> list[str]:
    return SelectorTokenizer(selector).tokenize()


def to_spans(token: str) -> list[Span]:
    """Resolve backslash escapes into `(char, was_escaped)` pairs.

    Escaped characters keep their literal value, so `#some\\.id` yields an
    escaped `.` that the segment parser will not treat as a class boundary.
    """
    spans: list[Span] = []
    pos = 0
    length = len(token)
    while pos < length:
        ch = token[pos]
        if ch == "\\":
            if pos + 1 >= length:
                raise SelectorError("unexpected-character", token)
            spans.append((token[pos + 1], True))
            pos += 2
            continue
        spans.append((ch, False))
        pos += 1
    return spans


def spans_to_text(spans: list[Span], *, escaped: bool = False) -> str:
    """Join spans back into text.

    With `escaped=True` the backslash escapes are restored, which
    is needed for fragments that get compiled again (`:not()` arguments).
    """
    if escaped:
        return "".join("\\" + ch if was_escaped else ch for ch, was_escaped in spans)
    return "".join(ch for ch, _ in spans)
