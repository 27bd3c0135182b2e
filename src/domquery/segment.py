# Segment parser for the CSS selector to XPath compiler.
# Decomposes one compound selector token (div.foo#bar[href]:first) into a tag
# name plus ordered attribute and pseudo-class fragments.

from __future__ import annotations

from .errors import SelectorError, UnknownPseudoClass
from .tokenizer import COMBINATORS, Span, spans_to_text, to_spans

FUNCTIONAL_PSEUDO_CLASSES = ("not", "contains", "has")

# Unescaped characters that end a name while scanning right to left
DELIMITERS = ".#:[]()"


class Segment:
    """Parsed form of one compound selector.

    `attribute_filters` holds raw attribute fragments (`href^='x'`,
    `class~="hidden"`, `id="main"`) and `pseudo_filters` raw pseudo-class
    fragments (`first-child`, `not(.a, .b)`), both in left-to-right textual
    order.
    """

    __slots__ = ("attribute_filters", "pseudo_filters", "relation_token", "selector")

    selector: str
    relation_token: str | None
    attribute_filters: list[str]
    pseudo_filters: list[str]

    def __init__(
        self,
        selector: str = "",
        relation_token: str | None = None,
        attribute_filters: list[str] | None = None,
        pseudo_filters: list[str] | None = None,
    ) -> None:
        self.selector = selector
        self.relation_token = relation_token
        self.attribute_filters = attribute_filters or []
        self.pseudo_filters = pseudo_filters or []

    def __repr__(self) -> str:
        parts = [f"Segment({self.selector!r}"]
        if self.relation_token:
            parts.append(f", relation={self.relation_token!r}")
        if self.attribute_filters:
            parts.append(f", attrs={self.attribute_filters!r}")
        if self.pseudo_filters:
            parts.append(f", pseudos={self.pseudo_filters!r}")
        parts.append(")")
        return "".join(parts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Segment):
            return NotImplemented
        return (
            self.selector == other.selector
            and self.relation_token == other.relation_token
            and self.attribute_filters == other.attribute_filters
            and self.pseudo_filters == other.pseudo_filters
        )

    __hash__ = None  # type: ignore[assignment]


def _is_delimiter(span: Span) -> bool:
    ch, escaped = span
    return not escaped and ch in DELIMITERS


def _is_name_char(ch: str) -> bool:
    return ch.isalnum() or ch in "-_" or ord(ch) > 127


def _is_pseudo_name(name: str) -> bool:
    # At least two characters: a letter followed by letters or hyphens
    if len(name) < 2 or not name[0].isalpha():
        return False
    return all(ch.isalpha() or ch == "-" for ch in name)


class SegmentParser:
    """Scans a compound selector token from its end towards its start.

    Each step classifies the trailing construct by its delimiter (`)` for a
    functional pseudo-class, `]` for an attribute, otherwise the character
    in front of the trailing name: `.`, `#` or `:`), consumes it and
    prepends the fragment to the matching list. What is left is the tag.
    """

    __slots__ = ("end", "index", "segment", "spans", "token", "tokens")

    token: str
    index: int
    tokens: list[str]
    spans: list[Span]
    end: int
    segment: Segment

    def __init__(self, tokens: list[str], index: int) -> None:
        self.tokens = tokens
        self.index = index
        self.token = tokens[index]
        self.spans = []
        self.end = 0
        self.segment = Segment()

    def _relation_token(self) -> str | None:
        if self.index > 0 and self.tokens[self.index - 1] in COMBINATORS:
            return self.tokens[self.index - 1]
        return None

    def parse(self) -> Segment | None:
        """Return the segment for the token, or None for a bare combinator."""
        if self.token in COMBINATORS:
            return None

        segment = self.segment
        segment.relation_token = self._relation_token()

        # Plain element name
        if self.token.isalpha():
            segment.selector = self.token
            return segment

        self.spans = to_spans(self.token)
        self.end = len(self.spans)

        while self.end > 0:
            ch, escaped = self.spans[self.end - 1]
            if ch == ")" and not escaped:
                self._read_functional_pseudo()
            elif ch == "]" and not escaped:
                self._read_attribute()
            elif not self._read_suffix():
                break

        segment.selector = self._read_tag()
        return segment

    def _read_tag(self) -> str:
        tag = spans_to_text(self.spans[: self.end])
        if tag == "*":
            return tag
        for ch, escaped in self.spans[: self.end]:
            if not escaped and not _is_name_char(ch):
                raise SelectorError("unexpected-character", self.token)
        return tag

    def _read_functional_pseudo(self) -> None:
        spans = self.spans
        close = self.end - 1
        depth = 0
        open_pos = -1
        for pos in range(close, -1, -1):
            ch, escaped = spans[pos]
            if escaped:
                continue
            if ch == ")":
                depth += 1
            elif ch == "(":
                depth -= 1
                if depth == 0:
                    open_pos = pos
                    break
        if open_pos < 0:
            raise SelectorError("unbalanced-parenthesis", self.token)

        name_start = open_pos
        while name_start > 0 and not _is_delimiter(spans[name_start - 1]):
            name_start -= 1
        if name_start == 0 or spans[name_start - 1] != (":", False):
            raise SelectorError("unexpected-character", self.token)

        name = spans_to_text(spans[name_start:open_pos])
        if not name:
            raise SelectorError("missing-pseudo-name", self.token)
        if name.lower() not in FUNCTIONAL_PSEUDO_CLASSES:
            raise UnknownPseudoClass(name)

        # Arguments keep their escapes, they are compiled again later
        argument = spans_to_text(spans[open_pos + 1 : close], escaped=True)
        if not argument.strip():
            raise SelectorError("missing-pseudo-argument", self.token)

        self.segment.pseudo_filters.insert(0, f"{name.lower()}({argument})")
        self.end = name_start - 1

    def _read_attribute(self) -> None:
        spans = self.spans
        close = self.end - 1
        open_pos = close - 1
        while open_pos >= 0 and spans[open_pos] != ("[", False):
            open_pos -= 1
        if open_pos < 0:
            raise SelectorError("unbalanced-bracket", self.token)

        expression = spans_to_text(spans[open_pos + 1 : close])
        self.segment.attribute_filters.insert(0, expression)
        self.end = open_pos

    def _read_suffix(self) -> bool:
        """Consume a trailing `.class`, `#id` or `:pseudo`.

        Returns False when no delimiter precedes the trailing name, meaning
        the remaining text is the tag name.
        """
        spans = self.spans
        start = self.end
        while start > 0 and not _is_delimiter(spans[start - 1]):
            start -= 1
        if start == 0:
            return False

        delimiter = spans[start - 1][0]
        name = spans_to_text(spans[start : self.end])

        if delimiter == ".":
            if not name:
                raise SelectorError("missing-class-name", self.token)
            self.segment.attribute_filters.insert(0, f'class~="{name}"')
        elif delimiter == "#":
            if not name:
                raise SelectorError("missing-id-value", self.token)
            self.segment.attribute_filters.insert(0, f'id="{name}"')
        elif delimiter == ":":
            if not name:
                raise SelectorError("missing-pseudo-name", self.token)
            if not _is_pseudo_name(name):
                raise UnknownPseudoClass(name)
            self.segment.pseudo_filters.insert(0, name.lower())
        else:
            raise SelectorError("unexpected-character", self.token)

        self.end = start - 1
        return True


def parse_segments(tokens: list[str]) -> list[Segment]:
    """Parse every compound selector token, skipping bare combinators."""
    segments: list[Segment] = []
    for index in range(len(tokens)):
        segment = SegmentParser(tokens, index).parse()
        if segment is not None:
            segments.append(segment)
    return segments
