# XPath generation for the CSS selector compiler.
# Rewrites attribute and pseudo-class fragments into XPath predicates and
# assembles parsed segments into a complete location path.

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from .errors import MalformedAttributeSelector, UnknownPseudoClass
from .segment import Segment
from .tokenizer import spans_to_text, split_groups, to_spans

if TYPE_CHECKING:
    from collections.abc import Callable

# name, optional operator, optional quoted or bare value
ATTRIBUTE_RE = re.compile(
    r"""^([a-z0-9_][a-z0-9_-]*)(?:([!*^$~|]?)=)?['"]*([^'"]+)?['"]*$""",
    re.IGNORECASE,
)

FUNCTIONAL_PSEUDO_RE = re.compile(r"^(not|contains|has)\((.+)\)$", re.IGNORECASE | re.DOTALL)

PSEUDO_CLASS_PREDICATES = {
    "disabled": "[@disabled]",
    "first-child": "[not(preceding-sibling::*)]",
    "last-child": "[not(following-sibling::*)]",
    "only-child": "[not(preceding-sibling::*) and not(following-sibling::*)]",
    "empty": "[count(*) = 0 and string-length() = 0]",
    "not-empty": "[count(*) > 0 or string-length() > 0]",
    "parent": "[count(*) > 0]",
    "header": "[self::h1 or self::h2 or self::h3 or self::h4 or self::h5 or self::h6]",
    # position() is 1-based, :odd and :even count from 0
    "odd": "[position() mod 2 = 0]",
    "even": "[position() mod 2 = 1]",
    "first": "[1]",
    "last": "[last()]",
    "root": "[not(parent::*)]",
}

# Pseudo-classes that select from the whole matched list, not per parent
RESULT_SCOPED_PSEUDO_CLASSES = ("first", "last")

AXIS_PREFIXES = {
    None: "//",
    ">": "/",
    "~": "/following-sibling::",
    "+": "/following-sibling::",
}


def rewrite_attribute(expression: str) -> str:
    """Translate an attribute fragment such as `href^='http'` to a predicate."""
    match = ATTRIBUTE_RE.match(expression)
    if not match:
        raise MalformedAttributeSelector(expression)

    name = match.group(1).lower()
    operator = match.group(2)
    value = match.group(3) or ""

    if operator is None:
        if match.group(3) is not None:
            raise MalformedAttributeSelector(expression)
        return f"[@{name}]"
    if operator == "":
        return f"[@{name}='{value}']"
    if operator == "!":
        return f"[@{name}!='{value}']"
    if operator in "~*^$" and not value:
        # An empty operand never matches
        return "[false()]"
    if operator == "~":
        # whole word within a space separated list
        return f"[contains(concat(' ', normalize-space(@{name}), ' '), ' {value} ')]"
    if operator == "*":
        return f"[contains(@{name}, '{value}')]"
    if operator == "^":
        return f"[starts-with(@{name}, '{value}')]"
    if operator == "$":
        return f"[@{name} and substring(@{name}, string-length(@{name})-{len(value) - 1}) = '{value}']"
    # operator == "|": exact value or value followed by a dash
    return f"[@{name}='{value}' or starts-with(@{name}, '{value}-')]"


class XPathAssembler:
    """Turns parsed segments into an XPath location path.

    `compile_selector` is called for selector arguments of `:not()` and
    `:has()`; the compiler passes a callback that tracks recursion depth.
    """

    __slots__ = ("compile_selector",)

    compile_selector: Callable[[str], str]

    def __init__(self, compile_selector: Callable[[str], str]) -> None:
        self.compile_selector = compile_selector

    def assemble(self, segments: list[Segment]) -> str:
        tokens: list[str] = []
        previous: Segment | None = None
        for segment in segments:
            self._emit_segment(segment, previous, tokens)
            previous = segment
        return "".join(tokens)

    def _emit_segment(self, segment: Segment, previous: Segment | None, tokens: list[str]) -> None:
        relation = segment.relation_token
        adjacent = relation == "+" and previous is not None
        if adjacent and any(expression in RESULT_SCOPED_PSEUDO_CLASSES for expression in previous.pseudo_filters):
            # The previous step is a single node, so its next element is the only candidate
            tokens.append("/following-sibling::*[1]/self::")
            adjacent = False
        else:
            tokens.append(AXIS_PREFIXES[relation])
        tokens.append(segment.selector or "*")

        # following-sibling:: alone would accept any later sibling
        if adjacent:
            tokens.append(f"[preceding-sibling::*[1][self::{self._node_test(previous)}]]")

        for expression in segment.attribute_filters:
            tokens.append(rewrite_attribute(expression))

        # Last, since :first and :last wrap everything emitted so far
        for expression in segment.pseudo_filters:
            tokens.append(self.rewrite_pseudo(expression, tokens))

    def _node_test(self, segment: Segment) -> str:
        """Compile a segment on its own, without its axis."""
        standalone = Segment(segment.selector, None, segment.attribute_filters, segment.pseudo_filters)
        tokens: list[str] = []
        self._emit_segment(standalone, None, tokens)
        return "".join(tokens).lstrip("/")

    def rewrite_pseudo(self, expression: str, tokens: list[str]) -> str:
        """Translate a pseudo-class fragment to a predicate.

        For `first` and `last` the tokens emitted so far are wrapped in
        parentheses, in place, so the position applies to the whole result.
        """
        match = FUNCTIONAL_PSEUDO_RE.match(expression)
        if match:
            name = match.group(1).lower()
            argument = match.group(2)
            if name == "not":
                return self._rewrite_not(argument)
            if name == "contains":
                return self._rewrite_contains(argument)
            return self._rewrite_has(argument)

        if expression in RESULT_SCOPED_PSEUDO_CLASSES:
            tokens.insert(0, "(")
            tokens.append(")")

        predicate = PSEUDO_CLASS_PREDICATES.get(expression)
        if predicate is None:
            raise UnknownPseudoClass(expression)
        return predicate

    def _rewrite_not(self, argument: str) -> str:
        conditions = []
        for part in split_groups(argument):
            conditions.append("self::" + self.compile_selector(part).lstrip("/"))
        return f"[not({' or '.join(conditions)})]"

    def _rewrite_contains(self, argument: str) -> str:
        # Quotes inside the text are not escaped
        text = spans_to_text(to_spans(argument))
        return f"[text()[contains(.,'{text}')]]"

    def _rewrite_has(self, argument: str) -> str:
        conditions = []
        for part in split_groups(argument):
            relative = self.compile_selector(part).lstrip("/")
            axis = "child" if part.startswith("> ") else "descendant"
            conditions.append(f"{axis}::{relative}")
        return f"[{' or '.join(conditions)}]"
