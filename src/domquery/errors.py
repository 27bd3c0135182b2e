"""Exception types and message definitions for selector compilation.

Every failure raised while turning a CSS selector into XPath derives from
`SelectorError`, so callers can catch a single type. Messages always quote
the offending fragment to make authoring mistakes easy to locate.
"""

from __future__ import annotations


def generate_error_message(code: str, fragment: str | None = None) -> str:
    """Generate a human-readable error message from an error code.

    Args:
        code: The error code string (kebab-case format)
        fragment: Optional selector fragment to include in the message

    Returns:
        Human-readable error message string
    """
    messages = {
        # Selector structure
        "empty-selector": "Empty selector",
        "unbalanced-parenthesis": "Unbalanced parenthesis in selector",
        "unbalanced-bracket": "Unbalanced bracket in selector",
        "missing-class-name": "Expected class name after '.'",
        "missing-id-value": "Expected id value after '#'",
        "missing-pseudo-name": "Expected pseudo-class name after ':'",
        "missing-pseudo-argument": "Expected argument inside pseudo-class parentheses",
        "unexpected-character": "Unexpected character in selector",
        "nesting-too-deep": "Selector nesting exceeds the recursion limit",
        # Attribute selectors
        "malformed-attribute-selector": "Attribute selector is malformed or contains unsupported characters",
        # Pseudo-classes
        "unknown-pseudo-class": "Pseudo class unknown",
        # Evaluation
        "invalid-xpath": "Expression is malformed",
        "invalid-xpath-context": "Expression is malformed or context node is invalid",
    }

    message = messages.get(code, code.replace("-", " ").capitalize())
    if fragment is not None:
        return f"{message}: {fragment!r}"
    return message


class SelectorError(ValueError):
    """Raised when a CSS selector is invalid."""

    code: str

    def __init__(self, code: str, fragment: str | None = None) -> None:
        self.code = code
        super().__init__(generate_error_message(code, fragment))


class MalformedAttributeSelector(SelectorError):
    """An `[attribute]` fragment does not match the supported operator grammar."""

    fragment: str

    def __init__(self, fragment: str) -> None:
        self.fragment = fragment
        super().__init__("malformed-attribute-selector", fragment)


class UnknownPseudoClass(SelectorError):
    """A `:pseudo` name is not one of the supported pseudo-classes."""

    name: str

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__("unknown-pseudo-class", name)


class SelectorNestingError(SelectorError):
    """Recursive compilation (`:not()`, `:has()`, groups) went too deep."""

    depth: int

    def __init__(self, selector: str, depth: int) -> None:
        self.depth = depth
        super().__init__("nesting-too-deep", selector)


class InvalidXPathError(ValueError):
    """The tree's XPath evaluator rejected an expression."""

    expression: str

    def __init__(self, expression: str, *, with_context: bool = False) -> None:
        self.expression = expression
        code = "invalid-xpath-context" if with_context else "invalid-xpath"
        super().__init__(generate_error_message(code, expression))
