from .cache import XPathCache
from .compiler import CompilerOpts, SelectorCompiler, compile, compile_selector, css_to_xpath
from .document import DomQuery
from .errors import (
    InvalidXPathError,
    MalformedAttributeSelector,
    SelectorError,
    SelectorNestingError,
    UnknownPseudoClass,
)

__all__ = [
    "CompilerOpts",
    "DomQuery",
    "InvalidXPathError",
    "MalformedAttributeSelector",
    "SelectorCompiler",
    "SelectorError",
    "SelectorNestingError",
    "UnknownPseudoClass",
    "XPathCache",
    "compile",
    "compile_selector",
    "css_to_xpath",
]
