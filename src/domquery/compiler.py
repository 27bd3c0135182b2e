# CSS selector to XPath 1.0 compiler
# Supports a subset of CSS3 selectors plus jQuery-style pseudo-classes

from __future__ import annotations

import logging

from .cache import XPathCache
from .errors import SelectorError, SelectorNestingError
from .segment import parse_segments
from .tokenizer import SelectorTokenizer
from .xpath import XPathAssembler

logger = logging.getLogger(__name__)


class CompilerOpts:
    __slots__ = ("max_depth", "use_cache")

    def __init__(
        self,
        max_depth=32,
        use_cache=True,
    ):
        self.max_depth = int(max_depth)
        self.use_cache = bool(use_cache)


class SelectorCompiler:
    """Compiles CSS selectors to XPath expressions.

    Results are memoized in `cache`, which may be shared between compilers.
    Group alternatives and the selector arguments of `:not()` and `:has()`
    are compiled recursively; nesting deeper than `opts.max_depth` raises
    `SelectorNestingError`.
    """

    __slots__ = ("cache", "opts")

    opts: CompilerOpts
    cache: XPathCache

    def __init__(self, opts: CompilerOpts | None = None, cache: XPathCache | None = None) -> None:
        self.opts = opts or CompilerOpts()
        self.cache = cache if cache is not None else XPathCache()

    def compile(self, selector: str) -> str:
        """Compile a CSS selector string to an XPath expression.

        Args:
            selector: A CSS selector string, possibly comma separated

        Returns:
            The equivalent XPath expression

        Raises:
            SelectorError: If the selector is invalid
        """
        return self._compile(selector, 0)

    def _compile(self, selector: str, depth: int) -> str:
        if depth > self.opts.max_depth:
            raise SelectorNestingError(selector, depth)

        if self.opts.use_cache:
            cached = self.cache.get(selector)
            if cached is not None:
                return cached
            logger.debug("Cache miss for %r", selector)

        if not selector or not selector.strip():
            raise SelectorError("empty-selector")

        def compile_nested(nested: str) -> str:
            return self._compile(nested, depth + 1)

        tokenizer = SelectorTokenizer(selector)
        groups = tokenizer.split_groups()
        if len(groups) > 1:
            xpath = "|".join(compile_nested(group) for group in groups)
        else:
            segments = parse_segments(tokenizer.tokenize())
            if not segments:
                raise SelectorError("empty-selector", selector)
            xpath = XPathAssembler(compile_nested).assemble(segments)

        logger.debug("Compiled selector %r to %r", selector, xpath)

        if self.opts.use_cache:
            self.cache.set(selector, xpath)
        return xpath


# Process-wide compiler, its cache lives as long as the process
_compiler: SelectorCompiler = SelectorCompiler()


def compile(selector: str) -> str:  # noqa: A001
    """Compile a CSS selector with the shared, cached compiler."""
    return _compiler.compile(selector)


def css_to_xpath(selector: str) -> str:
    """Alias of `compile` that does not shadow the builtin on import."""
    return _compiler.compile(selector)


compile_selector = css_to_xpath
