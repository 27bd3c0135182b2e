"""jQuery-style node sets over an lxml tree.

The tree itself (parsing, XPath evaluation, serialization) is lxml; this
module only compiles selectors and feeds them to the tree's evaluator.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

import lxml.html
from lxml import etree

from .compiler import css_to_xpath
from .errors import InvalidXPathError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

logger = logging.getLogger(__name__)

XML_DECLARATION_RE = re.compile(r"^\s*<\?xml[^>]*\?>")


def _is_element(node: Any) -> bool:
    # Comments and processing instructions have a callable tag
    return etree.iselement(node) and isinstance(node.tag, str)


def _split_union(xpath: str) -> list[str]:
    """Split an expression on `|` outside brackets, parentheses and quotes."""
    branches: list[str] = []
    depth = 0
    quote = ""
    start = 0
    for pos, ch in enumerate(xpath):
        if quote:
            if ch == quote:
                quote = ""
        elif ch in "'\"":
            quote = ch
        elif ch in "[(":
            depth += 1
        elif ch in "])":
            depth -= 1
        elif ch == "|" and depth == 0:
            branches.append(xpath[start:pos])
            start = pos + 1
    branches.append(xpath[start:])
    return branches


def context_relative(xpath: str) -> str:
    """Anchor an absolute compiled expression at the context node.

    `//a` becomes `.//a` and `(//div/a)[1]` becomes `(.//div/a)[1]`, for
    each branch of a union.
    """
    branches = []
    for branch in _split_union(xpath):
        stripped = branch.lstrip("(")
        opening = branch[: len(branch) - len(stripped)]
        if stripped.startswith("/"):
            stripped = "." + stripped
        branches.append(opening + stripped)
    return "|".join(branches)


class DomQuery:
    """An ordered set of element nodes belonging to one document.

    Construct it from markup (a string starting with `<?xml` is parsed as
    XML, anything else as HTML), from an lxml element or from a list of
    elements. A set loaded from markup searches the whole document.
    """

    __slots__ = ("document", "is_root", "nodes", "xml_mode")

    document: Any | None
    nodes: list[Any]
    xml_mode: bool
    is_root: bool

    def __init__(self, content: Any = None, *, xml_mode: bool | None = None) -> None:
        self.document = None
        self.nodes = []
        self.xml_mode = bool(xml_mode)
        self.is_root = False

        if content is None:
            return

        if isinstance(content, DomQuery):
            self.document = content.document
            self.nodes = list(content.nodes)
            self.xml_mode = content.xml_mode
            return

        if isinstance(content, (str, bytes)):
            self._load_content(content, xml_mode)
            return

        if etree.iselement(content):
            content = [content]

        self.nodes = [node for node in content if _is_element(node)]
        if self.nodes:
            self.document = self.nodes[0].getroottree()
            if xml_mode is None:
                self.xml_mode = not isinstance(self.nodes[0], lxml.html.HtmlElement)

    def _load_content(self, content: str | bytes, xml_mode: bool | None) -> None:
        text = content.decode("utf-8", "replace") if isinstance(content, bytes) else content
        if not text.strip():
            return

        if xml_mode is None:
            xml_mode = text.lstrip()[:5].lower() == "<?xml"
        self.xml_mode = xml_mode

        if xml_mode:
            parser = etree.XMLParser(recover=True, resolve_entities=False)
            if isinstance(content, bytes):
                # lxml decodes bytes using the declared encoding
                root = etree.fromstring(content, parser=parser)
            else:
                # lxml refuses str input that carries an encoding declaration
                body = XML_DECLARATION_RE.sub("", content, count=1)
                if not body.strip():
                    return
                root = etree.fromstring(body, parser=parser)
        else:
            root = lxml.html.document_fromstring(text)

        # Recovery can leave nothing, e.g. a bare declaration
        if root is None:
            return

        self.document = root.getroottree()
        self.nodes = [root]
        self.is_root = True

    def _derive(self, nodes: list[Any]) -> DomQuery:
        result = DomQuery()
        result.document = self.document
        result.xml_mode = self.xml_mode
        result.nodes = nodes
        return result

    @staticmethod
    def css_to_xpath(selector: str) -> str:
        return css_to_xpath(selector)

    # Set access

    @property
    def length(self) -> int:
        return len(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[DomQuery]:
        for node in self.nodes:
            yield self._derive([node])

    def __getitem__(self, index: int) -> DomQuery:
        return self.eq(index)

    def __repr__(self) -> str:
        return f"<DomQuery length={self.length}>"

    def get(self, index: int) -> Any | None:
        """Return the raw lxml node at index (negative allowed) or None."""
        try:
            return self.nodes[index]
        except IndexError:
            return None

    def eq(self, index: int) -> DomQuery:
        node = self.get(index)
        return self._derive([node] if node is not None else [])

    def first(self) -> DomQuery:
        return self.eq(0)

    def last(self) -> DomQuery:
        return self.eq(-1)

    def slice(self, start: int = 0, stop: int | None = None) -> DomQuery:
        return self._derive(self.nodes[start:stop])

    # XPath boundary

    def xpath_query(self, expression: str, context_node: Any | None = None) -> list[Any]:
        """Evaluate an XPath expression and return the matched elements.

        Raises:
            InvalidXPathError: If lxml rejects the expression
        """
        target = context_node if context_node is not None else self.document
        if target is None:
            return []

        logger.debug("Evaluating %r", expression)
        try:
            result = target.xpath(expression)
        except etree.XPathError as e:
            raise InvalidXPathError(expression, with_context=context_node is not None) from e

        if not isinstance(result, list):
            raise InvalidXPathError(expression, with_context=context_node is not None)
        return [node for node in result if _is_element(node)]

    def _document_matches(self, selector: str) -> set[Any]:
        return set(self.xpath_query(css_to_xpath(selector)))

    def _document_order(self, nodes: list[Any]) -> list[Any]:
        if len(nodes) < 2 or self.document is None:
            return nodes
        wanted = set(nodes)
        return [node for node in self.document.iter() if node in wanted]

    # Filtering

    def find(self, selector: str) -> DomQuery:
        """Get the descendants of each node that match the selector."""
        xpath = css_to_xpath(selector)
        if self.is_root:
            return self._derive(self.xpath_query(xpath))

        relative = context_relative(xpath)
        found: list[Any] = []
        seen: set[Any] = set()
        for node in self.nodes:
            for match in self.xpath_query(relative, node):
                if match not in seen:
                    seen.add(match)
                    found.append(match)

        if len(self.nodes) > 1:
            found = self._document_order(found)
        return self._derive(found)

    def filter(self, selector: str | Callable[[Any, int], bool]) -> DomQuery:
        """Reduce the set to the nodes that match the selector or predicate."""
        if callable(selector):
            return self._derive([node for index, node in enumerate(self.nodes) if selector(node, index)])
        if not self.nodes:
            return self._derive([])
        matched = self._document_matches(selector)
        return self._derive([node for node in self.nodes if node in matched])

    def not_(self, selector: str | Callable[[Any, int], bool]) -> DomQuery:
        """Remove the nodes that match the selector or predicate."""
        if callable(selector):
            return self._derive([node for index, node in enumerate(self.nodes) if not selector(node, index)])
        if not self.nodes:
            return self._derive([])
        matched = self._document_matches(selector)
        return self._derive([node for node in self.nodes if node not in matched])

    def is_(self, selector: str | Callable[[Any, int], bool]) -> bool:
        """Check whether any node matches the selector or predicate."""
        return self.filter(selector).length > 0

    def has(self, selector: str) -> DomQuery:
        """Keep the nodes that have a descendant matching the selector."""
        return self._derive([node for node in self.nodes if self._derive([node]).find(selector).length > 0])

    # Traversal

    def _filtered(self, nodes: list[Any], selector: str | None) -> DomQuery:
        result = self._derive(nodes)
        if selector:
            result = result.filter(selector)
        return result

    def children(self, selector: str | None = None) -> DomQuery:
        nodes = [child for node in self.nodes for child in node if _is_element(child)]
        return self._filtered(nodes, selector)

    def parent(self, selector: str | None = None) -> DomQuery:
        nodes: list[Any] = []
        for node in self.nodes:
            parent = node.getparent()
            if parent is not None and parent not in nodes:
                nodes.append(parent)
        return self._filtered(nodes, selector)

    def siblings(self, selector: str | None = None) -> DomQuery:
        nodes: list[Any] = []
        for node in self.nodes:
            parent = node.getparent()
            if parent is None:
                continue
            for sibling in parent:
                if _is_element(sibling) and sibling is not node and sibling not in nodes:
                    nodes.append(sibling)
        return self._filtered(nodes, selector)

    def next(self, selector: str | None = None) -> DomQuery:
        nodes: list[Any] = []
        for node in self.nodes:
            sibling = node.getnext()
            while sibling is not None and not _is_element(sibling):
                sibling = sibling.getnext()
            if sibling is not None:
                nodes.append(sibling)
        return self._filtered(nodes, selector)

    def prev(self, selector: str | None = None) -> DomQuery:
        nodes: list[Any] = []
        for node in self.nodes:
            sibling = node.getprevious()
            while sibling is not None and not _is_element(sibling):
                sibling = sibling.getprevious()
            if sibling is not None:
                nodes.append(sibling)
        return self._filtered(nodes, selector)

    def closest(self, selector: str) -> DomQuery:
        """For each node, the first of itself and its ancestors that matches."""
        matched = self._document_matches(selector) if self.nodes else set()
        nodes: list[Any] = []
        for node in self.nodes:
            current = node
            while current is not None:
                if current in matched:
                    if current not in nodes:
                        nodes.append(current)
                    break
                current = current.getparent()
        return self._derive(nodes)

    # Reading

    def text(self) -> str:
        """Combined text of all nodes, including their descendants."""
        return "".join("".join(node.itertext()) for node in self.nodes)

    def attr(self, name: str) -> str | None:
        node = self.get(0)
        if node is None:
            return None
        return node.get(name)

    def outer_html(self) -> str:
        node = self.get(0)
        if node is None:
            return ""
        method = "xml" if self.xml_mode else "html"
        return etree.tostring(node, encoding="unicode", method=method, with_tail=False)
