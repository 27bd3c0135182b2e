import pytest

from domquery.document import DomQuery, context_relative
from domquery.errors import InvalidXPathError, SelectorError

LIST_HTML = """<ul>
    <li>list item 1</li>
    <li>list item 2</li>
    <li>list item 3</li>
    <li>list item 4</li>
    <li>list item 5</li>
    <li>list item 6</li>
</ul>"""

PAGE_HTML = """<html><body>
<div id="main" class="box wide">
    <h1>Title</h1>
    <ul id="first"><li class="a">one</li><li>two</li></ul>
    <p>para <a href="https://example.com/x.html" lang="en-US">link</a></p>
    <ul id="second"><li>three</li><li class="a b">four</li></ul>
    <h4>Sub</h4>
    <span></span>
    <input type="text" disabled>
</div>
<div id="other"><a href="page.htm">short</a><a href="ml">tiny</a></div>
</body></html>"""


@pytest.fixture
def page():
    return DomQuery(PAGE_HTML)


def ids(result):
    return [node.get("id") for node in result.nodes]


def texts(result):
    return [node.text() for node in result]


@pytest.mark.parametrize(
    ("xpath", "expected"),
    [
        ("//a", ".//a"),
        ("/a", "./a"),
        ("(//div/a)[1]", "(.//div/a)[1]"),
        ("//div|//span", ".//div|.//span"),
        ("//a[@title='x|y']|(//b)[last()]", ".//a[@title='x|y']|(.//b)[last()]"),
    ],
)
def test_context_relative(xpath, expected):
    assert context_relative(xpath) == expected


def test_even_and_odd_count_from_zero():
    dom = DomQuery(LIST_HTML)

    even = dom.find("li").filter(":even")
    assert even.length == 3
    assert even.last().text() == "list item 5"

    odd = dom.find("li").filter(":odd")
    assert odd.length == 3
    assert odd.last().text() == "list item 6"


def test_find_basic(page):
    assert page.find("li").length == 4
    assert texts(page.find("li.a")) == ["one", "four"]
    assert ids(page.find("#main > ul")) == ["first", "second"]
    assert page.find("div, span").length == 3


def test_find_first_and_last_select_from_whole_result(page):
    assert texts(page.find("ul li:first")) == ["one"]
    assert texts(page.find("ul li:last")) == ["four"]


def test_find_first_child_is_per_parent(page):
    assert texts(page.find("li:first-child")) == ["one", "three"]


def test_adjacent_sibling_only_matches_next_element(page):
    assert ids(page.find("h1 + ul")) == ["first"]
    assert ids(page.find("h1 ~ ul")) == ["first", "second"]
    assert ids(page.find("p + ul")) == ["second"]


def test_attribute_operators_match(page):
    assert page.find("a[href^='https']").length == 1
    assert page.find("a[href*='example']").length == 1
    assert page.find("a[lang|='en']").length == 1
    assert page.find("div[class~='wide']").length == 1
    assert page.find("div[id!='main']").length == 1
    assert page.find("input[type=text]").length == 1


def test_suffix_match_rejects_shorter_values(page):
    assert texts(page.find("a[href$='html']")) == ["link"]
    assert texts(page.find("a[href$='htm']")) == ["short"]
    assert page.find("a[href$='.html']").length == 1


def test_pseudo_classes_match(page):
    assert page.find(":disabled").length == 1
    assert [n.get(0).tag for n in page.find("#main :header")] == ["h1", "h4"]
    assert [n.get(0).tag for n in page.find("#main > :empty")] == ["span", "input"]
    assert page.find(":root").get(0).tag == "html"
    assert texts(page.find("li:contains(two)")) == ["two"]
    assert ids(page.find("ul:has(li.b)")) == ["second"]
    assert ids(page.find("div:has(> a)")) == ["other"]
    assert texts(page.find("#main li:not(.a)")) == ["two", "three"]


def test_find_from_a_subset_is_relative(page):
    second = page.find("#second")
    assert texts(second.find("li")) == ["three", "four"]
    assert texts(second.find("> li:first")) == ["three"]
    assert texts(page.find("ul").find("li:last")) == ["two", "four"]


def test_filter_not_and_is(page):
    items = page.find("li")
    assert texts(items.filter(".a")) == ["one", "four"]
    assert texts(items.not_(".a")) == ["two", "three"]
    assert items.is_(".b")
    assert not items.is_("p")
    assert texts(items.filter(lambda node, index: index % 2 == 1)) == ["two", "four"]
    assert texts(items.not_(lambda node, index: index == 0)) == ["two", "three", "four"]


def test_has(page):
    assert ids(page.find("ul").has(".b")) == ["second"]


def test_traversal(page):
    first_ul = page.find("#first")
    assert texts(first_ul.children()) == ["one", "two"]
    assert texts(first_ul.children(".a")) == ["one"]
    assert ids(page.find("li").parent()) == ["first", "second"]
    assert first_ul.next().get(0).tag == "p"
    assert first_ul.prev().get(0).tag == "h1"
    assert texts(page.find("li.a").first().siblings()) == ["two"]
    assert ids(page.find("li").closest("div")) == ["main"]
    assert ids(page.find("a").closest("#other")) == ["other"]


def test_indexing_and_slicing(page):
    items = page.find("li")
    assert items[1].text() == "two"
    assert items.eq(-1).text() == "four"
    assert items.eq(10).length == 0
    assert items.get(10) is None
    assert texts(items.slice(1, 3)) == ["two", "three"]
    assert len(items) == 4


def test_reading(page):
    link = page.find("p a")
    assert link.attr("href") == "https://example.com/x.html"
    assert link.attr("missing") is None
    assert link.outer_html() == '<a href="https://example.com/x.html" lang="en-US">link</a>'
    assert DomQuery().text() == ""
    assert DomQuery().attr("id") is None


def test_xml_mode():
    dom = DomQuery('<?xml version="1.0" encoding="UTF-8"?><root><item id="x"/><item Name="y">t</item></root>')
    assert dom.xml_mode
    assert dom.find("item").length == 2
    assert dom.find("#x").length == 1
    assert dom.find("root > item:last").text() == "t"
    assert dom.find("#x").outer_html() == '<item id="x"/>'


def test_empty_document():
    dom = DomQuery("")
    assert dom.length == 0
    assert dom.find("a").length == 0


def test_from_element(page):
    node = page.find("#second").get(0)
    wrapped = DomQuery(node)
    assert texts(wrapped.find("li")) == ["three", "four"]
    assert not wrapped.xml_mode


def test_invalid_xpath_propagates(page):
    with pytest.raises(InvalidXPathError):
        page.xpath_query("//a[")
    with pytest.raises(InvalidXPathError):
        page.xpath_query("count(//a)")


def test_selector_errors_propagate(page):
    with pytest.raises(SelectorError):
        page.find("a:bogus")


def test_has_with_group_requires_a_match():
    dom = DomQuery("<div id='d'><p>x</p><b>y</b></div><div id='e'><i>z</i></div>")
    assert ids(dom.find("div:has(p, b)")) == ["d"]


def test_adjacent_sibling_after_first():
    dom = DomQuery("<div><p>1</p><b>2</b><p>3</p><b>4</b></div>")
    assert texts(dom.find("p:first + b")) == ["2"]


def test_empty_substring_operand_matches_nothing(page):
    assert page.find("div[id$='']").length == 0
    assert page.find("div[id^='']").length == 0
    assert page.find("div[id*='']").length == 0


@pytest.mark.parametrize("content", ['<?xml version="1.0"?>', b'<?xml version="1.0"?>'])
def test_xml_declaration_only(content):
    dom = DomQuery(content)
    assert dom.xml_mode
    assert dom.length == 0
    assert dom.find("a").length == 0


def test_xml_str_with_declared_encoding():
    dom = DomQuery('<?xml version="1.0" encoding="ISO-8859-1"?><root><item>café</item></root>')
    assert dom.find("item").text() == "café"


def test_xml_bytes_use_declared_encoding():
    dom = DomQuery('<?xml version="1.0" encoding="ISO-8859-1"?><root><item>café</item></root>'.encode("latin-1"))
    assert dom.find("item").text() == "café"
