import threading

from domquery.cache import XPathCache
from domquery.compiler import CompilerOpts, SelectorCompiler


def test_cache_is_populated_on_first_compile():
    cache = XPathCache()
    compiler = SelectorCompiler(cache=cache)
    assert "p > a" not in cache

    first = compiler.compile("p > a")
    assert cache.get("p > a") == first
    assert compiler.compile("p > a") == first


def test_nested_selectors_are_cached_too():
    cache = XPathCache()
    SelectorCompiler(cache=cache).compile("a:not(b), c")
    assert cache.get("b") == "//b"
    assert cache.get("c") == "//c"
    assert cache.get("a:not(b), c") == "//a[not(self::b)]|//c"


def test_cached_value_is_returned_without_recompiling():
    cache = XPathCache()
    cache.set("a", "//cached")
    assert SelectorCompiler(cache=cache).compile("a") == "//cached"


def test_first_value_wins():
    cache = XPathCache()
    cache.set("a", "//a")
    cache.set("a", "//other")
    assert cache.get("a") == "//a"


def test_cache_can_be_disabled():
    cache = XPathCache()
    compiler = SelectorCompiler(CompilerOpts(use_cache=False), cache)
    assert compiler.compile("a b") == "//a//b"
    assert len(cache) == 0


def test_empty_cache_is_still_used():
    # An empty cache is falsy, it must not be replaced by a new one
    cache = XPathCache()
    compiler = SelectorCompiler(cache=cache)
    assert compiler.cache is cache


def test_clear():
    cache = XPathCache()
    SelectorCompiler(cache=cache).compile("a")
    assert len(cache) == 1
    cache.clear()
    assert len(cache) == 0


def test_shared_cache_across_threads():
    cache = XPathCache()
    compiler = SelectorCompiler(cache=cache)
    selectors = [f"div.c{i} > a:first" for i in range(50)]
    results = {}

    def work():
        for selector in selectors:
            results.setdefault(selector, set()).add(compiler.compile(selector))

    threads = [threading.Thread(target=work) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(cache) == len(selectors)
    assert all(len(values) == 1 for values in results.values())
