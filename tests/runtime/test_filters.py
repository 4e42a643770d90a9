"""
Tests for built-in filters, the filter registry and component registry.
"""

from datetime import date, datetime

import pytest

from candi.runtime import ComponentRegistry, FilterRegistry
from candi.runtime import filters as f
from candi.runtime.errors import UnknownFilterError

from tests.infrastructure.rendering_utils import render


class TestBuiltinFilters:
    def test_case(self):
        assert f.upper("abc") == "ABC"
        assert f.lower("ABC") == "abc"
        assert f.capitalize("hELLO") == "HELLO"
        assert f.upper(None) == ""

    def test_trim_and_length(self):
        assert f.trim("  x \n") == "x"
        assert f.length([1, 2, 3]) == 3
        assert f.length("abc") == 3
        assert f.length(None) == 0

    def test_escape(self):
        assert f.escape("<b>") == "&lt;b&gt;"

    def test_truncate(self):
        assert f.truncate("hello world", 5) == "hello..."
        assert f.truncate("hi", 5) == "hi"
        assert f.truncate("hello", 5) == "hello"

    def test_replace(self):
        assert f.replace("a-b-c", "-", "+") == "a+b+c"

    def test_date(self):
        assert f.date(date(2024, 3, 5)) == "2024-03-05"
        assert f.date(datetime(2024, 3, 5, 10, 30), "%d.%m.%Y %H:%M") == "05.03.2024 10:30"
        assert f.date("2024-03-05T10:00:00Z", "%Y/%m/%d") == "2024/03/05"
        assert f.date("soon") == "soon"
        assert f.date(None) == ""

    def test_number(self):
        assert f.number(1234567) == "1,234,567"
        assert f.number(1234.5, ",.2f") == "1,234.50"
        assert f.number("n/a") == "n/a"
        assert f.number(True) == "true"

    def test_join(self):
        assert f.join([1, 2, 3]) == "1, 2, 3"
        assert f.join(["a", "b"], "/") == "a/b"
        assert f.join(None) == ""

    def test_default(self):
        assert f.default(None, "x") == "x"
        assert f.default("", "x") == ""
        assert f.default(0, 5) == 0


class TestFilterRegistry:
    def test_builtins_registered(self):
        registry = FilterRegistry()

        assert "upper" in registry
        assert registry.get("upper") is f.upper
        assert "date" in registry.names()

    def test_without_builtins(self):
        assert FilterRegistry(include_builtins=False).names() == []

    def test_register_as_decorator(self):
        registry = FilterRegistry()

        @registry.register("shout")
        def shout(value):
            return str(value).upper() + "!"

        assert registry.get("shout")("hey") == "HEY!"

    def test_register_directly_overrides(self):
        registry = FilterRegistry()
        registry.register("upper", lambda v: "X")

        assert registry.get("upper")("a") == "X"

    def test_invalid_name(self):
        with pytest.raises(ValueError):
            FilterRegistry().register("not-valid", lambda v: v)

    def test_unknown(self):
        with pytest.raises(UnknownFilterError) as exc:
            FilterRegistry().get("nope")

        assert exc.value.filter_name == "nope"

    def test_check_names_template(self):
        with pytest.raises(UnknownFilterError, match=r"Unknown filter 'nope' \(used in page\)"):
            FilterRegistry().check(["upper", "nope"], "page")


class TestFiltersInTemplates:
    def test_chain(self):
        assert render("{{ name | trim | upper }}", {"name": "  bob "}) == "BOB"

    def test_arguments(self):
        assert render("{{ text | truncate(3) }}", {"text": "abcdef"}) == "abc..."
        assert render('{{ when | date("%d/%m") }}', {"when": date(2024, 1, 2)}) == "02/01"

    def test_filter_output_is_escaped(self):
        assert render('{{ x | default("<none>") }}', {}) == "&lt;none&gt;"

    def test_custom_filter(self, env):
        env.filter("slug", lambda v: str(v).lower().replace(" ", "-"))
        template = env.add_template("t", "{{ title | slug }}")

        assert template.render(template.new_context({"title": "Hello World"})) == "hello-world"

    def test_unknown_filter_fails_at_link_time(self, env):
        with pytest.raises(UnknownFilterError):
            env.add_template("t", "{{ x | nope }}")


class TestComponentRegistry:
    def test_callable_and_object(self):
        class Card:
            def render(self, params):
                return f"<card>{params['t']}</card>"

        registry = ComponentRegistry()
        registry.register("fn", lambda params: "fn")
        registry.register("card", Card())

        assert "fn" in registry
        assert registry.get("card")({"t": 1}) == "<card>1</card>"
        assert registry.get("missing") is None

    def test_not_callable(self):
        with pytest.raises(TypeError):
            ComponentRegistry().register("bad", 42)
