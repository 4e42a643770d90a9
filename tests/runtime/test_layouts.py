"""
Template composition: layouts with slots and stacks, includes, widgets
and fragments.
"""

import pytest

from candi.compiler import compile_source
from candi.compiler.header import HeaderError
from candi.compiler.nodes import TemplateKind
from candi.runtime import DictLoader, Environment, Template
from candi.runtime.errors import (
    FragmentNotFoundError,
    RenderError,
    TemplateNotFoundError,
    UnknownComponentError,
    UnknownFilterError,
)

from tests.infrastructure.rendering_utils import make_env, render


class TestLayouts:
    def test_page_in_layout(self, site_env):
        result = site_env.render("home", {"title": "Hi", "body": "x"})

        assert result == (
            '<html><head><link rel="home"></head>'
            "<body><h1>Hi</h1><p>x</p><footer>(c)</footer></body></html>"
        )

    def test_kinds_from_file_suffix(self, site_env):
        assert site_env.get_template("base").kind == TemplateKind.LAYOUT
        assert site_env.get_template("home").kind == TemplateKind.PAGE
        assert site_env.get_template("badge").kind == TemplateKind.WIDGET
        assert site_env.get_template("home").layout == "base"

    def test_slot_defaults_without_blocks(self):
        env = make_env({
            "base.layout.html": '<t>{{ slot "title" }}Untitled{{ end }}</t>{{ content }}',
            "plain.page.html": "layout: base\n<template>body</template>",
        })

        assert env.render("plain") == "<t>Untitled</t>body"

    def test_layout_renders_alone(self, site_env):
        template = site_env.get_template("base")

        assert template.render() == (
            "<html><head></head><body><h1>Default</h1><footer>(c)</footer></body></html>"
        )

    def test_block_inline_without_layout(self):
        assert render('a{{ block "b" }}B{{ end }}c') == "aBc"

    def test_empty_block_inside_if_without_layout(self):
        text = '{{ if a }}{{ block "b" }}{{ end }}{{ else }}{{ block "c" }}{{ end }}{{ end }}x'

        assert render(text, {"a": True}) == "x"
        assert render(text, {"a": False}) == "x"

    def test_page_sees_layout_context(self):
        env = make_env({
            "base.layout.html": "<title>{{ title }}</title>{{ content }}",
            "p.page.html": "layout: base\n<template>{{ title }}!</template>",
        })

        assert env.render("p", {"title": "T"}) == "<title>T</title>T!"

    def test_layout_must_be_a_layout(self):
        env = make_env({
            "a.page.html": "layout: b\n<template>x</template>",
            "b.page.html": "y",
        })

        with pytest.raises(RenderError, match="not a layout"):
            env.render("a")

    def test_missing_layout(self):
        env = make_env({"a.page.html": "layout: nowhere\n<template>x</template>"})

        with pytest.raises(TemplateNotFoundError):
            env.render("a")

    def test_layout_cannot_declare_layout(self, env):
        with pytest.raises(HeaderError):
            env.add_template("x", "layout: other\n<template>{{ content }}</template>", kind=TemplateKind.LAYOUT)


class TestStacks:
    def test_pushes_collect_in_order_and_flush(self):
        text = '{{ push "s" }}a{{ end }}{{ push "s" }}b{{ end }}[{{ stack "s" }}][{{ stack "s" }}]'

        assert render(text) == "[ab][]"

    def test_push_in_loop(self):
        text = '{{ for x in xs }}{{ push "s" }}{{ x }}{{ end }}{{ end }}{{ stack "s" }}'

        assert render(text, {"xs": [1, 2, 3]}) == "123"

    def test_push_content_is_escaped(self):
        assert render('{{ push "s" }}{{ v }}{{ end }}{{ stack "s" }}', {"v": "<x>"}) == "&lt;x&gt;"

    def test_page_pushes_reach_layout_head(self):
        env = make_env({
            "base.layout.html": '<head>{{ stack "css" }}</head>{{ content }}',
            "p.page.html": (
                'layout: base\n<template>{{ push "css" }}<link a>{{ end }}'
                '{{ block "unused" }}{{ push "css" }}<link b>{{ end }}{{ end }}x</template>'
            ),
        })

        assert env.render("p") == "<head><link a><link b></head>x"


class TestIncludes:
    def test_include_shares_context(self):
        env = make_env({
            "nav.html": "<nav>{{ title }}</nav>",
            "page.html": '{{ include "nav" }}|{{ include "nav" title="Other" }}|{{ title }}',
        })

        assert env.render("page", {"title": "T"}) == "<nav>T</nav>|<nav>Other</nav>|T"

    def test_include_does_not_see_caller_locals(self):
        env = make_env({
            "show.html": "[{{ x }}]",
            "page.html": '{{ set x = 1 }}{{ include "show" }}{{ include "show" x=x }}',
        })

        assert env.render("page") == "[][1]"

    def test_include_nested_path(self, site_env):
        site_env.add_template("menu", '{{ include "partials/nav" }}')

        assert site_env.render("menu", {"items": ["a", "b"]}) == "<nav><a>a</a><a>b</a></nav>"

    def test_include_missing(self):
        with pytest.raises(TemplateNotFoundError, match="Template not found: nope"):
            render('{{ include "nope" }}')


class TestWidgets:
    def test_widget_template(self, site_env):
        site_env.add_template("w", '<div>{{ widget "badge" label=kind }}</div>')

        assert site_env.render("w", {"kind": "new"}) == '<div><span class="badge">NEW</span></div>'

    def test_registered_component_wins(self, site_env):
        site_env.component("badge", lambda params: f"<i>{params['label']}</i>")
        site_env.add_template("w", '{{ widget "badge" label="x" }}')

        assert site_env.render("w") == "<i>x</i>"

    def test_component_output_is_not_escaped(self):
        env = make_env()
        env.component("card", lambda params: "<card/>")
        template = env.add_template("t", '{{ widget "card" }}')

        assert template.render() == "<card/>"

    def test_widget_does_not_see_caller_context(self):
        env = make_env({"w.widget.html": "[{{ secret }}{{ shown }}]"})
        env.add_template("p", '{{ widget "w" shown=1 }}')

        assert env.render("p", {"secret": "s"}) == "[1]"

    def test_unknown_widget(self):
        with pytest.raises(UnknownComponentError, match="Unknown widget: ghost"):
            render('{{ widget "ghost" }}')

    def test_widget_must_be_widget_kind(self, site_env):
        site_env.add_template("w", '{{ widget "home" }}')

        with pytest.raises(RenderError, match="not a widget"):
            site_env.render("w")

    def test_component_alias(self, site_env):
        site_env.add_template("w", '{{ component "badge" label="a" }}')

        assert site_env.render("w") == '<span class="badge">A</span>'


class TestFragments:
    TEXT = '<ul>{{ for x in xs }}{{ fragment "row" }}<li>{{ x }}</li>{{ end }}{{ end }}</ul>'

    def test_fragment_renders_inline(self):
        assert render(self.TEXT, {"xs": [1, 2]}) == "<ul><li>1</li><li>2</li></ul>"

    def test_fragment_alone_uses_context(self):
        env = make_env()
        template = env.add_template("t", self.TEXT)

        assert template.fragments == ("row",)
        assert template.render_fragment("row", template.new_context({"x": 7})) == "<li>7</li>"

    def test_environment_render_fragment(self):
        env = Environment(loader=DictLoader({"list.html": self.TEXT}))

        assert env.render_fragment("list", "row", {"x": "<b>"}) == "<li>&lt;b&gt;</li>"

    def test_empty_fragment_inside_branches(self):
        text = (
            '{{ if a }}{{ fragment "f" }}{{ end }}{{ else }}{{ fragment "g" }}{{ end }}{{ end }}'
            '{{ switch a }}{{ case true }}{{ fragment "h" }}{{ end }}{{ end }}x'
        )
        template = make_env().add_template("t", text)

        assert template.render(template.new_context({"a": True})) == "x"
        assert template.render_fragment("f") == ""

    def test_missing_fragment(self):
        template = make_env().add_template("t", self.TEXT)

        with pytest.raises(FragmentNotFoundError, match="Fragment not found: nope in t"):
            template.render_fragment("nope")


class TestEnvironment:
    def test_templates_are_cached(self, site_env):
        assert site_env.get_template("home") is site_env.get_template("home")

    def test_list_templates(self, site_env):
        site_env.add_template("extra", "x")

        assert site_env.list_templates() == ["badge", "base", "extra", "home", "partials/nav"]

    def test_not_found_without_loader(self, env):
        with pytest.raises(TemplateNotFoundError):
            env.get_template("nope")

    def test_compile_does_not_register(self, env):
        template = env.compile("x", "t")

        assert template.render() == "x"
        assert env.list_templates() == []

    def test_repr(self, env):
        assert repr(env.add_template("t", "x")) == "<Template 't' (page)>"

    def test_repr_of_unlinked_template(self, env):
        compiled = compile_source("{{ x | nope }}", "t.html")

        with pytest.raises(UnknownFilterError) as exc:
            Template("t", compiled, env)

        unlinked = next(e.locals["self"] for e in exc.traceback if e.name == "_link")
        assert repr(unlinked) == "<Template 't' (page)>"
