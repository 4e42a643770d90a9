import textwrap
from pathlib import Path

import pytest

from candi.runtime import DictLoader, Environment

from tests.infrastructure.file_utils import write, write_templates
from tests.infrastructure.cli_utils import run_cli, jload  # noqa: F401


@pytest.fixture
def env() -> Environment:
    """Environment without a loader; tests register sources with add_template."""
    return Environment()


@pytest.fixture
def site_env() -> Environment:
    """In-memory site: a layout, a page using it, a widget and a partial."""
    return Environment(loader=DictLoader({
        "base.layout.html": (
            "<html><head>{{ stack \"head\" }}</head>"
            "<body>{{ slot \"header\" }}<h1>Default</h1>{{ end }}"
            "{{ content }}"
            "<footer>{{ slot \"footer\" }}(c){{ end }}</footer></body></html>"
        ),
        "home.page.html": (
            "layout: base\n"
            "<template>\n"
            "{{ block \"header\" }}<h1>{{ title }}</h1>{{ end }}"
            "{{ push \"head\" }}<link rel=\"home\">{{ end }}"
            "<p>{{ body }}</p>\n"
            "</template>\n"
        ),
        "badge.widget.html": "<span class=\"badge\">{{ label | upper }}</span>",
        "partials/nav.html": "<nav>{{ for item in items }}<a>{{ item }}</a>{{ end }}</nav>",
    }))


@pytest.fixture
def tmpproj(tmp_path: Path) -> Path:
    """Minimal project: candi.yaml + templates/ with a layout, a page and a widget."""
    root = tmp_path
    write(
        root / "candi.yaml",
        textwrap.dedent("""
        templates: templates
        output: build/candi
        exclude: ["drafts/"]
        """).strip() + "\n",
    )
    write_templates(root / "templates", {
        "base.layout.html": """
            <main>{{ content }}</main>{{ stack "scripts" }}
        """,
        "pages/index.page.html": """
            layout: base
            <template>
            {{ push "scripts" }}<script src="app.js"></script>{{ end -}}
            {{ fragment "greeting" }}<p>Hello, {{ name }}!</p>{{ end }}
            </template>
        """,
        "badge.widget.html": """
            <b>{{ label }}</b>
        """,
        "drafts/wip.page.html": """
            {{ if }}
        """,
    })
    write(root / "data.yaml", "name: World\n")
    return root
