from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .compiler import CompileOptions, analyze, compile_source
from .compiler.header import resolve_kind
from .compiler.nodes import Block, Fragment, format_ast_tree, walk
from .config import CandiConfig, TemplateFinder, load_config
from .errors import CandiUserError, CompileError
from .report import BuildReport, CompiledEntry, ErrorEntry, TokenEntry, TokensReport, dumps
from .runtime import Environment, FileSystemLoader
from .version import tool_version

logger = logging.getLogger(__name__)

_yaml = YAML(typ="safe")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="candi",
        description="Candi template compiler",
        add_help=True,
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {tool_version()}")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging to stderr")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp_tokens = sub.add_parser("tokens", help="Token stream of a template (JSON)")
    sp_tokens.add_argument("file", help="template file")

    sp_ast = sub.add_parser("ast", help="Parsed body as an indented tree")
    sp_ast.add_argument("file", help="template file")

    sp_compile = sub.add_parser("compile", help="Generated Python module source")
    sp_compile.add_argument("file", help="template file")
    sp_compile.add_argument("-o", "--output", help="write to this file instead of stdout")

    sp_render = sub.add_parser("render", help="Render a template from the templates directory")
    sp_render.add_argument("name", help="template name, e.g. pages/index")
    sp_render.add_argument("--data", metavar="FILE", help="render parameters (JSON or YAML mapping)")
    sp_render.add_argument("--fragment", metavar="NAME", help="render only this fragment")

    sub.add_parser("build", help="Compile every template into the output directory (JSON report)")

    return p


def _configure_logging(verbose: bool) -> None:
    debug = verbose or os.environ.get("CANDI_DEBUG", "") not in ("", "0")
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _project_config() -> CandiConfig:
    return load_config(Path.cwd())


def _read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise CandiUserError(f"Cannot read {path}: {e.strerror or e}") from e


def _load_data(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    text = _read_source(Path(path))
    try:
        data = _yaml.load(text)
    except YAMLError as e:
        raise CandiUserError(f"{path}: invalid data file: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise CandiUserError(f"{path}: data must be a mapping")
    return data


# ----------------------------- commands ----------------------------- #

def _cmd_tokens(file: str) -> int:
    source = _read_source(Path(file))
    header, tokens = analyze(source, file)
    report = TokensReport(
        file=file,
        kind=resolve_kind(header, file).value,
        layout=header.layout,
        tokens=[TokenEntry.from_token(t) for t in tokens],
    )
    sys.stdout.write(dumps(report))
    return 0


def _cmd_ast(file: str) -> int:
    source = _read_source(Path(file))
    compiled = compile_source(source, file, _project_config().compile_options())
    sys.stdout.write(format_ast_tree(compiled.body) + "\n")
    return 0


def _cmd_compile(file: str, output: Optional[str]) -> int:
    source = _read_source(Path(file))
    compiled = compile_source(source, file, _project_config().compile_options())
    if output:
        out_path = Path(output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(compiled.python_source, encoding="utf-8")
        logger.debug(f"Wrote {out_path}")
    else:
        sys.stdout.write(compiled.python_source)
    return 0


def _cmd_render(name: str, data_file: Optional[str], fragment: Optional[str]) -> int:
    cfg = _project_config()
    env = Environment(
        loader=FileSystemLoader(cfg.templates, cfg.include, cfg.exclude),
        options=cfg.compile_options(),
    )
    params = _load_data(data_file)
    if fragment:
        sys.stdout.write(env.render_fragment(name, fragment, params))
    else:
        sys.stdout.write(env.render(name, params))
    return 0


def _cmd_build() -> int:
    cfg = _project_config()
    options: CompileOptions = cfg.compile_options()
    finder = TemplateFinder(cfg.templates, cfg.include, cfg.exclude)

    report = BuildReport(
        tool_version=tool_version(),
        templates_dir=cfg.templates.as_posix(),
        output_dir=cfg.output.as_posix(),
    )
    for name, path in finder.iter_templates():
        file_name = path.relative_to(cfg.templates).as_posix()
        try:
            compiled = compile_source(_read_source(path), file_name, options)
        except CompileError as e:
            logger.debug(f"Build of {file_name} failed: {e}")
            report.errors.append(ErrorEntry.from_error(e))
            continue

        out_path = cfg.output / f"{name}.py"
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(compiled.python_source, encoding="utf-8")

        nodes = list(walk(compiled.body))
        report.compiled.append(CompiledEntry(
            name=name,
            file=file_name,
            kind=compiled.kind.value,
            layout=compiled.layout,
            output=out_path.relative_to(cfg.output).as_posix(),
            fragments=[n.name for n in nodes if isinstance(n, Fragment)],
            blocks=[n.name for n in nodes if isinstance(n, Block)],
        ))

    sys.stdout.write(dumps(report))
    return 0 if report.ok else 2


# ------------------------------ errors ------------------------------ #

def _error_text(e: CandiUserError) -> str:
    if not isinstance(e, CompileError):
        return str(e)
    candidates = [Path(e.location.file)]
    try:
        candidates.append(_project_config().templates / e.location.file)
    except CandiUserError:
        pass
    for candidate in candidates:
        if candidate.is_file():
            return e.format_pointer(candidate.read_text(encoding="utf-8"))
    return e.format_pointer()


def main(argv: list[str] | None = None) -> int:
    ns = _build_parser().parse_args(argv)
    _configure_logging(ns.verbose)

    try:
        if ns.cmd == "tokens":
            return _cmd_tokens(ns.file)
        if ns.cmd == "ast":
            return _cmd_ast(ns.file)
        if ns.cmd == "compile":
            return _cmd_compile(ns.file, ns.output)
        if ns.cmd == "render":
            return _cmd_render(ns.name, ns.data, ns.fragment)
        if ns.cmd == "build":
            return _cmd_build()
    except CandiUserError as e:
        sys.stderr.write(_error_text(e).rstrip() + "\n")
        return 2

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
