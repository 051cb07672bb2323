"""
cli.py

Responsibility: CLI entrypoint for launch-blueprint.

High-level flow (single command `synth`):
1) Load the options file -> `BlueprintOptions`
2) Create a fresh synth directory under the output directory
3) Run `Blueprint.synth()` (clone, stage, bind workflows)

This module should orchestrate behavior but keep concerns isolated:
- Options: `config.py` / `options.py`
- Staging: `source.py`
- Workflow binding: `workflow.py` / `binder.py`
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from launch_blueprint.blueprint import Blueprint
from launch_blueprint.config import load_options
from launch_blueprint.options import OptionsError
from launch_blueprint.renderer import RenderError
from launch_blueprint.source import SourceError
from launch_blueprint.workflow import WorkflowError

logger = logging.getLogger(__name__)

EXIT_FAILURE = 255


class CLIError(RuntimeError):
    pass


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _synth_directory(outdir: Path) -> Path:
    path = outdir / "synth" / str(int(time.time() * 10))
    path.mkdir(parents=True, exist_ok=True)
    return path


def synth_cmd(args: argparse.Namespace) -> int:
    options_path = Path(args.options) if args.options else None
    if options_path is not None and not options_path.exists():
        raise CLIError(f"Options file does not exist: {options_path}")
    options = load_options(options_path)

    outdir = Path(args.outdir).resolve()
    synth_dir = _synth_directory(outdir)
    durable = outdir / ".cache" if args.cache else synth_dir / ".durable"
    logger.info("Synthesizing into %s", synth_dir)

    result = Blueprint(options, outdir=synth_dir, durable_storage_path=durable).synth()

    for wf in result.workflows:
        logger.info("%s: %d actions bound", wf.path.name, len(wf.actions))
    print(result.repository_path)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="launch-blueprint",
        description="Clone a source repository and bind launch options into its workflows",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("synth", help="Stage a source repository and rewrite its workflows")
    s.add_argument("--options", default=None, help="Path to a JSON or YAML options file")
    s.add_argument("--outdir", default="synth-out", help="Output directory (default: synth-out)")
    s.add_argument(
        "--cache",
        dest="cache",
        action="store_true",
        default=True,
        help="Reuse source clones kept under <outdir>/.cache (default: enabled)",
    )
    s.add_argument("--no-cache", dest="cache", action="store_false", help="Always clone into a fresh directory")

    s.set_defaults(func=synth_cmd)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(bool(args.verbose))
    try:
        return int(args.func(args))
    except (CLIError, OptionsError, SourceError, RenderError, WorkflowError) as e:
        logger.debug("synth failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
