"""
blueprint.py

Responsibility: Synthesize a workspace from `BlueprintOptions`.

High-level flow:
1) Stage the source repository into `<outdir>/src/<destinationRepositoryName>`
2) Read the embedded launch-options schema, if any, and report unset options
3) Render, parse and bind every workflow under `.codecatalyst/workflows`
4) Write the rewritten workflows back in place

Every workflow is loaded and bound before the first one is written, so a
broken workflow file leaves the staged sources untouched.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from launch_blueprint.binder import bind_workflow
from launch_blueprint.config import (
    EMBEDDED_OPTIONS_PATH,
    BlueprintOptions,
    load_launch_options_schema,
    missing_launch_options,
)
from launch_blueprint.options import EnvironmentDefinition, OptionValue
from launch_blueprint.renderer import build_substitutions, render_workflow_text
from launch_blueprint.source import stage_source
from launch_blueprint.workflow import WorkflowDocument, loads_workflow, write_workflow

logger = logging.getLogger(__name__)

WORKFLOWS_DIR = Path(".codecatalyst") / "workflows"
WORKFLOW_FILE_RE = re.compile(r"^(.*)(\.yaml|\.yml)$", re.IGNORECASE)


@dataclass(frozen=True)
class BoundWorkflow:
    path: Path
    actions: list[str]


@dataclass(frozen=True)
class SynthResult:
    repository_path: Path
    workflows: list[BoundWorkflow] = field(default_factory=list)
    environments: list[EnvironmentDefinition] = field(default_factory=list)
    schema: tuple[OptionValue, ...] = ()


def workflow_files(repository_path: Path) -> list[Path]:
    workflow_dir = repository_path / WORKFLOWS_DIR
    if not workflow_dir.is_dir():
        return []
    return sorted(p for p in workflow_dir.iterdir() if p.is_file() and WORKFLOW_FILE_RE.match(p.name))


class Blueprint:
    def __init__(self, options: BlueprintOptions, *, outdir: str | Path, durable_storage_path: str | Path) -> None:
        self.options = options
        self.outdir = Path(outdir).resolve()
        self.durable_storage_path = Path(durable_storage_path).resolve()
        self.environments = options.environment_definitions()
        for env in self.environments:
            logger.info("Registered environment: %s", env.name)

    @property
    def repository_path(self) -> Path:
        return self.outdir / "src" / self.options.destination_repository_name

    def _load_schema(self, repository_path: Path) -> tuple[OptionValue, ...]:
        schema_path = repository_path / EMBEDDED_OPTIONS_PATH
        if not schema_path.exists():
            return ()
        schema = load_launch_options_schema(schema_path)
        for key in missing_launch_options(schema, self.options.launch_options):
            logger.warning("Launch option %r is declared in %s but was not supplied", key, EMBEDDED_OPTIONS_PATH)
        return schema

    def bind_workflows(self, repository_path: Path) -> list[tuple[Path, WorkflowDocument, list[str]]]:
        """Load and bind every workflow file. Nothing is written here."""
        substitutions = build_substitutions(self.options.launch_options)
        option_set = self.options.option_set()
        bound: list[tuple[Path, WorkflowDocument, list[str]]] = []
        for path in workflow_files(repository_path):
            rel = path.relative_to(repository_path)
            text = render_workflow_text(path.read_text(encoding="utf-8"), substitutions, source=str(rel))
            doc = loads_workflow(text, source=str(rel))
            actions = bind_workflow(doc, option_set)
            logger.debug("Bound %d actions in %s", len(actions), rel)
            bound.append((path, doc, actions))
        return bound

    def synth(self) -> SynthResult:
        repository_path = stage_source(
            source_repository=self.options.source_repository,
            branch=self.options.source_branch,
            title=self.options.destination_repository_name,
            durable_storage_path=self.durable_storage_path,
            destination=self.repository_path,
        )
        schema = self._load_schema(repository_path)

        bound = self.bind_workflows(repository_path)
        for path, doc, _actions in bound:
            write_workflow(doc, path)
            logger.info("Wrote workflow %s", path.relative_to(repository_path))

        return SynthResult(
            repository_path=repository_path,
            workflows=[BoundWorkflow(path=p, actions=a) for p, _doc, a in bound],
            environments=list(self.environments),
            schema=schema,
        )
