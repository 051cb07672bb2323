"""
config.py

Responsibility: Load the options a blueprint is launched with into a typed
`BlueprintOptions`, and read the launch-options schema embedded in a source
repository.

The options file is JSON or YAML (YAML is a superset, so one parser handles
both). Its keys use the launch wire names (`sourceRepository`,
`destinationRepositoryName`, `launchOptions`, ...). Values from the file are
merged over `DEFAULTS`; only presence of required keys is checked.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from launch_blueprint.options import (
    EnvironmentDefinition,
    LegacyParameter,
    OptionsError,
    OptionValue,
    ResolvedOptionSet,
    parse_launch_options,
    parse_legacy_environments,
    parse_legacy_parameters,
)

DEFAULTS: dict[str, Any] = {
    "sourceRepository": "",
    "sourceBranch": None,
    "destinationRepositoryName": "",
    "environments": [],
    "parameters": [],
    "launchOptions": [],
}

REQUIRED_KEYS = ("sourceRepository", "destinationRepositoryName")

EMBEDDED_OPTIONS_PATH = Path(".codecatalyst") / "launch-options.yaml"


@dataclass(frozen=True)
class BlueprintOptions:
    """Options used to clone a source repository and bind its workflows."""

    source_repository: str
    destination_repository_name: str
    source_branch: str | None = None
    environments: tuple[EnvironmentDefinition, ...] = ()
    parameters: tuple[LegacyParameter, ...] = ()
    launch_options: tuple[OptionValue, ...] = ()

    def option_set(self) -> ResolvedOptionSet:
        return ResolvedOptionSet(
            launch_options=self.launch_options,
            parameters=self.parameters,
            environments=self.environments,
        )

    def environment_definitions(self) -> list[EnvironmentDefinition]:
        """Environments from launch options first, then the legacy list."""
        from_launch = [
            o.value for o in self.launch_options if o.is_environment and isinstance(o.value, EnvironmentDefinition)
        ]
        return from_launch + list(self.environments)


def _read_mapping(path: Path, what: str) -> dict[str, Any]:
    if not path.exists():
        raise OptionsError(f"{what} does not exist: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise OptionsError(f"{what} is not valid JSON/YAML: {path}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise OptionsError(f"{what} must be a mapping/object at the top level: {path}")
    return data


def parse_options(data: dict[str, Any]) -> BlueprintOptions:
    merged = {**DEFAULTS, **{k: v for k, v in data.items() if v is not None}}

    missing = [k for k in REQUIRED_KEYS if not str(merged.get(k) or "").strip()]
    if missing:
        raise OptionsError(f"Options must define: {', '.join(missing)}")

    branch_raw = merged.get("sourceBranch")
    branch = str(branch_raw).strip() if branch_raw is not None else ""

    return BlueprintOptions(
        source_repository=str(merged["sourceRepository"]).strip(),
        destination_repository_name=str(merged["destinationRepositoryName"]).strip(),
        source_branch=branch or None,
        environments=parse_legacy_environments(merged.get("environments")),
        parameters=parse_legacy_parameters(merged.get("parameters")),
        launch_options=parse_launch_options(merged.get("launchOptions")),
    )


def load_options(path: str | Path | None = None, *, overrides: dict[str, Any] | None = None) -> BlueprintOptions:
    """
    Load options from `path` (JSON or YAML), apply `overrides`, and validate.
    With no path, only `DEFAULTS` and `overrides` are used.
    """
    data: dict[str, Any] = {}
    if path is not None:
        data = _read_mapping(Path(path), "Options file")
    if overrides:
        data = {**data, **overrides}
    return parse_options(data)


def load_launch_options_schema(path: str | Path) -> tuple[OptionValue, ...]:
    """Read the `options:` list of an embedded launch-options.yaml."""
    data = _read_mapping(Path(path), "Launch options schema")
    return parse_launch_options(data.get("options"))


def missing_launch_options(schema: tuple[OptionValue, ...], supplied: tuple[OptionValue, ...]) -> list[str]:
    supplied_keys = {o.key for o in supplied}
    return [o.key for o in schema if o.key not in supplied_keys]
