from __future__ import annotations

from typing import Any

import pytest

from launch_blueprint.options import (
    ResolvedOptionSet,
    parse_launch_options,
    parse_legacy_environments,
    parse_legacy_parameters,
)


def environment(name: str, connection: str | None = "dev-account", role: str | None = "deploy-role") -> dict[str, Any]:
    env: dict[str, Any] = {"name": name, "environmentType": "DEVELOPMENT"}
    if connection is not None:
        conn: dict[str, Any] = {"name": connection, "id": "123456789012"}
        if role is not None:
            conn["launchRole"] = {"name": role, "arn": f"arn:aws:iam::123456789012:role/{role}"}
        env["awsAccountConnection"] = conn
    return env


def make_options(
    launch_options: list[dict[str, Any]] | None = None,
    parameters: Any = None,
    environments: list[dict[str, Any]] | None = None,
) -> ResolvedOptionSet:
    return ResolvedOptionSet(
        launch_options=parse_launch_options(launch_options),
        parameters=parse_legacy_parameters(parameters),
        environments=parse_legacy_environments(environments),
    )


@pytest.fixture()
def empty_options() -> ResolvedOptionSet:
    return ResolvedOptionSet()
