"""
workflow.py

Responsibility: Load a workflow YAML document into a typed action tree, and
serialize the (possibly rewritten) tree back to YAML.

The on-disk shape is:

    Actions:
      <ActionName>:
        Identifier: aws/cfn-deploy@v1
        Inputs:
          Variables:
            - Name: ...
              Value: ...
        Environment:
          Name: ...
          Connections:
            - Name: ...
              Role: ...
        Configuration: {...}
        Actions: {...}   # optional nested actions, same shape

Coercion happens once, in `parse_workflow`. Keys the model does not know about
are carried through untouched, in their original order, so a document that is
not rewritten serializes back to the same structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from launch_blueprint.options import ConnectionDefinition


class WorkflowError(ValueError):
    pass


@dataclass
class InputVariable:
    name: str
    value: Any = None


@dataclass
class WorkflowEnvironment:
    """
    An action's target environment. `connections` is written back only after
    `bind` replaced it; otherwise the source Connections are kept as authored.
    """

    name: str | None
    connections: list[ConnectionDefinition] = field(default_factory=list)
    rebound: bool = False

    def bind(self, connection: ConnectionDefinition) -> None:
        self.connections = [connection]
        self.rebound = True


@dataclass
class ActionNode:
    """One workflow action; `actions` holds child actions in document order."""

    identifier: str | None = None
    variables: list[InputVariable] = field(default_factory=list)
    environment: WorkflowEnvironment | None = None
    configuration: dict[str, Any] | None = None
    actions: dict[str, ActionNode] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class WorkflowDocument:
    actions: dict[str, ActionNode] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict, repr=False)


def _mapping(raw: Any, where: str) -> dict[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise WorkflowError(f"{where} must be a mapping, got {type(raw).__name__}.")
    return raw


def _parse_connections(raw: Any, where: str) -> list[ConnectionDefinition]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise WorkflowError(f"{where}.Connections must be a list.")
    out: list[ConnectionDefinition] = []
    for i, item in enumerate(raw):
        data = _mapping(item, f"{where}.Connections[{i}]")
        out.append(ConnectionDefinition(name=str(data.get("Name") or ""), role=str(data.get("Role") or "")))
    return out


def _parse_environment(raw: Any, where: str) -> WorkflowEnvironment | None:
    if raw is None:
        return None
    data = _mapping(raw, f"{where}.Environment")
    name = data.get("Name")
    return WorkflowEnvironment(
        name=str(name) if name is not None else None,
        connections=_parse_connections(data.get("Connections"), f"{where}.Environment"),
    )


def _parse_variables(inputs: dict[str, Any], where: str) -> list[InputVariable]:
    raw = inputs.get("Variables")
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise WorkflowError(f"{where}.Inputs.Variables must be a list.")
    out: list[InputVariable] = []
    for i, item in enumerate(raw):
        data = _mapping(item, f"{where}.Inputs.Variables[{i}]")
        name = data.get("Name")
        if name is None:
            raise WorkflowError(f"{where}.Inputs.Variables[{i}] is missing `Name`.")
        out.append(InputVariable(name=str(name), value=data.get("Value")))
    return out


def _parse_actions(raw: Any, where: str) -> dict[str, ActionNode]:
    data = _mapping(raw, f"{where}.Actions" if where else "Actions")
    return {str(name): parse_action(node, f"{where}.{name}" if where else str(name)) for name, node in data.items()}


def parse_action(raw: Any, where: str = "") -> ActionNode:
    data = _mapping(raw, where or "Action")
    identifier = data.get("Identifier")
    configuration = data.get("Configuration")
    if configuration is not None and not isinstance(configuration, dict):
        raise WorkflowError(f"{where}.Configuration must be a mapping.")
    return ActionNode(
        identifier=str(identifier) if identifier is not None else None,
        variables=_parse_variables(_mapping(data.get("Inputs"), f"{where}.Inputs"), where),
        environment=_parse_environment(data.get("Environment"), where),
        configuration=configuration,
        actions=_parse_actions(data.get("Actions"), where),
        raw=data,
    )


def parse_workflow(data: Any) -> WorkflowDocument:
    """Coerce a parsed YAML mapping into a `WorkflowDocument`."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise WorkflowError("Workflow document must be a mapping at the top level.")
    return WorkflowDocument(actions=_parse_actions(data.get("Actions"), ""), raw=data)


def loads_workflow(text: str, *, source: str = "<string>") -> WorkflowDocument:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise WorkflowError(f"Failed parsing workflow YAML: {source}") from e
    try:
        return parse_workflow(data)
    except WorkflowError as e:
        raise WorkflowError(f"{source}: {e}") from e


def _environment_to_dict(env: WorkflowEnvironment, original: dict[str, Any]) -> dict[str, Any]:
    out = dict(original)
    if env.name is not None:
        out["Name"] = env.name
    if env.rebound:
        out["Connections"] = [{"Name": c.name, "Role": c.role} for c in env.connections]
    return out


def action_to_dict(node: ActionNode) -> dict[str, Any]:
    """Rebuild the action mapping, keeping the original key order."""
    out = dict(node.raw)
    if node.identifier is not None:
        out["Identifier"] = node.identifier
    if node.variables:
        inputs = dict(_mapping(out.get("Inputs"), "Inputs"))
        originals = inputs.get("Variables") or []
        variables: list[dict[str, Any]] = []
        for i, var in enumerate(node.variables):
            item = dict(originals[i]) if i < len(originals) else {}
            item["Name"] = var.name
            if var.value is not None or "Value" in item:
                item["Value"] = var.value
            variables.append(item)
        inputs["Variables"] = variables
        out["Inputs"] = inputs
    if node.environment is not None:
        out["Environment"] = _environment_to_dict(node.environment, _mapping(out.get("Environment"), "Environment"))
    if node.configuration is not None:
        out["Configuration"] = node.configuration
    if node.actions:
        out["Actions"] = {name: action_to_dict(child) for name, child in node.actions.items()}
    return out


def workflow_to_dict(doc: WorkflowDocument) -> dict[str, Any]:
    out = dict(doc.raw)
    if doc.actions:
        out["Actions"] = {name: action_to_dict(node) for name, node in doc.actions.items()}
    return out


def dumps_workflow(doc: WorkflowDocument) -> str:
    return yaml.safe_dump(workflow_to_dict(doc), sort_keys=False, default_flow_style=False, allow_unicode=True)


def write_workflow(doc: WorkflowDocument, path: str | Path) -> None:
    Path(path).write_text(dumps_workflow(doc), encoding="utf-8", newline="\n")
