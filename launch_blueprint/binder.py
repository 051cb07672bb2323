"""
binder.py

Responsibility: Bind resolved options into a workflow's action tree.

For every action, in document order and at any nesting depth:
1) input variables whose names resolve to a value get that value (as a string)
2) a named Environment gets its Connections replaced by the bound connection
3) `aws/cfn-deploy@` actions get their `parameter-overrides` rewritten

Options that do not resolve leave the action as it was. The tree is mutated in
place; actions never see each other's rewrites.
"""

from __future__ import annotations

import logging
from typing import Any

from launch_blueprint.options import ResolvedOptionSet
from launch_blueprint.workflow import ActionNode, WorkflowDocument

logger = logging.getLogger(__name__)

DEPLOY_ACTION_PREFIX = "aws/cfn-deploy@"
PARAMETER_OVERRIDES_KEY = "parameter-overrides"


def stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _is_present(value: Any) -> bool:
    return value is not None and value != ""


def rewrite_parameter_overrides(overrides: str, options: ResolvedOptionSet) -> str:
    """
    Rewrite a comma-delimited `key=value` list, replacing values whose key
    resolves to an option. Unresolved tuples are emitted exactly as written.

    A token without `=` is a key with no value: it becomes `key=<resolved>`
    when the key resolves, and is kept verbatim otherwise.
    """
    rebuilt: list[str] = []
    for token in overrides.split(","):
        key, sep, _original = token.partition("=")
        resolved = options.resolve_override(key.strip())
        if _is_present(resolved):
            rebuilt.append(f"{key}={stringify(resolved)}")
        else:
            if not sep and token:
                logger.debug("Parameter override %r has no '=', keeping as-is", token)
            rebuilt.append(token)
    return ",".join(rebuilt)


def _bind_variables(node: ActionNode, options: ResolvedOptionSet, path: str) -> None:
    for variable in node.variables:
        resolved = options.resolve_variable(variable.name)
        if _is_present(resolved):
            logger.debug("%s: variable %s bound", path, variable.name)
            variable.value = stringify(resolved)


def _bind_environment(node: ActionNode, options: ResolvedOptionSet, path: str) -> None:
    env = node.environment
    if env is None or not env.name:
        return
    binding = options.resolve_environment(env.name)
    if binding is None:
        return
    logger.debug("%s: environment %s bound to connection %s (role: %s)", path, env.name, binding.name, binding.role)
    env.bind(binding)


def _bind_overrides(node: ActionNode, options: ResolvedOptionSet, path: str) -> None:
    if not (node.identifier or "").startswith(DEPLOY_ACTION_PREFIX):
        return
    config = node.configuration
    if not config:
        return
    overrides = config.get(PARAMETER_OVERRIDES_KEY)
    if not overrides or not isinstance(overrides, str):
        return
    config[PARAMETER_OVERRIDES_KEY] = rewrite_parameter_overrides(overrides, options)
    logger.debug("%s: parameter overrides rewritten", path)


def bind_action(node: ActionNode, options: ResolvedOptionSet, *, path: str = "") -> None:
    """Apply variable, environment and override binding to a single action."""
    _bind_variables(node, options, path)
    _bind_environment(node, options, path)
    _bind_overrides(node, options, path)


def bind_actions(actions: dict[str, ActionNode], options: ResolvedOptionSet, *, prefix: str = "") -> list[str]:
    """
    Walk `actions` depth-first, parent before children, in insertion order.
    Returns the dotted path of every visited action.
    """
    visited: list[str] = []
    stack: list[tuple[str, ActionNode]] = [(f"{prefix}{name}", node) for name, node in actions.items()]
    stack.reverse()
    while stack:
        path, node = stack.pop()
        bind_action(node, options, path=path)
        visited.append(path)
        children = [(f"{path}.{name}", child) for name, child in node.actions.items()]
        stack.extend(reversed(children))
    return visited


def bind_workflow(doc: WorkflowDocument, options: ResolvedOptionSet) -> list[str]:
    return bind_actions(doc.actions, options)
