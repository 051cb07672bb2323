"""
options.py

Responsibility: Typed model of the option sources a blueprint is launched with,
and the resolver that answers lookups against them.

Three sources feed one `ResolvedOptionSet`:
- launch options (declarative schema entries, highest precedence)
- legacy parameters (deprecated URL-encoded channel, namespaced with `LAUNCH_OPTIONS_`)
- legacy environments (deprecated URL-encoded environment list)

Raw mappings are coerced into frozen dataclasses here, once. Nothing downstream
probes the raw option payload.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qsl

logger = logging.getLogger(__name__)

OPTIONS_PREFIX = "LAUNCH_OPTIONS_"
ENVIRONMENT_DISPLAY_TYPE = "environment"
NO_ROLE_SELECTED = "No role selected"
DEFAULT_ROLE_CAPABILITIES = ("codecatalyst*",)


class OptionsError(ValueError):
    pass


@dataclass(frozen=True)
class Role:
    name: str | None = None
    arn: str | None = None
    capabilities: tuple[str, ...] = DEFAULT_ROLE_CAPABILITIES


@dataclass(frozen=True)
class AccountConnection:
    name: str | None = None
    id: str | None = None
    launch_role: Role | None = None


@dataclass(frozen=True)
class EnvironmentDefinition:
    """A deployment target: a name plus at most one AWS account connection."""

    name: str
    environment_type: str | None = None
    description: str = ""
    account_connection: AccountConnection | None = None


@dataclass(frozen=True)
class OptionValue:
    key: str
    value: Any = None
    display_type: str | None = None
    description: str = ""

    @property
    def is_environment(self) -> bool:
        return self.display_type == ENVIRONMENT_DISPLAY_TYPE


@dataclass(frozen=True)
class LegacyParameter:
    key: str
    value: Any = None

    @property
    def namespaced_key(self) -> str:
        return f"{OPTIONS_PREFIX}{self.key}"


@dataclass(frozen=True)
class ConnectionDefinition:
    """The connection/role pair bound into a workflow action's Environment."""

    name: str
    role: str


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _require_mapping(raw: Any, what: str) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise OptionsError(f"{what} must be an object/mapping, got {type(raw).__name__}.")
    return raw


def _require_list(raw: Any, what: str) -> list[Any]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise OptionsError(f"{what} must be a list when provided.")
    return raw


def parse_role(raw: Any) -> Role | None:
    if raw is None:
        return None
    data = _require_mapping(raw, "`launchRole`")
    caps_raw = data.get("capabilities")
    if caps_raw is None:
        capabilities = DEFAULT_ROLE_CAPABILITIES
    elif isinstance(caps_raw, (list, tuple)):
        capabilities = tuple(str(c) for c in caps_raw)
    else:
        capabilities = (str(caps_raw),)
    return Role(name=_optional_str(data.get("name")), arn=_optional_str(data.get("arn")), capabilities=capabilities)


def parse_account_connection(raw: Any) -> AccountConnection | None:
    if raw is None:
        return None
    data = _require_mapping(raw, "`awsAccountConnection`")
    return AccountConnection(
        name=_optional_str(data.get("name")),
        id=_optional_str(data.get("id")),
        launch_role=parse_role(data.get("launchRole")),
    )


def parse_environment(raw: Any) -> EnvironmentDefinition:
    """
    Parse an environment mapping using the launch wire names:
    `name`, `environmentType`, `description`, `awsAccountConnection`.
    """
    data = _require_mapping(raw, "Environment definition")
    name = _optional_str(data.get("name"))
    if not name:
        raise OptionsError("Environment definition must define `name`.")
    return EnvironmentDefinition(
        name=name,
        environment_type=_optional_str(data.get("environmentType")),
        description=str(data.get("description") or ""),
        account_connection=parse_account_connection(data.get("awsAccountConnection")),
    )


def parse_option_value(raw: Any) -> OptionValue:
    data = _require_mapping(raw, "Launch option")
    key = _optional_str(data.get("key"))
    if not key:
        raise OptionsError("Launch option must define `key`.")
    display_type = _optional_str(data.get("displayType"))
    value = data.get("value")
    if display_type == ENVIRONMENT_DISPLAY_TYPE and value is not None:
        value = parse_environment(value)
    return OptionValue(
        key=key,
        value=value,
        display_type=display_type,
        description=str(data.get("description") or ""),
    )


def parse_launch_options(raw: Any) -> tuple[OptionValue, ...]:
    return tuple(parse_option_value(item) for item in _require_list(raw, "`launchOptions`"))


def parse_legacy_parameters(raw: Any) -> tuple[LegacyParameter, ...]:
    """
    Accept either a list of `{key, value}` mappings or the URL-encoded
    query-string form (`stage=prod&region=us-west-2`).
    """
    if isinstance(raw, str):
        return tuple(LegacyParameter(key=k, value=v) for k, v in parse_qsl(raw, keep_blank_values=True))
    out: list[LegacyParameter] = []
    for item in _require_list(raw, "`parameters`"):
        data = _require_mapping(item, "Parameter")
        key = _optional_str(data.get("key"))
        if not key:
            raise OptionsError("Parameter must define `key`.")
        out.append(LegacyParameter(key=key, value=data.get("value")))
    return tuple(out)


def parse_legacy_environments(raw: Any) -> tuple[EnvironmentDefinition, ...]:
    return tuple(parse_environment(item) for item in _require_list(raw, "`environments`"))


@dataclass(frozen=True)
class ResolvedOptionSet:
    """
    Immutable union of the three option sources for one binding pass.

    Lookups always search launch options first; legacy sources are consulted
    only when launch options have no entry. Absence is returned as `None`.
    """

    launch_options: tuple[OptionValue, ...] = ()
    parameters: tuple[LegacyParameter, ...] = ()
    environments: tuple[EnvironmentDefinition, ...] = ()
    _by_key: dict[str, OptionValue] = field(init=False, repr=False, compare=False)
    _by_namespaced_key: dict[str, LegacyParameter] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_key: dict[str, OptionValue] = {}
        for option in self.launch_options:
            by_key.setdefault(option.key, option)
        by_ns: dict[str, LegacyParameter] = {}
        for parameter in self.parameters:
            by_ns.setdefault(parameter.namespaced_key, parameter)
        object.__setattr__(self, "_by_key", by_key)
        object.__setattr__(self, "_by_namespaced_key", by_ns)

    def resolve_variable(self, option_name: str) -> Any | None:
        """
        Scalar value bound to an input variable named `option_name`, if any.
        Environment-type launch options never bind as scalars.
        """
        option = self._by_key.get(option_name)
        if option is not None and not option.is_environment and option.value is not None:
            return option.value
        parameter = self._by_namespaced_key.get(option_name)
        if parameter is not None:
            return parameter.value
        return None

    def resolve_override(self, key: str) -> Any | None:
        """Value for a deploy parameter override key, if any."""
        return self.resolve_variable(key)

    def find_environment(self, name: str) -> EnvironmentDefinition | None:
        for option in self.launch_options:
            if option.is_environment and isinstance(option.value, EnvironmentDefinition) and option.value.name == name:
                return option.value
        for env in self.environments:
            if env.name == name:
                return env
        return None

    def resolve_environment(self, name: str) -> ConnectionDefinition | None:
        """
        Bind a workflow environment name to its account connection.

        A connection without a launch role still binds, with the role surfaced
        as "No role selected".
        """
        env = self.find_environment(name)
        if env is None:
            return None
        connection = env.account_connection
        if connection is None or not connection.name:
            return None
        role = connection.launch_role.name if connection.launch_role and connection.launch_role.name else None
        return ConnectionDefinition(name=connection.name, role=role or NO_ROLE_SELECTED)
