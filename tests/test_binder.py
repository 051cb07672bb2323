from __future__ import annotations

from conftest import environment, make_options
from launch_blueprint.binder import bind_action, bind_workflow, rewrite_parameter_overrides
from launch_blueprint.options import ConnectionDefinition, ResolvedOptionSet
from launch_blueprint.workflow import parse_action, parse_workflow


def _deploy_action(overrides: str, identifier: str = "aws/cfn-deploy@v1") -> dict:
    return {"Identifier": identifier, "Configuration": {"name": "stack", "parameter-overrides": overrides}}


def test_rewrite_replaces_matching_keys_only() -> None:
    options = make_options(launch_options=[{"key": "stage", "value": "prod"}])
    assert rewrite_parameter_overrides("stage=dev,region=us-west-2", options) == "stage=prod,region=us-west-2"


def test_rewrite_with_no_matches_is_identity(empty_options: ResolvedOptionSet) -> None:
    for overrides in ("a=1,b=2", "a=1,,b=2", "x=", "a=b=c", "lonely"):
        assert rewrite_parameter_overrides(overrides, empty_options) == overrides


def test_rewrite_uses_legacy_parameter_value() -> None:
    options = make_options(parameters=[{"key": "region", "value": "eu-west-1"}])
    result = rewrite_parameter_overrides("LAUNCH_OPTIONS_region=us-east-1,stage=dev", options)
    assert result == "LAUNCH_OPTIONS_region=eu-west-1,stage=dev"


def test_rewrite_token_without_separator() -> None:
    options = make_options(launch_options=[{"key": "bucket", "value": "assets"}])
    assert rewrite_parameter_overrides("bucket,stage=dev,orphan", options) == "bucket=assets,stage=dev,orphan"


def test_rewrite_keeps_equals_inside_values() -> None:
    options = make_options(launch_options=[{"key": "b", "value": "2"}])
    assert rewrite_parameter_overrides("a=x=y,b=1", options) == "a=x=y,b=2"


def test_rewrite_stringifies_non_string_values() -> None:
    options = make_options(launch_options=[{"key": "count", "value": 3}, {"key": "enabled", "value": False}])
    assert rewrite_parameter_overrides("count=1,enabled=true", options) == "count=3,enabled=false"


def test_deploy_action_overrides_rewritten() -> None:
    node = parse_action(_deploy_action("stage=dev,region=us-west-2"))
    bind_action(node, make_options(launch_options=[{"key": "stage", "value": "prod"}]))
    assert node.configuration is not None
    assert node.configuration["parameter-overrides"] == "stage=prod,region=us-west-2"
    assert node.configuration["name"] == "stack"


def test_non_deploy_action_overrides_untouched() -> None:
    node = parse_action(_deploy_action("stage=dev", identifier="aws/build@v1"))
    bind_action(node, make_options(launch_options=[{"key": "stage", "value": "prod"}]))
    assert node.configuration == {"name": "stack", "parameter-overrides": "stage=dev"}


def test_empty_overrides_left_alone() -> None:
    node = parse_action(_deploy_action(""))
    bind_action(node, make_options(launch_options=[{"key": "stage", "value": "prod"}]))
    assert node.configuration is not None
    assert node.configuration["parameter-overrides"] == ""


def test_unresolved_variables_keep_their_value() -> None:
    node = parse_action(
        {
            "Identifier": "aws/build@v1",
            "Inputs": {"Variables": [{"Name": "known", "Value": "old"}, {"Name": "unknown", "Value": "keep"}]},
        }
    )
    bind_action(node, make_options(launch_options=[{"key": "known", "value": 42}, {"key": "blank", "value": ""}]))
    assert [(v.name, v.value) for v in node.variables] == [("known", "42"), ("unknown", "keep")]


def test_environment_connections_replaced_with_single_binding() -> None:
    node = parse_action(
        {
            "Identifier": "aws/cfn-deploy@v1",
            "Environment": {
                "Name": "prod",
                "Connections": [{"Name": "a", "Role": "r1"}, {"Name": "b", "Role": "r2"}],
            },
        }
    )
    bind_action(node, make_options(environments=[environment("prod", "prod-conn", role=None)]))
    assert node.environment is not None
    assert node.environment.connections == [ConnectionDefinition(name="prod-conn", role="No role selected")]


def test_unmatched_environment_left_untouched() -> None:
    node = parse_action({"Environment": {"Name": "prod", "Connections": [{"Name": "a", "Role": "r1"}]}})
    bind_action(node, make_options(environments=[environment("dev")]))
    assert node.environment is not None
    assert node.environment.connections == [ConnectionDefinition(name="a", role="r1")]


def test_nested_actions_are_all_bound_in_document_order() -> None:
    doc = parse_workflow(
        {
            "Name": "main",
            "Actions": {
                "Group": {
                    "Inputs": {"Variables": [{"Name": "top", "Value": "0"}]},
                    "Actions": {
                        "Second": {"Inputs": {"Variables": [{"Name": "second", "Value": "0"}]}},
                        "First": {"Inputs": {"Variables": [{"Name": "first", "Value": "0"}]}},
                    },
                },
                "After": {"Identifier": "aws/build@v1"},
            },
        }
    )
    options = make_options(
        launch_options=[{"key": "top", "value": "T"}, {"key": "second", "value": "S"}],
        parameters=[{"key": "first", "value": "F"}],
    )
    visited = bind_workflow(doc, options)

    assert visited == ["Group", "Group.Second", "Group.First", "After"]
    group = doc.actions["Group"]
    assert group.variables[0].value == "T"
    assert group.actions["Second"].variables[0].value == "S"
    # legacy parameters only match namespaced names
    assert group.actions["First"].variables[0].value == "0"


def test_walker_handles_deeper_nesting() -> None:
    leaf = {"Inputs": {"Variables": [{"Name": "deep", "Value": "x"}]}}
    doc = parse_workflow({"Actions": {"A": {"Actions": {"B": {"Actions": {"C": leaf}}}}}})
    visited = bind_workflow(doc, make_options(launch_options=[{"key": "deep", "value": "y"}]))
    assert visited == ["A", "A.B", "A.B.C"]
    assert doc.actions["A"].actions["B"].actions["C"].variables[0].value == "y"


def test_workflow_without_actions(empty_options: ResolvedOptionSet) -> None:
    assert bind_workflow(parse_workflow({"Name": "empty"}), empty_options) == []
