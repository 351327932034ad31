"""Tests for action input parsing."""
import pytest

from bicep_deploy.config.parser import ConfigParser
from bicep_deploy.config.schema import (
    DEFAULT_NAME,
    DenySettingsMode,
    DeploymentsConfig,
    DeploymentStackConfig,
    ResourceGroupScope,
    ScopeType,
    UnmanageAction,
)
from bicep_deploy.deploy.errors import ConfigError


def rg_inputs(**overrides):
    inputs = {
        "type": "deployment",
        "operation": "create",
        "scope": "resourceGroup",
        "subscription-id": "00000000-0000-0000-0000-000000000000",
        "resource-group-name": "rg",
        "template-file": "main.bicep",
    }
    inputs.update(overrides)
    return {key: value for key, value in inputs.items() if value is not None}


def test_resource_group_deployment():
    config = ConfigParser.parse(rg_inputs(parameters='{"foo": "bar"}', tags="env: dev\ncount: 3"))

    assert isinstance(config, DeploymentsConfig)
    assert config.name == DEFAULT_NAME
    assert config.scope == ResourceGroupScope(
        subscription_id="00000000-0000-0000-0000-000000000000", resource_group="rg"
    )
    assert config.location is None
    assert config.files.template_file == "main.bicep"
    assert config.files.parameters == {"foo": "bar"}
    assert config.tags == {"env": "dev", "count": "3"}


def test_inputs_from_env():
    environ = {
        "INPUT_TYPE": "deployment",
        "INPUT_OPERATION": "whatIf",
        "INPUT_SCOPE": "subscription",
        "INPUT_SUBSCRIPTION-ID": "sub",
        "INPUT_LOCATION": "westus2",
        "INPUT_TEMPLATE-FILE": "main.json",
        "INPUT_NAME": "  ",
        "PATH": "/usr/bin",
    }

    config = ConfigParser.load(environ=environ)

    assert config.operation == "whatIf"
    assert config.scope.type == ScopeType.SUBSCRIPTION.value
    assert config.scope.subscription_id == "sub"
    assert config.location == "westus2"
    assert config.name == DEFAULT_NAME


def test_file_values_override_env(tmp_path):
    config_path = tmp_path / "inputs.yaml"
    config_path.write_text("""
type: deployment
operation: validate
scope: managementGroup
management-group-id: my-mg
location: eastus
template-file: main.bicep
masked-outputs:
  - secretOne
  - secretTwo
""")

    config = ConfigParser.load(str(config_path), environ={"INPUT_OPERATION": "create", "INPUT_NAME": "from-env"})

    assert config.operation == "validate"
    assert config.name == "from-env"
    assert config.scope.management_group == "my-mg"
    assert config.masked_outputs == ["secretOne", "secretTwo"]


def test_config_file_must_be_mapping(tmp_path):
    config_path = tmp_path / "inputs.yaml"
    config_path.write_text("- just\n- a list\n")

    with pytest.raises(ConfigError):
        ConfigParser.load(str(config_path), environ={})


def test_nonexistent_file():
    with pytest.raises(FileNotFoundError):
        ConfigParser.load("nonexistent.yaml", environ={})


def test_masked_outputs_split_on_commas_and_newlines():
    config = ConfigParser.parse(rg_inputs(**{"masked-outputs": "a, b\nc,,"}))

    assert config.masked_outputs == ["a", "b", "c"]


@pytest.mark.parametrize("name,value", [
    ("type", "template"),
    ("operation", "delete"),
    ("scope", "global"),
])
def test_invalid_choices(name, value):
    with pytest.raises(ConfigError) as exc_info:
        ConfigParser.parse(rg_inputs(**{name: value}))

    assert f"'{name}'" in str(exc_info.value)


@pytest.mark.parametrize("missing", ["type", "operation", "scope", "subscription-id", "resource-group-name"])
def test_required_inputs(missing):
    inputs = rg_inputs()
    del inputs[missing]

    with pytest.raises(ConfigError):
        ConfigParser.parse(inputs)


@pytest.mark.parametrize("scope,extra", [
    ("tenant", {}),
    ("managementGroup", {"management-group-id": "mg"}),
    ("subscription", {"subscription-id": "sub"}),
])
def test_location_required_above_resource_group(scope, extra):
    inputs = {"type": "deployment", "operation": "create", "scope": scope, "template-file": "main.bicep", **extra}

    with pytest.raises(ConfigError) as exc_info:
        ConfigParser.parse(inputs)

    assert "location" in str(exc_info.value)


def test_template_source_required():
    with pytest.raises(ConfigError):
        ConfigParser.parse(rg_inputs(**{"template-file": None}))


def test_parameters_file_alone_is_enough():
    config = ConfigParser.parse(rg_inputs(**{"template-file": None, "parameters-file": "main.bicepparam"}))

    assert config.files.parameters_file == "main.bicepparam"


def test_invalid_parameters_mapping():
    with pytest.raises(ConfigError):
        ConfigParser.parse(rg_inputs(parameters="[1, 2]"))


def test_stack_defaults():
    config = ConfigParser.parse(rg_inputs(type="deploymentStack"))

    assert isinstance(config, DeploymentStackConfig)
    assert config.action_on_unmanage.resources == UnmanageAction.DETACH
    assert config.action_on_unmanage.resource_groups is None
    assert config.deny_settings.mode == DenySettingsMode.NONE
    assert config.deny_settings.apply_to_child_scopes is False
    assert config.bypass_stack_out_of_sync_error is False


def test_stack_settings():
    config = ConfigParser.parse(rg_inputs(**{
        "type": "deploymentStack",
        "description": "my stack",
        "action-on-unmanage-resources": "delete",
        "action-on-unmanage-resourcegroups": "delete",
        "action-on-unmanage-managementgroups": "detach",
        "deny-settings-mode": "denyWriteAndDelete",
        "deny-settings-excluded-actions": "Microsoft.Storage/*/read",
        "deny-settings-excluded-principals": "p1\np2",
        "deny-settings-apply-to-child-scopes": "true",
        "bypass-stack-out-of-sync-error": "TRUE",
    }))

    assert config.description == "my stack"
    assert config.action_on_unmanage.resources == UnmanageAction.DELETE
    assert config.action_on_unmanage.resource_groups == UnmanageAction.DELETE
    assert config.action_on_unmanage.management_groups == UnmanageAction.DETACH
    assert config.deny_settings.mode == DenySettingsMode.DENY_WRITE_AND_DELETE
    assert config.deny_settings.excluded_actions == ["Microsoft.Storage/*/read"]
    assert config.deny_settings.excluded_principals == ["p1", "p2"]
    assert config.deny_settings.apply_to_child_scopes is True
    assert config.bypass_stack_out_of_sync_error is True


def test_stack_delete_needs_no_template():
    config = ConfigParser.parse(rg_inputs(type="deploymentStack", operation="delete", **{"template-file": None}))

    assert config.operation == "delete"
    assert config.files.template_file is None


def test_stack_at_tenant_scope_rejected():
    inputs = {
        "type": "deploymentStack",
        "operation": "create",
        "scope": "tenant",
        "location": "eastus",
        "template-file": "main.bicep",
    }

    with pytest.raises(ConfigError):
        ConfigParser.parse(inputs)


def test_whatif_not_valid_for_stacks():
    with pytest.raises(ConfigError):
        ConfigParser.parse(rg_inputs(type="deploymentStack", operation="whatIf"))


@pytest.mark.parametrize("name,value", [
    ("action-on-unmanage-resources", "purge"),
    ("deny-settings-mode", "denyAll"),
    ("bypass-stack-out-of-sync-error", "yes"),
])
def test_invalid_stack_values(name, value):
    with pytest.raises(ConfigError):
        ConfigParser.parse(rg_inputs(type="deploymentStack", **{name: value}))
