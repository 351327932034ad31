"""Action input parsing."""
import os
import re
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import TypeAdapter, ValidationError

from ..deploy.errors import ConfigError
from .schema import ActionConfig, ScopeType

INPUT_PREFIX = "INPUT_"

OPERATIONS = {
    "deployment": ["create", "validate", "whatIf"],
    "deploymentStack": ["create", "validate", "delete"],
}

_action_config_adapter = TypeAdapter(ActionConfig)


class ConfigParser:
    """Parser for action inputs, from the runner environment or a YAML file."""

    @staticmethod
    def inputs_from_env(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
        """Collect ``INPUT_*`` variables the runner sets for each action input."""
        environ = os.environ if environ is None else environ
        return {
            key[len(INPUT_PREFIX):].lower(): value
            for key, value in environ.items()
            if key.startswith(INPUT_PREFIX)
        }

    @staticmethod
    def inputs_from_file(file_path: str) -> Dict[str, Any]:
        """Load action inputs from a YAML file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ConfigError: If the file is not a mapping.
        """
        with open(file_path, 'r') as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file '{file_path}' must contain a mapping of inputs")
        return data

    @staticmethod
    def load(file_path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> ActionConfig:
        """Parse the action config; file values override environment inputs."""
        inputs = ConfigParser.inputs_from_env(environ)
        if file_path:
            inputs.update(ConfigParser.inputs_from_file(file_path))
        return ConfigParser.parse(inputs)

    @staticmethod
    def parse(inputs: Mapping[str, Any]) -> ActionConfig:
        """Validate raw action inputs and build the matching config model.

        Args:
            inputs: Input name (e.g. ``resource-group-name``) to value.

        Returns:
            ActionConfig: DeploymentsConfig or DeploymentStackConfig.

        Raises:
            ConfigError: If a required input is missing or a value is invalid.
        """
        config_type = _get_choice(inputs, "type", list(OPERATIONS))
        operation = _get_choice(inputs, "operation", OPERATIONS[config_type])
        scope_type = ScopeType(_get_choice(inputs, "scope", [s.value for s in ScopeType]))

        if config_type == "deploymentStack" and scope_type == ScopeType.TENANT:
            raise ConfigError("Deployment stacks are not supported at tenant scope")

        location = _get_input(inputs, "location")
        if scope_type != ScopeType.RESOURCE_GROUP and not location:
            raise ConfigError(f"Input 'location' is required when scope is '{scope_type.value}'")

        data: Dict[str, Any] = {
            "type": config_type,
            "operation": operation,
            "scope": _get_scope(inputs, scope_type),
            "location": location,
            "tags": _get_tags(inputs),
            "masked_outputs": _get_list(inputs, "masked-outputs"),
            "files": {
                "template_file": _get_input(inputs, "template-file"),
                "template_spec_id": _get_input(inputs, "template-spec-id"),
                "parameters_file": _get_input(inputs, "parameters-file"),
                "parameters": _get_mapping(inputs, "parameters") or {},
            },
        }
        name = _get_input(inputs, "name")
        if name:
            data["name"] = name

        if config_type == "deploymentStack":
            data.update({
                "description": _get_input(inputs, "description"),
                "action_on_unmanage": {
                    key: value
                    for key, value in {
                        "resources": _get_input(inputs, "action-on-unmanage-resources"),
                        "resource_groups": _get_input(inputs, "action-on-unmanage-resourcegroups"),
                        "management_groups": _get_input(inputs, "action-on-unmanage-managementgroups"),
                    }.items()
                    if value
                },
                "deny_settings": {
                    "mode": _get_input(inputs, "deny-settings-mode") or "none",
                    "excluded_actions": _get_list(inputs, "deny-settings-excluded-actions"),
                    "excluded_principals": _get_list(inputs, "deny-settings-excluded-principals"),
                    "apply_to_child_scopes": _get_bool(inputs, "deny-settings-apply-to-child-scopes"),
                },
                "bypass_stack_out_of_sync_error": _get_bool(inputs, "bypass-stack-out-of-sync-error"),
            })

        if not (config_type == "deploymentStack" and operation == "delete"):
            files = data["files"]
            if not (files["template_file"] or files["template_spec_id"] or files["parameters_file"]):
                raise ConfigError("One of 'template-file', 'template-spec-id' or 'parameters-file' is required")

        try:
            return _action_config_adapter.validate_python(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid action inputs: {e}") from e


def _get_input(inputs: Mapping[str, Any], name: str) -> Any:
    value = inputs.get(name)
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _require_input(inputs: Mapping[str, Any], name: str) -> Any:
    value = _get_input(inputs, name)
    if value is None:
        raise ConfigError(f"Input '{name}' is required")
    return value


def _get_choice(inputs: Mapping[str, Any], name: str, allowed: List[str]) -> str:
    value = str(_require_input(inputs, name))
    if value not in allowed:
        raise ConfigError(f"Input '{name}' must be one of {', '.join(allowed)}; got '{value}'")
    return value


def _get_scope(inputs: Mapping[str, Any], scope_type: ScopeType) -> Dict[str, Any]:
    scope: Dict[str, Any] = {
        "type": scope_type.value,
        "tenant_id": _get_input(inputs, "tenant-id"),
    }
    if scope_type == ScopeType.MANAGEMENT_GROUP:
        scope["management_group"] = _require_input(inputs, "management-group-id")
    elif scope_type == ScopeType.SUBSCRIPTION:
        scope["subscription_id"] = _require_input(inputs, "subscription-id")
    elif scope_type == ScopeType.RESOURCE_GROUP:
        scope["subscription_id"] = _require_input(inputs, "subscription-id")
        scope["resource_group"] = _require_input(inputs, "resource-group-name")
    return scope


def _get_mapping(inputs: Mapping[str, Any], name: str) -> Optional[Dict[str, Any]]:
    """Read a mapping given either natively or as a JSON/YAML string."""
    value = _get_input(inputs, name)
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = yaml.safe_load(value)
        except yaml.YAMLError as e:
            raise ConfigError(f"Input '{name}' is not valid JSON or YAML: {e}") from e
    if not isinstance(value, dict):
        raise ConfigError(f"Input '{name}' must be a mapping")
    return value


def _get_tags(inputs: Mapping[str, Any]) -> Optional[Dict[str, str]]:
    tags = _get_mapping(inputs, "tags")
    if tags is None:
        return None
    return {str(key): str(value) for key, value in tags.items()}


def _get_list(inputs: Mapping[str, Any], name: str) -> List[str]:
    value = _get_input(inputs, name)
    if value is None:
        return []
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return [item.strip() for item in re.split(r"[,\n]", str(value)) if item.strip()]


def _get_bool(inputs: Mapping[str, Any], name: str) -> bool:
    value = _get_input(inputs, name)
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    lowered = str(value).lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    raise ConfigError(f"Input '{name}' must be 'true' or 'false'; got '{value}'")
