"""Runs a deployment or deployment stack operation against Azure Resource Manager.

Each (type, operation) pair has a handler, and each handler resolves the
scope-specific SDK call from a table keyed by (operation, scope). Exactly
one long-running operation is started per run.
"""
from typing import Any, Callable, Dict, Optional, Tuple

from ..actions.core import log_error, log_info_raw, set_failed
from ..arm.clients import get_deployment_client, get_stacks_client
from ..config.schema import DeploymentsConfig, DeploymentStackConfig, ScopeType
from ..files.parser import ParsedFiles
from .errors import MissingLocationError, ServiceError, log_request_failure, try_with_error_handling
from .outputs import set_create_outputs
from .scope import validate_file_scope
from .whatif import format_what_if_result

RG = ScopeType.RESOURCE_GROUP
SUB = ScopeType.SUBSCRIPTION
MG = ScopeType.MANAGEMENT_GROUP
TENANT = ScopeType.TENANT

# (operation, scope) -> fn(operations, scope, name, body) returning an LROPoller
DEPLOYMENT_CALLS: Dict[Tuple[str, ScopeType], Callable[..., Any]] = {
    ("create", RG): lambda ops, scope, name, body: ops.begin_create_or_update(scope.resource_group, name, body),
    ("create", SUB): lambda ops, scope, name, body: ops.begin_create_or_update_at_subscription_scope(name, body),
    ("create", MG): lambda ops, scope, name, body: ops.begin_create_or_update_at_management_group_scope(
        scope.management_group, name, body
    ),
    ("create", TENANT): lambda ops, scope, name, body: ops.begin_create_or_update_at_tenant_scope(name, body),
    ("validate", RG): lambda ops, scope, name, body: ops.begin_validate(scope.resource_group, name, body),
    ("validate", SUB): lambda ops, scope, name, body: ops.begin_validate_at_subscription_scope(name, body),
    ("validate", MG): lambda ops, scope, name, body: ops.begin_validate_at_management_group_scope(
        scope.management_group, name, body
    ),
    ("validate", TENANT): lambda ops, scope, name, body: ops.begin_validate_at_tenant_scope(name, body),
    ("whatIf", RG): lambda ops, scope, name, body: ops.begin_what_if(scope.resource_group, name, body),
    ("whatIf", SUB): lambda ops, scope, name, body: ops.begin_what_if_at_subscription_scope(name, body),
    ("whatIf", MG): lambda ops, scope, name, body: ops.begin_what_if_at_management_group_scope(
        scope.management_group, name, body
    ),
    ("whatIf", TENANT): lambda ops, scope, name, body: ops.begin_what_if_at_tenant_scope(name, body),
}

# Stacks cannot be deployed at tenant scope. Delete receives keyword options instead of a body.
STACK_CALLS: Dict[Tuple[str, ScopeType], Callable[..., Any]] = {
    ("create", RG): lambda ops, scope, name, body: ops.begin_create_or_update_at_resource_group(
        scope.resource_group, name, body
    ),
    ("create", SUB): lambda ops, scope, name, body: ops.begin_create_or_update_at_subscription(name, body),
    ("create", MG): lambda ops, scope, name, body: ops.begin_create_or_update_at_management_group(
        scope.management_group, name, body
    ),
    ("validate", RG): lambda ops, scope, name, body: ops.begin_validate_stack_at_resource_group(
        scope.resource_group, name, body
    ),
    ("validate", SUB): lambda ops, scope, name, body: ops.begin_validate_stack_at_subscription(name, body),
    ("validate", MG): lambda ops, scope, name, body: ops.begin_validate_stack_at_management_group(
        scope.management_group, name, body
    ),
    ("delete", RG): lambda ops, scope, name, options: ops.begin_delete_at_resource_group(
        scope.resource_group, name, **options
    ),
    ("delete", SUB): lambda ops, scope, name, options: ops.begin_delete_at_subscription(name, **options),
    ("delete", MG): lambda ops, scope, name, options: ops.begin_delete_at_management_group(
        scope.management_group, name, **options
    ),
}


def require_location(config) -> str:
    """Return the configured location.

    Config parsing already rejects a missing location for scopes above
    resource group, so this only fails when a config is built by hand.
    """
    if not config.location:
        raise MissingLocationError(
            f"Location is required for {ScopeType(config.scope.type).value} scope"
        )
    return config.location


def _scope_location(config) -> Optional[str]:
    if ScopeType(config.scope.type) == RG:
        return config.location
    return require_location(config)


def _template_source(files: ParsedFiles) -> Dict[str, Any]:
    # ARM accepts an inline template or a link to a template spec, never both
    if files.template_spec_id:
        return {"templateLink": {"id": files.template_spec_id}}
    return {"template": files.template_contents}


def get_deployment(config: DeploymentsConfig, files: ParsedFiles) -> Dict[str, Any]:
    """Build the request body for a deployment."""
    properties = {
        "mode": "Incremental",
        **_template_source(files),
        "parameters": files.parameters_contents.get("parameters"),
        "expressionEvaluationOptions": {"scope": "inner"},
    }
    deployment: Dict[str, Any] = {"properties": properties, "tags": config.tags}
    location = _scope_location(config)
    if location:
        deployment["location"] = location
    return deployment


def get_stack(config: DeploymentStackConfig, files: ParsedFiles) -> Dict[str, Any]:
    """Build the request body for a deployment stack."""
    properties = {
        **_template_source(files),
        "parameters": files.parameters_contents.get("parameters"),
        "description": config.description,
        "actionOnUnmanage": config.action_on_unmanage.model_dump(mode="json", by_alias=True, exclude_none=True),
        "denySettings": config.deny_settings.model_dump(mode="json", by_alias=True),
        "bypassStackOutOfSyncError": config.bypass_stack_out_of_sync_error,
    }
    stack: Dict[str, Any] = {"properties": properties, "tags": config.tags}
    if ScopeType(config.scope.type) != RG:
        stack["location"] = require_location(config)
    return stack


def get_stack_deletion_options(config: DeploymentStackConfig) -> Dict[str, Any]:
    unmanage = config.action_on_unmanage
    return {
        "unmanage_action_resources": unmanage.resources.value,
        "unmanage_action_resource_groups": unmanage.resource_groups.value if unmanage.resource_groups else None,
        "unmanage_action_management_groups": (
            unmanage.management_groups.value if unmanage.management_groups else None
        ),
        "bypass_stack_out_of_sync_error": config.bypass_stack_out_of_sync_error,
    }


def _run_deployment_call(operation: str, config: DeploymentsConfig, body: Dict[str, Any]) -> Any:
    scope = config.scope
    call = DEPLOYMENT_CALLS[(operation, ScopeType(scope.type))]
    client = get_deployment_client(scope)
    return call(client.deployments, scope, config.name, body).result()


def _run_stack_call(operation: str, config: DeploymentStackConfig, body: Dict[str, Any]) -> Any:
    scope = config.scope
    call = STACK_CALLS[(operation, ScopeType(scope.type))]
    client = get_stacks_client(scope)
    return call(client.deployment_stacks, scope, config.name, body).result()


def deployment_create(config: DeploymentsConfig, files: ParsedFiles) -> Any:
    return _run_deployment_call("create", config, get_deployment(config, files))


def deployment_validate(config: DeploymentsConfig, files: ParsedFiles) -> Any:
    return _run_deployment_call("validate", config, get_deployment(config, files))


def deployment_what_if(config: DeploymentsConfig, files: ParsedFiles) -> Any:
    body = get_deployment(config, files)
    # what-if requests have no tags
    body.pop("tags", None)
    return _run_deployment_call("whatIf", config, body)


def stack_create(config: DeploymentStackConfig, files: ParsedFiles) -> Any:
    return _run_stack_call("create", config, get_stack(config, files))


def stack_validate(config: DeploymentStackConfig, files: ParsedFiles) -> Any:
    return _run_stack_call("validate", config, get_stack(config, files))


def stack_delete(config: DeploymentStackConfig) -> Any:
    return _run_stack_call("delete", config, get_stack_deletion_options(config))


def _report_failure(error: ServiceError, message: str) -> None:
    log_error(error.to_json())
    set_failed(message)


def _deployment_outputs(result: Any) -> Optional[Dict[str, Any]]:
    properties = getattr(result, "properties", None)
    return getattr(properties, "outputs", None)


def _stack_outputs(result: Any) -> Optional[Dict[str, Any]]:
    return getattr(result, "outputs", None)


def _handle_deployment_create(config: DeploymentsConfig, files: ParsedFiles) -> None:
    outcome = try_with_error_handling(lambda: deployment_create(config, files))
    if not outcome.succeeded:
        _report_failure(outcome.error, "Create failed")
        return
    set_create_outputs(config, _deployment_outputs(outcome.value))


def _handle_deployment_validate(config: DeploymentsConfig, files: ParsedFiles) -> None:
    outcome = try_with_error_handling(lambda: deployment_validate(config, files))
    if not outcome.succeeded:
        _report_failure(outcome.error, "Validation failed")


def _handle_deployment_what_if(config: DeploymentsConfig, files: ParsedFiles) -> None:
    result = deployment_what_if(config, files)
    log_info_raw(format_what_if_result(result))


def _handle_stack_create(config: DeploymentStackConfig, files: ParsedFiles) -> None:
    outcome = try_with_error_handling(lambda: stack_create(config, files))
    if not outcome.succeeded:
        _report_failure(outcome.error, "Create failed")
        return
    set_create_outputs(config, _stack_outputs(outcome.value))


def _handle_stack_validate(config: DeploymentStackConfig, files: ParsedFiles) -> None:
    outcome = try_with_error_handling(lambda: stack_validate(config, files))
    if not outcome.succeeded:
        _report_failure(outcome.error, "Validation failed")


def _handle_stack_delete(config: DeploymentStackConfig, files: ParsedFiles) -> None:
    stack_delete(config)


HANDLERS: Dict[Tuple[str, str], Callable[[Any, ParsedFiles], None]] = {
    ("deployment", "create"): _handle_deployment_create,
    ("deployment", "validate"): _handle_deployment_validate,
    ("deployment", "whatIf"): _handle_deployment_what_if,
    ("deploymentStack", "create"): _handle_stack_create,
    ("deploymentStack", "validate"): _handle_stack_validate,
    ("deploymentStack", "delete"): _handle_stack_delete,
}


def execute(config, files: ParsedFiles) -> None:
    """Run the configured operation.

    Structured service errors from create and validate are reported and mark
    the run failed without raising. Any other error is logged with its
    correlation id, marks the run failed and is re-raised.
    """
    try:
        validate_file_scope(config, files)
        handler = HANDLERS[(config.type, config.operation)]
        handler(config, files)
    except Exception as error:
        log_request_failure(error)
        set_failed("Operation failed")
        raise
