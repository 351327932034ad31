"""Checks that a template's target scope matches the configured scope."""
import re
from typing import Optional

from ..config.schema import ScopeType
from ..files.parser import ParsedFiles
from .errors import ScopeInferenceError, ScopeMismatchError

SCHEMA_PATTERN = re.compile(
    r"https://schema\.management\.azure\.com/schemas/[0-9a-zA-Z-]+/([a-zA-Z]+)Template\.json#?"
)

SCHEMA_SCOPES = {
    "tenantdeployment": ScopeType.TENANT,
    "managementgroupdeployment": ScopeType.MANAGEMENT_GROUP,
    "subscriptiondeployment": ScopeType.SUBSCRIPTION,
    "deployment": ScopeType.RESOURCE_GROUP,
}


def get_template_scope(files: ParsedFiles) -> Optional[ScopeType]:
    """Infer the target scope of a Bicep-generated template.

    Templates without ``metadata._generator.name`` were not produced by Bicep
    and are not checked, which matches the Azure CLI's loose behaviour.

    Returns:
        Optional[ScopeType]: The inferred scope, or None for non-Bicep templates.

    Raises:
        ScopeInferenceError: If the $schema does not name a known scope.
    """
    template = files.template_contents or {}
    metadata = template.get("metadata") or {}
    generator = metadata.get("_generator") or {}
    if not generator.get("name"):
        return None

    schema = template.get("$schema")
    match = SCHEMA_PATTERN.search(schema) if isinstance(schema, str) else None
    scope = SCHEMA_SCOPES.get(match.group(1).lower()) if match else None
    if scope is None:
        raise ScopeInferenceError("Failed to determine deployment scope from Bicep file.")
    return scope


def validate_file_scope(config, files: ParsedFiles) -> None:
    """Raise ScopeMismatchError if the template targets a different scope."""
    scope = get_template_scope(files)
    if scope is None:
        return

    configured = ScopeType(config.scope.type)
    if scope != configured:
        raise ScopeMismatchError(scope.value, configured.value)
