"""Azure Resource Manager client construction."""
from typing import Any, Dict, Optional

from azure.identity import DefaultAzureCredential
from azure.mgmt.core.policies import ARMHttpLoggingPolicy
from azure.mgmt.resource import ResourceManagementClient
from azure.mgmt.resource.deploymentstacks import DeploymentStacksClient

from ..deploy.errors import CORRELATION_ID_HEADER

USER_AGENT_PREFIX = "gh-azure-bicep-deploy"
# Above-subscription scope operations ignore the subscription, but the clients require one.
DUMMY_SUBSCRIPTION_ID = "00000000-0000-0000-0000-000000000000"


def get_credential(tenant_id: Optional[str] = None) -> DefaultAzureCredential:
    """Create the default credential chain, pinned to a tenant when given."""
    kwargs: Dict[str, Any] = {}
    if tenant_id:
        kwargs.update(
            workload_identity_tenant_id=tenant_id,
            interactive_browser_tenant_id=tenant_id,
            shared_cache_tenant_id=tenant_id,
            visual_studio_code_tenant_id=tenant_id,
            additionally_allowed_tenants=[tenant_id],
        )
    return DefaultAzureCredential(**kwargs)


def _client_options() -> Dict[str, Any]:
    logging_policy = ARMHttpLoggingPolicy()
    logging_policy.allowed_header_names.add(CORRELATION_ID_HEADER)
    return {
        "user_agent": USER_AGENT_PREFIX,
        "http_logging_policy": logging_policy,
    }


def create_deployment_client(
    subscription_id: Optional[str] = None, tenant_id: Optional[str] = None
) -> ResourceManagementClient:
    return ResourceManagementClient(
        get_credential(tenant_id),
        subscription_id or DUMMY_SUBSCRIPTION_ID,
        **_client_options(),
    )


def create_stacks_client(
    subscription_id: Optional[str] = None, tenant_id: Optional[str] = None
) -> DeploymentStacksClient:
    return DeploymentStacksClient(
        get_credential(tenant_id),
        subscription_id or DUMMY_SUBSCRIPTION_ID,
        **_client_options(),
    )


def get_deployment_client(scope) -> ResourceManagementClient:
    return create_deployment_client(getattr(scope, "subscription_id", None), scope.tenant_id)


def get_stacks_client(scope) -> DeploymentStacksClient:
    return create_stacks_client(getattr(scope, "subscription_id", None), scope.tenant_id)
