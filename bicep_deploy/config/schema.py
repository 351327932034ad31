"""Pydantic models for action configuration."""
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_NAME = "azure-bicep-deploy"


class ScopeType(str, Enum):
    """Deployment scope levels."""
    TENANT = "tenant"
    MANAGEMENT_GROUP = "managementGroup"
    SUBSCRIPTION = "subscription"
    RESOURCE_GROUP = "resourceGroup"


class TenantScope(BaseModel):
    """Tenant scope."""
    type: Literal["tenant"] = "tenant"
    tenant_id: Optional[str] = None


class ManagementGroupScope(BaseModel):
    """Management group scope."""
    type: Literal["managementGroup"] = "managementGroup"
    tenant_id: Optional[str] = None
    management_group: str


class SubscriptionScope(BaseModel):
    """Subscription scope."""
    type: Literal["subscription"] = "subscription"
    subscription_id: str
    tenant_id: Optional[str] = None


class ResourceGroupScope(BaseModel):
    """Resource group scope."""
    type: Literal["resourceGroup"] = "resourceGroup"
    subscription_id: str
    tenant_id: Optional[str] = None
    resource_group: str


Scope = Annotated[
    Union[TenantScope, ManagementGroupScope, SubscriptionScope, ResourceGroupScope],
    Field(discriminator="type"),
]

StackScope = Annotated[
    Union[ManagementGroupScope, SubscriptionScope, ResourceGroupScope],
    Field(discriminator="type"),
]


class UnmanageAction(str, Enum):
    """What a stack does with resources it stops managing."""
    DELETE = "delete"
    DETACH = "detach"


class DenySettingsMode(str, Enum):
    """Deny assignment mode applied to stack-managed resources."""
    NONE = "none"
    DENY_DELETE = "denyDelete"
    DENY_WRITE_AND_DELETE = "denyWriteAndDelete"


class ActionOnUnmanage(BaseModel):
    """Per-resource-kind unmanage behaviour for a deployment stack."""
    model_config = ConfigDict(populate_by_name=True)

    resources: UnmanageAction = UnmanageAction.DETACH
    resource_groups: Optional[UnmanageAction] = Field(default=None, alias="resourceGroups")
    management_groups: Optional[UnmanageAction] = Field(default=None, alias="managementGroups")


class DenySettings(BaseModel):
    """Deny settings for a deployment stack."""
    model_config = ConfigDict(populate_by_name=True)

    mode: DenySettingsMode = DenySettingsMode.NONE
    excluded_actions: List[str] = Field(default_factory=list, alias="excludedActions")
    excluded_principals: List[str] = Field(default_factory=list, alias="excludedPrincipals")
    apply_to_child_scopes: bool = Field(default=False, alias="applyToChildScopes")


class FileInputs(BaseModel):
    """Template and parameter sources shared by every config type."""
    template_file: Optional[str] = None
    template_spec_id: Optional[str] = None
    parameters_file: Optional[str] = None
    parameters: Dict[str, object] = Field(default_factory=dict)


class DeploymentsConfig(BaseModel):
    """Configuration for a template deployment."""
    type: Literal["deployment"] = "deployment"
    operation: Literal["create", "validate", "whatIf"]
    name: str = DEFAULT_NAME
    scope: Scope
    location: Optional[str] = None
    tags: Optional[Dict[str, str]] = None
    masked_outputs: List[str] = Field(default_factory=list)
    files: FileInputs = Field(default_factory=FileInputs)


class DeploymentStackConfig(BaseModel):
    """Configuration for a deployment stack."""
    type: Literal["deploymentStack"] = "deploymentStack"
    operation: Literal["create", "validate", "delete"]
    name: str = DEFAULT_NAME
    scope: StackScope
    location: Optional[str] = None
    tags: Optional[Dict[str, str]] = None
    masked_outputs: List[str] = Field(default_factory=list)
    files: FileInputs = Field(default_factory=FileInputs)
    description: Optional[str] = None
    action_on_unmanage: ActionOnUnmanage = Field(default_factory=ActionOnUnmanage)
    deny_settings: DenySettings = Field(default_factory=DenySettings)
    bypass_stack_out_of_sync_error: bool = False


ActionConfig = Annotated[
    Union[DeploymentsConfig, DeploymentStackConfig],
    Field(discriminator="type"),
]
