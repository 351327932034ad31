"""Error types and translation of Azure Resource Manager failures."""
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from azure.core.exceptions import HttpResponseError, ResponseNotReadError

from ..actions.core import log_error

CORRELATION_ID_HEADER = "x-ms-correlation-request-id"

T = TypeVar("T")


class BicepDeployError(Exception):
    """Base class for errors raised before any request reaches Azure."""
    pass


class ConfigError(BicepDeployError):
    """Raised when the action inputs are invalid."""
    pass


class ScopeMismatchError(BicepDeployError):
    """Raised when the template targets a different scope than the one configured."""

    def __init__(self, target_scope: str, deployment_scope: str):
        self.target_scope = target_scope
        self.deployment_scope = deployment_scope
        super().__init__(
            f"The target scope {target_scope} does not match the deployment scope {deployment_scope}."
        )


class ScopeInferenceError(BicepDeployError):
    """Raised when a Bicep-generated template has an unrecognised $schema."""
    pass


class MissingLocationError(BicepDeployError):
    """Raised when a scope above resource group is used without a location."""
    pass


@dataclass
class ServiceError:
    """Structured error returned by Azure Resource Manager."""
    code: Optional[str]
    message: Optional[str]
    correlation_id: Optional[str] = None
    details: List[Dict[str, Any]] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> str:
        return json.dumps(self.raw or {"code": self.code, "message": self.message}, indent=2)


@dataclass
class OperationOutcome(Generic[T]):
    """Result of an operation run through try_with_error_handling."""
    value: Optional[T] = None
    error: Optional[ServiceError] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


def get_correlation_id(error: HttpResponseError) -> Optional[str]:
    if error.response is None:
        return None
    return error.response.headers.get(CORRELATION_ID_HEADER)


def read_response_body(error: HttpResponseError) -> Optional[str]:
    """Return the failed response's body as text, if it was read."""
    if error.response is None:
        return None
    try:
        return error.response.text() or None
    except ResponseNotReadError:
        return None


def parse_service_error(error: HttpResponseError) -> Optional[ServiceError]:
    """Extract the ARM error object from a failed response.

    ARM returns ``{"error": {...}}`` for synchronous failures, while a failed
    deployment polled to completion carries it under ``properties.error``.

    Returns:
        Optional[ServiceError]: The structured error, or None when the body
        is missing or is not an ARM error payload.
    """
    body = read_response_body(error)
    if not body:
        return None

    try:
        payload = json.loads(body)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None

    error_body = payload.get("error")
    if not isinstance(error_body, dict):
        properties = payload.get("properties")
        if isinstance(properties, dict):
            error_body = properties.get("error")
    if not isinstance(error_body, dict):
        return None

    return ServiceError(
        code=error_body.get("code"),
        message=error_body.get("message"),
        correlation_id=get_correlation_id(error),
        details=error_body.get("details") or [],
        raw=error_body,
    )


def try_with_error_handling(action: Callable[[], T]) -> OperationOutcome[T]:
    """Run an Azure operation, converting structured service errors into an outcome.

    Only HttpResponseError failures with a parseable ARM error body are
    handled; everything else propagates to the caller.

    Args:
        action: Zero-argument callable performing the request.

    Returns:
        OperationOutcome: The value on success, or the ServiceError.
    """
    try:
        return OperationOutcome(value=action())
    except HttpResponseError as ex:
        log_error(f"Request failed. CorrelationId: {get_correlation_id(ex)}")
        service_error = parse_service_error(ex)
        if service_error is None:
            raise
        return OperationOutcome(error=service_error)


def log_request_failure(error: BaseException) -> None:
    """Log the correlation id and raw body of a failed request."""
    if not isinstance(error, HttpResponseError):
        return
    body = read_response_body(error)
    if not body:
        return

    log_error(f"Request failed. CorrelationId: {get_correlation_id(error)}")
    try:
        log_error(json.dumps(json.loads(body), indent=2))
    except ValueError:
        log_error(body)
