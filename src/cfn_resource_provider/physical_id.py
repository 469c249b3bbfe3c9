# src/cfn_resource_provider/physical_id.py

"""
Physical resource id derivation for Create requests.

CloudFormation may deliver the same Create event more than once, so the id
handed back for a new resource must be a pure function of the request: the
owning stack, the logical id and the resource properties. Delete and Update
requests already carry an id and never go through this module.

Property types control the optional suffix by implementing
``physical_resource_id_suffix()``. A whole ``PhysicalResourceIdProvider``
callable can replace the default format instead.
"""

import hashlib
import json
from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

from pydantic_core import to_jsonable_python

if TYPE_CHECKING:
    from .schemas import CreateRequest

PHYSICAL_RESOURCE_ID_PREFIX = "arn:custom:cfn-resource-provider:::"

# Used whenever derivation itself fails; derivation never raises.
FALLBACK_PHYSICAL_RESOURCE_ID = "unknown"

_DIGEST_LENGTH = 16


@runtime_checkable
class PhysicalResourceIdSuffixProvider(Protocol):
    """Implemented by resource property types that choose their own id suffix."""

    def physical_resource_id_suffix(self) -> str: ...


PhysicalResourceIdProvider = Callable[["CreateRequest[Any]"], str]


def content_digest(value: Any) -> str:
    """
    Deterministic short SHA-256 digest of a JSON-compatible value.

    Keys are sorted so that two mappings with the same content digest the same
    regardless of the order CloudFormation serialized them in.
    """
    canonical = json.dumps(
        to_jsonable_python(value), sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:_DIGEST_LENGTH]


def physical_resource_id_suffix(properties: Any) -> str:
    """Suffix for the given resource properties; empty when there is nothing to identify."""
    if properties is None:
        return ""
    if isinstance(properties, PhysicalResourceIdSuffixProvider):
        return properties.physical_resource_id_suffix()
    return content_digest(properties)


def stack_guid(stack_id: str) -> str:
    """Last segment of a stack ARN (``arn:...:stack/<name>/<guid>``)."""
    return stack_id.rsplit("/", 1)[-1]


def default_physical_resource_id(request: "CreateRequest[Any]") -> str:
    """
    Default id: ``arn:custom:cfn-resource-provider:::<stack-guid>-<logical-id>[/<suffix>]``.
    """
    suffix = physical_resource_id_suffix(request.resource_properties)
    physical_resource_id = (
        f"{PHYSICAL_RESOURCE_ID_PREFIX}{stack_guid(request.stack_id)}-{request.logical_resource_id}"
    )
    if suffix:
        physical_resource_id = f"{physical_resource_id}/{suffix}"
    return physical_resource_id
