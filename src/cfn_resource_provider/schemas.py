# src/cfn_resource_provider/schemas.py

"""
Request models for CloudFormation custom resource invocations.

CloudFormation sends one of three documents, distinguished by ``RequestType``.
They are parsed into frozen pydantic models that are generic over the type of
``ResourceProperties``:

- ``CreateRequest[P]``
- ``DeleteRequest[P]`` (adds ``PhysicalResourceId``)
- ``UpdateRequest[P]`` (adds ``PhysicalResourceId`` and ``OldResourceProperties``)
"""

import logging
from functools import lru_cache
from typing import Annotated, Any, Generic, Literal, Mapping, TypeVar, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_pascal
from pydantic_core import PydanticSerializationError, core_schema, to_jsonable_python

from .exceptions import (
    InvalidRequestError,
    PhysicalResourceIdUnassignedError,
    ResponseDataError,
    ValidationError as CustomValidationError,
)
from .physical_id import (
    FALLBACK_PHYSICAL_RESOURCE_ID,
    PhysicalResourceIdProvider,
    content_digest,
    default_physical_resource_id,
)
from .responses import FailedResponse, SuccessResponse
from .security import validate_response_url

logger = logging.getLogger(__name__)

P = TypeVar("P")


# --- Resource property helpers ---


class Ignored:
    """
    Placeholder properties type for providers that do not read ``ResourceProperties``.

    Validation always succeeds, whatever the input shape and whether the field
    is present at all. All instances are equal.
    """

    __slots__ = ()

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Ignored)

    def __hash__(self) -> int:
        return hash(Ignored)

    def __repr__(self) -> str:
        return "Ignored()"

    def physical_resource_id_suffix(self) -> str:
        return ""

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            lambda _value: cls(),
            serialization=core_schema.plain_serializer_function_ser_schema(lambda _value: None),
        )


class ResourceProperties(BaseModel):
    """
    Base class for typed resource properties.

    Fields use PascalCase aliases like the rest of a CloudFormation template.
    Keys the model does not declare (``ServiceToken`` is always present) are
    ignored. The physical id suffix defaults to a digest of the declared fields;
    override ``physical_resource_id_suffix`` to choose a readable one.
    """

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True, frozen=True)

    def physical_resource_id_suffix(self) -> str:
        return content_digest(self.model_dump(mode="json", by_alias=True))


# --- Request models ---


class _CfnRequestBase(BaseModel, Generic[P]):
    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True, frozen=True)

    request_id: str
    response_url: str = Field(alias="ResponseURL")
    resource_type: str
    logical_resource_id: str
    stack_id: str
    # None runs through validation, so required property models still reject a
    # missing ResourceProperties while Ignored and optional types accept it.
    resource_properties: P = Field(default=None, validate_default=True)

    @field_validator("response_url")
    @classmethod
    def validate_response_url_security(cls, value: str) -> str:
        try:
            return validate_response_url(value)
        except CustomValidationError as e:
            raise ValueError(str(e))

    def derive_physical_resource_id(
        self, provider: PhysicalResourceIdProvider | None = None
    ) -> str:
        """
        Physical resource id reported in the response.

        Overridden by ``CreateRequest`` (derives a new id) and by Delete/Update
        requests (echo the stored id). The base request has no id of its own.
        """
        raise NotImplementedError(
            f"{type(self).__name__} must override derive_physical_resource_id"
        )

    def into_response(
        self,
        data: Any = None,
        error: BaseException | None = None,
        physical_resource_id_provider: PhysicalResourceIdProvider | None = None,
    ) -> SuccessResponse | FailedResponse:
        """
        Convert a handler outcome into the response for this request.

        ``error`` set means the handler failed and a FAILED response carrying
        its message is produced. Otherwise ``data`` (optional) becomes the
        ``Data`` object of a SUCCESS response.
        """
        envelope = {
            "request_id": self.request_id,
            "logical_resource_id": self.logical_resource_id,
            "stack_id": self.stack_id,
            "physical_resource_id": self.derive_physical_resource_id(
                physical_resource_id_provider
            ),
        }

        if error is None:
            try:
                payload = _response_data(data)
            except ResponseDataError as e:
                logger.warning(
                    "Handler data cannot be sent to CloudFormation, reporting failure.",
                    extra={"error": e.to_dict()},
                )
                error = e
            else:
                return SuccessResponse(**envelope, no_echo=False, data=payload)

        return FailedResponse(**envelope, reason=_failure_reason(error))


class CreateRequest(_CfnRequestBase[P], Generic[P]):
    request_type: Literal["Create"] = "Create"

    @property
    def physical_resource_id(self) -> str:
        raise PhysicalResourceIdUnassignedError(self.logical_resource_id)

    def derive_physical_resource_id(
        self, provider: PhysicalResourceIdProvider | None = None
    ) -> str:
        """
        Id for the resource this request creates. Never raises: a failing
        provider degrades to ``FALLBACK_PHYSICAL_RESOURCE_ID``.
        """
        derive = provider or default_physical_resource_id
        try:
            physical_resource_id = derive(self)
        except Exception:
            logger.exception(
                "Physical resource id derivation failed, using fallback id.",
                extra={
                    "logical_resource_id": self.logical_resource_id,
                    "fallback": FALLBACK_PHYSICAL_RESOURCE_ID,
                },
            )
            return FALLBACK_PHYSICAL_RESOURCE_ID

        if not isinstance(physical_resource_id, str) or not physical_resource_id:
            logger.error(
                "Physical resource id provider returned an empty or non-string id, using fallback id.",
                extra={
                    "logical_resource_id": self.logical_resource_id,
                    "returned_type": type(physical_resource_id).__name__,
                },
            )
            return FALLBACK_PHYSICAL_RESOURCE_ID
        return physical_resource_id


class _ExistingResourceRequestBase(_CfnRequestBase[P], Generic[P]):
    physical_resource_id: str

    def derive_physical_resource_id(
        self, provider: PhysicalResourceIdProvider | None = None
    ) -> str:
        # The resource already exists; its id must stay stable.
        return self.physical_resource_id


class DeleteRequest(_ExistingResourceRequestBase[P], Generic[P]):
    request_type: Literal["Delete"] = "Delete"


class UpdateRequest(_ExistingResourceRequestBase[P], Generic[P]):
    request_type: Literal["Update"] = "Update"
    old_resource_properties: P = Field(default=None, validate_default=True)


CfnRequest = Union[CreateRequest[P], DeleteRequest[P], UpdateRequest[P]]


# --- Parsing ---


@lru_cache(maxsize=None)
def _request_adapter(properties_type: Any) -> pydantic.TypeAdapter:
    return pydantic.TypeAdapter(
        Annotated[
            Union[
                CreateRequest[properties_type],
                DeleteRequest[properties_type],
                UpdateRequest[properties_type],
            ],
            Field(discriminator="request_type"),
        ]
    )


def parse_request(event: Mapping[str, Any], properties_type: Any = Ignored) -> CfnRequest:
    """
    Parse a raw invocation event into the matching request model.

    Raises:
        InvalidRequestError: If the event is not a valid Create, Delete or
            Update request, or its resource properties do not match
            ``properties_type``.
    """
    try:
        return _request_adapter(properties_type).validate_python(event)
    except pydantic.ValidationError as e:
        raise InvalidRequestError(
            f"Invalid CloudFormation custom resource request: {e.error_count()} validation error(s)",
            context={"errors": e.errors(include_url=False, include_input=False)},
        ) from e


def _response_data(data: Any) -> dict[str, Any] | None:
    if data is None:
        return None
    try:
        if isinstance(data, BaseModel):
            payload = data.model_dump(mode="json", by_alias=True)
        else:
            payload = to_jsonable_python(data)
    # Circular data surfaces as a plain ValueError rather than a serialization error.
    except (PydanticSerializationError, ValueError, TypeError) as e:
        raise ResponseDataError(str(e) or e.__class__.__name__) from e

    if not isinstance(payload, dict):
        raise ResponseDataError(f"expected a JSON object, got {type(payload).__name__}")
    return payload


def _failure_reason(error: BaseException) -> str:
    return str(error) or error.__class__.__name__
