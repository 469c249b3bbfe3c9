# src/cfn_resource_provider/responses.py

"""
Response documents sent back to CloudFormation through the presigned URL.

Responses are produced by ``CfnRequest.into_response()`` so that the
correlation fields always come from a real request.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal

SUCCESS = "SUCCESS"
FAILED = "FAILED"


class _CfnResponseBase(BaseModel):
    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True, frozen=True)

    status: Literal["SUCCESS", "FAILED"]
    request_id: str
    logical_resource_id: str
    stack_id: str
    physical_resource_id: str

    def to_wire(self) -> dict[str, Any]:
        """The response as CloudFormation expects it, absent optional fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class SuccessResponse(_CfnResponseBase):
    status: Literal["SUCCESS"] = SUCCESS
    no_echo: bool = False
    data: dict[str, Any] | None = None


class FailedResponse(_CfnResponseBase):
    status: Literal["FAILED"] = FAILED
    reason: str


CfnResponse = Annotated[Union[SuccessResponse, FailedResponse], Field(discriminator="status")]
