# tests/unit/test_responses.py

"""
Unit tests for CfnRequest.into_response() and the response wire format.
"""

import datetime
import json

import pytest

from cfn_resource_provider.physical_id import PHYSICAL_RESOURCE_ID_PREFIX
from cfn_resource_provider.responses import FailedResponse, SuccessResponse
from cfn_resource_provider.schemas import ResourceProperties, parse_request


class Endpoint(ResourceProperties):
    url: str
    port: int


class TestIntoResponseSuccess:
    def test_none_gives_success_without_data(self, create_event):
        request = parse_request(create_event)

        response = request.into_response(None)

        assert isinstance(response, SuccessResponse)
        assert response.data is None
        assert response.no_echo is False
        assert "Data" not in response.to_wire()

    def test_mapping_becomes_data(self, update_event):
        request = parse_request(update_event)

        response = request.into_response({"url": "https://x"})

        assert isinstance(response, SuccessResponse)
        assert response.data == {"url": "https://x"}

    def test_pydantic_model_is_dumped_by_alias(self, create_event):
        request = parse_request(create_event)

        response = request.into_response(Endpoint(url="https://x", port=443))

        assert response.data == {"Url": "https://x", "Port": 443}

    def test_data_values_are_made_json_compatible(self, create_event):
        request = parse_request(create_event)

        response = request.into_response({"created": datetime.date(2024, 1, 2)})

        assert response.data == {"created": "2024-01-02"}

    def test_create_gets_derived_physical_resource_id(self, create_event):
        request = parse_request(create_event)

        response = request.into_response()

        assert response.physical_resource_id.startswith(PHYSICAL_RESOURCE_ID_PREFIX)
        assert response.physical_resource_id == request.derive_physical_resource_id()

    def test_custom_provider_is_used_for_create(self, create_event):
        request = parse_request(create_event)

        response = request.into_response(
            physical_resource_id_provider=lambda req: f"thing-{req.logical_resource_id}"
        )

        assert response.physical_resource_id == "thing-MyThing"


class TestIntoResponseFailure:
    def test_error_gives_failed_with_reason(self, delete_event):
        request = parse_request(delete_event)

        response = request.into_response(error=LookupError("not found"))

        assert isinstance(response, FailedResponse)
        assert response.reason == "not found"
        assert response.physical_resource_id == "phys-123"

    def test_error_wins_over_data(self, update_event):
        request = parse_request(update_event)

        response = request.into_response({"ignored": True}, error=ValueError("boom"))

        assert isinstance(response, FailedResponse)
        assert response.reason == "boom"

    def test_empty_error_message_falls_back_to_class_name(self, create_event):
        request = parse_request(create_event)

        response = request.into_response(error=TimeoutError())

        assert response.reason == "TimeoutError"

    @pytest.mark.parametrize("data", [["a", "list"], "text", 42])
    def test_non_mapping_data_is_reported_as_failure(self, create_event, data):
        request = parse_request(create_event)

        response = request.into_response(data)

        assert isinstance(response, FailedResponse)
        assert "expected a JSON object" in response.reason

    def test_unserializable_data_is_reported_as_failure(self, create_event):
        request = parse_request(create_event)

        response = request.into_response({"handle": object()})

        assert isinstance(response, FailedResponse)
        assert response.reason.startswith("Handler returned unusable response data")

    def test_circular_data_is_reported_as_failure(self, create_event):
        request = parse_request(create_event)
        data = {}
        data["self"] = data

        response = request.into_response(data)

        assert isinstance(response, FailedResponse)
        assert response.reason.startswith("Handler returned unusable response data")
        assert "Circular reference" in response.reason

    def test_failed_create_still_gets_physical_resource_id(self, create_event):
        request = parse_request(create_event)

        response = request.into_response(error=RuntimeError("quota exceeded"))

        assert response.physical_resource_id == request.derive_physical_resource_id()

    def test_failed_create_with_broken_provider_uses_fallback(self, create_event):
        request = parse_request(create_event)

        def provider(_request):
            raise KeyError("missing")

        response = request.into_response(
            error=RuntimeError("quota exceeded"), physical_resource_id_provider=provider
        )

        assert isinstance(response, FailedResponse)
        assert response.physical_resource_id == "unknown"


class TestCorrelationFields:
    """Every response echoes the correlation fields of its request."""

    @pytest.mark.parametrize(
        "outcome",
        [
            {"data": None},
            {"data": {"key": "value"}},
            {"error": RuntimeError("failure")},
        ],
    )
    def test_responses_echo_request(self, any_event, outcome):
        request = parse_request(any_event)

        wire = request.into_response(**outcome).to_wire()

        assert wire["RequestId"] == any_event["RequestId"]
        assert wire["LogicalResourceId"] == any_event["LogicalResourceId"]
        assert wire["StackId"] == any_event["StackId"]
        if "PhysicalResourceId" in any_event:
            assert wire["PhysicalResourceId"] == any_event["PhysicalResourceId"]


class TestWireFormat:
    def test_success_wire_format(self, update_event):
        request = parse_request(update_event)

        wire = request.into_response(
            {"keyThatCanBeUsedInGetAtt1": "data for key 1"}
        ).to_wire()

        assert wire == {
            "Status": "SUCCESS",
            "RequestId": update_event["RequestId"],
            "LogicalResourceId": "MyThing",
            "StackId": update_event["StackId"],
            "PhysicalResourceId": "phys-123",
            "NoEcho": False,
            "Data": {"keyThatCanBeUsedInGetAtt1": "data for key 1"},
        }

    def test_failed_wire_format(self, delete_event):
        request = parse_request(delete_event)

        wire = request.into_response(error=RuntimeError("Required failure reason string")).to_wire()

        assert wire == {
            "Status": "FAILED",
            "Reason": "Required failure reason string",
            "RequestId": delete_event["RequestId"],
            "LogicalResourceId": "MyThing",
            "StackId": delete_event["StackId"],
            "PhysicalResourceId": "phys-123",
        }

    def test_json_body_matches_wire_dict(self, create_event):
        response = parse_request(create_event).into_response({"a": 1})

        assert json.loads(response.to_json()) == response.to_wire()
