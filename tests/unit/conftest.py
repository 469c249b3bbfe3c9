"""
Shared fixtures for unit tests.
"""

from __future__ import annotations

import os
import uuid
from unittest.mock import MagicMock

import pytest

STACK_GUID = "5b918d10-cd98-11e8-b0b9-0a1b2c3d4e5f"
STACK_ID = f"arn:aws:cloudformation:us-east-1:123456789012:stack/MyStack/{STACK_GUID}"
RESPONSE_URL = (
    "https://cloudformation-custom-resource-response-useast1.s3.amazonaws.com/"
    "arn%3Aaws%3Acloudformation%3Aus-east-1%3A123456789012%3Astack/MyStack/guid%7CMyThing%7Creq"
    "?X-Amz-Algorithm=AWS4-HMAC-SHA256&X-Amz-Expires=7200&X-Amz-Signature=deadbeef"
)
SERVICE_TOKEN = "arn:aws:lambda:us-east-1:123456789012:function:cfn-provider"


@pytest.fixture(scope="session", autouse=True)
def _env_vars():
    """
    Ensures a deterministic environment for every test run.
    Overwrite *only* the variables needed by the provider.
    """
    original = os.environ.copy()
    os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "cfn-resource-provider-test")
    os.environ.setdefault("POWERTOOLS_METRICS_NAMESPACE", "CfnResourceProviderTest")
    os.environ.setdefault("POWERTOOLS_LOG_LEVEL", "INFO")
    yield
    os.environ.clear()
    os.environ.update(original)


def _base_event(request_type: str, **overrides) -> dict:
    event = {
        "RequestType": request_type,
        "ServiceToken": SERVICE_TOKEN,
        "RequestId": "unique-id-" + uuid.uuid4().hex,
        "ResponseURL": RESPONSE_URL,
        "ResourceType": "Custom::Thing",
        "LogicalResourceId": "MyThing",
        "StackId": STACK_ID,
        "ResourceProperties": {
            "ServiceToken": SERVICE_TOKEN,
            "BucketName": "my-bucket",
        },
    }
    event.update(overrides)
    return event


# ---------- Minimal, realistic CloudFormation events ---------- #
@pytest.fixture
def create_event() -> dict:
    return _base_event("Create")


@pytest.fixture
def update_event() -> dict:
    return _base_event(
        "Update",
        PhysicalResourceId="phys-123",
        OldResourceProperties={
            "ServiceToken": SERVICE_TOKEN,
            "BucketName": "my-old-bucket",
        },
    )


@pytest.fixture
def delete_event() -> dict:
    return _base_event("Delete", PhysicalResourceId="phys-123")


@pytest.fixture(params=["Create", "Update", "Delete"])
def any_event(request, create_event, update_event, delete_event) -> dict:
    """Each of the three request types in turn."""
    return {
        "Create": create_event,
        "Update": update_event,
        "Delete": delete_event,
    }[request.param]


@pytest.fixture
def lambda_context() -> MagicMock:
    """A small stand-in for the LambdaContext object."""
    context = MagicMock()
    context.function_name = "cfn-provider"
    context.memory_limit_in_mb = 128
    context.invoked_function_arn = "arn:aws:lambda:us-east-1:123456789012:function:cfn-provider"
    context.aws_request_id = "req-" + uuid.uuid4().hex
    context.get_remaining_time_in_millis.return_value = 30000
    return context
