"""
The Lambda Adapter & Orchestrator for CloudFormation custom resources.

``process`` wraps a user handler into an AWS Lambda entry point. Each
invocation:
1.  Parses the event into a typed ``CreateRequest``/``DeleteRequest``/
    ``UpdateRequest``. An invalid event is fatal and raised to the runtime,
    since there may be no usable response URL to report through.
2.  Invokes the handler exactly once. Handler exceptions are recovered into a
    FAILED response so CloudFormation shows the reason and rolls back.
3.  Converts the outcome into the response document and PUTs it to the
    presigned response URL. A failed PUT is raised to the runtime; nothing is
    retried here.
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable

from aws_lambda_powertools import Logger, Metrics
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from .clients import ResponseClient
from .config import ProviderConfig, get_config
from .exceptions import (
    InvalidRequestError,
    ResponseDeliveryError,
    get_error_context,
    is_retryable_error,
)
from .physical_id import PhysicalResourceIdProvider
from .responses import FailedResponse, SuccessResponse
from .schemas import CfnRequest, Ignored, parse_request
from .security import redact_response_url

# CloudFormation rejects response documents larger than this.
MAX_RESPONSE_BODY_BYTES = 4096

CfnHandler = Callable[[CfnRequest], Any]
LambdaHandler = Callable[[dict, LambdaContext], dict]


def _run_handler(handler: CfnHandler, request: CfnRequest) -> Any:
    """Calls the handler, driving it to completion when it returns an awaitable."""
    result = handler(request)
    if not inspect.isawaitable(result):
        return result

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(_await(result))

    if inspect.iscoroutine(result):
        result.close()
    raise RuntimeError(
        "Async handler cannot be run: an event loop is already running in this thread"
    )


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


def process(
    handler: CfnHandler,
    properties_type: Any = Ignored,
    *,
    physical_resource_id_provider: PhysicalResourceIdProvider | None = None,
    client: ResponseClient | None = None,
    config: ProviderConfig | None = None,
) -> LambdaHandler:
    """
    Build the Lambda entry point for a custom resource handler.

    Args:
        handler: Called once per invocation with the parsed request. Returns the
            optional ``Data`` for the response (a mapping or pydantic model) or
            raises to fail the operation. May be a coroutine function, in
            which case the entry point must be called from a thread with no
            running event loop; otherwise the request is reported as FAILED.
        properties_type: Type ``ResourceProperties`` (and ``OldResourceProperties``)
            are validated into. ``Ignored`` skips them.
        physical_resource_id_provider: Replaces the default physical id
            derivation for Create requests.
        client: Delivers the response; a ``ResponseClient`` by default.
        config: Provider configuration; loaded from the environment by default.

    Returns:
        A ``handler(event, context)`` function for the Lambda runtime. It returns
        the delivered response document.
    """
    config = config or get_config()
    client = client or ResponseClient(timeout_seconds=config.response_timeout_seconds)

    logger = Logger(service=config.service_name, level=config.log_level)
    metrics = Metrics(namespace=config.metrics_namespace, service=config.service_name)

    def _send(request: CfnRequest, response: SuccessResponse | FailedResponse) -> None:
        body = response.to_json()
        body_size = len(body.encode("utf-8"))
        redacted_url = redact_response_url(request.response_url)

        if body_size > MAX_RESPONSE_BODY_BYTES:
            logger.warning(
                "Response body exceeds the CloudFormation size limit and will likely be rejected.",
                extra={"body_size_bytes": body_size, "limit_bytes": MAX_RESPONSE_BODY_BYTES},
            )

        logger.info(
            "Sending response to CloudFormation",
            extra={
                "status": response.status,
                "physical_resource_id": response.physical_resource_id,
                "response_url": redacted_url,
            },
        )

        try:
            client.put_response(request.response_url, body)
        except ResponseDeliveryError as e:
            metrics.add_metric(name="ResponseDeliveryFailures", unit=MetricUnit.Count, value=1)
            # CloudFormation only sees a timeout when this happens, make it loud.
            logger.error(
                f"Failed to deliver response to CloudFormation: {e}",
                extra={"error": get_error_context(e), "retryable": is_retryable_error(e)},
            )
            raise

    @logger.inject_lambda_context(clear_state=True)
    @metrics.log_metrics(capture_cold_start_metric=True)
    def lambda_handler(event: dict, context: LambdaContext) -> dict:
        """Handles one CloudFormation custom resource invocation."""
        try:
            request = parse_request(event, properties_type)
        except InvalidRequestError as e:
            metrics.add_metric(name="InvalidRequests", unit=MetricUnit.Count, value=1)
            logger.error(
                "Received an invalid custom resource request; no response can be sent.",
                extra={"error": get_error_context(e)},
            )
            raise

        logger.append_keys(
            cfn_request_id=request.request_id,
            request_type=request.request_type,
            resource_type=request.resource_type,
            logical_resource_id=request.logical_resource_id,
            stack_id=request.stack_id,
        )
        metrics.add_dimension(name="request_type", value=request.request_type)
        logger.info("Processing custom resource request")

        try:
            data = _run_handler(handler, request)
        except Exception as e:
            metrics.add_metric(name="HandlerFailures", unit=MetricUnit.Count, value=1)
            logger.exception("Custom resource handler failed, reporting FAILED to CloudFormation")
            response = request.into_response(
                error=e, physical_resource_id_provider=physical_resource_id_provider
            )
        else:
            response = request.into_response(
                data, physical_resource_id_provider=physical_resource_id_provider
            )

        metrics.add_metric(
            name="SuccessResponses" if isinstance(response, SuccessResponse) else "FailedResponses",
            unit=MetricUnit.Count,
            value=1,
        )
        if isinstance(response, FailedResponse):
            logger.warning("Reporting failure to CloudFormation", extra={"reason": response.reason})

        _send(request, response)
        return response.to_wire()

    return lambda_handler
