# src/cfn_resource_provider/clients.py

"""
HTTP client wrapper for delivering responses to CloudFormation.

The response URL is a presigned S3 URL. It is signed for a PUT with an empty
``Content-Type``, it is the only authorization needed, and it can be used
once. The client therefore sends exactly one request and never retries or
follows redirects itself.
"""

import logging

import urllib3

from .exceptions import ResponseRejectedError, ResponseTransportError
from .security import redact_response_url

logger = logging.getLogger(__name__)

_MAX_ERROR_BODY_CHARS = 512


class ResponseClient:
    """
    A wrapper for the single PUT that hands a response document to CloudFormation.
    """

    def __init__(
        self,
        http: urllib3.PoolManager | None = None,
        timeout_seconds: float | None = None,
    ):
        """
        Initializes the ResponseClient.

        Args:
            http: The urllib3 pool to send through; a new PoolManager by default.
            timeout_seconds: Optional total timeout for the PUT. None blocks until
                the Lambda runtime itself times out.
        """
        self._http = http or urllib3.PoolManager()
        self._timeout = urllib3.Timeout(total=timeout_seconds) if timeout_seconds else None

    def put_response(self, response_url: str, body: str) -> int:
        """
        PUTs the serialized response to the presigned URL and returns the HTTP status.
        Raises ResponseRejectedError for non-2xx answers and ResponseTransportError
        when the request could not be completed.
        """
        encoded = body.encode("utf-8")
        headers = {
            "Content-Type": "",
            "Content-Length": str(len(encoded)),
        }
        request_kwargs = {"timeout": self._timeout} if self._timeout else {}
        redacted_url = redact_response_url(response_url)

        try:
            response = self._http.request(
                "PUT",
                response_url,
                body=encoded,
                headers=headers,
                retries=False,
                redirect=False,
                **request_kwargs,
            )
        except urllib3.exceptions.HTTPError as e:
            raise ResponseTransportError(redacted_url, str(e) or e.__class__.__name__) from e

        if not 200 <= response.status < 300:
            error_body = response.data.decode("utf-8", errors="replace")[:_MAX_ERROR_BODY_CHARS]
            raise ResponseRejectedError(redacted_url, response.status, body=error_body)

        logger.debug(
            "Response accepted by response URL.",
            extra={"response_url": redacted_url, "status_code": response.status},
        )
        return response.status
