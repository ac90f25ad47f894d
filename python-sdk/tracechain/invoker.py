"""Asynchronous invocation of downstream Lambda functions."""

from dataclasses import dataclass
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from tracechain.errors import DispatchError

# Lambda answers an accepted "Event" invocation with 202.
ACCEPTED_STATUS = 202


@dataclass(frozen=True)
class DispatchReceipt:
    """Send-time acknowledgement of a fire-and-forget invocation."""

    function_name: str
    status_code: int
    request_id: str = ""


class LambdaInvoker:
    """Fire-and-forget invoker backed by the boto3 Lambda client."""

    def __init__(self, client: Optional[Any] = None, region: Optional[str] = None):
        self._client = client or boto3.client("lambda", region_name=region)

    def invoke_async(self, function_name: str, payload: bytes) -> DispatchReceipt:
        """Queue ``payload`` for ``function_name`` without waiting for it to run.

        Raises:
            DispatchError: If the request fails or Lambda does not accept it.
        """
        try:
            response = self._client.invoke(
                FunctionName=function_name,
                InvocationType="Event",
                Payload=payload,
            )
        except (BotoCoreError, ClientError) as e:
            raise DispatchError(function_name, str(e)) from e

        status_code = response.get("StatusCode", 0)
        if status_code != ACCEPTED_STATUS:
            raise DispatchError(function_name, f"unexpected status code {status_code}")

        request_id = response.get("ResponseMetadata", {}).get("RequestId", "")
        return DispatchReceipt(function_name, status_code, request_id)
