from typing import TYPE_CHECKING

import boto3

from .boto3_config import CONFIG

if TYPE_CHECKING:
    from mypy_boto3_sts import STSClient
else:
    STSClient = object  # pragma: no mutate


def get_account_number(session: boto3.Session) -> str:
    sts_client: STSClient = session.client("sts", config=CONFIG)
    caller_identity = sts_client.get_caller_identity()
    assert "Account" in caller_identity, caller_identity
    return caller_identity["Account"]
