from random import choice, randrange
from typing import Dict, List, Optional, Union
from unittest.mock import MagicMock
from uuid import uuid4

from botocore.exceptions import BotoCoreError, ClientError, EndpointConnectionError

from kmspatch.keys import KeyManager, KeyOrigin

from .general_generators import any_error_message, random_ascii_letter_string, random_string

REGION_NAMES = [
    "af-south-1",
    "ap-northeast-1",
    "ap-south-1",
    "ap-southeast-2",
    "ca-central-1",
    "eu-central-1",
    "eu-west-1",
    "sa-east-1",
    "us-east-1",
    "us-west-2",
]


def any_account_id() -> str:
    return str(randrange(1_000_000_000_000)).zfill(12)


def any_region_name() -> str:
    return choice(REGION_NAMES)


def any_profile_name() -> str:
    return random_ascii_letter_string(20)


def any_error_code() -> str:
    """Arbitrary-length string"""
    return random_string(10)


def any_operation_name() -> str:
    """Arbitrary-length string"""
    return random_string(10)


def any_client_error(error_code: Optional[str] = None) -> ClientError:
    return ClientError(
        {"Error": {"Code": error_code or any_error_code(), "Message": any_error_message()}},
        any_operation_name(),
    )


def any_endpoint_connection_error() -> EndpointConnectionError:
    return EndpointConnectionError(endpoint_url=f"https://kms.{any_region_name()}.amazonaws.com")


# KMS


def any_key_id() -> str:
    return str(uuid4())


def any_key_arn(key_id: str) -> str:
    return f"arn:aws:kms:{any_region_name()}:{any_account_id()}:key/{key_id}"


def get_describe_key_response(
    key_id: str,
    origin: KeyOrigin = KeyOrigin.AWS_KMS,
    enabled: bool = True,
    manager: KeyManager = KeyManager.CUSTOMER,
) -> Dict[str, Dict[str, Union[str, bool]]]:
    return {
        "KeyMetadata": {
            "KeyId": key_id,
            "Arn": any_key_arn(key_id),
            "Origin": origin.value,
            "Enabled": enabled,
            "KeyManager": manager.value,
            "KeyState": "Enabled" if enabled else "Disabled",
        }
    }


class FakeKey:  # pylint: disable=too-few-public-methods
    def __init__(  # pylint: disable=too-many-arguments
        self,
        policy: Union[str, ClientError, BotoCoreError],
        origin: KeyOrigin = KeyOrigin.AWS_KMS,
        enabled: bool = True,
        manager: KeyManager = KeyManager.CUSTOMER,
        key_id: Optional[str] = None,
    ):
        self.key_id = key_id or any_key_id()
        self.policy = policy
        self.origin = origin
        self.enabled = enabled
        self.manager = manager


def get_kms_client_mock(keys: List[FakeKey]) -> MagicMock:
    """KMS client mock which lists, describes and returns the policies of `keys`."""
    keys_by_id = {key.key_id: key for key in keys}

    def describe_key(KeyId: str) -> Dict[str, Dict[str, Union[str, bool]]]:
        key = keys_by_id[KeyId]
        return get_describe_key_response(KeyId, key.origin, key.enabled, key.manager)

    def get_key_policy(KeyId: str, PolicyName: str) -> Dict[str, str]:
        assert PolicyName == "default", PolicyName
        policy = keys_by_id[KeyId].policy
        if isinstance(policy, (ClientError, BotoCoreError)):
            raise policy
        return {"Policy": policy, "PolicyName": PolicyName}

    kms_client_mock = MagicMock()
    kms_client_mock.get_paginator.return_value.paginate.return_value = [
        {"Keys": [{"KeyId": key.key_id, "KeyArn": any_key_arn(key.key_id)} for key in keys]}
    ]
    kms_client_mock.describe_key.side_effect = describe_key
    kms_client_mock.get_key_policy.side_effect = get_key_policy
    return kms_client_mock
