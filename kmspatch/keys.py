from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple, Type, TypeVar

from botocore.exceptions import BotoCoreError, ClientError
from linz_logger import get_log

from .key_policy import KEY_POLICY_NAME, PolicyDocument, PolicyParseError, parse_policy_document
from .logging_keys import (
    LOG_MESSAGE_KEY_ELIGIBLE,
    LOG_MESSAGE_KEY_SKIPPED,
    LOG_MESSAGE_KEY_UNREADABLE,
)
from .provider_errors import get_error_details
from .types import JsonObject

if TYPE_CHECKING:
    # When type checking we want to use the third party package's stub
    from mypy_boto3_kms import KMSClient
else:
    # In production we want to avoid depending on a package which has no runtime impact
    KMSClient = object  # pragma: no mutate

LOGGER = get_log()

EnumType = TypeVar("EnumType", bound=Enum)


class KeyOrigin(Enum):
    AWS_KMS = "AWS_KMS"
    EXTERNAL = "EXTERNAL"
    AWS_CLOUDHSM = "AWS_CLOUDHSM"
    EXTERNAL_KEY_STORE = "EXTERNAL_KEY_STORE"


class KeyManager(Enum):
    AWS = "AWS"
    CUSTOMER = "CUSTOMER"


class SkipReason(Enum):
    UNPARSABLE_POLICY = "unparsable-policy"
    NOT_AWS_KMS_ORIGIN = "not-aws-kms-origin"
    DISABLED = "disabled"
    AWS_MANAGED = "aws-managed"
    UNREADABLE = "unreadable"


@dataclass(frozen=True)
class KeyMetadata:
    key_id: str
    # None when KMS reports a value this release does not know
    origin: Optional[KeyOrigin]
    enabled: bool
    manager: Optional[KeyManager]


@dataclass(frozen=True)
class EligibleKey:
    metadata: KeyMetadata
    policy: PolicyDocument
    # Exactly as returned by GetKeyPolicy
    policy_string: str

    @property
    def key_id(self) -> str:
        return self.metadata.key_id


@dataclass(frozen=True)
class Classification:
    key_id: str
    eligible_key: Optional[EligibleKey] = None
    skip_reasons: Tuple[SkipReason, ...] = ()

    @property
    def eligible(self) -> bool:
        return self.eligible_key is not None


def get_enum_member(enum_type: Type[EnumType], value: str) -> Optional[EnumType]:
    try:
        return enum_type(value)
    except ValueError:
        return None


def list_key_ids(kms_client: KMSClient) -> List[str]:
    key_ids = []
    for page in kms_client.get_paginator("list_keys").paginate():
        for key in page["Keys"]:
            key_ids.append(key["KeyId"])
    return key_ids


def describe_key_metadata(kms_client: KMSClient, key_id: str) -> KeyMetadata:
    key_metadata = kms_client.describe_key(KeyId=key_id)["KeyMetadata"]
    return KeyMetadata(
        key_id=key_id,
        origin=get_enum_member(KeyOrigin, key_metadata["Origin"]),
        enabled=key_metadata["Enabled"],
        manager=get_enum_member(KeyManager, key_metadata["KeyManager"]),
    )


def get_key_policy_string(kms_client: KMSClient, key_id: str) -> str:
    response = kms_client.get_key_policy(KeyId=key_id, PolicyName=KEY_POLICY_NAME)
    return response["Policy"]


def get_skip_reasons(
    metadata: KeyMetadata, policy: Optional[PolicyDocument]
) -> Tuple[SkipReason, ...]:
    """Every eligibility predicate is evaluated, so the result lists all reasons at once."""
    skip_reasons = []
    if policy is None:
        skip_reasons.append(SkipReason.UNPARSABLE_POLICY)
    if metadata.origin != KeyOrigin.AWS_KMS:
        skip_reasons.append(SkipReason.NOT_AWS_KMS_ORIGIN)
    if not metadata.enabled:
        skip_reasons.append(SkipReason.DISABLED)
    if metadata.manager != KeyManager.CUSTOMER:
        skip_reasons.append(SkipReason.AWS_MANAGED)
    return tuple(skip_reasons)


def is_eligible(metadata: KeyMetadata, policy: Optional[PolicyDocument]) -> bool:
    return not get_skip_reasons(metadata, policy)


def classify_key(kms_client: KMSClient, key_id: str) -> Classification:
    try:
        metadata = describe_key_metadata(kms_client, key_id)
        policy_string = get_key_policy_string(kms_client, key_id)
    except (ClientError, BotoCoreError) as error:
        error_code, _ = get_error_details(error)
        LOGGER.warning(LOG_MESSAGE_KEY_UNREADABLE, extra={"key_id": key_id, "error": error_code})
        return Classification(key_id=key_id, skip_reasons=(SkipReason.UNREADABLE,))

    policy: Optional[PolicyDocument] = None
    log_extra: JsonObject = {"key_id": key_id}
    try:
        policy = parse_policy_document(policy_string)
    except PolicyParseError as error:
        log_extra["error"] = str(error)

    skip_reasons = get_skip_reasons(metadata, policy)
    if skip_reasons:
        log_extra["reasons"] = [reason.value for reason in skip_reasons]
        LOGGER.debug(LOG_MESSAGE_KEY_SKIPPED, extra=log_extra)
        return Classification(key_id=key_id, skip_reasons=skip_reasons)

    assert policy is not None
    LOGGER.debug(LOG_MESSAGE_KEY_ELIGIBLE, extra={"key_id": key_id})
    return Classification(
        key_id=key_id, eligible_key=EligibleKey(metadata, policy, policy_string)
    )
