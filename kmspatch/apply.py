from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from botocore.exceptions import BotoCoreError, ClientError
from linz_logger import get_log

from .key_policy import KEY_POLICY_NAME, PolicyDocument, serialize_policy_document
from .logging_keys import LOG_MESSAGE_KEY_POLICY_FAILED, LOG_MESSAGE_KEY_POLICY_UPDATED
from .provider_errors import get_error_details

if TYPE_CHECKING:
    # When type checking we want to use the third party package's stub
    from mypy_boto3_kms import KMSClient
else:
    # In production we want to avoid depending on a package which has no runtime impact
    KMSClient = object  # pragma: no mutate

LOGGER = get_log()


class KeyStatus(Enum):
    UPDATED = "updated"
    FAILED = "failed"
    UNCHANGED = "unchanged"
    PLANNED = "planned"


@dataclass(frozen=True)
class KeyOutcome:
    key_id: str
    status: KeyStatus
    error_code: Optional[str] = None
    error_message: Optional[str] = None


def apply_key_policy(kms_client: KMSClient, key_id: str, document: PolicyDocument) -> KeyOutcome:
    """Replace the whole key policy; KMS has no call to add a single statement."""
    try:
        kms_client.put_key_policy(
            KeyId=key_id,
            PolicyName=KEY_POLICY_NAME,
            Policy=serialize_policy_document(document),
        )
    except (ClientError, BotoCoreError) as error:
        error_code, error_message = get_error_details(error)
        LOGGER.warning(
            LOG_MESSAGE_KEY_POLICY_FAILED,
            extra={"key_id": key_id, "error_code": error_code, "error": error_message},
        )
        return KeyOutcome(key_id, KeyStatus.FAILED, error_code, error_message)

    LOGGER.info(LOG_MESSAGE_KEY_POLICY_UPDATED, extra={"key_id": key_id})
    return KeyOutcome(key_id, KeyStatus.UPDATED)
