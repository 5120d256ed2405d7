from json import loads
from unittest.mock import MagicMock, patch

from pytest_subtests import SubTests

from kmspatch.apply import KeyOutcome, KeyStatus, apply_key_policy
from kmspatch.key_policy import merge_administrator_statement, parse_policy_document
from kmspatch.logging_keys import LOG_MESSAGE_KEY_POLICY_FAILED

from .aws_utils import (
    any_account_id,
    any_client_error,
    any_endpoint_connection_error,
    any_key_id,
    any_region_name,
)
from .policy_generators import EXISTING_POLICY


def should_replace_whole_key_policy(subtests: SubTests) -> None:
    key_id = any_key_id()
    document = merge_administrator_statement(
        parse_policy_document(EXISTING_POLICY), any_account_id(), any_region_name()
    )
    kms_client_mock = MagicMock()

    outcome = apply_key_policy(kms_client_mock, key_id, document)

    with subtests.test(msg="outcome"):
        assert outcome == KeyOutcome(key_id, KeyStatus.UPDATED)

    with subtests.test(msg="request"):
        kms_client_mock.put_key_policy.assert_called_once()
        request = kms_client_mock.put_key_policy.call_args.kwargs
        assert request["KeyId"] == key_id
        assert request["PolicyName"] == "default"
        assert loads(request["Policy"]) == document.to_json()


def should_report_rejected_policy(subtests: SubTests) -> None:
    key_id = any_key_id()
    error = any_client_error("MalformedPolicyDocumentException")
    kms_client_mock = MagicMock()
    kms_client_mock.put_key_policy.side_effect = error

    with patch("kmspatch.apply.LOGGER.warning") as logger_mock:
        outcome = apply_key_policy(
            kms_client_mock, key_id, parse_policy_document(EXISTING_POLICY)
        )

    with subtests.test(msg="status"):
        assert outcome.status == KeyStatus.FAILED

    with subtests.test(msg="error code"):
        assert outcome.error_code == "MalformedPolicyDocumentException"

    with subtests.test(msg="error message"):
        assert outcome.error_message == error.response["Error"]["Message"].strip()

    with subtests.test(msg="log"):
        logger_mock.assert_called_once()
        assert logger_mock.call_args.args == (LOG_MESSAGE_KEY_POLICY_FAILED,)


def should_report_connection_error_against_key(subtests: SubTests) -> None:
    key_id = any_key_id()
    error = any_endpoint_connection_error()
    kms_client_mock = MagicMock()
    kms_client_mock.put_key_policy.side_effect = error

    with patch("kmspatch.apply.LOGGER.warning") as logger_mock:
        outcome = apply_key_policy(
            kms_client_mock, key_id, parse_policy_document(EXISTING_POLICY)
        )

    with subtests.test(msg="outcome"):
        assert outcome == KeyOutcome(
            key_id, KeyStatus.FAILED, "EndpointConnectionError", str(error)
        )

    with subtests.test(msg="log"):
        logger_mock.assert_called_once_with(
            LOG_MESSAGE_KEY_POLICY_FAILED,
            extra={"key_id": key_id, "error_code": "EndpointConnectionError", "error": str(error)},
        )
