from concurrent.futures import Executor, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from concurrent.futures import as_completed
from dataclasses import dataclass
from functools import partial
from time import monotonic
from typing import Callable, Dict, List, Sequence, Tuple, TypeVar

from linz_logger import get_log

from .apply import KeyOutcome, KeyStatus, apply_key_policy
from .backup import back_up_key_policy
from .context import ReconcileContext
from .key_policy import has_administrator_statement, merge_administrator_statement
from .keys import Classification, EligibleKey, classify_key, list_key_ids
from .logging_keys import (
    LOG_MESSAGE_KEY_POLICY_FAILED,
    LOG_MESSAGE_KEY_POLICY_PLANNED,
    LOG_MESSAGE_KEY_POLICY_UNCHANGED,
    LOG_MESSAGE_KEYS_LISTED,
    LOG_MESSAGE_RECONCILE_ABORTED,
    LOG_MESSAGE_RECONCILE_COMPLETE,
    LOG_MESSAGE_RECONCILE_START,
)
from .types import JsonObject

BACKUP_FAILED_ERROR_CODE = "BackupFailed"

LOGGER = get_log()

InputType = TypeVar("InputType")
OutputType = TypeVar("OutputType")


class ReconcileDeadlineExceeded(Exception):
    def __init__(self, deadline_seconds: int):
        super().__init__(f"Reconciliation did not finish within {deadline_seconds} seconds")
        self.deadline_seconds = deadline_seconds


@dataclass(frozen=True)
class ReconcileSummary:
    classifications: Tuple[Classification, ...]
    outcomes: Tuple[KeyOutcome, ...]

    @property
    def total(self) -> int:
        return len(self.classifications)

    @property
    def eligible(self) -> int:
        return sum(1 for classification in self.classifications if classification.eligible)

    @property
    def skipped(self) -> int:
        return self.total - self.eligible

    @property
    def updated(self) -> int:
        return self._count(KeyStatus.UPDATED)

    @property
    def failed(self) -> int:
        return self._count(KeyStatus.FAILED)

    @property
    def unchanged(self) -> int:
        return self._count(KeyStatus.UNCHANGED)

    @property
    def planned(self) -> int:
        return self._count(KeyStatus.PLANNED)

    def _count(self, status: KeyStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    def as_json(self) -> JsonObject:
        return {
            "total": self.total,
            "eligible": self.eligible,
            "skipped": self.skipped,
            "updated": self.updated,
            "failed": self.failed,
            "unchanged": self.unchanged,
            "planned": self.planned,
        }


def reconcile_key(context: ReconcileContext, key: EligibleKey) -> KeyOutcome:
    if context.skip_existing and has_administrator_statement(key.policy):
        LOGGER.info(LOG_MESSAGE_KEY_POLICY_UNCHANGED, extra={"key_id": key.key_id})
        return KeyOutcome(key.key_id, KeyStatus.UNCHANGED)

    merged_policy = merge_administrator_statement(key.policy, context.account_id, context.region)

    if context.dry_run:
        LOGGER.info(
            LOG_MESSAGE_KEY_POLICY_PLANNED,
            extra={"key_id": key.key_id, "policy": merged_policy.to_json()},
        )
        return KeyOutcome(key.key_id, KeyStatus.PLANNED)

    if context.backup_directory is not None:
        try:
            back_up_key_policy(context.backup_directory, context.region, key)
        except OSError as error:
            # Never replace a policy that could not be saved first
            LOGGER.warning(
                LOG_MESSAGE_KEY_POLICY_FAILED,
                extra={
                    "key_id": key.key_id,
                    "error_code": BACKUP_FAILED_ERROR_CODE,
                    "error": str(error),
                },
            )
            return KeyOutcome(key.key_id, KeyStatus.FAILED, BACKUP_FAILED_ERROR_CODE, str(error))

    return apply_key_policy(context.kms_client, key.key_id, merged_policy)


def run_in_parallel(
    executor: Executor,
    function: Callable[[InputType], OutputType],
    inputs: Sequence[InputType],
    deadline: float,
) -> List[OutputType]:
    """Run `function` for each input and return the results in input order."""
    futures: Dict["Future[OutputType]", int] = {
        executor.submit(function, value): index for index, value in enumerate(inputs)
    }
    results: List[OutputType] = [None] * len(inputs)  # type: ignore[list-item]

    try:
        for future in as_completed(futures, timeout=max(0.0, deadline - monotonic())):
            results[futures[future]] = future.result()
    except FuturesTimeoutError:
        for future in futures:
            future.cancel()
        raise

    return results


def shut_down(executor: Executor) -> None:
    """Drop queued tasks without waiting for the calls still in flight."""
    executor.shutdown(wait=False, cancel_futures=True)


def reconcile(context: ReconcileContext) -> ReconcileSummary:
    LOGGER.info(
        LOG_MESSAGE_RECONCILE_START,
        extra={
            "account_id": context.account_id,
            "region": context.region,
            "dry_run": context.dry_run,
            "skip_existing": context.skip_existing,
        },
    )
    deadline = monotonic() + context.deadline_seconds

    key_ids = list_key_ids(context.kms_client)
    LOGGER.debug(LOG_MESSAGE_KEYS_LISTED, extra={"key_count": len(key_ids)})

    executor = ThreadPoolExecutor(max_workers=context.max_workers)
    try:
        # Every key is classified before any policy is replaced
        classifications = run_in_parallel(
            executor, partial(classify_key, context.kms_client), key_ids, deadline
        )
        eligible_keys = [
            classification.eligible_key
            for classification in classifications
            if classification.eligible_key is not None
        ]
        outcomes = run_in_parallel(
            executor, partial(reconcile_key, context), eligible_keys, deadline
        )
    except FuturesTimeoutError as error:
        LOGGER.error(
            LOG_MESSAGE_RECONCILE_ABORTED,
            extra={"error": "deadline exceeded", "deadline_seconds": context.deadline_seconds},
        )
        raise ReconcileDeadlineExceeded(context.deadline_seconds) from error
    finally:
        shut_down(executor)

    summary = ReconcileSummary(tuple(classifications), tuple(outcomes))
    LOGGER.info(LOG_MESSAGE_RECONCILE_COMPLETE, extra=summary.as_json())
    return summary


def classify_keys(context: ReconcileContext) -> List[Classification]:
    deadline = monotonic() + context.deadline_seconds
    key_ids = list_key_ids(context.kms_client)

    executor = ThreadPoolExecutor(max_workers=context.max_workers)
    try:
        return run_in_parallel(
            executor, partial(classify_key, context.kms_client), key_ids, deadline
        )
    except FuturesTimeoutError as error:
        raise ReconcileDeadlineExceeded(context.deadline_seconds) from error
    finally:
        shut_down(executor)
