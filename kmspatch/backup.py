from pathlib import Path

from linz_logger import get_log

from .keys import EligibleKey
from .logging_keys import LOG_MESSAGE_KEY_POLICY_BACKED_UP

LOGGER = get_log()


def get_backup_path(directory: Path, region: str, key_id: str) -> Path:
    return directory / region / f"{key_id}.json"


def back_up_key_policy(directory: Path, region: str, key: EligibleKey) -> Path:
    """Write the policy as read from KMS, so that a replaced policy can be restored by hand."""
    backup_path = get_backup_path(directory, region, key.key_id)
    backup_path.parent.mkdir(parents=True, exist_ok=True)
    backup_path.write_text(key.policy_string, encoding="utf-8")

    LOGGER.debug(
        LOG_MESSAGE_KEY_POLICY_BACKED_UP, extra={"key_id": key.key_id, "path": str(backup_path)}
    )
    return backup_path
