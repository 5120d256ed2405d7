from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import boto3

from .boto3_config import CONFIG
from .environment import DEFAULT_DEADLINE_SECONDS, DEFAULT_MAX_WORKERS, DEFAULT_REGION
from .sts import get_account_number

if TYPE_CHECKING:
    # When type checking we want to use the third party package's stub
    from mypy_boto3_kms import KMSClient
else:
    # In production we want to avoid depending on a package which has no runtime impact
    KMSClient = object  # pragma: no mutate


@dataclass(frozen=True)
class ReconcileContext:
    """Provider handles and settings shared by every step of one reconciliation run."""

    kms_client: KMSClient
    account_id: str
    region: str
    max_workers: int = DEFAULT_MAX_WORKERS
    deadline_seconds: int = DEFAULT_DEADLINE_SECONDS
    dry_run: bool = False
    skip_existing: bool = False
    backup_directory: Optional[Path] = None


def create_session(region: Optional[str], profile_name: Optional[str]) -> boto3.Session:
    session = boto3.Session(profile_name=profile_name, region_name=region)
    if session.region_name is None:
        session = boto3.Session(profile_name=profile_name, region_name=DEFAULT_REGION)
    return session


def create_context(  # pylint: disable=too-many-arguments
    session: boto3.Session,
    max_workers: int = DEFAULT_MAX_WORKERS,
    deadline_seconds: int = DEFAULT_DEADLINE_SECONDS,
    dry_run: bool = False,
    skip_existing: bool = False,
    backup_directory: Optional[Path] = None,
) -> ReconcileContext:
    return ReconcileContext(
        kms_client=session.client("kms", config=CONFIG),
        account_id=get_account_number(session),
        region=session.region_name,
        max_workers=max_workers,
        deadline_seconds=deadline_seconds,
        dry_run=dry_run,
        skip_existing=skip_existing,
        backup_directory=backup_directory,
    )
