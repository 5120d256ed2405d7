import sys
from enum import IntEnum
from pathlib import Path
from typing import NoReturn, Optional

from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError, ProfileNotFound
from linz_logger import LogLevel, set_level
from typer import Option, Typer, secho
from typer.colors import GREEN, RED, YELLOW

from .apply import KeyStatus
from .context import ReconcileContext, create_context, create_session
from .environment import (
    DEADLINE_SECONDS_VARIABLE_NAME,
    MAX_WORKERS_VARIABLE_NAME,
    REGION_VARIABLE_NAME,
    ConfigurationError,
    deadline_seconds,
    max_workers,
    region_name,
)
from .reconcile import ReconcileDeadlineExceeded, ReconcileSummary, classify_keys, reconcile

ELIGIBLE_LABEL = "eligible"
SKIP_REASON_SEPARATOR = ","

REGION_HELP = (
    f"Region whose keys are reconciled. Overrides ${REGION_VARIABLE_NAME};"
    " falls back to the AWS profile's region."
)
PROFILE_HELP = "AWS profile to take credentials from, instead of the default credential chain."

app = Typer(
    context_settings=dict(max_content_width=sys.maxsize),
    help="Grant account administration on customer managed KMS keys.",
)


class ExitCode(IntEnum):
    SUCCESS = 0
    UNKNOWN = 1
    # Exit code 2 is used by Typer to indicate usage error
    PARTIAL_FAILURE = 3
    NO_CREDENTIALS = 4
    INVALID_CONFIGURATION = 5
    DEADLINE_EXCEEDED = 6


@app.callback()
def main(
    verbose: bool = Option(False, "--verbose", help="Log every key decision and response.")
) -> None:
    set_level(LogLevel.debug if verbose else LogLevel.info)


@app.command(name="reconcile", help="Append the administration statement to eligible key policies.")
def reconcile_command(  # pylint: disable=too-many-arguments
    region: Optional[str] = Option(None, help=REGION_HELP),
    profile: Optional[str] = Option(None, help=PROFILE_HELP),
    workers: Optional[int] = Option(
        None,
        "--max-workers",
        min=1,
        help=f"Keys handled in parallel. Overrides ${MAX_WORKERS_VARIABLE_NAME}.",
    ),
    deadline: Optional[int] = Option(
        None,
        min=1,
        help="Seconds before the whole run is aborted."
        f" Overrides ${DEADLINE_SECONDS_VARIABLE_NAME}.",
    ),
    dry_run: bool = Option(False, "--dry-run", help="Print the planned changes only."),
    skip_existing: bool = Option(
        False,
        "--skip-existing",
        help="Leave keys alone which already have an administration statement.",
    ),
    backup_directory: Optional[Path] = Option(
        None,
        file_okay=False,
        help="Save each original policy as <directory>/<region>/<key ID>.json before replacing it.",
    ),
) -> None:
    context = get_context(
        region, profile, workers, deadline, dry_run, skip_existing, backup_directory
    )

    try:
        summary = reconcile(context)
    except ReconcileDeadlineExceeded as error:
        secho(str(error), err=True, fg=RED)
        sys.exit(ExitCode.DEADLINE_EXCEEDED)
    except (ClientError, BotoCoreError) as error:
        exit_on_provider_error(error)

    print_summary(summary)

    if summary.failed:
        sys.exit(ExitCode.PARTIAL_FAILURE)
    sys.exit(ExitCode.SUCCESS)


@app.command(name="list", help="Show which keys are eligible, and why the others are not.")
def list_command(
    region: Optional[str] = Option(None, help=REGION_HELP),
    profile: Optional[str] = Option(None, help=PROFILE_HELP),
) -> None:
    context = get_context(region, profile, None, None, False, False, None)

    try:
        classifications = classify_keys(context)
    except ReconcileDeadlineExceeded as error:
        secho(str(error), err=True, fg=RED)
        sys.exit(ExitCode.DEADLINE_EXCEEDED)
    except (ClientError, BotoCoreError) as error:
        exit_on_provider_error(error)

    for classification in classifications:
        if classification.eligible:
            secho(f"{classification.key_id}\t{ELIGIBLE_LABEL}", fg=GREEN)
        else:
            reasons = SKIP_REASON_SEPARATOR.join(
                reason.value for reason in classification.skip_reasons
            )
            secho(f"{classification.key_id}\t{reasons}")
    sys.exit(ExitCode.SUCCESS)


def get_context(  # pylint: disable=too-many-arguments
    region: Optional[str],
    profile: Optional[str],
    workers: Optional[int],
    deadline: Optional[int],
    dry_run: bool,
    skip_existing: bool,
    backup_directory: Optional[Path],
) -> ReconcileContext:
    try:
        session = create_session(region or region_name(), profile)
        return create_context(
            session,
            max_workers=workers or max_workers(),
            deadline_seconds=deadline or deadline_seconds(),
            dry_run=dry_run,
            skip_existing=skip_existing,
            backup_directory=backup_directory,
        )
    except (ConfigurationError, ProfileNotFound) as error:
        secho(str(error), err=True, fg=RED)
        sys.exit(ExitCode.INVALID_CONFIGURATION)
    except (ClientError, BotoCoreError) as error:
        exit_on_provider_error(error)


def exit_on_provider_error(error: Exception) -> NoReturn:
    if isinstance(error, NoCredentialsError):
        secho(
            "Unable to locate credentials. Make sure to log in to AWS first.", err=True, fg=YELLOW
        )
        sys.exit(ExitCode.NO_CREDENTIALS)

    secho(str(error), err=True, fg=RED)
    sys.exit(ExitCode.UNKNOWN)


def print_summary(summary: ReconcileSummary) -> None:
    for outcome in summary.outcomes:
        if outcome.status == KeyStatus.FAILED:
            secho(
                f"{outcome.key_id}\t{outcome.status.value}"
                f"\t{outcome.error_code}: {outcome.error_message}",
                err=True,
                fg=YELLOW,
            )
        else:
            secho(f"{outcome.key_id}\t{outcome.status.value}", fg=GREEN)

    secho(
        f"Keys: {summary.total} seen, {summary.eligible} eligible,"
        f" {summary.updated} updated, {summary.failed} failed",
        fg=YELLOW if summary.failed else GREEN,
    )


if __name__ == "__main__":
    app()
