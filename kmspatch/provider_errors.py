from typing import Tuple, Union

from botocore.exceptions import BotoCoreError, ClientError

ProviderError = Union[ClientError, BotoCoreError]


def get_error_details(error: ProviderError) -> Tuple[str, str]:
    """Return the error code and message; connection level errors carry no response."""
    if isinstance(error, ClientError):
        return (
            error.response["Error"]["Code"],
            error.response["Error"].get("Message", "").strip(),
        )
    return error.__class__.__name__, str(error)
