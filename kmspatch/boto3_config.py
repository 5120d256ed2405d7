from botocore.config import Config

# Throttling and other transient errors are retried with exponential backoff. The timeouts bound
# how long a call still running at the deadline can delay exit.
CONFIG = Config(
    connect_timeout=5,
    read_timeout=10,
    retries={"max_attempts": 10, "mode": "standard"},
)
