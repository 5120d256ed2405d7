from pytest_subtests import SubTests

from kmspatch.boto3_config import CONFIG


def should_bound_every_provider_call(subtests: SubTests) -> None:
    with subtests.test(msg="connect timeout"):
        assert CONFIG.connect_timeout == 5

    with subtests.test(msg="read timeout"):
        assert CONFIG.read_timeout == 10

    with subtests.test(msg="retries"):
        assert CONFIG.retries == {"max_attempts": 10, "mode": "standard"}
