import os
import time

import pytest


@pytest.fixture
def host_timezone():
    """Switch the process-local time zone; restored after the test."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is unavailable on this platform")

    original = os.environ.get("TZ")

    def use(name: str) -> None:
        os.environ["TZ"] = name
        time.tzset()

    yield use

    if original is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = original
    time.tzset()
