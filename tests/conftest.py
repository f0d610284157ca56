import pytest

from xbin.reporting import SilentReporter, set_reporter, set_verbosity


@pytest.fixture(autouse=True)
def quiet_reporter():
    set_reporter(SilentReporter())
    set_verbosity(0)
    yield
    set_verbosity(0)
