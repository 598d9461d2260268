import pytest

from ntspgen.reporting import (
    get_reporter,
    get_verbosity,
    set_reporter,
    set_verbosity,
)


@pytest.fixture(autouse=True)
def _restore_global_reporter():
    """Keep the process-wide reporter/verbosity from leaking across tests."""
    prev_rep, prev_verbosity = get_reporter(), get_verbosity()
    yield
    set_reporter(prev_rep)
    set_verbosity(prev_verbosity)
