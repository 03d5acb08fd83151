from __future__ import annotations

import pytest
from hypothesis import HealthCheck, settings

from keyconf.settings import ENV_PREFIX, reset_settings_cache

# File-backed examples can trip Hypothesis' speed healthcheck on slow disks.
# That is not a functional failure, so it is suppressed for a stable suite.
# The autouse settings fixture below is function scoped on purpose.
settings.register_profile(
    "keyconf_stable",
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
    deadline=None,
)

settings.load_profile("keyconf_stable")


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch):
    import os

    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)
    reset_settings_cache()
    yield
    reset_settings_cache()
