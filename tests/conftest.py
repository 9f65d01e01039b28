from __future__ import annotations

import deal
from hypothesis import HealthCheck, settings

# Property tests build full forecasts; slow CI boxes trip the too_slow check.
settings.register_profile(
    "plaza_stable",
    suppress_health_check=[HealthCheck.too_slow],
    deadline=None,
)

settings.load_profile("plaza_stable")

# Contracts stay on under test so invariant breaks surface as failures.
deal.enable()
