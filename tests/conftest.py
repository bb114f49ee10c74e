import pytest

from rate_limiter import SlewRateLimiter


@pytest.fixture
def limiter():
    # k_rise = 0.5, k_fall = 0.25
    return SlewRateLimiter(rise_rate=2.0, fall_rate=1.0, dt=0.25)


@pytest.fixture
def invalid_limiter():
    return SlewRateLimiter.create(rise_rate=1.0, fall_rate=1.0, dt=0.0)
