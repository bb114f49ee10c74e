"""
Slew rate limiter for general use.

Bounds how fast a signal may change per update, with separate limits for
rising and falling changes. Rates are given in signal units per second and the
update period in seconds; the owner calls update() once every period.

    limiter = SlewRateLimiter(rise_rate=2.0, fall_rate=1.0, dt=DT)
    while True:
        y = limiter.update(setpoint)
"""

import logging

import numpy as np

VER_MAJOR = 1
VER_MINOR = 0
VER_DEVELOP = 1

__version__ = "%d.%d.%d" % (VER_MAJOR, VER_MINOR, VER_DEVELOP)

logger = logging.getLogger(__name__)


class RateLimiterError(Exception):
    pass


class ConstructError(RateLimiterError, ValueError):
    """Raised when a limiter is constructed with a non-positive period."""


class InvalidInstanceError(RateLimiterError, RuntimeError):
    """Raised when an operation that reports invalidity is used on an invalid limiter."""


class ReconfigureError(InvalidInstanceError):
    """Raised by set_rates() on an invalid limiter."""


class SlewRateLimiter:
    """
    Parameters:
    ----------
    rise_rate: Maximum rising rate (units/s)
    fall_rate: Maximum falling rate magnitude (units/s)
    dt: Update period (s), must be > 0

    The rise/fall factors are the largest change allowed in a single update:
    factor = rate * dt. The period is fixed for the life of the limiter.
    """

    def __init__(self, rise_rate, fall_rate, dt):
        dt = float(dt)
        # NaN fails this too
        if not dt > 0.0:
            raise ConstructError("update period must be > 0, got %r" % dt)

        self._dt = dt
        self._prev = 0.0
        self._valid = True
        self._set_factors(rise_rate, fall_rate)
        logger.debug(
            "Slew rate limiter created: dt=%g k_rise=%g k_fall=%g",
            self._dt, self._rise_factor, self._fall_factor,
        )

    @classmethod
    def create(cls, rise_rate, fall_rate, dt):
        """
        Build a limiter without raising on a bad period.

        A failed construction yields an invalid limiter: update() returns 0.0
        and leaves it untouched, update_checked() raises InvalidInstanceError,
        set_rates() raises ReconfigureError and is_valid() is False.
        """
        try:
            return cls(rise_rate, fall_rate, dt)
        except ConstructError as e:
            logger.warning("Slew rate limiter init failed: %s", e)

        limiter = cls.__new__(cls)
        limiter._dt = float(dt)
        limiter._prev = 0.0
        limiter._rise_factor = 0.0
        limiter._fall_factor = 0.0
        limiter._valid = False
        return limiter

    def _set_factors(self, rise_rate, fall_rate):
        self._rise_factor = float(rise_rate) * self._dt
        self._fall_factor = float(fall_rate) * self._dt

    @property
    def prev(self):
        """Last value returned by update(), 0.0 before the first update."""
        return self._prev

    @property
    def rise_factor(self):
        return self._rise_factor

    @property
    def fall_factor(self):
        return self._fall_factor

    @property
    def dt(self):
        return self._dt

    @property
    def valid(self):
        return self._valid

    def is_valid(self):
        return self._valid

    def _step(self, x):
        dx = x - self._prev

        # Rising limit
        if dx >= self._rise_factor:
            y = self._prev + self._rise_factor

        # Falling limit
        elif dx <= -self._fall_factor:
            y = self._prev - self._fall_factor

        else:
            y = x

        self._prev = y
        return y

    def update(self, x):
        """
        Advance the limiter by one period with raw input x and return the
        limited output.

        On an invalid limiter this returns 0.0 without touching any state and
        without raising. Use update_checked() where invalidity must be told
        apart from a genuine 0.0 output.
        """
        if not self._valid:
            logger.debug("update() on invalid slew rate limiter, returning 0.0")
            return 0.0
        return self._step(float(x))

    __call__ = update

    def update_checked(self, x):
        """Same as update(), but raises InvalidInstanceError on an invalid limiter."""
        if not self._valid:
            raise InvalidInstanceError("slew rate limiter is not initialized")
        return self._step(float(x))

    def limit(self, samples):
        """
        Run consecutive samples of the signal through update(), one per
        period, and return the outputs as a float array of the same length.
        """
        samples = np.asarray(samples, dtype=float)
        if samples.ndim != 1:
            raise ValueError("expected a 1-D sequence of samples, got shape %s" % (samples.shape,))

        out = np.zeros(samples.shape[0])
        for i, x in enumerate(samples):
            out[i] = self.update(x)
        return out

    def set_rates(self, rise_rate, fall_rate):
        """
        Change the rise/fall rates. Factors are recomputed with the existing
        period; the last output is kept so the next update continues from it.
        """
        if not self._valid:
            raise ReconfigureError("cannot change rates of an uninitialized slew rate limiter")

        self._set_factors(rise_rate, fall_rate)
        logger.debug(
            "Slew rate limiter rates changed: k_rise=%g k_fall=%g",
            self._rise_factor, self._fall_factor,
        )

    def __repr__(self):
        if not self._valid:
            return "SlewRateLimiter(<invalid>)"
        return "SlewRateLimiter(prev=%g, rise_factor=%g, fall_factor=%g, dt=%g)" % (
            self._prev, self._rise_factor, self._fall_factor, self._dt,
        )


def is_valid(limiter):
    """False for a missing limiter (None), otherwise the limiter's own flag."""
    if limiter is None:
        return False
    return limiter.is_valid()


# ---------------------------------------------------------------------------

EXEC_TIME = 5
FREQ = 200
DT = 1/FREQ

RISE_RATE = 2.0  # units/s
FALL_RATE = 4.0  # units/s

STEP_TIME = 1.0
STEP_SIZE = 3.0

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    limiter = SlewRateLimiter(RISE_RATE, FALL_RATE, DT)

    t = np.arange(0.0, EXEC_TIME, DT)

    # Step up at STEP_TIME, then a fast sine the limiter can't follow
    setpoint = np.where(t >= STEP_TIME, STEP_SIZE, 0.0)
    setpoint = setpoint + np.where(t >= 3.0, np.sin(2.0 * np.pi * 2.0 * t), 0.0)

    output = limiter.limit(setpoint)

    for i in range(0, len(t), FREQ // 5):
        print('t ', '{:5.2f}'.format(t[i]), 'in ', '{:+2.3f}'.format(setpoint[i]), 'out ', '{:+2.3f}'.format(output[i]))

    np.savetxt('slew_setpoint.csv', setpoint, delimiter=",")
    np.savetxt('slew_output.csv', output, delimiter=",")
