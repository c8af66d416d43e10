import math


class LatitudeController:
    """PD steering of a return current toward its target row.

    Provides ``update(error, vy)`` returning the vertical acceleration
    ``error * k_p - vy * damping(error)``. Damping is blended from ``k_d``
    toward at least ``boost`` times critical damping (``2√k_p``) as the
    error falls inside ``window`` rows, so agents settle instead of
    oscillating around the target.
    """
    def __init__(self, k_p, k_d, window=3.0, boost=1.5):
        self.k_p = float(k_p)
        self.k_d = float(k_d)
        self.window = float(window)
        self.critical = 2.0 * math.sqrt(max(self.k_p, 0.0))
        self.boost = float(boost)

    def damping(self, error):
        d = self.k_d
        err = abs(error)
        if self.window > 0 and err < self.window:
            factor = (self.window - err) / self.window
            d = d * (1.0 - factor) + max(d, self.critical * self.boost) * factor
        return d

    def update(self, error, vy):
        return error * self.k_p - vy * self.damping(error)
