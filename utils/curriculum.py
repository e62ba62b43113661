# utils/curriculum.py
"""
Generation curriculum: later generations start lower and decay faster.

Both curves are piecewise linear in the generation number and flat after the
last breakpoint.
"""
import numpy as np

# (generation, multiplier)
DIFFICULTY_POINTS = [(20, 0.25), (50, 0.4), (100, 0.6), (200, 0.8), (350, 1.0)]
# (generation, starting need value)
START_VALUE_POINTS = [(20, 80.0), (50, 70.0), (100, 60.0), (200, 50.0)]


def _piecewise(generation, points):
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    # np.interp holds the end values outside [xs[0], xs[-1]]
    return float(np.interp(generation, xs, ys))


def difficulty_multiplier(generation):
    return _piecewise(generation, DIFFICULTY_POINTS)


def start_value(generation):
    return _piecewise(generation, START_VALUE_POINTS)
