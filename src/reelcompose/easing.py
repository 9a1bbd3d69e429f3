"""Easing curves for keyframe interpolation.

Each curve maps a normalized progress u in [0, 1] to eased progress in
[0, 1], with f(0) = 0 and f(1) = 1. ``apply_easing`` clamps its input,
so the raw curves never see values outside the unit interval.
"""

from typing import Callable


def linear(u: float) -> float:
    return u


def ease_in_out_quad(u: float) -> float:
    """Quadratic ease-in for the first half, ease-out for the second."""
    if u < 0.5:
        return 2.0 * u * u
    return 1.0 - (-2.0 * u + 2.0) ** 2 / 2.0


def ease_out_cubic(u: float) -> float:
    """Fast start, decelerating cubic approach to 1."""
    return 1.0 - (1.0 - u) ** 3


EASINGS: dict[str, Callable[[float], float]] = {
    "linear": linear,
    "ease_in_out_quad": ease_in_out_quad,
    "ease_out_cubic": ease_out_cubic,
}

VALID_EASINGS = set(EASINGS)


def apply_easing(kind: str, u: float) -> float:
    """Clamp u to [0, 1] and apply the named easing curve.

    Raises:
        ValueError: Unknown easing name.
    """
    try:
        curve = EASINGS[kind]
    except KeyError:
        raise ValueError(
            f"Unknown easing '{kind}'. Valid: {sorted(VALID_EASINGS)}"
        ) from None
    return curve(min(1.0, max(0.0, u)))
