"""Voting scales available to a session."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple


class VotingScale(Enum):
    FIBONACCI = "fibonacci"
    TSHIRT = "tshirt"


@dataclass(frozen=True)
class ScaleDefinition:
    name: str
    values: Tuple[str, ...]


# '?' means "no idea", '☕' means "need a break"
VOTING_SCALES = {
    VotingScale.FIBONACCI: ScaleDefinition(
        name="Story Points",
        values=("0", "1", "2", "3", "5", "8", "13", "21", "?", "☕"),
    ),
    VotingScale.TSHIRT: ScaleDefinition(
        name="T-Shirt Sizes",
        values=("XS", "S", "M", "L", "XL", "XXL", "?", "☕"),
    ),
}

SCALE_ORDER: Tuple[VotingScale, ...] = (VotingScale.FIBONACCI, VotingScale.TSHIRT)

DEFAULT_SCALE = VotingScale.FIBONACCI


def scale_values(scale: VotingScale) -> Tuple[str, ...]:
    return VOTING_SCALES[scale].values


def parse_number(value: str) -> Optional[float]:
    """Return the value as float, or None when it is not numeric."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    # float() also accepts "nan" and "inf"
    if not math.isfinite(number):
        return None
    return number


def numeric_values(scale: VotingScale) -> List[str]:
    """Card values of the scale that take part in statistics."""
    return [value for value in scale_values(scale) if parse_number(value) is not None]


def next_scale(current: VotingScale, step: int = 1) -> VotingScale:
    """Cycle through scales; a negative step goes backwards."""
    index = SCALE_ORDER.index(current)
    return SCALE_ORDER[(index + step) % len(SCALE_ORDER)]
