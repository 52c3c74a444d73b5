"""Animal avatars shown on participant cards."""

import random
from typing import Optional

# Alphabetical so cycling is predictable
AVATARS = (
    "chicken",
    "cow",
    "dog",
    "dragon",
    "panda",
    "pig",
    "rabbit",
    "rat",
    "sheep",
    "snake",
    "tiger",
)


def random_avatar(rng: Optional[random.Random] = None) -> str:
    """Pick an avatar for a participant joining for the first time."""
    chooser = rng or random
    return chooser.choice(AVATARS)


def next_avatar(current: Optional[str]) -> str:
    """Next avatar in catalog order, wrapping after the last one."""
    if current not in AVATARS:
        return AVATARS[0]
    return AVATARS[(AVATARS.index(current) + 1) % len(AVATARS)]
