"""
Random workspace names of the form ``shape-color-gem``.
"""

import random
from typing import Optional, Tuple

SHAPES = [
    "round", "square", "triangular", "oval", "rectangular",
    "diamond", "hexagonal", "circular", "pentagonal", "octagonal",
    "spherical", "cylindrical", "conical", "pyramidal", "crescent",
    "spiral", "zigzag", "wavy", "curved", "angular",
]  # fmt: skip

COLORS = [
    "black", "white", "red", "blue", "green",
    "yellow", "purple", "orange", "pink", "brown",
    "gray", "silver", "gold", "cyan", "magenta",
    "lime", "indigo", "violet", "crimson", "turquoise",
]  # fmt: skip

GEMS = [
    "orchid", "diamond", "crystal", "pearl", "ruby",
    "sapphire", "emerald", "topaz", "amethyst", "jade",
    "opal", "garnet", "aquamarine", "citrine", "peridot",
    "moonstone", "tanzanite", "zircon", "tourmaline", "spinel",
]  # fmt: skip


def generate_workspace_name(
    include_digits: bool = False, rng: Optional[random.Random] = None
) -> str:
    """
    Generate a slug-style name such as ``wavy-gold-opal``.

    Args:
        include_digits: Append four random digits (``wavy-gold-opal-0042``)
        rng: Random source, for deterministic tests

    Returns:
        Lowercase, hyphen separated name
    """
    rng = rng or random.Random()
    name = f"{rng.choice(SHAPES)}-{rng.choice(COLORS)}-{rng.choice(GEMS)}"
    if include_digits:
        name += f"-{rng.randrange(10_000):04d}"
    return name


def generate_workspace_name_and_slug(
    include_digits: bool = False, rng: Optional[random.Random] = None
) -> Tuple[str, str]:
    """
    Generate a display name and matching slug.

    Returns:
        ``("Wavy gold opal 0042", "wavy-gold-opal-0042")``
    """
    slug = generate_workspace_name(include_digits, rng)
    name = slug.replace("-", " ")
    return name[:1].upper() + name[1:], slug
