"""
Purpose: Tracking code generation.

Format: <carrier initials><zero padded random number><recipient state>
e.g. "Fast Feet" + "sp" -> "FF004211337SP"
"""

from __future__ import annotations

import random
from typing import Optional


def carrier_initials(carrier_name: str, length: int = 2) -> str:
    words = [word for word in carrier_name.split(" ") if word]
    return "".join(word[0] for word in words).upper()[:length]


def generate_tracking_code(
    carrier_name: str,
    recipient_state: str,
    *,
    digits: int = 9,
    initials_length: int = 2,
    rng: Optional[random.Random] = None,
) -> str:
    rng = rng or random
    unique_number = str(rng.randrange(10 ** digits)).zfill(digits)
    return f"{carrier_initials(carrier_name, initials_length)}{unique_number}{recipient_state.upper()}"
