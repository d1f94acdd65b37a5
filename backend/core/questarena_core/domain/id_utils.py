from __future__ import annotations

import random
import re
import string
from typing import Final


POSTAL_ID_PATTERN_TEMPLATE: Final[str] = r"^{prefix}[A-Z]\d[A-Z]\d[A-Z]\d$"


def _postal_regex(prefix: str) -> re.Pattern[str]:
    pattern = POSTAL_ID_PATTERN_TEMPLATE.format(prefix=re.escape(prefix))
    return re.compile(pattern)


def validate_postal_id(value: str, prefix: str = "QUES") -> bool:
    if not value:
        return False
    return bool(_postal_regex(prefix).fullmatch(value))


def generate_postal_id(prefix: str = "QUES", rng: random.Random | None = None) -> str:
    """Return ``prefix`` followed by an alternating letter/digit body (A1B2C3)."""
    rng = rng or random.SystemRandom()
    body = [
        rng.choice(string.ascii_uppercase if idx % 2 == 0 else string.digits)
        for idx in range(6)
    ]
    return f"{prefix}{''.join(body)}"
