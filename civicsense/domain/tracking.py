import random
import re
from datetime import datetime
from typing import Optional

TRACKING_ID_RE = re.compile(r"^[A-Z]+-\d{8}-\d{4}$")


def make_tracking_id(
    prefix: str,
    now: datetime,
    rng: Optional[random.Random] = None,
) -> str:
    rng = rng or random
    return f"{prefix}-{now:%Y%m%d}-{rng.randint(0, 9999):04d}"


def looks_like_tracking_id(value: str) -> bool:
    return bool(TRACKING_ID_RE.match(value))
