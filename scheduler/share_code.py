"""Short human-relayable codes that identify an event.

Codes are six characters from uppercase letters and digits, leaving out
``0 O I L 1`` so they survive being read aloud or copied by hand.
"""

import logging
import re
import secrets
import string
from collections.abc import Awaitable, Callable

from scheduler.errors import AllocationExhaustedError

logger = logging.getLogger(__name__)

SHARE_CODE_LENGTH = 6
SHARE_CODE_MAX_ATTEMPTS = 10
SHARE_CODE_ALPHABET = "".join(
    c for c in string.ascii_uppercase + string.digits if c not in "0OIL1"
)
SHARE_CODE_RE = re.compile(r"^[A-Z2-9]{6}$")


def generate_share_code(length: int = SHARE_CODE_LENGTH) -> str:
    return "".join(secrets.choice(SHARE_CODE_ALPHABET) for _ in range(length))


def is_valid_share_code(code: str) -> bool:
    return bool(SHARE_CODE_RE.match(code))


def normalize_share_code(code: str) -> str:
    return code.strip().upper()


async def allocate_share_code(
    is_taken: Callable[[str], Awaitable[bool]],
    max_attempts: int = SHARE_CODE_MAX_ATTEMPTS,
    generate: Callable[[], str] = generate_share_code,
) -> str:
    """Draw codes until one is free.

    Raises:
        AllocationExhaustedError: If ``max_attempts`` draws all collided.
    """
    for attempt in range(1, max_attempts + 1):
        code = generate()
        if not await is_taken(code):
            return code
        logger.info("Share code collision on attempt %d/%d", attempt, max_attempts)
    raise AllocationExhaustedError(attempts=max_attempts)
