"""Short code generation and allocation."""

import logging
import random
import re
import string
from typing import Optional

from .database.base import LinkStoreBase
from .exceptions import AllocationExhaustedError


CODE_ALPHABET = string.ascii_letters + string.digits  # a-zA-Z0-9
CODE_LENGTHS = (6, 7, 8)
CODE_PATTERN = re.compile(r"[A-Za-z0-9]{6,8}")

# Upper bound on generate-and-check rounds before allocate() gives up
MAX_ALLOCATION_ATTEMPTS = 1000


class CodeAllocator:
    """Produce and validate short codes.

    Codes are random alphanumeric strings of 6 to 8 characters. Allocation
    is rejection sampling: draw a candidate, ask the store whether it is
    taken, draw again if so.
    """

    ALPHABET = CODE_ALPHABET

    def __init__(
        self,
        store: Optional[LinkStoreBase] = None,
        max_attempts: int = MAX_ALLOCATION_ATTEMPTS,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize allocator.

        Args:
            store: Link store consulted for uniqueness (required by allocate)
            max_attempts: Candidates tried before allocation fails
            rng: Random source (defaults to a system-seeded SystemRandom)
            logger: Optional logger
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.store = store
        self.max_attempts = max_attempts
        self.rng = rng or random.SystemRandom()
        self.logger = logger or logging.getLogger(__name__)

    def generate(self) -> str:
        """Generate a candidate code; uniqueness is not checked.

        The length is drawn uniformly from 6, 7 and 8, and each character
        uniformly from the 62-character alphabet.
        """
        length = self.rng.choice(CODE_LENGTHS)
        return "".join(self.rng.choices(self.ALPHABET, k=length))

    @staticmethod
    def is_well_formed(code: str) -> bool:
        """Check that code is exactly 6-8 characters from [A-Za-z0-9]."""
        return isinstance(code, str) and CODE_PATTERN.fullmatch(code) is not None

    async def allocate(self) -> str:
        """Return a code not currently held by any link.

        Raises:
            AllocationExhaustedError: If every candidate within the retry
                bound was already taken
        """
        if self.store is None:
            raise RuntimeError("CodeAllocator.allocate() requires a store")

        for attempt in range(1, self.max_attempts + 1):
            code = self.generate()
            if not await self.store.code_exists(code):
                if attempt > 1:
                    self.logger.debug(f"Allocated code after {attempt} attempts: {code}")
                return code

        self.logger.error(f"Code allocation exhausted after {self.max_attempts} attempts")
        raise AllocationExhaustedError(self.max_attempts)
