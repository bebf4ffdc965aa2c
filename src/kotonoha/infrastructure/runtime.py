"""System implementations of the random and clock providers."""

import random
from datetime import datetime


class SystemRandomGenerator:
    """RandomGenerator backed by the random module."""

    def __init__(self, seed: int | None = None) -> None:
        self._random = random.Random(seed)

    def next_double(self) -> float:
        return self._random.random()


class SystemDateTimeProvider:
    """DateTimeProvider returning the local wall-clock time."""

    def now(self) -> datetime:
        return datetime.now()
