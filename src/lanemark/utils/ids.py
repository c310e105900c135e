"""Stable identifier generation for lanes, cards and subtasks."""

import secrets
import time
from collections.abc import Callable

IdFactory = Callable[[], str]

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(value: int) -> str:
    """Encode a non-negative integer in base 36."""
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_ALPHABET[rem])
    return "".join(reversed(digits))


class IdGenerator:
    """
    Collision-resistant identifier factory.

    Each id is a random base-36 payload followed by the last characters of
    the current time in milliseconds, also base 36 (e.g. "k3j9x0p2mq1zb").
    Instances are callables so they can be passed anywhere an IdFactory
    is expected.
    """

    def __init__(self, payload_length: int = 9, suffix_length: int = 4) -> None:
        self.payload_length = payload_length
        self.suffix_length = suffix_length

    def __call__(self) -> str:
        payload = "".join(secrets.choice(_ALPHABET) for _ in range(self.payload_length))
        suffix = _base36(time.time_ns() // 1_000_000)[-self.suffix_length :]
        return payload + suffix


generate_id = IdGenerator()
