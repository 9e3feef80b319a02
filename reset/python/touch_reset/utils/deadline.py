import time


class Deadline:
    """
    Monotonic-clock deadline for bounded polling loops.

    Usage:
        deadline = Deadline(seconds=10)
        while not deadline.expired():
            poll()
    """

    def __init__(self, seconds: float, now: float | None = None):
        if seconds <= 0:
            raise ValueError("Deadline seconds must be > 0")

        if now is None:
            now = time.monotonic()

        self.seconds = float(seconds)
        self.at = now + self.seconds

    def expired(self, now: float | None = None) -> bool:
        """
        Returns True once the deadline has passed.
        Does NOT block or sleep.
        """
        if now is None:
            now = time.monotonic()
        return now >= self.at
