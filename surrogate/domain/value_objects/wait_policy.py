from dataclasses import dataclass


@dataclass(frozen=True)
class WaitPolicy:
    """
    Value Object for how long a state wait may poll.

    max_retries of 0 means unlimited; the delay between polls is fixed.
    """
    max_retries: int = 0
    delay_seconds: float = 5.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.delay_seconds < 0:
            raise ValueError(f"delay_seconds must be >= 0, got {self.delay_seconds}")

    @property
    def unlimited(self) -> bool:
        return self.max_retries == 0
