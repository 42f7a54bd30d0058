from dataclasses import dataclass


@dataclass(frozen=True)
class Placement:
    """
    Value Object for where resources are created: availability domain and
    compartment. Every create and list call of a build shares one placement.
    """
    availability_domain: str
    compartment_id: str

    def __post_init__(self) -> None:
        if not self.availability_domain:
            raise ValueError("Availability domain cannot be empty")
        if not self.compartment_id:
            raise ValueError("Compartment id cannot be empty")

    def __str__(self) -> str:
        return f"{self.compartment_id}/{self.availability_domain}"
