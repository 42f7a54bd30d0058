"""
Image Build DTOs

Architectural Intent:
- Data Transfer Objects for the build use case boundary
- Input validation at the application boundary
- Decouples the pipeline-facing representation from the ImageBuild aggregate
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class BuildImageRequest:
    public_key: str
    build_id: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.public_key or not self.public_key.strip():
            raise ValueError("public_key cannot be empty")


@dataclass(frozen=True)
class BuildImageResponse:
    build_id: str
    image_id: str
    image_name: str
    instance_id: str
    freeform_tags: dict[str, str] = field(default_factory=dict)
    stages: tuple[str, ...] = ()
