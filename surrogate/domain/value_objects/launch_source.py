"""
Launch Source Value Objects

Architectural Intent:
- Tagged variant describing where a new instance's boot disk comes from
- LaunchFromImage and LaunchFromBootVolume are mutually exclusive by type,
  so there is no empty-string convention for "no clone volume"
- BaseImage names the configured base image by id or by display name
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class LaunchFromImage:
    """Boot from an image, optionally resizing the boot volume."""
    image_id: str
    boot_volume_size_in_gbs: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.image_id:
            raise ValueError("LaunchFromImage requires an image id")
        if self.boot_volume_size_in_gbs is not None and self.boot_volume_size_in_gbs <= 0:
            raise ValueError(
                f"Boot volume size must be positive, got {self.boot_volume_size_in_gbs}"
            )


@dataclass(frozen=True)
class LaunchFromBootVolume:
    """Boot from an existing (typically cloned) boot volume."""
    boot_volume_id: str

    def __post_init__(self) -> None:
        if not self.boot_volume_id:
            raise ValueError("LaunchFromBootVolume requires a boot volume id")


LaunchSource = Union[LaunchFromImage, LaunchFromBootVolume]


@dataclass(frozen=True)
class BaseImage:
    """
    Value Object naming the base image a build starts from.

    When a display name is given it wins over the id and is resolved
    through an image listing at launch time.
    """
    image_id: Optional[str] = None
    display_name: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.image_id and not self.display_name:
            raise ValueError("Either an image id or an image display name is required")

    @property
    def needs_lookup(self) -> bool:
        return bool(self.display_name)

    def __str__(self) -> str:
        if self.display_name:
            return f"name={self.display_name}"
        return f"id={self.image_id}"
