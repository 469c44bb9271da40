from typing import Mapping, Optional

from app.core.config import Settings, get_settings
from app.models.platform import PlatformInfo
from app.platforms.adapter import GenericAdapter, PlatformAdapter
from app.platforms.base import PlatformDescriptor
from app.platforms.catalog import DESCRIPTORS


class AdapterRegistry:
    """Maps a platform id to its adapter. Unknown ids get a GenericAdapter."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        descriptors: Optional[Mapping[str, PlatformDescriptor]] = None,
    ):
        self.settings = settings or get_settings()
        self.descriptors = dict(descriptors if descriptors is not None else DESCRIPTORS)

    @staticmethod
    def normalize(platform_id: str) -> str:
        return (platform_id or "").strip().lower()

    def is_supported(self, platform_id: str) -> bool:
        return self.normalize(platform_id) in self.descriptors

    def resolve(self, platform_id: str, base_url: Optional[str] = None) -> PlatformAdapter:
        key = self.normalize(platform_id)
        descriptor = self.descriptors.get(key)
        if descriptor is not None:
            return PlatformAdapter(descriptor, self.settings)
        return GenericAdapter(key, base_url=base_url, settings=self.settings)

    def catalog(self) -> list[PlatformInfo]:
        return [
            PlatformInfo(
                id=descriptor.platform_id,
                name=descriptor.display_name,
                example_url=descriptor.example_url,
            )
            for descriptor in self.descriptors.values()
        ]
