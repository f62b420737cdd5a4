from __future__ import annotations

import logging
import os
from typing import List, Optional

import pygame

from .config import CFG
from .enums import ColorKey

logger = logging.getLogger(__name__)


class ImageStore:
    def __init__(self) -> None:
        self.cache: dict[str, pygame.Surface] = {}
        self.failed: set[str] = set()

    def load(self, path: str, *, allow_alpha: bool = True) -> Optional[pygame.Surface]:
        if not path:
            return None
        norm = os.path.normpath(path)
        if norm in self.cache:
            return self.cache[norm]
        if norm in self.failed:
            return None
        try:
            img = pygame.image.load(norm)
            if pygame.display.get_surface() is not None:
                img = img.convert_alpha() if allow_alpha else img.convert()
        except (pygame.error, OSError) as e:
            # remembered for the session, a missing file stays missing
            self.failed.add(norm)
            logger.warning("Could not load image %s: %s", norm, e)
            return None
        self.cache[norm] = img
        return img


class SkinStore:
    """Block images for the equipped skin: ``<directory>/<slug>/<color>.png``."""

    def __init__(self, directory: Optional[str] = None, images: Optional[ImageStore] = None) -> None:
        self.directory = directory or CFG["skins"]["directory"]
        self.images = images or ImageStore()

    def path_for(self, slug: str, color: ColorKey) -> str:
        return os.path.join(self.directory, slug, f"{color.value.lower()}.png")

    def block_image(self, slug: Optional[str], color: ColorKey) -> Optional[pygame.Surface]:
        if not slug:
            return None
        return self.images.load(self.path_for(slug, color))

    def has_failed(self, slug: str, color: ColorKey) -> bool:
        return os.path.normpath(self.path_for(slug, color)) in self.images.failed

    def available(self) -> List[str]:
        """Skin slugs shipped in the skins directory, one sub-directory each."""
        if not os.path.isdir(self.directory):
            return []
        return sorted(
            name for name in os.listdir(self.directory)
            if os.path.isdir(os.path.join(self.directory, name))
        )


__all__ = ["ImageStore", "SkinStore"]
