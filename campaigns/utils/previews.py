# campaigns/utils/previews.py
"""
Preview values shown next to file inputs.
A preview is either a renderable data URL or a marker for media that cannot
be rendered inline (PDF documents, videos).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class PreviewKind(Enum):
    PDF = 'PDF_UPLOADED'
    VIDEO = 'VIDEO_FILE'


# Older drafts stored documents with this marker
LEGACY_MARKERS = {
    'PDF_FILE': PreviewKind.PDF,
}


@dataclass(frozen=True)
class ImagePreview:
    data: str


@dataclass(frozen=True)
class NonPreviewable:
    kind: PreviewKind


Preview = Union[ImagePreview, NonPreviewable]


def preview_to_storage(preview: Optional[Preview]) -> Optional[str]:
    """Serialize a preview into the string kept in the image draft"""
    if preview is None:
        return None
    if isinstance(preview, ImagePreview):
        return preview.data
    if isinstance(preview, NonPreviewable):
        return preview.kind.value
    raise TypeError(f"Unknown preview type: {type(preview).__name__}")


def preview_from_storage(value) -> Optional[Preview]:
    """Anything that is not a non-empty string counts as no preview"""
    if not isinstance(value, str) or not value:
        return None
    for kind in PreviewKind:
        if value == kind.value:
            return NonPreviewable(kind)
    if value in LEGACY_MARKERS:
        return NonPreviewable(LEGACY_MARKERS[value])
    return ImagePreview(value)
