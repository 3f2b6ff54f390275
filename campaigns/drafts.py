# campaigns/drafts.py
"""
Draft persistence for the campaign creation wizard.

Field values and image previews are stored under two separate keys, so a
quota failure on the (large) image previews never costs the user the
(small, more valuable) text they typed.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone

from .exceptions import StorageQuotaExceeded
from .utils.previews import Preview, preview_from_storage, preview_to_storage
from .utils.storage import QuotaStorage

logger = logging.getLogger(__name__)

STORAGE_KEY = 'donation_event_draft'
IMAGES_STORAGE_KEY = 'donation_event_images'
SAVED_AT_KEY = '_savedAt'

# Fields that always carry a default value and say nothing about user intent
DEFAULTED_FIELDS = {
    'display_raised_amount',
    'allow_anonymous',
    'enable_comments',
    'payment_method',
    'minimum_donation',
}

FILE_FIELDS = {'cover_image', 'supporting_media', 'government_id', 'proof_of_need'}

SCALAR_TYPES = (str, int, float, bool)


def scalar_values(values):
    return {
        name: value for name, value in values.items()
        if name not in FILE_FIELDS and (value is None or isinstance(value, SCALAR_TYPES))
    }


class SaveOutcome(Enum):
    SAVED = 'saved'
    QUOTA_EXCEEDED = 'quota_exceeded'
    FAILED = 'failed'


@dataclass
class FormDraft:
    """Serializable snapshot of in-progress field values"""
    values: Dict[str, object] = field(default_factory=dict)
    saved_at: Optional[datetime] = None

    @classmethod
    def from_values(cls, values, saved_at=None):
        """Keep only scalar, non-file values"""
        return cls(values=scalar_values(values), saved_at=saved_at or timezone.now())

    def meaningful_fields(self):
        return [
            name for name, value in self.values.items()
            if name not in DEFAULTED_FIELDS and value is not None and value != ''
        ]

    def is_meaningful(self) -> bool:
        return bool(self.meaningful_fields())

    def to_json(self) -> str:
        data = dict(self.values)
        data[SAVED_AT_KEY] = self.saved_at.isoformat() if self.saved_at else None
        return json.dumps(data, cls=DjangoJSONEncoder)

    @classmethod
    def from_json(cls, raw: str) -> Optional['FormDraft']:
        data = json.loads(raw)
        if not isinstance(data, dict):
            return None
        saved_at_raw = data.pop(SAVED_AT_KEY, None)
        saved_at = None
        if saved_at_raw:
            try:
                saved_at = datetime.fromisoformat(saved_at_raw)
            except (TypeError, ValueError):
                logger.warning(f"Ignoring malformed draft timestamp: {saved_at_raw!r}")
        return cls(values=scalar_values(data), saved_at=saved_at)


@dataclass
class ImagePreviewCache:
    """Previews for the three single-file inputs"""
    cover_image: Optional[Preview] = None
    government_id: Optional[Preview] = None
    proof_of_need: Optional[Preview] = None

    SLOTS = ('cover_image', 'government_id', 'proof_of_need')

    def get(self, slot) -> Optional[Preview]:
        return getattr(self, slot)

    def set(self, slot, preview: Optional[Preview]):
        if slot not in self.SLOTS:
            raise KeyError(slot)
        setattr(self, slot, preview)

    def is_empty(self) -> bool:
        return all(self.get(slot) is None for slot in self.SLOTS)

    def to_json(self) -> str:
        return json.dumps({slot: preview_to_storage(self.get(slot)) for slot in self.SLOTS})

    @classmethod
    def from_json(cls, raw: str) -> Optional['ImagePreviewCache']:
        data = json.loads(raw)
        if not isinstance(data, dict):
            return None
        return cls(**{slot: preview_from_storage(data.get(slot)) for slot in cls.SLOTS})


class DraftStore:
    """Best-effort draft persistence on top of a QuotaStorage"""

    def __init__(self, storage: QuotaStorage):
        self.storage = storage

    @classmethod
    def for_session(cls, session, capacity=None):
        return cls(QuotaStorage(session, capacity=capacity))

    def usage(self):
        return self.storage.usage()

    def evict_if_needed(self, threshold: float = 0.8):
        """
        Free space when usage is above `threshold` of capacity.
        Image previews go first since they are usually the largest.
        """
        usage = self.storage.usage()
        if usage.ratio <= threshold:
            return

        logger.warning(f"Draft storage usage at {usage.ratio * 100:.1f}%. Clearing old drafts...")
        self.storage.remove_item(IMAGES_STORAGE_KEY)

        if self.storage.usage().ratio > threshold:
            self.storage.remove_item(STORAGE_KEY)

    def save(self, draft: FormDraft) -> SaveOutcome:
        try:
            self.storage.set_item(STORAGE_KEY, draft.to_json())
            return SaveOutcome.SAVED
        except StorageQuotaExceeded as e:
            logger.error(f"Draft fields not saved: {e}")
            return SaveOutcome.QUOTA_EXCEEDED
        except (TypeError, ValueError) as e:
            logger.error(f"Error saving draft: {e}")
            return SaveOutcome.FAILED

    def save_images(self, cache: ImagePreviewCache) -> SaveOutcome:
        try:
            self.storage.set_item(IMAGES_STORAGE_KEY, cache.to_json())
            return SaveOutcome.SAVED
        except StorageQuotaExceeded as e:
            # Drop only the previews; field values stay saved
            logger.warning(f"Image previews too large for draft storage: {e}")
            self.storage.remove_item(IMAGES_STORAGE_KEY)
            return SaveOutcome.QUOTA_EXCEEDED
        except (TypeError, ValueError) as e:
            logger.error(f"Error saving image previews: {e}")
            return SaveOutcome.FAILED

    def load(self) -> Optional[FormDraft]:
        """The saved draft, or None when there is nothing worth restoring"""
        raw = self.storage.get_item(STORAGE_KEY)
        if not raw:
            return None
        try:
            draft = FormDraft.from_json(raw)
        except ValueError as e:
            logger.error(f"Error loading draft: {e}")
            return None
        if draft is None or not draft.is_meaningful():
            return None
        return draft

    def load_images(self) -> Optional[ImagePreviewCache]:
        raw = self.storage.get_item(IMAGES_STORAGE_KEY)
        if not raw:
            return None
        try:
            return ImagePreviewCache.from_json(raw)
        except (TypeError, ValueError) as e:
            logger.error(f"Error loading image previews: {e}")
            return None

    def clear(self):
        self.storage.remove_item(STORAGE_KEY)
        self.storage.remove_item(IMAGES_STORAGE_KEY)
