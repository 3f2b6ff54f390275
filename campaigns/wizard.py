# campaigns/wizard.py
"""
Multi-step donation campaign wizard.

CampaignWizard owns every field value, the current step and the derived trust
score. It restores drafts when mounted, autosaves after a quiet period and
hands the finished campaign to the submission pipeline.
"""

import logging
import threading
from dataclasses import dataclass
from typing import List, Optional

from django.conf import settings

from .documents import DOCUMENT_SLOTS, DocumentConfirmationGate
from .drafts import FILE_FIELDS, DraftStore, FormDraft, ImagePreviewCache, SaveOutcome
from .exceptions import SubmissionError
from .forms import validate_step
from .notifications import Notifier
from .submission import CampaignApiClient, build_payload
from .utils.debounce import Debouncer
from .utils.image_compression import (
    COVER_IMAGE_PRESET,
    SUPPORTING_MEDIA_PRESET,
    build_image_preview,
    is_image,
    is_video,
)
from .utils.previews import NonPreviewable, Preview, PreviewKind

logger = logging.getLogger(__name__)

STEPS = [
    (1, 'Basic Info'),
    (2, 'Story'),
    (3, 'Verification'),
    (4, 'Settings'),
    (5, 'Review'),
]
FIRST_STEP = 1
LAST_STEP = len(STEPS)

DEFAULT_VALUES = {
    'display_raised_amount': True,
    'allow_anonymous': False,
    'enable_comments': True,
    'payment_method': 'manual',
    'minimum_donation': 10,
}

MAX_SUPPORTING_MEDIA = 5

# Trust score contributions
GOVERNMENT_ID_POINTS = 50
PROOF_OF_NEED_POINTS = 30
CONFIRMATION_POINTS = 20

IMAGES_TOO_LARGE_WARNING = 'Draft saved, but image previews too large. Images will need to be re-uploaded.'

FORM_LABELS = {
    'fundraiser': {
        'form_title': 'Create Your Fundraiser',
        'title_label': 'Fundraiser Title',
        'why_raising_label': 'Why are you raising funds?',
        'who_benefits_label': 'Who will benefit from this fundraiser?',
        'submit_button': 'Submit Fundraiser Application',
        'preview_text': 'See how your fundraiser will look to donors',
        'leave_confirm_title': 'Leave Fundraiser Creation?',
        'title_placeholder': 'Your Fundraiser Title',
    },
    'campaign': {
        'form_title': 'Create Donation Campaign',
        'title_label': 'Campaign Title',
        'why_raising_label': 'Campaign Purpose',
        'who_benefits_label': 'Who will benefit from this campaign?',
        'submit_button': 'Submit Campaign Application',
        'preview_text': 'See how your campaign will look to donors',
        'leave_confirm_title': 'Leave Campaign Creation?',
        'title_placeholder': 'Your Campaign Title',
    },
}


@dataclass(frozen=True)
class SupportingMedia:
    file: object
    preview: Optional[Preview]

    @property
    def key(self):
        return media_key(self.file)


def media_key(file):
    """Files count as the same upload when name and size match"""
    return getattr(file, 'name', None), getattr(file, 'size', None)


def calculate_trust_score(files, previews, confirmed=False) -> int:
    """
    50 points for an identity document, 30 for proof of need and 20 for the
    accuracy declaration. A confirmed or restored preview counts as attached.
    """
    score = 0
    if files.get('government_id') or previews.government_id is not None:
        score += GOVERNMENT_ID_POINTS
    if files.get('proof_of_need') or previews.proof_of_need is not None:
        score += PROOF_OF_NEED_POINTS
    if confirmed:
        score += CONFIRMATION_POINTS
    return score


class CampaignWizard:
    def __init__(self, draft_store: DraftStore, notifier: Optional[Notifier] = None,
                 client: Optional[CampaignApiClient] = None, timer_factory=threading.Timer,
                 navigate=None, source: str = 'fundraiser', save_delay: Optional[float] = None,
                 redirect_delay: Optional[float] = None, redirect_url: Optional[str] = None):
        self.draft_store = draft_store
        self.notifier = notifier or Notifier()
        self.client = client
        self.timer_factory = timer_factory
        self.navigate = navigate
        self.source = source if source in FORM_LABELS else 'fundraiser'
        self.redirect_delay = redirect_delay if redirect_delay is not None else getattr(settings, 'CAMPAIGN_REDIRECT_DELAY', 1.5)
        self.redirect_url = redirect_url or getattr(settings, 'CAMPAIGN_REDIRECT_URL', '/donate')

        if save_delay is None:
            save_delay = getattr(settings, 'DRAFT_SAVE_DELAY', 1.0)
        self._autosave = Debouncer(save_delay, self.save_draft, timer_factory=timer_factory)
        self._save_lock = threading.Lock()
        self._state_lock = threading.RLock()

        self.documents = DocumentConfirmationGate(self)
        self.is_submitting = False
        self._reset_state()

    def _reset_state(self):
        self.values = dict(DEFAULT_VALUES)
        self.files = {}
        self.previews = ImagePreviewCache()
        self.supporting_media: List[SupportingMedia] = []
        self.step = FIRST_STEP
        self.errors = {}
        self.trust_score = 0
        self.last_saved = None

    @property
    def labels(self):
        return FORM_LABELS[self.source]

    @property
    def steps(self):
        return STEPS

    # --- Lifecycle ---

    def mount(self, notify=True) -> bool:
        """Restore a saved draft. Returns True when one was restored."""
        draft = self.draft_store.load()
        if draft is None:
            return False

        with self._state_lock:
            for name, value in draft.values.items():
                if name not in FILE_FIELDS:
                    self.values[name] = value

            images = self.draft_store.load_images()
            if images is not None:
                for slot in ImagePreviewCache.SLOTS:
                    if images.get(slot) is not None:
                        self.previews.set(slot, images.get(slot))

            self.last_saved = draft.saved_at
            self.recompute_trust_score()

        if notify:
            self.notifier.info('Draft restored successfully!')
        return True

    def unmount(self):
        self._autosave.cancel()
        self.documents.cancel()

    # --- Field updates ---

    def set_value(self, name, value):
        if name in FILE_FIELDS:
            raise ValueError(f"'{name}' is a file field; use the upload methods instead")
        with self._state_lock:
            self.values[name] = value
            self.errors.pop(name, None)
            if name == 'confirm_checkbox':
                self.recompute_trust_score()
        self.schedule_save()

    def set_values(self, values):
        for name, value in values.items():
            self.set_value(name, value)

    def set_cover_image(self, file) -> bool:
        """Select (or with None, clear) the cover image. Returns False if unusable."""
        preview = None
        if file is not None:
            preview = build_image_preview(file, *COVER_IMAGE_PRESET)
            if preview is None:
                self.notifier.error('Could not read the selected cover image.')

        with self._state_lock:
            if preview is None:
                self.files.pop('cover_image', None)
            else:
                self.files['cover_image'] = [file]
                self.errors.pop('cover_image', None)
            self.previews.cover_image = preview
        self.schedule_save()
        return preview is not None

    def attach_document(self, slot, file, preview):
        """Store a confirmed document; field and preview change together"""
        if slot not in DOCUMENT_SLOTS:
            raise ValueError(f"Unknown document slot: {slot}")
        with self._state_lock:
            self.files[slot] = [file]
            self.previews.set(slot, preview)
            self.errors.pop(slot, None)
            self.recompute_trust_score()
        self.schedule_save()

    def select_document(self, slot, file):
        return self.documents.select(slot, file)

    def confirm_document(self):
        return self.documents.confirm()

    def cancel_document(self):
        self.documents.cancel()

    def add_supporting_media(self, files) -> List[SupportingMedia]:
        """
        Accept new supporting media, skipping files already accepted
        (same name and size) and anything beyond MAX_SUPPORTING_MEDIA.
        """
        existing = {media.key for media in self.supporting_media}
        files_to_add = []
        for file in files or []:
            key = media_key(file)
            if key not in existing:
                existing.add(key)
                files_to_add.append(file)
        if not files_to_add:
            return []

        available_slots = MAX_SUPPORTING_MEDIA - len(self.supporting_media)
        if available_slots <= 0:
            self.notifier.warning(f'Maximum {MAX_SUPPORTING_MEDIA} files allowed for supporting media')
            return []

        # Anything beyond the cap is dropped, not queued
        files_to_process = files_to_add[:available_slots]
        if len(files_to_add) > available_slots:
            self.notifier.info(f'Only {available_slots} more file(s) can be added ({MAX_SUPPORTING_MEDIA} max total)')

        accepted = []
        for file in files_to_process:
            if is_image(file):
                preview = build_image_preview(file, *SUPPORTING_MEDIA_PRESET)
                if preview is None:
                    self.notifier.error(f"Could not read {getattr(file, 'name', 'the selected file')}.")
                    continue
            elif is_video(file):
                preview = NonPreviewable(PreviewKind.VIDEO)
            else:
                preview = None
            accepted.append(SupportingMedia(file=file, preview=preview))

        with self._state_lock:
            self.supporting_media.extend(accepted)
        return accepted

    def remove_supporting_media(self, index):
        with self._state_lock:
            if not 0 <= index < len(self.supporting_media):
                raise IndexError(f"No supporting media at position {index}")
            del self.supporting_media[index]
        self.notifier.success('Image removed successfully')

    def recompute_trust_score(self) -> int:
        self.trust_score = calculate_trust_score(
            self.files, self.previews, confirmed=bool(self.values.get('confirm_checkbox'))
        )
        return self.trust_score

    # --- Navigation ---

    def handle_next(self) -> bool:
        """Advance one step if the current step's fields are valid. False on the last step."""
        if self.step >= LAST_STEP:
            return False
        errors = validate_step(self.step, self.values, self.files, self.previews)
        if errors:
            self.errors = errors
            return False
        self.errors = {}
        self.step += 1
        return True

    def handle_previous(self) -> int:
        self.step = max(self.step - 1, FIRST_STEP)
        return self.step

    # --- Draft persistence ---

    def schedule_save(self):
        self._autosave.trigger()

    def flush_draft(self):
        self._autosave.flush()

    def save_draft(self) -> SaveOutcome:
        """Write the current values and previews to the draft store now"""
        with self._save_lock:
            with self._state_lock:
                draft = FormDraft.from_values(dict(self.values))
                previews = ImagePreviewCache(
                    cover_image=self.previews.cover_image,
                    government_id=self.previews.government_id,
                    proof_of_need=self.previews.proof_of_need,
                )

            self.draft_store.evict_if_needed(0.8)
            outcome = self.draft_store.save(draft)
            if outcome != SaveOutcome.SAVED:
                return outcome

            self.last_saved = draft.saved_at
            if self.draft_store.save_images(previews) == SaveOutcome.QUOTA_EXCEEDED:
                self.notifier.warning(IMAGES_TOO_LARGE_WARNING)
            return outcome

    def clear_draft(self):
        self._autosave.cancel()
        self.documents.cancel()
        self.draft_store.clear()
        with self._state_lock:
            self._reset_state()
        self.notifier.info('Draft cleared successfully!')

    # --- Submission ---

    def submit(self) -> bool:
        """
        Send the campaign to the API. Only allowed from the review step and
        only when every step validates. Returns True on success.
        """
        if self.is_submitting:
            logger.info("Submit ignored, a submission is already in progress")
            return False
        if self.step != LAST_STEP:
            logger.warning(f"Submit attempted from step {self.step}")
            return False

        for step, _ in STEPS[:-1]:
            errors = validate_step(step, self.values, self.files, self.previews)
            if errors:
                self.errors = errors
                self.step = step
                self.notifier.error('Please fix the highlighted fields before submitting.')
                return False

        if self.client is None:
            self.client = CampaignApiClient()

        self.is_submitting = True
        try:
            trust_score = self.recompute_trust_score()
            data, files = build_payload(
                self.values,
                files=self.files,
                supporting_media=[media.file for media in self.supporting_media],
                trust_score=trust_score,
            )
            self.client.create_event(data, files)
        except SubmissionError as e:
            logger.error(f"Submit error: {e.message}")
            self.notifier.error(e.message)
            return False
        finally:
            self.is_submitting = False

        self._autosave.cancel()
        self.draft_store.clear()
        self.notifier.success('Donation campaign created successfully!')
        with self._state_lock:
            self._reset_state()
        self._schedule_redirect()
        return True

    def _schedule_redirect(self):
        if self.navigate is None:
            return
        timer = self.timer_factory(self.redirect_delay, lambda: self.navigate(self.redirect_url))
        if hasattr(timer, 'daemon'):
            timer.daemon = True
        timer.start()

    def snapshot(self):
        """Plain-data view of the wizard for templates and JSON responses"""
        return {
            'step': self.step,
            'steps': [{'number': number, 'name': name} for number, name in STEPS],
            'values': dict(self.values),
            'errors': dict(self.errors),
            'trust_score': self.trust_score,
            'last_saved': self.last_saved.isoformat() if self.last_saved else None,
            'supporting_media_count': len(self.supporting_media),
            'pending_document': self.documents.pending.slot if self.documents.pending else None,
            'labels': self.labels,
        }
