# campaigns/documents.py
"""
Two-phase upload for verification documents.

Picking a government ID or proof-of-need file only stages it. Nothing reaches
the wizard until the user confirms; cancelling leaves the form untouched.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .exceptions import NoPendingDocument
from .utils.image_compression import DOCUMENT_PRESET, build_image_preview, is_image
from .utils.previews import NonPreviewable, Preview, PreviewKind

logger = logging.getLogger(__name__)

DOCUMENT_SLOTS = ('government_id', 'proof_of_need')

DOCUMENT_LABELS = {
    'government_id': 'Government ID',
    'proof_of_need': 'Proof of Need',
}


class GateState(Enum):
    IDLE = 'idle'
    PENDING_CONFIRMATION = 'pending_confirmation'


@dataclass(frozen=True)
class PendingDocument:
    file: object
    preview: Preview
    slot: str


def build_document_preview(file) -> Optional[Preview]:
    """Images get a compressed preview, anything else (PDF scans) a marker"""
    if is_image(file):
        return build_image_preview(file, *DOCUMENT_PRESET)
    return NonPreviewable(PreviewKind.PDF)


class DocumentConfirmationGate:
    """
    Idle <-> PendingConfirmation state machine in front of the wizard's
    document fields. `wizard` must provide attach_document(slot, file, preview)
    and a `notifier`.
    """

    def __init__(self, wizard):
        self.wizard = wizard
        self.pending: Optional[PendingDocument] = None

    @property
    def state(self) -> GateState:
        return GateState.IDLE if self.pending is None else GateState.PENDING_CONFIRMATION

    def select(self, slot, file) -> Optional[PendingDocument]:
        """
        Stage `file` for `slot`. A second selection replaces the first.
        Returns None (and stays as before) when no usable file was given.
        """
        if slot not in DOCUMENT_SLOTS:
            raise ValueError(f"Unknown document slot: {slot}")
        if file is None:
            return None

        preview = build_document_preview(file)
        if preview is None:
            logger.error(f"Unreadable {DOCUMENT_LABELS[slot]} upload ignored")
            return None

        self.pending = PendingDocument(file=file, preview=preview, slot=slot)
        return self.pending

    def confirm(self) -> PendingDocument:
        if self.pending is None:
            raise NoPendingDocument("No document is waiting for confirmation")

        document = self.pending
        self.wizard.attach_document(document.slot, document.file, document.preview)
        self.pending = None
        self.wizard.notifier.success(f"{DOCUMENT_LABELS[document.slot]} uploaded successfully!")
        return document

    def cancel(self):
        self.pending = None
