# campaigns/submission.py
"""
Submission of a finished campaign to the donation-event REST API.
Builds the multipart payload and posts it with requests.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

import requests
from django.conf import settings

from .exceptions import SubmissionError
from .utils.image_compression import get_content_type

logger = logging.getLogger(__name__)

# Scalar fields sent as-is: (form field, wire name)
SCALAR_WIRE_FIELDS = [
    ('title', 'title'),
    ('category', 'category'),
    ('goal_amount', 'goalAmount'),
    ('end_date', 'endDate'),
    ('short_description', 'shortDescription'),
    ('why_raising', 'whyRaising'),
    ('who_benefits', 'whoBenefits'),
    ('how_funds_used', 'howFundsUsed'),
    ('display_raised_amount', 'displayRaisedAmount'),
    ('allow_anonymous', 'allowAnonymous'),
    ('enable_comments', 'enableComments'),
    ('minimum_donation', 'minimumDonation'),
    ('payment_method', 'paymentMethod'),
    ('social_share_message', 'socialShareMessage'),
    ('hashtags', 'hashtags'),
    ('location', 'location'),
]

BANK_ACCOUNT_WIRE_FIELDS = [
    ('account_number', 'bankAccount[accountNumber]'),
    ('ifsc_code', 'bankAccount[ifsc]'),
    ('account_holder', 'bankAccount[accountHolder]'),
]

SINGLE_FILE_WIRE_FIELDS = [
    ('cover_image', 'coverImage'),
    ('government_id', 'governmentId'),
    ('proof_of_need', 'proofOfNeed'),
]

FIELD_DEFAULTS = {
    'payment_method': 'manual',
}


def format_value(value) -> str:
    """Multipart form values are strings; booleans use JSON spelling"""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, Decimal):
        return format(value.normalize(), 'f') if value == value.to_integral() else str(value)
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    return str(value)


def file_part(name: str, file) -> Tuple[str, tuple]:
    if hasattr(file, 'seek'):
        file.seek(0)
    filename = getattr(file, 'name', None) or name
    return name, (filename, file, get_content_type(file))


def build_payload(values: Dict, files: Optional[Dict] = None, supporting_media: Optional[List] = None,
                  trust_score: int = 0):
    """
    Assemble the create-event request.

    Returns:
        (data, files) lists of tuples, ready for requests' multipart encoding
    """
    files = files or {}
    data = []

    for field, wire_name in SCALAR_WIRE_FIELDS:
        value = values.get(field)
        if value is None or value == '':
            value = FIELD_DEFAULTS.get(field, value)
        data.append((wire_name, format_value(value)))

    if values.get('category') == 'Other' and values.get('custom_category'):
        data.append(('customCategory', format_value(values['custom_category'])))

    if values.get('upi_id'):
        data.append(('upiId', format_value(values['upi_id'])))

    data.append(('trustScore', str(trust_score)))

    # Payout details only make sense with an account number
    if values.get('account_number'):
        for field, wire_name in BANK_ACCOUNT_WIRE_FIELDS:
            data.append((wire_name, format_value(values.get(field))))

    file_parts = []
    for field, wire_name in SINGLE_FILE_WIRE_FIELDS:
        file_list = files.get(field)
        if file_list:
            file_parts.append(file_part(wire_name, file_list[0]))

    for media_file in supporting_media or []:
        file_parts.append(file_part('supportingMedia', media_file))

    return data, file_parts


class CampaignApiClient:
    """Talks to the donation-event endpoints of the platform API"""

    CREATE_EVENT_PATH = '/v1/donation-event/create-event'

    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None,
                 timeout: Optional[int] = None, session: Optional[requests.Session] = None):
        self.base_url = (base_url or getattr(settings, 'CAMPAIGN_API_URL', '')).rstrip('/')
        self.token = token if token is not None else getattr(settings, 'CAMPAIGN_API_TOKEN', '')
        self.timeout = timeout or getattr(settings, 'CAMPAIGN_API_TIMEOUT', 30)
        self.session = session or requests.Session()

    def _headers(self):
        headers = {'Cache-Control': 'no-cache'}
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'
        return headers

    @staticmethod
    def _error_message(response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            return body.get('message')
        return None

    def create_event(self, data, files=None) -> Dict:
        """
        POST the multipart payload.

        Returns:
            The created event as returned by the API

        Raises:
            SubmissionError: with the server's message when it gives one
        """
        url = f"{self.base_url}{self.CREATE_EVENT_PATH}"
        try:
            response = self.session.post(
                url, data=data, files=files or None, headers=self._headers(), timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Create event request failed: {e}")
            raise SubmissionError() from e

        if not response.ok:
            message = self._error_message(response)
            logger.error(f"Create event rejected ({response.status_code}): {message}")
            raise SubmissionError(message, status_code=response.status_code)

        try:
            body = response.json()
        except ValueError:
            body = {}
        return body.get('event', body) if isinstance(body, dict) else {}
