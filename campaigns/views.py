# campaigns/views.py
"""
JSON endpoints for the campaign creation wizard.

Every request rebuilds the wizard from the draft kept in the visitor's
session, applies the posted step, and writes the draft back before the
response goes out.
"""

import logging

from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from .documents import DOCUMENT_SLOTS
from .drafts import FILE_FIELDS, DraftStore, ImagePreviewCache
from .forms import STEP_FORMS
from .notifications import MessagesNotifier
from .submission import CampaignApiClient
from .utils.previews import preview_to_storage
from .wizard import FIRST_STEP, LAST_STEP, CampaignWizard

logger = logging.getLogger(__name__)

# Current step of this visit; deliberately not part of the saved draft
WIZARD_STEP_KEY = 'campaign_wizard_step'

WIZARD_ACTIONS = ('save', 'next', 'previous', 'submit', 'clear')

BOOLEAN_FIELDS = {'display_raised_amount', 'allow_anonymous', 'enable_comments', 'confirm_checkbox'}
TRUE_VALUES = {'true', 'on', '1', 'yes'}


def get_draft_store(request):
    return DraftStore.for_session(request.session)


def get_session_step(request):
    try:
        step = int(request.session.get(WIZARD_STEP_KEY, FIRST_STEP))
    except (TypeError, ValueError):
        return FIRST_STEP
    return min(max(step, FIRST_STEP), LAST_STEP)


def load_wizard(request, notify=False):
    """Wizard for this request, restored from the session draft"""
    wizard = CampaignWizard(
        get_draft_store(request),
        notifier=MessagesNotifier(request),
        client=CampaignApiClient(),
        source=request.GET.get('source', 'fundraiser'),
    )
    wizard.mount(notify=notify)
    wizard.step = get_session_step(request)
    return wizard


def apply_posted_step(wizard, request):
    """Copy the current step's posted fields and any uploads into the wizard"""
    for name in STEP_FORMS[wizard.step].base_fields:
        if name in FILE_FIELDS or name not in request.POST:
            continue
        value = request.POST.get(name)
        if name in BOOLEAN_FIELDS:
            value = value.strip().lower() in TRUE_VALUES
        wizard.set_value(name, value)

    if 'cover_image' in request.FILES:
        wizard.set_cover_image(request.FILES['cover_image'])

    # The confirmation dialog runs in the browser, so an uploaded document
    # arrives already confirmed
    for slot in DOCUMENT_SLOTS:
        if slot in request.FILES and wizard.select_document(slot, request.FILES[slot]) is not None:
            wizard.confirm_document()

    media = request.FILES.getlist('supporting_media')
    if media:
        wizard.add_supporting_media(media)


def wizard_response(wizard, success=True, status=200, **extra):
    context = {
        'success': success,
        'wizard': wizard.snapshot(),
        'previews': {slot: preview_to_storage(wizard.previews.get(slot)) for slot in ImagePreviewCache.SLOTS},
        'notifications': [
            {'level': level, 'message': message} for level, message in wizard.notifier.notifications
        ],
    }
    context.update(extra)
    return JsonResponse(context, status=status)


@require_http_methods(['GET', 'POST'])
def campaign_wizard(request):
    """
    GET returns the wizard state. POST applies the current step's fields and
    runs `action`: save (default), next, previous, submit or clear.
    """
    if request.method == 'GET':
        first_visit = WIZARD_STEP_KEY not in request.session
        wizard = load_wizard(request, notify=first_visit)
        request.session[WIZARD_STEP_KEY] = wizard.step
        return wizard_response(wizard)

    action = request.POST.get('action', 'save')
    if action not in WIZARD_ACTIONS:
        return JsonResponse({'success': False, 'message': f'Unknown action: {action}'}, status=400)

    wizard = load_wizard(request)

    if action == 'clear':
        wizard.clear_draft()
        request.session.pop(WIZARD_STEP_KEY, None)
        return wizard_response(wizard)

    apply_posted_step(wizard, request)

    success = True
    if action == 'next':
        success = wizard.handle_next()
    elif action == 'previous':
        wizard.handle_previous()
    elif action == 'submit':
        success = wizard.submit()
        if success:
            request.session.pop(WIZARD_STEP_KEY, None)
            logger.info("Campaign submitted from session wizard")
            return wizard_response(wizard, status=201, redirect_url=wizard.redirect_url)

    # The session is written when this response leaves, so save now rather
    # than on the autosave timer
    wizard.flush_draft()
    request.session[WIZARD_STEP_KEY] = wizard.step
    return wizard_response(wizard, success=success, status=200 if success else 400)


@require_GET
def campaign_draft_status(request):
    """Whether a restorable draft exists, its contents and storage usage"""
    store = get_draft_store(request)
    draft = store.load()
    images = store.load_images() if draft else None

    context = {
        'success': True,
        'has_draft': draft is not None,
        'draft': None,
        'images': None,
        'usage': store.usage().as_dict(),
    }
    if draft is not None:
        context['draft'] = {
            'values': draft.values,
            'saved_at': draft.saved_at.isoformat() if draft.saved_at else None,
        }
    if images is not None:
        context['images'] = {slot: preview_to_storage(images.get(slot)) for slot in images.SLOTS}

    return JsonResponse(context)


@require_POST
def clear_campaign_draft(request):
    get_draft_store(request).clear()
    request.session.pop(WIZARD_STEP_KEY, None)
    logger.info("Campaign draft cleared from session")
    return JsonResponse({'success': True, 'message': 'Draft cleared successfully!'})
