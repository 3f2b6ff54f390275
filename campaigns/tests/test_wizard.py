import json
from unittest import mock

from django.test import SimpleTestCase

from campaigns.drafts import IMAGES_STORAGE_KEY, STORAGE_KEY, DraftStore, FormDraft, ImagePreviewCache
from campaigns.exceptions import SubmissionError
from campaigns.notifications import Notifier
from campaigns.utils.previews import ImagePreview, NonPreviewable, PreviewKind
from campaigns.utils.storage import QuotaStorage
from campaigns.wizard import DEFAULT_VALUES, IMAGES_TOO_LARGE_WARNING, CampaignWizard

from .helpers import FakeTimerFactory, make_image_upload, make_pdf_upload, make_video_upload

STEP_ONE_VALUES = {
    'title': 'Help Build a School',
    'category': 'Education',
    'goal_amount': 50000,
    'end_date': '2025-12-31',
    'short_description': 'A new classroom block for a rural school.',
}

STORY_VALUES = {
    'why_raising': 'The old building is unsafe.',
    'who_benefits': '300 children in the village.',
    'how_funds_used': 'Construction, desks and books.',
}

SETTINGS_VALUES = {
    'account_number': '123456789012',
    'ifsc_code': 'SBIN0001234',
    'account_holder': 'Asha Rao',
    'social_share_message': 'Help us build a school!',
}


class UnreadableImage:
    name = 'scan.png'
    size = 2048
    content_type = 'image/png'

    def read(self, *args):
        raise OSError('device not ready')

    def seek(self, *args):
        return 0

    def tell(self):
        return 0


class WizardTestCase(SimpleTestCase):
    capacity = 5 * 1024 * 1024

    def setUp(self):
        self.backend = {}
        self.store = DraftStore(QuotaStorage(self.backend, capacity=self.capacity))
        self.notifier = Notifier()
        self.timers = FakeTimerFactory()
        self.client = mock.Mock()
        self.navigate = mock.Mock()
        self.wizard = self.make_wizard()

    def make_wizard(self, **kwargs):
        options = {
            'notifier': self.notifier,
            'client': self.client,
            'timer_factory': self.timers,
            'navigate': self.navigate,
            'save_delay': 1.0,
            'redirect_delay': 1.5,
            'redirect_url': '/donate',
        }
        options.update(kwargs)
        return CampaignWizard(self.store, **options)

    def fill_step_one(self):
        self.wizard.set_values(STEP_ONE_VALUES)
        self.wizard.set_cover_image(make_image_upload())

    def fill_everything(self):
        self.fill_step_one()
        self.wizard.set_values(STORY_VALUES)
        self.wizard.select_document('government_id', make_pdf_upload())
        self.wizard.confirm_document()
        self.wizard.select_document('proof_of_need', make_image_upload(name='hospital-bill.png'))
        self.wizard.confirm_document()
        self.wizard.set_value('confirm_checkbox', True)
        self.wizard.set_values(SETTINGS_VALUES)

    def advance_to_review(self):
        for _ in range(4):
            self.assertTrue(self.wizard.handle_next(), self.wizard.errors)
        self.assertEqual(self.wizard.step, 5)


class CoverImageTests(WizardTestCase):
    def test_closed_upload_is_treated_as_unselected(self):
        upload = make_image_upload()
        upload.close()

        with self.assertLogs('campaigns.utils.image_compression', level='WARNING'):
            self.assertFalse(self.wizard.set_cover_image(upload))

        self.assertIsNone(self.wizard.previews.cover_image)
        self.assertNotIn('cover_image', self.wizard.files)
        self.assertEqual(self.notifier.notifications, [('error', 'Could not read the selected cover image.')])

    def test_closed_document_is_not_staged(self):
        upload = make_image_upload(name='id.png')
        upload.close()

        with self.assertLogs('campaigns.documents', level='ERROR'):
            self.assertIsNone(self.wizard.select_document('government_id', upload))

        self.assertIsNone(self.wizard.documents.pending)


class StepNavigationTests(WizardTestCase):
    def test_step_one_advances_with_all_fields(self):
        self.fill_step_one()

        self.assertTrue(self.wizard.handle_next())
        self.assertEqual(self.wizard.step, 2)
        self.assertEqual(self.wizard.errors, {})

    def test_missing_cover_image_blocks_step_one(self):
        self.wizard.set_values(STEP_ONE_VALUES)

        self.assertFalse(self.wizard.handle_next())
        self.assertEqual(self.wizard.step, 1)
        self.assertIn('cover_image', self.wizard.errors)

    def test_each_required_field_blocks_step_one(self):
        for field in STEP_ONE_VALUES:
            with self.subTest(field=field):
                wizard = self.make_wizard()
                wizard.set_values({**STEP_ONE_VALUES, field: ''})
                wizard.set_cover_image(make_image_upload())

                self.assertFalse(wizard.handle_next())
                self.assertEqual(wizard.step, 1)
                self.assertIn(field, wizard.errors)

    def test_other_category_needs_detail(self):
        self.fill_step_one()
        self.wizard.set_value('category', 'Other')

        self.assertFalse(self.wizard.handle_next())
        self.assertIn('custom_category', self.wizard.errors)

        self.wizard.set_value('custom_category', 'Sports')
        self.assertTrue(self.wizard.handle_next())

    def test_restored_cover_preview_counts_as_cover(self):
        self.store.save(FormDraft.from_values(STEP_ONE_VALUES))
        self.store.save_images(ImagePreviewCache(cover_image=ImagePreview('data:image/jpeg;base64,AAAA')))

        wizard = self.make_wizard()
        wizard.mount()

        self.assertTrue(wizard.handle_next())
        self.assertEqual(wizard.step, 2)

    def test_only_current_step_is_validated(self):
        self.fill_step_one()
        self.wizard.handle_next()

        self.assertFalse(self.wizard.handle_next())
        self.assertEqual(set(self.wizard.errors), set(STORY_VALUES))

    def test_previous_never_validates(self):
        self.wizard.step = 3
        self.assertEqual(self.wizard.handle_previous(), 2)
        self.assertEqual(self.wizard.handle_previous(), 1)
        self.assertEqual(self.wizard.handle_previous(), 1)

    def test_next_stops_at_review(self):
        self.fill_everything()
        self.advance_to_review()
        self.assertFalse(self.wizard.handle_next())
        self.assertEqual(self.wizard.step, 5)

    def test_bad_ifsc_blocks_settings_step(self):
        self.fill_everything()
        self.wizard.set_value('ifsc_code', 'SBIN1234')
        self.wizard.step = 4

        self.assertFalse(self.wizard.handle_next())
        self.assertIn('ifsc_code', self.wizard.errors)


class TrustScoreTests(WizardTestCase):
    def test_zero_without_documents(self):
        self.assertEqual(self.wizard.recompute_trust_score(), 0)

    def test_identity_document_only(self):
        self.wizard.attach_document('government_id', make_pdf_upload(), NonPreviewable(PreviewKind.PDF))
        self.assertEqual(self.wizard.trust_score, 50)

    def test_identity_document_and_confirmation(self):
        self.wizard.attach_document('government_id', make_pdf_upload(), NonPreviewable(PreviewKind.PDF))
        self.wizard.set_value('confirm_checkbox', True)
        self.assertEqual(self.wizard.trust_score, 80)

    def test_everything_gives_one_hundred(self):
        self.wizard.attach_document('government_id', make_pdf_upload(), NonPreviewable(PreviewKind.PDF))
        self.wizard.attach_document('proof_of_need', make_pdf_upload('bill.pdf'), NonPreviewable(PreviewKind.PDF))
        self.wizard.set_value('confirm_checkbox', True)
        self.assertEqual(self.wizard.trust_score, 100)

    def test_unchecking_recomputes_from_scratch(self):
        self.wizard.set_value('confirm_checkbox', True)
        self.wizard.set_value('confirm_checkbox', False)
        self.wizard.set_value('confirm_checkbox', False)
        self.assertEqual(self.wizard.trust_score, 0)

    def test_restored_previews_count(self):
        self.store.save(FormDraft.from_values({'title': 'School'}))
        self.store.save_images(ImagePreviewCache(government_id=NonPreviewable(PreviewKind.PDF)))

        wizard = self.make_wizard()
        wizard.mount()

        self.assertEqual(wizard.trust_score, 50)


class AutosaveTests(WizardTestCase):
    def test_rapid_changes_produce_one_save(self):
        for text in ('H', 'He', 'Hel', 'Help'):
            self.wizard.set_value('title', text)

        self.assertEqual(len(self.timers.timers), 4)
        self.assertEqual(len(self.timers.active), 1)
        self.assertEqual(self.timers.active[0].delay, 1.0)
        self.assertNotIn(STORAGE_KEY, self.backend)

        with mock.patch.object(self.store, 'save', wraps=self.store.save) as save:
            self.timers.fire_all()

        save.assert_called_once()
        self.assertEqual(json.loads(self.backend[STORAGE_KEY])['title'], 'Help')
        self.assertIsNotNone(self.wizard.last_saved)

    def test_saved_draft_round_trips_into_new_wizard(self):
        self.wizard.set_values(STEP_ONE_VALUES)
        self.wizard.set_value('allow_anonymous', True)
        self.wizard.set_cover_image(make_image_upload())
        self.wizard.flush_draft()

        notifier = Notifier()
        wizard = self.make_wizard(notifier=notifier)

        self.assertTrue(wizard.mount())
        for field, value in STEP_ONE_VALUES.items():
            self.assertEqual(wizard.values[field], value)
        self.assertTrue(wizard.values['allow_anonymous'])
        self.assertNotIn('cover_image', wizard.files)
        self.assertEqual(wizard.previews.cover_image, self.wizard.previews.cover_image)
        self.assertEqual(wizard.step, 1)
        self.assertEqual(notifier.notifications, [('info', 'Draft restored successfully!')])

    def test_empty_draft_is_not_restored(self):
        self.wizard.flush_draft()
        self.wizard.save_draft()

        notifier = Notifier()
        wizard = self.make_wizard(notifier=notifier)

        self.assertFalse(wizard.mount())
        self.assertEqual(notifier.notifications, [])
        self.assertEqual(wizard.values, DEFAULT_VALUES)

    def test_unmount_cancels_pending_save(self):
        self.wizard.set_value('title', 'School')
        self.wizard.unmount()

        self.assertEqual(self.timers.active, [])
        self.assertNotIn(STORAGE_KEY, self.backend)


class QuotaWarningTests(WizardTestCase):
    capacity = 2000

    def test_oversized_previews_warn_once_and_keep_fields(self):
        self.wizard.set_values(STEP_ONE_VALUES)
        self.wizard.previews.cover_image = ImagePreview('data:image/jpeg;base64,' + 'A' * 5000)

        with self.assertLogs('campaigns.drafts', level='WARNING'):
            self.wizard.save_draft()

        self.assertEqual(self.notifier.notifications, [('warning', IMAGES_TOO_LARGE_WARNING)])
        self.assertNotIn(IMAGES_STORAGE_KEY, self.backend)
        self.assertEqual(self.store.load().values['title'], 'Help Build a School')


class SupportingMediaTests(WizardTestCase):
    def images(self, *names):
        return [make_image_upload(name=name, size=(40, 30)) for name in names]

    def test_accepts_images_and_videos(self):
        accepted = self.wizard.add_supporting_media(self.images('a.png') + [make_video_upload()])

        self.assertEqual(len(accepted), 2)
        self.assertIsInstance(accepted[0].preview, ImagePreview)
        self.assertEqual(accepted[1].preview, NonPreviewable(PreviewKind.VIDEO))

    def test_duplicates_are_skipped(self):
        first = self.images('a.png', 'b.png')
        self.wizard.add_supporting_media(first)

        self.assertEqual(self.wizard.add_supporting_media(self.images('a.png')), [])
        self.assertEqual(len(self.wizard.supporting_media), 2)

    def test_never_more_than_five(self):
        self.wizard.add_supporting_media(self.images('a.png', 'b.png', 'c.png'))
        accepted = self.wizard.add_supporting_media(self.images('a.png', 'd.png', 'e.png', 'f.png', 'g.png'))

        self.assertEqual([media.file.name for media in accepted], ['d.png', 'e.png'])
        self.assertEqual(len(self.wizard.supporting_media), 5)
        self.assertEqual(self.notifier.notifications, [('info', 'Only 2 more file(s) can be added (5 max total)')])

        self.assertEqual(self.wizard.add_supporting_media(self.images('h.png')), [])
        self.assertEqual(len(self.wizard.supporting_media), 5)
        self.assertEqual(self.notifier.notifications[-1], ('warning', 'Maximum 5 files allowed for supporting media'))

    def test_unreadable_image_is_not_accepted(self):
        accepted = self.wizard.add_supporting_media([UnreadableImage()] + self.images('a.png'))

        self.assertEqual([media.file.name for media in accepted], ['a.png'])
        self.assertEqual(len(self.wizard.supporting_media), 1)
        self.assertEqual(self.notifier.notifications, [('error', 'Could not read scan.png.')])

    def test_remove_frees_a_slot(self):
        self.wizard.add_supporting_media(self.images('a.png', 'b.png'))
        self.wizard.remove_supporting_media(0)

        self.assertEqual([media.file.name for media in self.wizard.supporting_media], ['b.png'])
        with self.assertRaises(IndexError):
            self.wizard.remove_supporting_media(3)


class ClearDraftTests(WizardTestCase):
    def test_clear_resets_state_and_storage(self):
        self.fill_step_one()
        self.wizard.handle_next()
        self.wizard.flush_draft()

        self.wizard.clear_draft()

        self.assertEqual(self.backend, {})
        self.assertEqual(self.wizard.step, 1)
        self.assertEqual(self.wizard.values, DEFAULT_VALUES)
        self.assertIsNone(self.wizard.previews.cover_image)
        self.assertEqual(self.notifier.notifications[-1], ('info', 'Draft cleared successfully!'))


class SubmitTests(WizardTestCase):
    def test_successful_submission(self):
        self.fill_everything()
        self.wizard.add_supporting_media([make_image_upload(name='site.png', size=(40, 30))])
        self.advance_to_review()
        self.wizard.flush_draft()

        self.assertTrue(self.wizard.submit())

        data, files = self.client.create_event.call_args[0]
        self.assertIn(('trustScore', '100'), data)
        self.assertIn(('title', 'Help Build a School'), data)
        self.assertIn(('bankAccount[ifsc]', 'SBIN0001234'), data)
        self.assertEqual([name for name, _ in files], ['coverImage', 'governmentId', 'proofOfNeed', 'supportingMedia'])

        self.assertEqual(self.backend, {})
        self.assertEqual(self.wizard.step, 1)
        self.assertEqual(self.wizard.values, DEFAULT_VALUES)
        self.assertEqual(self.wizard.supporting_media, [])
        self.assertEqual(self.notifier.notifications[-1], ('success', 'Donation campaign created successfully!'))

        redirect, = self.timers.active
        self.assertEqual(redirect.delay, 1.5)
        self.navigate.assert_not_called()
        redirect.fire()
        self.navigate.assert_called_once_with('/donate')

    def test_failed_submission_keeps_state(self):
        self.client.create_event.side_effect = SubmissionError('Goal amount exceeds the allowed limit')
        self.fill_everything()
        self.advance_to_review()
        self.wizard.flush_draft()

        with self.assertLogs('campaigns.wizard', level='ERROR'):
            self.assertFalse(self.wizard.submit())

        self.assertEqual(self.wizard.step, 5)
        self.assertEqual(self.wizard.values['title'], 'Help Build a School')
        self.assertIn(STORAGE_KEY, self.backend)
        self.assertFalse(self.wizard.is_submitting)
        self.assertEqual(self.notifier.notifications[-1], ('error', 'Goal amount exceeds the allowed limit'))
        self.navigate.assert_not_called()

    def test_submit_only_from_review_step(self):
        self.fill_everything()

        with self.assertLogs('campaigns.wizard', level='WARNING'):
            self.assertFalse(self.wizard.submit())
        self.client.create_event.assert_not_called()

    def test_submit_sends_user_back_to_invalid_step(self):
        self.fill_step_one()
        self.wizard.step = 5

        self.assertFalse(self.wizard.submit())

        self.assertEqual(self.wizard.step, 2)
        self.assertEqual(set(self.wizard.errors), set(STORY_VALUES))
        self.client.create_event.assert_not_called()

    def test_duplicate_submit_is_ignored(self):
        self.fill_everything()
        self.advance_to_review()
        self.wizard.is_submitting = True

        self.assertFalse(self.wizard.submit())
        self.client.create_event.assert_not_called()
