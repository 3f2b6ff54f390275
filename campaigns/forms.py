# campaigns/forms.py

from decimal import Decimal

from django import forms
from django.core.exceptions import ValidationError
from django.core.validators import FileExtensionValidator, RegexValidator
import re

CATEGORY_CHOICES = [
    ('Medical', 'Medical'),
    ('Education', 'Education'),
    ('Emergency', 'Emergency'),
    ('Community', 'Community'),
    ('Animals', 'Animals'),
    ('Environment', 'Environment'),
    ('Disaster Relief', 'Disaster Relief'),
    ('Other', 'Other'),
]

PAYMENT_METHOD_CHOICES = [
    ('manual', 'Manual approval'),
    ('auto', 'Automatic withdrawal'),
]

DOCUMENT_EXTENSIONS = ['pdf', 'jpg', 'jpeg', 'png', 'webp']

# --- VALIDATORS ---
alphabetic_validator = RegexValidator(
    regex=r'^[a-zA-Z\s.]+$',
    message='This field can only contain alphabetic characters and spaces.',
    code='invalid_name'
)

account_number_validator = RegexValidator(
    regex=r'^\d{9,18}$',
    message='Account number must be 9 to 18 digits.',
    code='invalid_account_number'
)

upi_validator = RegexValidator(
    regex=r'^[\w.\-]{2,256}@[a-zA-Z]{2,64}$',
    message='Enter a valid UPI ID (e.g., name@bank).',
    code='invalid_upi'
)

IFSC_PATTERN = r'^[A-Z]{4}0[A-Z0-9]{6}$'


class StepForm(forms.Form):
    """
    Base for the wizard step forms.
    `previews` carries the ImagePreviewCache so that files confirmed or
    restored earlier count as present without being uploaded again.
    """
    def __init__(self, *args, previews=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.previews = previews

    def has_preview(self, slot):
        return self.previews is not None and self.previews.get(slot) is not None


class BasicInfoForm(StepForm):
    """Step 1: what the campaign is and how much it needs"""
    title = forms.CharField(
        max_length=100,
        label='Title',
        error_messages={'required': 'Title is required.'}
    )
    category = forms.ChoiceField(
        choices=CATEGORY_CHOICES,
        error_messages={'required': 'Please select a category.'}
    )
    custom_category = forms.CharField(
        max_length=50,
        required=False,
        label='Specify Category'
    )
    goal_amount = forms.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal('1'),
        label='Goal Amount',
        error_messages={'required': 'Goal amount is required.'}
    )
    end_date = forms.DateField(
        widget=forms.DateInput(attrs={'type': 'date'}),
        label='End Date',
        error_messages={'required': 'End date is required.'}
    )
    short_description = forms.CharField(
        max_length=500,
        widget=forms.Textarea(attrs={'rows': 3}),
        error_messages={'required': 'Short description is required.'}
    )
    cover_image = forms.ImageField(required=False, label='Cover Image')

    def clean_title(self):
        title = self.cleaned_data.get('title', '').strip()
        if not title:
            raise ValidationError('Title is required.')
        return title

    def clean(self):
        cleaned_data = super().clean()

        if cleaned_data.get('category') == 'Other' and not (cleaned_data.get('custom_category') or '').strip():
            self.add_error('custom_category', 'Please specify the category.')

        # A cover restored from the draft is as good as a fresh upload
        if not cleaned_data.get('cover_image') and 'cover_image' not in self.errors and not self.has_preview('cover_image'):
            self.add_error('cover_image', 'Cover image is required.')

        return cleaned_data


class StoryForm(StepForm):
    """Step 2: the story donors read"""
    why_raising = forms.CharField(
        widget=forms.Textarea(attrs={'rows': 4}),
        error_messages={'required': 'Please explain why you are raising funds.'}
    )
    who_benefits = forms.CharField(
        widget=forms.Textarea(attrs={'rows': 3}),
        error_messages={'required': 'Please describe who will benefit.'}
    )
    how_funds_used = forms.CharField(
        widget=forms.Textarea(attrs={'rows': 3}),
        error_messages={'required': 'Please describe how the funds will be used.'}
    )


class VerificationForm(StepForm):
    """Step 3: identity document, optional proof of need and the declaration"""
    government_id = forms.FileField(
        required=False,
        validators=[FileExtensionValidator(DOCUMENT_EXTENSIONS)],
        label='Government ID'
    )
    proof_of_need = forms.FileField(
        required=False,
        validators=[FileExtensionValidator(DOCUMENT_EXTENSIONS)],
        label='Proof of Need'
    )
    confirm_checkbox = forms.BooleanField(
        error_messages={'required': 'You must confirm that the information is accurate.'}
    )

    def clean(self):
        cleaned_data = super().clean()
        if not cleaned_data.get('government_id') and 'government_id' not in self.errors and not self.has_preview('government_id'):
            self.add_error('government_id', 'Government ID is required for verification.')
        return cleaned_data


class SettingsForm(StepForm):
    """Step 4: donation settings and payout details"""
    display_raised_amount = forms.BooleanField(required=False)
    allow_anonymous = forms.BooleanField(required=False)
    enable_comments = forms.BooleanField(required=False)
    minimum_donation = forms.IntegerField(
        min_value=1,
        error_messages={'required': 'Minimum donation is required.'}
    )
    payment_method = forms.ChoiceField(choices=PAYMENT_METHOD_CHOICES, required=False)
    account_number = forms.CharField(
        validators=[account_number_validator],
        error_messages={'required': 'Account number is required.'}
    )
    ifsc_code = forms.CharField(
        max_length=11,
        label='IFSC Code',
        error_messages={'required': 'IFSC code is required.'}
    )
    account_holder = forms.CharField(
        max_length=255,
        validators=[alphabetic_validator],
        error_messages={'required': 'Account holder name is required.'}
    )
    upi_id = forms.CharField(required=False, validators=[upi_validator], label='UPI ID')
    social_share_message = forms.CharField(
        widget=forms.Textarea(attrs={'rows': 2}),
        error_messages={'required': 'Social share message is required.'}
    )
    hashtags = forms.CharField(required=False)
    location = forms.CharField(required=False)

    def clean_ifsc_code(self):
        """IFSC is 4 bank letters, a zero, then 6 branch characters"""
        ifsc = self.cleaned_data.get('ifsc_code', '').strip().upper()
        if not re.match(IFSC_PATTERN, ifsc):
            raise ValidationError('Enter a valid IFSC code (e.g., SBIN0001234).')
        return ifsc

    def clean_payment_method(self):
        return self.cleaned_data.get('payment_method') or 'manual'


class ReviewForm(StepForm):
    """Step 5 has nothing to fill in"""


STEP_FORMS = {
    1: BasicInfoForm,
    2: StoryForm,
    3: VerificationForm,
    4: SettingsForm,
    5: ReviewForm,
}


def build_step_form(step, values, files=None, previews=None):
    form_class = STEP_FORMS[step]
    step_files = {}
    for name, file_list in (files or {}).items():
        if name in form_class.base_fields and file_list:
            step_files[name] = file_list[0]
    step_values = {name: value for name, value in values.items() if name in form_class.base_fields and value is not None}
    return form_class(data=step_values, files=step_files, previews=previews)


def validate_step(step, values, files=None, previews=None):
    """
    Validate only the fields that belong to `step`.
    Returns {field: [messages]}, empty when the step is valid.
    """
    form = build_step_form(step, values, files, previews)
    if form.is_valid():
        return {}
    return {name: list(messages) for name, messages in form.errors.items()}
