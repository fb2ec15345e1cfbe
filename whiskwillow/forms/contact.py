"""Contact form validation.

The form is fed from the decoded request body rather than bound to the
request, so it can be run anywhere, app context or not.
"""

import re
from dataclasses import dataclass, field, asdict
from typing import List, Optional

from wtforms import Form, StringField, TextAreaField
from wtforms.validators import DataRequired, Length, Regexp, AnyOf, ValidationError

from whiskwillow.models.contact import ORDER_TYPES

EMAIL_PATTERN = r'^[^\s@]+@[^\s@]+\.[^\s@]+$'
PHONE_PATTERN = re.compile(r'^[\d\s+\-()]{10,}$')
MESSAGE_MIN_LENGTH = 10
MESSAGE_MAX_LENGTH = 2000


def _clean(value):
    if value is None:
        return ''
    if not isinstance(value, str):
        value = str(value)
    return value.strip()


def _lower(value):
    return value.lower() if value else value


def phone_number(form, field):
    """Loose phone check: digits and punctuation, 10+ characters once spaces go."""
    if field.data and not PHONE_PATTERN.match(re.sub(r'\s', '', field.data)):
        raise ValidationError('Please enter a valid phone number')


class ContactForm(Form):
    """Contact form. Every field is checked; errors are not short-circuited."""
    name = StringField('Name', filters=[_clean], validators=[
        Length(min=2, message='Name must be at least 2 characters'),
        Length(max=100, message='Name cannot exceed 100 characters')
    ])
    email = StringField('Email', filters=[_clean, _lower], validators=[
        DataRequired(message='Email is required'),
        Regexp(EMAIL_PATTERN, message='Please enter a valid email address'),
        Length(max=254, message='Email cannot exceed 254 characters')
    ])
    phone = StringField('Phone', filters=[_clean], validators=[
        phone_number,
        Length(max=30, message='Phone number cannot exceed 30 characters')
    ])
    order_type = StringField('Order Type', filters=[_clean], validators=[
        AnyOf(ORDER_TYPES, message='Please choose a valid order type')
    ])
    message = TextAreaField('Message', filters=[_clean], validators=[
        DataRequired(message='Message is required'),
        Length(min=MESSAGE_MIN_LENGTH,
               message=f'Message must be at least {MESSAGE_MIN_LENGTH} characters'),
        Length(max=MESSAGE_MAX_LENGTH,
               message=f'Message cannot exceed {MESSAGE_MAX_LENGTH} characters')
    ])

    def error_list(self):
        """Errors flattened in field order."""
        errors = []
        for form_field in self:
            errors.extend(form_field.errors)
        return errors


@dataclass(frozen=True)
class ContactPayload:
    """Normalized contact form values."""
    name: str
    email: str
    phone: str
    order_type: str
    message: str

    def as_dict(self):
        return asdict(self)


@dataclass
class ValidationResult:
    contact: Optional[ContactPayload] = None
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self):
        return self.contact is not None and not self.errors


def validate_submission(payload):
    """Check a raw payload; return the normalized contact or every violated rule."""
    if not isinstance(payload, dict):
        return ValidationResult(errors=['Request body must be a JSON object'])

    form = ContactForm(data={
        'name': payload.get('name'),
        'email': payload.get('email'),
        'phone': payload.get('phone'),
        'order_type': payload.get('orderType'),
        'message': payload.get('message'),
    })
    if not form.validate():
        return ValidationResult(errors=form.error_list())

    return ValidationResult(contact=ContactPayload(
        name=form.name.data,
        email=form.email.data,
        phone=form.phone.data,
        order_type=form.order_type.data,
        message=form.message.data,
    ))
