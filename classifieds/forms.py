import pytz
from flask import current_app
from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileAllowed, FileRequired
from wtforms import StringField, PasswordField, BooleanField, SubmitField, TextAreaField, SelectField, RadioField
from wtforms.validators import DataRequired, Email, EqualTo, Length, ValidationError, Optional
from .domain.models import User, Gender

ALLOWED_PHOTO_EXTENSIONS = ['jpg', 'jpeg', 'png', 'gif', 'webp']


def validate_strong_password(form, field):
    """Custom validator for strong passwords"""
    if not User.is_password_strong(field.data):
        requirements = User.get_password_requirements()
        raise ValidationError(f"Password must meet the following requirements: {'; '.join(requirements)}")


def timezone_choices():
    return [(tz, tz) for tz in pytz.common_timezones]


def language_choices():
    return list(current_app.config.get('SUPPORTED_LANGUAGES', [('en', 'English')]))


class LoginForm(FlaskForm):
    auth_field = SelectField('Login with', choices=[('email', 'Email'), ('phone', 'Phone')], default='email')
    email = StringField('Email', validators=[Optional(), Email()])
    phone = StringField('Phone', validators=[Optional(), Length(max=30)])
    password = PasswordField('Password', validators=[DataRequired()])
    remember_me = BooleanField('Remember Me')
    submit = SubmitField('Sign In')

    def __init__(self, *args, **kwargs):
        super(LoginForm, self).__init__(*args, **kwargs)
        fields = current_app.config.get('AUTH_FIELDS', ['email', 'phone'])
        self.auth_field.choices = [(f, f.title()) for f in fields]
        if not self.auth_field.data:
            self.auth_field.data = current_app.config.get('DEFAULT_AUTH_FIELD', 'email')

    @property
    def identifier(self):
        return getattr(self, self.auth_field.data).data

    def validate(self, extra_validators=None):
        if not super(LoginForm, self).validate(extra_validators=extra_validators):
            return False
        selected = getattr(self, self.auth_field.data)
        if not (selected.data or '').strip():
            selected.errors.append(f'Please enter your {self.auth_field.data}.')
            return False
        return True


class TwoFactorForm(FlaskForm):
    code = StringField('Verification code', validators=[DataRequired(), Length(min=4, max=10)])
    submit = SubmitField('Verify')


class ProfileForm(FlaskForm):
    name = StringField('Name', validators=[DataRequired(), Length(max=100)])
    username = StringField('Username', validators=[
        Optional(),
        Length(min=3, max=20, message='Username must be between 3 and 20 characters')
    ])
    email = StringField('Email', validators=[DataRequired(), Email()])
    phone = StringField('Phone', validators=[Optional(), Length(max=30)])
    phone_hidden = BooleanField('Hide my phone number on my posts')
    gender_id = SelectField('Gender', choices=[], default='')
    about = TextAreaField('About', validators=[Optional(), Length(max=500)])
    submit = SubmitField('Update Profile')

    def __init__(self, *args, **kwargs):
        super(ProfileForm, self).__init__(*args, **kwargs)
        self.gender_id.choices = [('', '-')] + [(str(g.value), g.title) for g in Gender]

    @property
    def gender_value(self):
        return int(self.gender_id.data) if self.gender_id.data else None


class PhotoForm(FlaskForm):
    photo = FileField('Photo', validators=[
        FileRequired(),
        FileAllowed(ALLOWED_PHOTO_EXTENSIONS, 'Images only!')
    ])
    submit = SubmitField('Upload')


class ChangePasswordForm(FlaskForm):
    # Optional: accounts created through a social provider have no password yet
    current_password = PasswordField('Current Password', validators=[Optional()])
    new_password = PasswordField('New Password', validators=[
        DataRequired(),
        validate_strong_password
    ])
    new_password2 = PasswordField('Repeat New Password', validators=[
        DataRequired(),
        EqualTo('new_password', message='Passwords must match')
    ])
    submit = SubmitField('Change Password')


class TwoFactorSetupForm(FlaskForm):
    two_factor_enabled = BooleanField('Require a verification code when signing in')
    submit = SubmitField('Save')


class PreferencesForm(FlaskForm):
    language_code = SelectField('Language', choices=[])
    timezone = SelectField('Timezone', choices=[], default='UTC')
    accept_marketing_offers = BooleanField('I want to receive marketing offers')
    submit = SubmitField('Update Preferences')

    def __init__(self, *args, **kwargs):
        super(PreferencesForm, self).__init__(*args, **kwargs)
        self.language_code.choices = language_choices()
        self.timezone.choices = timezone_choices()


class ClosingForm(FlaskForm):
    close_account = RadioField('Do you want to close your account?',
                               choices=[('yes', 'Yes'), ('no', 'No')], default='no')
    submit = SubmitField('Submit')


class SubscriptionForm(FlaskForm):
    package_id = SelectField('Package', coerce=int, choices=[], validators=[DataRequired()])
    payment_method = SelectField('Payment method', choices=[], validators=[Optional()])
    submit = SubmitField('Subscribe')

    def __init__(self, packages=(), *args, **kwargs):
        super(SubscriptionForm, self).__init__(*args, **kwargs)
        self.package_id.choices = [(p.id, p.name) for p in packages]
        self.payment_method.choices = list(current_app.config.get('PAYMENT_METHODS', []))


class ContactAuthorForm(FlaskForm):
    name = StringField('Name', validators=[Optional(), Length(max=100)])
    email = StringField('Email', validators=[Optional(), Email()])
    phone = StringField('Phone', validators=[Optional(), Length(max=30)])
    body = TextAreaField('Message', validators=[DataRequired(), Length(max=1000)])
    submit = SubmitField('Send message')


class ReplyForm(FlaskForm):
    body = TextAreaField('Message', validators=[DataRequired(), Length(max=1000)])
    submit = SubmitField('Reply')
