from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import StringField, PasswordField, BooleanField, IntegerField, SelectMultipleField
from wtforms.validators import DataRequired, Email, Length, AnyOf, NumberRange, Optional # Import standard validators.
from models import CampaignTypeEnum, CampaignStatusEnum, PlatformNameEnum

# The API is JSON only and authenticated by session cookie with SameSite=Lax,
# so these forms validate request bodies and do not carry CSRF tokens.

class RegistrationForm(FlaskForm):
    """
    Validates a registration request body.
    Uniqueness of username and email is checked by the route, which answers with a specific message for each.
    """
    class Meta:
        csrf = False

    username = StringField('Username', validators=[DataRequired(message="Username is required."), Length(min=3, max=80, message="Username must be between 3 and 80 characters long.")])
    email = StringField('Email', validators=[DataRequired(message="Email is required."), Email(message="Invalid email address.")])
    password = PasswordField('Password', validators=[DataRequired(message="Password is required."), Length(min=6, message="Password must be at least 6 characters long.")])
    full_name = StringField('Full Name', validators=[Optional(), Length(max=100)])

class LoginForm(FlaskForm):
    """Validates a login request body. Checking the credentials is left to the route."""
    class Meta:
        csrf = False

    username = StringField('Username', validators=[DataRequired(message="Username is required.")])
    password = PasswordField('Password', validators=[DataRequired(message="Password is required.")])
    remember = BooleanField('Remember Me')

class CampaignForm(FlaskForm):
    """
    Validates a full set of campaign fields.
    Partial updates are validated by merging the changes over the stored campaign first (see campaign_formdata).
    """
    class Meta:
        csrf = False

    name = StringField('Name', validators=[DataRequired(message="Name is required."), Length(max=255)])
    type = StringField('Type', validators=[
        DataRequired(message="Type is required."),
        AnyOf([t.value for t in CampaignTypeEnum], message="Type must be one of: %(values)s."),
    ])
    status = StringField('Status', validators=[
        DataRequired(message="Status is required."),
        AnyOf([s.value for s in CampaignStatusEnum], message="Status must be one of: %(values)s."),
    ])
    platforms = SelectMultipleField('Platforms', choices=[(p.value, p.value) for p in PlatformNameEnum])
    performance = IntegerField('Performance', validators=[Optional(), NumberRange(min=0, max=100, message="Performance must be between 0 and 100.")])

def validate_campaign_fields(fields):
    """
    Runs CampaignForm over a dict of campaign fields.

    Returns:
        tuple: (data, errors). `data` holds the cleaned fields when valid, otherwise `errors` holds the form errors.
    """
    form = CampaignForm(formdata=campaign_formdata(fields))
    if not form.validate():
        return None, form.errors
    return {
        'name': form.name.data.strip(),
        'type': form.type.data,
        'status': form.status.data,
        'platforms': list(form.platforms.data or []),
        'performance': form.performance.data,
    }, None

def campaign_formdata(fields):
    """
    Turns a campaign JSON body into form data for CampaignForm.

    Flask-WTF wraps a JSON body as a flat mapping, which would turn the `platforms`
    list into a single value; list items become repeated keys here instead.
    """
    formdata = MultiDict()
    for key, value in fields.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            for item in value:
                formdata.add(key, str(item))
        else:
            formdata.add(key, str(value))
    return formdata
