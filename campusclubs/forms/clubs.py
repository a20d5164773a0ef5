from flask_wtf import FlaskForm
from wtforms import (
    BooleanField,
    IntegerField,
    SelectMultipleField,
    StringField,
    TextAreaField,
)
from wtforms.validators import DataRequired, Email, Length, NumberRange, Optional


class ClubForm(FlaskForm):
    name = StringField("Club Name", validators=[Optional(), Length(max=100)])
    description = TextAreaField("Description", validators=[Optional()])
    category = StringField("Category", validators=[Optional()])
    department = StringField("Department", validators=[Optional()])
    focus = StringField("Focus", validators=[Optional(), Length(max=200)])
    contact_email = StringField("Contact Email", validators=[Optional(), Email()])
    meeting_day = StringField("Meeting Day", validators=[Optional()])
    meeting_time = StringField("Meeting Time (HH:MM)", validators=[Optional()])
    meeting_location = StringField("Meeting Location", validators=[Optional()])
    meeting_frequency = StringField("Meeting Frequency", validators=[Optional()])
    max_members = IntegerField("Max Members", validators=[Optional(), NumberRange(min=1)])
    join_approval_required = BooleanField("Approval Required")
    is_active = BooleanField("Active")
    # free-form: a JSON list or a comma separated string
    tags = SelectMultipleField("Tags", choices=[], validate_choice=False)


class JoinForm(FlaskForm):
    message = TextAreaField("Message", validators=[Optional(), Length(max=500)])


class MemberUpdateForm(FlaskForm):
    role = StringField("Role", validators=[Optional()])
    status = StringField("Status", validators=[Optional()])


class AdminForm(FlaskForm):
    user_id = IntegerField("User", validators=[DataRequired()])
    role = StringField("Role", validators=[Optional()])
