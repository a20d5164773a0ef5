from flask_wtf import FlaskForm
from wtforms import (
    BooleanField,
    DateTimeField,
    IntegerField,
    SelectMultipleField,
    StringField,
    TextAreaField,
)
from wtforms.validators import DataRequired, InputRequired, Length, NumberRange, Optional


DATETIME_FORMATS = ["%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M"]


class EventForm(FlaskForm):
    club_id = IntegerField("Club", validators=[Optional()])
    title = StringField("Title", validators=[Optional(), Length(max=200)])
    description = TextAreaField("Description", validators=[Optional()])
    location = StringField("Location", validators=[Optional(), Length(max=200)])
    category = StringField("Category", validators=[Optional()])
    type = StringField("Type", validators=[Optional()])
    status = StringField("Status", validators=[Optional()])
    start_datetime = DateTimeField(
        "Start (YYYY-MM-DD HH:MM)", validators=[Optional()], format=DATETIME_FORMATS
    )
    end_datetime = DateTimeField(
        "End (YYYY-MM-DD HH:MM)", validators=[Optional()], format=DATETIME_FORMATS
    )
    max_capacity = IntegerField("Capacity", validators=[Optional(), NumberRange(min=1)])
    registration_required = BooleanField("Registration Required")
    registration_deadline = DateTimeField(
        "Registration Deadline (YYYY-MM-DD HH:MM)",
        validators=[Optional()],
        format=DATETIME_FORMATS,
    )
    tags = SelectMultipleField("Tags", choices=[], validate_choice=False)


class RSVPForm(FlaskForm):
    status = StringField("Status", validators=[DataRequired()])
    note = TextAreaField("Note", validators=[Optional(), Length(max=500)])


class CheckInForm(FlaskForm):
    user_id = IntegerField("User", validators=[DataRequired()])


class FeedbackForm(FlaskForm):
    rating = IntegerField("Rating", validators=[InputRequired()])
    comment = TextAreaField("Comment", validators=[Optional()])
    is_anonymous = BooleanField("Anonymous")
