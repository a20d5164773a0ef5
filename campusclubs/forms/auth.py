from flask_wtf import FlaskForm
from wtforms import IntegerField, PasswordField, StringField, TextAreaField
from wtforms.validators import DataRequired, Email, EqualTo, Length, NumberRange, Optional


class RegisterForm(FlaskForm):
    name = StringField("Name", validators=[DataRequired(), Length(min=2, max=50)])
    email = StringField("Email", validators=[DataRequired(), Email(), Length(max=255)])
    password = PasswordField("Password", validators=[DataRequired(), Length(min=6)])
    confirm = PasswordField(
        "Confirm Password", validators=[Optional(), EqualTo("password")]
    )
    student_id = StringField("Student Number", validators=[Optional(), Length(max=50)])
    department = StringField("Department", validators=[Optional(), Length(max=20)])
    year = IntegerField("Year", validators=[Optional(), NumberRange(min=1, max=4)])
    bio = TextAreaField("Bio", validators=[Optional(), Length(max=500)])


class LoginForm(FlaskForm):
    email = StringField("Email", validators=[DataRequired(), Email(), Length(max=255)])
    password = PasswordField("Password", validators=[DataRequired()])
