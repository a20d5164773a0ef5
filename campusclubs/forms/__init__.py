from .auth import RegisterForm, LoginForm
from .clubs import ClubForm, JoinForm, MemberUpdateForm, AdminForm
from .events import EventForm, RSVPForm, CheckInForm, FeedbackForm

__all__ = [
    "RegisterForm",
    "LoginForm",
    "ClubForm",
    "JoinForm",
    "MemberUpdateForm",
    "AdminForm",
    "EventForm",
    "RSVPForm",
    "CheckInForm",
    "FeedbackForm",
]
