CLUB_CATEGORIES = (
    "Technical",
    "Cultural",
    "Social Service",
    "Environmental",
    "Innovation & Entrepreneurship",
    "Sports",
    "Academic",
    "Personality Development",
    "Professional Development",
    "Media & Communication",
    "Health & Wellbeing",
)

DEPARTMENTS = (
    "Institution-wide",
    "CSE/ISE",
    "ECE",
    "EEE",
    "Mechanical Engineering",
    "Civil Engineering",
    "Open to all students",
    "Multi-disciplinary",
    "CSE/ISE (tech-focused)",
    "ECE (exclusive)",
    "Cultural club",
    "Environmental initiative",
    "Social initiative",
    "Under Placement Cell",
)
DEFAULT_DEPARTMENT = "Institution-wide"

STUDENT_DEPARTMENTS = ("CSE", "ISE", "ECE", "EEE", "ME", "CE", "Other")

MEETING_DAYS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
MEETING_FREQUENCIES = ("weekly", "bi-weekly", "monthly", "as-needed")

EVENT_CATEGORIES = (
    "workshop",
    "seminar",
    "competition",
    "meeting",
    "social",
    "cultural",
    "technical",
    "sports",
    "academic",
    "networking",
    "fundraising",
    "volunteering",
    "other",
)
DEFAULT_EVENT_CATEGORY = "other"

DEFAULT_MAX_MEMBERS = 100
DEFAULT_EVENT_CAPACITY = 100

CLUB_NAME_LENGTH = (3, 100)
CLUB_DESCRIPTION_LENGTH = (20, 1000)
CLUB_FOCUS_MAX = 200
JOIN_MESSAGE_MAX = 500

EVENT_TITLE_LENGTH = (3, 200)
EVENT_DESCRIPTION_LENGTH = (10, 2000)
EVENT_LOCATION_MAX = 200
RSVP_NOTE_MAX = 500
FEEDBACK_COMMENT_MAX = 1000

USER_NAME_LENGTH = (2, 50)
USER_BIO_MAX = 500
PASSWORD_MIN_LENGTH = 6

RATING_RANGE = (1, 5)

MAX_TAGS = 10
TAG_MAX_LENGTH = 30
