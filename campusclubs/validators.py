from datetime import datetime

from .errors import ValidationError


def clean_text(field, value, min_length=None, max_length=None, required=True):
    if value is None:
        if required:
            raise ValidationError(f"{field} is required.", field=field)
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be text.", field=field)
    value = value.strip()
    if not value:
        if required:
            raise ValidationError(f"{field} is required.", field=field)
        return None
    if min_length is not None and len(value) < min_length:
        raise ValidationError(
            f"{field} must be at least {min_length} characters.",
            field=field,
            min_length=min_length,
        )
    if max_length is not None and len(value) > max_length:
        raise ValidationError(
            f"{field} cannot exceed {max_length} characters.",
            field=field,
            max_length=max_length,
        )
    return value


def choice(field, value, choices):
    if value not in choices:
        raise ValidationError(
            f"{field} must be one of: {', '.join(choices)}.",
            field=field,
            allowed=list(choices),
        )
    return value


def enum_member(field, value, enum_cls):
    """Coerce ``value`` (an enum member or its string value) to ``enum_cls``."""
    if isinstance(value, enum_cls):
        return value
    for member in enum_cls:
        if member.value == value:
            return member
    raise ValidationError(
        f"{field} must be one of: {', '.join(m.value for m in enum_cls)}.",
        field=field,
        allowed=[m.value for m in enum_cls],
    )


def positive_int(field, value, minimum=1):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer.", field=field)
    if value < minimum:
        raise ValidationError(
            f"{field} must be at least {minimum}.", field=field, minimum=minimum
        )
    return value


def future_datetime(field, value, now=None):
    if not isinstance(value, datetime):
        raise ValidationError(f"{field} must be a date and time.", field=field)
    now = now or datetime.utcnow()
    if value <= now:
        raise ValidationError(f"{field} must be in the future.", field=field)
    return value


def normalize_name(name):
    return " ".join(name.split()).lower()


def tag_list(field, value, max_tags=10, max_length=30):
    """Normalize a list (or comma separated string) of tags.

    Tags are lower-cased with inner whitespace collapsed; blanks and repeats
    are dropped, keeping first-seen order.
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{field} must be a list of tags.", field=field)
    tags = []
    for item in value:
        if not isinstance(item, str):
            raise ValidationError(f"{field} must be a list of tags.", field=field)
        for tag in item.split(","):
            tag = " ".join(tag.split()).lower()
            if not tag or tag in tags:
                continue
            if len(tag) > max_length:
                raise ValidationError(
                    f"Each tag must be at most {max_length} characters.",
                    field=field,
                    max_length=max_length,
                )
            tags.append(tag)
    if len(tags) > max_tags:
        raise ValidationError(
            f"{field} cannot have more than {max_tags} entries.",
            field=field,
            max_tags=max_tags,
        )
    return tags


def ordering(columns, sort_by, sort_order, orders=("asc", "desc")):
    """ORDER BY clause for a whitelisted column name and direction."""
    column = columns[choice("sort_by", sort_by, tuple(columns))]
    if choice("sort_order", sort_order, orders) == "desc":
        return column.desc()
    return column.asc()
