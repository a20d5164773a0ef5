from flask import current_app, request

from .errors import ValidationError


def get_page(default=1):
    try:
        return max(1, int(request.args.get("page", default)))
    except (TypeError, ValueError):
        return default


def get_per_page():
    default = current_app.config.get("ITEMS_PER_PAGE", 12)
    limit = current_app.config.get("MAX_ITEMS_PER_PAGE", 100)
    try:
        per_page = int(request.args.get("limit", default))
    except (TypeError, ValueError):
        return default
    return min(max(1, per_page), limit)


def get_flag(name, default=True):
    value = request.args.get(name)
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes")


def validate_form(form):
    """Return the form if it validates, else raise the first field error."""
    if not form.validate_on_submit():
        errors = form.errors or {None: ["Invalid input."]}
        field, messages = next(iter(errors.items()))
        raise ValidationError(messages[0], field=field, errors=errors)
    return form


def submitted_data(form, exclude=()):
    """Data of the fields present in the request body."""
    return {
        field.name: field.data
        for field in form
        if getattr(field, "raw_data", None)
        and field.name not in exclude
        and field.name != "csrf_token"
    }
