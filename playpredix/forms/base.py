from flask import request
from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict

from playpredix.errors import ValidationError

# Accepted timestamp layouts for lock dates and game times
DATETIME_FORMATS = [
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
]


def json_formdata(payload):
    """
    Turn a JSON object into form data WTForms can process.

    Nulls are dropped so optional fields stay empty, and scalars become
    strings the way a browser would send them.
    """
    formdata = MultiDict()
    for key, value in (payload or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        formdata.add(key, str(value))
    return formdata


class ApiForm(FlaskForm):
    """Form bound to a JSON request body. CSRF does not apply to the JSON API."""

    class Meta:
        csrf = False

    @classmethod
    def from_request(cls):
        payload = request.get_json(silent=True)
        if payload is not None and not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        return cls(formdata=json_formdata(payload))

    def validate_or_raise(self):
        if not self.validate():
            errors = {name: messages for name, messages in self.errors.items()}
            first = next(iter(errors.values()))[0] if errors else "Invalid input"
            raise ValidationError(first, fields=errors)
        return self
