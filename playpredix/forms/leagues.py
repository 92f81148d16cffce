from wtforms import IntegerField, StringField
from wtforms.validators import DataRequired, InputRequired, Length, Regexp

from playpredix.forms.base import ApiForm
from playpredix.models.league import INVITE_CODE_PATTERN


def _strip(value):
    return value.strip() if value else value


class CreateLeagueForm(ApiForm):
    name = StringField(
        "League Name",
        filters=[_strip],
        validators=[
            DataRequired(message="League name is required"),
            Length(min=2, message="League name must be at least 2 characters"),
            Length(max=50, message="League name must be less than 50 characters"),
        ],
    )
    competition_id = IntegerField(
        "Competition", validators=[InputRequired(message="Please select a competition")]
    )


class JoinLeagueForm(ApiForm):
    invite_code = StringField(
        "Invite Code",
        filters=[_strip],
        validators=[
            DataRequired(message="Invite code is required"),
            Regexp(INVITE_CODE_PATTERN, message="Invalid invite code format"),
        ],
    )
