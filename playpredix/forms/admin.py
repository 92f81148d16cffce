from wtforms import (
    BooleanField,
    DateTimeField,
    IntegerField,
    StringField,
    TextAreaField,
    ValidationError,
)
from wtforms.validators import URL, DataRequired, InputRequired, Length, Optional

from playpredix.forms.base import DATETIME_FORMATS, ApiForm


class CompetitionForm(ApiForm):
    name = StringField(
        "Name",
        validators=[
            DataRequired(message="Name and Lock Date are required."),
            Length(max=100),
        ],
    )
    description = TextAreaField("Description", validators=[Optional(), Length(max=2000)])
    lock_date = DateTimeField(
        "Lock Date",
        format=DATETIME_FORMATS,
        validators=[DataRequired(message="Name and Lock Date are required.")],
    )
    allow_draws = BooleanField("Allow draws", default=False)


class TeamForm(ApiForm):
    name = StringField(
        "Team Name",
        validators=[DataRequired(message="Team name is required."), Length(max=100)],
    )
    logo_url = StringField("Logo URL", validators=[Optional(), URL(), Length(max=500)])


class GameForm(ApiForm):
    competition_id = IntegerField(
        "Competition",
        validators=[InputRequired(message="All fields except Stage are required.")],
    )
    team_a_id = IntegerField(
        "Team A",
        validators=[InputRequired(message="All fields except Stage are required.")],
    )
    team_b_id = IntegerField(
        "Team B",
        validators=[InputRequired(message="All fields except Stage are required.")],
    )
    game_date = DateTimeField(
        "Game Date",
        format=DATETIME_FORMATS,
        validators=[DataRequired(message="All fields except Stage are required.")],
    )
    stage = StringField("Stage", validators=[Optional(), Length(max=50)])

    def validate_team_b_id(self, field):
        if field.data is not None and field.data == self.team_a_id.data:
            raise ValidationError("A team cannot play itself.")


class PropPredictionForm(ApiForm):
    competition_id = IntegerField(
        "Competition", validators=[InputRequired(message="All fields are required.")]
    )
    question = StringField(
        "Question",
        validators=[DataRequired(message="All fields are required."), Length(max=500)],
    )
    lock_date = DateTimeField(
        "Lock Date",
        format=DATETIME_FORMATS,
        validators=[DataRequired(message="All fields are required.")],
    )


class GameResultForm(ApiForm):
    winning_team_id = IntegerField("Winning Team", validators=[Optional()])
    is_draw = BooleanField("Draw", default=False)


class PropAnswerForm(ApiForm):
    correct_answer = StringField(
        "Correct Answer",
        validators=[DataRequired(message="Correct answer is required"), Length(max=200)],
    )
