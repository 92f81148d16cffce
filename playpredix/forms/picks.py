from wtforms import IntegerField, StringField
from wtforms.validators import DataRequired, Length, Optional

from playpredix.forms.base import ApiForm


class MakePickForm(ApiForm):
    game_id = IntegerField("Game", validators=[Optional()])
    prop_prediction_id = IntegerField("Question", validators=[Optional()])
    pick = StringField(
        "Pick",
        filters=[lambda value: value.strip() if value else value],
        validators=[DataRequired(message="A pick value is required"), Length(max=200)],
    )

    def validate(self, extra_validators=None):
        if not super().validate(extra_validators):
            return False
        # Optional() ends the field chain, so the pairing is checked here
        if (self.game_id.data is None) == (self.prop_prediction_id.data is None):
            self.game_id.errors.append(
                "A pick needs exactly one of game_id or prop_prediction_id"
            )
            return False
        return True
