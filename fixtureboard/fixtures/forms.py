"""Forms for the fixtures blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import SelectField, StringField, ValidationError
from wtforms.validators import DataRequired, Optional, Regexp

from fixtureboard.core.constants import (
    CATEGORY_LABELS,
    CATEGORY_ORDER,
    FIXTURE_STYLES,
    FIXTURE_TYPE_LABELS,
)

from .models import CustomFixtureSubmission, TieSubmission

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class TieForm(FlaskForm):
    """Form for generating a Game Breaker or Mini Game Breaker tie."""

    team1 = StringField("Team 1", validators=[DataRequired()])
    team2 = StringField("Team 2", validators=[DataRequired()])
    date = StringField("Date", validators=[DataRequired()])
    time = StringField(
        "Time",
        validators=[Optional(), Regexp(TIME_PATTERN, message="Time must be in HH:MM format.")],
    )
    pool = StringField("Pool", validators=[Optional()])
    court = StringField("Court", validators=[Optional()])
    venue_id = StringField("Venue", validators=[Optional()])

    def validate_team2(self, field):
        """Validate that a team is not drawn against itself."""
        if field.data and field.data == self.team1.data:
            raise ValidationError("Team 1 and Team 2 cannot be the same.")

    def to_submission(self) -> TieSubmission:
        return TieSubmission(
            team1=self.team1.data,
            team2=self.team2.data,
            date=self.date.data,
            time=self.time.data or "",
            pool=self.pool.data or None,
            court=self.court.data or None,
            venue_id=self.venue_id.data or None,
        )


class CustomFixtureForm(TieForm):
    """Form for creating a single fixture by hand."""

    match_type = SelectField(
        "Match Type",
        choices=[(key, CATEGORY_LABELS[key]) for key in CATEGORY_ORDER],
        validators=[DataRequired()],
    )
    time = StringField(
        "Time",
        validators=[
            DataRequired(),
            Regexp(TIME_PATTERN, message="Time must be in HH:MM format."),
        ],
    )
    player1_team1 = StringField("Team 1 Player 1", validators=[Optional()])
    player2_team1 = StringField("Team 1 Player 2", validators=[Optional()])
    player1_team2 = StringField("Team 2 Player 1", validators=[Optional()])
    player2_team2 = StringField("Team 2 Player 2", validators=[Optional()])
    youtube_link = StringField("YouTube Link", validators=[Optional()])

    def to_submission(self) -> CustomFixtureSubmission:  # type: ignore[override]
        return CustomFixtureSubmission(
            match_type=self.match_type.data,
            team1=self.team1.data,
            team2=self.team2.data,
            date=self.date.data,
            time=self.time.data,
            pool=self.pool.data or None,
            court=self.court.data or None,
            venue_id=self.venue_id.data or None,
            player1_team1=self.player1_team1.data or "",
            player2_team1=self.player2_team1.data or "",
            player1_team2=self.player1_team2.data or "",
            player2_team2=self.player2_team2.data or "",
            youtube_link=self.youtube_link.data or "",
        )


class FixtureStyleForm(FlaskForm):
    """Form for remembering a tournament's preferred fixture format."""

    style = SelectField(
        "Fixture Style",
        choices=[(style, FIXTURE_TYPE_LABELS[style]) for style in FIXTURE_STYLES],
        validators=[DataRequired()],
    )


def first_error(form: FlaskForm) -> str:
    """The first validation message of a form, for JSON error responses."""
    for errors in form.errors.values():
        if errors:
            return str(errors[0])
    return "Invalid input."
