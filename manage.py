#!/usr/bin/env python3
"""
PlayPredix Management CLI

Command-line administration for competitions, teams, games, questions,
grading and leagues. Actions taken here are recorded in the admin audit log
without an admin user.
"""

import click
from flask.cli import with_appcontext
from flask_migrate import upgrade
from sqlalchemy.exc import SQLAlchemyError

from playpredix import create_app, db
from playpredix.errors import PlayPredixError
from playpredix.models import Competition, Game, Profile, PropPrediction, Team
from playpredix.services import admin_service, league_service
from playpredix.services.leaderboard_service import LeaderboardService

app = create_app()

DATETIME = click.DateTime(formats=["%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M", "%Y-%m-%d"])


def _commit_or_report(success_message):
    try:
        db.session.commit()
        click.echo(f"✅ {success_message}")
        return True
    except SQLAlchemyError as e:
        db.session.rollback()
        click.echo(f"❌ Database error: {str(e)}")
        return False


@click.group()
def cli():
    """PlayPredix Management CLI"""
    pass


# Database


@cli.group(name="db")
def database():
    """Database commands"""
    pass


@database.command()
@with_appcontext
def init():
    """Create all tables"""
    db.create_all()
    click.echo("✅ Database tables created")


@database.command(name="upgrade")
@with_appcontext
def db_upgrade():
    """Apply migrations"""
    upgrade()
    click.echo("✅ Database upgraded")


# Competitions


@cli.group()
def competition():
    """Competition management commands"""
    pass


@competition.command(name="create")
@click.argument("name")
@click.option("--lock-date", type=DATETIME, required=True, help="Lock date (UTC)")
@click.option("--description", help="Description")
@click.option("--allow-draws", is_flag=True, help="Allow games to end in a draw")
@with_appcontext
def create_competition(name, lock_date, description, allow_draws):
    """Create a new competition"""
    try:
        c = admin_service.create_competition(
            name, lock_date, description=description, allow_draws=allow_draws
        )
        _commit_or_report(f"Created competition {c.name} (id={c.id})")
    except PlayPredixError as e:
        db.session.rollback()
        click.echo(f"❌ {e.message}")


@competition.command(name="list")
@with_appcontext
def list_competitions():
    """List all competitions"""
    competitions = Competition.get_all()
    if not competitions:
        click.echo("No competitions found.")
        return

    click.echo("Competitions:")
    for c in competitions:
        draws = "draws allowed" if c.allow_draws else "no draws"
        click.echo(f"  {c.id}: {c.name} - locks {c.lock_date:%Y-%m-%d %H:%M} ({draws})")


@competition.command(name="delete")
@click.argument("competition_id", type=int)
@click.confirmation_option(prompt="Delete the competition with all its picks and leagues?")
@with_appcontext
def delete_competition(competition_id):
    try:
        admin_service.delete_competition(competition_id)
        _commit_or_report(f"Deleted competition {competition_id}")
    except PlayPredixError as e:
        db.session.rollback()
        click.echo(f"❌ {e.message}")


# Teams


@cli.group()
def team():
    """Team management commands"""
    pass


@team.command(name="create")
@click.argument("name")
@click.option("--logo-url", help="Logo URL")
@with_appcontext
def create_team(name, logo_url):
    try:
        t = admin_service.create_team(name, logo_url=logo_url)
        _commit_or_report(f"Created team {t.name} (id={t.id})")
    except PlayPredixError as e:
        db.session.rollback()
        click.echo(f"❌ {e.message}")


@team.command(name="list")
@with_appcontext
def list_teams():
    teams = Team.get_all()
    if not teams:
        click.echo("No teams found.")
        return
    for t in teams:
        click.echo(f"  {t.id}: {t.name}")


# Games and questions


@cli.group()
def game():
    """Game management commands"""
    pass


@game.command(name="create")
@click.argument("competition_id", type=int)
@click.argument("team_a_id", type=int)
@click.argument("team_b_id", type=int)
@click.option("--date", "game_date", type=DATETIME, required=True, help="Kickoff (UTC)")
@click.option("--stage", help="Stage, e.g. Group A or Final")
@with_appcontext
def create_game(competition_id, team_a_id, team_b_id, game_date, stage):
    try:
        g = admin_service.create_game(
            competition_id, team_a_id, team_b_id, game_date, stage=stage
        )
        _commit_or_report(f"Created game {g.id}")
    except PlayPredixError as e:
        db.session.rollback()
        click.echo(f"❌ {e.message}")


@game.command(name="grade")
@click.argument("game_id", type=int)
@click.option("--winner", "winning_team_id", type=int, help="Winning team id")
@click.option("--draw", "is_draw", is_flag=True, help="The game ended in a draw")
@with_appcontext
def grade_game(game_id, winning_team_id, is_draw):
    """Set a game's result"""
    try:
        g = admin_service.grade_game(game_id, winning_team_id=winning_team_id, is_draw=is_draw)
        _commit_or_report(f"Game {g.id} graded")
    except PlayPredixError as e:
        db.session.rollback()
        click.echo(f"❌ {e.message}")


@game.command(name="pending")
@click.option("--competition-id", type=int)
@with_appcontext
def pending_games(competition_id):
    games = admin_service.list_pending_games(competition_id)
    if not games:
        click.echo("No games awaiting a result.")
    for g in games:
        click.echo(f"  {g.id}: {g.team_a.name} vs {g.team_b.name} ({g.status})")


@cli.group()
def prop():
    """Prop prediction commands"""
    pass


@prop.command(name="create")
@click.argument("competition_id", type=int)
@click.argument("question")
@click.option("--lock-date", type=DATETIME, required=True, help="Lock date (UTC)")
@with_appcontext
def create_prop(competition_id, question, lock_date):
    try:
        p = admin_service.create_prop_prediction(competition_id, question, lock_date)
        _commit_or_report(f"Created question {p.id}")
    except PlayPredixError as e:
        db.session.rollback()
        click.echo(f"❌ {e.message}")


@prop.command(name="grade")
@click.argument("prop_prediction_id", type=int)
@click.argument("answer")
@with_appcontext
def grade_prop(prop_prediction_id, answer):
    try:
        p = admin_service.grade_prop(prop_prediction_id, answer)
        _commit_or_report(f"Question {p.id} answered: {p.correct_answer}")
    except PlayPredixError as e:
        db.session.rollback()
        click.echo(f"❌ {e.message}")


@prop.command(name="pending")
@click.option("--competition-id", type=int)
@with_appcontext
def pending_props(competition_id):
    props = admin_service.list_pending_props(competition_id)
    if not props:
        click.echo("No questions awaiting an answer.")
    for p in props:
        click.echo(f"  {p.id}: {p.question}")


# Participants and leagues


@cli.group()
def profile():
    """Participant commands"""
    pass


@profile.command(name="create")
@click.argument("profile_id")
@click.argument("username")
@click.option("--admin", is_flag=True, help="Grant admin rights")
@with_appcontext
def create_profile(profile_id, username, admin):
    p = Profile.get_or_create(profile_id, username)
    p.is_admin = p.is_admin or admin
    _commit_or_report(f"Profile {p.username} ({p.id}){' [admin]' if p.is_admin else ''}")


@cli.group()
def league():
    """League commands"""
    pass


@league.command(name="create")
@click.argument("name")
@click.argument("competition_id", type=int)
@click.argument("admin_id")
@with_appcontext
def create_league(name, competition_id, admin_id):
    try:
        lg = league_service.create_league(name, competition_id, admin_id)
        _commit_or_report(f"Created league {lg.name} - invite code {lg.invite_code}")
    except PlayPredixError as e:
        db.session.rollback()
        click.echo(f"❌ {e.message}")


# Leaderboard


@cli.command()
@click.argument("competition_id", type=int)
@click.option("--league-id", help="Show a league leaderboard")
@with_appcontext
def leaderboard(competition_id, league_id):
    """Print a leaderboard"""
    try:
        board = LeaderboardService().get_leaderboard(competition_id, league_id=league_id)
    except PlayPredixError as e:
        click.echo(f"❌ {e.message}")
        return

    title = board.league.name if board.league else "Public"
    click.echo(f"{board.competition.name} - {title}")
    if not board.entries:
        click.echo("  No participants yet.")
    for entry in board.entries:
        click.echo(
            f"  {entry.rank:>3}. {entry.display_name:<24} {entry.score:>4} pts "
            f"({entry.correct_picks}/{entry.total_graded_picks})"
        )


@cli.command()
@with_appcontext
def status():
    """Show application status"""
    click.echo("PlayPredix Status")
    click.echo("=" * 40)
    click.echo(f"🏆 Competitions: {Competition.query.count()}")
    click.echo(f"👥 Participants: {Profile.query.count()}")
    graded = Game.query.filter(
        db.or_(Game.winning_team_id.isnot(None), Game.is_draw.is_(True))
    ).count()
    click.echo(f"⚽ Games: {graded}/{Game.query.count()} graded")
    answered = PropPrediction.query.filter(PropPrediction.correct_answer.isnot(None)).count()
    click.echo(f"❓ Questions: {answered}/{PropPrediction.query.count()} answered")


if __name__ == "__main__":
    with app.app_context():
        cli()
