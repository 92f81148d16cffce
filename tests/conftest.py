from datetime import datetime, timedelta

import pytest
from flask import g

from playpredix import create_app, db
from playpredix.models import (
    Competition,
    Game,
    League,
    LeagueMember,
    Profile,
    PropPrediction,
    Team,
)

# Fixed reference instant, far enough ahead that fixtures stay open for
# requests made with the real clock
NOW = datetime(2099, 7, 18, 15, 0, 0)
KICKOFF = NOW + timedelta(hours=2)


@pytest.fixture
def app():
    app = create_app("testing")

    # Requests share the fixture's app context, so drop the cached user
    # and resolve the identity header afresh each time
    @app.before_request
    def reset_identity():
        g.pop("_login_user", None)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def auth(profile_id):
    return {"X-Participant-Id": profile_id}


def make_profile(profile_id, username=None, is_admin=False):
    profile = Profile(id=profile_id, username=username or profile_id, is_admin=is_admin)
    db.session.add(profile)
    db.session.flush()
    return profile


def make_competition(name="World Cup", allow_draws=True, lock_date=None):
    competition = Competition(
        name=name,
        lock_date=lock_date or NOW + timedelta(days=1),
        allow_draws=allow_draws,
    )
    db.session.add(competition)
    db.session.flush()
    return competition


def make_team(name):
    team = Team(name=name)
    db.session.add(team)
    db.session.flush()
    return team


def make_game(competition, team_a, team_b, game_date=None, stage=None):
    game = Game(
        competition_id=competition.id,
        team_a_id=team_a.id,
        team_b_id=team_b.id,
        game_date=game_date or KICKOFF,
        stage=stage,
    )
    db.session.add(game)
    db.session.flush()
    return game


def make_prop(competition, question="Will the final go to penalties?", lock_date=None):
    prop = PropPrediction(
        competition_id=competition.id,
        question=question,
        lock_date=lock_date or KICKOFF,
    )
    db.session.add(prop)
    db.session.flush()
    return prop


def make_league(competition, admin, name="Office League", members=()):
    league = League(name=name, admin_id=admin.id, competition_id=competition.id)
    db.session.add(league)
    db.session.flush()
    db.session.add(LeagueMember(league_id=league.id, user_id=admin.id))
    for member in members:
        db.session.add(LeagueMember(league_id=league.id, user_id=member.id))
    db.session.flush()
    return league


@pytest.fixture
def world(app):
    """A competition with two teams, one game, one question and three participants"""
    competition = make_competition()
    brazil = make_team("Brazil")
    france = make_team("France")
    game = make_game(competition, brazil, france)
    prop = make_prop(competition)
    alice = make_profile("alice")
    bob = make_profile("bob")
    carol = make_profile("carol")
    admin = make_profile("admin", is_admin=True)
    db.session.commit()
    return {
        "competition": competition,
        "brazil": brazil,
        "france": france,
        "game": game,
        "prop": prop,
        "alice": alice,
        "bob": bob,
        "carol": carol,
        "admin": admin,
    }
