"""
Tests for league creation, joining, leaving and deletion.
"""

import pytest

from playpredix import db
from playpredix.errors import NotFound, ValidationError
from playpredix.models import League
from playpredix.models.league import INVITE_CODE_PATTERN
from playpredix.services import league_service


def test_create_league_makes_creator_admin_and_member(world):
    league = league_service.create_league("  Office  ", world["competition"].id, "alice")
    db.session.commit()

    assert league.name == "Office"
    assert league.admin_id == "alice"
    assert league.is_user_member("alice")
    assert INVITE_CODE_PATTERN.match(league.invite_code)
    assert league.get_member_count() == 1


@pytest.mark.parametrize(
    "name, message",
    [
        ("", "League name is required"),
        ("A", "League name must be at least 2 characters"),
        ("x" * 51, "League name must be less than 50 characters"),
    ],
)
def test_league_name_rules(world, name, message):
    with pytest.raises(ValidationError) as excinfo:
        league_service.create_league(name, world["competition"].id, "alice")
    assert excinfo.value.message == message


def test_create_league_for_unknown_competition(world):
    with pytest.raises(NotFound):
        league_service.create_league("Office", 999, "alice")


def test_join_by_invite_code_is_case_insensitive(world):
    league = league_service.create_league("Office", world["competition"].id, "alice")
    db.session.commit()

    success, message, joined = league_service.join_league(
        league.invite_code.lower(), "bob"
    )
    db.session.commit()

    assert success, message
    assert joined.id == league.id
    assert league.is_user_member("bob")


def test_joining_twice_is_reported(world):
    league = league_service.create_league("Office", world["competition"].id, "alice")
    db.session.commit()

    success, message, _ = league_service.join_league(league.invite_code, "alice")
    assert not success
    assert "already a member" in message


@pytest.mark.parametrize(
    "code, message",
    [
        ("", "Invite code is required"),
        ("BADCODE", "Invalid invite code format"),
        ("LEAGUE-ZZZZZZ", "No league found with that invite code"),
    ],
)
def test_bad_invite_codes(world, code, message):
    success, reported, league = league_service.join_league(code, "bob")
    assert not success
    assert reported == message
    assert league is None


def test_admin_cannot_leave_but_member_can(world):
    league = league_service.create_league("Office", world["competition"].id, "alice")
    league_service.join_league(league.invite_code, "bob")
    db.session.commit()

    assert league_service.leave_league(league.id, "alice")[0] is False
    assert league_service.leave_league(league.id, "bob")[0] is True
    db.session.commit()
    assert not league.is_user_member("bob")


def test_only_admin_deletes_league(world):
    league = league_service.create_league("Office", world["competition"].id, "alice")
    league_service.join_league(league.invite_code, "bob")
    db.session.commit()
    league_id = league.id

    assert league_service.delete_league(league_id, "bob")[0] is False
    assert league_service.delete_league(league_id, "alice")[0] is True
    db.session.commit()
    assert db.session.get(League, league_id) is None


def test_list_leagues_for_user(world):
    first = league_service.create_league("First", world["competition"].id, "alice")
    second = league_service.create_league("Second", world["competition"].id, "bob")
    league_service.join_league(second.invite_code, "alice")
    db.session.commit()

    assert {lg.id for lg in league_service.list_leagues_for_user("alice")} == {first.id, second.id}
    assert [lg.id for lg in league_service.list_leagues_for_user("bob")] == [second.id]
    assert league_service.list_leagues_for_user("carol") == []


def test_admin_removes_member_but_not_self(world):
    league = league_service.create_league("Office", world["competition"].id, "alice")
    league_service.join_league(league.invite_code, "bob")
    league_service.join_league(league.invite_code, "carol")
    db.session.commit()

    assert league_service.remove_member(league.id, "bob", "carol") == (
        False,
        "Only the league admin can remove members",
    )
    assert league_service.remove_member(league.id, "alice", "alice")[0] is False
    assert league_service.remove_member(league.id, "alice", "dave")[0] is False

    assert league_service.remove_member(league.id, "alice", "bob") == (True, "Member removed")
    db.session.commit()
    assert league.get_member_ids() == {"alice", "carol"}


def test_remove_member_from_unknown_league(world):
    with pytest.raises(NotFound):
        league_service.remove_member("missing", "alice", "bob")
