"""Tests for lobby team building."""

import pytest

from apoxer.lobby.teams import MAX_TEAM_MEMBERS, TeamError, TeamRoster


@pytest.fixture
def roster() -> TeamRoster:
    return TeamRoster()


class TestCreateTeam:
    def test_creator_leads(self, roster: TeamRoster):
        team = roster.create_team("u1", "alice", "PC")

        assert team.name == "Team A"
        assert len(team.members) == 1
        assert team.members[0].is_leader is True
        assert team.members[0].is_ready is False
        assert team.max_members == MAX_TEAM_MEMBERS

    def test_teams_named_in_order(self, roster: TeamRoster):
        roster.create_team("u1", "alice")
        second = roster.create_team("u2", "bob")
        assert second.name == "Team B"

    def test_cannot_create_while_in_team(self, roster: TeamRoster):
        roster.create_team("u1", "alice")

        with pytest.raises(TeamError) as exc_info:
            roster.create_team("u1", "alice")
        assert exc_info.value.code == "already_in_team"


class TestInvite:
    def test_invite_adds_member(self, roster: TeamRoster):
        team = roster.create_team("u1", "alice")
        member = roster.invite(team.id, "u2", "bob", "Xbox")

        assert member in team.members
        assert member.is_leader is False
        assert roster.find_team_of("u2") is team

    def test_full_team(self, roster: TeamRoster):
        team = roster.create_team("u0", "leader")
        for i in range(1, MAX_TEAM_MEMBERS):
            roster.invite(team.id, f"u{i}", f"player{i}")

        with pytest.raises(TeamError) as exc_info:
            roster.invite(team.id, "late", "late")
        assert exc_info.value.code == "team_full"

    def test_unknown_team(self, roster: TeamRoster):
        with pytest.raises(TeamError) as exc_info:
            roster.invite("team-missing", "u2", "bob")
        assert exc_info.value.code == "team_not_found"

    def test_player_in_other_team(self, roster: TeamRoster):
        first = roster.create_team("u1", "alice")
        roster.create_team("u2", "bob")

        with pytest.raises(TeamError) as exc_info:
            roster.invite(first.id, "u2", "bob")
        assert exc_info.value.code == "already_in_team"


class TestMembership:
    def test_remove_member(self, roster: TeamRoster):
        team = roster.create_team("u1", "alice")
        member = roster.invite(team.id, "u2", "bob")

        roster.remove_member(team.id, member.id)

        assert roster.find_team_of("u2") is None

    def test_remove_unknown_member(self, roster: TeamRoster):
        team = roster.create_team("u1", "alice")
        with pytest.raises(TeamError) as exc_info:
            roster.remove_member(team.id, "member-missing")
        assert exc_info.value.code == "member_not_found"

    def test_toggle_ready(self, roster: TeamRoster):
        team = roster.create_team("u1", "alice")
        member_id = team.members[0].id

        assert roster.toggle_ready(team.id, member_id) is True
        assert roster.toggle_ready(team.id, member_id) is False

    def test_leader_leaving_promotes_next(self, roster: TeamRoster):
        team = roster.create_team("u1", "alice")
        roster.invite(team.id, "u2", "bob")

        roster.leave("u1")

        assert [m.username for m in team.members] == ["bob"]
        assert team.members[0].is_leader is True

    def test_last_member_leaving_disbands(self, roster: TeamRoster):
        roster.create_team("u1", "alice")
        roster.leave("u1")
        assert roster.teams == []

    def test_leave_when_not_in_team(self, roster: TeamRoster):
        with pytest.raises(TeamError) as exc_info:
            roster.leave("nobody")
        assert exc_info.value.code == "not_in_team"


class TestAllReady:
    def test_no_teams_is_not_ready(self, roster: TeamRoster):
        assert roster.all_ready() is False

    def test_all_members_ready(self, roster: TeamRoster):
        team = roster.create_team("u1", "alice")
        bob = roster.invite(team.id, "u2", "bob")

        roster.toggle_ready(team.id, team.members[0].id)
        assert roster.all_ready() is False

        roster.toggle_ready(team.id, bob.id)
        assert roster.all_ready() is True
