"""Team formation inside a lobby.

Players in a lobby can group into teams of up to four before heading to
voice chat. A player belongs to at most one team at a time.
"""

import logging
import secrets
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

MAX_TEAM_MEMBERS = 4


class TeamError(Exception):
    """Raised when a team operation is not allowed."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


@dataclass
class TeamMember:
    """A player seated in a team."""

    user_id: str
    username: str
    platform: str | None = None
    id: str = field(default_factory=lambda: f"member-{secrets.token_hex(4)}")
    is_leader: bool = False
    is_ready: bool = False


@dataclass
class Team:
    """A team of lobby players."""

    id: str
    name: str
    members: list[TeamMember] = field(default_factory=list)
    max_members: int = MAX_TEAM_MEMBERS

    @property
    def is_full(self) -> bool:
        return len(self.members) >= self.max_members

    @property
    def is_ready(self) -> bool:
        return bool(self.members) and all(m.is_ready for m in self.members)


class TeamRoster:
    """The teams formed in one lobby."""

    def __init__(self, max_members: int = MAX_TEAM_MEMBERS) -> None:
        self.max_members = max_members
        self.teams: list[Team] = []

    def _get_team(self, team_id: str) -> Team:
        for team in self.teams:
            if team.id == team_id:
                return team
        raise TeamError("team_not_found", f"Team {team_id} not found")

    def find_team_of(self, user_id: str) -> Team | None:
        """Get the team a user belongs to, if any."""
        for team in self.teams:
            if any(m.user_id == user_id for m in team.members):
                return team
        return None

    def create_team(self, user_id: str, username: str, platform: str | None = None) -> Team:
        """Create a team led by the given player.

        Teams are named Team A, Team B, ... in creation order.

        Raises:
            TeamError: If the player is already in a team
        """
        if self.find_team_of(user_id) is not None:
            raise TeamError("already_in_team", f"{username} is already in a team")

        leader = TeamMember(
            user_id=user_id,
            username=username,
            platform=platform,
            is_leader=True,
        )
        team = Team(
            id=f"team-{secrets.token_hex(4)}",
            name=f"Team {chr(ord('A') + len(self.teams))}",
            members=[leader],
            max_members=self.max_members,
        )
        self.teams.append(team)
        logger.debug(f"{username} created {team.name}")
        return team

    def invite(
        self,
        team_id: str,
        user_id: str,
        username: str,
        platform: str | None = None,
    ) -> TeamMember:
        """Add a player to a team.

        Raises:
            TeamError: If the team does not exist, is full, or the player is
                already in a team
        """
        team = self._get_team(team_id)
        if team.is_full:
            raise TeamError("team_full", f"{team.name} is full")
        if self.find_team_of(user_id) is not None:
            raise TeamError("already_in_team", f"{username} is already in a team")

        member = TeamMember(user_id=user_id, username=username, platform=platform)
        team.members.append(member)
        logger.debug(f"{username} joined {team.name}")
        return member

    def remove_member(self, team_id: str, member_id: str) -> None:
        """Remove a member from a team. The team is kept even if emptied.

        Raises:
            TeamError: If the team or member does not exist
        """
        team = self._get_team(team_id)
        remaining = [m for m in team.members if m.id != member_id]
        if len(remaining) == len(team.members):
            raise TeamError("member_not_found", f"Member {member_id} not in {team.name}")
        team.members = remaining

    def toggle_ready(self, team_id: str, member_id: str) -> bool:
        """Flip a member's ready flag.

        Returns:
            The member's new ready state

        Raises:
            TeamError: If the team or member does not exist
        """
        team = self._get_team(team_id)
        for member in team.members:
            if member.id == member_id:
                member.is_ready = not member.is_ready
                return member.is_ready
        raise TeamError("member_not_found", f"Member {member_id} not in {team.name}")

    def leave(self, user_id: str) -> None:
        """Remove a user from their team and drop the team if it is now empty.

        If the leader leaves, the longest-seated remaining member leads.

        Raises:
            TeamError: If the user is not in a team
        """
        team = self.find_team_of(user_id)
        if team is None:
            raise TeamError("not_in_team", f"User {user_id} is not in a team")

        was_leader = any(m.user_id == user_id and m.is_leader for m in team.members)
        team.members = [m for m in team.members if m.user_id != user_id]

        if not team.members:
            self.teams.remove(team)
            logger.debug(f"{team.name} disbanded")
        elif was_leader:
            team.members[0].is_leader = True

    def all_ready(self) -> bool:
        """True when there is at least one team and every team is non-empty and ready."""
        return bool(self.teams) and all(team.is_ready for team in self.teams)
