"""
League table built from completed matches.

Ranking order:
1. points (3 win / 1 draw)
2. goal difference
3. goals for
4. goals against (fewer is better)
5. head-to-head points, then head-to-head goal difference
6. fair play points (yellow 1, red 3; fewer is better)
7. team name
"""
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Dict, Iterable, List
import logging

from league.live_match.models import EventType, Side

logger = logging.getLogger("league.standings")

WIN_POINTS = 3
DRAW_POINTS = 1
FAIR_PLAY_COST = {
    EventType.YELLOW_CARD.value: 1,
    EventType.RED_CARD.value: 3,
}


@dataclass
class HeadToHead:
    points: int = 0
    goals_for: int = 0
    goals_against: int = 0

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against


@dataclass
class TeamRecord:
    """Accumulated results for one team."""
    team_id: int
    team_name: str
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    points: int = 0
    fair_play_points: int = 0
    head_to_head: Dict[int, HeadToHead] = field(default_factory=dict)

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    def record(self, opponent_id: int, scored: int, conceded: int) -> None:
        self.played += 1
        self.goals_for += scored
        self.goals_against += conceded

        if scored > conceded:
            self.won += 1
            earned = WIN_POINTS
        elif scored < conceded:
            self.lost += 1
            earned = 0
        else:
            self.drawn += 1
            earned = DRAW_POINTS
        self.points += earned

        h2h = self.head_to_head.setdefault(opponent_id, HeadToHead())
        h2h.points += earned
        h2h.goals_for += scored
        h2h.goals_against += conceded

    def to_dict(self, position: int) -> dict:
        return {
            "position": position,
            "team_id": self.team_id,
            "team_name": self.team_name,
            "played": self.played,
            "won": self.won,
            "drawn": self.drawn,
            "lost": self.lost,
            "goals_for": self.goals_for,
            "goals_against": self.goals_against,
            "goal_difference": self.goal_difference,
            "points": self.points,
            "fair_play_points": self.fair_play_points,
        }


def _compare(a: TeamRecord, b: TeamRecord) -> int:
    """Negative when `a` ranks above `b`."""
    for left, right in (
        (b.points, a.points),
        (b.goal_difference, a.goal_difference),
        (b.goals_for, a.goals_for),
        (a.goals_against, b.goals_against),
    ):
        if left != right:
            return left - right

    a_vs_b = a.head_to_head.get(b.team_id)
    b_vs_a = b.head_to_head.get(a.team_id)
    if a_vs_b and b_vs_a:
        if a_vs_b.points != b_vs_a.points:
            return b_vs_a.points - a_vs_b.points
        if a_vs_b.goal_difference != b_vs_a.goal_difference:
            return b_vs_a.goal_difference - a_vs_b.goal_difference

    if a.fair_play_points != b.fair_play_points:
        return a.fair_play_points - b.fair_play_points

    if a.team_name != b.team_name:
        return -1 if a.team_name < b.team_name else 1
    return 0


def compute_standings(teams: Iterable, matches: Iterable) -> List[dict]:
    """
    Rank `teams` using `matches` (completed matches only are counted).

    Teams without matches still appear with zero rows. Matches involving
    teams not in `teams` are ignored.
    """
    records: Dict[int, TeamRecord] = {
        team.id: TeamRecord(team_id=team.id, team_name=team.name) for team in teams
    }

    for match in matches:
        if match.status != "completed":
            continue
        home = records.get(match.home_team_id)
        away = records.get(match.away_team_id)
        if home is None or away is None:
            logger.debug(f"Skipping match {match.id}: team outside this table")
            continue

        home_score = match.home_score or 0
        away_score = match.away_score or 0
        home.record(away.team_id, home_score, away_score)
        away.record(home.team_id, away_score, home_score)

        for event in match.events:
            cost = FAIR_PLAY_COST.get(event.type, 0)
            if not cost:
                continue
            if event.team == Side.HOME.value:
                home.fair_play_points += cost
            elif event.team == Side.AWAY.value:
                away.fair_play_points += cost

    ranked = sorted(records.values(), key=cmp_to_key(_compare))
    return [record.to_dict(position) for position, record in enumerate(ranked, start=1)]
