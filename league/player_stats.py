"""
Player statistics built from completed match ledgers.

Stats are derived on read, like the league table: an event credited to a
player counts once its match is completed, and edits to a completed
ledger show up on the next request. A player appears in a match when at
least one event of that match names them.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional
import logging

from league.errors import ValidationError
from league.live_match.models import EventType, MatchStatus, Side

logger = logging.getLogger("league.player_stats")

# Event type -> counter on PlayerRecord / PlayerMatchLine
COUNTED_EVENTS = {
    EventType.GOAL.value: "goals",
    EventType.ASSIST.value: "assists",
    EventType.YELLOW_CARD.value: "yellow_cards",
    EventType.RED_CARD.value: "red_cards",
}

SORTABLE_STATS = ("goals", "assists", "yellow_cards", "red_cards", "appearances")


@dataclass
class PlayerMatchLine:
    """One player's contribution to one match."""
    match_id: int
    match_date: datetime
    side: str
    opponent_id: int
    result: str
    goals: int = 0
    assists: int = 0
    yellow_cards: int = 0
    red_cards: int = 0


@dataclass
class PlayerRecord:
    """Accumulated stats for one player."""
    player_id: int
    player_name: str
    team_id: Optional[int] = None
    team_name: Optional[str] = None
    appearances: int = 0
    goals: int = 0
    assists: int = 0
    yellow_cards: int = 0
    red_cards: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    matches: List[PlayerMatchLine] = field(default_factory=list)

    def add(self, line: PlayerMatchLine) -> None:
        self.appearances += 1
        for counter in COUNTED_EVENTS.values():
            setattr(self, counter, getattr(self, counter) + getattr(line, counter))
        if line.result == "win":
            self.wins += 1
        elif line.result == "loss":
            self.losses += 1
        else:
            self.draws += 1
        self.matches.append(line)

    def to_dict(self, include_matches: bool = False) -> dict:
        data = {
            "player_id": self.player_id,
            "player_name": self.player_name,
            "team_id": self.team_id,
            "team_name": self.team_name,
            "appearances": self.appearances,
            "goals": self.goals,
            "assists": self.assists,
            "yellow_cards": self.yellow_cards,
            "red_cards": self.red_cards,
            "wins": self.wins,
            "draws": self.draws,
            "losses": self.losses,
        }
        if include_matches:
            data["matches"] = [vars(line).copy() for line in self.matches]
        return data


def _result(match, side: str) -> str:
    scored, conceded = match.home_score or 0, match.away_score or 0
    if side == Side.AWAY.value:
        scored, conceded = conceded, scored
    if scored > conceded:
        return "win"
    if scored < conceded:
        return "loss"
    return "draw"


def compute_player_stats(matches: Iterable, players: Mapping[int, object]) -> Dict[int, PlayerRecord]:
    """
    Aggregate event counts per player over completed `matches`.

    `players` maps player id -> Player and decides who is counted; events
    without a player id, or naming someone not in `players`, are skipped.
    Every player in `players` gets a record, with zeros if they never
    featured.
    """
    records: Dict[int, PlayerRecord] = {}
    for player_id, player in players.items():
        team = getattr(player, "team", None)
        records[player_id] = PlayerRecord(
            player_id=player_id,
            player_name=player.name,
            team_id=player.team_id,
            team_name=team.name if team is not None else None,
        )

    ordered = sorted(
        (m for m in matches if m.status == MatchStatus.COMPLETED.value),
        key=lambda m: (m.match_date, m.id),
    )
    for match in ordered:
        lines: Dict[int, PlayerMatchLine] = {}
        for event in match.events:
            if event.player_id is None:
                continue
            if event.player_id not in records:
                logger.debug(f"Match {match.id}: event for unknown player {event.player_id} skipped")
                continue
            line = lines.get(event.player_id)
            if line is None:
                opponent = match.away_team_id if event.team == Side.HOME.value else match.home_team_id
                line = PlayerMatchLine(
                    match_id=match.id,
                    match_date=match.match_date,
                    side=event.team,
                    opponent_id=opponent,
                    result=_result(match, event.team),
                )
                lines[event.player_id] = line
            counter = COUNTED_EVENTS.get(event.type)
            if counter:
                setattr(line, counter, getattr(line, counter) + 1)

        for player_id, line in lines.items():
            records[player_id].add(line)

    return records


def rank_players(records: Iterable[PlayerRecord], stat: str = "goals", limit: Optional[int] = None) -> List[dict]:
    """
    Leaderboard for one stat, highest first.

    Ties go to the player with fewer appearances, then by name. Players
    with nothing in `stat` are left out.
    """
    if stat not in SORTABLE_STATS:
        raise ValidationError(
            f"Cannot rank by {stat}; choose one of {', '.join(SORTABLE_STATS)}", field="stat"
        )

    ranked = sorted(
        (r for r in records if getattr(r, stat) > 0),
        key=lambda r: (-getattr(r, stat), r.appearances, r.player_name),
    )
    if limit:
        ranked = ranked[:limit]
    return [
        dict(record.to_dict(), position=position)
        for position, record in enumerate(ranked, start=1)
    ]
