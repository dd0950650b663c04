"""
Tests for player statistics and the scorer leaderboards.
"""
import pytest
from datetime import timedelta
from types import SimpleNamespace

from conftest import NOW
from league.errors import ValidationError
from league.player_stats import compute_player_stats, rank_players


def _player(player_id, name, team_id=1, team_name="Harbour FC"):
    return SimpleNamespace(id=player_id, name=name, team_id=team_id, team=SimpleNamespace(name=team_name))


def _match(match_id, home_score, away_score, events, status="completed", days_ago=0):
    return SimpleNamespace(
        id=match_id,
        home_team_id=1,
        away_team_id=2,
        home_score=home_score,
        away_score=away_score,
        status=status,
        match_date=NOW - timedelta(days=days_ago),
        events=[SimpleNamespace(type=t, team=side, player_id=pid) for t, side, pid in events],
    )


PLAYERS = {
    1: _player(1, "Ana Rivera"),
    2: _player(2, "Ben Osei"),
    3: _player(3, "Caro Lind", team_id=2, team_name="Valley United"),
}


def test_totals_and_results():
    records = compute_player_stats([
        _match(1, 2, 1, [
            ("goal", "home", 1), ("assist", "home", 2),
            ("goal", "away", 3), ("goal", "home", 1), ("yellow_card", "home", 2),
        ], days_ago=7),
        _match(2, 0, 1, [("goal", "away", 3), ("red_card", "home", 1)]),
    ], PLAYERS)

    ana = records[1]
    assert (ana.appearances, ana.goals, ana.red_cards) == (2, 2, 1)
    assert (ana.wins, ana.draws, ana.losses) == (1, 0, 1)

    ben = records[2]
    assert (ben.appearances, ben.assists, ben.yellow_cards, ben.goals) == (1, 1, 1, 0)

    caro = records[3]
    assert (caro.goals, caro.wins, caro.losses) == (2, 1, 1)


def test_match_lines_follow_match_order():
    records = compute_player_stats([
        _match(5, 1, 1, [("goal", "away", 3)]),
        _match(4, 3, 0, [("yellow_card", "away", 3)], days_ago=3),
    ], PLAYERS)

    lines = records[3].matches
    assert [line.match_id for line in lines] == [4, 5]
    assert lines[0].side == "away"
    assert lines[0].opponent_id == 1
    assert (lines[0].result, lines[1].result) == ("loss", "draw")
    assert (lines[0].yellow_cards, lines[1].goals) == (1, 1)


def test_only_completed_matches_and_known_players_count():
    records = compute_player_stats([
        _match(1, 1, 0, [("goal", "home", 1)], status="live"),
        _match(2, 2, 0, [("goal", "home", None), ("goal", "home", 99)]),
    ], PLAYERS)
    assert set(records) == {1, 2, 3}
    assert all(r.appearances == 0 and r.goals == 0 for r in records.values())


def test_record_dict_shape():
    records = compute_player_stats([_match(1, 1, 0, [("goal", "home", 1)])], PLAYERS)
    data = records[1].to_dict(include_matches=True)
    assert data["team_name"] == "Harbour FC"
    assert data["matches"][0]["result"] == "win"
    assert "matches" not in records[1].to_dict()


def test_rank_players():
    records = compute_player_stats([
        _match(1, 3, 1, [("goal", "home", 1), ("goal", "home", 2), ("goal", "away", 3), ("goal", "home", 2)]),
        _match(2, 1, 0, [("goal", "home", 1), ("yellow_card", "home", 1)]),
    ], PLAYERS)

    rows = rank_players(records.values())
    # Ana and Ben both have two; Ben needed fewer matches
    assert [row["player_name"] for row in rows] == ["Ben Osei", "Ana Rivera", "Caro Lind"]
    assert [row["position"] for row in rows] == [1, 2, 3]

    assert [row["player_name"] for row in rank_players(records.values(), limit=1)] == ["Ben Osei"]
    assert [row["player_id"] for row in rank_players(records.values(), stat="yellow_cards")] == [1]
    assert rank_players(records.values(), stat="red_cards") == []


def test_rank_by_unknown_stat():
    with pytest.raises(ValidationError) as exc:
        rank_players([], stat="saves")
    assert exc.value.field == "stat"


# =============================================================================
# API
# =============================================================================

def _sign(client, name, team_id, position="forward"):
    response = client.post("/players", json={"name": name, "team_id": team_id, "position": position})
    assert response.status_code == 201, response.text
    return response.json()["id"]


def _result(client, league, home_score, away_score, events):
    response = client.post("/matches", json={
        "home_team_id": league["home_id"],
        "away_team_id": league["away_id"],
        "season_id": league["season_id"],
        "match_date": (NOW - timedelta(hours=2)).isoformat(),
        "status": "completed",
        "home_score": home_score,
        "away_score": away_score,
        "events": events,
    })
    assert response.status_code == 201, response.text
    return response.json()["match"]["id"]


def test_player_stats_endpoint(client, league):
    striker = _sign(client, "Ana Rivera", league["home_id"])
    winger = _sign(client, "Ben Osei", league["home_id"], position="midfielder")
    match_id = _result(client, league, 2, 0, [
        {"type": "goal", "team": "home", "minute": 12, "player_id": striker},
        {"type": "assist", "team": "home", "minute": 12, "player_id": winger},
        {"type": "goal", "team": "home", "minute": 70, "player_id": striker},
    ])

    stats = client.get(f"/players/{striker}/stats").json()
    assert stats["player_name"] == "Ana Rivera"
    assert stats["team_name"] == "Harbour FC"
    assert (stats["appearances"], stats["goals"], stats["assists"], stats["wins"]) == (1, 2, 0, 1)
    assert stats["season_id"] is None
    assert stats["matches"][0]["match_id"] == match_id
    assert stats["matches"][0]["opponent_id"] == league["away_id"]

    seasonal = client.get(f"/players/{winger}/stats?season_id={league['season_id']}").json()
    assert seasonal["season_id"] == league["season_id"]
    assert seasonal["assists"] == 1

    assert client.get("/players/999/stats").status_code == 404
    assert client.get(f"/players/{striker}/stats?season_id=999").status_code == 404


def test_unplayed_player_has_empty_stats(client, league):
    keeper = _sign(client, "Dee Fox", league["away_id"], position="goalkeeper")
    stats = client.get(f"/players/{keeper}/stats").json()
    assert stats["appearances"] == 0
    assert stats["matches"] == []


def test_scorer_leaderboard(client, league):
    striker = _sign(client, "Ana Rivera", league["home_id"])
    rival = _sign(client, "Caro Lind", league["away_id"])
    _result(client, league, 2, 1, [
        {"type": "goal", "team": "home", "minute": 5, "player_id": striker},
        {"type": "goal", "team": "away", "minute": 40, "player_id": rival},
        {"type": "goal", "team": "home", "minute": 80, "player_id": striker},
        {"type": "red_card", "team": "away", "minute": 88, "player_id": rival},
    ])

    board = client.get("/stats/players").json()
    assert board["season_id"] == league["season_id"]
    assert board["season_name"] == "2025 League"
    assert board["stat"] == "goals"
    assert [(p["player_name"], p["goals"]) for p in board["players"]] == [("Ana Rivera", 2), ("Caro Lind", 1)]
    assert board["players"][1]["team_name"] == "Valley United"

    cards = client.get("/stats/players?stat=red_cards").json()
    assert cards["count"] == 1
    assert cards["players"][0]["player_id"] == rival

    assert client.get("/stats/players?limit=1").json()["count"] == 1

    response = client.get("/stats/players?stat=saves")
    assert response.status_code == 400
    assert response.json()["field"] == "stat"


def test_live_events_feed_stats_once_match_ends(client, league):
    striker = _sign(client, "Ana Rivera", league["home_id"])
    match_id = league["match_id"]
    client.post(f"/matches/{match_id}/live/start")
    client.post(
        f"/matches/{match_id}/live/events",
        json={"type": "goal", "team": "home", "minute": 9, "player_id": striker},
    )
    assert client.get(f"/players/{striker}/stats").json()["goals"] == 0

    client.post(f"/matches/{match_id}/live/end", json={"home_score": 1, "away_score": 0})
    stats = client.get(f"/players/{striker}/stats").json()
    assert (stats["goals"], stats["appearances"], stats["wins"]) == (1, 1, 1)
