"""
Admin CRUD endpoints, match edits and the league table.
"""
import pytest
from datetime import timedelta

from conftest import NOW
from league import crud
from league.errors import ConflictError


def _result(client, league, home_score, away_score, events=None, swap=False, **extra):
    home, away = league["home_id"], league["away_id"]
    if swap:
        home, away = away, home
    payload = {
        "home_team_id": home,
        "away_team_id": away,
        "season_id": league["season_id"],
        "match_date": (NOW - timedelta(hours=2)).isoformat(),
        "status": "completed",
        "home_score": home_score,
        "away_score": away_score,
        "events": events or [],
    }
    payload.update(extra)
    return client.post("/matches", json=payload)


# =============================================================================
# Seasons
# =============================================================================

def test_create_season_deactivates_previous(client, league):
    response = client.post("/seasons", json={
        "name": "2026 League",
        "start_date": "2026-01-01",
        "end_date": "2026-12-31",
        "is_active": True,
    })
    assert response.status_code == 201
    assert response.json()["is_active"] is True
    assert client.get(f"/seasons/{league['season_id']}").json()["is_active"] is False


def test_season_dates_must_be_ordered(client, league):
    response = client.post("/seasons", json={
        "name": "Backwards", "start_date": "2026-12-31", "end_date": "2026-01-01",
    })
    assert response.status_code == 400
    assert response.json()["field"] == "end_date"


def test_season_with_matches_cannot_be_deleted(client, league):
    assert client.delete(f"/seasons/{league['season_id']}").status_code == 409


def test_unknown_season(client, league):
    assert client.get("/seasons/999").status_code == 404
    assert client.patch("/seasons/999", json={"name": "x"}).status_code == 404


# =============================================================================
# Teams and players
# =============================================================================

def test_team_names_are_unique(client, league):
    response = client.post("/teams", json={"name": "harbour fc"})
    assert response.status_code == 409
    assert response.json()["field"] == "name"


def test_team_lifecycle(client, league):
    created = client.post("/teams", json={"name": "Ridge Rovers", "season_id": league["season_id"]})
    assert created.status_code == 201
    team_id = created.json()["id"]

    names = [t["name"] for t in client.get(f"/teams?season_id={league['season_id']}").json()]
    assert names == ["Harbour FC", "Ridge Rovers", "Valley United"]

    updated = client.patch(f"/teams/{team_id}", json={"manager": "P. Lowe"})
    assert updated.json()["manager"] == "P. Lowe"

    assert client.delete(f"/teams/{team_id}").status_code == 204
    assert client.get(f"/teams/{team_id}").status_code == 404


def test_team_with_matches_cannot_be_deleted(client, league):
    assert client.delete(f"/teams/{league['home_id']}").status_code == 409


def test_players(client, league):
    home_id = league["home_id"]
    created = client.post("/players", json={
        "name": "Ana Rivera", "team_id": home_id, "position": "forward", "jersey_number": 9,
    })
    assert created.status_code == 201
    player = created.json()
    assert player["team"]["name"] == "Harbour FC"

    duplicate = client.post("/players", json={
        "name": "Ben Cole", "team_id": home_id, "position": "defender", "jersey_number": 9,
    })
    assert duplicate.status_code == 409

    bad_position = client.post("/players", json={"name": "Cy Dunn", "position": "striker"})
    assert bad_position.status_code == 422

    squad = client.get(f"/teams/{home_id}/players").json()
    assert [p["name"] for p in squad] == ["Ana Rivera"]

    moved = client.patch(f"/players/{player['id']}", json={"team_id": league["away_id"]})
    assert moved.json()["team"]["name"] == "Valley United"
    assert client.get(f"/teams/{home_id}/players").json() == []


def test_player_for_unknown_team(client, league):
    response = client.post("/players", json={"name": "Dee Fox", "team_id": 999, "position": "goalkeeper"})
    assert response.status_code == 404


# =============================================================================
# Matches
# =============================================================================

def test_match_needs_two_teams(client, league):
    response = client.post("/matches", json={
        "home_team_id": league["home_id"],
        "away_team_id": league["home_id"],
        "season_id": league["season_id"],
        "match_date": (NOW + timedelta(days=2)).isoformat(),
    })
    assert response.status_code == 400
    assert "cannot be the same" in response.json()["detail"]


def test_match_cannot_be_created_live(client, league):
    response = client.post("/matches", json={
        "home_team_id": league["home_id"],
        "away_team_id": league["away_id"],
        "season_id": league["season_id"],
        "match_date": NOW.isoformat(),
        "status": "live",
    })
    assert response.status_code == 400


def test_match_references_must_exist(client, league):
    response = client.post("/matches", json={
        "home_team_id": league["home_id"],
        "away_team_id": 999,
        "season_id": league["season_id"],
        "match_date": (NOW + timedelta(days=2)).isoformat(),
    })
    assert response.status_code == 404
    assert response.json()["field"] == "away_team_id"


def test_enter_completed_result(client, league):
    response = _result(client, league, 2, 1, events=[
        {"type": "goal", "team": "home", "minute": 10},
        {"type": "goal", "team": "away", "minute": 50},
        {"type": "goal", "team": "home", "minute": 85},
    ])
    assert response.status_code == 201
    body = response.json()
    assert body["warnings"] == []
    assert body["match"]["status"] == "completed"
    assert [e["event_id"] for e in body["match"]["events"]] == [1, 2, 3]


def test_completed_result_without_events_warns(client, league):
    body = _result(client, league, 1, 0).json()
    assert body["warnings"] == ["Completed match has no events - player statistics will not be updated"]


def test_completed_result_in_far_future_rejected(client, league):
    response = _result(client, league, 1, 0, match_date=(NOW + timedelta(days=3)).isoformat())
    assert response.status_code == 400


def test_scheduled_match_with_score_rejected(client, league):
    response = _result(client, league, 1, 0, status="scheduled", match_date=(NOW + timedelta(days=3)).isoformat())
    assert response.status_code == 400
    assert "should not have scores" in response.json()["detail"]


def test_completed_match_only_accepts_detail_edits(client, league):
    match_id = _result(client, league, 1, 0).json()["match"]["id"]

    response = client.patch(f"/matches/{match_id}", json={"home_score": 3})
    assert response.status_code == 409

    response = client.patch(f"/matches/{match_id}", json={"venue": "Valley Ground", "referee": "K. Moss"})
    assert response.status_code == 200
    match = response.json()["match"]
    assert (match["venue"], match["referee"]) == ("Valley Ground", "K. Moss")
    assert match["home_score"] == 1


def test_result_entry_on_scheduled_match(client, league):
    match_id = league["match_id"]
    response = client.patch(f"/matches/{match_id}", json={
        "status": "completed",
        "home_score": 0,
        "away_score": 1,
        "events": [{"type": "goal", "team": "away", "minute": 64}],
    })
    assert response.status_code == 200
    match = response.json()["match"]
    assert match["status"] == "completed"
    assert match["away_score"] == 1
    assert len(match["events"]) == 1


def test_postpone_and_reschedule(client, league):
    match_id = league["match_id"]
    postponed = client.patch(f"/matches/{match_id}", json={"status": "postponed"}).json()["match"]
    assert postponed["status"] == "postponed"

    new_date = (NOW + timedelta(days=7)).isoformat()
    rescheduled = client.patch(f"/matches/{match_id}", json={"status": "scheduled", "match_date": new_date})
    assert rescheduled.status_code == 200
    assert rescheduled.json()["match"]["status"] == "scheduled"

    # The new date has to be in the future
    client.patch(f"/matches/{match_id}", json={"status": "postponed"})
    past = client.patch(f"/matches/{match_id}", json={
        "status": "scheduled", "match_date": (NOW - timedelta(days=1)).isoformat(),
    })
    assert past.status_code == 400


def test_live_score_cannot_be_edited_through_admin(client, league):
    match_id = league["match_id"]
    client.post(f"/matches/{match_id}/live/start")
    response = client.patch(f"/matches/{match_id}", json={"home_score": 4})
    assert response.status_code == 400


def test_update_with_stale_version(client, league):
    match_id = league["match_id"]
    version = client.get(f"/matches/{match_id}").json()["version"]
    client.patch(f"/matches/{match_id}", json={"notes": "Kick-off moved to 15:30"})

    response = client.patch(f"/matches/{match_id}", json={"venue": "Elsewhere", "expected_version": version})
    assert response.status_code == 409


def test_concurrent_commit_is_conflict(session_factory, league, clock):
    """Two sessions editing the same match: the second commit loses"""
    first, second = session_factory(), session_factory()
    try:
        a = crud.require_match(first, league["match_id"])
        b = crud.require_match(second, league["match_id"])

        a.notes = "first"
        crud.touch_match(a, clock.now())
        crud.commit_or_raise(first, "update match")

        b.notes = "second"
        crud.touch_match(b, clock.now())
        with pytest.raises(ConflictError):
            crud.commit_or_raise(second, "update match")
    finally:
        first.close()
        second.close()


def test_delete_match(client, league):
    match_id = league["match_id"]
    client.post(f"/matches/{match_id}/live/start")
    assert client.delete(f"/matches/{match_id}").status_code == 409

    client.post(f"/matches/{match_id}/cancel")
    assert client.delete(f"/matches/{match_id}").status_code == 204
    assert client.get(f"/matches/{match_id}").status_code == 404


def test_list_matches_filters(client, league):
    _result(client, league, 1, 0)
    assert len(client.get("/matches").json()) == 2
    assert len(client.get("/matches?status=completed").json()) == 1
    assert len(client.get(f"/matches?team_id={league['home_id']}&status=scheduled").json()) == 1
    assert client.get("/matches?status=abandoned").status_code == 400


# =============================================================================
# Standings
# =============================================================================

def test_standings_for_active_season(client, league):
    _result(client, league, 2, 0, events=[
        {"type": "goal", "team": "home", "minute": 10},
        {"type": "goal", "team": "home", "minute": 20},
        {"type": "yellow_card", "team": "away", "minute": 30},
    ])
    _result(client, league, 1, 1, swap=True, events=[
        {"type": "goal", "team": "home", "minute": 10},
        {"type": "goal", "team": "away", "minute": 20},
    ])

    table = client.get("/standings").json()
    assert table["season_name"] == "2025 League"
    assert table["count"] == 2
    top, bottom = table["standings"]
    assert (top["team_name"], top["points"], top["goal_difference"]) == ("Harbour FC", 4, 2)
    assert (bottom["team_name"], bottom["points"], bottom["fair_play_points"]) == ("Valley United", 1, 1)


def test_standings_ignore_unfinished_matches(client, league):
    client.post(f"/matches/{league['match_id']}/live/start")
    client.post(f"/matches/{league['match_id']}/live/events", json={"type": "goal", "team": "home", "minute": 3})
    rows = client.get("/standings").json()["standings"]
    assert all(row["played"] == 0 for row in rows)


def test_standings_limit_and_unknown_season(client, league):
    assert client.get("/standings?limit=1").json()["count"] == 1
    assert client.get("/standings?season_id=999").status_code == 404


# =============================================================================
# Blanking required fields
# =============================================================================

@pytest.mark.parametrize("payload,field", [
    ({"start_date": None}, "start_date"),
    ({"end_date": None}, "end_date"),
    ({"name": None}, "name"),
])
def test_season_required_fields_cannot_be_nulled(client, league, payload, field):
    response = client.patch(f"/seasons/{league['season_id']}", json=payload)
    assert response.status_code == 400
    assert response.json()["field"] == field


def test_team_name_cannot_be_nulled(client, league):
    response = client.patch(f"/teams/{league['home_id']}", json={"name": None})
    assert response.status_code == 400
    assert response.json()["field"] == "name"

    # Optional references can still be cleared
    response = client.patch(f"/teams/{league['home_id']}", json={"season_id": None})
    assert response.status_code == 200
    assert response.json()["season_id"] is None


def test_player_required_fields_cannot_be_nulled(client, league):
    player_id = client.post("/players", json={
        "name": "Ana Rivera", "team_id": league["home_id"], "position": "forward",
    }).json()["id"]

    response = client.patch(f"/players/{player_id}", json={"position": None})
    assert response.status_code == 400
    assert response.json()["field"] == "position"

    released = client.patch(f"/players/{player_id}", json={"team_id": None})
    assert released.status_code == 200
    assert released.json()["team"] is None


@pytest.mark.parametrize("payload,field", [
    ({"venue": None}, "venue"),
    ({"notes": None}, "notes"),
    ({"match_date": None}, "match_date"),
    ({"status": "completed", "home_score": None, "away_score": 1}, "home_score"),
])
def test_match_required_fields_cannot_be_nulled(client, league, payload, field):
    match_id = league["match_id"]
    response = client.patch(f"/matches/{match_id}", json=payload)
    assert response.status_code == 400
    assert response.json()["field"] == field

    match = client.get(f"/matches/{match_id}").json()
    assert match["status"] == "scheduled"
    assert match["venue"] == "Harbour Park"
