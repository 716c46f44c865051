import sqlite3

import pytest
from httpx import ASGITransport, AsyncClient

from cricauction.api import create_app
from cricauction.config import AuctionSettings
from cricauction.persistence import AuctionStore


PLAYERS_CSV = """Sr No,Player Name,Age,Country,T20 Matches,Runs,Wickets,Catches,Evaluation Points,Base Price,Role,Pool
1,Jos Buttler,34,England,103,2988,0,85,89,100000000,Wicket-keeper,Pool B
2,Rashid Khan,25,Afghanistan,90,400,140,20,92,₹15Cr,Bowler,Pool A
3,X,30,India,1,1,1,1,1,1000000,Batsman,Pool A
"""


@pytest.fixture
async def client():
    store = AuctionStore()
    settings = AuctionSettings(default_team_budget=800_000_000, admin_password="letmein")
    app = create_app(store=store, settings=settings)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        async_client.app = app
        yield async_client
    store.close()


async def _create_player(client: AsyncClient, name: str = "Virat Kohli", **overrides) -> dict:
    payload = {"name": name, "role": "Batsman", "country": "India", "base_price": 20_000_000}
    payload.update(overrides)
    response = await client.post("/api/players", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


async def _create_team(client: AsyncClient, name: str = "Mumbai Indians", **overrides) -> dict:
    payload = {"name": name}
    payload.update(overrides)
    response = await client.post("/api/teams", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.anyio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.anyio
async def test_player_crud(client):
    created = await _create_player(client, stats={"runs": 7000})
    assert created["status"] == "Available"
    assert created["stats"] == {"runs": 7000}

    fetched = await client.get(f"/api/players/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["name"] == "Virat Kohli"

    updated = await client.put(f"/api/players/{created['id']}", json={"points": 95, "pool": "Pool A"})
    assert updated.status_code == 200
    assert updated.json()["points"] == 95
    assert updated.json()["pool"] == "Pool A"

    listing = await client.get("/api/players")
    assert [player["id"] for player in listing.json()] == [created["id"]]

    deleted = await client.delete(f"/api/players/{created['id']}")
    assert deleted.json() == {"success": True}
    missing = await client.get(f"/api/players/{created['id']}")
    assert missing.status_code == 404
    again = await client.delete(f"/api/players/{created['id']}")
    assert again.json() == {"success": False}


@pytest.mark.anyio
async def test_player_validation_errors_are_400(client):
    response = await client.post(
        "/api/players",
        json={"name": "Cheap", "role": "Batsman", "country": "India", "base_price": 100},
    )
    assert response.status_code == 400
    assert response.json()["detail"].startswith("base_price:")

    response = await client.post(
        "/api/players",
        json={"name": "Odd", "role": "Captain", "country": "India", "base_price": 1_000_000},
    )
    assert response.status_code == 400
    assert "role" in response.json()["detail"]


@pytest.mark.anyio
async def test_update_unknown_player_is_404(client):
    response = await client.put("/api/players/nope", json={"points": 1})
    assert response.status_code == 404
    assert "not found" in response.json()["detail"]


@pytest.mark.anyio
async def test_team_defaults_and_validation(client):
    team = await _create_team(client, logo_url="")
    assert team["budget"] == 800_000_000
    assert team["remaining_budget"] == 800_000_000
    assert team["color_theme"] == "#1E40AF"
    assert team["logo_url"] is None

    for payload in (
        {"name": "X"},
        {"name": "Bad Color", "color_theme": "blue"},
        {"name": "Bad Logo", "logo_url": "ftp://example.com/logo.png"},
        {"name": "Broke", "budget": 0},
    ):
        response = await client.post("/api/teams", json=payload)
        assert response.status_code == 400, payload


@pytest.mark.anyio
async def test_assignment_reconciles_team_over_http(client):
    team = await _create_team(client, budget=8000)
    first = await _create_player(client, "Player One")
    second = await _create_player(client, "Player Two")

    for player, price in ((first, 1500), (second, 2000)):
        response = await client.put(
            f"/api/players/{player['id']}",
            json={"status": "Sold", "sold_price": price, "assigned_team": team["id"]},
        )
        assert response.status_code == 200

    refreshed = (await client.get(f"/api/teams/{team['id']}")).json()
    assert refreshed["total_spent"] == 3500
    assert refreshed["remaining_budget"] == 4500
    assert refreshed["players_count"] == 2

    response = await client.delete(f"/api/teams/{team['id']}")
    assert response.json() == {"success": True}
    released = (await client.get(f"/api/players/{first['id']}")).json()
    assert released["assigned_team"] is None
    assert released["status"] == "Available"


@pytest.mark.anyio
async def test_team_update_rejects_derived_fields(client):
    team = await _create_team(client)
    response = await client.put(f"/api/teams/{team['id']}", json={"remaining_budget": 5})
    assert response.status_code == 400

    response = await client.put(f"/api/teams/{team['id']}", json={"name": "Renamed", "budget": 900_000_000})
    assert response.status_code == 200
    assert response.json()["name"] == "Renamed"
    assert response.json()["remaining_budget"] == 900_000_000


@pytest.mark.anyio
async def test_auction_sale_flow(client):
    team = await _create_team(client, budget=50_000_000)
    player = await _create_player(client)

    created = await client.post("/api/auctions", json={"player_id": player["id"], "current_bid": 20_000_000})
    assert created.status_code == 201
    auction = created.json()

    activated = await client.put(f"/api/auctions/{auction['id']}", json={"is_active": True})
    assert activated.json()["is_active"] is True
    active = await client.get("/api/auctions/active")
    assert [item["id"] for item in active.json()] == [auction["id"]]

    over = await client.post(
        f"/api/auctions/{auction['id']}/sell",
        json={"team_id": team["id"], "price": 60_000_000},
    )
    assert over.status_code == 400
    assert over.json()["detail"].startswith("Budget exceeded")

    sold = await client.post(
        f"/api/auctions/{auction['id']}/sell",
        json={"team_id": team["id"], "price": 30_000_000},
    )
    assert sold.status_code == 200
    body = sold.json()
    assert body["player"]["status"] == "Sold"
    assert body["team"]["remaining_budget"] == 20_000_000
    assert body["auction"]["is_completed"] is True
    assert body["log"]["sold_price"] == 30_000_000

    again = await client.post(
        f"/api/auctions/{auction['id']}/sell",
        json={"team_id": team["id"], "price": 1},
    )
    assert again.status_code == 400

    logs = await client.get("/api/auction-logs")
    assert [log["player_id"] for log in logs.json()] == [player["id"]]

    stats = (await client.get("/api/dashboard/stats")).json()
    assert stats["players_sold"] == 1
    assert stats["total_spent"] == 30_000_000
    assert stats["active_auctions"] == 0
    assert stats["auction_status"] == "Not Started"


@pytest.mark.anyio
async def test_unsold_and_unknown_auction(client):
    player = await _create_player(client)
    auction = (await client.post("/api/auctions", json={"player_id": player["id"], "current_bid": 0})).json()

    response = await client.post(f"/api/auctions/{auction['id']}/unsold")
    assert response.status_code == 200
    assert response.json()["player"]["status"] == "Unsold"

    assert (await client.get("/api/auctions/missing")).status_code == 404
    assert (await client.post("/api/auctions", json={"player_id": "ghost", "current_bid": 0})).status_code == 404


@pytest.mark.anyio
async def test_manual_auction_log(client):
    team = await _create_team(client)
    player = await _create_player(client)

    response = await client.post(
        "/api/auction-logs",
        json={"player_id": player["id"], "team_id": team["id"], "sold_price": 25_000_000},
    )
    assert response.status_code == 201

    missing = await client.post(
        "/api/auction-logs",
        json={"player_id": player["id"], "team_id": "ghost", "sold_price": 1},
    )
    assert missing.status_code == 404


@pytest.mark.anyio
async def test_import_preview_then_commit(client):
    files = {"file": ("players.csv", PLAYERS_CSV, "text/csv")}

    preview = await client.post("/api/players/import", files=files)
    assert preview.status_code == 200
    report = preview.json()
    assert report["valid"] == 2
    assert report["errors"] == 1
    assert report["created"] == 0
    assert report["rows"][1]["base_price"] == 150_000_000
    assert (await client.get("/api/players")).json() == []

    committed = await client.post("/api/players/import", files=files, data={"commit": "true"})
    assert committed.json()["created"] == 2
    names = sorted(player["name"] for player in (await client.get("/api/players")).json())
    assert names == ["Jos Buttler", "Rashid Khan"]

    repeat = await client.post("/api/players/import", files=files)
    assert repeat.json()["errors"] == 3

    pools = (await client.get("/api/pools")).json()
    assert [pool["name"] for pool in pools] == ["Pool B", "Pool A"]
    pool_b = (await client.get("/api/pools/Pool B/players")).json()
    assert [player["name"] for player in pool_b] == ["Jos Buttler"]


@pytest.mark.anyio
async def test_import_missing_headers(client):
    files = {"file": ("players.csv", "Player Name,Age\nSomeone,20\n", "text/csv")}
    response = await client.post("/api/players/import", files=files)
    assert response.status_code == 400
    assert response.json()["detail"].startswith("Missing headers")


@pytest.mark.anyio
async def test_export_results_csv(client):
    team = await _create_team(client, "Chennai Super Kings")
    sold = await _create_player(client, "MS Dhoni", role="Wicket-keeper")
    await _create_player(client, "Bench Player", role="Bowler", base_price=500_000)
    await client.put(
        f"/api/players/{sold['id']}",
        json={"status": "Sold", "sold_price": 120_000_000, "assigned_team": team["id"]},
    )

    response = await client.get("/api/export/results")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == 'attachment; filename="auction-results.csv"'
    lines = response.text.splitlines()
    assert lines[0] == "Player Name,Role,Country,Base Price,Sold Price,Team,Status"
    assert lines[1] == "MS Dhoni,Wicket-keeper,India,20000000,120000000,Chennai Super Kings,Sold"
    assert lines[2] == "Bench Player,Bowler,India,500000,N/A,N/A,Available"


@pytest.mark.anyio
async def test_admin_login(client):
    ok = await client.post("/api/auth/login", json={"username": "admin", "password": "letmein"})
    assert ok.status_code == 200
    assert ok.json() == {"username": "admin", "role": "admin"}

    bad = await client.post("/api/auth/login", json={"username": "admin", "password": "admin123"})
    assert bad.status_code == 401


@pytest.mark.anyio
async def test_oversized_money_values_are_400(client):
    team = await _create_team(client)
    player = await _create_player(client)

    response = await client.put(f"/api/players/{player['id']}", json={"sold_price": 10**20})
    assert response.status_code == 400
    assert response.json()["detail"].startswith("sold_price:")

    auction = (await client.post("/api/auctions", json={"player_id": player["id"], "current_bid": 0})).json()
    response = await client.post(
        f"/api/auctions/{auction['id']}/sell",
        json={"team_id": team["id"], "price": 10**20},
    )
    assert response.status_code == 400

    response = await client.post(
        "/api/auction-logs",
        json={"player_id": player["id"], "team_id": team["id"], "sold_price": 10**20},
    )
    assert response.status_code == 400


@pytest.mark.anyio
async def test_short_player_name_is_400(client):
    response = await client.post(
        "/api/players",
        json={"name": "X", "role": "Batsman", "country": "India", "base_price": 1_000_000},
    )
    assert response.status_code == 400
    assert response.json()["detail"].startswith("name:")


@pytest.mark.anyio
async def test_storage_error_is_json_500(client, monkeypatch):
    store = client.app.state.store

    def locked():
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(store, "list_teams", locked)

    response = await client.get("/api/teams")
    assert response.status_code == 500
    assert response.json() == {"detail": "database is locked"}


@pytest.mark.anyio
async def test_unexpected_error_is_json_500(monkeypatch):
    store = AuctionStore()
    app = create_app(store=store, settings=AuctionSettings())

    def broken():
        raise RuntimeError("players unavailable")

    monkeypatch.setattr(store, "list_players", broken)

    # Starlette re-raises after the catch-all handler has responded.
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        response = await async_client.get("/api/players")
    store.close()

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("application/json")
    assert response.json() == {"detail": "players unavailable"}


@pytest.mark.anyio
async def test_import_rejects_out_of_range_prices(client):
    rows = (
        "Sr No,Player Name,Age,Country,T20 Matches,Runs,Wickets,Catches,Evaluation Points,Base Price,Role,Pool\n"
        "1,Huge Price,30,India,1,1,1,1,1,1e30,Bowler,Pool A\n"
        "2,Infinite Price,30,India,1,1,1,1,1,1e400,Bowler,Pool A\n"
    )
    files = {"file": ("players.csv", rows, "text/csv")}

    response = await client.post("/api/players/import", files=files, data={"commit": "true"})
    assert response.status_code == 200
    report = response.json()
    assert report["errors"] == 1
    assert report["rows"][0]["message"] == "Base price too high"
    assert report["created"] == 1
    assert [player["base_price"] for player in (await client.get("/api/players")).json()] == [1_000_000]
