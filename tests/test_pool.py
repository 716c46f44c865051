import csv
from datetime import datetime, timezone
from io import StringIO

from cricauction.models import Player, Team
from cricauction.pool import export_results_to_csv, summarize_pools


NOW = datetime(2024, 3, 1, tzinfo=timezone.utc)


def _player(name: str, **overrides) -> Player:
    fields = {
        "id": name.lower().replace(" ", "-"),
        "name": name,
        "role": "Bowler",
        "country": "India",
        "base_price": 1_000_000,
        "created_at": NOW,
    }
    fields.update(overrides)
    return Player(**fields)


def test_summarize_pools_keeps_first_seen_order():
    players = [
        _player("A One", pool="Pool B"),
        _player("B Two", pool="Pool A", status="Sold", sold_price=2_000_000),
        _player("C Three", pool="Pool B", base_price=3_000_000),
        _player("D Four"),
    ]

    summaries = summarize_pools(players)

    assert [summary.name for summary in summaries] == ["Pool B", "Pool A"]
    assert [summary.order for summary in summaries] == [1, 2]
    assert summaries[0].player_count == 2
    assert summaries[0].total_base_price == 4_000_000
    assert summaries[0].available_count == 2
    assert summaries[1].sold_count == 1


def test_export_results_header_and_placeholders():
    team = Team(id="t1", name="Chennai, Kings", budget=10, remaining_budget=10, created_at=NOW)
    players = [
        _player("Sold Guy", status="Sold", sold_price=2_500_000, assigned_team="t1"),
        _player("Open Guy"),
        _player("Orphan Guy", status="Sold", sold_price=1_000_000, assigned_team="gone"),
    ]

    text = export_results_to_csv(players, [team])
    rows = list(csv.reader(StringIO(text)))

    assert text.startswith("Player Name,Role,Country,Base Price,Sold Price,Team,Status")
    assert rows[1] == ["Sold Guy", "Bowler", "India", "1000000", "2500000", "Chennai, Kings", "Sold"]
    assert rows[2] == ["Open Guy", "Bowler", "India", "1000000", "N/A", "N/A", "Available"]
    assert rows[3][5] == "gone"
    assert len(rows) == 4
