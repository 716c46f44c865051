from pathlib import Path

import pytest

from cricauction.ingest import PlayerCsvError, load_players_csv, parse_players_csv


HEADER = (
    "Sr No,Player Name,Age,Country,T20 Matches,Runs,Wickets,Catches,"
    "Evaluation Points,Base Price,Role,Pool"
)


def _csv(*rows: str, header: str = HEADER) -> str:
    return "\n".join((header, *rows)) + "\n"


def test_parses_reference_row():
    report = parse_players_csv(
        _csv("1,Jos Buttler,34,England,103,2988,0,85,89,100000000,Wicket-keeper,Pool B")
    )

    assert report.valid == 1
    row = report.rows[0]
    assert row.name == "Jos Buttler"
    assert row.base_price == 100_000_000
    assert row.role == "Wicket-keeper"
    assert row.pool == "Pool B"
    assert row.points == 89
    assert row.stats == {"matches": 103, "runs": 2988, "wickets": 0, "catches": 85}
    fields = row.to_player_fields()
    assert fields["status"] == "Available"
    assert fields["age"] == 34


def test_missing_headers_rejects_file():
    with pytest.raises(PlayerCsvError) as excinfo:
        parse_players_csv("Sr No,Player Name,Age\n1,Someone,20\n")

    assert "Country" in str(excinfo.value)
    assert "Role" in str(excinfo.value)


def test_empty_file_rejected():
    with pytest.raises(PlayerCsvError):
        parse_players_csv("")


def test_short_header_aliases_are_accepted():
    header = HEADER.replace("T20 Matches", "Matches").replace("Evaluation Points", "Eval Points")
    report = parse_players_csv(_csv("1,Rashid Khan,25,Afghanistan,90,400,140,20,92,₹15Cr,Bowler,", header=header))

    row = report.rows[0]
    assert row.base_price == 150_000_000
    assert row.stats["matches"] == 90
    assert row.pool is None


def test_row_validation_statuses():
    report = parse_players_csv(
        _csv(
            "1,A,30,India,1,1,1,1,1,1000000,Batsman,Pool A",
            "2,Valid Name,30,India,1,1,1,1,1,1000000,Captain,Pool A",
            "3,Cheap Player,30,India,1,1,1,1,1,100000,Bowler,Pool A",
            "4,Veteran Player,52,India,1,1,1,1,1,1000000,Bowler,Pool A",
            "5,Veteran Player,30,India,1,1,1,1,1,1000000,Bowler,Pool A",
            "6,Too,Few",
        ),
        existing_names=["virat kohli"],
    )

    messages = [(row.status, row.message) for row in report.rows]
    assert messages == [
        ("error", "Invalid name"),
        ("error", "Invalid role"),
        ("error", "Base price too low"),
        ("warning", "Age outside typical range"),
        ("error", "Duplicate player"),
    ]
    assert report.rejected_lines == ["Line 7: Invalid number of columns"]
    assert report.valid == 0
    assert report.warnings == 1
    assert report.errors == 5
    assert [row.name for row in report.importable] == ["Veteran Player"]


def test_duplicates_against_existing_players():
    report = parse_players_csv(
        _csv("1,Virat Kohli,35,India,1,1,1,1,1,1000000,Batsman,Pool A"),
        existing_names=["virat kohli"],
    )

    assert report.rows[0].message == "Duplicate player"


def test_defaults_for_blank_and_unparseable_cells():
    report = parse_players_csv(_csv('x,"Smith, Steve",,Australia,n/a,,,,,,,'))

    row = report.rows[0]
    assert row.name == "Smith, Steve"
    assert row.sr_no == 1
    assert row.age == 25
    assert row.role == "Batsman"
    assert row.base_price == 1_000_000
    assert row.stats == {"matches": 0, "runs": 0, "wickets": 0, "catches": 0}
    assert row.status == "valid"


def test_load_players_csv_strips_bom(tmp_path: Path):
    path = tmp_path / "players.csv"
    path.write_text("\ufeff" + _csv("1,Jos Buttler,34,England,103,2988,0,85,89,₹10Cr,Wicket-keeper,Pool B"), encoding="utf-8")

    report = load_players_csv(path)

    assert report.rows[0].base_price == 100_000_000


def test_base_price_bounds():
    report = parse_players_csv(
        _csv(
            "1,Huge Price,30,India,1,1,1,1,1,1e30,Bowler,Pool A",
            "2,Infinite Price,30,India,1,1,1,1,1,1e400,Bowler,Pool A",
        )
    )

    huge, infinite = report.rows
    assert (huge.status, huge.message) == ("error", "Base price too high")
    assert infinite.base_price == 1_000_000
    assert infinite.status == "valid"
    assert [row.name for row in report.importable] == ["Infinite Price"]


def test_low_base_price_reported_before_duplicate():
    report = parse_players_csv(
        _csv("1,Virat Kohli,35,India,1,1,1,1,1,100000,Batsman,Pool A"),
        existing_names=["Virat Kohli"],
    )

    assert report.rows[0].message == "Base price too low"
