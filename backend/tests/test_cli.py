"""CLI command tests."""

from frontdesk.models import Room


def test_seed_and_list_rooms(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["rooms", "seed", "--floors", "2", "--per-floor", "3"])
    assert result.exit_code == 0
    assert "Created 6 rooms" in result.output

    # existing numbers are skipped
    result = runner.invoke(args=["rooms", "seed", "--floors", "2", "--per-floor", "3"])
    assert "Created 0 rooms" in result.output
    assert db_session.query(Room).count() == 6

    result = runner.invoke(args=["rooms", "list"])
    lines = [line.split() for line in result.output.splitlines() if line.strip() and line.split()[0].isdigit()]
    assert [int(cols[2]) for cols in lines] == [101, 102, 103, 201, 202, 203]


def test_list_rooms_invalid_status(app, db_session):
    result = app.test_cli_runner().invoke(args=["rooms", "list", "--status", "haunted"])
    assert result.exit_code != 0
    assert "Invalid status" in result.output


def test_show_stay_ledger(app, make_room, make_stay, add_entry):
    stay = make_stay(make_room(101), rent_cents=100000)
    add_entry(stay, 50000, "extension", mode="n/a")

    result = app.test_cli_runner().invoke(args=["stays", "show", str(stay.id)])

    assert result.exit_code == 0
    assert "Check-in" in result.output
    assert "Extension" in result.output
    assert "Pending balance: ₹500.00" in result.output


def test_show_missing_stay(app, db_session):
    result = app.test_cli_runner().invoke(args=["stays", "show", "999"])
    assert result.exit_code != 0
    assert "Stay 999 not found" in result.output
