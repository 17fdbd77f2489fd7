import pytest

import shell
from credentials import UserDirectory
from models import Identity
from shell import ShellContext, handle_command, parse_args


@pytest.fixture
def ctx(ledger, archive, tmp_path):
    users = UserDirectory(str(tmp_path / "users.json"), str(tmp_path / "admin_users.json"))
    return ShellContext(ledger=ledger, users=users, archive=archive)


def feed_input(monkeypatch, answers):
    answers = iter(answers)
    monkeypatch.setattr("builtins.input", lambda _prompt="": next(answers))


def test_parse_args():
    assert parse_args(["-id", "ISS-1", "-admin"]) == {"-id": "ISS-1", "-admin": True}
    assert parse_args(["-admin", "-u", "bob"]) == {"-admin": True, "-u": "bob"}


def test_list_on_empty_inventory(ctx, capsys):
    handle_command(ctx, "l")

    assert "No components found." in capsys.readouterr().out


def test_interactive_issue_submission(ctx, store, monkeypatch, capsys):
    header = ["ISS-9", "2026-03-01", "", "Lab 1", "", "R. Rao"]
    line = ["P-1", "Relay"] + [""] * 9
    feed_input(monkeypatch, header + line + [""])

    handle_command(ctx, "i")

    assert "Successfully submitted 1 components for approval" in capsys.readouterr().out
    (record,) = store.load()
    assert record["Issue No"] == "ISS-9"
    assert record["Name"] == "Relay"
    assert "SO PDF" not in record


def test_list_get_and_pending(ctx, make_issue, capsys):
    ctx.ledger.submit_issue(make_issue("ISS-1", count=2))

    handle_command(ctx, "l")
    handle_command(ctx, "p")
    handle_command(ctx, "g -id component:CMP-002")

    out = capsys.readouterr().out
    assert out.count("CMP-001") == 2
    assert "P-2" in out


def test_approve_requires_admin(ctx, make_issue, store, capsys):
    ctx.ledger.submit_issue(make_issue("ISS-1"))

    handle_command(ctx, "ap -id ISS-1 -s sig")

    assert "Admin login required." in capsys.readouterr().out
    assert store.load()[0]["Status"] == "Pending"


def test_admin_approves_with_own_name(ctx, make_issue, store, capsys):
    ctx.ledger.submit_issue(make_issue("ISS-1", count=2))
    ctx.identity = Identity(id="ADMIN-1", name="chief", role="admin")

    handle_command(ctx, "ap -id ISS-1 -s C.H.")

    assert "2 item(s) updated" in capsys.readouterr().out
    assert {r["Approved By"] for r in store.load()} == {"chief"}


def test_reject_reports_not_found(ctx, capsys):
    ctx.identity = Identity(id="ADMIN-1", name="chief", role="admin")

    handle_command(ctx, "rj -id ISS-404 -m 'wrong part'")

    assert "Failed (not_found)" in capsys.readouterr().out


def test_delete_asks_for_confirmation(ctx, make_issue, store, monkeypatch, capsys):
    ctx.ledger.submit_issue(make_issue("ISS-1", count=2))

    feed_input(monkeypatch, ["n"])
    handle_command(ctx, "d -id CMP-001")
    feed_input(monkeypatch, ["y"])
    handle_command(ctx, "d -id CMP-001")

    out = capsys.readouterr().out
    assert "Cancelled." in out
    assert "Successfully deleted 1 component(s)" in out
    assert len(store.load()) == 1


def test_signup_and_login(ctx, monkeypatch, capsys):
    monkeypatch.setattr(shell, "prompt", lambda *_args, **_kwargs: "secret")

    handle_command(ctx, "signup -u boss -admin")
    handle_command(ctx, "login -u boss -admin")

    assert "Logged in as boss (admin)." in capsys.readouterr().out
    assert ctx.identity.role == "admin"

    handle_command(ctx, "logout")
    assert ctx.identity is None


def test_archive_errors_are_printed(ctx, capsys):
    handle_command(ctx, "fd -n ghost.txt")

    assert "Error: File not found" in capsys.readouterr().out


def test_exit_and_unknown(ctx, capsys):
    assert handle_command(ctx, "x") == "exit"

    handle_command(ctx, "zz")
    assert "Unknown command" in capsys.readouterr().out


@pytest.mark.parametrize("command", ["g -id", "ap -id", "rj -id -m late", "u -id", "d -id"])
def test_id_flag_without_value_asks_for_it(ctx, make_issue, store, command, capsys):
    ctx.ledger.submit_issue(make_issue("ISS-1"))
    ctx.identity = Identity(id="ADMIN-1", name="chief", role="admin")

    handle_command(ctx, command)

    out = capsys.readouterr().out
    assert "with -id" in out
    assert "Error" not in out
    assert store.load()[0]["Status"] == "Pending"
