# ---------- tests/test_cli_auth.py ----------
from todo_cli.main import cli


def test_user_registration(runner):
    """Test user registration."""
    result = runner.invoke(cli, ["register", "-u", "alice", "-e", "alice@example.com", "-p", "secret123"])

    assert result.exit_code == 0, result.output
    assert "Registration successful" in result.output

    # Try to register with the same username
    result = runner.invoke(cli, ["register", "-u", "alice", "-p", "otherpass"])
    assert result.exit_code == 2
    assert "already exists" in result.output


def test_registration_weak_password(runner):
    result = runner.invoke(cli, ["register", "-u", "alice", "-p", "123"])

    assert result.exit_code == 2
    assert "at least 6 characters" in result.output


def test_registration_prompts_for_password(runner):
    result = runner.invoke(cli, ["register", "-u", "alice"], input="secret123\nsecret123\n")

    assert result.exit_code == 0, result.output
    result = runner.invoke(cli, ["login", "-u", "alice", "-p", "secret123"])
    assert result.exit_code == 0, result.output


def test_login_valid_credentials(runner, data_dir):
    """Test login with valid credentials."""
    runner.invoke(cli, ["register", "-u", "alice", "-p", "secret123"])

    result = runner.invoke(cli, ["login", "-u", "alice", "-p", "secret123"])

    assert result.exit_code == 0, result.output
    assert "Welcome back, alice" in result.output
    assert (data_dir / "session.json").exists()


def test_login_invalid_credentials(runner):
    """Wrong password and unknown user look the same."""
    runner.invoke(cli, ["register", "-u", "alice", "-p", "secret123"])

    wrong_password = runner.invoke(cli, ["login", "-u", "alice", "-p", "wrongpassword"])
    unknown_user = runner.invoke(cli, ["login", "-u", "nobody", "-p", "secret123"])

    assert wrong_password.exit_code == 3
    assert unknown_user.exit_code == 3
    assert wrong_password.output == unknown_user.output
    assert "Invalid username or password" in wrong_password.output


def test_access_without_login(runner):
    """Test running protected commands without a session."""
    for args in (["list"], ["add", "-t", "Nope"], ["complete", "abcd1234"], ["overdue"],
                 ["today"], ["reminders"], ["delete", "abcd1234", "--yes"]):
        result = runner.invoke(cli, args)
        assert result.exit_code == 3, f"{args}: expected 3, got {result.exit_code}"
        assert "Please login first" in result.output


def test_logout(runner, logged_in, data_dir):
    result = runner.invoke(cli, ["logout"])
    assert result.exit_code == 0
    assert not (data_dir / "session.json").exists()

    result = runner.invoke(cli, ["list"])
    assert result.exit_code == 3

    # Logging out twice is fine
    assert runner.invoke(cli, ["logout"]).exit_code == 0


def test_status(runner):
    result = runner.invoke(cli, ["status"])
    assert result.exit_code == 0
    assert "Not logged in" in result.output

    runner.invoke(cli, ["register", "-u", "alice", "-e", "alice@example.com", "-p", "secret123"])
    runner.invoke(cli, ["login", "-u", "alice", "-p", "secret123"])

    result = runner.invoke(cli, ["status"])
    assert result.exit_code == 0, result.output
    assert "alice@example.com" in result.output
    assert "Daily Summary: 0 pending" in result.output


def test_interactive_login(runner):
    runner.invoke(cli, ["register", "-u", "alice", "-p", "secret123"])

    # Login, then pick the last menu entry (Exit)
    result = runner.invoke(cli, [], input="1\nalice\nsecret123\n11\n")

    assert result.exit_code == 0, result.output
    assert "Welcome back, alice" in result.output


def test_interactive_exit_without_login(runner):
    result = runner.invoke(cli, [], input="3\n")

    assert result.exit_code == 0
    assert "Welcome to Todo CLI" in result.output
