"""
CLI and keep-alive tests.

Verifies:
- staff create / list commands
- system ping reports a reachable database
- The keep-alive thread stays off under TESTING
"""

from kouriten import create_app
from kouriten.config import TestingConfig
from kouriten.extensions import db
from kouriten.keepalive import start_keepalive
from kouriten.models import Staff
from kouriten.services.auth_service import verify_password


class TestStaffCommands:

    def test_create_and_list(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "staff", "create", "--username", "mika", "--password", "Sleeve$Up9", "--role", "admin",
        ])
        assert result.exit_code == 0, result.output
        assert "Created staff: mika" in result.output

        staff = db.session.query(Staff).filter_by(username="mika").one()
        assert staff.role == "admin"
        assert verify_password("Sleeve$Up9", staff.password_hash)

        listing = runner.invoke(args=["staff", "list"])
        assert "mika" in listing.output

    def test_weak_password_fails(self, app):
        result = app.test_cli_runner().invoke(args=[
            "staff", "create", "--username", "mika", "--password", "weak",
        ])
        assert result.exit_code == 1
        assert "Failed to create staff" in result.output

    def test_empty_list(self, app):
        result = app.test_cli_runner().invoke(args=["staff", "list"])
        assert "No staff found." in result.output


class TestSystemCommands:

    def test_ping(self, app):
        result = app.test_cli_runner().invoke(args=["system", "ping"])
        assert result.exit_code == 0
        assert "Database reachable" in result.output


class TestKeepalive:

    def test_disabled_when_testing(self, app):
        assert start_keepalive(app) is None
        assert "keepalive_stop" not in app.extensions

    def test_disabled_by_zero_interval(self):
        class NoPingConfig(TestingConfig):
            TESTING = False
            KEEPALIVE_INTERVAL_SECONDS = 0

        app = create_app(NoPingConfig)
        assert "keepalive_stop" not in app.extensions
