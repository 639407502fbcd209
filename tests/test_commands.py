from unittest.mock import patch

import requests

from ipam_sync.auth import verify_token
from ipam_sync.models import Device, SyncRun, Tenant, User
from ipam_sync.tasks.sync_tasks import auto_sync_connections, reap_stale_sync_runs, sync_connection
from tests.conftest import fake_response


class TestCommands:
    def test_create_user_and_issue_token(self, app):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["create-user", "--email", "ops@acme.test", "--tenant", "acme"])
        assert result.exit_code == 0
        user = User.query.filter_by(email="ops@acme.test").one()
        assert user.current_tenant_id == Tenant.query.filter_by(name="acme").one().id

        result = runner.invoke(args=["issue-token", "ops@acme.test"])
        assert result.exit_code == 0
        assert verify_token(result.output.strip()).id == user.id

    def test_issue_token_unknown_user(self, app):
        result = app.test_cli_runner().invoke(args=["issue-token", "ghost@acme.test"])
        assert result.exit_code != 0

    def test_sync_command(self, app, system_user, make_connection):
        connection = make_connection("devices", {"name": "n"})
        with patch.object(requests.Session, "get", return_value=fake_response(200, [{"n": "srv1"}])):
            result = app.test_cli_runner().invoke(args=["sync", str(connection.id)])
        assert result.exit_code == 0, result.output
        assert "1 added" in result.output
        assert SyncRun.query.one().execution_type == "auto"

    def test_sync_command_failure(self, app, system_user, make_connection):
        connection = make_connection("devices")
        with patch.object(requests.Session, "get", return_value=fake_response(500, {"error": "x"})):
            result = app.test_cli_runner().invoke(args=["sync", str(connection.id)])
        assert result.exit_code != 0
        assert "API request failed: 500" in result.output


class TestTasks:
    def test_auto_sync_task(self, app, system_user, make_connection):
        make_connection("devices", {"name": "n"}, auto_sync_enabled=True)
        with patch.object(requests.Session, "get", return_value=fake_response(200, [{"n": "srv1"}])):
            result = auto_sync_connections.run()
        assert result["connections_synced"] == 1
        assert Device.query.count() == 1

    def test_sync_connection_task(self, app, system_user, make_connection):
        connection = make_connection("devices", {"name": "n"})
        with patch.object(requests.Session, "get", return_value=fake_response(200, [{"n": "srv1"}])):
            result = sync_connection.run(str(connection.id))
        assert result["stats"]["recordsAdded"] == 1

    def test_sync_connection_task_reports_errors(self, app, system_user, make_connection):
        connection = make_connection("devices")
        with patch.object(requests.Session, "get", return_value=fake_response(503, {"error": "x"})):
            result = sync_connection.run(str(connection.id))
        assert result["code"] == "FETCH_ERROR"

    def test_reap_task(self, app):
        assert reap_stale_sync_runs.run() == {"reaped": 0}
