"""Unit tests for the Typer CLI."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
import respx
from typer.testing import CliRunner

from commerce_subscriptions.cli import app

runner = CliRunner()

API_URL = "https://api.example.com"
AUTH_URL = "https://auth.example.com"

VALID = """\
key: orders-to-pubsub
destination:
  type: google_pubsub
  project_id: my-project
  topic: orders
messages:
  - resource_type_id: order
"""

MISSING_FIELDS = """\
destination:
  type: SQS
  access_key: some-access-key
messages:
  - resource_type_id: order
"""

NUMERIC_ACCOUNT = """\
destination:
  type: event_bridge
  region: eu-west-1
  account_id: 123456789012
messages:
  - resource_type_id: order
"""


@pytest.fixture
def provider_file(tmp_path: Path) -> Path:
    path = tmp_path / "provider.yaml"
    path.write_text(
        f"client:\n"
        f"  api_url: {API_URL}\n"
        f"  auth_url: {AUTH_URL}\n"
        f"  project_key: shop\n"
        f"  client_id: id\n"
        f"  client_secret: secret\n"
        f"  retry:\n"
        f"    max_attempts: 1\n"
        f"destroy_wait:\n"
        f"  timeout_seconds: 0\n"
        f"  interval_seconds: 0\n"
    )
    return path


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "subscription.yaml"
    path.write_text(text)
    return path


def _mock_token(respx_mock: respx.MockRouter) -> None:
    respx_mock.post(f"{AUTH_URL}/oauth/token").mock(
        return_value=httpx.Response(
            200, json={"access_token": "tok", "expires_in": 3600}
        )
    )


class TestValidate:
    def test_valid(self, tmp_path: Path):
        result = runner.invoke(app, ["validate", str(_write(tmp_path, VALID))])
        assert result.exit_code == 0
        assert "Valid" in result.stdout
        assert "google_pubsub" in result.stdout

    def test_lists_every_missing_field(self, tmp_path: Path):
        result = runner.invoke(app, ["validate", str(_write(tmp_path, MISSING_FIELDS))])
        assert result.exit_code == 1
        for field in ("queue_url", "access_secret", "region"):
            assert f"destination type 'SQS' requires field '{field}'" in result.stdout
        assert "'access_key'" not in result.stdout

    def test_unknown_type(self, tmp_path: Path):
        text = VALID.replace("google_pubsub", "SQS1")
        result = runner.invoke(app, ["validate", str(_write(tmp_path, text))])
        assert result.exit_code == 1
        assert "unknown destination type 'SQS1'" in result.stdout

    def test_numeric_field_value(self, tmp_path: Path):
        path = _write(tmp_path, NUMERIC_ACCOUNT)
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 0
        assert "Valid" in result.stdout

    def test_missing_file(self, tmp_path: Path):
        result = runner.invoke(app, ["validate", str(tmp_path / "absent.yaml")])
        assert result.exit_code == 1


class TestPlan:
    def test_prints_masked_draft(self, tmp_path: Path):
        text = VALID.replace(
            "  type: google_pubsub\n  project_id: my-project\n  topic: orders\n",
            "  type: azure_servicebus\n  connection_string: Endpoint=sb://x;Key=k\n",
        )
        result = runner.invoke(app, ["plan", str(_write(tmp_path, text))])
        assert result.exit_code == 0
        draft = json.loads(result.stdout)
        assert draft["destination"] == {
            "type": "AzureServiceBus",
            "connectionString": "**********",
        }

    def test_numeric_field_value_renders_as_string(self, tmp_path: Path):
        result = runner.invoke(app, ["plan", str(_write(tmp_path, NUMERIC_ACCOUNT))])
        assert result.exit_code == 0
        draft = json.loads(result.stdout)
        assert draft["destination"] == {
            "type": "EventBridge",
            "region": "eu-west-1",
            "accountId": "123456789012",
        }


class TestApply:
    def test_creates(
        self, tmp_path: Path, provider_file: Path, respx_mock: respx.MockRouter
    ):
        _mock_token(respx_mock)
        create = respx_mock.post(f"{API_URL}/shop/subscriptions").mock(
            return_value=httpx.Response(201, json={"id": "sub-1", "version": 1})
        )
        result = runner.invoke(
            app,
            [
                "apply",
                str(_write(tmp_path, VALID)),
                "--provider-config",
                str(provider_file),
            ],
        )
        assert result.exit_code == 0
        assert "id=sub-1" in result.stdout
        sent = json.loads(create.calls.last.request.content)
        assert sent["destination"]["type"] == "GoogleCloudPubSub"

    def test_platform_rejection_is_reported(
        self, tmp_path: Path, provider_file: Path, respx_mock: respx.MockRouter
    ):
        _mock_token(respx_mock)
        respx_mock.post(f"{API_URL}/shop/subscriptions").mock(
            return_value=httpx.Response(
                400,
                json={
                    "statusCode": 400,
                    "message": "A test message could not be delivered",
                    "errors": [{"code": "InvalidInput"}],
                },
            )
        )
        result = runner.invoke(
            app,
            [
                "apply",
                str(_write(tmp_path, VALID)),
                "--provider-config",
                str(provider_file),
            ],
        )
        assert result.exit_code == 1
        assert "Error creating subscription" in result.stdout
        assert "test message" in result.stdout

    def test_invalid_destination_makes_no_request(
        self, tmp_path: Path, provider_file: Path
    ):
        result = runner.invoke(
            app,
            [
                "apply",
                str(_write(tmp_path, MISSING_FIELDS)),
                "--provider-config",
                str(provider_file),
            ],
        )
        assert result.exit_code == 1
        assert "Validation error" in result.stdout


class TestShow:
    def test_found(self, provider_file: Path, respx_mock: respx.MockRouter):
        _mock_token(respx_mock)
        respx_mock.get(f"{API_URL}/shop/subscriptions/sub-1").mock(
            return_value=httpx.Response(
                200,
                json={
                    "id": "sub-1",
                    "version": 3,
                    "key": "orders",
                    "destination": {"type": "EventBridge"},
                    "status": "Healthy",
                },
            )
        )
        result = runner.invoke(
            app, ["show", "sub-1", "--provider-config", str(provider_file)]
        )
        assert result.exit_code == 0
        assert "EventBridge" in result.stdout
        assert "Healthy" in result.stdout

    def test_not_found(self, provider_file: Path, respx_mock: respx.MockRouter):
        _mock_token(respx_mock)
        respx_mock.get(f"{API_URL}/shop/subscriptions/sub-1").mock(
            return_value=httpx.Response(404)
        )
        result = runner.invoke(
            app, ["show", "sub-1", "--provider-config", str(provider_file)]
        )
        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_auth_failure_is_reported(
        self, provider_file: Path, respx_mock: respx.MockRouter
    ):
        respx_mock.post(f"{AUTH_URL}/oauth/token").mock(
            return_value=httpx.Response(401, text="invalid_client")
        )
        result = runner.invoke(
            app, ["show", "sub-1", "--provider-config", str(provider_file)]
        )
        assert result.exit_code == 1
        assert "Error reading subscription" in result.stdout


class TestCheckDestroyed:
    def test_destroyed(self, provider_file: Path, respx_mock: respx.MockRouter):
        _mock_token(respx_mock)
        respx_mock.get(f"{API_URL}/shop/subscriptions/sub-1").mock(
            return_value=httpx.Response(404)
        )
        result = runner.invoke(
            app, ["check-destroyed", "sub-1", "--provider-config", str(provider_file)]
        )
        assert result.exit_code == 0
        assert "destroyed" in result.stdout

    def test_still_exists(self, provider_file: Path, respx_mock: respx.MockRouter):
        _mock_token(respx_mock)
        respx_mock.get(f"{API_URL}/shop/subscriptions/sub-1").mock(
            return_value=httpx.Response(200, json={"id": "sub-1", "version": 2})
        )
        result = runner.invoke(
            app, ["check-destroyed", "sub-1", "--provider-config", str(provider_file)]
        )
        assert result.exit_code == 1
        assert "still exists" in result.stdout

    def test_inconclusive(self, provider_file: Path, respx_mock: respx.MockRouter):
        _mock_token(respx_mock)
        respx_mock.get(f"{API_URL}/shop/subscriptions/sub-1").mock(
            return_value=httpx.Response(503)
        )
        result = runner.invoke(
            app, ["check-destroyed", "sub-1", "--provider-config", str(provider_file)]
        )
        assert result.exit_code == 2

    def test_invalid_provider_config(self, tmp_path: Path):
        path = tmp_path / "provider.yaml"
        path.write_text("client:\n  project_key: ''\n")
        result = runner.invoke(
            app, ["check-destroyed", "sub-1", "--provider-config", str(path)]
        )
        assert result.exit_code == 1
        assert "Error loading provider config" in result.stdout


class TestDestroy:
    def test_delete_then_wait(self, provider_file: Path, respx_mock: respx.MockRouter):
        _mock_token(respx_mock)
        delete = respx_mock.delete(f"{API_URL}/shop/subscriptions/sub-1").mock(
            return_value=httpx.Response(200, json={"id": "sub-1", "version": 2})
        )
        respx_mock.get(f"{API_URL}/shop/subscriptions/sub-1").mock(
            return_value=httpx.Response(404)
        )
        result = runner.invoke(
            app,
            [
                "destroy",
                "sub-1",
                "--version",
                "2",
                "--wait",
                "--yes",
                "--provider-config",
                str(provider_file),
            ],
        )
        assert result.exit_code == 0
        assert delete.called

    def test_cancelled(self, provider_file: Path):
        result = runner.invoke(
            app,
            ["destroy", "sub-1", "--provider-config", str(provider_file)],
            input="n\n",
        )
        assert result.exit_code == 0
        assert "Cancelled" in result.stdout

    def test_already_gone(self, provider_file: Path, respx_mock: respx.MockRouter):
        _mock_token(respx_mock)
        lookup = respx_mock.get(f"{API_URL}/shop/subscriptions/abc").mock(
            return_value=httpx.Response(404, json={"message": "gone"})
        )
        result = runner.invoke(
            app, ["destroy", "abc", "--yes", "--provider-config", str(provider_file)]
        )
        assert result.exit_code == 0
        assert "destroyed" in result.stdout
        assert lookup.call_count == 2

    def test_delete_failure_is_reported(
        self, provider_file: Path, respx_mock: respx.MockRouter
    ):
        _mock_token(respx_mock)
        respx_mock.delete(f"{API_URL}/shop/subscriptions/sub-1").mock(
            return_value=httpx.Response(409, json={"message": "version mismatch"})
        )
        result = runner.invoke(
            app,
            [
                "destroy",
                "sub-1",
                "--version",
                "1",
                "--yes",
                "--provider-config",
                str(provider_file),
            ],
        )
        assert result.exit_code == 1
        assert "Error deleting subscription" in result.stdout
