from unittest.mock import patch

import pytest
import requests

from ipam_sync.config import settings
from ipam_sync.core.context import Initiator, TenantContext
from ipam_sync.core.errors import AuthExpired, FetchError, InvalidResponseShape, SheetNotAccessible
from ipam_sync.sources import open_source, relay_headers, source_kind
from ipam_sync.sources.rest import RestSource
from ipam_sync.sources.sheets import (
    OAuthSheetSource,
    PublicSheetSource,
    extract_spreadsheet_id,
    parse_csv_records,
    read_public_sheet,
    rows_to_records,
)
from tests.conftest import fake_response

SHEET_URL = "https://docs.google.com/spreadsheets/d/1AbC-d_9/edit#gid=0"


class TestRestSource:
    def test_returns_json_array(self):
        source = RestSource({"api_url": "https://cmdb.example.com/items", "timeout": 5})
        with patch.object(requests.Session, "get", return_value=fake_response(200, [{"n": "srv1"}])) as mock_get:
            assert source.fetch_records() == [{"n": "srv1"}]
        mock_get.assert_called_once_with("https://cmdb.example.com/items", headers={}, timeout=5)

    def test_non_2xx_status(self):
        source = RestSource({"api_url": "https://cmdb.example.com/items"})
        with patch.object(requests.Session, "get", return_value=fake_response(503, {"error": "down"})):
            with pytest.raises(FetchError, match="API request failed: 503"):
                source.fetch_records()

    def test_body_not_an_array(self):
        source = RestSource({"api_url": "https://cmdb.example.com/items"})
        with patch.object(requests.Session, "get", return_value=fake_response(200, {"items": []})):
            with pytest.raises(InvalidResponseShape):
                source.fetch_records()

    def test_body_not_json(self):
        source = RestSource({"api_url": "https://cmdb.example.com/items"})
        with patch.object(requests.Session, "get", return_value=fake_response(200, None, text="<html>")):
            with pytest.raises(InvalidResponseShape):
                source.fetch_records()

    def test_network_error(self):
        source = RestSource({"api_url": "https://cmdb.example.com/items"})
        with patch.object(requests.Session, "get", side_effect=requests.ConnectionError("refused")):
            with pytest.raises(FetchError, match="refused"):
                source.fetch_records()

    def test_default_timeout_from_settings(self):
        assert RestSource({"api_url": "x"}).timeout == settings.SOURCE_TIMEOUT_SECONDS


class TestSheetSources:
    def test_public_posts_defaults(self):
        source = PublicSheetSource({
            "api_url": SHEET_URL,
            "service_url": "http://sheets.local/",
            "forward_headers": {"Authorization": "Bearer t"},
        })
        with patch.object(requests.Session, "post", return_value=fake_response(200, {"data": [{"a": "1"}]})) as mock_post:
            assert source.fetch_records() == [{"a": "1"}]

        args, kwargs = mock_post.call_args
        assert args[0] == "http://sheets.local/api/google-sheets/fetch"
        assert kwargs["json"] == {"spreadsheetUrl": SHEET_URL, "sheetName": "Sheet1", "range": "A:Z"}
        assert kwargs["headers"] == {"Authorization": "Bearer t"}

    def test_public_failure(self):
        source = PublicSheetSource({"api_url": SHEET_URL})
        with patch.object(requests.Session, "post", return_value=fake_response(403, {"error": "not shared"})):
            with pytest.raises(FetchError, match="not shared"):
                source.fetch_records()

    def test_oauth_resolves_id_from_url(self):
        source = OAuthSheetSource({"api_url": SHEET_URL, "service_url": "http://reader"})
        assert source.spreadsheet_id == "1AbC-d_9"

        with patch.object(requests.Session, "post", return_value=fake_response(200, {"data": []})) as mock_post:
            assert source.fetch_records() == []
        args, kwargs = mock_post.call_args
        assert args[0] == "http://reader/api/google-sheets/private"
        assert kwargs["json"]["spreadsheetId"] == "1AbC-d_9"

    def test_oauth_missing_id(self):
        source = OAuthSheetSource({"api_url": "https://example.com/not-a-sheet"})
        with pytest.raises(FetchError, match="ID is not configured"):
            source.fetch_records()

    @pytest.mark.parametrize("body", [
        {"code": "GOOGLE_AUTH_EXPIRED", "error": "expired"},
        {"requireReauth": True, "error": "login again"},
    ])
    def test_oauth_auth_expired(self, body):
        source = OAuthSheetSource({"spreadsheet_id": "abc"})
        with patch.object(requests.Session, "post", return_value=fake_response(401, body)):
            with pytest.raises(AuthExpired) as exc:
                source.fetch_records()
        assert exc.value.to_dict()["requireReauth"] is True
        assert exc.value.error_code == "GOOGLE_AUTH_EXPIRED"

    def test_oauth_generic_failure_is_not_auth_expired(self):
        source = OAuthSheetSource({"spreadsheet_id": "abc"})
        with patch.object(requests.Session, "post", return_value=fake_response(500, {"error": "boom"})):
            with pytest.raises(FetchError) as exc:
                source.fetch_records()
        assert not isinstance(exc.value, AuthExpired)


class TestSourceSelection:
    def test_kinds(self, make_connection):
        assert source_kind(make_connection(connection_type="rest")) == "rest"
        assert source_kind(make_connection(connection_type="google_sheets", auth_type="oauth")) == "google_sheets:oauth"
        assert source_kind(make_connection(connection_type="google_sheets", auth_type="public")) == "google_sheets:public"
        assert source_kind(make_connection(connection_type="google_sheets")) == "google_sheets:public"

    def test_open_source_adapters(self, context, make_connection):
        assert isinstance(open_source(make_connection(connection_type="rest"), context), RestSource)
        assert isinstance(open_source(make_connection(connection_type="REST API"), context), RestSource)
        sheets = make_connection(connection_type="google_sheets", auth_type="oauth")
        adapter = open_source(sheets, context)
        assert isinstance(adapter, OAuthSheetSource)
        assert adapter.spreadsheet_id == "sheet123"

    def test_rest_sends_connection_headers(self, context, make_connection):
        connection = make_connection(connection_type="rest", headers={"X-Api-Key": "k1"})
        with patch.object(requests.Session, "get", return_value=fake_response(200, [])) as mock_get:
            with open_source(connection, context) as source:
                source.fetch_records()
        assert mock_get.call_args[1]["headers"] == {"X-Api-Key": "k1"}

    @pytest.mark.parametrize("kind", ["graphql", "webhook"])
    def test_push_kinds_unsupported(self, context, make_connection, kind):
        with pytest.raises(FetchError, match=f"'{kind}' does not support pull sync"):
            open_source(make_connection(connection_type=kind), context)

    def test_system_runs_identify_themselves(self, tenant):
        context = TenantContext(tenant_id=tenant.id, user_id=None, initiator=Initiator.system())
        headers = relay_headers(context)
        assert headers[settings.SYSTEM_SYNC_HEADER] == settings.SYSTEM_SYNC_HEADER_VALUE

    def test_user_runs_forward_caller_headers(self, context):
        context = TenantContext(
            tenant_id=context.tenant_id, user_id=context.user_id,
            initiator=context.initiator, forward_headers={"Cookie": "sid=1"},
        )
        assert relay_headers(context) == {"Cookie": "sid=1"}


class TestPublicSheetReader:
    def test_extract_spreadsheet_id(self):
        assert extract_spreadsheet_id(SHEET_URL) == "1AbC-d_9"
        assert extract_spreadsheet_id("https://example.com") is None
        assert extract_spreadsheet_id(None) is None

    def test_csv_drops_ragged_rows(self):
        text = 'name,version\nopenssl,3.0\n"zlib, compat",1.3\nbroken\n\n'
        assert parse_csv_records(text) == [
            {"name": "openssl", "version": "3.0"},
            {"name": "zlib, compat", "version": "1.3"},
        ]

    def test_rows_to_records_pads_short_rows(self):
        assert rows_to_records([["name", "version"], ["nginx"]]) == [{"name": "nginx", "version": ""}]
        assert rows_to_records([]) == []

    def test_csv_export_used_first(self):
        with patch("ipam_sync.sources.sheets.requests.get", return_value=fake_response(200, text="name\nsrv1\n")) as mock_get:
            spreadsheet_id, records, method = read_public_sheet(SHEET_URL)
        assert (spreadsheet_id, records, method) == ("1AbC-d_9", [{"name": "srv1"}], "csv")
        assert "export?format=csv&gid=0" in mock_get.call_args[0][0]

    def test_values_api_fallback(self, monkeypatch):
        monkeypatch.setattr(settings, "GOOGLE_API_KEY", "key-1")
        responses = [
            fake_response(401),
            fake_response(200, {"values": [["name"], ["srv1"], ["srv2"]]}),
        ]
        with patch("ipam_sync.sources.sheets.requests.get", side_effect=responses) as mock_get:
            _, records, method = read_public_sheet(SHEET_URL, "Hosts", "A:C")
        assert method == "api"
        assert records == [{"name": "srv1"}, {"name": "srv2"}]
        assert "/values/Hosts!A:C" in mock_get.call_args[0][0]
        assert mock_get.call_args[1]["params"] == {"key": "key-1"}

    def test_not_shared(self, monkeypatch):
        monkeypatch.setattr(settings, "GOOGLE_API_KEY", "")
        with patch("ipam_sync.sources.sheets.requests.get", return_value=fake_response(401)):
            with pytest.raises(SheetNotAccessible):
                read_public_sheet(SHEET_URL)
