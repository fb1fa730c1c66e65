"""
Unit tests for IdServerTransport.

The requests session is mocked; no network access happens.
"""

from unittest.mock import MagicMock

import pytest
import requests

from just_id.errors import TransportError
from just_id.io.connectors.id_server import IdServerTransport
from just_id.io.connectors.id_server.transport import sanitize_url_for_logging

URL = "https://id.example.com/getId"


@pytest.fixture
def session() -> MagicMock:
    mock = MagicMock()
    mock.post.return_value = MagicMock(status_code=200, text='{"uid": "u1"}')
    return mock


@pytest.mark.unit
class TestIdServerTransport:
    def test_init_sets_json_headers(self, session) -> None:
        IdServerTransport(timeout=2.5, session=session)

        headers = session.headers.update.call_args.args[0]
        assert headers["Content-Type"].startswith("application/json")

    def test_timeout_defaults_to_settings(self, session, monkeypatch) -> None:
        monkeypatch.setenv("JUSTID_REQUEST_TIMEOUT_SECONDS", "3.5")

        transport = IdServerTransport(session=session)

        assert transport.timeout == 3.5

    @pytest.mark.asyncio
    async def test_post_returns_text(self, session) -> None:
        transport = IdServerTransport(timeout=2.5, session=session)

        body = await transport.post(URL, '{"clientLib": "pbjs"}')

        assert body == '{"uid": "u1"}'
        session.post.assert_called_once_with(
            URL, data=b'{"clientLib": "pbjs"}', timeout=2.5
        )

    @pytest.mark.asyncio
    async def test_connection_error(self, session) -> None:
        session.post.side_effect = requests.ConnectionError("refused")
        transport = IdServerTransport(timeout=1, session=session)

        with pytest.raises(TransportError) as exc_info:
            await transport.post(URL, "{}")

        assert isinstance(exc_info.value.original_error, requests.ConnectionError)
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [304, 404, 500, 503])
    async def test_non_2xx_status(self, session, status_code) -> None:
        session.post.return_value = MagicMock(status_code=status_code, text="")
        transport = IdServerTransport(timeout=1, session=session)

        with pytest.raises(TransportError) as exc_info:
            await transport.post(URL, "{}")

        assert exc_info.value.status_code == status_code
        assert exc_info.value.to_dict()["status_code"] == status_code

    def test_close_closes_session(self, session) -> None:
        IdServerTransport(timeout=1, session=session).close()

        session.close.assert_called_once()


@pytest.mark.unit
def test_sanitize_url_for_logging_drops_query() -> None:
    assert (
        sanitize_url_for_logging("https://id.example.com/getId.js?sourceId=abc")
        == "https://id.example.com/getId.js"
    )
