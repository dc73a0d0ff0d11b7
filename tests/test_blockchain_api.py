import os
import unittest
from unittest.mock import patch

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from fairdraw.blockchain.api import ChainClient
from fairdraw.errors import RevealWindowNotFinishedError
from fairdraw.lottery import DrawRegistry, make_commitment
from fairdraw.models import Base, Draw
from fairdraw.workflows import commit, create_draw, finalize_with_chain_entropy, reveal

BLOCK_HASH = "0x" + "11" * 32


class DummyResponse:
    def __init__(self, json_data=None, content: bytes = b""):
        self._json = json_data
        if json_data is not None and not content:
            import json as _json

            content = _json.dumps(json_data).encode()
        self.content = content

    def json(self):
        return self._json

    def raise_for_status(self):
        pass


class DummySession:
    def __init__(self, response: DummyResponse):
        self.response = response
        self.calls = []

    def request(self, method, url, headers=None, params=None, timeout=None):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "headers": headers,
                "params": params,
                "timeout": timeout,
            }
        )
        return self.response


class DummyChainClient:
    def __init__(self, digest: bytes):
        self.digest = digest
        self.requested_heights: list = []

    def block_hash(self, height=None) -> bytes:
        self.requested_heights.append(height)
        return self.digest


class TestChainClient(unittest.TestCase):
    @patch("fairdraw.blockchain.api.open_session")
    @patch("fairdraw.blockchain.api.load_dotenv")
    def test_requires_base_url(self, mock_load_dotenv, mock_open_session):
        # Ensure environment variable is not set and no network call is made
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ValueError):
                ChainClient()
        mock_open_session.assert_not_called()

    @patch("fairdraw.blockchain.api.open_session")
    def test_init_sets_base_url_and_timeout(self, mock_open_session):
        mock_open_session.return_value = DummySession(DummyResponse(json_data={}))
        client = ChainClient(base_url="chain.example.com/", timeout=5)
        self.assertEqual(client.base_url, "https://chain.example.com")
        self.assertEqual(client.timeout, 5)
        mock_open_session.assert_called_once_with("https://chain.example.com")

    @patch("fairdraw.blockchain.api.open_session")
    def test_block_hash_latest_and_by_height(self, mock_open_session):
        session = DummySession(DummyResponse(json_data={"height": 7, "hash": BLOCK_HASH}))
        mock_open_session.return_value = session
        client = ChainClient(base_url="http://node:8080", timeout=3)

        self.assertEqual(client.block_hash(), bytes([0x11]) * 32)
        self.assertEqual(session.calls[0]["url"], "http://node:8080/api/v1/blocks/latest")
        self.assertEqual(session.calls[0]["timeout"], 3)

        client.block_hash(42)
        self.assertEqual(session.calls[1]["url"], "http://node:8080/api/v1/blocks/42")

    @patch("fairdraw.blockchain.api.open_session")
    def test_block_hash_rejects_bad_payloads(self, mock_open_session):
        session = DummySession(DummyResponse(json_data={"height": 1}))
        mock_open_session.return_value = session
        client = ChainClient(base_url="http://node")
        with self.assertRaises(ValueError):
            client.block_hash()

        session.response = DummyResponse(json_data={"hash": "abcd"})
        with self.assertRaises(ValueError):
            client.block_hash()

    @patch("fairdraw.blockchain.api.open_session")
    def test_init_reports_session_error(self, mock_open_session):
        mock_open_session.side_effect = RuntimeError("network unreachable")
        with self.assertRaises(RuntimeError) as ctx:
            ChainClient(base_url="chain.example.com")
        self.assertIn("network unreachable", str(ctx.exception))


class TestOpenSession(unittest.TestCase):
    @patch("fairdraw.blockchain.utils.requests.Session")
    def test_wraps_failures_in_runtime_error(self, mock_session_cls):
        from fairdraw.blockchain.utils import open_session

        mock_session = mock_session_cls.return_value
        mock_session.get.side_effect = OSError("refused")
        with self.assertRaises(RuntimeError) as ctx:
            open_session("https://chain.example.com")
        self.assertIn("refused", str(ctx.exception))
        mock_session.close.assert_called_once()

    @patch("fairdraw.blockchain.utils.requests.Session")
    def test_checks_status_endpoint(self, mock_session_cls):
        from fairdraw.blockchain.utils import open_session

        mock_session = mock_session_cls.return_value
        self.assertIs(open_session("https://chain.example.com"), mock_session)
        mock_session.get.assert_called_once_with(
            "https://chain.example.com/api/v1/status", timeout=10
        )


class FinalizeWithChainEntropyTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )
        self.registry = DrawRegistry()

    def tearDown(self) -> None:
        self.engine.dispose()

    def _ready_draw(self, session) -> int:
        draw_id = create_draw(session, 100, 100, "host", 0, registry=self.registry)
        commit(session, draw_id, make_commitment(5), "A", 10, registry=self.registry)
        commit(session, draw_id, make_commitment(9), "B", 20, registry=self.registry)
        reveal(session, draw_id, 5, "A", 150, registry=self.registry)
        reveal(session, draw_id, 9, "B", 160, registry=self.registry)
        return draw_id

    def test_uses_block_hash_as_entropy(self) -> None:
        client = DummyChainClient(bytes([0x11]) * 32)
        with self.Session.begin() as session:
            draw_id = self._ready_draw(session)
            winner = finalize_with_chain_entropy(
                session, draw_id, 250, client=client, block_height=99,
                registry=self.registry,
            )
            expected_index = (5 ^ 9 ^ int("11" * 32, 16)) % 2
            self.assertEqual(winner, ["A", "B"][expected_index])
            self.assertEqual(client.requested_heights, [99])

            draw = session.get(Draw, draw_id)
            assert draw is not None
            self.assertEqual(draw.external_entropy, "11" * 32)

    def test_premature_call_does_not_fetch_entropy(self) -> None:
        client = DummyChainClient(bytes(32))
        with self.Session.begin() as session:
            draw_id = self._ready_draw(session)
            with self.assertRaises(RevealWindowNotFinishedError):
                finalize_with_chain_entropy(
                    session, draw_id, 200, client=client, registry=self.registry
                )
            self.assertEqual(client.requested_heights, [])


if __name__ == "__main__":
    unittest.main()
