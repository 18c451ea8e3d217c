import os
import sys
from pathlib import Path
import unittest
from unittest import mock

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from mmo_db import bootstrap
from mmo_db.domain.services.content_catalog import ContentCatalog


class BootstrapTests(unittest.TestCase):
    def test_explicit_url_wins_over_environment(self) -> None:
        with mock.patch.dict(os.environ, {"MMO_DATABASE_URL": "sqlite:///env.db"}):
            self.assertEqual("sqlite:///cli.db", bootstrap.resolve_database_url("sqlite:///cli.db"))
            self.assertEqual("sqlite:///env.db", bootstrap.resolve_database_url())

    def test_default_url_is_used_without_override(self) -> None:
        with mock.patch.dict(os.environ, {}, clear=False):
            os.environ.pop("MMO_DATABASE_URL", None)
            self.assertEqual(bootstrap.DATABASE_URL, bootstrap.resolve_database_url())

    def test_local_mysql_endpoint_defaults_the_port(self) -> None:
        self.assertEqual(
            ("localhost", 3306),
            bootstrap.local_mysql_endpoint("mysql+mysqlconnector://u:p@LOCALHOST/mmo_db"),
        )
        self.assertEqual(
            ("127.0.0.1", 3307),
            bootstrap.local_mysql_endpoint("mysql+mysqlconnector://u:p@127.0.0.1:3307/mmo_db"),
        )

    def test_remote_and_non_mysql_urls_have_no_local_endpoint(self) -> None:
        self.assertIsNone(bootstrap.local_mysql_endpoint("sqlite:///game.db"))
        self.assertIsNone(bootstrap.local_mysql_endpoint("mysql+mysqlconnector://u:p@db.example.com/mmo_db"))

    def test_only_local_mysql_urls_are_checked(self) -> None:
        with mock.patch.object(bootstrap.socket, "create_connection") as connect:
            bootstrap.ensure_local_mysql_listening("sqlite:///game.db")
            bootstrap.ensure_local_mysql_listening("mysql+mysqlconnector://u:p@db.example.com/mmo_db")

        connect.assert_not_called()

    def test_refused_local_mysql_raises_with_guidance(self) -> None:
        with mock.patch.object(bootstrap.socket, "create_connection", side_effect=ConnectionRefusedError):
            with self.assertRaisesRegex(RuntimeError, r"127\.0\.0\.1:3307.*MMO_DATABASE_URL"):
                bootstrap.ensure_local_mysql_listening("mysql+mysqlconnector://u:p@127.0.0.1:3307/mmo_db")

    def test_listening_local_mysql_passes_and_closes_the_socket(self) -> None:
        with mock.patch.object(bootstrap.socket, "create_connection") as connect:
            bootstrap.ensure_local_mysql_listening("mysql+mysqlconnector://u:p@localhost/mmo_db")

        connect.assert_called_once_with(("localhost", 3306), timeout=0.05)
        connect.return_value.close.assert_called_once_with()

    def test_create_game_database_refuses_unreachable_local_mysql(self) -> None:
        with mock.patch.object(bootstrap.socket, "create_connection", side_effect=ConnectionRefusedError):
            with mock.patch.object(bootstrap, "create_session_factory") as factory:
                with self.assertRaises(RuntimeError):
                    bootstrap.create_game_database(
                        ContentCatalog(), database_url="mysql+mysqlconnector://u:p@127.0.0.1/mmo_db"
                    )

        factory.assert_not_called()

    def test_create_game_database_provisions_sqlite(self) -> None:
        database = bootstrap.create_game_database(ContentCatalog(), database_url="sqlite:///:memory:")
        try:
            self.assertEqual([], database.schema.missing_tables())
            self.assertTrue(database.try_login("alice", "pw"))
        finally:
            database.coordinator.session_factory.kw["bind"].dispose()


if __name__ == "__main__":
    unittest.main()
