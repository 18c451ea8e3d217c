import os
import socket
from typing import Optional, Tuple

from sqlalchemy.engine import make_url

from mmo_db.application.services.game_database import GameDatabase
from mmo_db.application.services.persistence_hooks import PersistenceHooks
from mmo_db.domain.services.content_catalog import ContentCatalog
from mmo_db.domain.services.walkable_surface import WalkableSurface
from mmo_db.infrastructure.db.mysql.connection import DATABASE_URL, create_session_factory

LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})
DEFAULT_MYSQL_PORT = 3306


def local_mysql_endpoint(database_url: str) -> Optional[Tuple[str, int]]:
    """Host and port of a MySQL URL served from this machine, or None for anything else."""
    url = make_url(database_url)
    if url.get_backend_name() != "mysql":
        return None
    host = (url.host or "localhost").strip().lower()
    if host not in LOCAL_HOSTS:
        return None
    return host, url.port or DEFAULT_MYSQL_PORT


def ensure_local_mysql_listening(database_url: str) -> None:
    """Fail fast when the game database is a local MySQL server that is not running.

    Remote servers and other backends are left to the engine's own connect errors.
    """
    endpoint = local_mysql_endpoint(database_url)
    if endpoint is None:
        return
    timeout = float(os.getenv("MMO_DB_CONNECT_PROBE_TIMEOUT_S", "0.35"))
    try:
        socket.create_connection(endpoint, timeout=timeout).close()
    except OSError as exc:
        host, port = endpoint
        raise RuntimeError(
            f"No game database is listening on {host}:{port}. "
            "Start the local MySQL server or set MMO_DATABASE_URL to a reachable database."
        ) from exc


def resolve_database_url(explicit_url: Optional[str] = None) -> str:
    if explicit_url:
        return explicit_url
    return os.getenv("MMO_DATABASE_URL") or DATABASE_URL


def create_game_database(
    catalog: ContentCatalog,
    *,
    database_url: Optional[str] = None,
    surface: Optional[WalkableSurface] = None,
    hooks: Optional[PersistenceHooks] = None,
    connect: bool = True,
) -> GameDatabase:
    url = resolve_database_url(database_url)
    ensure_local_mysql_listening(url)

    database = GameDatabase(
        catalog,
        session_factory=create_session_factory(url),
        surface=surface,
        hooks=hooks,
    )
    if connect:
        database.connect()
    return database
