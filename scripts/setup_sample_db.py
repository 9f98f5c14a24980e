"""Launch a sample PostgreSQL Docker container and register it in the dbhandle config."""

from __future__ import annotations

import argparse
import subprocess
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dbhandle import DatabaseConnectionError, FetchMode, connection_for
from dbhandle.config import DatabaseConfig, config_path, load_config, save_config

DEFAULT_CONTAINER = "dbhandle-sample-db"
DEFAULT_PORT = 5543
DEFAULT_PASSWORD = "dbhandle"
DEFAULT_DB = "dbhandle_demo"
DEFAULT_USER = "dbhandle"
DOCKER_IMAGE = "postgres:16-alpine"
ENTRY_NAME = "docker-sample"

SEED_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS accounts (
        id SERIAL PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        created_at TIMESTAMPTZ DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS orders (
        id SERIAL PRIMARY KEY,
        account_id INTEGER REFERENCES accounts(id),
        total NUMERIC(10,2) NOT NULL,
        status TEXT NOT NULL DEFAULT 'pending'
    )
    """,
)


def run(cmd: list[str], *, check: bool = True, **kwargs) -> subprocess.CompletedProcess[str]:
    print("$", " ".join(cmd))
    return subprocess.run(cmd, check=check, text=True, **kwargs)


def container_exists(name: str) -> bool:
    result = subprocess.run(
        ["docker", "ps", "-a", "--filter", f"name={name}", "--format", "{{.ID}}"],
        text=True,
        capture_output=True,
    )
    return bool(result.stdout.strip())


def start_container(name: str, port: int, password: str, database: str, user: str) -> None:
    if container_exists(name):
        print(f"Container '{name}' already exists. Reusing it.")
        run(["docker", "start", name], check=False)
    else:
        run(
            [
                "docker",
                "run",
                "-d",
                "--name",
                name,
                "-e",
                f"POSTGRES_PASSWORD={password}",
                "-e",
                f"POSTGRES_DB={database}",
                "-e",
                f"POSTGRES_USER={user}",
                "-p",
                f"{port}:5432",
                DOCKER_IMAGE,
            ]
        )
    wait_for_start(name, user)


def wait_for_start(name: str, user: str, retries: int = 15, delay: float = 1.0) -> None:
    for _ in range(retries):
        result = subprocess.run(["docker", "exec", name, "pg_isready", "-U", user], text=True)
        if result.returncode == 0:
            return
        time.sleep(delay)
    print("Warning: database did not report ready state; continuing anyway.")


def update_config(port: int, user: str, database: str, password: str) -> None:
    config = load_config()
    entry = DatabaseConfig(
        name=ENTRY_NAME,
        driver="pgsql",
        host="localhost",
        port=port,
        database=database,
        user=user,
        password=password,
    )
    save_config(config.with_database(entry))
    print(f"Saved '{ENTRY_NAME}' entry to {config_path()}.")


def seed_data() -> None:
    connection = connection_for(load_config(), ENTRY_NAME)
    connection.begin()
    for statement in SEED_STATEMENTS:
        connection.query(statement.strip())
    for email in ("anna@example.com", "ben@example.com", "cara@example.com"):
        connection.query("INSERT INTO accounts (email) VALUES ($1) ON CONFLICT DO NOTHING", email)
    connection.query(
        "INSERT INTO orders (account_id, total, status) "
        "SELECT id, (random()*100)::numeric(10,2), 'complete' FROM accounts"
    )
    print(f"Inserted {connection.affected_rows()} order(s).")
    connection.commit()

    connection.set_fetch_mode(FetchMode.ASSOC)
    total = connection.query("SELECT COUNT(*) AS accounts FROM accounts").fetch()
    print(f"Sample database holds {total['accounts']} account(s).")


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--container", default=DEFAULT_CONTAINER, help="Docker container name")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Host port to expose Postgres on")
    parser.add_argument("--password", default=DEFAULT_PASSWORD, help="Postgres password")
    parser.add_argument("--database", default=DEFAULT_DB, help="Database name to create")
    parser.add_argument("--user", default=DEFAULT_USER, help="Database user")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or sys.argv[1:])
    try:
        start_container(args.container, args.port, args.password, args.database, args.user)
    except FileNotFoundError:
        print("Docker is not installed or not on PATH.")
        return 1
    update_config(args.port, args.user, args.database, args.password)
    try:
        seed_data()
    except DatabaseConnectionError as exc:
        print(f"Could not connect to the sample database: {exc}")
        return 1
    print(
        f"Sample database is ready. Use connection_for(load_config(), {ENTRY_NAME!r}) or DSN "
        f"pgsql:dbname={args.database};host=localhost;port={args.port}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
