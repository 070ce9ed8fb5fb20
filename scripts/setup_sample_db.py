"""Start a PostgreSQL-compatible container and register an hgconnect profile for it."""

from __future__ import annotations

import argparse
import subprocess
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from hgconnect.config import CONFIG_FILE, ConnectionProfileConfig, Property, load_config, save_config

PROFILE_NAME = "docker-sample"
DEFAULT_CONTAINER = "hgconnect-sample-db"
DEFAULT_PORT = 5866
DEFAULT_PASSWORD = "hgconnect"
DEFAULT_DB = "hgconnect_demo"
DEFAULT_USER = "hgconnect"
DOCKER_IMAGE = "postgres:16-alpine"
SECRET_FILE = CONFIG_FILE.parent / "secrets" / f"{PROFILE_NAME}.password"


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


def write_secret(password: str) -> str:
    """Store the password outside config.toml and return its secret URL."""

    SECRET_FILE.parent.mkdir(parents=True, exist_ok=True)
    # Owner-only before any secret bytes land; chmod covers a file left by an older run.
    SECRET_FILE.touch(mode=0o600, exist_ok=True)
    SECRET_FILE.chmod(0o600)
    SECRET_FILE.write_text(password + "\n")
    return SECRET_FILE.resolve().as_uri()


def update_config(port: int, user: str, database: str, password: str) -> None:
    settings = load_config()
    profile = ConnectionProfileConfig(
        name=PROFILE_NAME,
        hostname="localhost",
        port=str(port),
        database_name=database,
        username=user,
        secret_resource_url=write_secret(password),
        property_list=(Property(name="application_name", value="hgconnect"),),
    )
    save_config(settings.with_profile(profile).with_active_profile(PROFILE_NAME))
    print(f"Wrote profile '{PROFILE_NAME}' to {CONFIG_FILE}.")


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--container", default=DEFAULT_CONTAINER, help="Docker container name")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Host port to expose the database on")
    parser.add_argument("--password", default=DEFAULT_PASSWORD, help="Database password")
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
    print(f"Sample database is ready. Try: python -m hgconnect --profile {PROFILE_NAME} ping")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
