"""Questline CLI entry point.

Provides subcommands for running the web server, printing the level
threshold table and seeding starter quests. Accepts configuration via flags
and environment variables, with optional .env loading.

Run `python run.py --help` for details.
"""

import argparse
import os
import signal
import sys
from textwrap import dedent

from colorama import Fore, Style
from colorama import init as _color_init
from dotenv import load_dotenv

_color_init()
# Disable colors if output is not a real terminal (e.g., during pytest capture)
_COLOR_ENABLED = sys.stdout.isatty()


def _load_version() -> str:
    try:
        with open(os.path.join(os.path.dirname(os.path.abspath(__file__)), "VERSION"), "r", encoding="utf-8") as f:
            return f.read().strip()
    except OSError:
        return "0.1.0"


__version__ = _load_version()


def parse_args(argv: list[str]) -> argparse.Namespace:
    description = """
    Questline Server

    Run the Flask web server, inspect the leveling curve or seed starter
    quests. Configuration can be provided via CLI flags or environment
    variables. If both are present, CLI flags take precedence.
    """

    epilog = dedent(
        """
        Environment variables:
          HOST                     Bind address for the web server (default: 0.0.0.0)
          PORT                     Port for the web server (default: 5000)
          DATABASE_URL             SQLAlchemy database URI (default: sqlite:///instance/questline.db)
          LEVELING_BASE_XP         XP cost of level 1 (default: 300)
          LEVELING_XP_MULTIPLIER   Per-level cost growth factor (default: 1.5)

        Examples:
          # Run the server on the default host and port
          python run.py server

          # Print the first 30 level thresholds
          python run.py levels --count 30

          # Load variables from .env then run the server
          python run.py --env-file .env server
        """
    )

    parser = argparse.ArgumentParser(
        prog="Questline",
        description=dedent(description),
        epilog=epilog,
        formatter_class=argparse.RawTextHelpFormatter,
    )

    parser.add_argument(
        "--env-file",
        dest="env_file",
        help="Path to a .env file to load before processing flags",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Questline Server {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    server_parser = subparsers.add_parser(
        "server",
        help="Run the web server",
        formatter_class=argparse.RawTextHelpFormatter,
        description="Run the Flask web server",
    )
    server_parser.add_argument(
        "--host",
        default=None,
        help="Host interface to bind (default: env HOST or 0.0.0.0)",
    )
    server_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: env PORT or 5000)",
    )
    server_parser.add_argument(
        "--db",
        dest="db_uri",
        default=None,
        help="Database URI (default: env DATABASE_URL or sqlite:///instance/questline.db)",
    )
    server_parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable Flask debug mode with verbose error pages",
    )
    server_parser.set_defaults(command="server")

    levels_parser = subparsers.add_parser(
        "levels",
        help="Print the level threshold table for the configured curve",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    levels_parser.add_argument("--count", type=int, default=20, help="Number of levels to print (default: 20)")
    levels_parser.set_defaults(command="levels")

    seed_parser = subparsers.add_parser(
        "seed-quests",
        help="Insert the starter quests if they are missing",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    seed_parser.set_defaults(command="seed-quests")

    # If no subcommand provided, default to server
    if len(argv) == 0:
        argv = ["server"]

    return parser.parse_args(argv)


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    if getattr(args, "env_file", None):
        load_dotenv(args.env_file)
    else:
        # Load default .env if present (no error if missing)
        load_dotenv()

    env_host = os.getenv("HOST", "0.0.0.0")
    env_port = int(os.getenv("PORT", "5000"))
    env_db = os.getenv("DATABASE_URL")

    host = getattr(args, "host", None) or env_host
    port = int(getattr(args, "port", None) or env_port)
    db_uri_cli = getattr(args, "db_uri", None)

    # Make DATABASE_URL available to the Flask app BEFORE importing it
    if db_uri_cli:
        os.environ["DATABASE_URL"] = db_uri_cli
    db_banner = db_uri_cli or env_db or "auto (instance/questline.db)"

    mode = (getattr(args, "command", None) or "server").lower()

    # Import server entrypoints only after environment is ready
    from questline import server

    if mode == "levels":
        if args.count < 1:
            print("[ERROR] --count must be >= 1")
            return 1
        print(server.level_table(args.count))
        return 0
    if mode == "seed-quests":
        with server.app.app_context():
            server.db.create_all()
            added = server.seed_quests()
        print(f"Seeded {added} quest(s).")
        return 0

    def handle_sigint(sig, frame):
        print("\n[INFO] Shutting down server...")
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_sigint)

    def label(text: str) -> str:
        return f"{Fore.YELLOW}{text}{Style.RESET_ALL}" if _COLOR_ENABLED else text

    def value(val) -> str:
        return f"{Fore.GREEN}{val}{Style.RESET_ALL}" if _COLOR_ENABLED else str(val)

    engine = server.app.extensions["leveling"]
    divider = (Fore.MAGENTA + "=" * 40 + Style.RESET_ALL) if _COLOR_ENABLED else "=" * 40
    title = f"{Fore.CYAN}{Style.BRIGHT}Questline Bootup{Style.RESET_ALL}" if _COLOR_ENABLED else "Questline Bootup"
    lines = [
        divider,
        f"  {title}",
        divider,
        f"  {label('Host:'):12} {value(host)}",
        f"  {label('Port:'):12} {value(port)}",
        f"  {label('Database:'):12} {value(db_banner)}",
        f"  {label('Curve:'):12} {value(f'{engine.config.base_xp} x {engine.config.xp_multiplier}^(L-1)')}",
        divider,
        "",
    ]
    print("\n".join(lines))

    from questline.logging_utils import log

    log.info(event="startup", mode=mode, host=host, port=port, db=db_banner)
    server.start_server(host, port, getattr(args, "debug", False))
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
