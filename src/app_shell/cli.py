import argparse
import logging
import os
import sys
from pathlib import Path

from src.adapters.auth.crypto import generate_answer_key
from src.adapters.email_checker import create_email_checker
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.components.email_check import CheckEmailInput, run_check_email
from src.config import RegistrationConfig, load_config

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cli")

DB_PATH = os.path.join(os.environ.get("REG_DATA_DIR", "./data"), "members.db")
CONFIG_PATH = os.environ.get("REG_CONFIG_PATH", "registration.yaml")
MIGRATIONS_DIR = "migrations"


def get_config() -> RegistrationConfig:
    if not Path(CONFIG_PATH).exists():
        logger.error("Config file %s not found.", CONFIG_PATH)
        sys.exit(1)
    return load_config(Path(CONFIG_PATH))


def handle_migrate(args: argparse.Namespace) -> None:
    os.makedirs(os.path.dirname(args.db) or ".", exist_ok=True)
    applied = SQLiteMigrator(args.db, MIGRATIONS_DIR).run_migrations()
    print(f"Applied {len(applied)} migration(s) to {args.db}.")


def handle_check_email(args: argparse.Namespace) -> None:
    config = get_config()
    out = run_check_email(
        CheckEmailInput(email=args.email),
        verifier=create_email_checker(config.email_check),
        failure_policy=config.email_check.failure_policy,
    )
    print(f"{args.email}: {out.result.status}" + (" (rejected)" if out.rejected else ""))
    if out.result.reason:
        print(f"Reason: {out.result.reason}")


def handle_gen_key(args: argparse.Namespace) -> None:
    print(generate_answer_key())


def main() -> None:
    parser = argparse.ArgumentParser(description="Member registration CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    migrate_parser = subparsers.add_parser("migrate", help="Apply pending database migrations")
    migrate_parser.add_argument("--db", default=DB_PATH, help="SQLite database path")

    # check-email
    check_parser = subparsers.add_parser("check-email", help="Ask the checker about an address")
    check_parser.add_argument("email")

    # gen-answer-key
    subparsers.add_parser("gen-answer-key", help="Print a new REG_ANSWER_KEY value")

    args = parser.parse_args()

    if args.command == "migrate":
        handle_migrate(args)
    elif args.command == "check-email":
        handle_check_email(args)
    elif args.command == "gen-answer-key":
        handle_gen_key(args)


if __name__ == "__main__":
    main()
