from __future__ import annotations

import argparse
import sys

from ict_observatory.infrastructure.config import DatabaseConfig
from ict_observatory.infrastructure.db import create_database_engine, create_session_factory
from ict_observatory.infrastructure.uow import UnitOfWork
from ict_observatory.utils.seed import (
    DEMO_PASSWORD,
    initialise_database,
    seed_demo_assessments,
    seed_demo_users,
)


def build_config(args: argparse.Namespace) -> DatabaseConfig:
    if args.backend == "sqlite":
        return DatabaseConfig(backend="sqlite", sqlite_path=args.sqlite_path)
    return DatabaseConfig(
        backend="mysql",
        mysql_host=args.mysql_host,
        mysql_port=args.mysql_port,
        mysql_user=args.mysql_user,
        mysql_password=args.mysql_password,
        mysql_database=args.mysql_database,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create tables and load the demo dataset.")
    parser.add_argument("--backend", choices=["sqlite", "mysql"], default="sqlite")
    parser.add_argument("--sqlite-path", default="./ict_observatory.db")
    parser.add_argument("--mysql-host", default="localhost")
    parser.add_argument("--mysql-port", type=int, default=3306)
    parser.add_argument("--mysql-user", default="root")
    parser.add_argument("--mysql-password", default="")
    parser.add_argument("--mysql-database", default="ict_observatory")
    parser.add_argument("--password", default=DEMO_PASSWORD, help="Password for demo accounts")
    parser.add_argument(
        "--skip-assessments", action="store_true", help="Only create the demo user accounts"
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    engine = create_database_engine(build_config(args))
    existed = initialise_database(engine)
    print(f"[seed] Tables {'already present' if existed else 'created'}")

    uow = UnitOfWork(create_session_factory(engine))
    with uow.begin() as session:
        users = seed_demo_users(session, password=args.password)
        assessments = [] if args.skip_assessments else seed_demo_assessments(session)

    print(f"[seed] Added {users} users and {len(assessments)} assessments")
    return 0


if __name__ == "__main__":
    sys.exit(main())
