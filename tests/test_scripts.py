from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import inspect

from ict_observatory.infrastructure.db import create_database_engine, create_session_factory
from ict_observatory.infrastructure.models import PolicyAssessmentORM, UserORM
from scripts import run_server, seed_dataset


def test_seed_creates_tables_users_and_history(tmp_path: Path, capsys) -> None:
    db_path = tmp_path / "seed.db"
    assert seed_dataset.main(["--sqlite-path", str(db_path), "--password", "demo-pass-1"]) == 0

    engine = create_database_engine(url=f"sqlite:///{db_path}")
    assert {"users", "policy_assessments"} <= set(inspect(engine).get_table_names())
    with create_session_factory(engine)() as session:
        assert session.query(UserORM).count() == 5
        assert session.query(PolicyAssessmentORM).count() == 3

    out = capsys.readouterr().out
    assert "Tables created" in out
    assert "Added 5 users and 3 assessments" in out


def test_seed_is_idempotent(tmp_path: Path, capsys) -> None:
    db_path = str(tmp_path / "again.db")
    seed_dataset.main(["--sqlite-path", db_path])
    seed_dataset.main(["--sqlite-path", db_path])

    out = capsys.readouterr().out
    assert "Tables already present" in out
    assert "Added 0 users and 0 assessments" in out


def test_seed_users_only(tmp_path: Path) -> None:
    db_path = tmp_path / "users.db"
    seed_dataset.main(["--sqlite-path", str(db_path), "--skip-assessments"])

    engine = create_database_engine(url=f"sqlite:///{db_path}")
    with create_session_factory(engine)() as session:
        assert session.query(PolicyAssessmentORM).count() == 0


def test_run_server_invokes_uvicorn(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[tuple[str, dict]] = []

    def fake_run(target: str, **kwargs) -> None:
        calls.append((target, kwargs))

    monkeypatch.setattr(run_server.uvicorn, "run", fake_run)

    run_server.main(["--port", "9001", "--no-reload"])

    assert calls == [
        ("ict_observatory.web.main:app", {"host": "0.0.0.0", "port": 9001, "reload": False})
    ]
