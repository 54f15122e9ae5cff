from __future__ import annotations

import io

import pandas as pd
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from ict_observatory.application import api as app_api
from ict_observatory.application.api import create_user
from ict_observatory.infrastructure.repositories import UserRepo
from ict_observatory.utils.seed import DEMO_PASSWORD, seed_demo_assessments, seed_demo_users
from ict_observatory.web.dependencies import get_db_session
from ict_observatory.web.main import create_application


def build_client(session_factory: sessionmaker[Session]) -> TestClient:
    app = create_application()

    def override_get_db_session():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db_session] = override_get_db_session
    return TestClient(app)


@pytest.fixture
def seeded(session_factory) -> dict[str, int]:
    """Demo accounts and the Greenhill history; returns user ids keyed by email prefix."""
    with session_factory() as session:
        seed_demo_users(session)
        seed_demo_assessments(session)
        session.commit()
        return {
            row.email.split("@")[0]: row.id for row in UserRepo(session).list_users()
        }


@pytest.fixture
def client(session_factory, seeded) -> TestClient:
    return build_client(session_factory)


def as_user(user_id: int) -> dict[str, str]:
    return {"X-User-Id": str(user_id)}


def first_assessment_id(client: TestClient, headers: dict[str, str]) -> int:
    return client.get("/api/assessments", headers=headers).json()[0]["id"]


class TestPublicEndpoints:
    def test_health(self, client):
        assert client.get("/api/health").json() == {"status": "ok"}

    def test_framework_catalog(self, client):
        payload = client.get("/api/framework").json()
        assert payload["stage_scores"] == {
            "Latent": 25,
            "Emerging": 50,
            "Established": 75,
            "Advanced": 100,
        }
        assert len(payload["themes"]) == 8
        assert len(payload["cross_cutting_themes"]) == 6
        vision = payload["themes"][0]
        assert vision["code"] == "vision_planning"
        assert vision["sub_themes"][0]["stages"]["latent"].startswith("No policy")

    def test_login(self, client, seeded):
        response = client.post(
            "/api/auth/login", json={"email": "ADMIN@education.ug", "password": DEMO_PASSWORD}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["user"]["id"] == seeded["admin"]
        assert body["user"]["role_display_name"] == "Super Administrator"
        assert body["user"]["last_login"] is not None
        assert body["permissions"]["can_manage_users"] is True

    def test_bad_login(self, client):
        response = client.post(
            "/api/auth/login", json={"email": "admin@education.ug", "password": "wrong"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"


class TestAuthentication:
    def test_missing_header(self, client):
        assert client.get("/api/assessments").status_code == 401

    def test_unknown_user(self, client):
        assert client.get("/api/me", headers=as_user(999)).status_code == 401

    def test_me_reports_scope(self, client, seeded):
        body = client.get("/api/me", headers=as_user(seeded["kampala"])).json()
        assert body["permissions"]["restricted_to_district"] == "Kampala"
        assert body["user"]["full_name"] == "Kampala District Officer"


class TestAssessments:
    def test_list_is_chronological(self, client, seeded):
        rows = client.get("/api/assessments", headers=as_user(seeded["admin"])).json()
        dates = [row["assessment_date"] for row in rows]
        assert dates == sorted(dates)
        assert len(rows) == 3
        assert rows[-1]["overall_score"] > rows[0]["overall_score"]

    def test_detail(self, client, seeded):
        headers = as_user(seeded["analyst"])
        assessment_id = first_assessment_id(client, headers)
        body = client.get(f"/api/assessments/{assessment_id}", headers=headers).json()
        assert body["level"] == "school"
        assert body["overall_stage"] in {"Latent", "Emerging", "Established", "Advanced"}
        assert len(body["themes"]) == 8
        assert body["recommendations"][0]["priority"] == "high"

    def test_missing_assessment(self, client, seeded):
        response = client.get("/api/assessments/404", headers=as_user(seeded["admin"]))
        assert response.status_code == 404

    def test_create_and_score(self, client, seeded):
        headers = as_user(seeded["admin"])
        created = client.post(
            "/api/assessments",
            headers=headers,
            json={
                "level": "national",
                "assessor_name": "Ministry Team",
                "assessor_role": "Policy Unit",
                "assessor_email": "policy@education.ug",
                "assessment_date": "2024-06-30",
            },
        )
        assert created.status_code == 201
        assessment_id = created.json()["id"]

        for code in ("1.1", "1.2", "1.3", "1.4", "1.5"):
            response = client.put(
                f"/api/assessments/{assessment_id}/themes/vision_planning/sub-themes/{code}/score",
                headers=headers,
                json={"score": [25, 50, 75, 100, 62.5][int(code[-1]) - 1]},
            )
            assert response.status_code == 200
        vision = response.json()["themes"][0]
        # (25 + 50 + 75 + 100 + 62.5) / 5 = 62.5 -> 63
        assert vision["overall_score"] == 63
        assert vision["stage"] == "Established"

        staged = client.put(
            f"/api/assessments/{assessment_id}/cross-cutting/mobiles/stage",
            headers=headers,
            json={"stage": "Advanced"},
        ).json()
        mobiles = next(c for c in staged["cross_cutting_themes"] if c["code"] == "mobiles")
        assert mobiles["score"] == 100
        assert staged["overall_score"] == response.json()["overall_score"]

    def test_validation_errors_are_400(self, client, seeded):
        headers = as_user(seeded["admin"])
        assessment_id = first_assessment_id(client, headers)
        response = client.put(
            f"/api/assessments/{assessment_id}/themes/teachers/sub-themes/3.1/score",
            headers=headers,
            json={"score": 101},
        )
        assert response.status_code == 400
        assert "score" in response.json()["detail"].lower()

    def test_sub_theme_stage_survives_reload(self, client, seeded):
        headers = as_user(seeded["admin"])
        assessment_id = first_assessment_id(client, headers)
        client.put(
            f"/api/assessments/{assessment_id}/themes/teachers/sub-themes/3.1/score",
            headers=headers,
            json={"score": 100},
        )
        body = client.get(f"/api/assessments/{assessment_id}", headers=headers).json()
        teachers = next(t for t in body["themes"] if t["code"] == "teachers")
        training = next(s for s in teachers["sub_themes"] if s["code"] == "3.1")
        assert training["score"] == 100
        assert training["stage"] == "Advanced"

    def test_unknown_theme_is_404(self, client, seeded):
        headers = as_user(seeded["admin"])
        assessment_id = first_assessment_id(client, headers)
        response = client.put(
            f"/api/assessments/{assessment_id}/themes/teachers/sub-themes/9.9/stage",
            headers=headers,
            json={"stage": "Emerging"},
        )
        assert response.status_code == 404

    def test_evidence(self, client, seeded):
        headers = as_user(seeded["principal"])
        assessment_id = first_assessment_id(client, headers)
        body = client.post(
            f"/api/assessments/{assessment_id}/themes/emis/sub-themes/6.1/evidence",
            headers=headers,
            json={"evidence": ["EMIS export"], "notes": "Termly"},
        ).json()
        emis = next(t for t in body["themes"] if t["code"] == "emis")
        assert emis["sub_themes"][0]["evidence"] == ["EMIS export"]

    def test_status_workflow(self, client, seeded):
        headers = as_user(seeded["admin"])
        assessment_id = first_assessment_id(client, headers)
        for status in ("completed", "approved", "archived"):
            response = client.put(
                f"/api/assessments/{assessment_id}/status", headers=headers, json={"status": status}
            )
            assert response.json()["status"] == status

    def test_recommendations_and_radar(self, client, seeded):
        headers = as_user(seeded["admin"])
        assessment_id = first_assessment_id(client, headers)
        recs = client.get(f"/api/assessments/{assessment_id}/recommendations", headers=headers)
        assert recs.status_code == 200
        assert {r["priority"] for r in recs.json()} <= {"high", "medium", "low"}

        radar = client.get(f"/api/assessments/{assessment_id}/radar", headers=headers).json()
        assert radar["data"][0]["type"] == "scatterpolar"

    def test_benchmarks(self, client, seeded):
        headers = as_user(seeded["analyst"])
        assessment_id = first_assessment_id(client, headers)
        body = client.post(
            f"/api/assessments/{assessment_id}/benchmarks",
            headers=headers,
            json={
                "overall": {"national": {"average": 30}, "global": {"average": 40}},
                "themes": {"teachers": {"regional": {"average": 20}}},
            },
        ).json()
        overall = body["overall"]
        assert overall["national"] == overall["score"] - 30
        assert overall["global"] == overall["score"] - 40
        teachers = next(t for t in body["themes"] if t["code"] == "teachers")
        assert teachers["regional"] == teachers["score"] - 20

    def test_delete_requires_permission(self, client, seeded):
        assessment_id = first_assessment_id(client, as_user(seeded["admin"]))
        denied = client.delete(
            f"/api/assessments/{assessment_id}", headers=as_user(seeded["ministry"])
        )
        assert denied.status_code == 403

        allowed = client.delete(f"/api/assessments/{assessment_id}", headers=as_user(seeded["admin"]))
        assert allowed.status_code == 204
        assert len(client.get("/api/assessments", headers=as_user(seeded["admin"])).json()) == 2


class TestScoping:
    def test_district_admin_sees_own_district(self, client, seeded):
        rows = client.get("/api/assessments", headers=as_user(seeded["kampala"])).json()
        assert len(rows) == 3
        assert {row["district_id"] for row in rows} == {"Kampala"}

    def test_school_admin_creates_in_own_school(self, client, seeded):
        response = client.post(
            "/api/assessments",
            headers=as_user(seeded["principal"]),
            json={
                "level": "school",
                "assessor_name": "Sarah Nakato",
                "assessor_role": "Head Teacher",
                "assessor_email": "principal@greenhill.ug",
                "school_id": "SCH777",
            },
        )
        assert response.status_code == 201
        assert response.json()["school_id"] == "SCH001"

    def test_other_school_is_forbidden(self, client, seeded):
        headers = as_user(seeded["admin"])
        created = client.post(
            "/api/assessments",
            headers=headers,
            json={
                "level": "school",
                "assessor_name": "Other",
                "assessor_role": "Head",
                "assessor_email": "head@other.ug",
                "school_id": "SCH002",
                "district_id": "Gulu",
            },
        ).json()
        response = client.get(
            f"/api/assessments/{created['id']}", headers=as_user(seeded["principal"])
        )
        assert response.status_code == 403


class TestTrendsAndExports:
    def test_trends(self, client, seeded):
        body = client.get(
            "/api/trends",
            headers=as_user(seeded["analyst"]),
            params={"school_id": "SCH001", "include_figure": "true"},
        ).json()
        dates = [p["date"] for p in body["points"]]
        assert dates == ["2024-03-01", "2024-09-01", "2025-03-01"]
        assert body["figure"]["data"]

    def test_trends_require_analytics(self, client, seeded, session_factory):
        with session_factory() as session:
            observer = create_user(
                session,
                email="observer@partner.org",
                first_name="Partner",
                last_name="Observer",
                role="observer",
                password=DEMO_PASSWORD,
            )
            session.commit()
        response = client.get("/api/trends", headers=as_user(observer.id))
        assert response.status_code == 403

    def test_assessments_csv(self, client, seeded):
        response = client.get("/api/exports/assessments.csv", headers=as_user(seeded["analyst"]))
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        frame = pd.read_csv(io.StringIO(response.text))
        assert len(frame) == 3
        assert "OverallStage" in frame.columns

    def test_assessment_json(self, client, seeded):
        headers = as_user(seeded["analyst"])
        assessment_id = first_assessment_id(client, headers)
        response = client.get(f"/api/assessments/{assessment_id}/exports/json", headers=headers)
        assert response.status_code == 200
        assert "attachment" in response.headers["content-disposition"]
        assert response.json()["id"] == assessment_id

    def test_failed_export_is_500(self, client, seeded, monkeypatch):
        def broken_export(assessment):
            raise RuntimeError("serialiser exploded")

        monkeypatch.setattr(app_api, "make_assessment_json_export", broken_export)
        headers = as_user(seeded["analyst"])
        assessment_id = first_assessment_id(client, headers)
        response = client.get(f"/api/assessments/{assessment_id}/exports/json", headers=headers)
        assert response.status_code == 500
        assert response.json()["detail"].startswith("Export failed")


class TestUserManagement:
    def test_list_users(self, client, seeded):
        body = client.get("/api/users", headers=as_user(seeded["admin"])).json()
        assert len(body) == 5

    def test_district_admin_sees_own_district_users(self, client, seeded):
        body = client.get("/api/users", headers=as_user(seeded["kampala"])).json()
        assert {u["email"] for u in body} == {"kampala@education.ug", "principal@greenhill.ug"}

    def test_analyst_cannot_manage_users(self, client, seeded):
        assert client.get("/api/users", headers=as_user(seeded["analyst"])).status_code == 403

    def test_create_update_delete(self, client, seeded):
        headers = as_user(seeded["admin"])
        created = client.post(
            "/api/users",
            headers=headers,
            json={
                "email": "coordinator@greenhill.ug",
                "first_name": "Ict",
                "last_name": "Coordinator",
                "role": "ict_coordinator",
                "password": "coordinator-pass",
                "school_id": "SCH001",
            },
        )
        assert created.status_code == 201
        user_id = created.json()["id"]

        duplicate = client.post("/api/users", headers=headers, json={**created.json(), "password": "x" * 10})
        assert duplicate.status_code == 400
        assert duplicate.json()["detail"] == "Email already exists"

        patched = client.patch(
            f"/api/users/{user_id}", headers=headers, json={"is_active": False}
        ).json()
        assert patched["is_active"] is False
        assert patched["school_id"] == "SCH001"

        assert client.delete(f"/api/users/{user_id}", headers=headers).status_code == 204
        assert client.get(f"/api/users/{user_id}", headers=headers).status_code == 404

    def test_invalid_user_payload_lists_errors(self, client, seeded):
        response = client.post(
            "/api/users",
            headers=as_user(seeded["admin"]),
            json={
                "email": "x",
                "first_name": "",
                "last_name": "L",
                "role": "observer",
                "password": "password123",
            },
        )
        assert response.status_code == 400
        assert {e["field"] for e in response.json()["errors"]} >= {"email", "first_name"}

    def test_cannot_delete_self(self, client, seeded):
        response = client.delete(f"/api/users/{seeded['admin']}", headers=as_user(seeded["admin"]))
        assert response.status_code == 400
        assert response.json()["detail"] == "You cannot delete your own account"

    def test_password_reset(self, client, seeded):
        headers = as_user(seeded["admin"])
        response = client.post(
            f"/api/users/{seeded['analyst']}/password",
            headers=headers,
            json={"new_password": "fresh-password"},
        )
        assert response.status_code == 204
        login = client.post(
            "/api/auth/login",
            json={"email": "analyst@education.ug", "password": "fresh-password"},
        )
        assert login.status_code == 200

    def test_users_csv(self, client, seeded):
        response = client.get("/api/exports/users.csv", headers=as_user(seeded["admin"]))
        frame = pd.read_csv(io.StringIO(response.text), keep_default_na=False)
        assert len(frame) == 5
        assert set(frame["Status"]) == {"Active"}


class TestSchoolMaturity:
    school = {
        "id": "SCH001",
        "name": "Greenhill Primary",
        "district": "Kampala",
        "governance": {"has_ict_policy": True, "has_ict_committee": True},
    }
    report = {
        "school_id": "SCH001",
        "report_date": "2025-03-01",
        "computers": 40,
        "internet_connection": "Medium",
        "total_teachers": 12,
        "ict_trained_teachers": 6,
    }

    def test_principal_scores_own_school(self, client, seeded):
        response = client.post(
            "/api/schools/maturity",
            headers=as_user(seeded["principal"]),
            json={"school": self.school, "reports": [self.report]},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["school_id"] == "SCH001"
        assert len(body["themes"]) == 8
        assert body["readiness_level"] in {"Low", "Medium", "High"}
        assert body["latest_report_date"] == "2025-03-01"
        vision = body["themes"][0]
        assert vision["sub_themes"][0]["score"] == 75
        assert vision["sub_themes"][0]["stage"] == "Established"

    def test_other_school_is_forbidden(self, client, seeded):
        school = {**self.school, "id": "SCH002", "district": "Gulu"}
        response = client.post(
            "/api/schools/maturity",
            headers=as_user(seeded["principal"]),
            json={"school": school},
        )
        assert response.status_code == 403

    def test_invalid_profile_is_400(self, client, seeded):
        response = client.post(
            "/api/schools/maturity",
            headers=as_user(seeded["analyst"]),
            json={"school": {**self.school, "environment": "Suburban"}},
        )
        assert response.status_code == 400

    def test_readiness_and_summary(self, client, seeded):
        headers = as_user(seeded["analyst"])
        readiness = client.post(
            "/api/schools/readiness", headers=headers, json={"reports": [self.report]}
        ).json()
        # 6 (computers) + 7 (internet) + 8 (half the teachers trained)
        assert readiness == {"level": "Low", "score": 21}

        summary = client.post(
            "/api/schools/summary",
            headers=headers,
            json={"schools": [self.school], "reports": [self.report]},
        ).json()
        assert summary["total_schools"] == 1
        assert summary["average_computers"] == 40
        assert summary["top_schools"][0]["school_id"] == "SCH001"
        assert summary["environment_distribution"] == {"urban": 0, "rural": 1}
