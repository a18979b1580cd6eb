"""API tests through FastAPI's TestClient.

Rules:
- One client per module against a temporary SQLite file (see conftest);
  the lifespan creates and seeds the schema.
- Every test uses its own user id, so state never leaks between tests.
  Training templates are shared per split: priority tests reset them.
- The vision model is always patched; food AI routes patch ``get_llm``.
"""

import uuid
from collections.abc import Iterator
from datetime import date
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from fitplan.errors import ExternalFailure
from fitplan.main import app
from fitplan.models import MuscleAnalysis

PROFILE = {
    "unit_system": "metric",
    "sex": "male",
    "age": 25,
    "weight": 80,
    "height_cm": 180,
    "training_days_per_week": 5,
    "goal": "maintain",
}


@pytest.fixture(scope="module")
def client() -> Iterator[TestClient]:
    with TestClient(app) as c:
        yield c


def _headers() -> dict[str, str]:
    return {"X-User-Id": f"user-{uuid.uuid4().hex[:8]}"}


def _with_profile(client: TestClient) -> dict[str, str]:
    headers = _headers()
    response = client.put("/profile", json=PROFILE, headers=headers)
    assert response.status_code == 200
    return headers


# ── System & identity ────────────────────────────────────────────────────────

class TestSystem:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_user_routes_need_identity(self, client: TestClient) -> None:
        assert client.get("/profile").status_code == 401

    def test_foods_are_public(self, client: TestClient) -> None:
        response = client.get("/foods")
        assert response.status_code == 200
        assert len(response.json()) == 17


# ── Profile & nutrition ──────────────────────────────────────────────────────

class TestProfileApi:
    def test_missing_profile_is_404(self, client: TestClient) -> None:
        response = client.get("/profile", headers=_headers())
        assert response.status_code == 404
        assert response.json() == {
            "detail": "Please complete your profile setup first",
            "error_code": "not_found",
        }

    def test_create_and_read(self, client: TestClient) -> None:
        headers = _with_profile(client)
        profile = client.get("/profile", headers=headers).json()
        assert profile["kcal_target"] == 2798
        targets = client.get("/nutrition/targets", headers=headers).json()
        assert targets == {
            "tdee": 2798, "kcal_target": 2798, "protein_g": 168, "carbs_g": 388, "fat_g": 64,
        }

    def test_validation_error_shape(self, client: TestClient) -> None:
        response = client.put("/profile", json={**PROFILE, "age": 10}, headers=_headers())
        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "validation_error"
        assert body["field"] == "age"
        assert body["detail"] == "Age must be between 16 and 100"

    def test_display(self, client: TestClient) -> None:
        headers = _headers()
        client.put(
            "/profile",
            json={
                **PROFILE, "unit_system": "imperial", "weight": 176.4,
                "height_cm": None, "height_feet": 5, "height_inches": 11,
            },
            headers=headers,
        )
        display = client.get("/profile/display", headers=headers).json()
        assert display["weight_unit"] == "lbs"
        assert display["weight"] == pytest.approx(176.4)
        assert (display["height_feet"], display["height_inches"]) == (5, 11)


class TestNutritionApi:
    def test_weight_log_and_trend(self, client: TestClient) -> None:
        headers = _with_profile(client)
        response = client.post("/nutrition/weight", json={"weight": 79.5}, headers=headers)
        assert response.status_code == 200
        assert len(client.get("/nutrition/weight", headers=headers).json()) == 1
        trend = client.get("/nutrition/trend", headers=headers).json()
        assert trend["has_enough_data"] is False

    def test_malformed_weight_date_rejected(self, client: TestClient) -> None:
        headers = _with_profile(client)
        response = client.post(
            "/nutrition/weight", json={"weight": 80, "date": "zzzz"}, headers=headers
        )
        assert response.status_code == 422
        assert client.get("/nutrition/weight", headers=headers).json() == []

    def test_weight_date_normalised(self, client: TestClient) -> None:
        headers = _with_profile(client)
        response = client.post(
            "/nutrition/weight", json={"weight": 80, "date": "2026-10-19"}, headers=headers
        )
        assert response.json()["date"] == "2026-10-19"

    def test_recalculate_without_data(self, client: TestClient) -> None:
        headers = _with_profile(client)
        response = client.post("/nutrition/recalculate", headers=headers)
        assert response.status_code == 422
        assert response.json()["error_code"] == "insufficient_data"

    def test_body_composition(self, client: TestClient) -> None:
        headers = _with_profile(client)
        client.post("/nutrition/weight", json={"weight": 80}, headers=headers)
        response = client.get("/nutrition/body-composition?days=30", headers=headers)
        assert response.status_code == 200
        assert len(response.json()["data_points"]) == 1


class TestPantryAndMealPlanApi:
    def test_meal_plan_flow(self, client: TestClient) -> None:
        headers = _with_profile(client)
        foods = {f["name"]: f["id"] for f in client.get("/foods").json()}
        for name, grams in (("Chicken Breast", 2000), ("Rice", 2000), ("Olive Oil", 500)):
            response = client.put(
                f"/pantry/{foods[name]}", json={"grams_available": grams}, headers=headers
            )
            assert response.status_code == 200
        assert len(client.get("/pantry", headers=headers).json()) == 3

        created = client.post("/meal-plans", json={"date": "2026-10-19"}, headers=headers)
        assert created.status_code == 200
        assert len(created.json()["meals"]) == 3

        loaded = client.get("/meal-plans/2026-10-19", headers=headers)
        assert loaded.json() == created.json()

    def test_empty_pantry(self, client: TestClient) -> None:
        headers = _with_profile(client)
        response = client.post("/meal-plans", json={}, headers=headers)
        assert response.status_code == 422
        assert response.json()["error_code"] == "planning_error"

    @pytest.mark.parametrize("meals_per_day", [0, 7])
    def test_meal_count_out_of_range(self, client: TestClient, meals_per_day: int) -> None:
        headers = _with_profile(client)
        foods = {f["name"]: f["id"] for f in client.get("/foods").json()}
        for name in ("Chicken Breast", "Rice"):
            client.put(f"/pantry/{foods[name]}", json={"grams_available": 2000}, headers=headers)
        response = client.post("/meal-plans", json={"meals_per_day": meals_per_day}, headers=headers)
        assert response.status_code == 422
        assert response.json() == {
            "detail": "Meals per day must be between 1 and 6",
            "error_code": "validation_error",
            "field": "meals_per_day",
        }

    def test_malformed_plan_date(self, client: TestClient) -> None:
        headers = _with_profile(client)
        assert client.get("/meal-plans/not-a-date", headers=headers).status_code == 422
        response = client.post("/meal-plans", json={"date": "2026-13-40"}, headers=headers)
        assert response.status_code == 422

    def test_remove_unknown_pantry_item(self, client: TestClient) -> None:
        response = client.delete("/pantry/1", headers=_headers())
        assert response.status_code == 404


# ── Workouts ─────────────────────────────────────────────────────────────────

class TestWorkoutApi:
    def test_session_flow(self, client: TestClient) -> None:
        headers = _with_profile(client)
        started = client.post("/workouts/sessions", json={"day_index": 1}, headers=headers)
        assert started.status_code == 200
        session = started.json()
        bench = session["exercises"][0]

        conflict = client.post("/workouts/sessions", json={"day_index": 2}, headers=headers)
        assert conflict.status_code == 409
        assert conflict.json()["error_code"] == "invalid_state"

        active = client.get("/workouts/active", headers=headers).json()
        assert active["id"] == session["id"]

        logged = client.post(
            f"/workouts/session-exercises/{bench['id']}/sets",
            json={"set_number": 1, "weight": 60, "reps": 8, "rpe": 7},
            headers=headers,
        )
        assert logged.status_code == 200
        patched = client.patch(
            f"/workouts/sets/{logged.json()['id']}", json={"reps": 9}, headers=headers
        )
        assert patched.json()["reps"] == 9

        finished = client.post(f"/workouts/sessions/{session['id']}/finish", headers=headers)
        assert finished.json()["status"] == "completed"
        assert client.get("/workouts/active", headers=headers).json() is None
        recent = client.get("/workouts/recent", headers=headers).json()
        assert [s["id"] for s in recent] == [session["id"]]

    def test_malformed_session_date(self, client: TestClient) -> None:
        headers = _with_profile(client)
        response = client.post(
            "/workouts/sessions", json={"day_index": 1, "date": "not-a-date"}, headers=headers
        )
        assert response.status_code == 422
        assert client.get("/workouts/active", headers=headers).json() is None

    def test_session_date_in_day_name(self, client: TestClient) -> None:
        headers = _with_profile(client)
        session = client.post(
            "/workouts/sessions", json={"day_index": 1, "date": "2026-10-19"}, headers=headers
        ).json()
        assert session["date"] == "2026-10-19"
        assert session["day_name"].endswith("Oct 19, 2026")

    def test_swap(self, client: TestClient) -> None:
        headers = _with_profile(client)
        session = client.post("/workouts/sessions", json={"day_index": 1}, headers=headers).json()
        bench = session["exercises"][0]
        alternatives = client.get(f"/exercises/{bench['exercise_id']}/alternatives").json()
        response = client.post(
            f"/workouts/session-exercises/{bench['id']}/swap",
            json={"new_exercise_id": alternatives[0]["exercise"]["id"]},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["exercise_name"] == "Dumbbell Bench Press"

    def test_foreign_session_is_forbidden(self, client: TestClient) -> None:
        headers = _with_profile(client)
        session = client.post("/workouts/sessions", json={"day_index": 1}, headers=headers).json()
        response = client.get(f"/workouts/sessions/{session['id']}", headers=_headers())
        assert response.status_code == 403
        assert response.json()["error_code"] == "permission_denied"

    def test_exercises_for_muscle(self, client: TestClient) -> None:
        names = {e["name"] for e in client.get("/exercises/for-muscle/calves").json()}
        assert names == {"Calf Raises", "Seated Calf Raises"}

    def test_priorities(self, client: TestClient) -> None:
        headers = _with_profile(client)
        client.post("/workouts/priorities/reset", headers=headers)
        applied = client.post(
            "/workouts/priorities", json={"lagging_muscles": ["back"]}, headers=headers
        ).json()
        assert applied["updated_count"] > 0
        again = client.post(
            "/workouts/priorities", json={"lagging_muscles": ["back"]}, headers=headers
        ).json()
        assert again["updated_count"] == 0

        plan = client.get("/workouts/plan", headers=headers).json()
        assert plan["total_priority_exercises"] == applied["updated_count"]

        reset = client.post("/workouts/priorities/reset", headers=headers).json()
        assert reset["reset_count"] == applied["updated_count"]


# ── Photos ───────────────────────────────────────────────────────────────────

class TestPhotoApi:
    def test_upload_runs_analysis(self, client: TestClient) -> None:
        headers = _with_profile(client)
        analysis = MuscleAnalysis(
            overall_score=7, lagging_muscles=["chest"], strong_muscles=[], recommendations=[]
        )
        with patch("fitplan.photo_service.analyze_progress_photo", return_value=analysis):
            saved = client.post("/photos", json={"storage_id": "img-1"}, headers=headers)
        assert saved.status_code == 200
        assert saved.json()["analysis_complete"] is False

        photos = client.get("/photos", headers=headers).json()
        assert photos[0]["analysis_complete"] is True
        latest = client.get("/photos/latest-analysis", headers=headers).json()
        assert latest["lagging_muscles"] == ["chest"]

        plan = client.get("/workouts/plan", headers=headers).json()
        assert plan["latest_analysis"]["overall_score"] == 7
        assert plan["total_priority_exercises"] > 0
        client.post("/workouts/priorities/reset", headers=headers)

    def test_failed_analysis_then_retry(self, client: TestClient) -> None:
        headers = _headers()
        with patch(
            "fitplan.photo_service.analyze_progress_photo",
            side_effect=ExternalFailure("down"),
        ):
            photo = client.post("/photos", json={"storage_id": "img-2"}, headers=headers).json()
        assert client.get("/photos/latest-analysis", headers=headers).json() is None

        analysis = MuscleAnalysis(overall_score=5)
        with patch("fitplan.photo_service.analyze_progress_photo", return_value=analysis):
            retried = client.post(f"/photos/{photo['id']}/retry", headers=headers)
        assert retried.status_code == 200
        latest = client.get("/photos/latest-analysis", headers=headers).json()
        assert latest["overall_score"] == 5

    def test_delete(self, client: TestClient) -> None:
        headers = _headers()
        with patch("fitplan.photo_service.analyze_progress_photo", side_effect=ExternalFailure("x")):
            photo = client.post("/photos", json={"storage_id": "img-3"}, headers=headers).json()
        assert client.delete(f"/photos/{photo['id']}", headers=_headers()).status_code == 403
        assert client.delete(f"/photos/{photo['id']}", headers=headers).status_code == 200
        assert client.get("/photos", headers=headers).json() == []


# ── Food diary & custom foods ────────────────────────────────────────────────

RICE = {"name": "Rice", "grams": 200, "calories": 260, "protein": 5.4, "carbs": 56.4, "fat": 0.6}


def _llm_replying(content: str) -> MagicMock:
    llm = MagicMock()
    llm.invoke.return_value = MagicMock(content=content)
    return llm


class TestFoodDiaryApi:
    def test_log_and_read_today(self, client: TestClient) -> None:
        headers = _with_profile(client)
        logged = client.post(
            "/food-logs", json={"meal_type": "lunch", "items": [RICE]}, headers=headers
        )
        assert logged.status_code == 200
        client.post(
            "/food-logs/quick",
            json={"meal_type": "snack", "name": "Bar", "calories": 200, "protein": 20},
            headers=headers,
        )

        today = client.get("/food-logs/today", headers=headers).json()
        assert [log["entry_type"] for log in today["logs"]] == ["manual", "quick"]
        assert today["totals"]["calories"] == 460
        assert today["targets"]["calories"] > 2000

        by_date = client.get(
            "/food-logs", params={"date": date.today().isoformat()}, headers=headers
        ).json()
        assert len(by_date) == 2
        week = client.get("/food-logs/weekly", headers=headers).json()
        assert len(week) == 7
        assert week[-1]["calories"] == 460

    def test_invalid_entry_shape(self, client: TestClient) -> None:
        response = client.post(
            "/food-logs", json={"meal_type": "lunch", "items": []}, headers=_headers()
        )
        assert response.status_code == 422
        assert response.json() == {
            "detail": "Add at least one food",
            "error_code": "validation_error",
            "field": "items",
        }

    def test_unknown_meal_type_rejected(self, client: TestClient) -> None:
        response = client.post(
            "/food-logs", json={"meal_type": "brunch", "items": [RICE]}, headers=_headers()
        )
        assert response.status_code == 422

    def test_malformed_date_query(self, client: TestClient) -> None:
        response = client.get("/food-logs", params={"date": "yesterday"}, headers=_headers())
        assert response.status_code == 422

    def test_update_and_delete_own_entry_only(self, client: TestClient) -> None:
        headers = _headers()
        log = client.post(
            "/food-logs", json={"meal_type": "dinner", "items": [RICE, RICE]}, headers=headers
        ).json()
        assert log["totals"]["calories"] == 520

        assert client.patch(
            f"/food-logs/{log['id']}", json={"notes": "x"}, headers=_headers()
        ).status_code == 404
        updated = client.patch(
            f"/food-logs/{log['id']}", json={"items": [RICE]}, headers=headers
        ).json()
        assert updated["totals"]["calories"] == 260

        assert client.delete(f"/food-logs/{log['id']}", headers=_headers()).status_code == 404
        assert client.delete(f"/food-logs/{log['id']}", headers=headers).status_code == 200

    def test_photo_estimate_then_keep(self, client: TestClient) -> None:
        headers = _headers()
        llm = _llm_replying(
            '{"description": "Rice bowl", "items": [{"name": "Rice", "grams": 200,'
            ' "calories": 260, "protein": 5.4, "carbs": 56.4, "fat": 0.6}], "confidence": "unsure"}'
        )
        with patch("fitplan.llm_service.get_llm", return_value=llm):
            estimate = client.post(
                "/food-logs/photo-estimate", json={"storage_id": "meal-9"}, headers=headers
            ).json()
        assert estimate["confidence"] == "medium"
        assert estimate["totals"]["calories"] == 260

        kept = client.post(
            "/food-logs/photo",
            json={
                "meal_type": "lunch",
                "storage_id": "meal-9",
                "description": estimate["description"],
                "items": estimate["items"],
                "confidence": estimate["confidence"],
            },
            headers=headers,
        ).json()
        assert kept["is_verified"] is False
        assert kept["photo_url"].endswith("/meal-9")

    def test_description_estimate_failure_is_502(self, client: TestClient) -> None:
        with patch("fitplan.llm_service.get_llm", return_value=_llm_replying("no JSON")):
            response = client.post(
                "/food-logs/estimate", json={"description": "a sandwich"}, headers=_headers()
            )
        assert response.status_code == 502
        assert response.json()["error_code"] == "external_failure"


class TestCustomFoodApi:
    def test_lookup_then_save(self, client: TestClient) -> None:
        headers = _headers()
        llm = _llm_replying(
            '{"name": "Skyr", "proteinPer100g": 11.04, "carbsPer100g": 4, "fatPer100g": 0.2,'
            ' "caloriesPer100g": 63.4, "confidence": "HIGH"}'
        )
        with patch("fitplan.llm_service.get_llm", return_value=llm):
            lookup = client.post("/foods/lookup", json={"food_name": "skyr"}, headers=headers).json()
        assert lookup == {
            "name": "Skyr",
            "protein_per_100g": 11.0,
            "carbs_per_100g": 4.0,
            "fat_per_100g": 0.2,
            "calories_per_100g": 63,
            "confidence": "medium",
        }

        payload = {key: lookup[key] for key in lookup if key != "confidence"}
        saved = client.post("/custom-foods", json={**payload, "source": "ai_lookup"}, headers=headers)
        assert saved.status_code == 200
        foods = client.get("/custom-foods", headers=headers).json()
        assert [(f["name"], f["source"]) for f in foods] == [("Skyr", "ai_lookup")]

    def test_blank_lookup_is_422(self, client: TestClient) -> None:
        response = client.post("/foods/lookup", json={"food_name": " "}, headers=_headers())
        assert response.status_code == 422
        assert response.json()["field"] == "food_name"

    def test_other_users_food_is_forbidden(self, client: TestClient) -> None:
        headers = _headers()
        food = client.post(
            "/custom-foods",
            json={
                "name": "Tofu", "protein_per_100g": 8, "carbs_per_100g": 2,
                "fat_per_100g": 4.8, "calories_per_100g": 76,
            },
            headers=headers,
        ).json()
        assert client.patch(
            f"/custom-foods/{food['id']}", json={"name": "Mine"}, headers=_headers()
        ).status_code == 403
        assert client.delete(f"/custom-foods/{food['id']}", headers=headers).status_code == 200
        assert client.get("/custom-foods", headers=headers).json() == []
