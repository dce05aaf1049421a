"""Tests for the Web API (F5)."""

from levelup.config.app_config import config_from_dict, resolve_db_path
from levelup.core.engine import ProgressionEngine
from levelup.web import engine_provider

EASY_IDS = [f"easy-{i}" for i in range(1, 5)]


def _submit(client, answers, level="easy", ids=None, student="s1"):
    return client.post(
        "/api/grading/submit",
        json={
            "student_id": student,
            "course_id": "math-101",
            "level": level,
            "question_ids": ids or EASY_IDS,
            "answers": answers,
            "duration_seconds": 120,
        },
    )


class TestHealthEndpoint:
    """Tests for GET /health and GET /api/scales."""

    def test_health_returns_ok(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["version"] == "0.1.0"
        assert "T" in data["timestamp"]

    def test_scales(self, client):
        data = client.get("/api/scales").json()
        assert data["pass_threshold"] == 40
        assert data["ranges"]["MATH"]["EASY"] == {"min": 200, "max": 500}
        assert data["ranges"]["READING_WRITING"]["HARD"] == {"min": 550, "max": 800}

    def test_scales_follow_engine_config(self, client, monkeypatch):
        """Bands come from the serving engine, not a fresh config load."""
        config = config_from_dict(
            {"scoring": {"ranges": {"MATH": {"EASY": {"min": 250, "max": 450}}}}}
        )
        engine = ProgressionEngine.from_db(resolve_db_path(), config)
        monkeypatch.setattr(engine_provider, "_engine", engine)

        data = client.get("/api/scales").json()
        assert data["ranges"]["MATH"]["EASY"] == {"min": 250, "max": 450}
        assert data["ranges"]["MATH"]["MEDIUM"] == {"min": 350, "max": 680}


class TestSubmitEndpoint:
    """Tests for POST /api/grading/submit."""

    def test_submit_grades_and_unlocks(self, client):
        response = _submit(client, ["A", "A", "A", None])
        assert response.status_code == 200

        data = response.json()
        assert data["submission"]["raw_score"] == 3
        assert data["submission"]["scaled_score"] == 425
        assert data["submission"]["sections"]["math"]["correct"] == 3
        assert data["progress"]["best_percentage"] == 75
        assert data["next_tier_unlocked"] is True
        assert data["ledger_updated"] is True
        assert data["grading_degraded"] is False
        assert data["warnings"] == []

    def test_length_mismatch_is_400(self, client):
        response = _submit(client, ["A"])
        assert response.status_code == 400

    def test_unknown_question_is_400(self, client):
        response = _submit(client, ["A"], ids=["missing"])
        assert response.status_code == 400
        assert "missing" in response.json()["detail"]

    def test_missing_fields_is_422(self, client):
        response = client.post("/api/grading/submit", json={"student_id": "s1"})
        assert response.status_code == 422


class TestProgressEndpoints:
    """Tests for /api/progress."""

    def test_course_progress(self, client):
        _submit(client, ["A", "A", "A", "A"])

        data = client.get("/api/progress/s1/math-101").json()
        assert len(data["records"]) == 1
        assert data["records"][0]["best_scaled"] == 500
        assert [level["unlocked"] for level in data["levels"]] == [True, True, False]
        assert data["completed"] is False

    def test_unlocked(self, client):
        url = "/api/progress/s1/math-101/unlocked/medium"
        assert client.get(url).json()["unlocked"] is False

        _submit(client, ["A", "A", "B", "B"])
        data = client.get(url).json()
        assert data["unlocked"] is True
        assert data["tier"] == "medium"

    def test_unknown_level_is_404(self, client):
        response = client.get("/api/progress/s1/math-101/unlocked/legendary")
        assert response.status_code == 404

    def test_summary_defaults(self, client):
        data = client.get("/api/progress/nobody/summary").json()
        assert data["math_score"] == 400
        assert data["rw_score"] == 400
        assert data["total"] == 800
        assert data["target"] == 1500
        assert data["gap"] == 700

    def test_summary_after_submit(self, client):
        _submit(client, ["A", "A", "A", "A"])
        data = client.get("/api/progress/s1/summary", params={"course_id": "math-101"}).json()
        assert data["math_score"] == 500
        assert data["math_improvement"] == 100


class TestHistoryEndpoints:
    """Tests for submission history, review and section analysis."""

    def test_scores_newest_first(self, client):
        first = _submit(client, ["A", "B", "B", "B"]).json()
        second = _submit(client, ["A", "A", "B", "B"]).json()

        data = client.get("/api/grading/scores/s1/math-101").json()
        assert data["count"] == 2
        assert [s["submission_id"] for s in data["submissions"]] == [
            second["submission"]["submission_id"],
            first["submission"]["submission_id"],
        ]

    def test_submission_review(self, client):
        submitted = _submit(client, ["A", "C", "A", ""]).json()
        submission_id = submitted["submission"]["submission_id"]

        data = client.get(f"/api/grading/submissions/{submission_id}").json()
        wrong = data["incorrect_responses"]
        assert [w["question_id"] for w in wrong] == ["easy-2", "easy-4"]
        assert wrong[0]["given_answer"] == "C"
        assert wrong[0]["correct_answer"] == "A"
        assert wrong[0]["explanation"] == "The answer is A."

    def test_missing_submission_is_404(self, client):
        assert client.get("/api/grading/submissions/nope").status_code == 404

    def test_section_analysis(self, client):
        _submit(client, ["A", "B", "B", "B"])
        _submit(client, ["A", "A", "A", "B"])

        data = client.get("/api/grading/section-analysis/s1/math-101").json()
        assert data["sections"]["math"]["attempts"] == 2
        assert data["sections"]["math"]["improvement"] == 50
        assert data["overall"]["best_percentage"] == 75
