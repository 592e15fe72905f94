from datetime import timedelta
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from tests.helpers.asserts import api_call, api_data, assert_error
from tests.helpers.auth import create_access_token


def _start(client, headers, series_id):
    return api_data(client, "POST", f"/exams/test-series/{series_id}/start", headers=headers)


def _first_question_id(client, headers, attempt_id):
    data = api_data(client, "GET", f"/exams/attempts/{attempt_id}/questions", headers=headers)
    return data["sections"][0]["questions"][0]["id"]


class TestExamEndpoints:
    def test_start_exam_smoke(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        response = client.post(f"/exams/test-series/{series.id}/start", headers=auth_headers)
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Exam started successfully"
        assert body["data"]["status"] == "STARTED"
        assert body["data"]["total_questions"] == 3
        assert len(body["data"]["section_timings"]) == 2

    def test_start_exam_twice_resumes(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        first = _start(client, auth_headers, series.id)
        response = client.post(f"/exams/test-series/{series.id}/start", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Resuming existing exam"
        assert response.json()["data"]["id"] == first["id"]

    def test_start_requires_token(self, client: TestClient, make_test_series):
        series = make_test_series()
        response = client.post(f"/exams/test-series/{series.id}/start")
        assert response.status_code in (401, 403)

    def test_start_rejects_bad_token(self, client: TestClient, make_test_series):
        series = make_test_series()
        response = client.post(
            f"/exams/test-series/{series.id}/start",
            headers={"Authorization": "Bearer not-a-token"}
        )
        assert_error(response, 401, "UNAUTHORIZED")

    def test_start_rejects_expired_token(self, client: TestClient, user_id, make_test_series):
        series = make_test_series()
        token = create_access_token(user_id, expires_delta=timedelta(minutes=-1))
        response = client.post(f"/exams/test-series/{series.id}/start", headers={"Authorization": f"Bearer {token}"})
        assert_error(response, 401, "UNAUTHORIZED")

    def test_start_unknown_series(self, client: TestClient, auth_headers):
        response = client.post("/exams/test-series/999999/start", headers=auth_headers)
        assert_error(response, 404, "NOT_FOUND")

    def test_start_paid_series_without_purchase(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series(is_free=False)
        response = client.post(f"/exams/test-series/{series.id}/start", headers=auth_headers)
        assert_error(response, 403, "ENTITLEMENT_REQUIRED")

    def test_start_empty_series(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series(sections={})
        response = client.post(f"/exams/test-series/{series.id}/start", headers=auth_headers)
        assert_error(response, 400, "EMPTY_TEST")

    def test_get_all_questions_smoke(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        data = api_data(client, "GET", f"/exams/attempts/{attempt['id']}/questions", headers=auth_headers)
        assert [s["name"] for s in data["sections"]] == ["Quantitative", "Reasoning"]
        assert data["stats"]["total_questions"] == 3
        assert data["exam"]["remaining_time"]["milliseconds"] > 0
        question = data["sections"][0]["questions"][0]
        assert set(question["options"]) == {"option1", "option2", "option3", "option4"}
        assert "right_answer" not in question
        assert "correct_answer" not in question

    def test_get_section_questions_smoke(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        section_id = attempt["section_timings"][0]["section_id"]
        data = api_data(
            client, "GET", f"/exams/attempts/{attempt['id']}/sections/{section_id}/questions", headers=auth_headers
        )
        assert data["section"]["id"] == section_id
        assert len(data["questions"]) == 2
        assert data["questions"][0]["visit_count"] == 1
        assert data["questions"][1]["visit_count"] == 0
        assert data["exam_timing"]["remaining_time"]["formatted"]

    def test_get_question_smoke(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        question_id = _first_question_id(client, auth_headers, attempt["id"])
        data = api_data(client, "GET", f"/exams/questions/{question_id}", headers=auth_headers)
        assert data["id"] == question_id
        assert data["visit_count"] == 1
        assert data["exam_timing"]["end_time"]

    def test_answer_question_smoke(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        question_id = _first_question_id(client, auth_headers, attempt["id"])
        response = api_call(
            client, "POST", f"/exams/questions/{question_id}/answer",
            headers=auth_headers, json={"answer": "option1", "time_spent": 12}
        )
        data = response.json()["data"]
        assert data["status"] == "ATTEMPTED"
        assert data["user_answer"] == "option1"
        assert "is_correct" not in data

    def test_answer_requires_answer(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        question_id = _first_question_id(client, auth_headers, attempt["id"])
        response = client.post(f"/exams/questions/{question_id}/answer", headers=auth_headers, json={"answer": "  "})
        assert_error(response, 422, "VALIDATION")
        response = client.post(f"/exams/questions/{question_id}/answer", headers=auth_headers, json={})
        assert_error(response, 422, "VALIDATION_ERROR")

    def test_answer_rejects_negative_time(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        question_id = _first_question_id(client, auth_headers, attempt["id"])
        response = client.post(
            f"/exams/questions/{question_id}/answer",
            headers=auth_headers, json={"answer": "option1", "time_spent": -5}
        )
        assert_error(response, 422, "VALIDATION_ERROR")

    def test_skip_question_smoke(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        question_id = _first_question_id(client, auth_headers, attempt["id"])
        data = api_data(
            client, "POST", f"/exams/questions/{question_id}/skip",
            headers=auth_headers, json={"time_spent": 3, "is_marked_for_review": True}
        )
        assert data["status"] == "SKIPPED"
        assert data["is_marked_for_review"] is True

    def test_mark_review_smoke(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        question_id = _first_question_id(client, auth_headers, attempt["id"])
        response = api_call(
            client, "POST", f"/exams/questions/{question_id}/mark-review",
            headers=auth_headers, json={"is_marked_for_review": True}
        )
        assert response.json()["message"] == "Question marked for review"
        response = api_call(
            client, "POST", f"/exams/questions/{question_id}/mark-review",
            headers=auth_headers, json={"is_marked_for_review": False}
        )
        assert response.json()["message"] == "Question unmarked for review"
        assert response.json()["data"]["is_marked_for_review"] is False

    def test_mark_review_requires_flag(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        question_id = _first_question_id(client, auth_headers, attempt["id"])
        response = client.post(f"/exams/questions/{question_id}/mark-review", headers=auth_headers, json={})
        assert_error(response, 422, "VALIDATION_ERROR")

    def test_section_timing_smoke(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        section_id = attempt["section_timings"][0]["section_id"]
        path = f"/exams/attempts/{attempt['id']}/sections/{section_id}/timing"
        api_call(client, "POST", path, headers=auth_headers, json={"time_spent": 30})
        data = api_data(client, "POST", path, headers=auth_headers, json={"time_spent": 15})
        assert data == {"section_id": section_id, "total_time_spent": 45}

    def test_section_timing_requires_time(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        section_id = attempt["section_timings"][0]["section_id"]
        response = client.post(
            f"/exams/attempts/{attempt['id']}/sections/{section_id}/timing", headers=auth_headers, json={}
        )
        assert_error(response, 422, "VALIDATION_ERROR")

    def test_answer_through_attempt_smoke(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        question_id = _first_question_id(client, auth_headers, attempt["id"])
        data = api_data(
            client, "POST", f"/exams/attempts/{attempt['id']}/answer-question",
            headers=auth_headers, json={"question_id": question_id, "answer": "option1", "time_spent": 4}
        )
        assert data["id"] == question_id
        assert data["status"] == "ATTEMPTED"
        assert data["user_answer"] == "option1"
        assert "is_correct" not in data

    def test_answer_through_attempt_requires_question_id(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        response = client.post(
            f"/exams/attempts/{attempt['id']}/answer-question", headers=auth_headers, json={"answer": "option1"}
        )
        assert_error(response, 422, "VALIDATION_ERROR")

    def test_update_question_status_smoke(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        question_id = _first_question_id(client, auth_headers, attempt["id"])
        path = f"/exams/attempts/{attempt['id']}/update-question-status"
        api_call(
            client, "POST", f"/exams/attempts/{attempt['id']}/answer-question",
            headers=auth_headers, json={"question_id": question_id, "answer": "option1"}
        )

        response = api_call(
            client, "POST", path, headers=auth_headers,
            json={"question_id": question_id, "status": "UNATTEMPTED", "is_marked_for_review": True}
        )
        assert response.json()["message"] == "Question status updated successfully"
        assert response.json()["data"] == {"id": question_id, "status": "UNATTEMPTED", "is_marked_for_review": True}

        navigation = api_data(client, "GET", f"/exams/attempts/{attempt['id']}/navigation", headers=auth_headers)
        assert navigation["sections"][0]["stats"]["attempted"] == 0

    def test_update_question_status_rejects_unknown_status(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        question_id = _first_question_id(client, auth_headers, attempt["id"])
        response = client.post(
            f"/exams/attempts/{attempt['id']}/update-question-status",
            headers=auth_headers, json={"question_id": question_id, "status": "REVIEWED"}
        )
        assert_error(response, 422, "VALIDATION_ERROR")

    def test_update_question_status_attempted_without_answer(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        question_id = _first_question_id(client, auth_headers, attempt["id"])
        response = client.post(
            f"/exams/attempts/{attempt['id']}/update-question-status",
            headers=auth_headers, json={"question_id": question_id, "status": "ATTEMPTED"}
        )
        assert_error(response, 422, "VALIDATION")

    def test_navigation_smoke(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        data = api_data(client, "GET", f"/exams/attempts/{attempt['id']}/navigation", headers=auth_headers)
        assert data["attempt_id"] == attempt["id"]
        assert data["status"] == "STARTED"
        assert [len(s["questions"]) for s in data["sections"]] == [2, 1]

    def test_submit_and_result_smoke(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        response = api_call(client, "POST", f"/exams/attempts/{attempt['id']}/submit", headers=auth_headers)
        submitted = response.json()["data"]
        assert submitted["rank"] == 1
        assert submitted["total_score"] == 0

        result = api_data(client, "GET", f"/exams/attempts/{attempt['id']}/result", headers=auth_headers)
        assert result["id"] == attempt["id"]
        assert result["test_series"]["id"] == series.id
        assert result["passed"] is False
        assert len(result["section_stats"]) == 2

    def test_submit_twice_conflicts(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        api_call(client, "POST", f"/exams/attempts/{attempt['id']}/submit", headers=auth_headers)
        response = client.post(f"/exams/attempts/{attempt['id']}/submit", headers=auth_headers)
        assert_error(response, 409, "ALREADY_COMPLETED")

    def test_result_before_submit_conflicts(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        response = client.get(f"/exams/attempts/{attempt['id']}/result", headers=auth_headers)
        assert_error(response, 409, "ATTEMPT_NOT_COMPLETED")

    def test_review_smoke(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        api_call(client, "POST", f"/exams/attempts/{attempt['id']}/submit", headers=auth_headers)
        data = api_data(client, "GET", f"/exams/attempts/{attempt['id']}/review", headers=auth_headers)
        assert [section["section"]["name"] for section in data] == ["Quantitative", "Reasoning"]
        assert data[0]["questions"][0]["correct_answer"] == "option1"

    def test_history_smoke(self, client: TestClient, auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        api_call(client, "POST", f"/exams/attempts/{attempt['id']}/submit", headers=auth_headers)
        data = api_data(client, "GET", "/exams/history?page=1&size=5", headers=auth_headers)
        assert data["total"] == 1
        assert data["items"][0]["id"] == attempt["id"]
        assert data["has_next"] is False

    def test_foreign_attempt_is_not_found(self, client: TestClient, auth_headers, other_auth_headers, make_test_series):
        series = make_test_series()
        attempt = _start(client, auth_headers, series.id)
        question_id = _first_question_id(client, auth_headers, attempt["id"])

        assert_error(client.get(f"/exams/attempts/{attempt['id']}/questions", headers=other_auth_headers), 404, "NOT_FOUND")
        assert_error(client.post(f"/exams/attempts/{attempt['id']}/submit", headers=other_auth_headers), 404, "NOT_FOUND")
        assert_error(
            client.post(f"/exams/questions/{question_id}/answer", headers=other_auth_headers, json={"answer": "option1"}),
            404, "NOT_FOUND"
        )

    def test_response_carries_request_id(self, client: TestClient, auth_headers, db_session: Session):
        response = client.get("/exams/history", headers=auth_headers)
        assert response.status_code == 200
        assert response.headers.get("X-Request-ID")
