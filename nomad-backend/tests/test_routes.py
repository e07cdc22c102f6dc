"""HTTP tests for the /api routes, over a seeded in-memory store and a fake Gemini."""

from storage import MemStorage
from tests.conftest import FakeGeminiService

NEW_EVENT = {
    "userId": 1,
    "title": "Coffee with Priya",
    "startTime": "2025-05-02T10:00:00+05:30",
    "endTime": "2025-05-02T11:00:00+05:30",
    "location": "Third Wave Coffee",
    "eventType": "personal",
}


def _error_fields(response):
    return [error["field"] for error in response.json()["errors"]]


class TestCurrentUser:
    def test_returns_demo_user_without_password(self, client):
        response = client.get("/api/current-user")
        assert response.status_code == 200
        body = response.json()
        assert body["id"] == 1
        assert body["username"] == "alexmorgan"
        assert body["fullName"] == "Alex Morgan"
        assert "password" not in body

    def test_missing_user_is_404(self, make_client):
        response = make_client(MemStorage()).get("/api/current-user")
        assert response.status_code == 404


class TestUserPreferences:
    def test_get_preferences(self, client):
        response = client.get("/api/user-preferences")
        assert response.status_code == 200
        body = response.json()
        assert body["timeZone"] == "Asia/Kolkata"
        assert body["preferredWorkHours"]["friday"] == {"start": "09:00", "end": "13:00"}

    def test_missing_preferences_is_404(self, make_client):
        response = make_client(MemStorage()).get("/api/user-preferences")
        assert response.status_code == 404

    def test_post_merges_into_existing(self, client, seeded_storage):
        response = client.post("/api/user-preferences", json={"userId": 1, "budgetLimit": 3200})
        assert response.status_code == 200
        body = response.json()
        assert body["budgetLimit"] == 3200
        assert body["timeZone"] == "Asia/Kolkata"
        assert seeded_storage.get_user_preferences(1).budget_limit == 3200

    def test_post_requires_user_id(self, client):
        response = client.post("/api/user-preferences", json={"timeZone": "UTC"})
        assert response.status_code == 400
        assert "userId" in _error_fields(response)


class TestCalendarRoutes:
    def test_list_events(self, client):
        response = client.get("/api/calendar")
        assert response.status_code == 200
        events = response.json()
        assert len(events) == 5
        assert events[0]["title"] == "Team Weekly Sync"
        assert {"startTime", "endTime", "eventType", "isConflict"} <= set(events[0])

    def test_create_event(self, client):
        response = client.post("/api/calendar", json=NEW_EVENT)
        assert response.status_code == 200
        body = response.json()
        assert body["id"] == 6
        assert body["isConflict"] is False
        assert body["title"] == "Coffee with Priya"
        assert len(client.get("/api/calendar").json()) == 6

    def test_create_without_title_is_400(self, client):
        payload = {key: value for key, value in NEW_EVENT.items() if key != "title"}
        response = client.post("/api/calendar", json=payload)
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid data"
        assert "title" in _error_fields(response)

    def test_create_with_unknown_event_type_is_400(self, client):
        response = client.post("/api/calendar", json={**NEW_EVENT, "eventType": "holiday"})
        assert response.status_code == 400
        assert "eventType" in _error_fields(response)

    def test_update_event_keeps_other_fields(self, client):
        response = client.put("/api/calendar/1", json={"title": "Team Sync (moved)"})
        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Team Sync (moved)"
        assert body["location"] == "Zoom"
        assert body["eventType"] == "work"

    def test_update_missing_event_is_404(self, client):
        response = client.put("/api/calendar/999", json={"title": "Nope"})
        assert response.status_code == 404
        assert response.json()["detail"] == "Event not found"

    def test_update_rejects_null_title(self, client):
        response = client.put("/api/calendar/1", json={"title": None})
        assert response.status_code == 400
        assert "title" in _error_fields(response)

    def test_non_numeric_id_is_400(self, client):
        response = client.put("/api/calendar/abc", json={"title": "x"})
        assert response.status_code == 400
        assert "event_id" in _error_fields(response)

    def test_delete_event_once(self, client):
        first = client.delete("/api/calendar/2")
        assert first.status_code == 200
        assert first.json() == {"success": True}

        second = client.delete("/api/calendar/2")
        assert second.status_code == 404

    def test_analyze_sends_events_to_gemini(self, client, fake_gemini):
        response = client.post("/api/calendar/analyze")
        assert response.status_code == 200
        assert response.json() == {"hasConflict": False, "suggestedSolutions": []}
        assert "Flight to Goa" in fake_gemini.prompts[0]

    def test_analyze_failure_is_500(self, make_client, seeded_storage):
        failing = FakeGeminiService(error=RuntimeError("quota exceeded"))
        response = make_client(seeded_storage, failing).post("/api/calendar/analyze")
        assert response.status_code == 500
        assert response.json() == {"detail": "Error analyzing calendar"}


class TestCoworkingRoutes:
    def test_list_spaces(self, client):
        response = client.get("/api/coworking")
        assert response.status_code == 200
        assert [space["name"] for space in response.json()] == ["WeWork Galaxy", "91springboard"]

    def test_create_space(self, client):
        response = client.post("/api/coworking", json={
            "userId": 1,
            "name": "Hubud",
            "location": "Ubud, Bali",
            "amenities": ["Garden", "Fast WiFi"],
            "internetSpeed": "100 Mbps",
        })
        assert response.status_code == 200
        assert response.json()["amenities"] == ["Garden", "Fast WiFi"]

    def test_create_space_without_location_is_400(self, client):
        response = client.post("/api/coworking", json={"userId": 1, "name": "Hubud"})
        assert response.status_code == 400
        assert "location" in _error_fields(response)

    def test_recommend_returns_gemini_json_unmodified(self, make_client, seeded_storage):
        answer = {"recommendations": [{"name": "Punspace", "rank": 1}], "recommendationSummary": "Go"}
        fake = FakeGeminiService(result=answer)
        response = make_client(seeded_storage, fake).post(
            "/api/coworking/recommend", json={"location": "Chiang Mai", "maxPrice": "$10/day"}
        )
        assert response.status_code == 200
        assert response.json() == answer
        assert "Chiang Mai" in fake.prompts[0]


class TestBudgetRoutes:
    def test_create_then_list(self, make_client):
        client = make_client(MemStorage())
        response = client.post("/api/budget", json={"userId": 1, "amount": 50, "category": "food"})
        assert response.status_code == 200
        created = response.json()
        assert created["id"] >= 1

        entries = client.get("/api/budget").json()
        assert len(entries) == 1
        assert entries[0]["amount"] == 50
        assert entries[0]["category"] == "food"
        assert entries[0]["id"] == created["id"]

    def test_amount_must_be_integer(self, client):
        response = client.post("/api/budget", json={"userId": 1, "amount": "lots", "category": "food"})
        assert response.status_code == 400
        assert "amount" in _error_fields(response)

    def test_update_entry(self, client):
        response = client.put("/api/budget/3", json={"amount": 500})
        assert response.status_code == 200
        assert response.json()["amount"] == 500
        assert response.json()["category"] == "food"

    def test_update_missing_entry_is_404(self, client):
        assert client.put("/api/budget/404", json={"amount": 1}).status_code == 404

    def test_analyze_uses_user_locations(self, client, fake_gemini):
        response = client.post("/api/budget/analyze")
        assert response.status_code == 200
        prompt = fake_gemini.prompts[0]
        assert "Current location: Bangalore, India" in prompt
        assert "Next destination: Goa, India" in prompt
        assert "Co-living space with work area" in prompt


class TestAdvisorRoutes:
    def test_timezone_recommend(self, client, fake_gemini):
        response = client.post("/api/timezone/recommend", json={"members": [{"city": "Berlin"}, {"city": "Austin"}]})
        assert response.status_code == 200
        assert "Austin" in fake_gemini.prompts[0]

    def test_community_recommend(self, client, fake_gemini):
        response = client.post("/api/community/recommend", json={"interests": ["climbing"], "location": "Medellín"})
        assert response.status_code == 200
        assert "Medellín" in fake_gemini.prompts[0]

    def test_legal_resources(self, client, fake_gemini):
        response = client.post("/api/legal/resources", json={"question": "Digital nomad visa in Spain?"})
        assert response.status_code == 200
        assert response.json() == {"hasConflict": False, "suggestedSolutions": []}

    def test_non_object_body_is_forwarded(self, client, fake_gemini):
        response = client.post("/api/timezone/recommend", json=[{"city": "Lisbon"}, {"city": "Denver"}])
        assert response.status_code == 200
        assert "Denver" in fake_gemini.prompts[0]

    def test_legal_failure_is_500(self, make_client, seeded_storage):
        failing = FakeGeminiService(error=ValueError("bad json"))
        response = make_client(seeded_storage, failing).post("/api/legal/resources", json={"question": "?"})
        assert response.status_code == 500
        assert response.json()["detail"] == "Error getting legal resources"


class TestAssistantRoutes:
    def test_query_is_required(self, client):
        assert client.post("/api/assistant", json={}).status_code == 400

    def test_query_must_be_a_string(self, client):
        response = client.post("/api/assistant", json={"query": 42})
        assert response.status_code == 400
        assert "query" in _error_fields(response)

    def test_empty_query_rejected(self, client):
        assert client.post("/api/assistant", json={"query": ""}).status_code == 400

    def test_answers_and_records_conversation(self, make_client, seeded_storage):
        fake = FakeGeminiService(result={"response": "Goa has good coworking", "relatedModules": ["coworking"]})
        client = make_client(seeded_storage, fake)

        first = client.post("/api/assistant", json={"query": "Where can I work in Goa?"})
        assert first.status_code == 200
        assert first.json()["response"] == "Goa has good coworking"
        client.post("/api/assistant", json={"query": "And in Mumbai?"})

        conversations = client.get("/api/conversations", params={"module": "assistant"}).json()
        assert len(conversations) == 1
        messages = conversations[0]["messages"]
        assert [m["role"] for m in messages] == ["user", "assistant", "user", "assistant"]
        assert messages[0]["content"] == "Where can I work in Goa?"
        assert messages[1]["content"] == "Goa has good coworking"

    def test_failed_answer_is_not_recorded(self, make_client, seeded_storage):
        failing = FakeGeminiService(error=RuntimeError("down"))
        client = make_client(seeded_storage, failing)
        assert client.post("/api/assistant", json={"query": "hello"}).status_code == 500
        assert client.get("/api/conversations").json() == []


def test_root(client):
    assert client.get("/").json()["message"] == "Digital Nomad Planner API"
