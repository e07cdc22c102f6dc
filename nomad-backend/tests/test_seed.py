"""Tests for seed: demo fixtures for a fresh planner."""

from seed import DEMO_USERNAME, seed_demo_data


def test_seed_fills_empty_store(storage):
    assert seed_demo_data(storage) is True

    user = storage.get_user_by_username(DEMO_USERNAME)
    assert user.id == 1
    assert user.full_name == "Alex Morgan"
    assert user.current_location == "Bangalore, India"

    events = storage.get_calendar_events(user.id)
    assert len(events) == 5
    assert sum(1 for event in events if event.is_conflict) == 2
    assert {event.event_type for event in events} == {"work", "travel"}

    spaces = storage.get_coworking_spaces(user.id)
    assert [space.name for space in spaces] == ["WeWork Galaxy", "91springboard"]

    entries = storage.get_budget_entries(user.id)
    assert len(entries) == 7
    assert sum(entry.amount for entry in entries) == 1950

    prefs = storage.get_user_preferences(user.id)
    assert prefs.time_zone == "Asia/Kolkata"
    assert prefs.budget_limit == 2500
    assert prefs.preferred_work_hours["friday"].end == "13:00"
    assert prefs.next_destination_dates.start == "2025-04-15"


def test_seed_is_idempotent(storage):
    seed_demo_data(storage)
    assert seed_demo_data(storage) is False
    assert len(storage.get_calendar_events(1)) == 5
    assert len(storage.get_budget_entries(1)) == 7
