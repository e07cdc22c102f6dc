"""
Demo fixtures for a fresh planner.

Run once at startup (see SEED_DEMO_DATA in main.py); does nothing when the demo
user already exists, so a persistent SQL database is only seeded the first time.
"""
from datetime import datetime, timedelta, timezone
import logging

import schemas
from storage import Storage

logger = logging.getLogger(__name__)

DEMO_USERNAME = "alexmorgan"

IST = timezone(timedelta(hours=5, minutes=30))

_WEEKDAY_HOURS = {"start": "09:00", "end": "17:00"}


def _ist(year: int, month: int, day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=IST)


def _demo_events(user_id: int):
    return [
        schemas.CalendarEventCreate(
            user_id=user_id,
            title="Team Weekly Sync",
            description="Regular team meeting",
            start_time=_ist(2025, 3, 15, 9),
            end_time=_ist(2025, 3, 15, 10),
            location="Zoom",
            event_type="work",
            is_conflict=False,
        ),
        schemas.CalendarEventCreate(
            user_id=user_id,
            title="Train to Mumbai",
            description="Business trip to Mumbai",
            start_time=_ist(2025, 3, 15, 13),
            end_time=_ist(2025, 3, 15, 17, 30),
            location="Bangalore City Railway Station",
            event_type="travel",
            is_conflict=False,
        ),
        schemas.CalendarEventCreate(
            user_id=user_id,
            title="Client Presentation",
            description="Present design concepts to client",
            start_time=_ist(2025, 3, 15, 17),
            end_time=_ist(2025, 3, 15, 18),
            location="Google Meet",
            event_type="work",
            is_conflict=False,
        ),
        # Morning EST for the US team, evening in India
        schemas.CalendarEventCreate(
            user_id=user_id,
            title="Team Meeting",
            description="Weekly team sync with US team",
            start_time=_ist(2025, 4, 15, 20),
            end_time=_ist(2025, 4, 15, 21),
            location="Zoom",
            event_type="work",
            is_conflict=True,
        ),
        schemas.CalendarEventCreate(
            user_id=user_id,
            title="Flight to Goa",
            description="Weekend getaway",
            start_time=_ist(2025, 4, 15, 17),
            end_time=_ist(2025, 4, 15, 19),
            location="Bangalore Airport (BLR) to Goa Airport (GOI)",
            event_type="travel",
            is_conflict=True,
        ),
    ]


def _demo_spaces(user_id: int):
    return [
        schemas.CoworkingSpaceCreate(
            user_id=user_id,
            name="WeWork Galaxy",
            location="Residency Road, Bangalore",
            price="₹800/day",
            rating="4.6",
            amenities=["Fast WiFi", "Meeting Rooms", "Cafe", "24/7 Access"],
            internet_speed="300 Mbps",
        ),
        schemas.CoworkingSpaceCreate(
            user_id=user_id,
            name="91springboard",
            location="Koramangala, Bangalore",
            price="₹650/day",
            rating="4.5",
            amenities=["200mbps", "Standing desks", "Game Room", "Events"],
            internet_speed="200 Mbps",
        ),
    ]


def _demo_budget(user_id: int):
    spent_on = datetime(2025, 3, 1, tzinfo=timezone.utc)
    rows = [
        (600, "accommodation", "Co-living space with work area", True),
        (150, "coworking", "Co-working space membership", True),
        (450, "food", "Groceries and eating out", False),
        (200, "transportation", "Local transport and taxis", False),
        (300, "entertainment", "Activities and outings", False),
        (50, "internet", "Internet upgrade", True),
        (200, "equipment", "New monitor", True),
    ]
    return [
        schemas.BudgetEntryCreate(
            user_id=user_id,
            amount=amount,
            category=category,
            description=description,
            date=spent_on,
            is_work_related=work_related,
        )
        for amount, category, description, work_related in rows
    ]


def seed_demo_data(storage: Storage) -> bool:
    """
    Insert the demo user and their planner data.

    Args:
        storage: Record store to fill

    Returns:
        True if data was inserted, False if the demo user already existed
    """
    if storage.get_user_by_username(DEMO_USERNAME) is not None:
        logger.info("Demo data already present, skipping seed")
        return False

    user = storage.create_user(schemas.UserCreate(
        username=DEMO_USERNAME,
        password="password123",
        full_name="Alex Morgan",
        current_location="Bangalore, India",
        profile_image="https://images.unsplash.com/photo-1535713875002-d1d0cf377fde?ixlib=rb-1.2.1&auto=format&fit=crop&w=128&q=80",
    ))

    storage.create_or_update_user_preferences(schemas.UserPreferencesCreate(
        user_id=user.id,
        time_zone="Asia/Kolkata",
        budget_limit=2500,
        preferred_work_hours={
            "monday": _WEEKDAY_HOURS,
            "tuesday": _WEEKDAY_HOURS,
            "wednesday": _WEEKDAY_HOURS,
            "thursday": _WEEKDAY_HOURS,
            "friday": {"start": "09:00", "end": "13:00"},
        },
        next_destination="Goa, India",
        next_destination_dates={"start": "2025-04-15", "end": "2025-06-20"},
    ))

    for event in _demo_events(user.id):
        storage.create_calendar_event(event)
    for space in _demo_spaces(user.id):
        storage.create_coworking_space(space)
    for entry in _demo_budget(user.id):
        storage.create_budget_entry(entry)

    logger.info(f"Seeded demo data for user {user.id} ({DEMO_USERNAME})")
    return True
