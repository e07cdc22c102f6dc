from datetime import timezone
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, ForeignKey, JSON, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import TypeDecorator
from database import Base


class UTCDateTime(TypeDecorator):
    """Stores instants as naive UTC and hands them back tagged as UTC.

    SQLite keeps no offset, so aware values are converted before they are written.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


# sqlite_autoincrement keeps SQLite from handing out the id of a deleted row again


class User(Base):
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    password = Column(String, nullable=False)
    full_name = Column(String, nullable=False)
    current_location = Column(String, nullable=True)
    profile_image = Column(String, nullable=True)

    # Relationships
    calendar_events = relationship("CalendarEvent", back_populates="user", cascade="all, delete-orphan")
    coworking_spaces = relationship("CoworkingSpace", back_populates="user")
    budget_entries = relationship("BudgetEntry", back_populates="user")
    preferences = relationship("UserPreferences", back_populates="user", uselist=False)
    ai_conversations = relationship("AiConversation", back_populates="user")


class CalendarEvent(Base):
    __tablename__ = "calendar_events"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    start_time = Column(UTCDateTime(), nullable=False)
    end_time = Column(UTCDateTime(), nullable=False)
    location = Column(String, nullable=True)
    event_type = Column(String, nullable=False)  # work, travel, personal
    is_conflict = Column(Boolean, nullable=False, default=False)

    user = relationship("User", back_populates="calendar_events")

    __table_args__ = (
        CheckConstraint(
            "event_type IN ('work', 'travel', 'personal')",
            name="check_event_type"
        ),
        {"sqlite_autoincrement": True},
    )


class CoworkingSpace(Base):
    __tablename__ = "coworking_spaces"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    location = Column(String, nullable=False)
    price = Column(String, nullable=True)  # Free text, e.g. "₹800/day"
    rating = Column(String, nullable=True)
    amenities = Column(JSON, nullable=True)  # Ordered list of strings
    internet_speed = Column(String, nullable=True)

    user = relationship("User", back_populates="coworking_spaces")


class BudgetEntry(Base):
    __tablename__ = "budget_entries"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)
    category = Column(String, nullable=False)  # accommodation, food, transportation, ...
    description = Column(Text, nullable=True)
    date = Column(UTCDateTime(), nullable=False)
    is_work_related = Column(Boolean, nullable=False, default=False)

    user = relationship("User", back_populates="budget_entries")


class UserPreferences(Base):
    __tablename__ = "user_preferences"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    time_zone = Column(String, nullable=True)
    budget_limit = Column(Integer, nullable=True)
    preferred_work_hours = Column(JSON, nullable=True)  # {"monday": {"start": "09:00", "end": "17:00"}, ...}
    next_destination = Column(String, nullable=True)
    next_destination_dates = Column(JSON, nullable=True)  # {"start": "2025-04-15", "end": "2025-06-20"}

    user = relationship("User", back_populates="preferences")


class AiConversation(Base):
    __tablename__ = "ai_conversations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    module = Column(String, nullable=False)  # Planner module the conversation belongs to
    messages = Column(JSON, nullable=False)  # Append-only list of {"role", "content"}
    created_at = Column(UTCDateTime(), nullable=False, server_default=func.now())

    user = relationship("User", back_populates="ai_conversations")
