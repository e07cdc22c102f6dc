from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone
from enum import Enum

# ============ BASE ============
class CamelModel(BaseModel):
    """Snake_case attributes, camelCase JSON keys (the frontend speaks camelCase)."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
        use_enum_values = True


def _reject_null(value):
    if value is None:
        raise ValueError("Field cannot be null")
    return value


def _assume_utc(value):
    # Timestamps without an offset are read as UTC
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value

# ============ ENUMS ============
class EventTypeEnum(str, Enum):
    work = "work"
    travel = "travel"
    personal = "personal"

# ============ USER SCHEMAS ============
class UserBase(CamelModel):
    username: str = Field(..., min_length=1, description="Unique login name")
    full_name: str = Field(..., description="User's display name")
    current_location: Optional[str] = Field(None, description="Where the user is right now")
    profile_image: Optional[str] = Field(None, description="Avatar URL")

class UserCreate(UserBase):
    password: str = Field(..., description="Opaque password value")

class UserResponse(UserBase):
    id: int

class UserRecord(UserResponse):
    """Stored user including the password; never returned by the API."""
    password: str

# ============ CALENDAR SCHEMAS ============
class CalendarEventBase(CamelModel):
    user_id: int = Field(..., description="Owning user")
    title: str = Field(..., description="Event title")
    description: Optional[str] = Field(None, description="Event details")
    start_time: datetime = Field(..., description="Event start")
    end_time: datetime = Field(..., description="Event end")
    location: Optional[str] = Field(None, description="Place or meeting link")
    event_type: EventTypeEnum = Field(..., description="work, travel or personal")
    is_conflict: bool = Field(False, description="Flagged as clashing with another event")

    @field_validator("start_time", "end_time")
    @classmethod
    def _times_are_aware(cls, value):
        return _assume_utc(value)

class CalendarEventCreate(CalendarEventBase):
    pass

class CalendarEventUpdate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    location: Optional[str] = None
    event_type: Optional[EventTypeEnum] = None
    is_conflict: Optional[bool] = None

    @field_validator("title", "start_time", "end_time", "event_type", "is_conflict", mode="before")
    @classmethod
    def _required_fields_not_null(cls, value):
        return _reject_null(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def _times_are_aware(cls, value):
        return _assume_utc(value)

class CalendarEventResponse(CalendarEventBase):
    id: int

class DeleteResponse(BaseModel):
    success: bool

# ============ COWORKING SCHEMAS ============
class CoworkingSpaceBase(CamelModel):
    user_id: int = Field(..., description="Owning user")
    name: str = Field(..., description="Space name")
    location: str = Field(..., description="Address or neighbourhood")
    price: Optional[str] = Field(None, description="Free-text price, e.g. '₹800/day'")
    rating: Optional[str] = Field(None, description="Free-text rating, e.g. '4.6'")
    amenities: Optional[List[str]] = Field(None, description="Ordered list of amenities")
    internet_speed: Optional[str] = Field(None, description="Advertised connection speed")

class CoworkingSpaceCreate(CoworkingSpaceBase):
    pass

class CoworkingSpaceResponse(CoworkingSpaceBase):
    id: int

# ============ BUDGET SCHEMAS ============
class BudgetEntryBase(CamelModel):
    user_id: int = Field(..., description="Owning user")
    amount: int = Field(..., description="Amount in whole currency units")
    category: str = Field(..., description="accommodation, food, transportation, ...")
    description: Optional[str] = Field(None, description="What the money was spent on")
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="When the expense happened, defaults to now")
    is_work_related: bool = Field(False, description="Counts as a work expense")

    @field_validator("date")
    @classmethod
    def _date_is_aware(cls, value):
        return _assume_utc(value)

class BudgetEntryCreate(BudgetEntryBase):
    pass

class BudgetEntryUpdate(CamelModel):
    amount: Optional[int] = None
    category: Optional[str] = None
    description: Optional[str] = None
    date: Optional[datetime] = None
    is_work_related: Optional[bool] = None

    @field_validator("amount", "category", "date", "is_work_related", mode="before")
    @classmethod
    def _required_fields_not_null(cls, value):
        return _reject_null(value)

    @field_validator("date")
    @classmethod
    def _date_is_aware(cls, value):
        return _assume_utc(value)

class BudgetEntryResponse(BudgetEntryBase):
    id: int

# ============ PREFERENCES SCHEMAS ============
class WorkHours(CamelModel):
    start: str = Field(..., description="HH:MM")
    end: str = Field(..., description="HH:MM")

class DateRange(CamelModel):
    start: str = Field(..., description="YYYY-MM-DD")
    end: str = Field(..., description="YYYY-MM-DD")

class UserPreferencesBase(CamelModel):
    user_id: int = Field(..., description="Owning user, at most one preferences record each")
    time_zone: Optional[str] = Field(None, description="IANA zone, e.g. Asia/Kolkata")
    budget_limit: Optional[int] = Field(None, description="Monthly budget limit")
    preferred_work_hours: Optional[Dict[str, WorkHours]] = Field(None, description="Weekday -> working hours")
    next_destination: Optional[str] = None
    next_destination_dates: Optional[DateRange] = None

class UserPreferencesCreate(UserPreferencesBase):
    pass

class UserPreferencesResponse(UserPreferencesBase):
    id: int

# ============ AI CONVERSATION SCHEMAS ============
class ChatMessage(CamelModel):
    role: str = Field(..., description="user or assistant")
    content: str

class AiConversationCreate(CamelModel):
    user_id: int
    module: str = Field(..., min_length=1, description="Planner module, e.g. assistant")
    messages: List[ChatMessage] = Field(default_factory=list)

class AiConversationResponse(AiConversationCreate):
    id: int
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _created_at_is_aware(cls, value):
        return _assume_utc(value)

# ============ AI REQUEST SCHEMAS ============
class AssistantRequest(BaseModel):
    query: str = Field(..., min_length=1, description="Free-form question for the assistant")
