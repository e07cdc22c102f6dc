"""
Record store for the planner.

`Storage` is the CRUD contract the routers depend on. `MemStorage` keeps one
in-memory map per entity with its own id counter; `SqlStorage` maps the same
contract onto the SQLAlchemy models. Every method returns detached pydantic
records, so callers can never mutate stored state by accident.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional, Type, TypeVar
import logging

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

import models
import schemas

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class StorageError(Exception):
    """Base class for storage failures the caller can act on."""


class UsernameTakenError(StorageError):
    def __init__(self, username: str):
        super().__init__(f"Username '{username}' is already taken")
        self.username = username


class Storage(ABC):
    """CRUD operations over the six planner entities."""

    # User methods
    @abstractmethod
    def get_user(self, user_id: int) -> Optional[schemas.UserRecord]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[schemas.UserRecord]: ...

    @abstractmethod
    def create_user(self, user: schemas.UserCreate) -> schemas.UserRecord: ...

    # Calendar event methods
    @abstractmethod
    def get_calendar_events(self, user_id: int) -> List[schemas.CalendarEventResponse]: ...

    @abstractmethod
    def get_calendar_event(self, event_id: int) -> Optional[schemas.CalendarEventResponse]: ...

    @abstractmethod
    def create_calendar_event(self, event: schemas.CalendarEventCreate) -> schemas.CalendarEventResponse: ...

    @abstractmethod
    def update_calendar_event(
        self, event_id: int, patch: schemas.CalendarEventUpdate
    ) -> Optional[schemas.CalendarEventResponse]: ...

    @abstractmethod
    def delete_calendar_event(self, event_id: int) -> bool: ...

    # Coworking space methods
    @abstractmethod
    def get_coworking_spaces(self, user_id: int) -> List[schemas.CoworkingSpaceResponse]: ...

    @abstractmethod
    def get_coworking_space(self, space_id: int) -> Optional[schemas.CoworkingSpaceResponse]: ...

    @abstractmethod
    def create_coworking_space(self, space: schemas.CoworkingSpaceCreate) -> schemas.CoworkingSpaceResponse: ...

    # Budget entry methods
    @abstractmethod
    def get_budget_entries(self, user_id: int) -> List[schemas.BudgetEntryResponse]: ...

    @abstractmethod
    def get_budget_entry(self, entry_id: int) -> Optional[schemas.BudgetEntryResponse]: ...

    @abstractmethod
    def create_budget_entry(self, entry: schemas.BudgetEntryCreate) -> schemas.BudgetEntryResponse: ...

    @abstractmethod
    def update_budget_entry(
        self, entry_id: int, patch: schemas.BudgetEntryUpdate
    ) -> Optional[schemas.BudgetEntryResponse]: ...

    # User preferences methods
    @abstractmethod
    def get_user_preferences(self, user_id: int) -> Optional[schemas.UserPreferencesResponse]: ...

    @abstractmethod
    def create_or_update_user_preferences(
        self, prefs: schemas.UserPreferencesCreate
    ) -> schemas.UserPreferencesResponse: ...

    # AI conversation methods
    @abstractmethod
    def get_ai_conversations(self, user_id: int, module: str) -> List[schemas.AiConversationResponse]: ...

    @abstractmethod
    def get_ai_conversation(self, conversation_id: int) -> Optional[schemas.AiConversationResponse]: ...

    @abstractmethod
    def create_ai_conversation(self, conversation: schemas.AiConversationCreate) -> schemas.AiConversationResponse: ...

    @abstractmethod
    def append_ai_messages(
        self, conversation_id: int, messages: List[schemas.ChatMessage]
    ) -> Optional[schemas.AiConversationResponse]: ...


# ============ IN-MEMORY BACKEND ============

class _Table:
    """Records of one entity keyed by id, plus the counter that hands out ids."""

    def __init__(self):
        self.rows: Dict[int, BaseModel] = {}
        self.next_id = 1

    def allocate_id(self) -> int:
        record_id = self.next_id
        self.next_id += 1
        return record_id


class MemStorage(Storage):
    """In-process store; ids are never reused, even after a delete."""

    def __init__(self):
        self._users = _Table()
        self._calendar_events = _Table()
        self._coworking_spaces = _Table()
        self._budget_entries = _Table()
        self._user_preferences = _Table()
        self._ai_conversations = _Table()

    @staticmethod
    def _copy(record: Optional[RecordT]) -> Optional[RecordT]:
        return record.model_copy(deep=True) if record is not None else None

    def _insert(self, table: _Table, record_cls: Type[RecordT], data: BaseModel, **extra) -> RecordT:
        record_id = table.allocate_id()
        record = record_cls(id=record_id, **data.model_dump(), **extra)
        table.rows[record_id] = record
        return self._copy(record)

    def _get(self, table: _Table, record_id: int):
        return self._copy(table.rows.get(record_id))

    def _list_for_user(self, table: _Table, user_id: int) -> list:
        return [self._copy(row) for row in table.rows.values() if row.user_id == user_id]

    def _merge(self, table: _Table, record_id: int, changes: dict):
        existing = table.rows.get(record_id)
        if existing is None:
            return None
        merged = type(existing).model_validate({**existing.model_dump(), **changes})
        table.rows[record_id] = merged
        return self._copy(merged)

    # User methods
    def get_user(self, user_id):
        return self._get(self._users, user_id)

    def get_user_by_username(self, username):
        for user in self._users.rows.values():
            if user.username == username:
                return self._copy(user)
        return None

    def create_user(self, user):
        if self.get_user_by_username(user.username) is not None:
            raise UsernameTakenError(user.username)
        return self._insert(self._users, schemas.UserRecord, user)

    # Calendar event methods
    def get_calendar_events(self, user_id):
        return self._list_for_user(self._calendar_events, user_id)

    def get_calendar_event(self, event_id):
        return self._get(self._calendar_events, event_id)

    def create_calendar_event(self, event):
        return self._insert(self._calendar_events, schemas.CalendarEventResponse, event)

    def update_calendar_event(self, event_id, patch):
        return self._merge(self._calendar_events, event_id, patch.model_dump(exclude_unset=True))

    def delete_calendar_event(self, event_id):
        return self._calendar_events.rows.pop(event_id, None) is not None

    # Coworking space methods
    def get_coworking_spaces(self, user_id):
        return self._list_for_user(self._coworking_spaces, user_id)

    def get_coworking_space(self, space_id):
        return self._get(self._coworking_spaces, space_id)

    def create_coworking_space(self, space):
        return self._insert(self._coworking_spaces, schemas.CoworkingSpaceResponse, space)

    # Budget entry methods
    def get_budget_entries(self, user_id):
        return self._list_for_user(self._budget_entries, user_id)

    def get_budget_entry(self, entry_id):
        return self._get(self._budget_entries, entry_id)

    def create_budget_entry(self, entry):
        return self._insert(self._budget_entries, schemas.BudgetEntryResponse, entry)

    def update_budget_entry(self, entry_id, patch):
        return self._merge(self._budget_entries, entry_id, patch.model_dump(exclude_unset=True))

    # User preferences methods
    def get_user_preferences(self, user_id):
        for prefs in self._user_preferences.rows.values():
            if prefs.user_id == user_id:
                return self._copy(prefs)
        return None

    def create_or_update_user_preferences(self, prefs):
        existing = self.get_user_preferences(prefs.user_id)
        if existing is not None:
            return self._merge(self._user_preferences, existing.id, prefs.model_dump(exclude_unset=True))
        return self._insert(self._user_preferences, schemas.UserPreferencesResponse, prefs)

    # AI conversation methods
    def get_ai_conversations(self, user_id, module):
        return [
            self._copy(conv) for conv in self._ai_conversations.rows.values()
            if conv.user_id == user_id and conv.module == module
        ]

    def get_ai_conversation(self, conversation_id):
        return self._get(self._ai_conversations, conversation_id)

    def create_ai_conversation(self, conversation):
        return self._insert(
            self._ai_conversations,
            schemas.AiConversationResponse,
            conversation,
            created_at=datetime.now(timezone.utc),
        )

    def append_ai_messages(self, conversation_id, messages):
        existing = self._ai_conversations.rows.get(conversation_id)
        if existing is None:
            return None
        appended = existing.model_dump()["messages"] + [m.model_dump() for m in messages]
        return self._merge(self._ai_conversations, conversation_id, {"messages": appended})


# ============ SQL BACKEND ============

class SqlStorage(Storage):
    """SQLAlchemy-backed store; one session per operation."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @staticmethod
    def _to_record(record_cls: Type[RecordT], row) -> Optional[RecordT]:
        return record_cls.model_validate(row) if row is not None else None

    @staticmethod
    def _column_values(data: BaseModel, exclude_unset: bool = False) -> dict:
        # JSON mode so nested models (work hours, date ranges) land as plain dicts
        values = data.model_dump(exclude_unset=exclude_unset, mode="json")
        for key, value in data.model_dump(exclude_unset=exclude_unset).items():
            if isinstance(value, datetime):
                values[key] = value
        return values

    def _insert(self, session: Session, model_cls, record_cls: Type[RecordT], data: BaseModel, **extra) -> RecordT:
        row = model_cls(**self._column_values(data), **extra)
        session.add(row)
        session.commit()
        session.refresh(row)
        return self._to_record(record_cls, row)

    def _update(self, model_cls, record_cls: Type[RecordT], record_id: int, changes: dict) -> Optional[RecordT]:
        with self._session_factory() as session:
            row = session.get(model_cls, record_id)
            if row is None:
                return None
            for key, value in changes.items():
                setattr(row, key, value)
            session.commit()
            session.refresh(row)
            return self._to_record(record_cls, row)

    def _get(self, model_cls, record_cls: Type[RecordT], record_id: int) -> Optional[RecordT]:
        with self._session_factory() as session:
            return self._to_record(record_cls, session.get(model_cls, record_id))

    def _list_for_user(self, model_cls, record_cls: Type[RecordT], user_id: int) -> List[RecordT]:
        with self._session_factory() as session:
            rows = session.query(model_cls).filter(model_cls.user_id == user_id).order_by(model_cls.id).all()
            return [self._to_record(record_cls, row) for row in rows]

    # User methods
    def get_user(self, user_id):
        return self._get(models.User, schemas.UserRecord, user_id)

    def get_user_by_username(self, username):
        with self._session_factory() as session:
            row = session.query(models.User).filter(models.User.username == username).first()
            return self._to_record(schemas.UserRecord, row)

    def create_user(self, user):
        with self._session_factory() as session:
            try:
                return self._insert(session, models.User, schemas.UserRecord, user)
            except IntegrityError as e:
                session.rollback()
                logger.warning(f"Rejected duplicate username '{user.username}': {e.orig}")
                raise UsernameTakenError(user.username) from e

    # Calendar event methods
    def get_calendar_events(self, user_id):
        return self._list_for_user(models.CalendarEvent, schemas.CalendarEventResponse, user_id)

    def get_calendar_event(self, event_id):
        return self._get(models.CalendarEvent, schemas.CalendarEventResponse, event_id)

    def create_calendar_event(self, event):
        with self._session_factory() as session:
            return self._insert(session, models.CalendarEvent, schemas.CalendarEventResponse, event)

    def update_calendar_event(self, event_id, patch):
        return self._update(
            models.CalendarEvent,
            schemas.CalendarEventResponse,
            event_id,
            self._column_values(patch, exclude_unset=True),
        )

    def delete_calendar_event(self, event_id):
        with self._session_factory() as session:
            row = session.get(models.CalendarEvent, event_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True

    # Coworking space methods
    def get_coworking_spaces(self, user_id):
        return self._list_for_user(models.CoworkingSpace, schemas.CoworkingSpaceResponse, user_id)

    def get_coworking_space(self, space_id):
        return self._get(models.CoworkingSpace, schemas.CoworkingSpaceResponse, space_id)

    def create_coworking_space(self, space):
        with self._session_factory() as session:
            return self._insert(session, models.CoworkingSpace, schemas.CoworkingSpaceResponse, space)

    # Budget entry methods
    def get_budget_entries(self, user_id):
        return self._list_for_user(models.BudgetEntry, schemas.BudgetEntryResponse, user_id)

    def get_budget_entry(self, entry_id):
        return self._get(models.BudgetEntry, schemas.BudgetEntryResponse, entry_id)

    def create_budget_entry(self, entry):
        with self._session_factory() as session:
            return self._insert(session, models.BudgetEntry, schemas.BudgetEntryResponse, entry)

    def update_budget_entry(self, entry_id, patch):
        return self._update(
            models.BudgetEntry,
            schemas.BudgetEntryResponse,
            entry_id,
            self._column_values(patch, exclude_unset=True),
        )

    # User preferences methods
    def get_user_preferences(self, user_id):
        with self._session_factory() as session:
            row = session.query(models.UserPreferences).filter(models.UserPreferences.user_id == user_id).first()
            return self._to_record(schemas.UserPreferencesResponse, row)

    def create_or_update_user_preferences(self, prefs):
        existing = self.get_user_preferences(prefs.user_id)
        if existing is not None:
            return self._update(
                models.UserPreferences,
                schemas.UserPreferencesResponse,
                existing.id,
                self._column_values(prefs, exclude_unset=True),
            )
        with self._session_factory() as session:
            return self._insert(session, models.UserPreferences, schemas.UserPreferencesResponse, prefs)

    # AI conversation methods
    def get_ai_conversations(self, user_id, module):
        with self._session_factory() as session:
            rows = session.query(models.AiConversation).filter(
                models.AiConversation.user_id == user_id,
                models.AiConversation.module == module
            ).order_by(models.AiConversation.id).all()
            return [self._to_record(schemas.AiConversationResponse, row) for row in rows]

    def get_ai_conversation(self, conversation_id):
        return self._get(models.AiConversation, schemas.AiConversationResponse, conversation_id)

    def create_ai_conversation(self, conversation):
        with self._session_factory() as session:
            return self._insert(
                session,
                models.AiConversation,
                schemas.AiConversationResponse,
                conversation,
                created_at=datetime.now(timezone.utc),
            )

    def append_ai_messages(self, conversation_id, messages):
        with self._session_factory() as session:
            row = session.get(models.AiConversation, conversation_id)
            if row is None:
                return None
            # Reassign rather than mutate so the JSON column is flagged dirty
            row.messages = list(row.messages or []) + [m.model_dump(mode="json") for m in messages]
            session.commit()
            session.refresh(row)
            return self._to_record(schemas.AiConversationResponse, row)
