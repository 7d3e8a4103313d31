from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Optional

import pytest

from src.shift_attendance.shift_attendance.attendance.model import (
    AttendanceDetail,
    AttendanceQuery,
    AttendanceRecord,
    CreatedRange,
    StatusCount,
)
from src.shift_attendance.shift_attendance.attendance.service import AttendanceService
from src.shift_attendance.shift_attendance.core.enums import AttendanceStatus, NotificationType, Role
from src.shift_attendance.shift_attendance.core.exceptions import AlreadyCheckedIn, DispatchError
from src.shift_attendance.shift_attendance.notifications.model import Notification
from src.shift_attendance.shift_attendance.notifications.scheduler import NotificationScheduler
from src.shift_attendance.shift_attendance.notifications.service import NotificationService
from src.shift_attendance.shift_attendance.shifts.model import Shift, ShiftAssignment
from src.shift_attendance.shift_attendance.users.model import User

# Monday
TODAY = date(2025, 1, 6)


class FixedClock:
    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def set(self, hour: int, minute: int = 0, second: int = 0, day: Optional[date] = None) -> None:
        self.current = datetime.combine(day or self.current.date(), time(hour, minute, second))

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@dataclass
class InMemoryStore:
    users: Dict[int, User] = field(default_factory=dict)
    shifts: Dict[int, Shift] = field(default_factory=dict)
    records: Dict[int, AttendanceRecord] = field(default_factory=dict)
    notifications: list[Notification] = field(default_factory=list)
    dedup_keys: set[str] = field(default_factory=set)

    def add_user(self, user_id: int, first_name: str, last_name: Optional[str] = None, *, chat_id: Optional[str] = None, role: Role = Role.KARYAWAN) -> User:
        user = User(user_id=user_id, first_name=first_name, last_name=last_name, role=role, telegram_chat_id=chat_id)
        self.users[user_id] = user
        return user

    def add_shift(self, shift_id: int, user_id: int, start: time, end: time = time(17, 0), *, work_date: date = TODAY, location: Optional[str] = "Gudang A") -> Shift:
        shift = Shift(shift_id=shift_id, user_id=user_id, work_date=work_date, start_time=start, end_time=end, location=location)
        self.shifts[shift_id] = shift
        return shift

    def add_record(
        self,
        *,
        user_id: int,
        shift_id: int,
        created_at: datetime,
        status: AttendanceStatus = AttendanceStatus.HADIR,
        check_out_time: Optional[datetime] = None,
        note: Optional[str] = None,
    ) -> AttendanceRecord:
        attendance_id = max(self.records, default=0) + 1
        rec = AttendanceRecord(
            attendance_id=attendance_id,
            user_id=user_id,
            shift_id=shift_id,
            check_in_time=created_at,
            check_out_time=check_out_time,
            status=status,
            created_at=created_at,
            note=note,
        )
        self.records[attendance_id] = rec
        return rec


class InMemoryUsers:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._store.users.get(user_id)

    def list_with_shift_on(self, work_date: date, *, require_channel: bool = False):
        owners = {s.user_id for s in self._store.shifts.values() if s.work_date == work_date}
        users = [u for uid, u in sorted(self._store.users.items()) if uid in owners]
        if require_channel:
            users = [u for u in users if u.has_channel]
        return users


class InMemoryShifts:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def _on(self, work_date: date) -> list[Shift]:
        return sorted((s for s in self._store.shifts.values() if s.work_date == work_date), key=lambda s: s.shift_id)

    def get_first_for_user_on(self, user_id: int, work_date: date) -> Optional[Shift]:
        return next((s for s in self._on(work_date) if s.user_id == user_id), None)

    def list_for_user_on(self, user_id: int, work_date: date):
        return sorted((s for s in self._on(work_date) if s.user_id == user_id), key=lambda s: s.start_time)

    def list_assignments_on(self, work_date: date):
        result = []
        for s in sorted(self._on(work_date), key=lambda s: (s.start_time, s.shift_id)):
            attendance = next(
                (r for r in self._store.records.values() if r.user_id == s.user_id and r.shift_id == s.shift_id),
                None,
            )
            result.append(ShiftAssignment(shift=s, user=self._store.users[s.user_id], attendance=attendance))
        return result


class InMemoryAttendance:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self._store.records.get(attendance_id)

    def get_for_user_and_shift(self, user_id: int, shift_id: int) -> Optional[AttendanceRecord]:
        return next(
            (r for r in self._store.records.values() if r.user_id == user_id and r.shift_id == shift_id),
            None,
        )

    def create_checkin(self, *, user_id, shift_id, check_in_time, status, location=None, photo=None, note=None) -> int:
        # Mirrors the (user_id, shift_id) unique key.
        if self.get_for_user_and_shift(user_id, shift_id):
            raise AlreadyCheckedIn()
        rec = self._store.add_record(user_id=user_id, shift_id=shift_id, created_at=check_in_time, status=status, note=note)
        self._store.records[rec.attendance_id] = replace(rec, location=location, photo=photo)
        return rec.attendance_id

    def update_checkout(self, *, attendance_id: int, check_out_time: datetime, fields: Dict[str, Any]) -> bool:
        return self.update_fields(attendance_id=attendance_id, fields={**fields, "check_out_time": check_out_time})

    def update_fields(self, *, attendance_id: int, fields: Dict[str, Any]) -> bool:
        rec = self._store.records.get(attendance_id)
        if rec is None:
            return False
        self._store.records[attendance_id] = replace(rec, **fields)
        return True

    def _detail(self, r: AttendanceRecord) -> AttendanceDetail:
        user = self._store.users[r.user_id]
        return AttendanceDetail(
            record=r,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            shift=self._store.shifts.get(r.shift_id),
        )

    def _matching(self, created: Optional[CreatedRange], user_id: Optional[int]):
        for r in self._store.records.values():
            if created is not None and not created.contains(r.created_at):
                continue
            if user_id is not None and r.user_id != user_id:
                continue
            yield r

    def list_details(self, query: AttendanceQuery):
        rows = [r for r in self._matching(query.created, query.user_id) if query.status is None or r.status == query.status]
        rows.sort(key=lambda r: r.created_at, reverse=True)
        end = query.offset + query.limit if query.limit is not None else None
        return [self._detail(r) for r in rows[query.offset:end]]

    def count_by_status(self, *, created: Optional[CreatedRange] = None, user_id: Optional[int] = None):
        counts = Counter(r.status for r in self._matching(created, user_id))
        return [StatusCount(status=s, count=c) for s, c in sorted(counts.items(), key=lambda kv: kv[0].value)]

    def list_for_report(self, *, created: CreatedRange, user_id: Optional[int] = None):
        details = [self._detail(r) for r in self._matching(created, user_id)]
        details.sort(key=lambda d: (d.first_name, d.last_name or "", d.record.created_at))
        return details


class InMemoryNotifications:
    def __init__(self, store: InMemoryStore):
        self._store = store

    def exists_for_shift(self, *, user_id: int, type: NotificationType, since: datetime, shift_id: int) -> bool:
        return any(
            n.user_id == user_id and n.type == type and n.created_at >= since and n.shift_id == shift_id
            for n in self._store.notifications
        )

    def create(self, *, user_id, type, title, message, data, sent_via, created_at, dedup_key=None) -> Optional[int]:
        if dedup_key is not None:
            if dedup_key in self._store.dedup_keys:
                return None
            self._store.dedup_keys.add(dedup_key)
        notification_id = len(self._store.notifications) + 1
        self._store.notifications.append(
            Notification(
                notification_id=notification_id,
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                data=data,
                sent_via=sent_via,
                created_at=created_at,
            )
        )
        return notification_id

    def list_for_user(self, user_id: int, *, limit: int):
        rows = [n for n in self._store.notifications if n.user_id == user_id]
        rows.sort(key=lambda n: (n.created_at, n.notification_id), reverse=True)
        return rows[:limit]


class RecordingDispatcher:
    def __init__(self):
        self.sent: list[dict] = []
        self.fail_for: set[int] = set()

    def send(self, user, *, title, body, type, payload, channel) -> None:
        if user.user_id in self.fail_for:
            raise DispatchError(f"boom for user {user.user_id}")
        self.sent.append({"user_id": user.user_id, "title": title, "body": body, "type": type, "payload": payload, "channel": channel})

    def of_type(self, type: NotificationType) -> list[dict]:
        return [m for m in self.sent if m["type"] == type]


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime.combine(TODAY, time(7, 0)))


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def users_repo(store) -> InMemoryUsers:
    return InMemoryUsers(store)


@pytest.fixture
def notifications_repo(store) -> InMemoryNotifications:
    return InMemoryNotifications(store)


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def attendance_service(store, clock) -> AttendanceService:
    return AttendanceService(InMemoryAttendance(store), InMemoryUsers(store), InMemoryShifts(store), clock=clock)


@pytest.fixture
def notification_service(store, dispatcher, clock) -> NotificationService:
    return NotificationService(InMemoryNotifications(store), dispatcher, clock=clock)


@pytest.fixture
def notification_scheduler(store, notification_service, clock) -> NotificationScheduler:
    return NotificationScheduler(
        InMemoryShifts(store),
        InMemoryUsers(store),
        InMemoryNotifications(store),
        notification_service,
        clock=clock,
    )

