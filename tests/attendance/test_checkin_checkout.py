from __future__ import annotations

from datetime import datetime, time

import pytest

from src.shift_attendance.shift_attendance.attendance.model import AttendanceCorrection
from src.shift_attendance.shift_attendance.core.enums import AttendanceStatus
from src.shift_attendance.shift_attendance.core.exceptions import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    NoShiftToday,
    RecordNotFound,
    ValidationError,
)


@pytest.fixture
def budi(store):
    store.add_user(1, "Budi", "Santoso")
    store.add_shift(10, 1, time(8, 0))
    return 1


@pytest.mark.parametrize(
    "hour, minute, expected",
    [
        (7, 59, AttendanceStatus.HADIR),
        (8, 15, AttendanceStatus.HADIR),
        (8, 16, AttendanceStatus.TERLAMBAT),
        (11, 0, AttendanceStatus.TERLAMBAT),
    ],
)
def test_checkin_status_follows_lateness_rule(attendance_service, clock, budi, hour, minute, expected):
    clock.set(hour, minute)

    record = attendance_service.check_in(budi, location="Gudang A")

    assert record.status == expected
    assert record.check_in_time == clock.now()
    assert record.created_at == clock.now()
    assert record.shift_id == 10


def test_checkin_without_shift_today_creates_nothing(attendance_service, store, clock):
    store.add_user(2, "Sari")
    store.add_shift(20, 2, time(8, 0), work_date=clock.now().date().replace(day=7))

    with pytest.raises(NoShiftToday):
        attendance_service.check_in(2, location="Gudang A")

    assert store.records == {}


def test_second_checkin_for_same_shift_is_rejected(attendance_service, store, clock, budi):
    clock.set(8, 0)
    attendance_service.check_in(budi, location="Gudang A")

    clock.set(8, 5)
    with pytest.raises(AlreadyCheckedIn):
        attendance_service.check_in(budi, location="Gudang A")

    assert len(store.records) == 1


def test_checkin_uses_first_shift_of_the_day(attendance_service, store, clock, budi):
    store.add_shift(11, budi, time(13, 0))
    clock.set(12, 55)

    record = attendance_service.check_in(budi, location="Gudang A")

    # shift 10 starts at 08:00, so this is recorded against it as late
    assert record.shift_id == 10
    assert record.status == AttendanceStatus.TERLAMBAT


def test_checkin_requires_location(attendance_service, budi):
    with pytest.raises(ValidationError):
        attendance_service.check_in(budi, location="  ")


def test_checkin_unknown_user_has_no_shift(attendance_service, store):
    with pytest.raises(NoShiftToday):
        attendance_service.check_in(99, location="Gudang A")

    assert store.records == {}


def test_checkin_keeps_optional_fields(attendance_service, clock, budi):
    clock.set(8, 0)

    record = attendance_service.check_in(budi, location="Gudang A", photo="selfie.jpg", note="  ")

    assert record.location == "Gudang A"
    assert record.photo == "selfie.jpg"
    assert record.note is None


def test_checkout_sets_time_and_merges_correction(attendance_service, clock, budi):
    clock.set(8, 0)
    record = attendance_service.check_in(budi, location="Gudang A")

    clock.set(17, 2)
    updated = attendance_service.check_out(record.attendance_id, AttendanceCorrection(note="lembur"))

    assert updated.check_out_time == datetime.combine(clock.now().date(), time(17, 2))
    assert updated.note == "lembur"
    assert updated.location == "Gudang A"
    assert updated.status == AttendanceStatus.HADIR


def test_second_checkout_leaves_first_time_unchanged(attendance_service, clock, budi):
    clock.set(8, 0)
    record = attendance_service.check_in(budi, location="Gudang A")
    clock.set(17, 0)
    first = attendance_service.check_out(record.attendance_id)

    clock.set(18, 30)
    with pytest.raises(AlreadyCheckedOut):
        attendance_service.check_out(record.attendance_id)

    assert attendance_service.get_today(budi).attendance.check_out_time == first.check_out_time


def test_checkout_unknown_record(attendance_service):
    with pytest.raises(RecordNotFound):
        attendance_service.check_out(404)


def test_today_without_shift(attendance_service, store):
    store.add_user(3, "Tono")

    today = attendance_service.get_today(3)

    assert today.shift is None
    assert today.attendance is None


def test_today_with_shift_and_record(attendance_service, clock, budi):
    before = attendance_service.get_today(budi)
    assert before.shift.shift_id == 10
    assert before.attendance is None

    clock.set(8, 0)
    attendance_service.check_in(budi, location="Gudang A")

    after = attendance_service.get_today(budi)
    assert after.attendance is not None
    assert after.attendance.shift_id == 10
