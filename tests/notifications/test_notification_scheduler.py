from __future__ import annotations

from datetime import datetime, time, timedelta

import pytest

from src.shift_attendance.shift_attendance.core.enums import NotificationChannel, NotificationType
from src.shift_attendance.shift_attendance.notifications.model import Notification
from src.shift_attendance.shift_attendance.notifications.scheduler import NotificationScheduler, within_window


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 1, 6, hour, minute)


@pytest.mark.parametrize(
    "now, expected",
    [
        (_at(8, 0), True),
        (_at(7, 45), True),
        (_at(8, 15), True),
        (_at(7, 44), False),
        (_at(8, 16), False),
    ],
)
def test_within_window_is_symmetric(now, expected):
    assert within_window(time(9, 0), now, lead_minutes=60, tolerance_minutes=15) is expected


def test_shift_reminder_sent_once_per_window(notification_scheduler, store, dispatcher, clock):
    store.add_user(1, "Budi", chat_id="111")
    store.add_shift(10, 1, time(9, 0))
    store.add_shift(11, 1, time(12, 0))
    clock.set(8, 0)

    first = notification_scheduler.send_shift_reminders()
    clock.set(8, 15)
    second = notification_scheduler.send_shift_reminders()

    assert (first.candidates, first.sent) == (1, 1)
    assert (second.candidates, second.sent, second.skipped) == (1, 0, 1)
    sent = dispatcher.of_type(NotificationType.REMINDER_SHIFT)
    assert len(sent) == 1
    assert sent[0]["channel"] == NotificationChannel.TELEGRAM
    assert sent[0]["payload"]["shiftId"] == 10
    assert sent[0]["payload"]["jamMulai"] == "09:00"


def _log_reminder(store, user_id: int, shift_id: int, created_at: datetime) -> None:
    # written straight to the log, no dedup key claimed
    store.notifications.append(
        Notification(
            notification_id=len(store.notifications) + 1,
            user_id=user_id,
            type=NotificationType.REMINDER_SHIFT,
            title="⏰ Pengingat Shift",
            message="Halo",
            data={"type": "REMINDER_SHIFT", "shiftId": shift_id},
            sent_via=NotificationChannel.TELEGRAM,
            created_at=created_at,
        )
    )


def test_shift_reminder_skipped_when_logged_earlier_today(notification_scheduler, store, dispatcher, clock, today):
    store.add_user(1, "Budi", chat_id="111")
    store.add_shift(10, 1, time(9, 0))
    _log_reminder(store, 1, 10, datetime.combine(today, time(0, 5)))
    clock.set(8, 0)

    result = notification_scheduler.send_shift_reminders()

    assert (result.sent, result.skipped) == (0, 1)
    assert dispatcher.sent == []


def test_shift_reminder_logged_yesterday_does_not_block(notification_scheduler, store, dispatcher, clock, today):
    store.add_user(1, "Budi", chat_id="111")
    store.add_shift(10, 1, time(9, 0))
    _log_reminder(store, 1, 10, datetime.combine(today - timedelta(days=1), time(8, 0)))
    clock.set(8, 0)

    result = notification_scheduler.send_shift_reminders()

    assert result.sent == 1
    assert [m["payload"]["shiftId"] for m in dispatcher.sent] == [10]


def test_logged_reminder_for_other_shift_does_not_block(notification_scheduler, store, dispatcher, clock, today):
    store.add_user(1, "Budi", chat_id="111")
    store.add_shift(10, 1, time(9, 0))
    _log_reminder(store, 1, 11, datetime.combine(today, time(7, 0)))
    clock.set(8, 0)

    assert notification_scheduler.send_shift_reminders().sent == 1


def test_shift_reminder_without_chat_is_stored_as_system(notification_scheduler, store, dispatcher, clock):
    store.add_user(1, "Budi")
    store.add_shift(10, 1, time(9, 0))
    clock.set(8, 0)

    notification_scheduler.send_shift_reminders()

    assert [n.sent_via for n in store.notifications] == [NotificationChannel.SYSTEM]
    assert dispatcher.sent[0]["channel"] == NotificationChannel.SYSTEM


def test_late_attendance_only_past_tolerance(notification_scheduler, store, dispatcher, clock, today):
    for uid in (1, 2, 3, 4):
        store.add_user(uid, f"User{uid}", chat_id=str(uid))
    store.add_shift(10, 1, time(7, 44))
    store.add_shift(20, 2, time(7, 45))
    store.add_shift(30, 3, time(7, 0))
    store.add_shift(40, 4, time(9, 0))
    store.add_record(user_id=3, shift_id=30, created_at=datetime.combine(today, time(7, 1)))
    clock.set(8, 0)

    result = notification_scheduler.check_late_attendance()

    assert (result.candidates, result.sent) == (1, 1)
    [message] = dispatcher.of_type(NotificationType.ABSENSI_TERLAMBAT)
    assert message["user_id"] == 1
    assert message["payload"]["durasiTerlambat"] == "16 menit"
    assert message["payload"]["jamMasuk"] is None


def test_late_attendance_not_repeated_same_day(notification_scheduler, store, dispatcher, clock):
    store.add_user(1, "Budi", chat_id="111")
    store.add_shift(10, 1, time(7, 0))
    clock.set(8, 0)

    notification_scheduler.check_late_attendance()
    clock.set(9, 0)
    notification_scheduler.check_late_attendance()

    assert len(dispatcher.of_type(NotificationType.ABSENSI_TERLAMBAT)) == 1


def test_failing_shift_does_not_stop_batch(notification_scheduler, store, dispatcher, clock):
    store.add_user(1, "Budi", chat_id="111")
    store.add_user(2, "Sari", chat_id="222")
    store.add_shift(10, 1, time(9, 0))
    store.add_shift(20, 2, time(9, 0))
    dispatcher.fail_for = {1}
    clock.set(8, 0)

    result = notification_scheduler.send_shift_reminders()

    assert (result.sent, result.failed) == (1, 1)
    assert [m["user_id"] for m in dispatcher.sent] == [2]


def test_overlapping_attendance_reminder_jobs_notify_once(notification_scheduler, store, dispatcher, clock, today):
    store.add_user(1, "Budi", chat_id="111")
    store.add_user(2, "Sari", chat_id="222")
    store.add_shift(10, 1, time(9, 0))
    store.add_shift(20, 2, time(9, 0))
    store.add_record(user_id=2, shift_id=20, created_at=datetime.combine(today, time(8, 25)))
    clock.set(8, 30)

    every_10 = notification_scheduler.send_attendance_reminders(tolerance_minutes=10)
    every_15 = notification_scheduler.send_attendance_reminders(tolerance_minutes=15)

    assert every_10.sent == 1
    assert (every_15.sent, every_15.skipped) == (0, 1)
    [message] = dispatcher.of_type(NotificationType.PERSONAL_REMINDER_ABSENSI)
    assert message["user_id"] == 1
    assert message["payload"]["reminderMinutes"] == 30
    assert message["payload"]["shiftTime"] == "09:00 - 17:00"


def test_daily_summary_lists_all_shifts(notification_scheduler, store, dispatcher, clock):
    store.add_user(1, "Budi", chat_id="111")
    store.add_user(2, "Sari")
    store.add_user(3, "Tono", chat_id="333")
    store.add_shift(10, 1, time(8, 0), time(12, 0))
    store.add_shift(11, 1, time(13, 0), time(17, 0))
    store.add_shift(20, 2, time(8, 0))
    clock.set(6, 0)

    result = notification_scheduler.send_daily_summary()

    assert (result.candidates, result.sent) == (1, 1)
    [message] = dispatcher.of_type(NotificationType.KEGIATAN_HARIAN)
    assert message["user_id"] == 1
    assert [s["shiftId"] for s in message["payload"]["shifts"]] == [10, 11]
    assert message["payload"]["shiftId"] == 10
    assert "(2 shift)" in message["body"]


class _BrokenShifts:
    def list_assignments_on(self, work_date):
        raise RuntimeError("database is down")


def test_jobs_never_raise(users_repo, notifications_repo, notification_service, clock):
    scheduler = NotificationScheduler(
        _BrokenShifts(),
        users_repo,
        notifications_repo,
        notification_service,
        clock=clock,
    )

    assert scheduler.send_shift_reminders().sent == 0
    assert scheduler.check_late_attendance().sent == 0
    assert scheduler.send_attendance_reminders(tolerance_minutes=10).sent == 0
