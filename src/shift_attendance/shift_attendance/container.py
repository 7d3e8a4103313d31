from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import Clock, SystemClock
from .core.constants import LATE_TOLERANCE_MINUTES
from .database.connection import DBConfig, DatabaseConnection
from .notifications.dispatcher import DEFAULT_TELEGRAM_API_BASE, NotificationDispatcher, TelegramDispatcher
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.scheduler import NotificationScheduler
from .notifications.service import NotificationService
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .users.mysql_user_repository import MySQLUserRepository


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    clock: Clock

    users_repo: MySQLUserRepository
    shifts_repo: MySQLShiftRepository
    attendance_repo: MySQLAttendanceRepository
    notifications_repo: MySQLNotificationRepository

    dispatcher: NotificationDispatcher
    attendance_service: AttendanceService
    notification_service: NotificationService
    notification_scheduler: NotificationScheduler


def build_container(
    *,
    db_config: dict,
    timezone: Optional[str] = None,
    telegram_bot_token: Optional[str] = None,
    telegram_api_base: str = DEFAULT_TELEGRAM_API_BASE,
    telegram_timeout: float = 10.0,
    late_tolerance_minutes: int = LATE_TOLERANCE_MINUTES,
    dispatcher: Optional[NotificationDispatcher] = None,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    clock = SystemClock(timezone)

    users_repo = MySQLUserRepository(conn)
    shifts_repo = MySQLShiftRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    notifications_repo = MySQLNotificationRepository(conn)

    dispatcher = dispatcher or TelegramDispatcher(
        telegram_bot_token,
        api_base=telegram_api_base,
        timeout=telegram_timeout,
    )

    attendance_service = AttendanceService(
        attendance_repo,
        users_repo,
        shifts_repo,
        clock=clock,
        strategy_factory=AttendanceStrategyFactory(tolerance_minutes=late_tolerance_minutes),
    )
    notification_service = NotificationService(notifications_repo, dispatcher, clock=clock)
    notification_scheduler = NotificationScheduler(
        shifts_repo,
        users_repo,
        notifications_repo,
        notification_service,
        clock=clock,
        late_tolerance_minutes=late_tolerance_minutes,
    )

    return Container(
        conn=conn,
        clock=clock,
        users_repo=users_repo,
        shifts_repo=shifts_repo,
        attendance_repo=attendance_repo,
        notifications_repo=notifications_repo,
        dispatcher=dispatcher,
        attendance_service=attendance_service,
        notification_service=notification_service,
        notification_scheduler=notification_scheduler,
    )


def build_container_from_settings(settings) -> Container:
    return build_container(
        db_config=dict(settings.DB_CONFIG),
        timezone=getattr(settings, "TIMEZONE", None),
        telegram_bot_token=getattr(settings, "TELEGRAM_BOT_TOKEN", None),
        telegram_api_base=getattr(settings, "TELEGRAM_API_BASE", DEFAULT_TELEGRAM_API_BASE),
        telegram_timeout=float(getattr(settings, "TELEGRAM_TIMEOUT_SECONDS", 10.0)),
        late_tolerance_minutes=int(getattr(settings, "LATE_TOLERANCE_MINUTES", LATE_TOLERANCE_MINUTES)),
    )
