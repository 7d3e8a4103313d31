from __future__ import annotations

from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from ..common.http_utils import datetime_arg, int_arg, to_json
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..shifts.model import Shift
from ..users.model import User
from .model import (
    AttendanceCorrection,
    AttendanceDetail,
    AttendanceQuery,
    AttendanceRecord,
    AttendanceStats,
    CreatedRange,
    VerificationPatch,
)


def record_to_dict(r: Optional[AttendanceRecord]) -> Optional[Dict[str, Any]]:
    if r is None:
        return None
    return {
        "id": r.attendance_id,
        "userId": r.user_id,
        "shiftId": r.shift_id,
        "jamMasuk": to_json(r.check_in_time),
        "jamKeluar": to_json(r.check_out_time),
        "status": to_json(r.status),
        "lokasi": r.location,
        "foto": r.photo,
        "catatan": r.note,
        "createdAt": to_json(r.created_at),
    }


def shift_to_dict(s: Optional[Shift]) -> Optional[Dict[str, Any]]:
    if s is None:
        return None
    return {
        "id": s.shift_id,
        "userId": s.user_id,
        "tanggal": to_json(s.work_date),
        "jamMulai": to_json(s.start_time),
        "jamSelesai": to_json(s.end_time),
        "lokasiShift": s.location,
    }


def user_to_dict(u: User) -> Dict[str, Any]:
    return {"id": u.user_id, "firstName": u.first_name, "lastName": u.last_name, "role": to_json(u.role)}


def detail_to_dict(d: AttendanceDetail) -> Dict[str, Any]:
    data = record_to_dict(d.record)
    data["user"] = {"firstName": d.first_name, "lastName": d.last_name, "role": to_json(d.role)}
    data["shift"] = shift_to_dict(d.shift)
    return data


def counts_to_list(counts) -> list[Dict[str, Any]]:
    return [{"status": to_json(c.status), "count": c.count} for c in counts]


def stats_to_dict(s: AttendanceStats) -> Dict[str, Any]:
    return {
        "stats": counts_to_list(s.stats),
        "total": s.total,
        "percentage": [
            {"status": to_json(p.status), "count": p.count, "percentage": p.percentage} for p in s.percentage
        ],
    }


def _status_arg(raw: Optional[str]) -> Optional[AttendanceStatus]:
    if not raw:
        return None
    try:
        return AttendanceStatus(str(raw).upper())
    except ValueError:
        raise ValidationError("Status tidak valid")


def _verified_arg(raw: Any) -> bool:
    if not isinstance(raw, bool):
        raise ValidationError("verified harus boolean")
    return raw


def _created_arg(args) -> Optional[CreatedRange]:
    # both bounds are required for the range to apply
    start = datetime_arg(args, "startDate")
    end = datetime_arg(args, "endDate")
    if start is None or end is None:
        return None
    return CreatedRange(start, end)


def _query_from_args(args, *, with_user: bool) -> AttendanceQuery:
    return AttendanceQuery(
        created=_created_arg(args),
        status=_status_arg(args.get("status")),
        user_id=int_arg(args, "userId") if with_user else None,
        limit=int_arg(args, "limit"),
        offset=int_arg(args, "offset", 0),
    )


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def register(app: Flask, container) -> None:
    service = container.attendance_service

    @app.route("/api/absensi/check-in", methods=["POST"], endpoint="absensi_check_in")
    def absensi_check_in():
        data = _json_body()
        record = service.check_in(
            data.get("userId"),
            location=data.get("lokasi"),
            photo=data.get("foto"),
            note=data.get("catatan"),
        )
        return jsonify({"success": True, "message": "Absen masuk berhasil", "data": record_to_dict(record)}), 201

    @app.route("/api/absensi/<int:attendance_id>/check-out", methods=["POST"], endpoint="absensi_check_out")
    def absensi_check_out(attendance_id: int):
        data = _json_body()
        correction = AttendanceCorrection(
            location=data.get("lokasi"),
            photo=data.get("foto"),
            note=data.get("catatan"),
        )
        record = service.check_out(attendance_id, correction)
        return jsonify({"success": True, "message": "Absen keluar berhasil", "data": record_to_dict(record)})

    @app.route("/api/absensi/me", methods=["GET"], endpoint="absensi_me")
    def absensi_me():
        rows = service.list_for_user(request.args.get("userId"), _query_from_args(request.args, with_user=False))
        return jsonify({"success": True, "data": [detail_to_dict(d) for d in rows]})

    @app.route("/api/absensi/today", methods=["GET"], endpoint="absensi_today")
    def absensi_today():
        today = service.get_today(request.args.get("userId"))
        return jsonify(
            {
                "success": True,
                "data": {"shift": shift_to_dict(today.shift), "absensi": record_to_dict(today.attendance)},
            }
        )

    @app.route("/api/absensi", methods=["GET"], endpoint="absensi_list")
    def absensi_list():
        rows = service.list_all(_query_from_args(request.args, with_user=True))
        return jsonify({"success": True, "data": [detail_to_dict(d) for d in rows]})

    @app.route("/api/absensi/stats", methods=["GET"], endpoint="absensi_stats")
    def absensi_stats():
        stats = service.get_stats(created=_created_arg(request.args), user_id=int_arg(request.args, "userId"))
        return jsonify({"success": True, "data": stats_to_dict(stats)})

    @app.route("/api/absensi/dashboard/user", methods=["GET"], endpoint="absensi_dashboard_user")
    def absensi_dashboard_user():
        dashboard = service.get_user_dashboard(request.args.get("userId"))
        return jsonify({"success": True, "data": {"monthlyStats": counts_to_list(dashboard.monthly_stats)}})

    @app.route("/api/absensi/dashboard/admin", methods=["GET"], endpoint="absensi_dashboard_admin")
    def absensi_dashboard_admin():
        dashboard = service.get_admin_dashboard()
        return jsonify(
            {
                "success": True,
                "data": {
                    "todayStats": counts_to_list(dashboard.today_stats),
                    "usersNotCheckedIn": [user_to_dict(u) for u in dashboard.users_not_checked_in],
                    "totalShiftsToday": dashboard.total_shifts_today,
                },
            }
        )

    @app.route("/api/absensi/report/monthly", methods=["GET"], endpoint="absensi_monthly_report")
    def absensi_monthly_report():
        rows = service.monthly_report(
            year=int_arg(request.args, "year"),
            month=int_arg(request.args, "month"),
            user_id=int_arg(request.args, "userId"),
        )
        return jsonify({"success": True, "data": [detail_to_dict(d) for d in rows]})

    @app.route("/api/absensi/<int:attendance_id>/verify", methods=["PATCH"], endpoint="absensi_verify")
    def absensi_verify(attendance_id: int):
        data = _json_body()
        patch = VerificationPatch(
            status=_status_arg(data.get("status")),
            note=data.get("catatan"),
            location=data.get("lokasi"),
            photo=data.get("foto"),
            check_in_time=datetime_arg(data, "jamMasuk"),
            check_out_time=datetime_arg(data, "jamKeluar"),
            verified=_verified_arg(data.get("verified", False)),
        )
        record = service.verify(attendance_id, patch)
        return jsonify({"success": True, "message": "Data absensi diperbarui", "data": record_to_dict(record)})
