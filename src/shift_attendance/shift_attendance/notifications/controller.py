from __future__ import annotations

from typing import Any, Dict

from flask import Flask, jsonify, request

from ..common.http_utils import int_arg, to_json
from ..core.constants import DEFAULT_NOTIFICATION_LIMIT
from .model import Notification


def notification_to_dict(n: Notification) -> Dict[str, Any]:
    return {
        "id": n.notification_id,
        "userId": n.user_id,
        "type": to_json(n.type),
        "title": n.title,
        "message": n.message,
        "data": n.data,
        "sentVia": to_json(n.sent_via),
        "createdAt": to_json(n.created_at),
    }


def register(app: Flask, container) -> None:
    service = container.notification_service

    @app.route("/api/notifikasi/<int:user_id>", methods=["GET"], endpoint="notifikasi_list")
    def notifikasi_list(user_id: int):
        limit = int_arg(request.args, "limit", DEFAULT_NOTIFICATION_LIMIT)
        rows = service.list_for_user(user_id, limit=limit)
        return jsonify({"success": True, "data": [notification_to_dict(n) for n in rows]})
