from __future__ import annotations

from flask import Flask, g, request

from ..common.http import date_value, datetime_value, enum_value, int_value, json_body, json_response, login_required
from ..container import Container
from ..core.enums import ShiftRequestStatus, ShiftRequestType
from .model import RequestPatch


def register(app: Flask, container: Container) -> None:
    requests = container.request_service

    @app.route("/shift-requests", methods=["POST"], endpoint="shift_request_create")
    @login_required
    def shift_request_create():
        body = json_body()
        work_date = date_value(body, "date", required=True)
        created = requests.submit(
            actor=g.actor,
            week_schedule_id=int_value(body, "week_schedule_id", required=True),  # type: ignore[arg-type]
            request_type=enum_value(body, "type", ShiftRequestType, required=True),  # type: ignore[arg-type]
            work_date=work_date,  # type: ignore[arg-type]
            preferred_start=datetime_value(body, "preferred_start_time", work_date=work_date),
            preferred_end=datetime_value(body, "preferred_end_time", work_date=work_date),
            notes=body.get("notes"),
            vacation_days=int_value(body, "vacation_days"),
        )
        return json_response(created, 201)

    @app.route("/shift-requests", methods=["GET"], endpoint="shift_request_list")
    @login_required
    def shift_request_list():
        args = request.args
        return json_response(
            requests.list_requests(
                actor=g.actor,
                week_schedule_id=int_value(args, "scheduleId"),
                user_id=int_value(args, "userId"),
                status=enum_value(args, "status", ShiftRequestStatus),
                request_type=enum_value(args, "type", ShiftRequestType),
            )
        )

    @app.route("/shift-requests/<int:request_id>", methods=["GET"], endpoint="shift_request_detail")
    @login_required
    def shift_request_detail(request_id: int):
        return json_response(requests.get_request(actor=g.actor, request_id=request_id))

    @app.route("/shift-requests/<int:request_id>", methods=["PUT"], endpoint="shift_request_edit")
    @login_required
    def shift_request_edit(request_id: int):
        body = json_body()
        current = requests.get_request(actor=g.actor, request_id=request_id)
        work_date = date_value(body, "date")
        patch = RequestPatch(
            request_type=enum_value(body, "type", ShiftRequestType),
            work_date=work_date,
            preferred_start=datetime_value(body, "preferred_start_time", work_date=work_date or current.work_date),
            preferred_end=datetime_value(body, "preferred_end_time", work_date=work_date or current.work_date),
            notes=body.get("notes"),
            vacation_days=int_value(body, "vacation_days"),
        )
        return json_response(requests.edit(actor=g.actor, request_id=request_id, patch=patch))

    @app.route("/shift-requests/<int:request_id>", methods=["DELETE"], endpoint="shift_request_withdraw")
    @login_required
    def shift_request_withdraw(request_id: int):
        requests.withdraw(actor=g.actor, request_id=request_id)
        return json_response({"deleted": request_id})

    @app.route("/shift-requests/<int:request_id>/review", methods=["PATCH"], endpoint="shift_request_review")
    @login_required
    def shift_request_review(request_id: int):
        body = json_body()
        reviewed = requests.review(
            actor=g.actor,
            request_id=request_id,
            action=body.get("action"),
            reason=body.get("rejection_reason"),
        )
        return json_response(reviewed)

    @app.route("/shift-requests/<int:request_id>/convert", methods=["POST"], endpoint="shift_request_convert")
    @login_required
    def shift_request_convert(request_id: int):
        body = json_body()
        current = requests.get_request(actor=g.actor, request_id=request_id)
        shift = requests.convert(
            actor=g.actor,
            request_id=request_id,
            position_id=int_value(body, "position_id"),
            start=datetime_value(body, "start_time", work_date=current.work_date),
            end=datetime_value(body, "end_time", work_date=current.work_date),
            notes=body.get("notes"),
        )
        return json_response(shift, 201)
