from __future__ import annotations

from flask import Flask, g, request

from ..common.http import date_value, datetime_value, int_value, json_body, json_response, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    schedules = container.schedule_service
    attendance = container.attendance_service

    @app.route("/shifts", methods=["POST"], endpoint="shift_create")
    @login_required
    def shift_create():
        body = json_body()
        work_date = date_value(body, "date", required=True)
        shift = schedules.place_shift(
            actor=g.actor,
            week_schedule_id=int_value(body, "week_schedule_id", required=True),  # type: ignore[arg-type]
            user_id=int_value(body, "user_id", required=True),  # type: ignore[arg-type]
            work_date=work_date,  # type: ignore[arg-type]
            position_id=int_value(body, "position_id"),
            start=datetime_value(body, "start_time", work_date=work_date),
            end=datetime_value(body, "end_time", work_date=work_date),
            notes=body.get("notes"),
        )
        return json_response(shift, 201)

    @app.route("/shifts", methods=["GET"], endpoint="shift_list")
    @login_required
    def shift_list():
        schedule_id = int_value(request.args, "scheduleId", required=True)
        return json_response(schedules.list_shifts(actor=g.actor, week_schedule_id=schedule_id))  # type: ignore[arg-type]

    @app.route("/shifts/<int:shift_id>", methods=["PUT"], endpoint="shift_update")
    @login_required
    def shift_update(shift_id: int):
        body = json_body()
        current = schedules.get_shift(shift_id=shift_id)
        shift = schedules.update_shift(
            actor=g.actor,
            shift_id=shift_id,
            position_id=int_value(body, "position_id"),
            start=datetime_value(body, "start_time", work_date=current.work_date),
            end=datetime_value(body, "end_time", work_date=current.work_date),
            notes=body.get("notes"),
        )
        return json_response(shift)

    @app.route("/shifts/<int:shift_id>", methods=["DELETE"], endpoint="shift_delete")
    @login_required
    def shift_delete(shift_id: int):
        schedules.delete_shift(actor=g.actor, shift_id=shift_id)
        return json_response({"deleted": shift_id})

    @app.route("/shifts/<int:shift_id>", methods=["PATCH"], endpoint="shift_record_attendance")
    @login_required
    def shift_record_attendance(shift_id: int):
        body = json_body()
        current = schedules.get_shift(shift_id=shift_id)
        record = attendance.record(
            actor=g.actor,
            shift_id=shift_id,
            status=body.get("status"),
            actual_start=datetime_value(body, "actual_start_time", work_date=current.work_date),
            actual_end=datetime_value(body, "actual_end_time", work_date=current.work_date),
            notes=body.get("notes"),
        )
        return json_response(record)

    @app.route("/shifts/<int:shift_id>/attendance", methods=["GET"], endpoint="shift_attendance")
    @login_required
    def shift_attendance(shift_id: int):
        schedules.get_shift(shift_id=shift_id)
        return json_response(attendance.get_for_shift(shift_id=shift_id))
