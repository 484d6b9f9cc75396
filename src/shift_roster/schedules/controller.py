from __future__ import annotations

from flask import Flask, g

from ..common.http import datetime_value, date_value, json_body, json_response, login_required
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    schedules = container.schedule_service

    @app.route("/schedule", methods=["POST"], endpoint="schedule_create")
    @login_required
    def schedule_create():
        body = json_body()
        schedule = schedules.create_week_schedule(
            actor=g.actor,
            week_start=date_value(body, "week_start", required=True),
            request_deadline=datetime_value(body, "request_deadline"),
        )
        return json_response(schedule, 201)

    @app.route("/schedule", methods=["GET"], endpoint="schedule_list")
    @login_required
    def schedule_list():
        return json_response(schedules.list_week_schedules())

    @app.route("/schedule/<int:schedule_id>", methods=["GET"], endpoint="schedule_detail")
    @login_required
    def schedule_detail(schedule_id: int):
        schedule = schedules.get_week_schedule(schedule_id=schedule_id)
        shifts = schedules.list_shifts(actor=g.actor, week_schedule_id=schedule_id)
        return json_response({"schedule": schedule, "shifts": shifts})

    @app.route("/schedule/<int:schedule_id>/publish", methods=["PATCH"], endpoint="schedule_publish")
    @login_required
    def schedule_publish(schedule_id: int):
        published = json_body().get("is_published")
        if not isinstance(published, bool):
            raise ValidationError("is_published must be true or false")
        schedule = schedules.publish(actor=g.actor, schedule_id=schedule_id, published=published)
        return json_response(schedule)

    @app.route("/schedule/<int:schedule_id>/shift-requests", methods=["GET"], endpoint="schedule_requests")
    @login_required
    def schedule_requests(schedule_id: int):
        schedules.get_week_schedule(schedule_id=schedule_id)
        return json_response(container.request_service.list_requests(actor=g.actor, week_schedule_id=schedule_id))

    @app.route("/schedule/<int:schedule_id>/unrecorded", methods=["GET"], endpoint="schedule_unrecorded")
    @login_required
    def schedule_unrecorded(schedule_id: int):
        schedules.get_week_schedule(schedule_id=schedule_id)
        return json_response(container.attendance_service.list_unrecorded(actor=g.actor, week_schedule_id=schedule_id))
