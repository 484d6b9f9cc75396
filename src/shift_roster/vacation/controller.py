from __future__ import annotations

from flask import Flask, g, request

from ..common.http import date_value, int_value, json_body, json_response, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    vacation = container.vacation_service

    @app.route("/time-off/balance", methods=["GET"], endpoint="time_off_balance")
    @login_required
    def time_off_balance():
        return json_response(vacation.balance(actor=g.actor, user_id=int_value(request.args, "userId")))

    @app.route("/time-off/requests", methods=["GET"], endpoint="time_off_list")
    @login_required
    def time_off_list():
        return json_response(
            vacation.list_my_time_off(
                actor=g.actor,
                status=request.args.get("status"),
                year=int_value(request.args, "year"),
            )
        )

    @app.route("/time-off/requests", methods=["POST"], endpoint="time_off_create")
    @login_required
    def time_off_create():
        body = json_body()
        created = vacation.submit_time_off(
            actor=g.actor,
            time_off_type=body.get("type"),
            start_date=date_value(body, "start_date", required=True),  # type: ignore[arg-type]
            end_date=date_value(body, "end_date", required=True),  # type: ignore[arg-type]
            notes=body.get("notes"),
        )
        return json_response(created, 201)

    @app.route("/time-off/requests/<int:request_id>/review", methods=["PATCH"], endpoint="time_off_review")
    @login_required
    def time_off_review(request_id: int):
        body = json_body()
        reviewed = vacation.review_time_off(
            actor=g.actor,
            request_id=request_id,
            action=body.get("action"),
            reason=body.get("rejection_reason"),
        )
        return json_response(reviewed)

    @app.route("/time-off/team", methods=["GET"], endpoint="time_off_team")
    @login_required
    def time_off_team():
        return json_response(vacation.team_balances(actor=g.actor))
