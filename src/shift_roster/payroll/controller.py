from __future__ import annotations

from flask import Flask, g, request

from ..common.http import int_value, json_response, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    payroll = container.payroll_report_service

    def _period(*, with_month: bool = True) -> dict:
        today = container.clock()
        out = {"year": int_value(request.args, "year") or today.year}
        if with_month:
            out["month"] = int_value(request.args, "month") or today.month
        return out

    @app.route("/payroll/summary", methods=["GET"], endpoint="payroll_summary")
    @login_required
    def payroll_summary():
        return json_response(payroll.summary(actor=g.actor))

    @app.route("/payroll/monthly", methods=["GET"], endpoint="payroll_monthly")
    @login_required
    def payroll_monthly():
        return json_response(payroll.monthly(actor=g.actor, user_id=int_value(request.args, "userId"), **_period()))

    @app.route("/payroll/yearly", methods=["GET"], endpoint="payroll_yearly")
    @login_required
    def payroll_yearly():
        return json_response(
            payroll.yearly(actor=g.actor, user_id=int_value(request.args, "userId"), **_period(with_month=False))
        )

    @app.route("/payroll/team", methods=["GET"], endpoint="payroll_team")
    @login_required
    def payroll_team():
        return json_response(payroll.team(actor=g.actor, **_period()))

    @app.route("/payroll/employee", methods=["GET"], endpoint="payroll_employee")
    @login_required
    def payroll_employee():
        user_id = int_value(request.args, "userId", required=True)
        return json_response(payroll.employee(actor=g.actor, user_id=user_id, **_period()))  # type: ignore[arg-type]

    @app.route("/work-hours/summary", methods=["GET"], endpoint="work_hours_summary")
    @login_required
    def work_hours_summary():
        return json_response(
            payroll.work_week_summary(
                actor=g.actor,
                week_schedule_id=int_value(request.args, "weekScheduleId", required=True),  # type: ignore[arg-type]
                user_id=int_value(request.args, "userId"),
            )
        )
