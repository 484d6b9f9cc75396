from __future__ import annotations

from flask import Flask

from ..common.http import json_response, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/positions", methods=["GET"], endpoint="position_list")
    @login_required
    def position_list():
        return json_response(container.positions_repo.list_all())
