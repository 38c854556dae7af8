from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import login_required, to_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/compliance", methods=["GET"], endpoint="api_compliance_status")
    @login_required
    def compliance_status(principal):
        return jsonify(to_json(container.compliance_service.status()))
