"""Reports blueprint."""

from __future__ import annotations

from flask import Blueprint, Response, request
from flask_jwt_extended import jwt_required
from werkzeug.exceptions import BadRequest

from services import reports
from utils.auth import current_user_id
from utils.request_validation import int_arg
from utils.responses import success_response

reports_bp = Blueprint("reports", __name__)


@reports_bp.route("/performance", methods=["GET"])
@jwt_required()
def performance():
    summary = reports.performance_for_user(current_user_id())
    return success_response(summary.to_dict())


@reports_bp.route("/distribution", methods=["GET"])
@jwt_required()
def distribution():
    slices = reports.distribution_for_user(current_user_id())
    return success_response([item.to_dict() for item in slices])


@reports_bp.route("/trends", methods=["GET"])
@jwt_required()
def trends():
    months = int_arg(request.args, "months", reports.DEFAULT_TREND_MONTHS, maximum=120)
    points = reports.trends_for_user(current_user_id(), months)
    return success_response([point.to_dict() for point in points])


@reports_bp.route("/top-performers", methods=["GET"])
@jwt_required()
def top_performers():
    limit = int_arg(request.args, "limit", reports.DEFAULT_TOP_PERFORMERS, maximum=100)
    ranked = reports.top_performers_for_user(current_user_id(), limit)
    return success_response([item.to_dict() for item in ranked])


@reports_bp.route("/year-over-year", methods=["GET"])
@jwt_required()
def year_over_year():
    comparison = reports.year_over_year_for_user(current_user_id())
    return success_response(comparison.to_dict())


@reports_bp.route("/export", methods=["GET"])
@jwt_required()
def export():
    export_format = request.args.get("format")
    if not export_format:
        raise BadRequest("format is required.")
    body, mimetype, filename = reports.export_report(current_user_id(), export_format)
    return Response(
        body,
        mimetype=mimetype,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
