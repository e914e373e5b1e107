from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from flask import Flask, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge

from meter_billing.billing import calculate_meter_costs
from meter_billing.reporting import BillingReport, format_cost
from meter_billing.tariffs import DEFAULT_TIMEZONE, TariffSchedule
from upload_flow import UploadValidationError, parse_meter_upload

MAX_UPLOAD_MB = 10
MAX_ISSUES_SHOWN = 50

app = Flask(__name__, static_folder=None)
app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_MB * 1024 * 1024


@app.post("/api/costs")
def costs() -> object:
    if "file" not in request.files:
        return jsonify({"error": "Geen bestand ontvangen."}), 400
    file = request.files["file"]
    if not file.filename:
        return jsonify({"error": "Bestandsnaam ontbreekt."}), 400

    try:
        timezone_name = _parse_timezone(request.form.get("timezone", DEFAULT_TIMEZONE))
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    try:
        rows = parse_meter_upload(file.read(), file.filename)
    except UploadValidationError as exc:
        return jsonify({"error": "Upload validatie mislukt.", "details": exc.user_messages()}), 422

    report = calculate_meter_costs(rows, schedule=TariffSchedule(timezone=timezone_name))
    return jsonify(
        {
            "costs": _format_costs(report),
            "summary": report.summary(),
            "issues": _format_issues(report),
        }
    )


@app.errorhandler(RequestEntityTooLarge)
def handle_file_too_large(_: RequestEntityTooLarge) -> object:
    return (
        jsonify({"error": f"Bestand is te groot. Maximaal {MAX_UPLOAD_MB} MB toegestaan."}),
        413,
    )


def _parse_timezone(value: str | None) -> str:
    timezone_name = (value or "").strip() or DEFAULT_TIMEZONE
    try:
        ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError("Onbekende tijdzone opgegeven.") from exc
    return timezone_name


def _format_costs(report: BillingReport) -> list[dict[str, object]]:
    return [
        {"id": meter_id, "cost": format_cost(report.costs[meter_id])}
        for meter_id in sorted(report.costs)
    ]


def _format_issues(report: BillingReport) -> list[dict[str, object]]:
    return [
        {
            "code": issue.code,
            "message": issue.message,
            "row": issue.row or 0,
            "meter_id": issue.meter_id,
        }
        for issue in report.issues[:MAX_ISSUES_SHOWN]
    ]


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=True)
