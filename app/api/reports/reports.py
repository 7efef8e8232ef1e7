from datetime import datetime

from flask import Blueprint, request, send_file

from ...services import reports
from ...utils.responses import get_json_body, success_response

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.route("/<report_type>", methods=["GET"])
def get_report(report_type):
    """
    Sales, products, customers or categories report for a period
    ---
    tags:
      - Reports
    parameters:
      - in: path
        name: report_type
        type: string
        enum: [sales, products, customers, categories]
        required: true
      - in: query
        name: period
        type: string
        enum: [day, week, month, year]
        default: month
      - in: query
        name: date
        type: string
        format: date
        required: false
        description: Reference date, today when missing
    responses:
      200:
        description: Report rows for the completed orders of the period
      400:
        description: Unknown report type, period or date
    """
    report = reports.get_report(
        report_type,
        request.args.get("period", "month"),
        request.args.get("date"),
    )
    return success_response(report)


@reports_bp.route("/dashboard/summary", methods=["GET"])
def get_dashboard_summary():
    """
    Sales KPIs and top 3 products, customers and categories
    ---
    tags:
      - Reports
    parameters:
      - in: query
        name: period
        type: string
        enum: [day, week, month, year]
        default: month
      - in: query
        name: date
        type: string
        format: date
        required: false
    responses:
      200:
        description: Dashboard summary
    """
    summary = reports.dashboard_summary(
        request.args.get("period", "month"), request.args.get("date")
    )
    return success_response(summary)


@reports_bp.route("/dashboard/home", methods=["GET"])
def get_dashboard_home():
    """
    Month metrics, latest orders and popular products
    ---
    tags:
      - Reports
    responses:
      200:
        description: Home dashboard
    """
    return success_response(reports.dashboard_home(request.args.get("date")))


@reports_bp.route("/export", methods=["POST"])
def export_report():
    """
    Excel workbook with one sheet per selected report
    ---
    tags:
      - Reports
    parameters:
      - in: body
        name: body
        required: false
        schema:
          type: object
          properties:
            sections:
              type: array
              items:
                type: string
                enum: [sales, products, customers, categories]
            period:
              type: string
            date:
              type: string
              format: date
    produces:
      - application/vnd.openxmlformats-officedocument.spreadsheetml.sheet
    responses:
      200:
        description: xlsx file
    """
    data = get_json_body()
    output = reports.export_excel(
        data.get("sections"), data.get("period", "month"), data.get("date")
    )
    filename = f"Cafeteria_Report_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"

    return send_file(
        output,
        as_attachment=True,
        download_name=filename,
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
