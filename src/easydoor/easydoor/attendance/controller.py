from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import to_iso
from ..common.pagination import PageRequest
from ..common.responses import envelope, json_body, page_envelope
from ..container import Container
from ..core.exceptions import ConflictError
from .model import AttendanceRecord
from .serializers import attendance_json
from .service import AttendanceSummary


def register(app: Flask, container: Container) -> None:
    token_required = container.token_required
    service = container.attendance_service

    def _json(record, *, populate: bool = True):
        return attendance_json(record, now=service.now(), refs=container.refs if populate else None)

    def _summary_json(summary: AttendanceSummary) -> dict:
        return {
            "employee": summary.employee_id,
            "dateRange": {"startDate": to_iso(summary.start), "endDate": to_iso(summary.end)},
            "summary": {
                "totalSessions": summary.total_sessions,
                "completedSessions": summary.completed_sessions,
                "activeSessions": summary.active_sessions,
                "totalWorkHours": summary.total_work_hours,
                "averageWorkHours": summary.average_work_hours,
                "officeWorkDays": summary.office_work_days,
                "homeWorkDays": summary.home_work_days,
                "workPattern": {"office": summary.office_percentage, "home": summary.home_percentage},
            },
            "records": [_json(r) for r in summary.records],
        }

    def _clock_out_response(record):
        return jsonify(
            envelope(
                "Clock out successful",
                attendance=_json(record),
                workHours=record.work_hours,
                duration=record.duration,
            )
        )

    @app.route("/api/attendance", methods=["POST"], endpoint="attendance_clock_in")
    @token_required
    def clock_in():
        try:
            record = service.clock_in(json_body())
        except ConflictError as e:
            active = e.details.get("activeAttendance")
            if isinstance(active, AttendanceRecord):
                e.details["activeAttendance"] = _json(active, populate=False)
            raise
        return jsonify(envelope("Clock in successful", attendance=_json(record))), 201

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_list")
    @token_required
    def list_attendance():
        page = service.list_attendance(
            page=PageRequest.from_args(request.args, default_limit=container.default_page_limit),
            employee=request.args.get("employee"),
            working_from=request.args.get("workingFrom"),
            office=request.args.get("office"),
            is_active=request.args.get("isActive"),
            on_date=request.args.get("date"),
        )
        return jsonify(page_envelope("attendance", "totalRecords", page, [_json(r) for r in page.items]))

    @app.route("/api/attendance/active", methods=["GET"], endpoint="attendance_active")
    @token_required
    def active_attendance():
        records = service.list_active(office=request.args.get("office"), working_from=request.args.get("workingFrom"))
        return jsonify({"activeAttendance": [_json(r) for r in records], "totalActive": len(records)})

    @app.route(
        "/api/attendance/employee/<int:employee_id>/summary",
        methods=["GET"],
        endpoint="attendance_employee_summary",
    )
    @token_required
    def employee_summary(employee_id: int):
        summary = service.summary(
            employee_id,
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
        )
        return jsonify(_summary_json(summary))

    @app.route(
        "/api/attendance/employee/<int:employee_id>/clock-out",
        methods=["PATCH"],
        endpoint="attendance_employee_clock_out",
    )
    @token_required
    def clock_out_by_employee(employee_id: int):
        return _clock_out_response(service.clock_out_by_employee(employee_id))

    @app.route("/api/attendance/<int:attendance_id>", methods=["GET"], endpoint="attendance_get")
    @token_required
    def get_attendance(attendance_id: int):
        record = service.get_attendance(attendance_id)
        return jsonify(envelope("Attendance record retrieved successfully", attendance=_json(record)))

    @app.route("/api/attendance/<int:attendance_id>", methods=["PATCH"], endpoint="attendance_update")
    @token_required
    def update_attendance(attendance_id: int):
        record = service.update_attendance(attendance_id, json_body())
        return jsonify(envelope("Attendance record updated successfully", attendance=_json(record)))

    @app.route("/api/attendance/<int:attendance_id>/clock-out", methods=["PATCH"], endpoint="attendance_clock_out")
    @token_required
    def clock_out(attendance_id: int):
        return _clock_out_response(service.clock_out(attendance_id))

    @app.route("/api/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="attendance_delete")
    @token_required
    def delete_attendance(attendance_id: int):
        record = service.delete_attendance(attendance_id)
        return jsonify(envelope("Attendance record deleted successfully", attendance=_json(record, populate=False)))
