"""
Flask route handlers for the REST API.
"""

import sys
import traceback
from datetime import date, datetime, timedelta

from flask import Response, jsonify, request

from pharmachain.config import ROUTES, SCREEN_ROLES, TOKEN_EXPIRY_HOURS
from pharmachain.context import AppContext
from pharmachain.errors import AuthenticationError, PharmaChainError, ValidationFailed
from pharmachain.rbac import can_access_screen
from pharmachain.session import MemorySessionStore
from pharmachain.status import distribution_badge, drug_badge
from pharmachain.api.auth import (
    cleanup_expired_sessions,
    generate_token,
    sessions,
    token_required,
)

ERROR_STATUS = {
    "validation": 422,
    "no-permission": 403,
    "not-found": 404,
    "invalid-credentials": 401,
    "cancelled": 409,
}


def _json_body():
    if not request.is_json:
        raise ValidationFailed({"__all__": "Content-Type must be application/json"})
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationFailed({"__all__": "Request body must be a JSON object"})
    return data


def _screen(name):
    return request.app_ctx.screen(name)


def _drug(d):
    return {**d.to_dict(), "badge": drug_badge(d.status)}


def _distribution(d):
    return {**d.to_dict(), "badge": distribution_badge(d.status)}


def register_routes(app):
    """Register all API routes on the Flask *app*."""

    # ── Health / info ────────────────────────────────────────────────

    @app.route("/", methods=["GET"])
    def index():
        return jsonify({
            "service": "PharmaChain Supply-Chain API",
            "version": "1.0.0",
            "status": "running",
            "screens": ROUTES,
            "endpoints": {
                "auth": "/api/auth/login",
                "screens": "/api/screens",
                "inventory": "/api/inventory",
                "distributions": "/api/distributions",
                "reports": "/api/reports/<dataset>",
                "logout": "/api/auth/logout",
                "health": "/health",
            },
        })

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({
            "status": "healthy",
            "active_sessions": len(sessions),
        }), 200

    # ── Auth ─────────────────────────────────────────────────────────

    @app.route("/api/auth/login", methods=["POST"])
    def login():
        data = _json_body()
        email = str(data.get("email", "")).strip()
        password = str(data.get("password", ""))
        if not email or not password:
            raise ValidationFailed({"email": "email and password are required"})

        cleanup_expired_sessions()
        ctx = AppContext(MemorySessionStore(), delay=app.config["SIMULATED_DELAY"])
        user = ctx.login(email, password)
        token = generate_token(user)
        sessions[token] = {
            "app": ctx,
            "created_at": datetime.utcnow(),
            "last_activity": datetime.utcnow(),
        }
        print(f"[auth] {user.email} signed in (role={user.role})")

        return jsonify({
            "success": True,
            "token": token,
            "user": user.to_dict(),
            "expires_at": (datetime.utcnow() + timedelta(hours=TOKEN_EXPIRY_HOURS)).isoformat(),
        }), 200

    @app.route("/api/auth/logout", methods=["POST"])
    @token_required
    def logout():
        request.app_ctx.logout()
        sessions.pop(request.token, None)
        return jsonify({"success": True, "message": "Logged out successfully"}), 200

    @app.route("/api/user/profile", methods=["GET"])
    @token_required
    def get_profile():
        session_data = request.session_data
        return jsonify({
            "success": True,
            "user": request.app_ctx.user.to_dict(),
            "session": {
                "created_at": session_data["created_at"].isoformat(),
                "last_activity": session_data["last_activity"].isoformat(),
            },
        }), 200

    @app.route("/api/screens", methods=["GET"])
    @token_required
    def get_screens():
        user = request.app_ctx.user
        allowed = [name for name in SCREEN_ROLES if can_access_screen(user, name)]
        return jsonify({
            "screens": allowed,
            "routes": {path: name for path, name in ROUTES.items() if name in allowed},
        }), 200

    # ── Dashboard ────────────────────────────────────────────────────

    @app.route("/api/dashboard", methods=["GET"])
    @token_required
    def dashboard():
        return jsonify(_screen("dashboard").overview()), 200

    # ── Inventory ────────────────────────────────────────────────────

    @app.route("/api/inventory", methods=["GET"])
    @token_required
    def list_inventory():
        screen = _screen("inventory")
        rows = screen.list(request.args.get("search"))
        return jsonify({
            "items": [_drug(d) for d in rows],
            "count": len(rows),
            "empty_state": screen.empty_state(),
        }), 200

    @app.route("/api/inventory", methods=["POST"])
    @token_required
    def add_drug():
        drug = _screen("inventory").add(_json_body())
        return jsonify({"success": True, "item": _drug(drug),
                        "message": f"{drug.name} has been added to the inventory."}), 201

    @app.route("/api/inventory/import", methods=["POST"])
    @token_required
    def import_inventory():
        rows = _screen("inventory").import_batch()
        return jsonify({"success": True, "items": [_drug(d) for d in rows],
                        "message": f"{len(rows)} drugs have been imported."}), 201

    @app.route("/api/inventory/<drug_id>", methods=["GET"])
    @token_required
    def get_drug(drug_id):
        return jsonify(_drug(_screen("inventory").get(drug_id))), 200

    @app.route("/api/inventory/<drug_id>", methods=["PUT"])
    @token_required
    def edit_drug(drug_id):
        drug = _screen("inventory").edit(drug_id, _json_body())
        return jsonify({"success": True, "item": _drug(drug),
                        "message": f"{drug.name} has been updated in the inventory."}), 200

    @app.route("/api/inventory/<drug_id>", methods=["DELETE"])
    @token_required
    def delete_drug(drug_id):
        drug = _screen("inventory").delete(drug_id)
        return jsonify({"success": True, "message": f"{drug.name} has been removed."}), 200

    @app.route("/api/inventory/<drug_id>/order", methods=["POST"])
    @token_required
    def order_drug(drug_id):
        data = _json_body()
        drug = _screen("inventory").order_more(drug_id, data)
        return jsonify({"success": True, "item": _drug(drug),
                        "message": f"{data.get('quantity')} units of {drug.name} have been ordered."}), 200

    # ── Distribution ─────────────────────────────────────────────────

    @app.route("/api/distributions", methods=["GET"])
    @token_required
    def list_distributions():
        screen = _screen("distribution")
        rows = screen.list(request.args.get("search"))
        return jsonify({
            "items": [_distribution(d) for d in rows],
            "stats": screen.stats(),
        }), 200

    @app.route("/api/distributions/destinations", methods=["GET"])
    @token_required
    def list_destinations():
        screen = _screen("distribution")
        return jsonify({
            "destinations": [{"id": l.id, "name": l.name, "type": l.type} for l in screen.destinations()],
            "items": screen.catalogue(),
        }), 200

    @app.route("/api/distributions", methods=["POST"])
    @token_required
    def create_distribution():
        dist = _screen("distribution").create(_json_body())
        return jsonify({
            "success": True,
            "item": _distribution(dist),
            "message": f"Distribution to {dist.destination} has been created and is pending approval",
        }), 201

    @app.route("/api/distributions/<distribution_id>", methods=["GET"])
    @token_required
    def get_distribution(distribution_id):
        return jsonify(_distribution(_screen("distribution").get(distribution_id))), 200

    @app.route("/api/distributions/<distribution_id>/tracking", methods=["GET"])
    @token_required
    def track_distribution(distribution_id):
        return jsonify(_screen("distribution").track(distribution_id)), 200

    # ── Dispensing / patients ────────────────────────────────────────

    @app.route("/api/dispensing", methods=["GET"])
    @token_required
    def list_dispensing():
        screen = _screen("dispensing")
        return jsonify({
            "records": [r.to_dict() for r in screen.list(request.args.get("search"))],
            "most_dispensed": screen.most_dispensed(),
            "medications": screen.medications(),
        }), 200

    @app.route("/api/dispensing", methods=["POST"])
    @token_required
    def dispense():
        record = _screen("dispensing").dispense(_json_body())
        return jsonify({
            "success": True,
            "record": record.to_dict(),
            "message": f"Prescription for {record.patient_name} has been successfully dispensed.",
        }), 201

    @app.route("/api/dispensing/prescription", methods=["POST"])
    @token_required
    def new_prescription():
        raw = (_json_body() if request.content_length else {}).get("date")
        try:
            on = date.fromisoformat(raw) if raw else None
        except (TypeError, ValueError):
            raise ValidationFailed({"date": "Dispensing date must be YYYY-MM-DD"})
        draft = _screen("dispensing").new_prescription(on)
        return jsonify({"success": True, "prescription": draft.to_dict()}), 201

    @app.route("/api/dispensing/prescription", methods=["GET"])
    @token_required
    def get_prescription():
        draft = _screen("dispensing").require_draft()
        return jsonify(draft.to_dict()), 200

    @app.route("/api/dispensing/prescription", methods=["DELETE"])
    @token_required
    def cancel_prescription():
        _screen("dispensing").cancel_prescription()
        return jsonify({"success": True, "message": "Prescription discarded"}), 200

    @app.route("/api/dispensing/prescription/patient", methods=["PUT"])
    @token_required
    def select_prescription_patient():
        screen = _screen("dispensing")
        patient = screen.select_patient(str(_json_body().get("query", "")))
        return jsonify({"success": True, "patient": patient.to_dict(),
                        "prescription": screen.draft.to_dict()}), 200

    @app.route("/api/dispensing/prescription/medications", methods=["POST"])
    @token_required
    def add_prescription_medication():
        screen = _screen("dispensing")
        screen.add_medication(_json_body())
        return jsonify({"success": True, "prescription": screen.draft.to_dict()}), 201

    @app.route("/api/dispensing/prescription/medications/<int:index>", methods=["DELETE"])
    @token_required
    def remove_prescription_medication(index):
        screen = _screen("dispensing")
        screen.remove_medication(index)
        return jsonify({"success": True, "prescription": screen.draft.to_dict()}), 200

    @app.route("/api/dispensing/prescription/save", methods=["POST"])
    @token_required
    def save_prescription():
        record = _screen("dispensing").save_prescription()
        return jsonify({
            "success": True,
            "record": record.to_dict(),
            "message": f"Prescription for {record.patient_name} has been successfully dispensed.",
        }), 201

    @app.route("/api/patients", methods=["GET"])
    @token_required
    def list_patients():
        rows = _screen("patients").list(request.args.get("search"))
        return jsonify({"patients": [p.to_dict() for p in rows]}), 200

    @app.route("/api/patients", methods=["POST"])
    @token_required
    def register_patient():
        patient = _screen("patients").register(_json_body())
        return jsonify({"success": True, "patient": patient.to_dict()}), 201

    @app.route("/api/patients/<patient_id>", methods=["GET"])
    @token_required
    def get_patient(patient_id):
        return jsonify(_screen("patients").get(patient_id).to_dict(with_history=True)), 200

    # ── Settings ─────────────────────────────────────────────────────

    @app.route("/api/users", methods=["GET"])
    @token_required
    def list_users():
        rows = _screen("settings").list_users(request.args.get("search"))
        return jsonify({"users": [u.to_dict() for u in rows]}), 200

    @app.route("/api/users", methods=["POST"])
    @token_required
    def add_user():
        user = _screen("settings").add_user(_json_body())
        return jsonify({"success": True, "user": user.to_dict(),
                        "message": "New user has been successfully created"}), 201

    @app.route("/api/users/<user_id>", methods=["PUT"])
    @token_required
    def edit_user(user_id):
        user = _screen("settings").edit_user(user_id, _json_body())
        return jsonify({"success": True, "user": user.to_dict(),
                        "message": "User information has been updated"}), 200

    @app.route("/api/users/<user_id>", methods=["DELETE"])
    @token_required
    def delete_user(user_id):
        user = _screen("settings").delete_user(user_id)
        return jsonify({"success": True, "message": f"{user.name} has been removed"}), 200

    @app.route("/api/locations", methods=["GET"])
    @token_required
    def list_locations():
        screen = _screen("settings")
        rows = screen.list_locations(request.args.get("search"))
        return jsonify({
            "locations": [{**loc.to_dict(), "parent_name": screen.parent_name(loc)} for loc in rows],
        }), 200

    @app.route("/api/locations", methods=["POST"])
    @token_required
    def add_location():
        loc = _screen("settings").add_location(_json_body())
        return jsonify({"success": True, "location": loc.to_dict(),
                        "message": "New location has been successfully created"}), 201

    @app.route("/api/locations/<location_id>", methods=["PUT"])
    @token_required
    def edit_location(location_id):
        loc = _screen("settings").edit_location(location_id, _json_body())
        return jsonify({"success": True, "location": loc.to_dict(),
                        "message": "Location information has been updated"}), 200

    @app.route("/api/locations/<location_id>", methods=["DELETE"])
    @token_required
    def delete_location(location_id):
        loc = _screen("settings").delete_location(location_id)
        return jsonify({"success": True, "message": f"{loc.name} has been removed"}), 200

    # ── Reports ──────────────────────────────────────────────────────

    @app.route("/api/reports", methods=["GET"])
    @token_required
    def list_reports():
        return jsonify({"datasets": _screen("reports").datasets()}), 200

    @app.route("/api/reports/<dataset>", methods=["GET"])
    @token_required
    def report_summary(dataset):
        return jsonify(_screen("reports").summary(dataset, request.args.get("period"))), 200

    @app.route("/api/reports/<dataset>/export", methods=["GET"])
    @token_required
    def export_report(dataset):
        filename, body = _screen("reports").export(dataset, request.args.get("period"))
        return Response(
            body,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    # ── Error handlers ───────────────────────────────────────────────

    @app.errorhandler(AuthenticationError)
    def authentication_failed(e):
        return jsonify({"error": "Invalid email or password", "reason": e.reason}), 401

    @app.errorhandler(PharmaChainError)
    def domain_error(e):
        body = {"error": str(e), "reason": e.reason}
        if isinstance(e, ValidationFailed):
            body["errors"] = e.errors
        return jsonify(body), ERROR_STATUS.get(e.reason, 400)

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Endpoint not found", "message": str(e)}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed", "message": str(e)}), 405

    @app.errorhandler(500)
    def internal_error(e):
        print(f"[ERROR] Unhandled error: {e}", file=sys.stderr)
        traceback.print_exc()
        return jsonify({"error": "Internal server error", "message": str(e)}), 500
