# cargo_erp/blueprints/api/routes.py

import os
from dataclasses import asdict

from flask import Blueprint, jsonify, request, send_file, current_app

from cargo_erp.blueprints.api.forms import BusinessSettingsForm
from cargo_erp.exporters.excel_export import (
    export_batch_to_excel,
    export_ledger_to_excel,
    batch_report_filename,
)
from cargo_erp.services.kpis import (
    compute_dashboard_stats,
    compute_inventory,
    all_batches,
    shipment_overview,
)
from cargo_erp.services.ledger import (
    Ledger,
    LedgerValidationError,
    ShipmentNotFound,
    BatchNotFound,
    default_manifest,
)
from cargo_erp.services.reporting import build_batch_report
from cargo_erp.services.runtime import get_runtime
from cargo_erp.services.settings import BusinessSettings
from cargo_erp.utils.logging import get_logger

logger = get_logger("api")

api_bp = Blueprint("api", __name__)


@api_bp.errorhandler(LedgerValidationError)
def _validation_error(e):
    return jsonify({"error": str(e)}), 400


@api_bp.errorhandler(ShipmentNotFound)
@api_bp.errorhandler(BatchNotFound)
def _not_found(e):
    return jsonify({"error": str(e)}), 404


def _payload() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


# -----------------------------
# Estado completo
# -----------------------------
@api_bp.route("/shipments", methods=["GET"])
def list_shipments():
    runtime = get_runtime()
    view = (request.args.get("view") or "all").lower()

    if view == "active":
        shipments = runtime.ledger.active_shipments()
    elif view == "archived":
        shipments = runtime.ledger.archived_shipments()
    else:
        shipments = runtime.ledger.shipments

    return jsonify({
        "status": runtime.status.value,
        "shipments": [shipment_overview(s) for s in shipments],
    })


@api_bp.route("/shipments", methods=["POST"])
def replace_shipments():
    """Reemplaza el estado completo (último que escribe gana)."""
    data = request.get_json(silent=True)
    if not isinstance(data, list):
        return jsonify({"error": "Se esperaba una lista de embarques."}), 400

    runtime = get_runtime()
    runtime.ledger.replace_all(Ledger.shipments_from_payload(data))
    return jsonify({"success": True, "shipments": len(runtime.ledger.shipments)})


@api_bp.route("/sync", methods=["POST"])
def force_refresh():
    runtime = get_runtime()
    status = runtime.load()
    return jsonify({"status": status.value, "shipments": len(runtime.ledger.shipments)})


# -----------------------------
# Embarques
# -----------------------------
@api_bp.route("/shipments/template", methods=["GET"])
def shipment_template():
    runtime = get_runtime()
    return jsonify({"items": [l.to_dict() for l in default_manifest(runtime.settings)]})


@api_bp.route("/shipments/new", methods=["POST"])
def create_shipment():
    data = _payload()
    runtime = get_runtime()

    shipment = runtime.ledger.create_shipment(
        name=data.get("name"),
        dispatch_date=data.get("dispatch_date"),
        total_planned_kg=data.get("total_planned_kg"),
        items=data.get("items") or [],
        auto_balance=bool(data.get("auto_balance", False)),
    )
    return jsonify(shipment_overview(shipment)), 201


@api_bp.route("/shipments/<shipment_id>", methods=["GET"])
def get_shipment(shipment_id: str):
    runtime = get_runtime()
    return jsonify(shipment_overview(runtime.ledger.get_shipment(shipment_id)))


@api_bp.route("/shipments/<shipment_id>", methods=["DELETE"])
def delete_shipment(shipment_id: str):
    runtime = get_runtime()
    runtime.ledger.delete_shipment(shipment_id)
    return jsonify({"success": True})


@api_bp.route("/shipments/<shipment_id>/archive", methods=["POST"])
def toggle_archive(shipment_id: str):
    runtime = get_runtime()
    shipment = runtime.ledger.toggle_archive(shipment_id)
    return jsonify(shipment_overview(shipment))


# -----------------------------
# Lotes de arribo
# -----------------------------
@api_bp.route("/shipments/<shipment_id>/batches", methods=["POST"])
def post_batch(shipment_id: str):
    data = _payload()
    runtime = get_runtime()

    batch = runtime.ledger.post_batch(
        shipment_id,
        cost_inputs=data.get("costs") or {},
        arrivals=data.get("items") or [],
        batch_date=data.get("batch_date"),
    )
    shipment = runtime.ledger.get_shipment(shipment_id)
    return jsonify({"batch": batch.to_dict(), "shipment": shipment_overview(shipment)}), 201


@api_bp.route("/shipments/<shipment_id>/batches/<batch_id>", methods=["PATCH"])
def update_batch_costs(shipment_id: str, batch_id: str):
    data = _payload()
    runtime = get_runtime()
    batch = runtime.ledger.update_batch_costs(shipment_id, batch_id, data.get("costs") or data)
    return jsonify(batch.to_dict())


@api_bp.route("/shipments/<shipment_id>/batches/<batch_id>", methods=["DELETE"])
def delete_batch(shipment_id: str, batch_id: str):
    runtime = get_runtime()
    runtime.ledger.delete_batch(shipment_id, batch_id)
    return jsonify({"success": True, "shipment": shipment_overview(runtime.ledger.get_shipment(shipment_id))})


@api_bp.route("/shipments/<shipment_id>/batches/<batch_id>/report", methods=["GET"])
def batch_report(shipment_id: str, batch_id: str):
    runtime = get_runtime()
    shipment = runtime.ledger.get_shipment(shipment_id)
    batch = shipment.batch_by_id(batch_id)
    report = build_batch_report(batch, shipment, runtime.settings)

    if (request.args.get("format") or "").lower() != "xlsx":
        d = {
            "business_name": report.business_name,
            "currency": report.currency,
            "shipment_name": report.shipment_name,
            "dispatch_date": report.dispatch_date,
            "batch_id": report.batch_id,
            "batch_date": report.batch_date,
            "summary": report.summary,
            "rows": [asdict(r) for r in report.rows],
            "partner_split": report.partner_split,
        }
        return jsonify(d)

    output_folder = current_app.config.get("OUTPUT_FOLDER", "outputs")
    path = export_batch_to_excel(report, output_folder=output_folder, shipment_id=shipment.id)
    return send_file(os.path.abspath(path), as_attachment=True, download_name=batch_report_filename(report))


# -----------------------------
# Tablero / inventario / historial
# -----------------------------
@api_bp.route("/dashboard", methods=["GET"])
def dashboard():
    runtime = get_runtime()
    stats = compute_dashboard_stats(runtime.ledger.shipments)
    stats["status"] = runtime.status.value
    return jsonify(stats)


@api_bp.route("/inventory", methods=["GET"])
def inventory():
    runtime = get_runtime()
    return jsonify(compute_inventory(runtime.ledger.shipments))


@api_bp.route("/batches", methods=["GET"])
def batches():
    runtime = get_runtime()
    if (request.args.get("format") or "").lower() != "xlsx":
        return jsonify(all_batches(runtime.ledger.shipments))

    output_folder = current_app.config.get("OUTPUT_FOLDER", "outputs")
    path = export_ledger_to_excel(runtime.ledger.shipments, output_folder=output_folder)
    return send_file(os.path.abspath(path), as_attachment=True, download_name=os.path.basename(path))


# -----------------------------
# Configuración
# -----------------------------
@api_bp.route("/settings", methods=["GET"])
def get_settings():
    runtime = get_runtime()
    return jsonify(runtime.settings.to_dict())


@api_bp.route("/settings", methods=["PUT"])
def update_settings():
    form = BusinessSettingsForm()
    if not form.validate_on_submit():
        return jsonify({"error": "Configuración inválida.", "fields": form.errors}), 400

    runtime = get_runtime()
    settings = runtime.update_settings(BusinessSettings.from_dict({
        "name": form.name.data,
        "logo_url": form.logo_url.data,
        "partner1": form.partner1.data,
        "partner2": form.partner2.data,
        "currency": form.currency.data,
    }))
    logger.info(f"Settings updated name={settings.name}")
    return jsonify(settings.to_dict())
