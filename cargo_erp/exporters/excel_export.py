# cargo_erp/exporters/excel_export.py

import os
import pandas as pd
from werkzeug.utils import secure_filename

from cargo_erp.services.kpis import all_batches
from cargo_erp.services.reporting import BatchReport
from cargo_erp.utils.logging import get_logger

logger = get_logger("excel_export")


def batch_report_filename(report: BatchReport) -> str:
    base = secure_filename(f"{report.shipment_name}_{report.batch_date}") or "lote"
    return f"Reconciliacion_{base}.xlsx"


def export_batch_to_excel(report: BatchReport, output_folder: str, shipment_id: str) -> str:
    """
    Genera outputs/<shipment_id>/Reconciliacion_<embarque>_<fecha>.xlsx con multihoja:
      Resumen, Propietarios, Reparto
    """
    out_dir = os.path.join(output_folder, secure_filename(shipment_id) or "sin_id")
    os.makedirs(out_dir, exist_ok=True)
    out_path = os.path.join(out_dir, batch_report_filename(report))

    s = report.summary
    df_resumen = pd.DataFrame([{
        "Empresa": report.business_name,
        "Moneda": report.currency,
        "Embarque": report.shipment_name,
        "Despacho": report.dispatch_date,
        "Lote": report.batch_id,
        "Fecha Lote": report.batch_date,
        "Chofer": s["driver_cost"],
        "Bodega": s["store_cost"],
        "Flete": s["freight_cost"],
        "Postal": s["postal_cost"],
        "KG Partners": s["total_partner_kg"],
        "KG Clients": s["total_client_kg"],
        "KG Total": s["total_arrived_kg"],
        "Costo/KG Partner": s["partner_per_kg_cost"],
        "Costo/KG Client": s["client_per_kg_cost"],
        "Ingreso Clients": s["total_client_revenue"],
        "Costo Clients": s["total_client_costs"],
        "Utilidad Neta": s["net_profit"],
    }])

    df_rows = pd.DataFrame([{
        "Propietario": r.owner_name,
        "Tipo": r.owner_type,
        "KG": r.arrived_kg,
        "Tarifa/KG": r.rate_per_kg,
        "Gasto": r.expense,
        "Fee/KG": r.service_fee_per_kg,
        "Ingreso": r.revenue,
        "Resultado": r.net_result,
        "Socio Principal": r.is_main_partner,
    } for r in report.rows])

    df_split = pd.DataFrame([{
        "Partner": p["partner"],
        "Utilidad 50%": p["share"],
    } for p in report.partner_split])

    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        df_resumen.to_excel(writer, sheet_name="Resumen", index=False)
        df_rows.to_excel(writer, sheet_name="Propietarios", index=False)
        df_split.to_excel(writer, sheet_name="Reparto", index=False)

    logger.info(f"Exported batch report batch={report.batch_id} path={out_path}")
    return out_path


def export_ledger_to_excel(shipments, output_folder: str) -> str:
    """
    Historial completo: outputs/Historial_Lotes.xlsx (una fila por lote).
    """
    os.makedirs(output_folder, exist_ok=True)
    out_path = os.path.join(output_folder, "Historial_Lotes.xlsx")

    df = pd.DataFrame([{
        "Embarque": b["shipment_name"],
        "Despacho": b["dispatch_date"],
        "Lote": b["id"],
        "Fecha Lote": b["batch_date"],
        "KG Partners": b["total_partner_kg"],
        "KG Clients": b["total_client_kg"],
        "Ingreso Clients": b["total_client_revenue"],
        "Costo Clients": b["total_client_costs"],
        "Utilidad Neta": b["net_profit"],
    } for b in all_batches(shipments)])

    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name="Lotes", index=False)

    logger.info(f"Exported ledger history path={out_path} batches={len(df)}")
    return out_path
