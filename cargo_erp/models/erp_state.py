# cargo_erp/models/erp_state.py

from datetime import datetime
from cargo_erp.extensions import db

MAIN_STATE_ID = "main_state"


class ErpState(db.Model):
    """
    Una sola fila (upsert) con el ledger completo serializado en JSON.
    """
    __tablename__ = "erp_state"

    id = db.Column(db.String(50), primary_key=True, default=MAIN_STATE_ID)
    data = db.Column(db.JSON, nullable=False, default=list)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def replace_data(self, payload):
        self.data = payload
        self.updated_at = datetime.utcnow()
