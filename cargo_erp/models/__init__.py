# cargo_erp/models/__init__.py

from .erp_state import ErpState
