from __future__ import annotations

import os
from typing import Any, Dict

DEFAULT_INVOICE_PREFIX = "DS"
DEFAULT_PAGE_SIZE = 20
DEFAULT_FY_START_MONTH = 4


def get_settings() -> Dict[str, Any]:
    allowed_raw = os.getenv("ALLOWED_ORIGINS", "*")
    allowed_list = [o.strip() for o in allowed_raw.split(",") if o.strip()]
    return {
        "database_url": os.getenv("DATABASE_URL", "sqlite:///./dev.db"),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "invoice_prefix": os.getenv("INVOICE_PREFIX", DEFAULT_INVOICE_PREFIX),
        "page_size": int(os.getenv("STATEMENT_PAGE_SIZE", str(DEFAULT_PAGE_SIZE))),
        "fy_start_month": int(os.getenv("FY_START_MONTH", str(DEFAULT_FY_START_MONTH))),
        "org_name": os.getenv("ORG_NAME", "Designer Square"),
        "allowed_origins": allowed_list,
    }
