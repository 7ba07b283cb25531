"""
Excel File Manager with Concurrency Control

Process-safe Excel operations for:
- The running ledger of delivered orders
- Periodic sales reports

Several Celery workers may finish deliveries at the same time, so every
write to the shared ledger happens under a FileLock.
"""

from datetime import datetime
from typing import Any
from pathlib import Path

import pandas as pd
from filelock import FileLock, Timeout

from foodhub.core.config import get_settings
import logging

logger = logging.getLogger(__name__)


class ExcelManager:
    """Process-safe Excel file manager."""

    DELIVERY_COLUMNS = [
        "order_id",
        "order_number",
        "restaurant_id",
        "driver_id",
        "customer_name",
        "customer_phone",
        "delivery_address",
        "items",
        "subtotal",
        "delivery_fee",
        "total_amount",
        "payment_method",
        "created_at",
        "delivered_at",
        "exported_at",
    ]

    SALES_COLUMNS = [
        "order_number",
        "restaurant_id",
        "status",
        "subtotal",
        "delivery_fee",
        "total_amount",
        "created_at",
    ]

    # ==========================================================================
    # PATHS
    # ==========================================================================

    @classmethod
    def data_dir(cls) -> Path:
        return Path(get_settings().data_directory)

    @classmethod
    def deliveries_file(cls) -> Path:
        return cls.data_dir() / get_settings().deliveries_filename

    @classmethod
    def _ensure_data_dir(cls) -> None:
        """Create data directory if needed."""
        data_dir = cls.data_dir()
        if not data_dir.exists():
            data_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {data_dir}")

    @classmethod
    def _load_or_create_df(cls, file_path: Path, columns: list) -> pd.DataFrame:
        """Load existing file or create new DataFrame."""
        if file_path.exists():
            try:
                return pd.read_excel(file_path, engine="openpyxl")
            except Exception as e:
                logger.warning(f"Error reading {file_path}: {e}")
                return pd.DataFrame(columns=columns)
        return pd.DataFrame(columns=columns)

    # ==========================================================================
    # DELIVERIES LEDGER
    # ==========================================================================

    @classmethod
    def append_delivery(cls, order_data: dict[str, Any]) -> dict[str, Any]:
        """Append a delivered order to the ledger with file locking."""
        cls._ensure_data_dir()

        settings = get_settings()
        ledger = cls.deliveries_file()
        order_number = order_data.get("order_number", "unknown")
        result = {
            "success": False,
            "message": "",
            "order_number": order_number,
            "exported_at": None,
        }

        try:
            lock = FileLock(f"{ledger}.lock", timeout=settings.excel_lock_timeout)

            with lock:
                logger.debug(f"Lock acquired for order {order_number}")

                df = cls._load_or_create_df(ledger, cls.DELIVERY_COLUMNS)

                export_time = datetime.now().isoformat()
                new_row = {column: order_data.get(column) for column in cls.DELIVERY_COLUMNS}
                new_row["exported_at"] = export_time

                new_df = pd.DataFrame([new_row], columns=cls.DELIVERY_COLUMNS)
                df = new_df if df.empty else pd.concat([df, new_df], ignore_index=True)
                df.to_excel(str(ledger), index=False, engine="openpyxl")

                logger.info(f"Order {order_number} appended to {ledger.name}")

                result["success"] = True
                result["message"] = f"Order {order_number} exported"
                result["exported_at"] = export_time

            logger.debug(f"Lock released for order {order_number}")

        except Timeout:
            result["message"] = f"Lock timeout ({settings.excel_lock_timeout}s)"
            logger.error(f"Lock timeout for order {order_number}")

        return result

    @classmethod
    def get_all_deliveries(cls) -> list[dict[str, Any]]:
        """Get all delivered orders from the ledger."""
        ledger = cls.deliveries_file()
        if not ledger.exists():
            return []

        df = pd.read_excel(ledger, engine="openpyxl")
        return df.to_dict("records")

    # ==========================================================================
    # SALES REPORTS
    # ==========================================================================

    @classmethod
    def write_sales_report(cls, rows: list[dict[str, Any]], period: str) -> Path:
        """
        Write a sales report workbook.

        The first sheet lists the orders, the second one totals them per
        restaurant. Returns the path of the written file.
        """
        cls._ensure_data_dir()

        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        report_path = cls.data_dir() / f"sales_{period}_{stamp}.xlsx"

        orders_df = pd.DataFrame(rows, columns=cls.SALES_COLUMNS)
        if orders_df.empty:
            summary_df = pd.DataFrame(columns=["restaurant_id", "orders", "revenue"])
        else:
            summary_df = (
                orders_df.groupby("restaurant_id", dropna=False)
                .agg(orders=("order_number", "count"), revenue=("total_amount", "sum"))
                .reset_index()
            )

        with pd.ExcelWriter(report_path, engine="openpyxl") as writer:
            orders_df.to_excel(writer, sheet_name="orders", index=False)
            summary_df.to_excel(writer, sheet_name="by_restaurant", index=False)

        logger.info(f"Sales report written: {report_path} ({len(rows)} orders)")
        return report_path
