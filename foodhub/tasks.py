"""
Celery Tasks
Background tasks for delivery exports and sales reports.
"""

import logging
import time
from datetime import datetime

from foodhub.celery_worker import celery_app
from foodhub.services.excel_manager import ExcelManager

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(OSError,),
    retry_backoff=True
)
def export_delivery_to_excel(self, order_data: dict) -> dict:
    """
    Append a delivered order to the deliveries ledger.

    Args:
        order_data: Dictionary containing order information

    Returns:
        dict: Result of the export operation
    """
    task_id = self.request.id
    order_number = order_data.get('order_number', 'unknown')

    logger.info(f"Task {task_id}: exporting delivery {order_number}")
    start_time = time.time()

    result = ExcelManager.append_delivery(order_data)

    elapsed = round(time.time() - start_time, 3)
    result['task_id'] = task_id
    result['processing_time_seconds'] = elapsed

    if result['success']:
        logger.info(f"Task {task_id}: delivery {order_number} exported in {elapsed}s")
    else:
        logger.warning(f"Task {task_id}: delivery {order_number} failed - {result['message']}")

    return result


@celery_app.task(bind=True)
def export_sales_report(self, rows: list, period: str) -> dict:
    """Write a sales report workbook for the given order rows."""
    path = ExcelManager.write_sales_report(rows, period)
    return {
        'task_id': self.request.id,
        'period': period,
        'rows': len(rows),
        'path': str(path),
    }


@celery_app.task
def health_check() -> dict:
    """
    Simple health check task to verify Celery is working.
    """
    return {
        'status': 'healthy',
        'worker': 'celery',
        'timestamp': datetime.now().isoformat()
    }
