import pandas as pd

from foodhub.services.excel_manager import ExcelManager
from foodhub.tasks import export_delivery_to_excel, export_sales_report, health_check


def test_append_delivery_adds_rows(data_dir):
    before = len(ExcelManager.get_all_deliveries())

    first = ExcelManager.append_delivery({"order_number": "ORD1", "total_amount": 20.0})
    second = ExcelManager.append_delivery({"order_number": "ORD2", "total_amount": 35.5})

    assert first["success"] and second["success"]
    rows = ExcelManager.get_all_deliveries()
    assert len(rows) == before + 2
    assert [r["order_number"] for r in rows[-2:]] == ["ORD1", "ORD2"]
    assert rows[-1]["exported_at"]


def test_sales_report_workbook(data_dir):
    rows = [
        {"order_number": "ORD1", "restaurant_id": 1, "status": "delivered", "subtotal": 20,
         "delivery_fee": 5, "total_amount": 25, "created_at": "2026-10-19T10:00:00"},
        {"order_number": "ORD2", "restaurant_id": 1, "status": "pending", "subtotal": 10,
         "delivery_fee": 5, "total_amount": 15, "created_at": "2026-10-19T11:00:00"},
        {"order_number": "ORD3", "restaurant_id": 2, "status": "confirmed", "subtotal": 40,
         "delivery_fee": 0, "total_amount": 40, "created_at": "2026-10-19T12:00:00"},
    ]

    path = ExcelManager.write_sales_report(rows, "today")

    assert path.parent == data_dir
    assert path.name.startswith("sales_today_")
    summary = pd.read_excel(path, sheet_name="by_restaurant", engine="openpyxl")
    assert summary.set_index("restaurant_id")["revenue"].to_dict() == {1: 40, 2: 40}
    assert len(pd.read_excel(path, sheet_name="orders", engine="openpyxl")) == 3


def test_empty_sales_report(data_dir):
    path = ExcelManager.write_sales_report([], "week")
    assert pd.read_excel(path, sheet_name="orders", engine="openpyxl").empty


def test_tasks_run_eagerly(data_dir):
    result = export_delivery_to_excel.delay({"order_number": "ORD-EAGER"}).get()
    assert result["success"]
    assert "processing_time_seconds" in result

    report = export_sales_report.delay([], "month").get()
    assert report["rows"] == 0
    assert report["path"].endswith(".xlsx")

    assert health_check.delay().get()["status"] == "healthy"


def test_sales_report_endpoint(client, make_order, data_dir):
    make_order()
    make_order()
    cancelled = make_order()
    client.put(f"/api/orders/{cancelled['id']}", json={"status": "cancelled"})

    response = client.post("/api/admin/reports/sales", params={"period": "today"})
    assert response.status_code == 202
    body = response.json()
    assert body["period"] == "today"
    assert body["rows"] == 2
    assert body["taskId"]

    assert client.post("/api/admin/reports/sales", params={"period": "decade"}).status_code == 400
