from datetime import datetime
from types import SimpleNamespace

from core.reports import (
    CSV_HEADER,
    format_date,
    render_csv_report,
    render_pdf_report,
    render_word_report,
    report_filename,
)


def _item(code, name, available, price, initial=None, used=0):
    return SimpleNamespace(
        code=code,
        name=name,
        quantity_available=available,
        quantity_initial_today=available if initial is None else initial,
        quantity_used_today=used,
        price=price,
        total_value=available * price,
        created_at=datetime(2024, 3, 1, 8, 0),
        updated_at=datetime(2024, 3, 2, 9, 5),
    )


def _movement(name, movement_type, before, after, created_at):
    return SimpleNamespace(
        item_name=name,
        item_code=None,
        movement_type=movement_type,
        quantity_before=before,
        quantity_after=after,
        description=f"{movement_type} {name}",
        created_at=created_at,
    )


ITEMS = [
    (_item("P1", "Laptop", 2, 1250.5, initial=3, used=1), "Main"),
    (_item("P2", "<Mouse & Co>", 10, 9.99), "Main"),
]
SUMMARY = {"total_products": 2, "total_units": 12, "total_used_today": 1, "total_value": 2600.9}


def test_format_date_and_filename():
    assert format_date(datetime(2024, 3, 2, 9, 5)) == "02/03/2024 09:05"
    assert format_date(None) == ""
    assert report_filename("inventory", "csv", today=datetime(2024, 3, 2).date()) == "inventory_2024-03-02.csv"


def test_csv_report_rows():
    lines = render_csv_report(ITEMS).splitlines()
    assert lines[0] == ",".join(f'"{h}"' for h in CSV_HEADER)
    assert lines[1] == '"P1","Laptop","Main","3","1","2","1250.50","2501.00","02/03/2024 09:05"'
    assert len(lines) == 3


def test_word_report_escapes_and_limits_movements():
    movements = [_movement("Laptop", "EXIT", 3, 2, datetime(2024, 3, 2, 9, i)) for i in range(30)]
    html = render_word_report(ITEMS, movements, SUMMARY, generated_at=datetime(2024, 3, 2, 10, 0))
    assert "Generated:</strong> 02/03/2024 10:00" in html
    assert "&lt;Mouse &amp; Co&gt;" in html
    assert "<Mouse & Co>" not in html
    assert "$2600.90" in html
    assert html.count("EXIT Laptop") == 20


def test_pdf_report_is_a_pdf():
    movements = [_movement("Laptop", "ENTRY", 0, 2, datetime(2024, 3, 2, 9, 0))]
    many_items = ITEMS + [(_item(f"X{i}", f"Item {i}", i, 1.0), "Main") for i in range(80)]
    pdf = render_pdf_report(many_items, movements, SUMMARY)
    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 1000
