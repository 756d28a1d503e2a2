"""
Inventory reports: CSV, Word (HTML served as .doc) and PDF.

Renderers take rows already fetched by the caller:
- items: list of (InventoryItem, warehouse_name)
- movements: InventoryMovement rows, newest first
- summary: dict with total_products / total_units / total_used_today / total_value
"""
import csv
import io
import os
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas as rlcanvas

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")

DATE_FORMAT = "%d/%m/%Y %H:%M"

CSV_HEADER = [
    "Code",
    "Name",
    "Warehouse",
    "Initial",
    "Used Today",
    "Available",
    "Price",
    "Total Value",
    "Updated At",
]

WORD_MOVEMENTS_LIMIT = 20
PDF_MOVEMENTS_LIMIT = 15

_env = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=select_autoescape(["html"]),
)


def format_date(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return value.strftime(DATE_FORMAT)


def report_filename(prefix: str, extension: str, today=None) -> str:
    today = today or datetime.now().date()
    return f"{prefix}_{today.isoformat()}.{extension}"


def render_csv_report(items: Sequence[Tuple[object, Optional[str]]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for it, warehouse_name in items:
        writer.writerow([
            it.code,
            it.name,
            warehouse_name or "",
            int(it.quantity_initial_today or 0),
            int(it.quantity_used_today or 0),
            int(it.quantity_available or 0),
            f"{it.price:.2f}",
            f"{it.total_value:.2f}",
            format_date(it.updated_at or it.created_at),
        ])
    return buf.getvalue()


def render_word_report(
    items: Sequence[Tuple[object, Optional[str]]],
    movements: Sequence[object],
    summary: dict,
    generated_at: Optional[datetime] = None,
) -> str:
    template = _env.get_template("inventory_report.html")
    return template.render(
        generated_at=format_date(generated_at or datetime.now()),
        summary=summary,
        items=[
            {
                "code": it.code,
                "name": it.name,
                "warehouse": warehouse_name or "",
                "initial": int(it.quantity_initial_today or 0),
                "used": int(it.quantity_used_today or 0),
                "available": int(it.quantity_available or 0),
                "price": f"{it.price:.2f}",
                "total_value": f"{it.total_value:.2f}",
                "updated_at": format_date(it.updated_at or it.created_at),
            }
            for it, warehouse_name in items
        ],
        movements=[
            {
                "date": format_date(mv.created_at),
                "product": mv.item_name or mv.item_code or "Unknown product",
                "type": mv.movement_type,
                "before": int(mv.quantity_before or 0),
                "after": int(mv.quantity_after or 0),
                "description": mv.description or "",
            }
            for mv in list(movements)[:WORD_MOVEMENTS_LIMIT]
        ],
    )


class _PdfWriter:
    """Page bookkeeping for the canvas: header band, cursor, page breaks."""

    title = "Inventory Report"

    def __init__(self, buf: io.BytesIO):
        self.pagesize = landscape(A4)
        self.width, self.height = self.pagesize
        self.c = rlcanvas.Canvas(buf, pagesize=self.pagesize)
        self.c.setTitle(self.title)
        self.margin = 15 * mm
        self.header_h = 18 * mm
        self.y = 0.0
        self._start_page()

    def _start_page(self):
        c = self.c
        c.setFillColor(colors.HexColor("#4a90e2"))
        c.rect(0, self.height - self.header_h, self.width, self.header_h, fill=1, stroke=0)
        c.setFillColor(colors.white)
        c.setFont("Helvetica-Bold", 14)
        c.drawCentredString(self.width / 2, self.height - self.header_h + 6 * mm, self.title)
        c.setFillColor(colors.black)
        self.y = self.height - self.header_h - 10 * mm

    def ensure_space(self, needed: float):
        if self.y - needed < self.margin:
            self.c.showPage()
            self._start_page()

    def text(self, value: str, *, size: int = 10, bold: bool = False, gap: float = 6 * mm):
        self.ensure_space(gap)
        self.c.setFont("Helvetica-Bold" if bold else "Helvetica", size)
        self.c.drawString(self.margin, self.y, value)
        self.y -= gap

    def table(self, headers: List[str], widths: List[float], rows: List[List[str]]):
        """Striped table; the header row repeats after page breaks."""
        row_h = 6 * mm
        total_w = sum(widths)

        def _header():
            self.c.setFillColor(colors.HexColor("#4a90e2"))
            self.c.rect(self.margin, self.y - 1.8 * mm, total_w, row_h, fill=1, stroke=0)
            self.c.setFillColor(colors.white)
            self.c.setFont("Helvetica-Bold", 9)
            x = self.margin + 1.5 * mm
            for h, w in zip(headers, widths):
                self.c.drawString(x, self.y, h)
                x += w
            self.c.setFillColor(colors.black)
            self.y -= row_h

        self.ensure_space(2 * row_h)
        _header()
        for i, row in enumerate(rows):
            if self.y - row_h < self.margin:
                self.c.showPage()
                self._start_page()
                _header()
            if i % 2 == 1:
                self.c.setFillColor(colors.HexColor("#f5f5f5"))
                self.c.rect(self.margin, self.y - 1.8 * mm, total_w, row_h, fill=1, stroke=0)
                self.c.setFillColor(colors.black)
            self.c.setFont("Helvetica", 9)
            x = self.margin + 1.5 * mm
            for value, w in zip(row, widths):
                # ~1.9mm per character at 9pt
                max_chars = max(4, int(w / (1.9 * mm)))
                self.c.drawString(x, self.y, str(value)[:max_chars])
                x += w
            self.y -= row_h
        self.y -= 4 * mm

    def finish(self):
        self.c.setFont("Helvetica", 8)
        self.c.setFillColor(colors.grey)
        self.c.drawCentredString(self.width / 2, 8 * mm, "Generated automatically by the inventory system")
        self.c.setFillColor(colors.black)
        self.c.showPage()
        self.c.save()


def render_pdf_report(
    items: Sequence[Tuple[object, Optional[str]]],
    movements: Sequence[object],
    summary: dict,
    generated_at: Optional[datetime] = None,
) -> bytes:
    buf = io.BytesIO()
    pdf = _PdfWriter(buf)

    pdf.text(f"Generated: {format_date(generated_at or datetime.now())}")
    pdf.y -= 2 * mm
    pdf.text("Summary", size=12, bold=True)
    pdf.text(f"Total products: {summary['total_products']}")
    pdf.text(f"Units available: {summary['total_units']}")
    pdf.text(f"Used today: {summary['total_used_today']}")
    pdf.text(f"Total value: ${summary['total_value']:.2f}")
    pdf.y -= 2 * mm

    pdf.text("Products", size=12, bold=True)
    pdf.table(
        ["Code", "Name", "Initial", "Used", "Available", "Price"],
        [35 * mm, 110 * mm, 25 * mm, 25 * mm, 25 * mm, 35 * mm],
        [
            [
                it.code,
                it.name,
                int(it.quantity_initial_today or 0),
                int(it.quantity_used_today or 0),
                int(it.quantity_available or 0),
                f"${it.price:.2f}",
            ]
            for it, _warehouse_name in items
        ],
    )

    pdf.text("Latest movements", size=12, bold=True)
    pdf.table(
        ["Date", "Product", "Type", "Qty before", "Qty after"],
        [40 * mm, 110 * mm, 30 * mm, 35 * mm, 35 * mm],
        [
            [
                format_date(mv.created_at),
                mv.item_name or mv.item_code or "Unknown product",
                mv.movement_type,
                int(mv.quantity_before or 0),
                int(mv.quantity_after or 0),
            ]
            for mv in list(movements)[:PDF_MOVEMENTS_LIMIT]
        ],
    )

    pdf.finish()
    return buf.getvalue()
