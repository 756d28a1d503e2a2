"""
CSV import / export of inventory items.

Import is forgiving about the file's shape: UTF-8 or Latin-1, comma,
semicolon or tab separated, Spanish or English headers with or without
accents. Export writes `Code,Name,Quantity,Price` with every cell quoted,
which the importer reads back unchanged.
"""
import csv
import io
import math
import unicodedata
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from core.log import get_logger
from schemas.inventory import MAX_QUANTITY

logger = get_logger("csv_io")

DELIMITERS = (",", ";", "\t")

CODE_KEYWORDS = ("codigo", "code")
NAME_KEYWORDS = ("nombre", "name")
QUANTITY_KEYWORDS = ("cantidad", "quantity", "disponible", "available")
PRICE_KEYWORDS = ("precio", "price")
PRICE_EXCLUDED = ("total", "valor", "value")

EXPECTED_COLUMNS = "Code, Name, Quantity, Price (or Código, Nombre, Cantidad, Precio)"

EXPORT_HEADER = ["Code", "Name", "Quantity", "Price"]

TEMPLATE_CSV = (
    "Code,Name,Quantity,Price\n"
    "P001,Laptop Dell XPS 15,10,1250.50\n"
    "P002,Mouse Logitech MX Master,25,89.99\n"
    "P003,Mechanical Keyboard RGB,15,120.00\n"
    'P004,"Monitor 27"" 4K",8,450.75\n'
)


class CsvFormatError(ValueError):
    """The file as a whole cannot be imported (empty, wrong headers)."""


@dataclass
class ParsedRow:
    line: int
    code: str
    name: str
    quantity: int
    price: float


@dataclass
class RowError:
    line: int
    message: str


@dataclass
class ParsedCsv:
    rows: List[ParsedRow] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)
    delimiter: str = ","


def normalize_header(text: str) -> str:
    """Lower-case, trimmed, without accents or surrounding quotes."""
    text = (text or "").strip().strip('"').strip("'").strip()
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower()


def decode_csv_bytes(raw: bytes) -> str:
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def detect_delimiter(header_line: str) -> str:
    # max() keeps the first of equal counts, so ties resolve to ","
    return max(DELIMITERS, key=lambda d: header_line.count(d))


def _contains_any(header: str, keywords: Iterable[str]) -> bool:
    return any(k in header for k in keywords)


def _find_index(headers: Sequence[str], keywords: Iterable[str], exclude: Iterable[str] = ()) -> Optional[int]:
    for i, h in enumerate(headers):
        if _contains_any(h, keywords) and not _contains_any(h, exclude):
            return i
    return None


def check_headers(headers: Sequence[str]) -> None:
    joined = " ".join(headers)
    missing = [
        label
        for label, keywords in (
            ("code", CODE_KEYWORDS),
            ("name", NAME_KEYWORDS),
            ("quantity", QUANTITY_KEYWORDS),
            ("price", PRICE_KEYWORDS),
        )
        if not _contains_any(joined, keywords)
    ]
    if missing:
        raise CsvFormatError(
            f"Invalid CSV header (missing {', '.join(missing)}). Expected columns: {EXPECTED_COLUMNS}"
        )


@dataclass(frozen=True)
class ColumnMap:
    code: int
    name: int
    quantity: int
    price: int


POSITIONAL = ColumnMap(code=0, name=1, quantity=2, price=3)


def map_columns(headers: Sequence[str], row_width: int) -> ColumnMap:
    """
    Column positions for a data row.

    A 4-column header with a 4-value row is read positionally. Otherwise the
    indexes come from header keywords, with quantity/price falling back to
    columns 2 and 3.
    """
    if len(headers) == 4 and row_width == 4:
        return POSITIONAL
    code = _find_index(headers, CODE_KEYWORDS)
    name = _find_index(headers, NAME_KEYWORDS)
    quantity = _find_index(headers, QUANTITY_KEYWORDS)
    price = _find_index(headers, PRICE_KEYWORDS, exclude=PRICE_EXCLUDED)
    return ColumnMap(
        code=code if code is not None else 0,
        name=name if name is not None else 1,
        quantity=quantity if quantity is not None else 2,
        price=price if price is not None else 3,
    )


def parse_number(value: str) -> Optional[float]:
    v = (value or "").strip().replace("$", "").replace(" ", "")
    if not v:
        return None
    if "," in v and "." not in v:
        v = v.replace(",", ".")
    elif "," in v:
        # 1,250.50
        v = v.replace(",", "")
    try:
        n = float(v)
    except ValueError:
        return None
    if math.isnan(n) or math.isinf(n):
        return None
    return n


def _cell(row: Sequence[str], index: int) -> str:
    if index >= len(row):
        return ""
    return (row[index] or "").strip()


def parse_inventory_csv(text: str) -> ParsedCsv:
    """
    Split a CSV document into valid rows and per-line errors.

    Raises CsvFormatError when the document is empty or its header does not
    name the code / name / quantity / price columns. Line numbers are 1-based
    and count the header line.
    """
    if not text or not text.strip():
        raise CsvFormatError("The CSV file is empty")

    lines = text.splitlines()
    header_line = next((ln for ln in lines if ln.strip()), "")
    delimiter = detect_delimiter(header_line)

    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    headers: Optional[List[str]] = None
    out = ParsedCsv(delimiter=delimiter)

    for row in reader:
        line = reader.line_num
        if not any((c or "").strip() for c in row):
            continue
        if headers is None:
            headers = [normalize_header(c) for c in row]
            check_headers(headers)
            continue

        cols = map_columns(headers, len(row))
        code = _cell(row, cols.code)
        name = _cell(row, cols.name)
        if not code or not name:
            out.errors.append(RowError(line, "Code and name are required"))
            continue

        quantity = parse_number(_cell(row, cols.quantity))
        if quantity is None:
            out.errors.append(RowError(line, f"Invalid quantity for {code}"))
            continue
        if quantity < 0:
            out.errors.append(RowError(line, f"Quantity cannot be negative for {code}"))
            continue
        if quantity > MAX_QUANTITY:
            out.errors.append(RowError(line, f"Quantity too large for {code}"))
            continue

        price = parse_number(_cell(row, cols.price))
        if price is None:
            out.errors.append(RowError(line, f"Invalid price for {code}"))
            continue
        if price < 0:
            out.errors.append(RowError(line, f"Price cannot be negative for {code}"))
            continue
        if round(price * 100) > MAX_QUANTITY:
            out.errors.append(RowError(line, f"Price too large for {code}"))
            continue

        out.rows.append(ParsedRow(line=line, code=code, name=name, quantity=math.floor(quantity), price=price))

    if headers is None:
        raise CsvFormatError("The CSV file is empty")

    logger.debug("Parsed CSV: %d row(s), %d error(s), delimiter %r", len(out.rows), len(out.errors), delimiter)
    return out


def export_items_csv(items) -> str:
    """`Code,Name,Quantity,Price` for the given InventoryItem rows."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_HEADER)
    for it in items:
        writer.writerow([it.code, it.name, int(it.quantity_available or 0), f"{it.price:.2f}"])
    return buf.getvalue()
