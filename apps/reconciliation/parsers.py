import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from apps.common.money import to_money

DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d/%m/%y")
HEADER_WORDS = {"date", "data", "fecha", "dt", "dia"}
CURRENCY_RE = re.compile(r"(R\$|US\$|\$|€|BRL|MXN|USD)", re.IGNORECASE)
THOUSANDS_DOT_RE = re.compile(r"^\d{1,3}(\.\d{3})+$")
THOUSANDS_COMMA_RE = re.compile(r"^\d{1,3}(,\d{3})+$")
# "12,50" split by a comma delimiter arrives as ["12", "50"]; "(50,00)" as ["(50", "00)"].
SPLIT_CENTS_RE = re.compile(r"\d{1,2}\s*[-)DdCc]?")
SPLIT_UNITS_RE = re.compile(r"[-(+]?\s*(?:R\$|\$)?\s*[\d.]+")
# Upper bound of DecimalField(max_digits=12, decimal_places=2).
MAX_AMOUNT = Decimal("1e10")


@dataclass(frozen=True)
class StatementLine:
    date: date
    description: str
    amount: Decimal
    raw: str = ""

    @property
    def natural_key(self):
        return (self.date, self.amount, self.description)


def _bounded(amount):
    if not amount.is_finite() or abs(amount) >= MAX_AMOUNT:
        return None
    return to_money(amount)


def parse_amount(value):
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        try:
            return _bounded(Decimal(str(value)))
        except InvalidOperation:
            return None

    text = CURRENCY_RE.sub("", str(value)).replace(" ", "").replace("\u00a0", "").strip()
    if not text:
        return None

    negative = False
    if text.startswith("(") and text.endswith(")"):
        negative, text = True, text[1:-1]
    if text[-1:].upper() in {"D", "C"}:
        negative = negative or text[-1].upper() == "D"
        text = text[:-1]
    if text.endswith("-"):
        negative, text = True, text[:-1]
    if text.startswith("-"):
        negative, text = not negative, text[1:]
    elif text.startswith("+"):
        text = text[1:]

    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif "," in text:
        text = text.replace(",", "") if THOUSANDS_COMMA_RE.match(text) else text.replace(",", ".")
    elif THOUSANDS_DOT_RE.match(text):
        text = text.replace(".", "")

    try:
        amount = _bounded(Decimal(text))
    except InvalidOperation:
        return None
    if amount is None:
        return None
    return -amount if negative else amount


def parse_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def normalize_record(record, raw=""):
    line_date = parse_date(record.get("date"))
    amount = parse_amount(record.get("amount"))
    description = " ".join(str(record.get("description") or "").split())[:255]
    if line_date is None or amount is None or amount == 0 or not description:
        return None
    return StatementLine(date=line_date, description=description, amount=amount, raw=raw[:500])


def _detect_delimiter(line):
    for delimiter in (";", "\t", "|"):
        if delimiter in line:
            return delimiter
    return ","


def _split_amount(parts, delimiter):
    if delimiter == "," and len(parts) > 3 and SPLIT_CENTS_RE.fullmatch(parts[-1]) and SPLIT_UNITS_RE.fullmatch(parts[-2]):
        return ",".join(parts[-2:]), parts[1:-2]
    return parts[-1], parts[1:-1]


def _is_header(first_field):
    return first_field.strip().lower() in HEADER_WORDS


def parse_statement_line(raw_line):
    line = raw_line.strip()
    delimiter = _detect_delimiter(line)
    parts = [p.strip() for p in line.split(delimiter)]
    if len(parts) < 3:
        return None
    amount_raw, description_parts = _split_amount(parts, delimiter)
    return normalize_record(
        {"date": parts[0], "description": delimiter.join(description_parts), "amount": amount_raw},
        raw=raw_line,
    )


def parse_statement_text(raw_text):
    """Parse CSV-like statement text.

    Returns ``(lines, invalid_count)``. Blank lines, ``#`` comments and header
    rows are skipped without being counted as invalid.
    """
    normalized_text = (raw_text or "").replace("\\n", "\n")
    lines = []
    invalid = 0
    for raw_line in normalized_text.splitlines():
        stripped = raw_line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        first_field = stripped.split(_detect_delimiter(stripped))[0]
        if _is_header(first_field):
            continue
        parsed = parse_statement_line(stripped)
        if parsed is None:
            invalid += 1
            continue
        lines.append(parsed)
    return lines, invalid


def parse_records(records):
    lines = []
    invalid = 0
    for record in records or []:
        parsed = normalize_record(record) if isinstance(record, dict) else None
        if parsed is None:
            invalid += 1
            continue
        lines.append(parsed)
    return lines, invalid
