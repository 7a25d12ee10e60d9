# portal/utils/pdf_generator.py
"""
Fixed-layout payslip pages drawn with the ReportLab canvas.

Layout is computed top-down in "y from the top of the page" units and
converted to PDF coordinates with ``_pdf_y``. Totals are recomputed from the
line items on every render and compared against the stored net amount.
"""
import io
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from pathlib import Path
from typing import List, Optional, Tuple

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from portal import config

log = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 50
TOP_MARGIN = 30
HEADER_HEIGHT = 90
TABLE_WIDTH = PAGE_WIDTH - 2 * MARGIN
HALF_WIDTH = TABLE_WIDTH / 2
GAP = 5
ROW_HEIGHT = 18
MIN_LEDGER_ROWS = 6

LEFT_AMOUNT_X = MARGIN + HALF_WIDTH - 10
RIGHT_COLUMN_X = MARGIN + HALF_WIDTH + GAP
RIGHT_AMOUNT_X = MARGIN + TABLE_WIDTH - 10
VALUE_X = MARGIN + 100
RIGHT_LABEL_X = MARGIN + 260
RIGHT_VALUE_X = MARGIN + 370


@dataclass
class PayslipTotals:
    gross: Decimal
    deductions: Decimal

    @property
    def net(self) -> Decimal:
        return self.gross - self.deductions


def format_currency(amount) -> str:
    """Whole rupees with Indian digit grouping: 1234567.5 -> '12,34,568'."""
    value = Decimal(str(amount or 0)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    digits = str(abs(int(value)))
    if len(digits) <= 3:
        return sign + digits

    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return sign + ",".join(groups + [tail])


def earning_items(record) -> List[Tuple[str, Decimal]]:
    return [
        ("Basic and Grade Pay", record.component("basic")),
        ("House Rent Allowance", record.component("hra")),
        ("Dearness Allowance", record.component("da")),
        ("Conveyance Allowance", record.component("conveyance")),
        ("Medical Allowance", record.component("medical")),
        ("Other Allowance", record.component("other_earnings")),
    ]


def deduction_items(record) -> List[Tuple[str, Decimal]]:
    return [
        ("Provident Fund", record.component("pf")),
        ("Professional Tax", record.component("professional_tax")),
        ("Income Tax(TDS)", record.component("tax")),
        ("Others", record.component("other_deductions")),
        ("LLP", Decimal("0")),
    ]


def _pdf_y(top: float) -> float:
    return PAGE_HEIGHT - top


def _rule(c: canvas.Canvas, x1: float, x2: float, top: float, width: float = 1):
    c.setLineWidth(width)
    c.line(x1, _pdf_y(top), x2, _pdf_y(top))


def _split_rule(c: canvas.Canvas, top: float, width: float = 1):
    """Rule under both ledger halves, leaving the gutter between them open."""
    _rule(c, MARGIN, MARGIN + HALF_WIDTH, top, width)
    _rule(c, RIGHT_COLUMN_X, MARGIN + TABLE_WIDTH, top, width)


def draw_header(c: canvas.Canvas, top: float = TOP_MARGIN, header_image: Optional[Path] = None) -> float:
    """Banner image (or a text fallback) plus a rule; returns the next free y."""
    image_path = Path(header_image or config.HEADER_IMAGE_PATH)
    drawn = False
    if image_path.is_file():
        try:
            c.drawImage(
                str(image_path), MARGIN, _pdf_y(top + HEADER_HEIGHT),
                width=TABLE_WIDTH, height=HEADER_HEIGHT,
            )
            drawn = True
        except Exception:
            log.warning("Header image %s could not be drawn; using text header", image_path, exc_info=True)

    if drawn:
        top += HEADER_HEIGHT
    else:
        c.setFont("Helvetica-Bold", 18)
        c.drawCentredString(PAGE_WIDTH / 2, _pdf_y(top + 38), config.INSTITUTION_NAME)
        top += 60

    c.setStrokeColor(colors.black)
    _rule(c, MARGIN, PAGE_WIDTH - MARGIN, top + 5)
    return top + 15


def _key_value(c: canvas.Canvas, label: str, value, x_label: float, x_value: float, top: float):
    c.setFont("Helvetica-Bold", 10)
    c.drawString(x_label, _pdf_y(top + 10), label)
    c.setFont("Helvetica", 10)
    c.drawString(x_value, _pdf_y(top + 10), str(value))


def draw_payslip(c: canvas.Canvas, record, faculty, month: str, year, header_image: Optional[Path] = None) -> PayslipTotals:
    """Draw one payslip on the current page of ``c`` and return the recomputed totals."""
    c.setFillColor(colors.black)
    c.setStrokeColor(colors.black)

    top = draw_header(c, header_image=header_image)

    # title
    top += 10
    c.setFont("Helvetica-Bold", 16)
    c.drawCentredString(PAGE_WIDTH / 2, _pdf_y(top + 16), f"Pay Slip - {month} {year}")
    top += 30

    # identity block
    name = getattr(faculty, "name", None) or "N/A"
    department = getattr(faculty, "department", None) or "N/A"
    designation = getattr(faculty, "designation", None) or "N/A"

    _key_value(c, "Employee ID:", record.username, MARGIN, VALUE_X, top)
    _key_value(c, "Month:", month, RIGHT_LABEL_X, RIGHT_VALUE_X, top)
    top += 20
    _key_value(c, "Name:", name, MARGIN, VALUE_X, top)
    _key_value(c, "Year:", year, RIGHT_LABEL_X, RIGHT_VALUE_X, top)
    top += 20
    _key_value(c, "Department:", department, MARGIN, VALUE_X, top)
    _key_value(c, "Faculty ID:", record.username, RIGHT_LABEL_X, RIGHT_VALUE_X, top)
    top += 20
    _key_value(c, "Designation:", designation, MARGIN, VALUE_X, top)
    top += 30

    # ledger heading
    _split_rule(c, top)
    top += 5
    c.setFont("Helvetica-Bold", 10)
    c.drawString(MARGIN + 5, _pdf_y(top + 10), "EMOLUMENTS")
    c.drawRightString(LEFT_AMOUNT_X, _pdf_y(top + 10), "AMOUNT (Rs.)")
    c.drawString(RIGHT_COLUMN_X + 5, _pdf_y(top + 10), "DEDUCTIONS")
    c.drawRightString(RIGHT_AMOUNT_X, _pdf_y(top + 10), "AMOUNT (Rs.)")
    top += ROW_HEIGHT
    _split_rule(c, top - 2)
    top += 5

    # ledger rows
    earnings = earning_items(record)
    deductions = deduction_items(record)
    gross = Decimal("0")
    total_deductions = Decimal("0")

    c.setFont("Helvetica", 10)
    for i in range(max(len(earnings), len(deductions), MIN_LEDGER_ROWS)):
        baseline = _pdf_y(top + 14)
        if i < len(earnings):
            label, value = earnings[i]
            c.drawString(MARGIN + 5, baseline, label)
            c.drawRightString(LEFT_AMOUNT_X, baseline, format_currency(value))
            gross += value
        if i < len(deductions):
            label, value = deductions[i]
            c.drawString(RIGHT_COLUMN_X + 5, baseline, label)
            c.drawRightString(RIGHT_AMOUNT_X, baseline, format_currency(value))
            total_deductions += value
        top += ROW_HEIGHT

    # subtotals, framed above and below
    _split_rule(c, top - 2)
    _split_rule(c, top, width=0.5)
    top += 5
    c.setFont("Helvetica-Bold", 12)
    c.drawString(MARGIN, _pdf_y(top + 12), "Gross Pay")
    c.drawRightString(LEFT_AMOUNT_X, _pdf_y(top + 12), format_currency(gross))
    c.drawString(RIGHT_COLUMN_X, _pdf_y(top + 12), "Total Deductions")
    c.drawRightString(RIGHT_AMOUNT_X, _pdf_y(top + 12), format_currency(total_deductions))
    top += ROW_HEIGHT
    _split_rule(c, top, width=0.5)
    _split_rule(c, top + 2)
    top += 25

    # net pay box
    totals = PayslipTotals(gross=gross, deductions=total_deductions)
    box_height = ROW_HEIGHT + 10
    c.setLineWidth(1)
    c.rect(MARGIN, _pdf_y(top + box_height), TABLE_WIDTH, box_height, stroke=1, fill=0)
    c.setFont("Helvetica-Bold", 12)
    c.drawString(MARGIN + 10, _pdf_y(top + 19), "NET PAY:")
    c.drawRightString(MARGIN + TABLE_WIDTH - 10, _pdf_y(top + 19), format_currency(totals.net))

    stored = getattr(record, "amount", None)
    if stored is not None and Decimal(str(stored)) != totals.net:
        log.warning(
            "Payslip %s %s %s: recomputed net %s differs from stored amount %s",
            record.username, month, year, totals.net, stored,
        )
    return totals


def new_document(buffer: io.BytesIO, title: str = "Payslip") -> canvas.Canvas:
    c = canvas.Canvas(buffer, pagesize=A4)
    c.setTitle(title)
    c.setAuthor(config.INSTITUTION_NAME)
    return c


def render_payslip(record, header_image: Optional[Path] = None) -> bytes:
    """Render a single-page payslip PDF for ``record`` into bytes."""
    buffer = io.BytesIO()
    c = new_document(buffer, title=f"Payslip {record.username} {record.month} {record.year}")
    draw_payslip(c, record, record.faculty, record.month, record.year, header_image=header_image)
    c.showPage()
    c.save()
    return buffer.getvalue()
