# loto/services/export/pdf_export.py
"""
PDF rendering of a LOTO procedure (A4 landscape).

Page 1:    blue banner  ->  document name (upper case)  ->  DANGER box
           ->  metadata table (JSA Number / Work Order / Job Description)
           ->  steps table.
Page 2+:   steps table only, header row repeated at the top.
Last page: AUTHORIZATION & VERIFICATION sign-off table and the SAFETY
           REMINDERS box, on a page of their own when the steps leave no room.
Footer on every page: product name | generation timestamp | Page X of Y.

Pagination is planned before anything is drawn: every row height is
measured with the same paragraph styles the table uses, rows are packed
into pages (plan_pages) and each page then draws its own table. Cell text
that would make a row taller than a page is cut short with "...". The
returned RenderedPdf carries the bytes plus that page plan.
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas as pdf_canvas
from reportlab.platypus import Paragraph, Table, TableStyle

from loto.errors import EmptyProcedureError
from loto.models import IsolationPoint, ProcedureMetadata
from loto.services.export.filenames import export_filename
from loto.utils.text_utils import strip_control_chars

logger = logging.getLogger(__name__)

# ----------------------------------------------------------------------
# PAGE GEOMETRY
# ----------------------------------------------------------------------
PAGE_SIZE = landscape(A4)
PAGE_W, PAGE_H = PAGE_SIZE
MARGIN = 20 * mm
CONTENT_W = PAGE_W - 2 * MARGIN

BANNER_H = 25 * mm
FOOTER_LINE_Y = 15 * mm
FOOTER_TEXT_Y = 8 * mm
# Lowest y any body content may reach
BODY_BOTTOM = FOOTER_LINE_Y + 5 * mm

WARNING_BOX_H = 25 * mm
REMINDER_BOX_H = 25 * mm
SECTION_GAP = 10 * mm

CELL_PADDING = 3
SIGNATURE_PADDING = 8

ELLIPSIS = "..."
DOC_NAME_MAX_LINES = 3
META_VALUE_MAX_H = {"JSA Number:": 24, "Work Order:": 24, "Job Description:": 30 * mm}

NOT_SPECIFIED = "Not Specified"
DEFAULT_DOCUMENT_NAME = "LOTO Procedure"
DEFAULT_PRODUCT_NAME = "Industrial Isolation Management System"
PDF_MIMETYPE = "application/pdf"

INDUSTRIAL_BLUE = colors.Color(21 / 255, 101 / 255, 192 / 255)
SAFETY_ORANGE = colors.Color(255 / 255, 112 / 255, 67 / 255)
REMINDER_FILL = colors.Color(255 / 255, 245 / 255, 235 / 255)
FOOTER_GREY = colors.Color(100 / 255, 100 / 255, 100 / 255)
STRIPE = colors.Color(245 / 255, 247 / 255, 250 / 255)

STEP_COLUMNS = ("Step", "KKS Code", "Unit", "Description", "Isolation Method")
STEP_COL_WIDTHS = (15 * mm, 40 * mm, 25 * mm, 112 * mm, 65 * mm)

META_COL_WIDTHS = (50 * mm, 150 * mm)

WARNING_TITLE = "DANGER - AUTHORIZED PERSONNEL ONLY"
WARNING_LINES = (
    "This procedure must be followed exactly as written. Unauthorized modifications are prohibited.",
    "Failure to follow proper LOTO procedures may result in serious injury or death.",
)

SIGNATURE_TITLE = "AUTHORIZATION & VERIFICATION"
SIGN_OFF_ROLES = (
    "Procedure Prepared By:",
    "Authorized By (Supervisor):",
    "Electrical Isolation Verified By:",
    "Mechanical Isolation Verified By:",
    "Work Completed - Isolation Removed By:",
)
SIGNATURE_COL_WIDTHS = (70 * mm, 60 * mm, 25 * mm, 35 * mm)

REMINDERS_TITLE = "SAFETY REMINDERS:"
SAFETY_REMINDERS = (
    "Verify zero energy state before beginning work",
    "Test isolation devices after each step",
    "Only authorized personnel may remove locks and tags",
)

# Page section names, as recorded in PageLayout.sections
BANNER = "banner"
SAFETY_WARNING = "safety_warning"
METADATA = "metadata"
STEPS = "steps"
SIGNATURES = "signatures"
REMINDERS = "safety_reminders"

# ----------------------------------------------------------------------
# STYLES
# ----------------------------------------------------------------------
_BODY = ParagraphStyle("LotoBody", fontName="Helvetica", fontSize=9, leading=11)
_BODY_BOLD = ParagraphStyle("LotoBodyBold", parent=_BODY, fontName="Helvetica-Bold")
_STEP = ParagraphStyle("LotoStep", parent=_BODY_BOLD, alignment=TA_CENTER)
_KKS = ParagraphStyle("LotoKks", parent=_BODY_BOLD, textColor=INDUSTRIAL_BLUE)
_HEAD = ParagraphStyle(
    "LotoHead", fontName="Helvetica-Bold", fontSize=10, leading=12, textColor=colors.white
)
_META = ParagraphStyle("LotoMeta", fontName="Helvetica", fontSize=10, leading=12)
_META_LABEL = ParagraphStyle("LotoMetaLabel", parent=_META, fontName="Helvetica-Bold")
_DOC_NAME = ParagraphStyle("LotoDocName", fontName="Helvetica-Bold", fontSize=16, leading=19)

STEP_CELL_STYLES = (_STEP, _KKS, _BODY, _BODY, _BODY)


@dataclass(frozen=True)
class PageLayout:
    number: int
    steps: Tuple[int, ...]  # 1-based step numbers drawn on this page
    sections: Tuple[str, ...]  # top to bottom
    content_bottom: float  # lowest y reached by body content, in points


@dataclass(frozen=True)
class RenderedPdf:
    content: bytes
    filename: str
    pages: Tuple[PageLayout, ...]

    @property
    def page_count(self) -> int:
        return len(self.pages)


# ----------------------------------------------------------------------
# TEXT
# ----------------------------------------------------------------------
def _clean(value: Optional[str]) -> str:
    return strip_control_chars(value).strip()


def _para(value: Optional[str], style: ParagraphStyle) -> Paragraph:
    return Paragraph(escape(_clean(value)), style)


def _fit_para(
    value: Optional[str], style: ParagraphStyle, width: float, max_height: float
) -> Paragraph:
    """
    Paragraph for ``value`` no taller than ``max_height`` once wrapped to
    ``width``. Longer text keeps its longest prefix that still fits,
    followed by "...".
    """
    text = _clean(value)
    para = Paragraph(escape(text), style)
    if para.wrap(width, PAGE_H)[1] <= max_height:
        return para

    lo, hi = 0, len(text)
    while lo < hi:
        mid = (lo + hi + 1) // 2
        candidate = Paragraph(escape(text[:mid].rstrip() + ELLIPSIS), style)
        if candidate.wrap(width, PAGE_H)[1] <= max_height:
            lo = mid
        else:
            hi = mid - 1
    return Paragraph(escape(text[:lo].rstrip() + ELLIPSIS), style)


# ----------------------------------------------------------------------
# PAGINATION
# ----------------------------------------------------------------------
def plan_pages(
    row_heights: Sequence[float], first_page_capacity: float, page_capacity: float
) -> List[List[int]]:
    """
    Packs rows (by index) into pages without splitting a row.

    Capacities are the vertical space left for body rows once the header row
    is accounted for. A row that does not fit moves to a new page; a row
    taller than a whole page is placed alone on a fresh page. The first page
    may end up without rows when not even the first row fits there.
    """
    pages: List[List[int]] = [[]]
    remaining = first_page_capacity
    for idx, height in enumerate(row_heights):
        while height > remaining:
            if not pages[-1] and len(pages) > 1:
                break
            pages.append([])
            remaining = page_capacity
        pages[-1].append(idx)
        remaining -= height
    return pages


def _row_height(cells: Sequence[Paragraph], widths: Sequence[float]) -> float:
    tallest = 0.0
    for cell, width in zip(cells, widths):
        _, h = cell.wrap(width - 2 * CELL_PADDING, PAGE_H)
        tallest = max(tallest, h)
    return tallest + 2 * CELL_PADDING


def _step_cells(step: int, point: IsolationPoint, max_row_h: float) -> List[Paragraph]:
    values = (str(step), point.kks, point.unit, point.description, point.isolation_method)
    return [
        _fit_para(v, style, width - 2 * CELL_PADDING, max_row_h - 2 * CELL_PADDING)
        for v, style, width in zip(values, STEP_CELL_STYLES, STEP_COL_WIDTHS)
    ]


def _header_cells() -> List[Paragraph]:
    return [_para(c, _HEAD) for c in STEP_COLUMNS]


def _table_style(body_rows: int) -> TableStyle:
    cmds = [
        ("BACKGROUND", (0, 0), (-1, 0), INDUSTRIAL_BLUE),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), CELL_PADDING),
        ("RIGHTPADDING", (0, 0), (-1, -1), CELL_PADDING),
        ("TOPPADDING", (0, 0), (-1, -1), CELL_PADDING),
        ("BOTTOMPADDING", (0, 0), (-1, -1), CELL_PADDING),
    ]
    if body_rows:
        cmds.append(("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, STRIPE]))
    return TableStyle(cmds)


# ----------------------------------------------------------------------
# DRAWING
# ----------------------------------------------------------------------
def _draw_banner(c: pdf_canvas.Canvas, product_name: str) -> None:
    c.setFillColor(INDUSTRIAL_BLUE)
    c.rect(0, PAGE_H - BANNER_H, PAGE_W, BANNER_H, stroke=0, fill=1)
    c.setFillColor(colors.white)
    c.setFont("Helvetica-Bold", 20)
    c.drawCentredString(PAGE_W / 2, PAGE_H - 12 * mm, "LOCKOUT/TAGOUT PROCEDURE")
    c.setFont("Helvetica", 12)
    c.drawCentredString(PAGE_W / 2, PAGE_H - 18 * mm, product_name)
    c.setFillColor(colors.black)


def _draw_safety_warning(c: pdf_canvas.Canvas, top: float) -> None:
    c.setFillColor(SAFETY_ORANGE)
    c.rect(MARGIN, top - WARNING_BOX_H, CONTENT_W, WARNING_BOX_H, stroke=0, fill=1)
    c.setFillColor(colors.white)
    c.setFont("Helvetica-Bold", 14)
    c.drawCentredString(PAGE_W / 2, top - 8 * mm, WARNING_TITLE)
    c.setFont("Helvetica", 10)
    for i, line in enumerate(WARNING_LINES):
        c.drawCentredString(PAGE_W / 2, top - (15 + 5 * i) * mm, line)
    c.setFillColor(colors.black)


def _metadata_table(metadata: ProcedureMetadata) -> Table:
    rows = [
        ("JSA Number:", metadata.jsa_number),
        ("Work Order:", metadata.work_order),
        ("Job Description:", metadata.job_description),
    ]
    value_w = META_COL_WIDTHS[1] - 2 * CELL_PADDING
    data = [[_para("Field", _HEAD), _para("Value", _HEAD)]]
    for label, value in rows:
        data.append([
            _para(label, _META_LABEL),
            _fit_para(value or NOT_SPECIFIED, _META, value_w, META_VALUE_MAX_H[label]),
        ])
    table = Table(data, colWidths=META_COL_WIDTHS)
    table.setStyle(_table_style(0))
    return table


def _signature_table() -> Table:
    data = [
        [_para(role, _META_LABEL), "", _para("Date:", _META_LABEL), ""]
        for role in SIGN_OFF_ROLES
    ]
    table = Table(data, colWidths=SIGNATURE_COL_WIDTHS)
    table.setStyle(TableStyle([
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("LEFTPADDING", (0, 0), (-1, -1), SIGNATURE_PADDING),
        ("RIGHTPADDING", (0, 0), (-1, -1), SIGNATURE_PADDING),
        ("TOPPADDING", (0, 0), (-1, -1), SIGNATURE_PADDING),
        ("BOTTOMPADDING", (0, 0), (-1, -1), SIGNATURE_PADDING),
    ]))
    return table


def _closing_height(signature_h: float) -> float:
    return 10 * mm + signature_h + 6 * mm + REMINDER_BOX_H


def _draw_closing(
    c: pdf_canvas.Canvas, top: float, signatures: Table, signature_h: float
) -> float:
    """Sign-off table and reminders box below ``top``; returns the lowest y drawn."""
    c.setFillColor(colors.black)
    c.setFont("Helvetica-Bold", 12)
    c.drawString(MARGIN, top - 5 * mm, SIGNATURE_TITLE)
    signatures.drawOn(c, MARGIN, top - 10 * mm - signature_h)

    box_top = top - 10 * mm - signature_h - 6 * mm
    c.setFillColor(REMINDER_FILL)
    c.rect(MARGIN, box_top - REMINDER_BOX_H, CONTENT_W, REMINDER_BOX_H, stroke=0, fill=1)
    c.setFillColor(colors.black)
    c.setFont("Helvetica-Bold", 10)
    c.drawString(MARGIN + 5 * mm, box_top - 8 * mm, REMINDERS_TITLE)
    c.setFont("Helvetica", 10)
    for i, line in enumerate(SAFETY_REMINDERS):
        c.drawString(MARGIN + 5 * mm, box_top - (14 + 4 * i) * mm, f"• {line}")
    return box_top - REMINDER_BOX_H


def _draw_footer(
    c: pdf_canvas.Canvas, page: int, total: int, product_name: str, stamp: str
) -> None:
    c.setStrokeColor(INDUSTRIAL_BLUE)
    c.setLineWidth(0.5)
    c.line(MARGIN, FOOTER_LINE_Y, PAGE_W - MARGIN, FOOTER_LINE_Y)
    c.setFont("Helvetica", 8)
    c.setFillColor(FOOTER_GREY)
    c.drawString(MARGIN, FOOTER_TEXT_Y, product_name)
    c.drawCentredString(PAGE_W / 2, FOOTER_TEXT_Y, f"Generated: {stamp}")
    c.drawRightString(PAGE_W - MARGIN, FOOTER_TEXT_Y, f"Page {page} of {total}")
    c.setFillColor(colors.black)


def render_pdf(
    ordered_points: Sequence[IsolationPoint],
    metadata: Optional[ProcedureMetadata] = None,
    generated_at: Optional[datetime] = None,
    product_name: str = DEFAULT_PRODUCT_NAME,
    compress: bool = True,
) -> RenderedPdf:
    """
    Renders the procedure document.

    ``ordered_points`` must carry the effective isolation method of each
    entry. Raises EmptyProcedureError when there is nothing to render.
    ``compress=False`` leaves the page streams readable as plain text.
    """
    if not ordered_points:
        raise EmptyProcedureError("Cannot export a LOTO procedure without isolation points.")

    metadata = metadata or ProcedureMetadata()
    generated_at = generated_at or datetime.now()
    stamp = generated_at.strftime("%Y-%m-%d %H:%M:%S")
    product_name = _clean(product_name) or DEFAULT_PRODUCT_NAME
    doc_name = _clean(metadata.name) or DEFAULT_DOCUMENT_NAME

    # --- measure the first page header section
    name_para = _fit_para(
        doc_name.upper(), _DOC_NAME, CONTENT_W, DOC_NAME_MAX_LINES * _DOC_NAME.leading
    )
    _, name_h = name_para.wrap(CONTENT_W, PAGE_H)
    name_top = PAGE_H - BANNER_H - 6 * mm
    warning_top = name_top - name_h - 6 * mm

    meta_table = _metadata_table(metadata)
    _, meta_h = meta_table.wrap(CONTENT_W, PAGE_H)
    meta_top = warning_top - WARNING_BOX_H - 6 * mm

    heading_y = meta_top - meta_h - 10 * mm
    first_table_top = heading_y - 6 * mm
    next_table_top = PAGE_H - MARGIN

    # --- measure rows and plan the pages
    header_h = _row_height(_header_cells(), STEP_COL_WIDTHS)
    page_capacity = next_table_top - BODY_BOTTOM - header_h
    row_cells = [
        _step_cells(i, p, page_capacity) for i, p in enumerate(ordered_points, start=1)
    ]
    row_heights = [_row_height(cells, STEP_COL_WIDTHS) for cells in row_cells]

    plan = plan_pages(
        row_heights,
        first_page_capacity=first_table_top - BODY_BOTTOM - header_h,
        page_capacity=page_capacity,
    )

    # --- sign-off block goes under the last table, or on a page of its own
    signatures = _signature_table()
    _, signature_h = signatures.wrap(CONTENT_W, PAGE_H)
    last_top = first_table_top if len(plan) == 1 else next_table_top
    last_bottom = last_top - header_h - sum(row_heights[i] for i in plan[-1])
    closing_top = last_bottom - SECTION_GAP
    if closing_top - _closing_height(signature_h) < BODY_BOTTOM:
        plan.append([])
        closing_top = next_table_top
    total_pages = len(plan)

    # --- draw
    buffer = io.BytesIO()
    c = pdf_canvas.Canvas(
        buffer, pagesize=PAGE_SIZE, invariant=1, pageCompression=1 if compress else 0
    )
    c.setTitle(f"LOTO Procedure - {doc_name}")
    c.setAuthor(product_name)

    layouts: List[PageLayout] = []
    for page_no, row_indexes in enumerate(plan, start=1):
        sections: List[str] = []
        if page_no == 1:
            _draw_banner(c, product_name)
            name_para.drawOn(c, MARGIN, name_top - name_h)
            _draw_safety_warning(c, warning_top)
            meta_table.drawOn(c, MARGIN, meta_top - meta_h)
            c.setFont("Helvetica-Bold", 14)
            c.drawString(MARGIN, heading_y, "ISOLATION PROCEDURE STEPS")
            sections.extend((BANNER, SAFETY_WARNING, METADATA))
            top = first_table_top
        else:
            top = next_table_top
        bottom = top

        if row_indexes:
            data = [_header_cells()] + [row_cells[i] for i in row_indexes]
            heights = [header_h] + [row_heights[i] for i in row_indexes]
            table = Table(data, colWidths=STEP_COL_WIDTHS, rowHeights=heights)
            table.setStyle(_table_style(len(row_indexes)))
            _, table_h = table.wrapOn(c, CONTENT_W, top - BODY_BOTTOM)
            table.drawOn(c, MARGIN, top - table_h)
            bottom = top - table_h
            sections.append(STEPS)

        if page_no == total_pages:
            bottom = _draw_closing(c, closing_top, signatures, signature_h)
            sections.extend((SIGNATURES, REMINDERS))

        _draw_footer(c, page_no, total_pages, product_name, stamp)
        c.showPage()
        layouts.append(
            PageLayout(
                number=page_no,
                steps=tuple(i + 1 for i in row_indexes),
                sections=tuple(sections),
                content_bottom=bottom,
            )
        )

    c.save()
    logger.info(
        f"[export] PDF rendered: {len(ordered_points)} step(s), {total_pages} page(s)"
    )
    return RenderedPdf(
        content=buffer.getvalue(),
        filename=export_filename(metadata.name, "pdf", generated_at.date()),
        pages=tuple(layouts),
    )
