"""Render a commission statement as a downloadable PDF."""
import io
from decimal import Decimal
from typing import List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import (
    SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer, HRFlowable,
)

from agent_portal.core.config import settings
from agent_portal.core.periods import local_now
from agent_portal.schemas.commission import CommissionStatement, StatementLine

BRAND = colors.HexColor('#0f4c81')
INK = colors.HexColor('#1f2933')
MUTED = colors.HexColor('#7b8794')
RULE = colors.HexColor('#d9e2ec')
SHADE = colors.HexColor('#f0f4f8')
PAID_GREEN = colors.HexColor('#2f8132')

LINE_COLUMNS = [
    # (heading, width, right aligned)
    ("Date", 34 * mm, False),
    ("Retailer", 64 * mm, False),
    ("Voucher", 46 * mm, False),
    ("Sale Value", 30 * mm, True),
    ("Commission", 30 * mm, True),
    ("Status", 22 * mm, False),
]


def _styles():
    base = getSampleStyleSheet()
    custom = {
        'Title': ParagraphStyle('StatementTitle', parent=base['Title'], fontSize=16,
                                textColor=BRAND, alignment=0, spaceAfter=2),
        'Period': ParagraphStyle('StatementPeriod', parent=base['Normal'], fontSize=10, textColor=MUTED),
        'Section': ParagraphStyle('StatementSection', parent=base['Heading4'], textColor=INK,
                                  spaceBefore=10, spaceAfter=3),
        'Cell': ParagraphStyle('StatementCell', parent=base['Normal'], fontSize=8, leading=10),
        'Footer': ParagraphStyle('StatementFooter', parent=base['Normal'], fontSize=7,
                                 textColor=MUTED, alignment=TA_RIGHT),
    }
    custom['CellRight'] = ParagraphStyle('StatementCellRight', parent=custom['Cell'], alignment=TA_RIGHT)
    return custom


def _rand(amount: Decimal) -> str:
    return f"R {amount:,.2f}"


def _line_table(lines: List[StatementLine], styles) -> Table:
    def cell(text, right=False):
        return Paragraph(text, styles['CellRight' if right else 'Cell'])

    rows = [[cell(f"<b>{heading}</b>", right) for heading, _, right in LINE_COLUMNS]]
    for line in lines:
        rows.append([
            cell(f"{line.date:%Y-%m-%d %H:%M}"),
            cell(escape((line.retailer_name or "-")[:40])),
            cell(escape(line.type[:30])),
            cell(_rand(line.value), right=True),
            cell(_rand(line.commission), right=True),
            cell(line.status),
        ])
    if not lines:
        rows.append([cell("<i>No entries in this period</i>")] + [""] * (len(LINE_COLUMNS) - 1))

    table = Table(rows, colWidths=[width for _, width, _ in LINE_COLUMNS], repeatRows=1)
    commands = [
        ('BACKGROUND', (0, 0), (-1, 0), SHADE),
        ('LINEBELOW', (0, 0), (-1, 0), 0.8, BRAND),
        ('LINEBELOW', (0, 1), (-1, -1), 0.25, RULE),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('TOPPADDING', (0, 0), (-1, -1), 2),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 2),
    ]
    if not lines:
        commands.append(('SPAN', (0, 1), (-1, 1)))
    table.setStyle(TableStyle(commands))
    return table


def _summary_table(statement: CommissionStatement) -> Table:
    stats = statement.stats
    table = Table(
        [
            ["Total commission earned", _rand(stats.total_commission)],
            ["Commission paid out", _rand(stats.paid_commission)],
            ["Pending commission", _rand(stats.pending_commission)],
            ["Sales in period", str(stats.transaction_count)],
        ],
        colWidths=[60 * mm, 40 * mm],
        hAlign='LEFT',
    )
    table.setStyle(TableStyle([
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('TEXTCOLOR', (0, 0), (0, -1), MUTED),
        ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
        ('BOX', (0, 0), (-1, -1), 0.5, RULE),
        ('LINEABOVE', (0, 2), (-1, 2), 0.8, BRAND),
        ('FONTNAME', (0, 2), (-1, 2), 'Helvetica-Bold'),
        ('TEXTCOLOR', (1, 2), (1, 2), PAID_GREEN),
    ]))
    return table


def generate_statement_pdf(statement: CommissionStatement, agent_name: str) -> bytes:
    """Landscape A4: header, reconciled totals, then pending and paid line items."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4),
        leftMargin=12 * mm,
        rightMargin=12 * mm,
        topMargin=12 * mm,
        bottomMargin=12 * mm,
        title=f"Commission Statement {statement.start_date} to {statement.end_date}",
        author=settings.APP_NAME,
    )
    styles = _styles()

    story = [
        Paragraph(f"Commission Statement: {escape(agent_name)}", styles['Title']),
        Paragraph(f"{statement.start_date:%d %b %Y} to {statement.end_date:%d %b %Y}", styles['Period']),
        HRFlowable(width="100%", thickness=1.2, color=BRAND, spaceBefore=4, spaceAfter=6),
        _summary_table(statement),
        Paragraph(f"Pending: {len(statement.pending_transactions)} sales", styles['Section']),
        _line_table(statement.pending_transactions, styles),
        Paragraph(f"Paid: {len(statement.paid_transactions)} payouts", styles['Section']),
        _line_table(statement.paid_transactions, styles),
        Spacer(1, 8 * mm),
        Paragraph(f"Generated {local_now():%d %b %Y %H:%M} ({settings.TIMEZONE})", styles['Footer']),
    ]

    doc.build(story)
    return buffer.getvalue()
