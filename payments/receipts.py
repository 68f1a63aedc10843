"""
PDF cash receipts for completed cash payments
"""
from io import BytesIO

from django.conf import settings
from django.utils import timezone
from django.utils.html import escape
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from core.exceptions import BusinessLogicError
from residences.access import get_membership


def _styles():
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(
        name='ReceiptTitle',
        parent=styles['Heading1'],
        fontSize=22,
        spaceAfter=10,
        alignment=TA_CENTER,
        textColor=colors.HexColor('#1e40af'),
    ))
    styles.add(ParagraphStyle(
        name='ReceiptSubtitle',
        parent=styles['Normal'],
        fontSize=11,
        alignment=TA_CENTER,
        textColor=colors.HexColor('#64748b'),
        spaceAfter=16,
    ))
    styles.add(ParagraphStyle(
        name='AmountLarge',
        parent=styles['Normal'],
        fontSize=26,
        fontName='Helvetica-Bold',
        alignment=TA_CENTER,
        textColor=colors.HexColor('#10b981'),
    ))
    styles.add(ParagraphStyle(
        name='Footer',
        parent=styles['Normal'],
        fontSize=9,
        alignment=TA_CENTER,
        textColor=colors.HexColor('#94a3b8'),
    ))
    return styles


def build_cash_receipt(payment):
    """
    Generate the cash receipt of a payment.

    Args:
        payment: completed cash Payment

    Returns:
        bytes of the PDF document

    Raises:
        BusinessLogicError: if the payment has no receipt (not completed, or not cash)
    """
    if not payment.receipt_available:
        raise BusinessLogicError(
            "Receipts are only available for completed cash payments",
            code="RECEIPT_UNAVAILABLE",
        )

    currency = getattr(settings, 'RECEIPT_CURRENCY', 'MAD')
    residence = payment.residence
    resident = payment.user
    membership = get_membership(resident.id, residence.id)
    paid_at = timezone.localtime(payment.paid_at) if payment.paid_at else timezone.localtime(payment.created_at)

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=20 * mm,
        leftMargin=20 * mm,
        topMargin=20 * mm,
        bottomMargin=20 * mm,
        title=f"Receipt {payment.receipt_number}",
    )
    styles = _styles()
    elements = []

    elements.append(Paragraph(escape(residence.name), styles['ReceiptTitle']))
    address = ", ".join(part for part in [residence.address, residence.city] if part)
    elements.append(Paragraph(escape(address), styles['ReceiptSubtitle']))

    elements.append(Paragraph("CASH RECEIPT", styles['ReceiptTitle']))
    elements.append(Paragraph(f"Receipt No: {payment.receipt_number}", styles['ReceiptSubtitle']))
    elements.append(Paragraph(f"{payment.amount:,.2f} {currency}", styles['AmountLarge']))
    elements.append(Spacer(1, 20))

    details = [
        ['Received from', resident.display_name],
        ['Apartment', membership.apartment_number if membership else '-'],
        ['For', payment.fee.title if payment.fee_id else (payment.note or 'Contribution')],
        ['Payment method', payment.get_method_display()],
        ['Payment date', paid_at.strftime('%d/%m/%Y %H:%M')],
    ]
    if payment.fee_id and payment.fee.period_start:
        details.append([
            'Period',
            f"{payment.fee.period_start.strftime('%d/%m/%Y')} - {payment.fee.period_end.strftime('%d/%m/%Y')}",
        ])

    table = Table(details, colWidths=[150, 300])
    table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica'),
        ('FONTNAME', (1, 0), (1, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 11),
        ('TEXTCOLOR', (0, 0), (0, -1), colors.HexColor('#64748b')),
        ('TOPPADDING', (0, 0), (-1, -1), 8),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
        ('LINEBELOW', (0, 0), (-1, -2), 0.5, colors.HexColor('#e2e8f0')),
        ('LINEBELOW', (0, -1), (-1, -1), 1.5, colors.HexColor('#1e40af')),
    ]))
    elements.append(table)
    elements.append(Spacer(1, 40))

    received_by = payment.verified_by.display_name if payment.verified_by else "Syndic"
    signatures = Table(
        [
            ['_' * 30, '_' * 30],
            [resident.display_name, received_by],
            ['Resident', 'Received by'],
        ],
        colWidths=[doc.width / 2, doc.width / 2],
    )
    signatures.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
        ('FONTNAME', (0, 1), (-1, 1), 'Helvetica-Bold'),
        ('TEXTCOLOR', (0, 2), (-1, 2), colors.HexColor('#64748b')),
        ('TOPPADDING', (0, 0), (-1, -1), 5),
    ]))
    elements.append(signatures)
    elements.append(Spacer(1, 30))

    elements.append(Paragraph(
        f"Generated on {timezone.localtime().strftime('%d/%m/%Y %H:%M')}",
        styles['Footer'],
    ))
    elements.append(Paragraph("This is a computer-generated receipt.", styles['Footer']))

    doc.build(elements)
    return buffer.getvalue()
