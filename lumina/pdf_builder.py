from reportlab.lib.pagesizes import A4
from reportlab.lib import colors
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from xml.sax.saxutils import escape
import logging
import os

from . import calculations
from .calculations import format_money, UNKNOWN_CLIENT

logger = logging.getLogger(__name__)


def _accent(settings):
    try:
        return colors.HexColor(settings.accent_color)
    except (ValueError, TypeError, IndexError):
        return colors.Color(0.2, 0.2, 0.2)


def _text(value):
    # Paragraph parses its input as markup
    return escape(str(value or ""))


class InvoicePDF:
    def __init__(self, invoice, client, settings):
        self.invoice = invoice
        self.client = client
        self.settings = settings
        self.symbol = settings.currency_symbol or ""

        # Arial gives better unicode coverage when the host has it
        self.font_name = 'Helvetica'
        self.bold_font_name = 'Helvetica-Bold'

        try:
            font_dir = os.path.join(os.environ.get('WINDIR', 'C:\\Windows'), 'Fonts')
            arial_path = os.path.join(font_dir, 'arial.ttf')
            arial_bd_path = os.path.join(font_dir, 'arialbd.ttf')

            if os.path.exists(arial_path):
                pdfmetrics.registerFont(TTFont('Arial', arial_path))
                self.font_name = 'Arial'

            if os.path.exists(arial_bd_path):
                pdfmetrics.registerFont(TTFont('Arial-Bold', arial_bd_path))
                self.bold_font_name = 'Arial-Bold'
            elif self.font_name == 'Arial':
                self.bold_font_name = 'Arial'

        except Exception as e:
            logger.warning("Could not load system font: %s", e)

    def money(self, value):
        return _text(format_money(value, self.symbol))

    def generate(self, target):
        """Render to ``target``, a filename or a binary file object."""
        doc = SimpleDocTemplate(target, pagesize=A4, rightMargin=40, leftMargin=40, topMargin=40, bottomMargin=40)
        story = []
        styles = getSampleStyleSheet()
        accent = _accent(self.settings)

        normal_style = ParagraphStyle('Normal_Custom', parent=styles['Normal'], fontName=self.font_name, fontSize=10, leading=14)
        muted_style = ParagraphStyle('Muted_Custom', parent=normal_style, textColor=colors.gray)
        white_bold_style = ParagraphStyle('WhiteBold_Custom', parent=styles['Normal'], fontName=self.bold_font_name, fontSize=10, leading=14, textColor=colors.white)
        bold_style = ParagraphStyle('Bold_Custom', parent=styles['Normal'], fontName=self.bold_font_name, fontSize=10, leading=14)
        title_style = ParagraphStyle('Title_Custom', parent=styles['Heading1'], fontName=self.bold_font_name, fontSize=24, spaceAfter=20, alignment=2, textColor=accent)

        # ------------------------------------------------------------------
        # Header: company (left) | INVOICE title (right)
        # ------------------------------------------------------------------
        company_info = []
        if self.settings.show_logo:
            company_info.append(Paragraph(_text(self.settings.company_name), ParagraphStyle('Company', parent=bold_style, fontSize=14, leading=18, textColor=accent)))
        for line in (self.settings.company_address or "").split('\n'):
            company_info.append(Paragraph(_text(line), muted_style))
        company_info.append(Paragraph(_text(self.settings.company_email), muted_style))

        invoice_title = [
            Paragraph("INVOICE", title_style),
            Paragraph(f"#{_text(self.invoice.number)}", ParagraphStyle('InvNum', parent=normal_style, alignment=2, fontSize=12, textColor=colors.gray)),
        ]

        header_table = Table([[company_info, invoice_title]], colWidths=[3.5*inch, 2.5*inch])
        header_table.setStyle(TableStyle([
            ('VALIGN', (0,0), (-1,-1), 'TOP'),
            ('LEFTPADDING', (0,0), (-1,-1), 0),
            ('RIGHTPADDING', (0,0), (-1,-1), 0),
        ]))
        story.append(header_table)
        story.append(Spacer(1, 0.5*inch))

        # ------------------------------------------------------------------
        # Bill To & details
        # ------------------------------------------------------------------
        bill_to_content = [Paragraph("Bill To:", muted_style)]
        if self.client:
            bill_to_content.append(Paragraph(_text(self.client.name), bold_style))
            for line in (self.client.address or "").split('\n'):
                bill_to_content.append(Paragraph(_text(line), normal_style))
            bill_to_content.append(Paragraph(_text(self.client.email), normal_style))
        else:
            bill_to_content.append(Paragraph(UNKNOWN_CLIENT, bold_style))

        def detail_label(text):
            return Paragraph(text, ParagraphStyle('DetailLabel', parent=normal_style, alignment=2, textColor=colors.gray))

        def detail_value(text):
            return Paragraph(_text(text), ParagraphStyle('DetailValue', parent=normal_style, alignment=2))

        total = calculations.total(self.invoice)
        details_data = [
            [detail_label("Invoice Date:"), detail_value(self.invoice.date)],
            [detail_label("Due Date:"), detail_value(self.invoice.due_date)],
            [detail_label("Status:"), detail_value(calculations.effective_status(self.invoice).value)],
            [Paragraph("Balance Due:", ParagraphStyle('BalLabel', parent=bold_style, alignment=2)),
             Paragraph(self.money(total), ParagraphStyle('BalValue', parent=bold_style, alignment=2))],
        ]

        details_table = Table(details_data, colWidths=[2*inch, 1.2*inch])
        details_table.setStyle(TableStyle([
            ('VALIGN', (0,0), (-1,-1), 'MIDDLE'),
            ('ALIGN', (1,0), (1,-1), 'RIGHT'),
            ('BACKGROUND', (0,3), (-1,3), colors.whitesmoke),
            ('PADDING', (0,3), (-1,3), 6),
            ('BOTTOMPADDING', (0,0), (-1,-2), 2),
            ('TOPPADDING', (0,0), (-1,-2), 2),
        ]))

        mid_table = Table([[bill_to_content, details_table]], colWidths=[3.0*inch, 3.2*inch])
        mid_table.setStyle(TableStyle([
            ('VALIGN', (0,0), (-1,-1), 'TOP'),
            ('LEFTPADDING', (0,0), (-1,-1), 0),
        ]))
        story.append(mid_table)
        story.append(Spacer(1, 0.5*inch))

        # ------------------------------------------------------------------
        # Line items
        # ------------------------------------------------------------------
        items_data = [[
            Paragraph("Item", white_bold_style),
            Paragraph("Quantity", white_bold_style),
            Paragraph("Price", white_bold_style),
            Paragraph("Amount", white_bold_style),
        ]]

        for item in self.invoice.items:
            items_data.append([
                Paragraph(_text(item.description), normal_style),
                Paragraph(f"{item.quantity:g}", normal_style),
                Paragraph(self.money(item.price), normal_style),
                Paragraph(self.money(calculations.line_amount(item)), normal_style),
            ])

        items_table = Table(items_data, colWidths=[3*inch, 1*inch, 1*inch, 1*inch])
        items_table.setStyle(TableStyle([
            ('BACKGROUND', (0,0), (-1,0), accent),
            ('TEXTCOLOR', (0,0), (-1,0), colors.white),
            ('ALIGN', (0,0), (-1,-1), 'LEFT'),
            ('FONTNAME', (0,0), (-1,-1), self.font_name),
            ('VALIGN', (0,0), (-1,-1), 'MIDDLE'),
            ('PADDING', (0,0), (-1,-1), 10),
        ]))
        story.append(items_table)
        story.append(Spacer(1, 0.2*inch))

        # ------------------------------------------------------------------
        # Totals
        # ------------------------------------------------------------------
        totals_data = [
            [Paragraph("Subtotal:", bold_style), Paragraph(self.money(calculations.subtotal(self.invoice)), normal_style)],
            [Paragraph(f"Tax ({self.invoice.tax_rate:g}%):", bold_style), Paragraph(self.money(calculations.tax_amount(self.invoice)), normal_style)],
            [Paragraph("Total:", bold_style), Paragraph(f"{_text(self.invoice.currency)} {self.money(total)}", bold_style)],
        ]

        totals_table = Table(totals_data, colWidths=[1.5*inch, 1.5*inch])
        totals_table.setStyle(TableStyle([
            ('ALIGN', (0,0), (-1,-1), 'RIGHT'),
            ('VALIGN', (0,0), (-1,-1), 'TOP'),
        ]))

        # push totals to the right
        story.append(Table([[None, totals_table]], colWidths=[3*inch, 3*inch]))
        story.append(Spacer(1, 0.5*inch))

        # ------------------------------------------------------------------
        # Notes
        # ------------------------------------------------------------------
        if self.invoice.notes:
            story.append(Paragraph("Notes:", bold_style))
            story.append(Spacer(1, 5))
            for line in self.invoice.notes.split('\n'):
                story.append(Paragraph(_text(line), normal_style))

        doc.build(story)
