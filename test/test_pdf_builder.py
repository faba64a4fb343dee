import io

from lumina.db_manager import seed_clients, seed_invoices
from lumina.entities import AppSettings
from lumina.pdf_builder import InvoicePDF


def render(invoice, client, settings):
    mem = io.BytesIO()
    InvoicePDF(invoice, client, settings).generate(mem)
    return mem.getvalue()


def test_generate_pdf():
    invoice = seed_invoices()[0]
    data = render(invoice, seed_clients()[0], AppSettings())
    assert data.startswith(b"%PDF")


def test_generate_pdf_for_unknown_client_and_odd_settings(tmp_path):
    invoice = seed_invoices()[1]
    invoice.notes = "Line one\nLine <two> & more"
    settings = AppSettings(accent_color="not-a-colour", show_logo=False, currency_symbol="€")
    target = tmp_path / "invoice.pdf"

    InvoicePDF(invoice, None, settings).generate(str(target))

    assert target.read_bytes().startswith(b"%PDF")
