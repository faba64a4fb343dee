from flask import Flask, Blueprint, current_app, request, jsonify, send_file
from flask_cors import CORS
from flask_migrate import Migrate, upgrade
import datetime
import io
import json
import os
import socket
import sys
import webbrowser
from threading import Timer

from .models import db
from .store import DatabaseStore
from .db_manager import StorageService
from .entities import Client, Invoice, InvoiceStatus, DocumentType, SettingsError
from .sequences import resolve_type
from .pdf_builder import InvoicePDF
from . import calculations
from . import gemini_service
from .gemini_service import AIServiceError

api = Blueprint('api', __name__, url_prefix='/api')
migrate = Migrate()

PORT = 5000


# Database Config
def get_db_path(app):
    if getattr(sys, 'frozen', False):
        base_path = os.path.join(os.path.dirname(sys.executable), 'data')
    elif os.environ.get('FLASK_ENV') == 'production':
        # instance folder is volume-mapped in Docker
        base_path = app.instance_path
    else:
        base_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'data')
    os.makedirs(base_path, exist_ok=True)
    return os.path.join(base_path, 'invoices.db')


def init_database(app):
    if getattr(sys, 'frozen', False):
        migration_dir = os.path.join(sys._MEIPASS, 'migrations')
    else:
        migration_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'migrations')

    if os.path.exists(migration_dir):
        try:
            upgrade(directory=migration_dir)
            app.logger.info("Database migrated successfully.")
        except Exception as e:
            app.logger.error("Migration failed: %s. Attempting db.create_all() as fallback.", e)
            db.create_all()
    else:
        db.create_all()
        app.logger.info("Database tables created using db.create_all().")


def create_app(test_config=None):
    app = Flask(__name__)
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    if test_config:
        app.config.update(test_config)
    if not app.config.get('SQLALCHEMY_DATABASE_URI'):
        app.config['SQLALCHEMY_DATABASE_URI'] = (
            os.environ.get('LUMINA_DATABASE_URI') or f'sqlite:///{get_db_path(app)}'
        )

    db.init_app(app)
    migrate.init_app(app, db)
    CORS(app)

    with app.app_context():
        init_database(app)

    app.extensions['lumina_storage'] = StorageService(DatabaseStore())
    app.register_blueprint(api)
    return app


def get_storage():
    return current_app.extensions['lumina_storage']


def invoice_payload(invoice, clients, today=None):
    data = invoice.to_dict()
    data.update({
        'clientName': calculations.client_name(invoice, clients),
        'subtotal': calculations.subtotal(invoice),
        'taxAmount': calculations.tax_amount(invoice),
        'total': calculations.total(invoice),
        'displayStatus': calculations.effective_status(invoice, today).value,
    })
    return data


def error(message, status):
    return jsonify({'error': message}), status


def json_object():
    """Request body as a dict; {} when absent, None when it is not an object."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        return None
    return data


# ----------------------------------------------------------------------
# Clients
# ----------------------------------------------------------------------
@api.route('/clients', methods=['GET', 'POST'])
def clients():
    storage = get_storage()
    if request.method == 'POST':
        data = json_object()
        if data is None:
            return error('Expected a JSON object', 400)
        client = storage.save_client(Client.from_dict(data))
        return jsonify(client.to_dict()), 201

    return jsonify([c.to_dict() for c in storage.get_clients()])


@api.route('/clients/<client_id>', methods=['GET', 'PUT', 'DELETE'])
def manage_client(client_id):
    storage = get_storage()
    if request.method == 'DELETE':
        storage.delete_client(client_id)
        return jsonify({'message': 'Client deleted successfully'})

    client = storage.get_client(client_id)
    if not client:
        return error('Client not found', 404)

    if request.method == 'PUT':
        data = json_object()
        if data is None:
            return error('Expected a JSON object', 400)
        data = dict(data, id=client_id)
        client = storage.save_client(Client.from_dict(data))

    return jsonify(client.to_dict())


@api.route('/clients/<client_id>/invoices')
def client_invoices(client_id):
    storage = get_storage()
    client = storage.get_client(client_id)
    if not client:
        return error('Client not found', 404)

    try:
        rows = storage.get_invoices(request.args.get('status'))
    except ValueError as e:
        return error(str(e), 400)
    invoices = [i for i in rows if i.client_id == client_id]
    return jsonify({
        'client': client.to_dict(),
        'invoices': [invoice_payload(i, [client]) for i in invoices],
    })


# ----------------------------------------------------------------------
# Invoices
# ----------------------------------------------------------------------
@api.route('/invoices', methods=['GET', 'POST'])
def invoices():
    storage = get_storage()
    try:
        doc_type = resolve_type(request.args.get('doc_type', DocumentType.INVOICE.value))
    except ValueError as e:
        return error(str(e), 400)

    if request.method == 'POST':
        data = json_object()
        if data is None:
            return error('Expected a JSON object', 400)
        invoice = Invoice.from_dict(data)
        if not data.get('number'):
            invoice.number = storage.sequences.peek_number(doc_type)
        if storage.get_invoice(invoice.id):
            return error('Invoice already exists', 409)
        storage.create_invoice(invoice, doc_type)
        return jsonify(invoice_payload(invoice, storage.get_clients())), 201

    try:
        rows = storage.get_invoices(request.args.get('status'))
    except ValueError as e:
        return error(str(e), 400)
    client_list = storage.get_clients()
    return jsonify([invoice_payload(i, client_list) for i in rows])


@api.route('/invoices/new')
def new_invoice():
    try:
        doc_type = resolve_type(request.args.get('doc_type', DocumentType.INVOICE.value))
    except ValueError as e:
        return error(str(e), 400)
    return jsonify(get_storage().new_invoice_draft(doc_type).to_dict())


@api.route('/invoices/<invoice_id>', methods=['GET', 'PUT', 'DELETE'])
def manage_invoice(invoice_id):
    storage = get_storage()
    if request.method == 'DELETE':
        storage.delete_invoice(invoice_id)
        return jsonify({'message': 'Invoice deleted successfully'})

    invoice = storage.get_invoice(invoice_id)
    if not invoice:
        return error('Invoice not found', 404)

    if request.method == 'PUT':
        data = json_object()
        if data is None:
            return error('Expected a JSON object', 400)
        data = dict(data, id=invoice_id)
        invoice = storage.save_invoice(Invoice.from_dict(data))

    return jsonify(invoice_payload(invoice, storage.get_clients()))


@api.route('/invoices/<invoice_id>/status', methods=['POST'])
def update_status(invoice_id):
    data = json_object()
    if data is None:
        return error('Expected a JSON object', 400)
    new_status = data.get('status')
    if not new_status:
        return error('Status not provided', 400)
    try:
        invoice = get_storage().update_invoice_status(invoice_id, new_status)
    except ValueError as e:
        return error(str(e), 400)
    if not invoice:
        return error('Invoice not found', 404)
    return jsonify({'message': f'Status updated to {invoice.status.value}'})


@api.route('/invoices/<invoice_id>/pay', methods=['POST'])
def mark_paid(invoice_id):
    if not get_storage().update_invoice_status(invoice_id, InvoiceStatus.PAID):
        return error('Invoice not found', 404)
    return jsonify({'message': 'Invoice marked as Paid'})


@api.route('/invoices/<invoice_id>/pdf')
def download_pdf(invoice_id):
    storage = get_storage()
    invoice = storage.get_invoice(invoice_id)
    if not invoice:
        return error('Invoice not found', 404)

    pdf = InvoicePDF(invoice, storage.get_client(invoice.client_id), storage.get_settings())
    mem = io.BytesIO()
    pdf.generate(mem)
    mem.seek(0)
    return send_file(
        mem,
        as_attachment=True,
        download_name=f"{invoice.number or invoice.id}.pdf",
        mimetype='application/pdf'
    )


@api.route('/sequences/<doc_type>')
def peek_sequence(doc_type):
    try:
        doc_type = resolve_type(doc_type)
    except ValueError as e:
        return error(str(e), 400)
    return jsonify({
        'docType': doc_type.value,
        'number': get_storage().sequences.peek_number(doc_type),
    })


@api.route('/dashboard')
def dashboard():
    return jsonify(calculations.summarize(get_storage().get_invoices()).to_dict())


# ----------------------------------------------------------------------
# Settings
# ----------------------------------------------------------------------
@api.route('/settings', methods=['GET', 'POST'])
def settings():
    storage = get_storage()
    if request.method == 'POST':
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return error('Expected a JSON object', 400)
        try:
            updated = storage.update_settings(data)
        except SettingsError as e:
            return error(str(e), 400)
        return jsonify(updated.to_dict())

    return jsonify(storage.get_settings().to_dict())


@api.route('/settings/export')
def export_data():
    data = get_storage().export_data()
    mem = io.BytesIO(json.dumps(data, indent=4).encode('utf-8'))

    filename = f"invoice_data_{datetime.date.today()}.json"
    return send_file(
        mem,
        as_attachment=True,
        download_name=filename,
        mimetype='application/json'
    )


@api.route('/settings/import', methods=['POST'])
def import_data():
    if 'file' in request.files:
        file = request.files['file']
        if file.filename == '':
            return error('No file selected', 400)
        try:
            data = json.load(file)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return error('Invalid JSON file', 400)
    else:
        data = request.get_json(silent=True)
        if data is None:
            return error('No file uploaded', 400)

    success, message = get_storage().import_data(data)
    if success:
        return jsonify({'message': message})
    return error(f'Error importing data: {message}', 400)


# ----------------------------------------------------------------------
# AI helpers
# ----------------------------------------------------------------------
def ai_error(e):
    current_app.logger.warning("AI request failed: %s", e)
    return jsonify({'error': str(e), 'retryable': True}), 503


@api.route('/ai/parse-items', methods=['POST'])
def ai_parse_items():
    data = json_object()
    if data is None:
        return error('Expected a JSON object', 400)
    text = (data.get('text') or '').strip()
    if not text:
        return error('No text provided', 400)

    try:
        extraction = gemini_service.extract_line_items(text)
    except AIServiceError as e:
        return ai_error(e)

    draft = data.get('invoice')
    if isinstance(draft, dict):
        merged = gemini_service.apply_extraction(Invoice.from_dict(draft), extraction)
        return jsonify({'invoice': merged.to_dict()})
    return jsonify(extraction.to_dict())


@api.route('/ai/reminder/<invoice_id>', methods=['POST'])
def ai_reminder(invoice_id):
    storage = get_storage()
    invoice = storage.get_invoice(invoice_id)
    if not invoice:
        return error('Invoice not found', 404)
    client = storage.get_client(invoice.client_id)
    if not client:
        return error('Please select a client first.', 400)

    symbol = storage.get_settings().currency_symbol or '$'
    amount_text = f"{symbol}{calculations.total(invoice):.2f}"
    try:
        email = gemini_service.draft_reminder_email(client.name, invoice.number, amount_text, invoice.due_date)
    except AIServiceError as e:
        return ai_error(e)
    return jsonify({'email': email})


def open_browser():
    webbrowser.open_new(f"http://127.0.0.1:{PORT}")


def run():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.bind(("127.0.0.1", PORT))
    except OSError:
        # Already running: just point the browser at it
        print("Application is already running. Opening browser...")
        open_browser()
        return 0
    finally:
        sock.close()

    app = create_app()
    if getattr(sys, 'frozen', False):
        Timer(1.5, open_browser).start()

    app.run(debug=False, port=PORT)
    return 0


if __name__ == '__main__':
    sys.exit(run())
