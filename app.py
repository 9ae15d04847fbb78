from flask import Flask, jsonify, redirect, url_for
import os
from sqlalchemy.engine import make_url

from config import Settings
from controllers.admin_controller import AdminController
from controllers.flow_controller import FlowController, ScreenMismatch
from controllers.survey_controller import SurveyController
from logging_setup import configure_logging
from models.admin_gate import AdminGate
from models.session_store import SessionStore
from services.export_service import ExportService
from services.persistence import PersistenceLayer


def _ensure_sqlite_dir(db_uri):
    url = make_url(db_uri)
    if url.get_backend_name() == 'sqlite' and url.database and url.database != ':memory:':
        folder = os.path.dirname(os.path.abspath(url.database))
        os.makedirs(folder, exist_ok=True)


def create_app(settings=None):
    # --- Flask Setup ---
    app = Flask(__name__)
    app.config.from_object(settings or Settings())
    app.secret_key = app.config['SECRET_KEY']

    # --- Response DB Setup ---
    _ensure_sqlite_dir(app.config['DATABASE_URL'])
    persistence = PersistenceLayer(app.config['DATABASE_URL'])
    persistence.init_schema()

    # --- Session, flow and admin side channel ---
    store = SessionStore()
    flow = FlowController(store, persistence)
    gate = AdminGate(app.config['ADMIN_PIN'])
    exporter = ExportService(persistence, app.config['EXPORT_DIR'])
    survey_controller = SurveyController(flow)
    admin_controller = AdminController(flow, gate, exporter)
    app.extensions['survey'] = {
        'store': store,
        'flow': flow,
        'gate': gate,
        'persistence': persistence,
        'exporter': exporter,
    }

    @app.errorhandler(ScreenMismatch)
    def screen_mismatch(e):
        return jsonify({'error': str(e), 'screen': flow.screen.value}), 409

    # --- Routes ---
    @app.route('/')
    def index():
        return redirect(url_for('screen'))

    @app.route('/screen')
    def screen():
        return survey_controller.show_screen()

    @app.route('/screen/rate', methods=['POST'])
    def rate():
        return survey_controller.rate()

    @app.route('/screen/feedback-choice', methods=['POST'])
    def feedback_choice():
        return survey_controller.choose_feedback()

    @app.route('/screen/feedback', methods=['POST'])
    def feedback():
        return survey_controller.write_feedback()

    @app.route('/screen/service', methods=['POST'])
    def service():
        return survey_controller.choose_service()

    @app.route('/screen/next', methods=['POST'])
    def next_screen():
        return survey_controller.next()

    @app.route('/screen/back', methods=['POST'])
    def back():
        return survey_controller.back()

    @app.route('/screen/decline-service', methods=['POST'])
    def decline_service():
        return survey_controller.decline_service()

    @app.route('/screen/save', methods=['POST'])
    def save():
        return survey_controller.save()

    @app.route('/screen/new', methods=['POST'])
    def new_response():
        return survey_controller.new_response()

    @app.route('/admin/tap', methods=['POST'])
    def admin_tap():
        return admin_controller.tap()

    @app.route('/admin/long-press', methods=['POST'])
    def admin_long_press():
        return admin_controller.long_press()

    @app.route('/admin/pin', methods=['POST'])
    def admin_pin():
        return admin_controller.check_pin()

    @app.route('/admin/cancel', methods=['POST'])
    def admin_cancel():
        return admin_controller.cancel_pin()

    @app.route('/admin/export', methods=['POST'])
    def admin_export():
        return admin_controller.export()

    @app.route('/admin/back', methods=['POST'])
    def admin_back():
        return admin_controller.back()

    return app


# --- Run Server ---
if __name__ == '__main__':
    configure_logging()
    create_app().run(debug=True, threaded=False)
