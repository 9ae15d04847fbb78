import logging

from flask import jsonify, request, Response as FlaskResponse

from controllers.flow_controller import Screen
from services.export_service import DeliveryError
from services.persistence import StorageReadError

logger = logging.getLogger(__name__)


class AdminController:
    def __init__(self, flow, gate, exporter):
        self.flow = flow
        self.gate = gate
        self.exporter = exporter

    def tap(self):
        if self.flow.screen != Screen.START:
            return jsonify({'prompt_pin': False}), 409
        return jsonify({'prompt_pin': self.gate.tap()})

    def long_press(self):
        if self.flow.screen != Screen.START:
            return jsonify({'prompt_pin': False}), 409
        return jsonify({'prompt_pin': self.gate.long_press()})

    def check_pin(self):
        # Outside Start every attempt gets the same answer, right PIN or not
        if self.flow.screen != Screen.START:
            return jsonify({'error': 'Admin access required.'}), 409
        data = request.get_json(silent=True) or {}
        pin = data.get('pin') if isinstance(data, dict) else None
        if not self.gate.check_pin(pin):
            # Never say how close the PIN was; client clears its input
            logger.warning('Admin PIN rejected')
            return jsonify({'error': 'Väärä PIN', 'message': 'Yritä uudelleen.'}), 401
        self.flow.open_admin(True)
        return jsonify(self.flow.describe())

    def cancel_pin(self):
        self.gate.cancel_prompt()
        return jsonify({'prompt_pin': False})

    def export(self):
        if self.flow.screen != Screen.ADMIN_TOOLS:
            return jsonify({'error': 'Admin access required.'}), 403
        try:
            blob = self.exporter.export_all()
        except StorageReadError as e:
            return jsonify({'error': 'CSV-vienti epäonnistui', 'message': str(e)}), 500

        filename = self.exporter.suggested_filename()
        try:
            self.exporter.deliver(blob, filename)
        except DeliveryError as e:
            # The CSV itself is fine, the download below still carries it
            logger.warning('Sharing failed: %s', e)

        response = FlaskResponse(blob, mimetype='text/csv')
        response.headers['Content-Disposition'] = f'attachment; filename="{filename}"'
        return response

    def back(self):
        if self.flow.screen != Screen.ADMIN_TOOLS:
            return jsonify(self.flow.describe()), 409
        self.flow.back()
        return jsonify(self.flow.describe())
