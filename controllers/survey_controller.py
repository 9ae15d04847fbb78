from flask import jsonify, request


class SurveyController:
    """HTTP side of the survey screens; every answer goes through the FlowController."""

    def __init__(self, flow):
        self.flow = flow

    def show_screen(self):
        # Re-rendering never commits; Submit's save already happened on arrival
        return jsonify(self.flow.describe())

    def rate(self):
        return self._edit(self.flow.rate, self._payload().get('value'))

    def choose_feedback(self):
        return self._edit(self.flow.choose_feedback, self._payload().get('value'))

    def write_feedback(self):
        return self._edit(self.flow.write_feedback, self._payload().get('text', ''))

    def choose_service(self):
        return self._edit(self.flow.choose_service, self._payload().get('service', ''))

    def next(self):
        if not self.flow.advance():
            return jsonify(self.flow.describe()), 409
        return jsonify(self.flow.describe())

    def back(self):
        if not self.flow.back():
            return jsonify(self.flow.describe()), 409
        return jsonify(self.flow.describe())

    def decline_service(self):
        self.flow.decline_service()
        return jsonify(self.flow.describe())

    def save(self):
        self.flow.save()
        return jsonify(self.flow.describe())

    def new_response(self):
        self.flow.new_response()
        return jsonify(self.flow.describe())

    def _edit(self, action, value):
        try:
            action(value)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        return jsonify(self.flow.describe())

    @staticmethod
    def _payload():
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}
