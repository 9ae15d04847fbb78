from dataclasses import replace

from models.answer_record import AnswerRecord


class SessionStore:
    """Owns the single live AnswerRecord of one survey session.

    Plain container: no validation happens here, gating belongs to the
    FlowController.
    """

    def __init__(self, record=None):
        self._record = record if record is not None else AnswerRecord()

    def current(self):
        # Snapshot, so callers can't mutate the live record behind our back
        return replace(self._record)

    def patch(self, answer_patch):
        self._record = answer_patch.apply(self._record)

    def reset(self):
        self._record = AnswerRecord()
