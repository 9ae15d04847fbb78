import pytest

from controllers.flow_controller import (
    RATED_QUESTIONS,
    SERVICE_PLACEHOLDER,
    FlowController,
    Screen,
    ScreenMismatch,
)
from models.session_store import SessionStore
from services.persistence import StorageWriteError


class FlakyStore:
    """Persistence double that fails the first `failures` commits."""

    def __init__(self, failures=1):
        self.failures = failures
        self.commits = []

    def commit(self, record):
        if self.failures:
            self.failures -= 1
            raise StorageWriteError('disk full')
        self.commits.append(record)
        return len(self.commits)


def _flow_on(screen_name, flow):
    assert flow.advance()
    for screen in (Screen.Q1, Screen.Q2, Screen.Q3, Screen.Q4):
        if flow.screen == screen_name:
            return flow
        flow.rate(3)
        assert flow.advance()
    return flow


def test_rated_questions_share_one_shape():
    assert [q.field for q in RATED_QUESTIONS.values()] == ['q1', 'q2', 'q3', 'q4']
    assert [q.next for q in RATED_QUESTIONS.values()] == [Screen.Q2, Screen.Q3, Screen.Q4, Screen.Q5]


def test_start_always_advances_to_q1(flow):
    assert flow.can_advance()
    assert flow.advance()
    assert flow.screen == Screen.Q1


@pytest.mark.parametrize('screen', [Screen.Q1, Screen.Q2, Screen.Q3, Screen.Q4])
def test_rating_screen_blocked_until_rated(flow, screen):
    _flow_on(screen, flow)
    assert flow.screen == screen
    assert not flow.can_advance()
    assert flow.next_screen() is None
    assert not flow.advance()
    assert flow.screen == screen


@pytest.mark.parametrize('screen', [Screen.Q1, Screen.Q2, Screen.Q3, Screen.Q4])
@pytest.mark.parametrize('value', [1, 2, 3, 4, 5])
def test_rating_screen_enabled_for_every_valid_value(flow, screen, value):
    _flow_on(screen, flow)
    flow.rate(value)
    assert flow.can_advance()
    assert flow.store.current().rating(RATED_QUESTIONS[screen].field) == value


@pytest.mark.parametrize('value', [0, 6, -1, 2.5, '3', True, None])
def test_rate_rejects_out_of_range(flow, value):
    flow.advance()
    with pytest.raises(ValueError):
        flow.rate(value)
    assert flow.store.current().q1 == 0


def test_rate_outside_a_rating_screen_is_a_mismatch(flow):
    with pytest.raises(ScreenMismatch):
        flow.rate(3)


def test_q5_blocked_while_unanswered(flow):
    _flow_on(Screen.Q5, flow)
    assert flow.screen == Screen.Q5
    assert not flow.can_advance()
    assert not flow.advance()


def test_q5_yes_branches_through_open_feedback(flow):
    _flow_on(Screen.Q5, flow)
    flow.choose_feedback(True)
    assert flow.next_screen() == Screen.OPEN_FEEDBACK
    flow.advance()
    assert flow.can_advance()  # empty feedback is allowed
    flow.advance()
    assert flow.screen == Screen.SERVICE


def test_q5_no_goes_straight_to_service(flow):
    _flow_on(Screen.Q5, flow)
    flow.choose_feedback(False)
    flow.advance()
    assert flow.screen == Screen.SERVICE


def test_choose_feedback_requires_a_boolean(flow):
    _flow_on(Screen.Q5, flow)
    with pytest.raises(ValueError):
        flow.choose_feedback('yes')


def test_service_requires_a_choice(flow, walk_to_service):
    walk_to_service(flow)
    assert not flow.can_advance()
    flow.choose_service('Perhevalmennus')
    assert flow.can_advance()
    flow.choose_service(SERVICE_PLACEHOLDER)
    assert flow.store.current().service == ''
    assert not flow.can_advance()


def test_unknown_service_is_rejected(flow, walk_to_service):
    walk_to_service(flow)
    with pytest.raises(ValueError):
        flow.choose_service('Hieronta')


def test_decline_to_disclose_clears_service_and_submits(flow, walk_to_service):
    walk_to_service(flow)
    flow.choose_service('Muu')
    flow.decline_service()
    assert flow.screen == Screen.SUBMIT
    assert flow.store.current().service == ''
    stored = flow.persistence.query_all()
    assert len(stored) == 1
    assert stored[0].service == ''


def test_decline_outside_service_is_a_mismatch(flow):
    with pytest.raises(ScreenMismatch):
        flow.decline_service()


def test_submit_commits_exactly_once(flow, walk_to_service):
    walk_to_service(flow, wants_feedback=True, feedback='  kiitos  ')
    flow.choose_service('Muu')
    flow.advance()
    assert flow.screen == Screen.SUBMIT
    first = flow.record_id
    assert first is not None

    # re-rendering Submit
    flow.describe()
    assert flow.save() == first
    assert flow.save() == first
    assert not flow.advance()

    stored = flow.persistence.query_all()
    assert len(stored) == 1
    assert stored[0].feedback == 'kiitos'
    assert stored[0].q5 is True


def test_failed_commit_keeps_session_and_can_retry(store, walk_to_service):
    persistence = FlakyStore(failures=1)
    flow = FlowController(store, persistence)
    walk_to_service(flow)
    flow.choose_service('Muu')
    flow.advance()

    assert flow.screen == Screen.SUBMIT
    assert flow.record_id is None
    assert 'disk full' in flow.describe()['save_error']
    assert store.current().service == 'Muu'

    assert flow.save() == 1
    assert flow.save_error is None
    assert len(persistence.commits) == 1


def test_new_response_allowed_after_failed_commit(store, walk_to_service):
    flow = FlowController(store, FlakyStore(failures=5))
    walk_to_service(flow)
    flow.decline_service()
    flow.new_response()
    assert flow.screen == Screen.START


def test_new_response_resets_and_pops_to_start(flow, walk_to_service):
    walk_to_service(flow)
    flow.decline_service()
    flow.new_response()
    assert flow.history == [Screen.START]
    assert flow.record_id is None
    record = flow.store.current()
    assert (record.q1, record.q5, record.service) == (0, None, '')

    # the next session commits its own row
    walk_to_service(flow)
    flow.decline_service()
    assert len(flow.persistence.query_all()) == 2


def test_new_response_only_from_submit(flow):
    with pytest.raises(ScreenMismatch):
        flow.new_response()


def test_back_follows_history_without_touching_answers(flow, walk_to_service):
    walk_to_service(flow, wants_feedback=True, feedback='hyvä')
    before = flow.store.current()
    assert flow.back()
    assert flow.screen == Screen.OPEN_FEEDBACK
    assert flow.back()
    assert flow.screen == Screen.Q5
    assert flow.store.current() == before


def test_back_from_service_reached_directly_returns_to_q5(flow, walk_to_service):
    walk_to_service(flow, wants_feedback=False)
    flow.back()
    assert flow.screen == Screen.Q5


def test_back_unavailable_on_start_and_submit(flow, walk_to_service):
    assert not flow.can_go_back()
    assert not flow.back()
    walk_to_service(flow)
    flow.decline_service()
    assert not flow.can_go_back()
    assert not flow.back()
    assert flow.screen == Screen.SUBMIT


def test_back_from_q1_returns_to_start(flow):
    flow.advance()
    assert flow.back()
    assert flow.screen == Screen.START


def test_admin_side_channel_requires_authorisation(flow):
    assert not flow.open_admin(False)
    assert flow.screen == Screen.START
    assert flow.open_admin(True)
    assert flow.screen == Screen.ADMIN_TOOLS
    assert not flow.can_advance()
    assert flow.back()
    assert flow.screen == Screen.START


def test_admin_only_reachable_from_start(flow):
    flow.advance()
    with pytest.raises(ScreenMismatch):
        flow.open_admin(True)


def test_describe_rated_question(flow):
    flow.advance()
    view = flow.describe()
    assert view['screen'] == 'Q1'
    assert view['field'] == 'q1'
    assert view['prompt'] == 'Palvelut olivat helposti saatavilla'
    assert view['can_advance'] is False
    assert view['can_go_back'] is True
    assert view['answers']['q5'] is None


def test_describe_service_lists_options(flow, walk_to_service):
    walk_to_service(flow)
    options = flow.describe()['options']
    assert options[0] == SERVICE_PLACEHOLDER
    assert 'Muu' in options


def test_sessions_are_independent(persistence):
    first = FlowController(SessionStore(), persistence)
    second = FlowController(SessionStore(), persistence)
    first.advance()
    first.rate(5)
    assert second.store.current().q1 == 0
    assert second.screen == Screen.START
