import logging
from dataclasses import asdict, dataclass
from enum import Enum

from models.answer_record import RATING_VALUES, AnswerPatch
from services.persistence import StorageWriteError

logger = logging.getLogger(__name__)


class Screen(str, Enum):
    START = 'Start'
    Q1 = 'Q1'
    Q2 = 'Q2'
    Q3 = 'Q3'
    Q4 = 'Q4'
    Q5 = 'Q5'
    OPEN_FEEDBACK = 'OpenFeedback'
    SERVICE = 'Service'
    SUBMIT = 'Submit'
    ADMIN_TOOLS = 'AdminTools'


class ScreenMismatch(Exception):
    """An edit or action was issued for a screen that is not the visible one."""


@dataclass(frozen=True)
class RatedQuestion:
    field: str
    title: str
    prompt: str
    next: Screen


RATED_QUESTIONS = {
    Screen.Q1: RatedQuestion('q1', 'Kysymys 1', 'Palvelut olivat helposti saatavilla', Screen.Q2),
    Screen.Q2: RatedQuestion('q2', 'Kysymys 2', 'Palvelukokemus oli mielestäni viihtyisä ja sujuva', Screen.Q3),
    Screen.Q3: RatedQuestion('q3', 'Kysymys 3', 'Koen saaneeni tukea tai tarvittaessa ohjausta', Screen.Q4),
    Screen.Q4: RatedQuestion('q4', 'Kysymys 4', 'Haluaisin tulla uudelleen / suosittelen palvelua muille', Screen.Q5),
}

SCREEN_TEXT = {
    Screen.START: ('Aloitus', 'HyMy-kylän palautekysely'),
    Screen.Q5: ('Kysymys 5', 'Haluatko antaa avointa palautetta?'),
    Screen.OPEN_FEEDBACK: ('Avoin palaute', 'Avoin palaute'),
    Screen.SERVICE: ('Palvelu', 'Käyttämäsi palvelu'),
    Screen.SUBMIT: ('Kiitos', 'Palautteesi on vastaanotettu.'),
    Screen.ADMIN_TOOLS: ('Ylläpito', 'Vie kaikki vastaukset CSV:ksi.'),
}

SERVICE_PLACEHOLDER = 'Valitse palvelu'
SERVICE_CATEGORIES = [
    'Apuvälinepalvelut',
    'Fysioterapiapalvelut',
    'Hoitajavastaanotto',
    'Jalkaterapiapalvelut',
    'KyläOPTIKKO -optikkopalvelut',
    'Ohjattu ryhmätoiminta',
    'Osteopatiapalvelut',
    'Perhevalmennus',
    'Senioripalvelut',
    'Suun terveydenhuollon palvelut',
    'Toimintaterapiapalvelut',
    'Muu',
]

# no "back" on these; Submit leaves only through new_response()
_NO_BACK = (Screen.START, Screen.SUBMIT)


class FlowController:
    """Screen sequence, branch and gating rules for one kiosk session.

    Holds the navigation history as a stack of screens and writes answers
    through the SessionStore it was given. Advancing into Submit commits the
    record, at most once per session.
    """

    def __init__(self, store, persistence):
        self.store = store
        self.persistence = persistence
        self.history = [Screen.START]
        self.record_id = None
        self.save_error = None
        self._save_attempted = False

    @property
    def screen(self):
        return self.history[-1]

    # --- gating ---
    def can_advance(self):
        screen = self.screen
        answers = self.store.current()
        if screen == Screen.START or screen == Screen.OPEN_FEEDBACK:
            return True
        if screen in RATED_QUESTIONS:
            return answers.rating(RATED_QUESTIONS[screen].field) in RATING_VALUES
        if screen == Screen.Q5:
            return answers.q5 is not None
        if screen == Screen.SERVICE:
            return answers.service != ''
        return False

    def can_go_back(self):
        return self.screen not in _NO_BACK and len(self.history) > 1

    def next_screen(self):
        """Successor of the visible screen, or None while advancing is blocked."""
        if not self.can_advance():
            return None
        screen = self.screen
        if screen == Screen.START:
            return Screen.Q1
        if screen in RATED_QUESTIONS:
            return RATED_QUESTIONS[screen].next
        if screen == Screen.Q5:
            return Screen.OPEN_FEEDBACK if self.store.current().q5 else Screen.SERVICE
        if screen == Screen.OPEN_FEEDBACK:
            return Screen.SERVICE
        return Screen.SUBMIT

    # --- navigation ---
    def advance(self):
        target = self.next_screen()
        if target is None:
            return False
        self._push(target)
        return True

    def back(self):
        if not self.can_go_back():
            return False
        self.history.pop()
        return True

    def decline_service(self):
        self._require(Screen.SERVICE)
        self.store.patch(AnswerPatch(service=''))
        self._push(Screen.SUBMIT)

    def open_admin(self, authorized):
        self._require(Screen.START)
        if not authorized:
            return False
        self.history.append(Screen.ADMIN_TOOLS)
        logger.info('Admin tools opened')
        return True

    def new_response(self):
        self._require(Screen.SUBMIT)
        if not self._save_attempted:
            raise ScreenMismatch('Response has not been saved yet')
        self.store.reset()
        self.history = [Screen.START]
        self.record_id = None
        self.save_error = None
        self._save_attempted = False

    def _push(self, target):
        self.history.append(target)
        if target == Screen.SUBMIT:
            self.save()

    # --- answers ---
    def rate(self, value):
        question = RATED_QUESTIONS.get(self.screen)
        if question is None:
            raise ScreenMismatch(f'{self.screen.value} is not a rating question')
        if not isinstance(value, int) or isinstance(value, bool) or value not in RATING_VALUES:
            raise ValueError(f'Rating must be 1..5, got {value!r}')
        self.store.patch(AnswerPatch(**{question.field: value}))

    def choose_feedback(self, wants_feedback):
        self._require(Screen.Q5)
        if not isinstance(wants_feedback, bool):
            raise ValueError('Answer must be yes or no')
        self.store.patch(AnswerPatch(q5=wants_feedback))

    def write_feedback(self, text):
        self._require(Screen.OPEN_FEEDBACK)
        if not isinstance(text, str):
            raise ValueError('Feedback must be text')
        self.store.patch(AnswerPatch(feedback=text))

    def choose_service(self, label):
        self._require(Screen.SERVICE)
        if label == SERVICE_PLACEHOLDER:
            label = ''
        if label != '' and label not in SERVICE_CATEGORIES:
            raise ValueError(f'Unknown service {label!r}')
        self.store.patch(AnswerPatch(service=label))

    # --- terminal ---
    def save(self):
        """Commit the session's record unless it already has been.

        Safe to call on every render of Submit. A storage failure is kept
        in `save_error` instead of raised, so the respondent can retry.
        """
        self._require(Screen.SUBMIT)
        if self.record_id is not None:
            return self.record_id
        try:
            self.record_id = self.persistence.commit(self.store.current())
            self.save_error = None
        except StorageWriteError as e:
            logger.warning('Saving response failed, session kept: %s', e)
            self.save_error = str(e)
        self._save_attempted = True
        return self.record_id

    def _require(self, screen):
        if self.screen != screen:
            raise ScreenMismatch(f'Expected {screen.value}, on {self.screen.value}')

    # --- view ---
    def describe(self):
        screen = self.screen
        if screen in RATED_QUESTIONS:
            title, prompt = RATED_QUESTIONS[screen].title, RATED_QUESTIONS[screen].prompt
        else:
            title, prompt = SCREEN_TEXT[screen]
        view = {
            'screen': screen.value,
            'title': title,
            'prompt': prompt,
            'answers': asdict(self.store.current()),
            'can_advance': self.can_advance(),
            'can_go_back': self.can_go_back(),
        }
        if screen in RATED_QUESTIONS:
            view['field'] = RATED_QUESTIONS[screen].field
            view['scale'] = list(RATING_VALUES)
        elif screen == Screen.SERVICE:
            view['options'] = [SERVICE_PLACEHOLDER] + SERVICE_CATEGORIES
        elif screen == Screen.SUBMIT:
            view['saved'] = self.record_id is not None
            view['record_id'] = self.record_id
            view['save_error'] = self.save_error
        return view
