from dataclasses import dataclass, field, fields, replace
from typing import Optional, Union

UNRATED = 0                 # rating sentinel: not yet rated
RATING_VALUES = range(1, 6)
RATING_FIELDS = ('q1', 'q2', 'q3', 'q4')


class _Unset:
    def __repr__(self):
        return 'UNSET'


UNSET = _Unset()  # "field not part of this patch" (None is a real q5 value)


@dataclass
class AnswerRecord:
    """One survey response under construction."""
    q1: int = UNRATED
    q2: int = UNRATED
    q3: int = UNRATED
    q4: int = UNRATED
    q5: Optional[bool] = None   # wants to give open feedback; None = unanswered
    feedback: str = ''
    service: str = ''           # '' = declined to disclose

    def rating(self, name):
        if name not in RATING_FIELDS:
            raise KeyError(name)
        return getattr(self, name)


@dataclass(frozen=True)
class AnswerPatch:
    """Partial update of an AnswerRecord; only the fields given are applied.

    Unknown field names fail at construction, so a typo never turns into a
    silently ignored update.
    """
    q1: Union[int, _Unset] = field(default=UNSET)
    q2: Union[int, _Unset] = field(default=UNSET)
    q3: Union[int, _Unset] = field(default=UNSET)
    q4: Union[int, _Unset] = field(default=UNSET)
    q5: Union[Optional[bool], _Unset] = field(default=UNSET)
    feedback: Union[str, _Unset] = field(default=UNSET)
    service: Union[str, _Unset] = field(default=UNSET)

    def changes(self):
        return {f.name: getattr(self, f.name) for f in fields(self)
                if getattr(self, f.name) is not UNSET}

    def apply(self, record):
        return replace(record, **self.changes())


@dataclass(frozen=True)
class StoredRecord:
    """A committed AnswerRecord as read back from the responses table."""
    id: int
    created_at: str
    q1: int
    q2: int
    q3: int
    q4: int
    q5: Optional[bool]
    feedback: str
    service: str
