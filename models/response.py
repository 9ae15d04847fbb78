from sqlalchemy.orm import declarative_base
from sqlalchemy import Column, Index, Integer, String, Text
from datetime import datetime, timezone

from models.answer_record import StoredRecord

Base = declarative_base()


def _now_text():
    return datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S')


def encode_flag(value):
    # tri-state q5: None -> NULL, False -> 0, True -> 1
    if value is None:
        return None
    return 1 if value else 0


def decode_flag(value):
    if value is None:
        return None
    return bool(value)


class Response(Base):
    __tablename__ = 'responses'
    id = Column(Integer, primary_key=True, autoincrement=True)     # ascending identity
    created_at = Column(String(32), nullable=False, default=_now_text)  # write time (UTC)
    q1 = Column(Integer, nullable=False)                           # ratings, expected 1..5
    q2 = Column(Integer, nullable=False)
    q3 = Column(Integer, nullable=False)
    q4 = Column(Integer, nullable=False)
    q5 = Column(Integer, nullable=True)                            # NULL / 0 / 1
    feedback = Column(Text, nullable=False, default='')
    service = Column(Text, nullable=False, default='')             # '' = declined

    __table_args__ = (
        Index('idx_responses_created_at', 'created_at'),
    )

    @classmethod
    def from_answers(cls, record):
        return cls(
            q1=record.q1,
            q2=record.q2,
            q3=record.q3,
            q4=record.q4,
            q5=encode_flag(record.q5),
            feedback=(record.feedback or '').strip(),
            service=(record.service or '').strip(),
        )

    def to_record(self):
        return StoredRecord(
            id=self.id,
            created_at=self.created_at,
            q1=self.q1,
            q2=self.q2,
            q3=self.q3,
            q4=self.q4,
            q5=decode_flag(self.q5),
            feedback=self.feedback,
            service=self.service,
        )
