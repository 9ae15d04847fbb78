import logging
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)

HEADER = ['id', 'created_at', 'q1', 'q2', 'q3', 'q4', 'q5', 'feedback', 'service']


class DeliveryError(Exception):
    pass


def escape_csv_field(value):
    # Same rule for every column: quote on comma, quote, CR or LF, double inner quotes
    if value is None:
        return ''
    text = str(value)
    if any(ch in text for ch in (',', '"', '\n', '\r')):
        return '"' + text.replace('"', '""') + '"'
    return text


def _render_flag(value):
    if value is None:
        return ''
    return '1' if value else '0'


class ExportService:
    def __init__(self, persistence, export_dir):
        self.persistence = persistence
        self.export_dir = Path(export_dir)

    def export_all(self):
        """Render every stored response as CSV text, oldest id first.

        StorageReadError from the store propagates; nothing partial is returned.
        """
        records = self.persistence.query_all()
        lines = [','.join(HEADER)]
        for r in records:
            values = [r.id, r.created_at, r.q1, r.q2, r.q3, r.q4, _render_flag(r.q5), r.feedback, r.service]
            lines.append(','.join(escape_csv_field(v) for v in values))
        logger.info('Exported %d responses', len(records))
        return '\n'.join(lines)

    @staticmethod
    def suggested_filename(now=None):
        now = now or datetime.now(timezone.utc)
        stamp = now.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')
        return 'responses-{}.csv'.format(stamp.replace(':', '-').replace('.', '-'))

    def deliver(self, blob, filename):
        path = self.export_dir / filename
        try:
            self.export_dir.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8', newline='') as handle:
                handle.write(blob)
        except OSError as e:
            raise DeliveryError(f'Could not write {path}: {e}') from e
        logger.info('CSV written to %s', path)
        return path
