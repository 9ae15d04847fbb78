import os
from dotenv import load_dotenv

load_dotenv()

basedir = os.path.abspath(os.path.dirname(__file__))

DEFAULT_ADMIN_PIN = '2323'


class Settings:
    """Kiosk settings read from the environment (.env honoured).

    Keyword arguments override the environment, which is what the tests use.
    """

    def __init__(self, **overrides):
        self.DATABASE_URL = os.getenv('DATABASE_URL', f"sqlite:///{os.path.join(basedir, 'db', 'feedback.db')}")
        self.ADMIN_PIN = os.getenv('ADMIN_PIN', DEFAULT_ADMIN_PIN)
        self.EXPORT_DIR = os.getenv('EXPORT_DIR', os.path.join(basedir, 'exports'))
        self.SECRET_KEY = os.getenv('SECRET_KEY', 'dev-key')
        self.PORT = int(os.getenv('PORT', 5000))
        self.WEBVIEW_GUI = os.getenv('WEBVIEW_GUI') or None
        for key, value in overrides.items():
            setattr(self, key.upper(), value)
