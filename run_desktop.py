import threading
import webview

from app import create_app
from config import Settings
from logging_setup import configure_logging

WINDOW_TITLE = 'HyMy-kylän palautekysely'


def run_flask(app, port):
    # single request thread: one respondent, one flow of control
    app.run(debug=False, port=port, use_reloader=False, threaded=False)


def main(settings=None):
    configure_logging()
    settings = settings or Settings()
    app = create_app(settings)
    flask_thread = threading.Thread(target=run_flask, args=(app, settings.PORT))
    flask_thread.daemon = True
    flask_thread.start()
    window = webview.create_window(
        WINDOW_TITLE,
        f'http://127.0.0.1:{settings.PORT}',
        fullscreen=True,
    )
    webview.start(gui=settings.WEBVIEW_GUI)
    return window


if __name__ == '__main__':
    main()
