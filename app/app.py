import logging
import sys

from core.config import BASE_URL, IDENTITY, LOG_LEVEL, NOTE_SAVE_DEBOUNCE_MS, PASSWORD, REQUEST_TIMEOUT
from core.exceptions import PBError
from storage.pocketbase import PocketBaseClient
from controller.app_controller import AppController

logger = logging.getLogger("app")


def setup_logging(level: str = LOG_LEVEL):
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def main():
    setup_logging()
    client = PocketBaseClient(BASE_URL, timeout=REQUEST_TIMEOUT)
    try:
        client.login(IDENTITY, PASSWORD)
    except PBError as e:
        # Evitamos tkinter si no tenemos token
        logger.error("Login error: %s", e)
        return 1

    from gui.main_window import MainWindow

    controller = AppController(client, note_debounce_ms=NOTE_SAVE_DEBOUNCE_MS)
    ui = MainWindow(controller)
    ui.mainloop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
