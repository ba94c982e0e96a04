# app.py
import logging
import os
import sys

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
if BASE_DIR not in sys.path:
    sys.path.insert(0, BASE_DIR)

from PySide6.QtWidgets import QApplication

from data_acquisition import HttpDataSource
from scheduler import PollScheduler
from settings import SettingsManager, load_config
from ui_main_window import MainWindow


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def main() -> None:
    settings = SettingsManager()
    config = load_config(settings)
    setup_logging(config.log_level)

    app = QApplication(sys.argv)

    source = HttpDataSource(config.base_url, timeout=config.request_timeout_secs)
    scheduler = PollScheduler.from_config(config, source)

    window = MainWindow(scheduler=scheduler, settings=settings)
    window.resize(1000, 700)
    window.show()

    scheduler.start()
    exit_code = app.exec()

    scheduler.stop()
    settings.save()
    source.close()

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
