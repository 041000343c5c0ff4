"""
Application Initialization
==========================
Constructs the Model-View-Controller objects and starts the Qt event loop.

Why is this file needed?
------------------------
It acts as the "Dependency Injection" root. It:
1. Instantiates the ScenarioSession (Model) and computes the first trajectory.
2. Instantiates the ForecastClient (Controller) from environment settings.
3. Instantiates the Main Window (View) and passes both in.
"""
import logging
import os
import sys

from PySide6.QtWidgets import QApplication

from butterflyeffect.config import ForecastSettings
from butterflyeffect.controller.forecast_client import ForecastClient
from butterflyeffect.logging_config import level_from_env, setup_logging
from butterflyeffect.model.state import ScenarioSession
from butterflyeffect.view.main_window import MainWindow, VISIBLE_APP_NAME


def main() -> None:
    # 1. Setup Logging (BUTTERFLY_LOG_LEVEL / BUTTERFLY_DEBUG pick the level)
    level = level_from_env()
    setup_logging(level=level, log_file=os.environ.get("BUTTERFLY_LOG_FILE"))

    # 2. Create the Qt Application
    app = QApplication(sys.argv)
    app.setApplicationName(VISIBLE_APP_NAME)

    # 3. Initialize the Data Model
    session = ScenarioSession()
    if not session.recompute():
        logging.getLogger(__name__).error("Initial trajectory could not be computed.")

    # 4. Initialize the Main Window, passing the model and the forecast client
    window = MainWindow(session, ForecastClient(ForecastSettings.from_env()))
    window.show()

    # 5. Start Event Loop
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
