"""
Background Workers (Threading)
==============================
QThread subclasses for work that must not block the GUI.

Why is this file needed?
------------------------
1. Responsiveness: The forecast is a network round trip to a language model;
   on the main thread it would freeze the render loop.
2. Signals: Results travel back to the GUI thread through Qt signals, so the
   ScenarioSession is only ever touched from the main thread.

Classes:
    ForecastWorker: Runs one forecast request.
"""
import logging
from typing import Iterable

from PySide6.QtCore import QThread, Signal

from butterflyeffect.controller.forecast_client import ForecastClient
from butterflyeffect.model.state import ForecastRequest

logger = logging.getLogger(__name__)


class ForecastWorker(QThread):
    # (request token, {month: {field: value}})
    forecast_ready = Signal(int, object)
    # (request token, message)
    error_occurred = Signal(int, str)

    def __init__(self, client: ForecastClient, request: ForecastRequest) -> None:
        super().__init__()
        self.client = client
        self.request = request

    def run(self) -> None:
        try:
            logger.info(f"Starting forecast request {self.request.token} in background thread...")
            forecast = self.client.forecast(self.request.parameters)
            self.forecast_ready.emit(self.request.token, forecast)
        except Exception as e:
            logger.error(f"Error in ForecastWorker: {e}")
            self.error_occurred.emit(self.request.token, str(e))


def wait_for_workers(workers: Iterable[QThread]) -> int:
    """
    Block until every still-running worker thread has finished.
    A QThread must not be destroyed while running; a forecast request cannot
    be interrupted, so the wait is bounded by the HTTP timeout.

    Returns:
        Number of workers that had to be waited for.
    """
    waited = 0
    for worker in workers:
        if worker.isRunning():
            logger.info("Waiting for a background request to finish before shutdown...")
            worker.wait()
            waited += 1
    return waited
