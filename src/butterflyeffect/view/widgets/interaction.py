"""
Camera Interaction Lock
Disables user orbit/zoom while a camera flight owns the view.

The user's interactor style is swapped for vtkInteractorStyleUser, which does
not touch the camera, and put back on unlock. Observers registered on the
interactor itself (the hover pick) keep receiving events either way.
"""
from __future__ import annotations

import logging
from typing import Optional

from vtkmodules.vtkInteractionStyle import vtkInteractorStyleUser
from vtkmodules.vtkRenderingCore import vtkInteractorObserver, vtkRenderWindowInteractor

logger = logging.getLogger(__name__)


class InteractionLock:
    def __init__(self, interactor: vtkRenderWindowInteractor) -> None:
        self.interactor = interactor
        self._passive_style = vtkInteractorStyleUser()
        self._saved_style: Optional[vtkInteractorObserver] = None
        self._locked = False

    @property
    def locked(self) -> bool:
        return self._locked

    def set_enabled(self, enabled: bool) -> bool:
        """
        Allow or block camera manipulation.

        Returns:
            True if the interactor style was actually swapped.
        """
        if enabled and self.locked:
            self.interactor.SetInteractorStyle(self._saved_style)
            self._saved_style = None
            self._locked = False
            logger.debug("Camera interaction restored.")
            return True
        if not enabled and not self.locked:
            self._saved_style = self.interactor.GetInteractorStyle()
            self.interactor.SetInteractorStyle(self._passive_style)
            self._locked = True
            logger.debug("Camera interaction suspended during flight.")
            return True
        return False
