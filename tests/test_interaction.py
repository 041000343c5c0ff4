"""Tests for suspending camera interaction during a flight."""

import pytest
from vtkmodules.vtkInteractionStyle import vtkInteractorStyleTrackballCamera
from vtkmodules.vtkRenderingCore import vtkRenderWindowInteractor

from butterflyeffect.view.widgets.interaction import InteractionLock


@pytest.fixture()
def interactor():
    iren = vtkRenderWindowInteractor()
    iren.SetInteractorStyle(vtkInteractorStyleTrackballCamera())
    return iren


def test_lock_replaces_camera_style(interactor):
    lock = InteractionLock(interactor)

    assert lock.set_enabled(False)
    assert lock.locked
    style = interactor.GetInteractorStyle()
    assert style.IsA("vtkInteractorStyleUser")
    assert not style.IsA("vtkInteractorStyleTrackballCamera")


def test_unlock_restores_user_style(interactor):
    lock = InteractionLock(interactor)
    lock.set_enabled(False)

    assert lock.set_enabled(True)
    assert not lock.locked
    assert interactor.GetInteractorStyle().IsA("vtkInteractorStyleTrackballCamera")


def test_repeated_requests_are_noops(interactor):
    lock = InteractionLock(interactor)
    assert not lock.set_enabled(True)

    lock.set_enabled(False)
    passive = interactor.GetInteractorStyle()
    assert not lock.set_enabled(False)
    assert interactor.GetInteractorStyle() is passive

    lock.set_enabled(True)
    assert not lock.set_enabled(True)
    assert interactor.GetInteractorStyle().IsA("vtkInteractorStyleTrackballCamera")


def test_mouse_move_observers_fire_while_locked(interactor):
    moves = []
    interactor.AddObserver("MouseMoveEvent", lambda *_: moves.append(1))

    lock = InteractionLock(interactor)
    lock.set_enabled(False)
    interactor.InvokeEvent("MouseMoveEvent")

    assert moves == [1]
