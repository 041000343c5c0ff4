"""
Development launcher for The Butterfly Effect.

Runs the app straight from a source checkout: the 'src' directory is put in
front of sys.path, so 'butterflyeffect' imports resolve without
`pip install -e .`. Installed copies use the `butterflyeffect` GUI script
instead.

Usage:
    $ python run.py
    $ BUTTERFLY_LOG_LEVEL=DEBUG python run.py
"""
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "src"))

if sys.platform == "win32":
    # Own taskbar group/icon instead of python.exe's
    import ctypes
    ctypes.windll.shell32.SetCurrentProcessExplicitAppUserModelID("ButterflyEffect.ScenarioExplorer")

from butterflyeffect.main import main

if __name__ == "__main__":
    main()
