"""
The VIEW layer: PySide6 widgets and the PyVista rendering of the scenario.
"""
