"""
The MODEL layer contains pure data structures and the scenario engine.
It has NO knowledge of the GUI (Qt) or the Visualization (PyVista).
It deals with integration, sampling, statistics and navigation.
"""
