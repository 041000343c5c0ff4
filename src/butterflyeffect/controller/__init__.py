"""
The CONTROLLER layer talks to the outside world (the remote forecast
service) and moves long-running work off the GUI thread.
"""
