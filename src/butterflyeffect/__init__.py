"""
Butterfly Effect: a chaotic scenario timeline explorer.

Three macroeconomic parameters drive a Lorenz attractor; the trajectory is
sampled into timepoint markers that can be navigated in a 3D view.
"""
