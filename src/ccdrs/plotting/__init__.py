"""
CCDRS Plotting Package (Functional Core)

Pure plotting functions only – no SQL, no file I/O, no side effects.
Every public function accepts DataFrames / lists and returns a
``plotly.graph_objects.Figure``.

Modules:
    volumes: Stacked 15-minute volume profile for one station or
             screenline direction.
"""

from .volumes import plot_interval_volumes

__all__ = [
    'plot_interval_volumes',
]
