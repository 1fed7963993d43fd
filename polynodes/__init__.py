"""
PolyNodes node graph editor package.

The Qt application lives in :mod:`polynodes.application` and
:mod:`polynodes.ui`; the graph model and editing engine in
:mod:`polynodes.nodes` and :mod:`polynodes.editor` have no Qt dependency.
"""

__version__ = "0.1.0"
