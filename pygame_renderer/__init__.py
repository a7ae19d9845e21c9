"""
Pygame Renderer for force-directed graph layouts.

Consumes final node positions and flags together with a camera
transform. Used by demo.py.

Main classes:
- Renderer: Camera transforms, node markers, edges and HUD text
"""

from .renderer import Renderer

__all__ = ['Renderer']
