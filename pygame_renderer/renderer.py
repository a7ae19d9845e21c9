"""
Pygame Renderer for Force-Directed Graph Layouts

Draws node positions produced by the layout solvers. Reads only node
positions and flags; it has no dependency back on the simulation.

Features:
1. Camera transform (look-at view + perspective projection)
2. Node markers with radius and colour keyed off the node flag
3. Edge lines between projected endpoints
4. Info text and layout extent legend

Usage:
    from pygame_renderer import Renderer

    renderer = Renderer(window_width=1000, window_height=700)
    view_proj = renderer.orbit_camera(angle=0.3, distance=3.0)

    # In render loop:
    canvas = renderer.create_canvas()
    renderer.draw_edges(canvas, positions, edges, view_proj)
    renderer.draw_nodes(canvas, positions, flags, view_proj)
    renderer.draw_extent_legend(canvas, extent)
    renderer.draw_info_text(canvas, [("Frame 10", renderer.WHITE)])
"""

import numpy as np
import pygame
from typing import Dict, List, Optional, Tuple


class Renderer:
    """
    Pygame renderer for graph layout visualization.

    All methods work with pygame surfaces and numpy arrays.
    """

    # ========================================================================
    # COLOR CONSTANTS
    # ========================================================================

    WHITE = (255, 255, 255)
    BLACK = (0, 0, 0)
    GREY = (100, 100, 100)
    BACKGROUND = (18, 18, 24)

    EDGE_COLOR = (70, 90, 120)

    # Node colour and radius per flag; unknown flags use the last entry
    NODE_STYLES: Dict[int, Tuple[Tuple[int, int, int], int]] = {
        0: ((90, 160, 255), 3),     # Default: blue, small
        1: ((255, 105, 180), 6),    # Highlighted: hot pink, large
        2: ((255, 200, 60), 5),     # Selected: amber
    }

    # ========================================================================
    # INITIALIZATION
    # ========================================================================

    def __init__(
        self,
        window_width: int = 1000,
        window_height: int = 700,
        fov_degrees: float = 60.0,
        near: float = 0.01,
        far: float = 100.0,
        edge_width: int = 1,
        font_size: int = 24,
        font_size_small: int = 18,
    ):
        """
        Initialize the renderer.

        Args:
            window_width: Window width in pixels
            window_height: Window height in pixels
            fov_degrees: Vertical field of view of the perspective camera
            near: Near clipping plane distance
            far: Far clipping plane distance
            edge_width: Edge line width in pixels
            font_size: Main font size
            font_size_small: Small font size for labels
        """
        self.window_width = window_width
        self.window_height = window_height
        self.aspect = window_width / window_height

        self.fov_degrees = fov_degrees
        self.near = near
        self.far = far
        self.edge_width = edge_width

        # Fonts (initialized lazily)
        self._font = None
        self._font_small = None
        self._font_size = font_size
        self._font_size_small = font_size_small

    @property
    def font(self):
        """Lazy font initialization."""
        if self._font is None:
            if not pygame.font.get_init():
                pygame.font.init()
            self._font = pygame.font.Font(None, self._font_size)
        return self._font

    @property
    def font_small(self):
        """Lazy small font initialization."""
        if self._font_small is None:
            if not pygame.font.get_init():
                pygame.font.init()
            self._font_small = pygame.font.Font(None, self._font_size_small)
        return self._font_small

    # ========================================================================
    # CAMERA
    # ========================================================================

    @staticmethod
    def look_at(eye, target=(0.0, 0.0, 0.0), up=(0.0, 1.0, 0.0)) -> np.ndarray:
        """Right-handed view matrix (4x4) looking from eye toward target."""
        eye = np.asarray(eye, dtype=np.float64)
        target = np.asarray(target, dtype=np.float64)
        up = np.asarray(up, dtype=np.float64)

        forward = target - eye
        forward /= np.linalg.norm(forward)
        right = np.cross(forward, up)
        right /= np.linalg.norm(right)
        true_up = np.cross(right, forward)

        view = np.eye(4)
        view[0, :3] = right
        view[1, :3] = true_up
        view[2, :3] = -forward
        view[:3, 3] = -view[:3, :3] @ eye
        return view

    def perspective(self, fov_degrees: float = None) -> np.ndarray:
        """OpenGL-style perspective projection matrix (4x4)."""
        fov = np.radians(fov_degrees if fov_degrees is not None else self.fov_degrees)
        f = 1.0 / np.tan(fov / 2.0)
        near, far = self.near, self.far

        proj = np.zeros((4, 4))
        proj[0, 0] = f / self.aspect
        proj[1, 1] = f
        proj[2, 2] = (far + near) / (near - far)
        proj[2, 3] = 2.0 * far * near / (near - far)
        proj[3, 2] = -1.0
        return proj

    def orbit_camera(self, angle: float, distance: float = 3.0, elevation: float = 0.4) -> np.ndarray:
        """
        View-projection matrix for a camera orbiting the origin.

        Args:
            angle: Azimuth in radians
            distance: Distance from the origin
            elevation: Elevation in radians
        """
        eye = distance * np.array([
            np.cos(elevation) * np.sin(angle),
            np.sin(elevation),
            np.cos(elevation) * np.cos(angle),
        ])
        return self.perspective() @ self.look_at(eye)

    # ========================================================================
    # COORDINATE CONVERSION
    # ========================================================================

    @staticmethod
    def project(positions: np.ndarray, view_proj: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Project world positions to normalized device coordinates.

        Args:
            positions: Array of shape (N, 3)
            view_proj: 4x4 view-projection matrix

        Returns:
            (ndc, w): ndc of shape (N, 3) and clip-space w of shape (N,).
            Points with w <= 0 are behind the camera and their ndc is nan.
        """
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
        homogeneous = np.hstack([positions, np.ones((len(positions), 1))])
        clip = homogeneous @ np.asarray(view_proj, dtype=np.float64).T
        w = clip[:, 3]

        ndc = np.full((len(positions), 3), np.nan)
        visible = w > 1e-9
        ndc[visible] = clip[visible, :3] / w[visible, None]
        return ndc, w

    def ndc_to_screen(self, ndc: np.ndarray) -> np.ndarray:
        """
        Map NDC x, y in [-1, 1] to pixel coordinates (y down).

        Returns:
            Float array of shape (N, 2)
        """
        screen = np.empty((len(ndc), 2))
        screen[:, 0] = (ndc[:, 0] + 1.0) * 0.5 * self.window_width
        screen[:, 1] = (1.0 - ndc[:, 1]) * 0.5 * self.window_height
        return screen

    def node_style(self, flag: int) -> Tuple[Tuple[int, int, int], int]:
        """Colour and radius for a node flag."""
        if flag in self.NODE_STYLES:
            return self.NODE_STYLES[flag]
        return self.NODE_STYLES[max(self.NODE_STYLES)]

    # ========================================================================
    # CANVAS CREATION
    # ========================================================================

    def create_canvas(self, background_color=None) -> pygame.Surface:
        """
        Create a new canvas (pygame Surface) with background color.

        Args:
            background_color: RGB tuple or None for the dark default

        Returns:
            pygame.Surface
        """
        canvas = pygame.Surface((self.window_width, self.window_height))
        canvas.fill(background_color or self.BACKGROUND)
        return canvas

    # ========================================================================
    # GRAPH RENDERING
    # ========================================================================

    def draw_nodes(
        self,
        canvas: pygame.Surface,
        positions: np.ndarray,
        flags: Optional[np.ndarray],
        view_proj: np.ndarray,
    ) -> int:
        """
        Draw node markers, far nodes first.

        Args:
            canvas: pygame Surface to draw on
            positions: Array of shape (N, 3) with node positions
            flags: Int array of shape (N,), or None for all-default markers
            view_proj: 4x4 view-projection matrix

        Returns:
            Number of markers drawn
        """
        if positions is None or len(positions) == 0:
            return 0

        ndc, w = self.project(positions, view_proj)
        screen = self.ndc_to_screen(ndc)
        if flags is None:
            flags = np.zeros(len(positions), dtype=np.int32)

        drawn = 0
        for i in np.argsort(-w):
            if w[i] <= 1e-9 or np.isnan(screen[i, 0]) or np.isnan(screen[i, 1]):
                continue
            if ndc[i, 2] < -1.0 or ndc[i, 2] > 1.0:
                continue

            color, radius = self.node_style(int(flags[i]))
            pygame.draw.circle(canvas, color, (int(screen[i, 0]), int(screen[i, 1])), radius)
            drawn += 1

        return drawn

    def draw_edges(
        self,
        canvas: pygame.Surface,
        positions: np.ndarray,
        edges: np.ndarray,
        view_proj: np.ndarray,
        color=None,
    ) -> int:
        """
        Draw edges as straight lines between projected endpoints.

        Args:
            canvas: pygame Surface to draw on
            positions: Array of shape (N, 3) with node positions
            edges: Array of shape (E, 2) with node index pairs
            view_proj: 4x4 view-projection matrix
            color: Line colour (default: muted blue)

        Returns:
            Number of lines drawn
        """
        if edges is None or len(edges) == 0:
            return 0

        color = color or self.EDGE_COLOR
        ndc, w = self.project(positions, view_proj)
        screen = self.ndc_to_screen(ndc)

        drawn = 0
        for n0, n1 in edges:
            # Reverse duplicates are drawn once
            if n1 < n0:
                continue
            if w[n0] <= 1e-9 or w[n1] <= 1e-9:
                continue

            start = (int(screen[n0, 0]), int(screen[n0, 1]))
            end = (int(screen[n1, 0]), int(screen[n1, 1]))
            pygame.draw.line(canvas, color, start, end, self.edge_width)
            drawn += 1

        return drawn

    # ========================================================================
    # LEGEND / UI TEXT
    # ========================================================================

    def draw_extent_legend(
        self,
        canvas: pygame.Surface,
        extent: float,
        position: Optional[Tuple[int, int]] = None,
    ):
        """
        Draw the current layout extent (95th percentile radius) in the top-right corner.

        Args:
            canvas: pygame Surface to draw on
            extent: Layout extent in world units
            position: Optional (x, y) top-left position
        """
        if position is None:
            position = (self.window_width - 150, 10)
        x, y = position

        canvas.blit(self.font_small.render("Extent:", True, self.WHITE), (x, y))
        canvas.blit(self.font_small.render(f"{extent:.3f}", True, self.WHITE), (x + 60, y))

        for i, (flag, (color, radius)) in enumerate(sorted(self.NODE_STYLES.items())):
            cy = y + 25 + i * 18
            pygame.draw.circle(canvas, color, (x + 8, cy), radius)
            canvas.blit(self.font_small.render(f"flag {flag}", True, self.WHITE), (x + 20, cy - 6))

    def draw_info_text(
        self,
        canvas: pygame.Surface,
        lines: List[Tuple[str, Tuple[int, int, int]]],
        position: Tuple[int, int] = (10, 10),
        line_spacing: int = 17,
    ):
        """
        Draw multiple lines of info text.

        Args:
            canvas: pygame Surface to draw on
            lines: List of (text, color) tuples
            position: Top-left position
            line_spacing: Vertical spacing between lines
        """
        x, y = position

        for i, (text, color) in enumerate(lines):
            text_surface = self.font_small.render(text, True, color)
            canvas.blit(text_surface, (x, y + i * line_spacing))
