"""
visualizer.py — Density Viewer
===============================
Renders the 2D density field of a FluidSimulation in real time.

Uses matplotlib FuncAnimation. The viewer only talks to the core through
source injection and density_image(); it never touches the buffers.
"""

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.animation as animation
from matplotlib.colors import LinearSegmentedColormap

# Custom smoke colormap: black → orange → white
SMOKE_COLORS = ["#000000", "#1a0a00", "#ff6a00", "#ffffff"]
smoke_cmap = LinearSegmentedColormap.from_list("smoke", SMOKE_COLORS)


class FluidVisualizer:
    """
    Real-time density viewer of the fluid simulation.

    Usage (standalone):
        from fluid2d import FluidSimulation
        from visualizer import FluidVisualizer

        sim = FluidSimulation(N=64)
        viz = FluidVisualizer(sim)
        viz.run()  # Opens live window
    """

    def __init__(self, simulation, vmax: float = 4.0):
        """
        Args:
            simulation : FluidSimulation instance
            vmax       : Density mapped to full white
        """
        self.sim = simulation
        self.N = simulation.grid.N
        self.vmax = vmax

        self._setup_figure()

    def _setup_figure(self):
        """Initialize the matplotlib figure."""
        self.fig, self.ax = plt.subplots(figsize=(6, 6))
        self.fig.patch.set_facecolor('#0a0a0a')

        ax = self.ax
        ax.set_facecolor('#0a0a0a')
        ax.set_xticks([])
        ax.set_yticks([])
        for spine in ax.spines.values():
            spine.set_edgecolor('#333333')

        self.img = ax.imshow(
            np.zeros((self.N, self.N)), cmap=smoke_cmap,
            vmin=0, vmax=self.vmax,
            interpolation='bilinear',
            origin='lower',
            aspect='equal'
        )

        self.title_text = ax.set_title(
            "Frame 0 | 0.0 FPS",
            color='#cccccc', fontsize=10, fontfamily='monospace'
        )

        plt.tight_layout()

    def update(self, frame_num):
        """Called by FuncAnimation each frame. Steps sim and updates the image."""
        # Smoke source at bottom center, re-injected every frame
        N = self.N
        self.sim.add_smoke_source(N / 2, 2, density_rate=3.0, velocity=(0.0, 15.0))

        metrics = self.sim.step()

        # density_image() is row = y, which matches origin='lower'
        self.img.set_data(self.sim.grid.density_image())

        self.title_text.set_text(
            f"Frame {metrics['frame']} | {metrics['fps']:.1f} FPS | "
            f"div_max={metrics['divergence_max']:.5f}"
        )

        return [self.img, self.title_text]

    def run(self, fps: int = 30, frames: int = None):
        """
        Start the live animation window.

        Args:
            fps    : Target animation frame rate
            frames : Total frames to render (None = infinite)
        """
        interval_ms = 1000 // fps
        self.anim = animation.FuncAnimation(
            self.fig,
            self.update,
            frames=frames,
            interval=interval_ms,
            blit=False,
            cache_frame_data=False
        )
        plt.show()
        self.sim.close()
