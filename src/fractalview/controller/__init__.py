"""
Rendering Pipeline
==================
Everything between a parameter change and pixels on the canvas.

Why is this package needed?
---------------------------
1. Generation: It implements the fractal midpoint-displacement point cloud.
2. Drawing: It projects and rasterises a point set onto a QImage surface.
3. Scheduling: It coalesces bursts of parameter changes into one redraw per
   frame and decides between regenerate-then-render and render-only.
"""
