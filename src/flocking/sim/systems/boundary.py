from __future__ import annotations

from pygame.math import Vector2


class BoundaryPolicy:
    """Toroidal teleport wrap over ``[0, width] x [0, height]``.

    A coordinate at or past the upper edge jumps to 0; one below 0 jumps to the
    upper edge. Axes are handled independently.
    """

    def __init__(self, width: float, height: float) -> None:
        self.width = width
        self.height = height

    def resize(self, width: float, height: float) -> None:
        self.width = width
        self.height = height

    def wrap(self, position: Vector2) -> None:
        x = position.x
        y = position.y
        if x >= self.width:
            x = 0.0
        elif x < 0:
            x = self.width
        if y >= self.height:
            y = 0.0
        elif y < 0:
            y = self.height
        position.update(x, y)
