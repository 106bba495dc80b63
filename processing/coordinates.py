# processing/coordinates.py


class CoordinateMapper:
    """Maps pointer positions on a displayed (possibly scaled) surface to buffer pixels.

    The surface shows a ``buffer_width`` x ``buffer_height`` raster at
    ``display_width`` x ``display_height``, with its top-left corner at
    (``origin_x``, ``origin_y``) in pointer space. Horizontal and vertical scales
    are independent. Results are not clamped.
    """
    def __init__(self, display_width: float, display_height: float,
                 buffer_width: int, buffer_height: int,
                 origin_x: float = 0.0, origin_y: float = 0.0):
        if display_width <= 0 or display_height <= 0:
            raise ValueError(f"Invalid display size: {display_width}x{display_height}.")
        if buffer_width <= 0 or buffer_height <= 0:
            raise ValueError(f"Invalid buffer size: {buffer_width}x{buffer_height}.")

        self.display_width = float(display_width)
        self.display_height = float(display_height)
        self.buffer_width = buffer_width
        self.buffer_height = buffer_height
        self.origin_x = float(origin_x)
        self.origin_y = float(origin_y)

    @classmethod
    def from_zoom(cls, zoom_factor: float, buffer_width: int, buffer_height: int,
                  origin_x: float = 0.0, origin_y: float = 0.0) -> "CoordinateMapper":
        """Builds a mapper for a buffer drawn at a uniform zoom factor."""
        return cls(buffer_width * zoom_factor, buffer_height * zoom_factor,
                   buffer_width, buffer_height, origin_x, origin_y)

    def scale(self) -> tuple[float, float]:
        """Buffer pixels per display unit, (x, y)."""
        return (self.buffer_width / self.display_width,
                self.buffer_height / self.display_height)

    def inverse_scale(self) -> tuple[float, float]:
        """Display units per buffer pixel, (x, y). Used for on-screen brush outlines."""
        return (self.display_width / self.buffer_width,
                self.display_height / self.buffer_height)

    def to_buffer(self, x: float, y: float) -> tuple[float, float]:
        scale_x, scale_y = self.scale()
        return ((x - self.origin_x) * scale_x, (y - self.origin_y) * scale_y)

    def to_display(self, x: float, y: float) -> tuple[float, float]:
        inv_x, inv_y = self.inverse_scale()
        return (x * inv_x + self.origin_x, y * inv_y + self.origin_y)

    def outline_size(self, brush_size: int) -> tuple[float, float]:
        """On-screen width and height of a brush of the given buffer-pixel size."""
        inv_x, inv_y = self.inverse_scale()
        return (brush_size * inv_x, brush_size * inv_y)
