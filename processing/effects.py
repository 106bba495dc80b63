# processing/effects.py

import math

import numpy as np
import cv2

from processing.pixel_buffer import PixelBuffer, EMPTY_RECT

EFFECT_SMEAR = 'smear'
EFFECT_BLUR = 'blur'
EFFECT_PIXELATE = 'pixelate'
EFFECTS = (EFFECT_SMEAR, EFFECT_BLUR, EFFECT_PIXELATE)
# Applied on every move sample rather than once on release.
CONTINUOUS_EFFECTS = (EFFECT_BLUR, EFFECT_PIXELATE)

QUALITY_RAW = 1
QUALITY_BLOCK_AVERAGE = 2
QUALITY_GAUSSIAN = 3
QUALITY_LEVELS = (QUALITY_RAW, QUALITY_BLOCK_AVERAGE, QUALITY_GAUSSIAN)

BLUR_SIGMA = 1.5
BLUR_BLEND = 0.3


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def blur_kernel_radius(brush_size: int) -> int:
    return max(2, brush_size // 20)


def pixelate_block_size(brush_size: int) -> int:
    return max(2, brush_size // 12)


def gaussian_kernel(radius: int, sigma: float = BLUR_SIGMA) -> np.ndarray:
    """Square (2r+1)x(2r+1) Gaussian kernel normalized to sum to 1."""
    offsets = np.arange(-radius, radius + 1, dtype=np.float32)
    xx, yy = np.meshgrid(offsets, offsets)
    kernel = np.exp(-(xx * xx + yy * yy) / (2.0 * sigma * sigma))
    return (kernel / kernel.sum()).astype(np.float32)


# --- Smear ---

def sample_smear_column(pixels: np.ndarray, start: tuple[float, float],
                        perpendicular: tuple[float, float], brush_size: int) -> np.ndarray:
    """Samples one pixel per strip row along the perpendicular through start.

    Row i reads start + perpendicular * (i - brush_size / 2), rounded and clamped
    to the buffer edge. Returns a (brush_size, 4) uint8 copy.
    """
    height, width = pixels.shape[:2]
    offsets = np.arange(brush_size, dtype=np.float64) - brush_size / 2.0
    xs = np.floor(start[0] + perpendicular[0] * offsets + 0.5).astype(np.int64)
    ys = np.floor(start[1] + perpendicular[1] * offsets + 0.5).astype(np.int64)
    np.clip(xs, 0, width - 1, out=xs)
    np.clip(ys, 0, height - 1, out=ys)
    return pixels[ys, xs].copy()


def resample_smear_column(column: np.ndarray, quality: int) -> np.ndarray:
    """Filters the sampled column along its length according to the quality level.

    Returns float32 RGBA values in [0, 255] with the same shape as column.
    """
    resampled = column.astype(np.float32)
    rows = resampled.shape[0]
    if quality == QUALITY_RAW or rows < 2:
        return resampled

    if quality == QUALITY_BLOCK_AVERAGE:
        block = pixelate_block_size(rows)
        starts = np.arange(0, rows, block)
        counts = np.diff(np.append(starts, rows)).astype(np.float32)
        means = np.add.reduceat(resampled, starts, axis=0) / counts[:, None]
        return np.repeat(means, counts.astype(np.int64), axis=0)

    if quality == QUALITY_GAUSSIAN:
        sigma = max(1.0, rows / 24.0)
        ksize = 2 * int(math.ceil(3.0 * sigma)) + 1
        smoothed = cv2.GaussianBlur(resampled.reshape(rows, 1, 4), (1, ksize), sigmaX=0,
                                    sigmaY=sigma, borderType=cv2.BORDER_REPLICATE)
        return smoothed.reshape(rows, 4)

    print(f"Warning: Unknown smear quality level {quality}. Using raw copy.")
    return resampled


def apply_smear(buffer: PixelBuffer, start: tuple[float, float], end: tuple[float, float],
                brush_size: int, quality: int = QUALITY_BLOCK_AVERAGE) -> tuple[int, int, int, int]:
    """Stretches the pixels under the brush at start along the start->end direction.

    A strip of length ceil(|end - start|) and height brush_size is filled row by row
    (trimmed to the span that can reach the buffer)
    with the colour sampled across the brush at start, rotated onto the stroke
    direction and composited source-over with bilinear smoothing. Returns the
    rectangle that was written, or EMPTY_RECT for a zero-length stroke.
    """
    brush_size = int(brush_size)
    if brush_size < 1:
        return EMPTY_RECT

    dx = end[0] - start[0]
    dy = end[1] - start[1]
    distance = math.hypot(dx, dy)
    if distance == 0:
        return EMPTY_RECT

    cos_a = dx / distance
    sin_a = dy / distance
    perpendicular = (-sin_a, cos_a)
    length = int(math.ceil(distance))
    half = brush_size / 2.0

    # Only strip columns whose projection meets the buffer can land. Columns are
    # identical, so the strip is cut to that span and its origin moved along.
    width, height = buffer.get_size()
    projections = [(cx - start[0]) * cos_a + (cy - start[1]) * sin_a
                   for cx in (0, width) for cy in (0, height)]
    first = max(0, int(math.floor(min(projections))) - brush_size)
    last = min(length, int(math.ceil(max(projections))) + brush_size)
    if last <= first:
        return EMPTY_RECT
    length = last - first
    origin = (start[0] + cos_a * first, start[1] + sin_a * first)

    pixels = buffer.pixels
    column = sample_smear_column(pixels, start, perpendicular, brush_size)
    column = resample_smear_column(column, quality)

    # Premultiplied, normalized strip; every column of the strip is the sampled column.
    alpha = column[:, 3:4] / 255.0
    premultiplied = np.concatenate([column[:, :3] / 255.0 * alpha, alpha], axis=1).astype(np.float32)
    strip = np.ascontiguousarray(np.broadcast_to(premultiplied[:, None, :], (brush_size, length, 4)))

    # Strip (u, v) lands at origin + R(angle) * (u, v - half).
    corners_x = []
    corners_y = []
    for u, v in ((0, 0), (length, 0), (0, brush_size), (length, brush_size)):
        corners_x.append(origin[0] + cos_a * u - sin_a * (v - half))
        corners_y.append(origin[1] + sin_a * u + cos_a * (v - half))
    left = int(math.floor(min(corners_x)))
    top = int(math.floor(min(corners_y)))
    right = int(math.ceil(max(corners_x)))
    bottom = int(math.ceil(max(corners_y)))

    rect = buffer.clamp_rect((left, top, right - left, bottom - top))
    x0, y0, w, h = rect
    if w == 0 or h == 0:
        return EMPTY_RECT

    # Pixel-centre convention: index i covers [i, i + 1).
    matrix = np.array([
        [cos_a, -sin_a, origin[0] + 0.5 * cos_a - (0.5 - half) * sin_a - 0.5 - x0],
        [sin_a, cos_a, origin[1] + 0.5 * sin_a + (0.5 - half) * cos_a - 0.5 - y0],
    ], dtype=np.float64)
    warped = cv2.warpAffine(strip, matrix, (w, h), flags=cv2.INTER_LINEAR,
                            borderMode=cv2.BORDER_CONSTANT, borderValue=(0, 0, 0, 0))

    region = pixels[y0:y0 + h, x0:x0 + w]
    destination = region.astype(np.float32) / 255.0
    dst_alpha = destination[:, :, 3:4]
    src_alpha = np.clip(warped[:, :, 3:4], 0.0, 1.0)

    out_alpha = src_alpha + dst_alpha * (1.0 - src_alpha)
    out_rgb = warped[:, :, :3] + destination[:, :, :3] * dst_alpha * (1.0 - src_alpha)
    safe_alpha = np.where(out_alpha > 0, out_alpha, 1.0)
    out_rgb = np.where(out_alpha > 0, out_rgb / safe_alpha, 0.0)

    composed = np.concatenate([out_rgb, out_alpha], axis=2) * 255.0
    composed = np.clip(np.rint(composed), 0, 255).astype(np.uint8)

    covered = src_alpha[:, :, 0] > 0
    region[covered] = composed[covered]
    return rect


# --- Blur ---

def apply_blur(buffer: PixelBuffer, x: float, y: float, brush_size: int) -> tuple[int, int, int, int]:
    """Soft circular Gaussian blur centred at (x, y), fading to nothing at the brush edge."""
    brush_size = int(brush_size)
    if brush_size < 1:
        return EMPTY_RECT

    radius = brush_size / 2.0
    left = _round_half_up(x - radius)
    top = _round_half_up(y - radius)
    rect = buffer.clamp_rect((left, top, brush_size, brush_size))
    rx, ry, w, h = rect
    if w == 0 or h == 0:
        return EMPTY_RECT

    original = buffer.crop_area(rect).astype(np.float32)
    kernel = gaussian_kernel(blur_kernel_radius(brush_size))

    # Neighbours outside the region contribute nothing; renormalize by the weights that did.
    weighted = cv2.filter2D(original, -1, kernel, borderType=cv2.BORDER_CONSTANT)
    weight_sum = cv2.filter2D(np.ones((h, w), dtype=np.float32), -1, kernel,
                              borderType=cv2.BORDER_CONSTANT)
    blurred = weighted / weight_sum[:, :, None]

    # Distances measured in the unclamped brush square.
    local_x = np.arange(rx - left, rx - left + w, dtype=np.float32)
    local_y = np.arange(ry - top, ry - top + h, dtype=np.float32)
    xx, yy = np.meshgrid(local_x, local_y)
    distance = np.hypot(xx - radius, yy - radius)

    falloff = np.where(distance <= radius, BLUR_BLEND * (1.0 - distance / radius), 0.0)
    falloff = falloff.astype(np.float32)[:, :, None]

    result = blurred * falloff + original * (1.0 - falloff)
    buffer.paste_area(rect, np.clip(np.rint(result), 0, 255).astype(np.uint8))
    return rect


# --- Pixelate ---

def apply_pixelate(buffer: PixelBuffer, x: float, y: float, brush_size: int) -> tuple[int, int, int, int]:
    """Replaces each brush-grid block whose centre lies inside the brush circle with its mean colour."""
    brush_size = int(brush_size)
    if brush_size < 1:
        return EMPTY_RECT

    radius = brush_size / 2.0
    block = pixelate_block_size(brush_size)
    blocks_per_side = int(math.ceil(brush_size / block))
    left = _round_half_up(x - radius)
    top = _round_half_up(y - radius)
    span = blocks_per_side * block

    rect = buffer.clamp_rect((left, top, span, span))
    rx, ry, w, h = rect
    if w == 0 or h == 0:
        return EMPTY_RECT

    source = buffer.crop_area(rect)
    output = source.copy()

    for row in range(blocks_per_side):
        block_top = top + row * block
        for col in range(blocks_per_side):
            block_left = left + col * block
            center_x = block_left + block / 2.0
            center_y = block_top + block / 2.0
            if math.hypot(center_x - x, center_y - y) > radius:
                continue

            bx, by, bw, bh = buffer.clamp_rect((block_left, block_top, block, block))
            if bw == 0 or bh == 0:
                continue

            local = (slice(by - ry, by - ry + bh), slice(bx - rx, bx - rx + bw))
            mean = source[local].reshape(-1, 4).mean(axis=0)
            output[local] = np.rint(mean).astype(np.uint8)

    buffer.paste_area(rect, output)
    return rect


def apply_dab(buffer: PixelBuffer, effect: str, x: float, y: float, brush_size: int) -> tuple[int, int, int, int]:
    """Applies one continuous-effect dab at (x, y)."""
    if effect == EFFECT_BLUR:
        return apply_blur(buffer, x, y, brush_size)
    if effect == EFFECT_PIXELATE:
        return apply_pixelate(buffer, x, y, brush_size)
    print(f"Warning: Effect '{effect}' is not a continuous effect. Skipping dab.")
    return EMPTY_RECT
