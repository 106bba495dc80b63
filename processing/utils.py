# processing/utils.py

import cv2
import numpy as np
from PyQt5.QtGui import QImage, QPixmap

from processing.pixel_buffer import to_rgba


def convert_rgba_to_qt(rgba_image: np.ndarray) -> QPixmap:
    """Converts an RGBA NumPy array (H, W, 4) to a Qt QPixmap."""
    if rgba_image is None or rgba_image.size == 0:
        print("Error: Input image is empty or None.")
        return QPixmap()

    if len(rgba_image.shape) != 3 or rgba_image.shape[2] != 4:
        print(f"Error: Unsupported image format shape {rgba_image.shape}. Expected RGBA.")
        return QPixmap()

    rgba_image = np.ascontiguousarray(rgba_image, dtype=np.uint8)
    height, width = rgba_image.shape[:2]

    # QImage does not own the buffer; copy before the array goes away.
    q_image = QImage(rgba_image.data, width, height, 4 * width, QImage.Format_RGBA8888).copy()
    if q_image.isNull():
        print("Error: QImage creation failed.")
        return QPixmap()

    return QPixmap.fromImage(q_image)


def read_image_rgba(filepath: str) -> np.ndarray:
    """Decodes an image file to RGBA uint8. Returns None when the file cannot be read."""
    cv_image = cv2.imread(filepath, cv2.IMREAD_UNCHANGED)
    if cv_image is None:
        return None

    if cv_image.dtype == np.uint16:
        cv_image = (cv_image // 257).astype(np.uint8)
    elif cv_image.dtype != np.uint8:
        cv_image = np.clip(cv_image, 0, 255).astype(np.uint8)

    if len(cv_image.shape) == 2:
        return to_rgba(cv_image)
    if cv_image.shape[2] == 3:
        return cv2.cvtColor(cv_image, cv2.COLOR_BGR2RGBA)
    if cv_image.shape[2] == 4:
        return cv2.cvtColor(cv_image, cv2.COLOR_BGRA2RGBA)
    return to_rgba(cv_image)


def write_image_rgba(filepath: str, rgba_image: np.ndarray) -> bool:
    """Encodes RGBA data to a file; the format follows the file extension."""
    if rgba_image is None or rgba_image.size == 0:
        return False
    if filepath.lower().endswith(('.jpg', '.jpeg', '.bmp')):
        encoded = cv2.cvtColor(rgba_image, cv2.COLOR_RGBA2BGR)
    else:
        encoded = cv2.cvtColor(rgba_image, cv2.COLOR_RGBA2BGRA)
    return bool(cv2.imwrite(filepath, encoded))
