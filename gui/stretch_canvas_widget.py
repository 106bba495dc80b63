# gui/stretch_canvas_widget.py

from PyQt5.QtWidgets import QWidget, QSizePolicy
from PyQt5.QtGui import QPainter, QPixmap, QMouseEvent, QPaintEvent, QPen, QColor
from PyQt5.QtCore import Qt, QPoint, QPointF, QRectF, pyqtSignal

import numpy as np

from processing.utils import convert_rgba_to_qt
from processing.session import EditingSession
from processing.coordinates import CoordinateMapper
from processing.effects import EFFECT_SMEAR, EFFECT_PIXELATE


class StretchCanvasWidget(QWidget):
    canvas_content_changed = pyqtSignal()
    strokeFinished = pyqtSignal()
    zoomLevelChanged = pyqtSignal(float)
    brushSizeChanged = pyqtSignal(int)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._session: EditingSession = None
        self._pixmap = QPixmap()

        self._cursor_pos: QPointF = None
        self._is_over_canvas = False

        self._zoom_factor = 1.0
        self._pan_offset_widget = QPoint(0, 0)

        self._is_panning = False
        self._pan_start_widget_pos: QPoint = None
        self._pan_start_offset: QPoint = None

        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.setMouseTracking(True)
        self.setCursor(Qt.BlankCursor)

    def set_session(self, session: EditingSession):
        self._session = session
        self.refresh_pixmap()

    def refresh_pixmap(self):
        """Rebuilds the cached pixmap from the session's buffer."""
        if self._session is None or not self._session.is_loaded():
            self._pixmap = QPixmap()
        else:
            self._pixmap = convert_rgba_to_qt(self._session.buffer.pixels)
        self.update()
        self.canvas_content_changed.emit()

    def mapper(self) -> CoordinateMapper:
        if self._session is None or not self._session.is_loaded():
            return None
        width, height = self._session.buffer.get_size()
        return CoordinateMapper.from_zoom(self._zoom_factor, width, height,
                                          self._pan_offset_widget.x(), self._pan_offset_widget.y())

    def _widget_to_buffer(self, widget_point: QPointF) -> tuple[float, float]:
        mapper = self.mapper()
        if mapper is None:
            return None
        return mapper.to_buffer(widget_point.x(), widget_point.y())

    # --- Zoom / pan ---

    def set_zoom_pan(self, zoom_factor: float, pan_offset_widget: QPoint):
        if self._session is None or not self._session.is_loaded():
            return

        canvas_width, canvas_height = self._session.buffer.get_size()
        widget_width, widget_height = self.width(), self.height()

        self._zoom_factor = max(0.01, min(zoom_factor, 100.0))

        scaled_canvas_width = canvas_width * self._zoom_factor
        scaled_canvas_height = canvas_height * self._zoom_factor

        max_px = max(0, int(widget_width - scaled_canvas_width))
        max_py = max(0, int(widget_height - scaled_canvas_height))
        min_px = min(0, int(widget_width - scaled_canvas_width))
        min_py = min(0, int(widget_height - scaled_canvas_height))

        clamped_pan_x = np.clip(pan_offset_widget.x(), min_px, max_px)
        clamped_pan_y = np.clip(pan_offset_widget.y(), min_py, max_py)

        self._pan_offset_widget = QPoint(int(clamped_pan_x), int(clamped_pan_y))

        self.zoomLevelChanged.emit(self._zoom_factor)
        self.update()

    def zoom_to_fit(self):
        """Scales the buffer to fit the widget and centres it."""
        if self._session is None or not self._session.is_loaded():
            return

        canvas_width, canvas_height = self._session.buffer.get_size()
        widget_width, widget_height = self.width(), self.height()
        if widget_width <= 0 or widget_height <= 0:
            return

        fit_zoom_factor = max(0.01, min(widget_width / canvas_width, widget_height / canvas_height) * 0.95)
        pan_x = max(0.0, (widget_width - canvas_width * fit_zoom_factor) / 2)
        pan_y = max(0.0, (widget_height - canvas_height * fit_zoom_factor) / 2)
        self.set_zoom_pan(fit_zoom_factor, QPoint(int(pan_x), int(pan_y)))

    def get_zoom_factor(self) -> float:
        return self._zoom_factor

    # --- Painting ---

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.fillRect(event.rect(), QColor(243, 244, 246))

        if self._pixmap.isNull():
            painter.setPen(QColor(107, 114, 128))
            painter.drawText(self.rect(), Qt.AlignCenter, "Upload an image to start stretching")
            return

        canvas_width, canvas_height = self._session.buffer.get_size()
        target_rect_f = QRectF(self._pan_offset_widget.x(), self._pan_offset_widget.y(),
                               canvas_width * self._zoom_factor, canvas_height * self._zoom_factor)
        painter.setRenderHint(QPainter.SmoothPixmapTransform, True)
        painter.drawPixmap(target_rect_f, self._pixmap, QRectF(self._pixmap.rect()))

        mapper = self.mapper()
        painter.setRenderHint(QPainter.Antialiasing, True)

        segment = self._session.stroke.preview_segment()
        if segment is not None and segment[0] != segment[1]:
            start = QPointF(*mapper.to_display(*segment[0]))
            end = QPointF(*mapper.to_display(*segment[1]))
            painter.setPen(QPen(QColor(239, 68, 68, 200), 1.5, Qt.DashLine))
            painter.drawLine(start, end)

        if self._is_over_canvas and self._cursor_pos is not None:
            self._draw_brush_outline(painter, mapper)

    def _draw_brush_outline(self, painter: QPainter, mapper: CoordinateMapper):
        outline_w, outline_h = self._session.brush_outline_size(mapper)
        center = self._cursor_pos
        outline = QRectF(center.x() - outline_w / 2, center.y() - outline_h / 2, outline_w, outline_h)

        painter.setBrush(Qt.NoBrush)
        painter.setPen(QPen(QColor(0, 0, 0, 90), 3))
        if self._session.effect == EFFECT_PIXELATE:
            painter.drawRect(outline)
        else:
            painter.drawEllipse(outline)
        painter.setPen(QPen(Qt.white, 1.5))
        if self._session.effect == EFFECT_PIXELATE:
            painter.drawRect(outline)
        else:
            painter.drawEllipse(outline)

        if self._session.effect == EFFECT_SMEAR:
            painter.setPen(QPen(QColor(239, 68, 68, 204), 1))
            painter.drawLine(QPointF(center.x(), outline.top()), QPointF(center.x(), outline.bottom()))

    # --- Pointer input ---

    def mousePressEvent(self, event: QMouseEvent):
        if self._session is not None and self._session.is_loaded() and event.button() in (Qt.MidButton, Qt.RightButton):
            self._is_panning = True
            self._pan_start_widget_pos = event.pos()
            self._pan_start_offset = self._pan_offset_widget
            self.setCursor(Qt.ClosedHandCursor)
            event.accept()
            return

        if event.button() != Qt.LeftButton or self._session is None or not self._session.is_loaded():
            super().mousePressEvent(event)
            return

        x, y = self._widget_to_buffer(event.localPos())
        self._session.pointer_down(x, y)
        self.update()
        event.accept()

    def mouseMoveEvent(self, event: QMouseEvent):
        self._cursor_pos = event.localPos()

        if self._is_panning:
            delta_widget = event.pos() - self._pan_start_widget_pos
            self.set_zoom_pan(self._zoom_factor, self._pan_start_offset + delta_widget)
            event.accept()
            return

        if self._session is None or not self._session.is_loaded():
            super().mouseMoveEvent(event)
            return

        if self._session.is_stroke_active() and (event.buttons() & Qt.LeftButton):
            x, y = self._widget_to_buffer(event.localPos())
            affected = self._session.pointer_move(x, y)
            if affected[2] > 0 and affected[3] > 0:
                self._pixmap = convert_rgba_to_qt(self._session.buffer.pixels)

        self.update()

    def mouseReleaseEvent(self, event: QMouseEvent):
        if self._is_panning:
            self._is_panning = False
            self.setCursor(Qt.BlankCursor)
            event.accept()
            return

        if event.button() != Qt.LeftButton or self._session is None or not self._session.is_stroke_active():
            super().mouseReleaseEvent(event)
            return

        x, y = self._widget_to_buffer(event.localPos())
        affected = self._session.pointer_up(x, y)
        if affected[2] > 0 and affected[3] > 0:
            self.refresh_pixmap()
        else:
            self.update()
        self.strokeFinished.emit()
        event.accept()

    def enterEvent(self, event):
        self._is_over_canvas = True
        super().enterEvent(event)

    def leaveEvent(self, event):
        self._is_over_canvas = False
        self._cursor_pos = None
        if self._session is not None and self._session.is_stroke_active():
            self._session.pointer_leave()
            self.refresh_pixmap()
            self.strokeFinished.emit()
        self.update()
        super().leaveEvent(event)

    def wheelEvent(self, event):
        """Shift+wheel resizes the brush, plain wheel zooms."""
        if self._session is None or not self._session.is_loaded():
            super().wheelEvent(event)
            return

        angle_delta = event.angleDelta().y()
        if angle_delta == 0:
            # Some platforms report Shift+wheel as horizontal scrolling.
            angle_delta = event.angleDelta().x()
        if angle_delta == 0:
            super().wheelEvent(event)
            return

        if event.modifiers() & Qt.ShiftModifier:
            size = self._session.adjust_brush_size(1 if angle_delta > 0 else -1)
            self.brushSizeChanged.emit(size)
            self.update()
            event.accept()
            return

        zoom_step_factor = 1.1
        new_zoom_factor = self._zoom_factor * zoom_step_factor if angle_delta > 0 else self._zoom_factor / zoom_step_factor
        new_zoom_factor = max(0.01, min(new_zoom_factor, 100.0))

        if new_zoom_factor != self._zoom_factor:
            mouse_pos_widget = event.pos()
            canvas_x, canvas_y = self._widget_to_buffer(QPointF(mouse_pos_widget))
            new_pan_x = mouse_pos_widget.x() - canvas_x * new_zoom_factor
            new_pan_y = mouse_pos_widget.y() - canvas_y * new_zoom_factor
            self.set_zoom_pan(new_zoom_factor, QPoint(int(new_pan_x), int(new_pan_y)))

        event.accept()

    def resizeEvent(self, event):
        if self._session is not None and self._session.is_loaded():
            self.set_zoom_pan(self._zoom_factor, self._pan_offset_widget)
        super().resizeEvent(event)
