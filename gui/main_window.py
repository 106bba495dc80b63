# gui/main_window.py

from PyQt5.QtWidgets import (QMainWindow, QWidget, QHBoxLayout, QFileDialog, QMessageBox,
                              QAction, QSizePolicy)
from PyQt5.QtGui import QKeySequence

from gui.stretch_canvas_widget import StretchCanvasWidget
from gui.control_panel import ControlPanel, EFFECT_LABELS
from processing.utils import read_image_rgba, write_image_rgba
from processing.pixel_buffer import fit_to_max_size
from processing.session import EditingSession, MAX_BRUSH

MAX_CANVAS_SIZE = 800
DEFAULT_EXPORT_NAME = "stretched-image.png"


class MainWindow(QMainWindow):
    def __init__(self, max_brush: int = MAX_BRUSH):
        super().__init__()
        self.setWindowTitle("Pixel Stretcher")
        self.setGeometry(100, 100, MAX_CANVAS_SIZE + 320, MAX_CANVAS_SIZE + 80)

        self.central_widget = QWidget()
        self.setCentralWidget(self.central_widget)
        self.main_layout = QHBoxLayout(self.central_widget)

        self.session = EditingSession(max_brush=max_brush)

        self.canvas_widget = StretchCanvasWidget()
        self.canvas_widget.set_session(self.session)
        self.canvas_widget.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.main_layout.addWidget(self.canvas_widget, stretch=3)

        self.control_panel = ControlPanel(max_brush=max_brush)
        self.main_layout.addWidget(self.control_panel, stretch=1)
        self._on_parameters_changed(self.control_panel.get_current_parameters())

        self.statusBar()

        self._create_actions()
        self._create_menu_bar()
        self._create_tool_bar()
        self._connect_signals()

        self._update_action_states()
        self._update_status_bar()

    def _create_actions(self):
        """Creates actions shared between menu and toolbar."""
        self.load_image_action = QAction("Upload Image...", self)
        self.load_image_action.setShortcut(QKeySequence.Open)
        self.load_image_action.setStatusTip("Load an image to distort")

        self.save_image_action = QAction("Download Image...", self)
        self.save_image_action.setShortcut(QKeySequence.Save)
        self.save_image_action.setStatusTip("Save the current image to a file")

        self.reset_action = QAction("Reset Canvas", self)
        self.reset_action.setStatusTip("Restore the image as it was loaded")

        self.undo_action = QAction("Undo", self)
        self.undo_action.setShortcut(QKeySequence.Undo)
        self.undo_action.setStatusTip("Undo the last stroke")

    def _create_menu_bar(self):
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("&File")
        file_menu.addAction(self.load_image_action)
        file_menu.addAction(self.save_image_action)
        file_menu.addSeparator()
        file_menu.addAction(self.reset_action)
        file_menu.addSeparator()
        file_menu.addAction(QAction("Exit", self, triggered=self.close))

        edit_menu = menu_bar.addMenu("&Edit")
        edit_menu.addAction(self.undo_action)

    def _create_tool_bar(self):
        tool_bar = self.addToolBar("Tools")
        tool_bar.addAction(self.load_image_action)
        tool_bar.addAction(self.save_image_action)
        tool_bar.addAction(self.reset_action)
        tool_bar.addSeparator()
        tool_bar.addAction(self.undo_action)

    def _connect_signals(self):
        self.load_image_action.triggered.connect(self._load_image)
        self.save_image_action.triggered.connect(self._save_image)
        self.reset_action.triggered.connect(self._reset_canvas)
        self.undo_action.triggered.connect(self._undo)

        self.control_panel.parameters_changed.connect(self._on_parameters_changed)

        self.canvas_widget.strokeFinished.connect(self._on_stroke_finished)
        self.canvas_widget.brushSizeChanged.connect(self._on_brush_size_changed)
        self.canvas_widget.canvas_content_changed.connect(self._update_status_bar)
        self.canvas_widget.zoomLevelChanged.connect(self._update_status_bar)

    def _update_action_states(self):
        loaded = self.session.is_loaded()
        self.save_image_action.setEnabled(loaded)
        self.reset_action.setEnabled(loaded)
        self.undo_action.setEnabled(self.session.can_undo())

    def _update_status_bar(self):
        if not self.session.is_loaded():
            self.statusBar().showMessage("No image loaded")
            return

        width, height = self.session.buffer.get_size()
        zoom = self.canvas_widget.get_zoom_factor()
        status_text = (
            f"Effect: {EFFECT_LABELS[self.session.effect]}"
            f" | Image: {width}x{height} px"
            f" | Zoom: {zoom:.0%}"
            f" | Brush Size: {self.session.brush_size}px"
            f" | History: {self.session.history_depth()}"
        )
        self.statusBar().showMessage(status_text)

    def _on_parameters_changed(self, params: dict):
        """Slot: Receives brush parameter changes from the control panel."""
        if 'size' in params:
            self.session.set_brush_size(params['size'])
        if 'effect' in params:
            self.session.set_effect(params['effect'])
        if 'quality' in params:
            self.session.set_quality(params['quality'])
        self.canvas_widget.update()
        self._update_status_bar()

    def _on_brush_size_changed(self, size: int):
        self.control_panel.set_brush_size(size)
        self._update_status_bar()

    def _on_stroke_finished(self):
        self._update_action_states()
        self._update_status_bar()

    def _undo(self):
        if self.session.request_undo():
            self.canvas_widget.refresh_pixmap()
        self._update_action_states()
        self._update_status_bar()

    def _reset_canvas(self):
        if self.session.reset():
            self.canvas_widget.refresh_pixmap()
            self.statusBar().showMessage("Canvas reset.")
        self._update_action_states()

    def _load_image(self):
        file_dialog = QFileDialog(self)
        file_dialog.setWindowTitle("Select an image")
        file_dialog.setNameFilter("Images (*.png *.jpg *.jpeg *.bmp *.webp *.tif *.tiff)")
        if not file_dialog.exec_():
            return

        filepath = file_dialog.selectedFiles()[0]
        self.statusBar().showMessage(f"Loading image: {filepath}...")
        try:
            rgba_image = read_image_rgba(filepath)
            if rgba_image is None:
                QMessageBox.warning(self, "Load Failed", "Could not read the selected image file.")
                self.statusBar().showMessage("Image load failed.")
                return
            self.session.load(fit_to_max_size(rgba_image, MAX_CANVAS_SIZE))
        except Exception as e:
            QMessageBox.critical(self, "Load Error", f"Error while loading image: {e}")
            self.statusBar().showMessage("Image load error.")
            return

        self.canvas_widget.refresh_pixmap()
        self.canvas_widget.zoom_to_fit()
        self._update_action_states()
        self._update_status_bar()

    def _save_image(self):
        pixels = self.session.current_pixels()
        if pixels.size == 0:
            QMessageBox.warning(self, "Save Failed", "There is no image to save.")
            return

        file_dialog = QFileDialog(self)
        file_dialog.setWindowTitle("Save image")
        file_dialog.setAcceptMode(QFileDialog.AcceptSave)
        file_dialog.setNameFilter("PNG Images (*.png);;JPEG Images (*.jpg *.jpeg);;BMP Images (*.bmp)")
        file_dialog.setDefaultSuffix("png")
        file_dialog.selectFile(DEFAULT_EXPORT_NAME)
        if not file_dialog.exec_():
            return

        filepath = file_dialog.selectedFiles()[0]
        try:
            if write_image_rgba(filepath, pixels):
                self.statusBar().showMessage(f"Saved to {filepath}.")
            else:
                QMessageBox.warning(self, "Save Failed", "Could not write the image. Check the path or format.")
        except Exception as e:
            QMessageBox.critical(self, "Save Error", f"Error while saving image: {e}")
