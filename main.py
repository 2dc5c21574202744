"""
NeuroScan Edit: local PySide6 UI for instruction-driven image edits.
- Pick a scan, describe the adjustment, and the image model returns an edited copy
- The API key is read from GEMINI_API_KEY (or API_KEY), optionally via a .env file
- PySide6, requests, Pillow, pydantic required

Usage:
  $ export GEMINI_API_KEY=...
  $ python main.py
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from PIL import ImageQt
from PySide6.QtCore import Qt, QRectF
from PySide6.QtGui import QPixmap, QImage, QPainter
from PySide6.QtWidgets import (
    QApplication, QWidget, QSplitter, QVBoxLayout, QHBoxLayout, QLabel,
    QPushButton, QTextEdit, QFileDialog, QGraphicsView, QGraphicsScene,
    QGraphicsPixmapItem
)

from neuroscan import AppStatus, EditSession, ImageEditClient, ImageResource, Settings
from neuroscan.config import DOWNLOAD_FILENAME
from neuroscan.errors import TransportError
from neuroscan.models import DisplayableImage


STATUS_TEXT = {
    AppStatus.IDLE: "status: idle",
    AppStatus.UPLOADING: "status: reading image...",
    AppStatus.PROCESSING: "status: analyzing tissue structures... (this can take a while)",
    AppStatus.COMPLETE: "status: done",
    AppStatus.ERROR: "status: error",
}


# ----------------------------- canvas view -------------------------------------
class ImageCanvas(QGraphicsView):  # read-only view of one displayable image
    def __init__(self, placeholder: str, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.setRenderHints(QPainter.Antialiasing | QPainter.SmoothPixmapTransform)
        self.setDragMode(QGraphicsView.ScrollHandDrag)
        self.scene = QGraphicsScene(self)
        self.setScene(self.scene)
        self.placeholder = placeholder
        self.handle_id: Optional[str] = None  # handle currently on screen
        self.clear()

    def show_image(self, handle: Optional[DisplayableImage]) -> None:
        if handle is None or handle.released:
            self.clear()
            return
        if handle.handle_id == self.handle_id:  # already showing it
            return
        try:
            qimg = ImageQt.ImageQt(handle.to_pil().convert("RGBA"))  # PIL -> Qt
        except OSError as e:  # PIL.UnidentifiedImageError included
            self.show_message(f"Cannot render image: {e}")
            return
        pix = QPixmap.fromImage(QImage(qimg))
        self.scene.clear()
        self.scene.addItem(QGraphicsPixmapItem(pix))
        self.setSceneRect(QRectF(0, 0, pix.width(), pix.height()))
        self.fitInView(self.scene.itemsBoundingRect(), Qt.KeepAspectRatio)
        self.handle_id = handle.handle_id

    def clear(self) -> None:
        self.show_message(self.placeholder)

    def show_message(self, text: str) -> None:
        self.scene.clear()
        self.scene.addText(text)
        self.handle_id = None


# ----------------------------- editor panel ------------------------------------
class EditorPanel(QWidget):  # source input on the left, processed result on the right
    def __init__(self, session: EditSession, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.session = session
        layout = QVBoxLayout(self)
        title = QLabel("<b>Intelligent Imaging Analysis</b>")
        title.setStyleSheet("font-size:16px;")
        layout.addWidget(title)

        # (1) open / clear / save
        r1 = QHBoxLayout()
        self.btn_load = QPushButton("Open image")
        self.btn_clear = QPushButton("Clear")
        self.btn_save = QPushButton("Save result")
        r1.addWidget(self.btn_load); r1.addWidget(self.btn_clear); r1.addStretch(1); r1.addWidget(self.btn_save)
        layout.addLayout(r1)

        # (2) source and result side by side
        split = QSplitter(Qt.Horizontal)
        self.canvas_source = ImageCanvas("Click 'Open image' to upload a scan (PNG, JPG, max 5MB)")
        self.canvas_result = ImageCanvas("No analysis generated")
        split.addWidget(self.canvas_source); split.addWidget(self.canvas_result)
        layout.addWidget(split, 3)

        # (3) instruction + generate
        r3 = QHBoxLayout()
        self.txt_prompt = QTextEdit()
        self.txt_prompt.setPlaceholderText(
            "e.g. 'Highlight the vascular structure in red', 'Apply a heatmap overlay'..."
        )
        self.txt_prompt.setFixedHeight(80)
        self.btn_generate = QPushButton("Generate")
        r3.addWidget(self.txt_prompt, 1); r3.addWidget(self.btn_generate)
        layout.addLayout(r3)

        # (4) inline error + status
        self.lbl_error = QLabel(""); self.lbl_error.setStyleSheet("color:#dc2626;"); self.lbl_error.setWordWrap(True)
        self.status = QLabel(STATUS_TEXT[AppStatus.IDLE])
        layout.addWidget(self.lbl_error); layout.addWidget(self.status)

        self.btn_load.clicked.connect(self.load_image)
        self.btn_clear.clicked.connect(self.reset)
        self.btn_save.clicked.connect(self.save_result)
        self.btn_generate.clicked.connect(self.generate)
        self.txt_prompt.textChanged.connect(self.on_prompt_changed)
        self.session.add_listener(self.on_status)
        self.refresh()

    def on_status(self, status: AppStatus) -> None:  # called on every session transition
        self.refresh()
        QApplication.processEvents()

    def refresh(self) -> None:
        s = self.session
        busy = s.status == AppStatus.PROCESSING
        self.canvas_source.show_image(s.original.display if s.original else None)
        if busy:
            self.canvas_result.show_message("Running Gemini 2.5 Flash inference...")
        else:
            self.canvas_result.show_image(s.generated)
        self.lbl_error.setText(s.error_message or "")
        self.status.setText(STATUS_TEXT[s.status])
        self.txt_prompt.setEnabled(s.original is not None and not busy)
        self.btn_generate.setEnabled(s.can_generate)
        self.btn_load.setEnabled(not busy)
        self.btn_clear.setEnabled(s.original is not None and not busy)
        self.btn_save.setEnabled(s.generated is not None)

    def on_prompt_changed(self) -> None:
        self.session.set_instruction(self.txt_prompt.toPlainText())
        self.btn_generate.setEnabled(self.session.can_generate)

    def load_image(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Select image", filter="Images (*.png *.jpg *.jpeg *.webp)")
        if not path:
            return
        self.session.select_image(ImageResource.from_path(path))
        self.refresh()  # validation errors do not change status

    def generate(self) -> None:
        self.session.generate(self.txt_prompt.toPlainText())
        self.refresh()

    def reset(self) -> None:
        self.session.reset()
        self.txt_prompt.clear()
        self.refresh()

    def save_result(self) -> None:
        if self.session.generated is None:
            return
        path, _ = QFileDialog.getSaveFileName(self, "Save result", DOWNLOAD_FILENAME, filter="PNG (*.png)")
        if not path:
            return
        saved = self.session.save_result(path)
        self.refresh()
        if saved is not None:
            self.status.setText(f"saved: {saved}")


# ----------------------------- main window --------------------------------------
class MainWindow(QWidget):  # model check bar on top, editor below
    def __init__(self, session: EditSession):
        super().__init__()
        self.setWindowTitle("NeuroScan Edit")
        self.resize(1400, 900)
        self.client = session.client

        bar = QHBoxLayout()
        self.btn_health = QPushButton("Check model")
        self.lbl_health = QLabel(f"model: {self.client.model}")
        bar.addWidget(self.btn_health); bar.addWidget(self.lbl_health); bar.addStretch(1)

        self.editor = EditorPanel(session)
        root = QVBoxLayout(self)
        root.addLayout(bar); root.addWidget(self.editor, 1)

        self.btn_health.clicked.connect(self.check_health)

    def check_health(self):
        try:
            info = self.client.check_model()
            self.lbl_health.setText(f"model: {info.get('displayName', self.client.model)} (ok)")
        except TransportError as e:
            self.lbl_health.setText(f"model error: {e}")


# ----------------------------- entry point ------------------------------------------
def run() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    settings = Settings.from_env()
    logging.getLogger().setLevel(settings.log_level)
    client = ImageEditClient(settings.api_key, model=settings.model, base_url=settings.base_url)
    session = EditSession(client, settings)

    app = QApplication(sys.argv)
    w = MainWindow(session)
    w.show()
    code = app.exec()
    session.reset()  # release display handles on exit
    return code


if __name__ == "__main__":
    sys.exit(run())
