"""
Janela transparente sobre o jogo onde a trajetória é desenhada
"""

from typing import List, Tuple

from PyQt5.QtWidgets import QWidget
from PyQt5.QtCore import Qt, QPoint, QRect
from PyQt5.QtGui import QPainter, QColor, QPen, QImage

import config
from bitmap import Coordinate, PixelBuffer, Size


class OverlayWindow(QWidget):
    """
    Widget sem bordas, sempre no topo e transparente a cliques

    O conteúdo é um PixelBuffer ARGB pré-multiplicado compartilhado com um
    QImage; a cada quadro o buffer é limpo e os traços são redesenhados.
    """

    def __init__(self):
        super().__init__()
        self.canvas = None
        self.image = None

        self.setWindowFlags(
            Qt.WindowStaysOnTopHint |
            Qt.FramelessWindowHint |
            Qt.Tool |
            Qt.WindowTransparentForInput
        )
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setAttribute(Qt.WA_NoSystemBackground, True)
        self.setAttribute(Qt.WA_TransparentForMouseEvents, True)

    def place(self, x: int, y: int, width: int, height: int):
        """Posiciona o overlay sobre a área cliente do jogo"""
        if self.geometry() != QRect(x, y, width, height):
            self.setGeometry(x, y, width, height)
        self._ensure_canvas(Size(width, height))

    def _ensure_canvas(self, dimensions: Size):
        if self.canvas is not None and self.canvas.size == dimensions:
            return
        self.canvas = PixelBuffer.new(dimensions, config.OVERLAY_BACKGROUND.premultiplied())
        # QImage aponta para a memória do buffer (sem cópia)
        self.image = QImage(
            self.canvas.pixels.data,
            dimensions.width,
            dimensions.height,
            dimensions.width * 4,
            QImage.Format_ARGB32_Premultiplied
        )

    def clear(self):
        """Limpa o canvas com a cor de fundo configurada"""
        if self.canvas is not None:
            self.canvas.fill(config.OVERLAY_BACKGROUND.premultiplied())
            self.update()

    def draw_segments(self, segments: List[Tuple[Coordinate, Coordinate]]):
        """
        Redesenha a trajetória

        Args:
            segments: Traços (início, fim) em coordenadas da área cliente
        """
        if self.canvas is None:
            return

        self.canvas.fill(config.OVERLAY_BACKGROUND.premultiplied())

        color = config.PEN_COLOR
        painter = QPainter(self.image)
        try:
            painter.setRenderHint(QPainter.Antialiasing)
            painter.setPen(QPen(QColor(color.r, color.g, color.b, color.a), config.PEN_WIDTH))
            for start, end in segments:
                painter.drawLine(QPoint(int(start[0]), int(start[1])), QPoint(int(end[0]), int(end[1])))
        finally:
            painter.end()

        self.update()

    def paintEvent(self, event):
        """Copia o canvas para a janela"""
        if self.image is None:
            return
        painter = QPainter(self)
        painter.setCompositionMode(QPainter.CompositionMode_Source)
        painter.drawImage(0, 0, self.image)
        painter.end()
