"""
Captura da janela do jogo usando BitBlt e desenho direto via GDI
"""

import numpy as np
import win32gui
import win32ui
import win32con
import win32api
from typing import Tuple, Optional
from dataclasses import dataclass
from PIL import ImageGrab
import config
from bitmap import Color, Coordinate, PixelBuffer, Size, pack_channels


@dataclass
class WindowRect:
    """Área cliente da janela em coordenadas de tela"""
    x: int
    y: int
    width: int
    height: int

    def __str__(self):
        return f"WindowRect(x={self.x}, y={self.y}, w={self.width}, h={self.height})"

    @property
    def coords(self) -> Tuple[int, int, int, int]:
        """Retorna coordenadas (x1, y1, x2, y2)"""
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    @property
    def dimensions(self) -> Size:
        return Size(self.width, self.height)

    def is_valid(self) -> bool:
        """Verifica se a área é válida"""
        return self.width > 0 and self.height > 0


def find_window(title_fragment: str) -> Optional[int]:
    """
    Procura a primeira janela visível cujo título contém title_fragment

    Returns:
        Handle da janela ou None
    """
    found = []

    def callback(hwnd, _):
        if found or not win32gui.IsWindowVisible(hwnd):
            return True
        if title_fragment in win32gui.GetWindowText(hwnd):
            found.append(hwnd)
        return True

    win32gui.EnumWindows(callback, None)
    return found[0] if found else None


class ScreenCapture:
    """
    Captura otimizada da área cliente da janela do jogo usando BitBlt

    O buffer de pixels é reaproveitado entre quadros enquanto o tamanho
    da janela não muda.
    """

    def __init__(self):
        """Inicializa contextos de captura"""
        self.hwnd = None
        self.hwndDC = None
        self.mfcDC = None
        self.saveDC = None
        self.buffer = None
        self._initialized = False
        self._name = "Desktop"

    def initialize(self, window_title: Optional[str] = None):
        """
        Inicializa contextos de captura

        Args:
            window_title: Trecho do título da janela (None para desktop inteiro)
        """
        try:
            if window_title:
                self.hwnd = find_window(window_title)
                if not self.hwnd:
                    raise ValueError(f"Janela '{window_title}' não encontrada")
                self._name = win32gui.GetWindowText(self.hwnd)
            else:
                self.hwnd = win32gui.GetDesktopWindow()
                self._name = "Desktop"

            # Contextos de dispositivo
            self.hwndDC = win32gui.GetDC(self.hwnd)
            self.mfcDC = win32ui.CreateDCFromHandle(self.hwndDC)
            self.saveDC = self.mfcDC.CreateCompatibleDC()

            self._initialized = True
            if config.DEBUG_CAPTURE_LOGS:
                print(f"[ScreenCapture] Contexto inicializado ({self._name})")
            return True

        except Exception as e:
            print(f"Erro ao inicializar captura: {e}")
            return False

    @property
    def name(self) -> str:
        return self._name

    def get_window_rect(self) -> WindowRect:
        """
        Área cliente da janela capturada em coordenadas de tela

        Returns:
            WindowRect (área vazia se não inicializado)
        """
        if not self._initialized:
            return WindowRect(
                0, 0,
                win32api.GetSystemMetrics(win32con.SM_CXSCREEN),
                win32api.GetSystemMetrics(win32con.SM_CYSCREEN)
            )

        left, top, right, bottom = win32gui.GetClientRect(self.hwnd)
        x, y = win32gui.ClientToScreen(self.hwnd, (left, top))
        return WindowRect(x, y, right - left, bottom - top)

    def _buffer_for(self, dimensions: Size) -> PixelBuffer:
        if self.buffer is None or self.buffer.size != dimensions:
            self.buffer = PixelBuffer.new(dimensions, 0)
            if config.DEBUG_CAPTURE_LOGS:
                print(f"[ScreenCapture] Buffer alocado {dimensions.width}x{dimensions.height}")
        return self.buffer

    def capture(self) -> Optional[PixelBuffer]:
        """
        Captura a área cliente da janela usando BitBlt

        Returns:
            Buffer ARGB (reaproveitado entre quadros) ou None se erro
        """
        if not self._initialized:
            print("ScreenCapture não inicializado. Chame initialize() primeiro.")
            return None

        try:
            rect = self.get_window_rect()
        except Exception as e:
            print(f"Erro ao obter área da janela: {e}")
            return None

        if not rect.is_valid():
            if config.DEBUG_CAPTURE_LOGS:
                print(f"[ScreenCapture] Área inválida (janela minimizada?): {rect}")
            return None

        try:
            # Cria bitmap compatível
            saveBitMap = win32ui.CreateBitmap()
            saveBitMap.CreateCompatibleBitmap(self.mfcDC, rect.width, rect.height)
            self.saveDC.SelectObject(saveBitMap)

            try:
                # BitBlt - copia pixels da janela para o bitmap
                result = self.saveDC.BitBlt(
                    (0, 0),
                    (rect.width, rect.height),
                    self.mfcDC,
                    (0, 0),
                    win32con.SRCCOPY
                )
                if result is not None and not result:
                    raise RuntimeError("BitBlt retornou código 0")

                # Bytes BGRA lidos como uint32 little-endian = 0xAARRGGBB
                bmpstr = saveBitMap.GetBitmapBits(True)
                words = np.frombuffer(bmpstr, dtype='<u4')
            finally:
                win32gui.DeleteObject(saveBitMap.GetHandle())

            buffer = self._buffer_for(rect.dimensions)
            buffer.pixels[:] = words
            return buffer

        except Exception as e:
            if config.DEBUG_CAPTURE_LOGS:
                print(f"[ScreenCapture] BitBlt falhou: {e}")
            if getattr(config, "ENABLE_IMAGEGRAB_FALLBACK", False):
                try:
                    if config.DEBUG_CAPTURE_LOGS:
                        print("[ScreenCapture] Tentando fallback com ImageGrab")
                    grab = np.array(ImageGrab.grab(bbox=rect.coords).convert('RGB'))
                    buffer = self._buffer_for(Size(grab.shape[1], grab.shape[0]))
                    buffer.pixels[:] = pack_channels(
                        grab[:, :, 0], grab[:, :, 1], grab[:, :, 2]
                    ).reshape(-1)
                    return buffer
                except Exception as fallback_error:
                    if config.DEBUG_CAPTURE_LOGS:
                        print(f"[ScreenCapture] Fallback ImageGrab falhou: {fallback_error}")
            print(f"Erro na captura: {e}")
            return None

    def cleanup(self):
        """Libera recursos"""
        try:
            if self.saveDC:
                self.saveDC.DeleteDC()
            if self.mfcDC:
                self.mfcDC.DeleteDC()
            if self.hwndDC:
                win32gui.ReleaseDC(self.hwnd, self.hwndDC)
        except win32ui.error as e:
            print(f"[ScreenCapture] Erro na limpeza: {e}")
        finally:
            self.saveDC = self.mfcDC = self.hwndDC = None
            self._initialized = False

    def __del__(self):
        """Destrutor - garante limpeza"""
        self.cleanup()


class GdiLinePainter:
    """
    Primitiva de desenho de linhas direto no DC da janela do jogo

    Uso:
        with GdiLinePainter(hwnd, config.PEN_COLOR, config.PEN_WIDTH) as painter:
            painter.draw_line((0, 0), (10, 10))
    """

    def __init__(self, hwnd: int, color: Color, width: int = 2):
        self.hwnd = hwnd
        self.color = color
        self.width = width
        self.hdc = None
        self.pen = None
        self.old_pen = None

    def __enter__(self):
        self.hdc = win32gui.GetDC(self.hwnd)
        try:
            self.pen = win32gui.CreatePen(win32con.PS_SOLID, self.width, self.color.rgb24())
            self.old_pen = win32gui.SelectObject(self.hdc, self.pen)
        except Exception:
            # __exit__ não roda quando __enter__ falha
            self.release()
            raise
        return self

    def draw_line(self, start: Coordinate, end: Coordinate):
        """Desenha um segmento opaco de start até end"""
        win32gui.MoveToEx(self.hdc, int(start[0]), int(start[1]))
        win32gui.LineTo(self.hdc, int(end[0]), int(end[1]))

    def release(self):
        """Libera o que __enter__ adquiriu (seguro com aquisição parcial)"""
        if self.old_pen is not None:
            win32gui.SelectObject(self.hdc, self.old_pen)
        if self.pen is not None:
            win32gui.DeleteObject(self.pen)
        if self.hdc is not None:
            win32gui.ReleaseDC(self.hwnd, self.hdc)
        self.hdc = self.pen = self.old_pen = None

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False
