"""
Buffers de pixels e modelo de cor

Um PixelBuffer guarda os pixels em um único array numpy contíguo
(row-major) junto com a largura da linha. A altura é derivada do tamanho.
As cores são empacotadas em palavras de 32 bits no formato ARGB
(alpha no byte mais alto), o mesmo layout do bitmap de 32 bits do Windows
lido como inteiro little-endian e do QImage.Format_ARGB32.
"""

from dataclasses import dataclass
from typing import Iterator, NamedTuple, Tuple, Union

import numpy as np


class Coordinate(NamedTuple):
    """Coordenada (x, y) em pixels"""
    x: int
    y: int


class Size(NamedTuple):
    """Tamanho (largura, altura) em pixels"""
    width: int
    height: int


class OutOfBounds(IndexError):
    """Retângulo pedido não cabe dentro do buffer"""


@dataclass(frozen=True)
class Color:
    """Cor RGBA com 8 bits por canal"""
    r: int
    g: int
    b: int
    a: int = 255

    def pack(self) -> int:
        """Empacota em 0xAARRGGBB"""
        return (self.a & 0xFF) << 24 | (self.r & 0xFF) << 16 | (self.g & 0xFF) << 8 | (self.b & 0xFF)

    @classmethod
    def unpack(cls, word: int) -> 'Color':
        """Inverso exato de pack()"""
        word = int(word)
        return cls(
            r=(word >> 16) & 0xFF,
            g=(word >> 8) & 0xFF,
            b=word & 0xFF,
            a=(word >> 24) & 0xFF
        )

    def premultiplied(self) -> 'Color':
        """
        Converte para alpha pré-multiplicado

        Cada canal é multiplicado por alpha/255 e truncado (não arredondado):
        Color(100, 100, 100, 50) -> r=g=b=19, a=50.
        """
        fraction = self.a / 255.0
        return Color(
            r=int(self.r * fraction),
            g=int(self.g * fraction),
            b=int(self.b * fraction),
            a=self.a
        )

    def rgb24(self) -> int:
        """Formato COLORREF do GDI (0x00BBGGRR), sem alpha"""
        return (self.b & 0xFF) << 16 | (self.g & 0xFF) << 8 | (self.r & 0xFF)

    @property
    def bgr(self) -> Tuple[int, int, int]:
        """Tupla BGR usada pelo OpenCV"""
        return (self.b, self.g, self.r)


def unpack_channels(words: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Separa palavras ARGB empacotadas nos quatro canais

    Args:
        words: Array de uint32 em qualquer formato

    Returns:
        (a, r, g, b) como arrays uint8 com o mesmo formato
    """
    words = np.asarray(words, dtype=np.uint32)
    a = ((words >> 24) & 0xFF).astype(np.uint8)
    r = ((words >> 16) & 0xFF).astype(np.uint8)
    g = ((words >> 8) & 0xFF).astype(np.uint8)
    b = (words & 0xFF).astype(np.uint8)
    return a, r, g, b


def pack_channels(r: np.ndarray, g: np.ndarray, b: np.ndarray, a=255) -> np.ndarray:
    """Inverso vetorizado de unpack_channels()"""
    r = np.asarray(r, dtype=np.uint32)
    g = np.asarray(g, dtype=np.uint32)
    b = np.asarray(b, dtype=np.uint32)
    a = np.asarray(a, dtype=np.uint32)
    return (a << 24) | (r << 16) | (g << 8) | b


def bgr_to_argb(image: np.ndarray) -> np.ndarray:
    """Converte imagem BGR/BGRA (H, W, 3|4) do OpenCV em palavras ARGB (H, W)"""
    alpha = image[:, :, 3] if image.shape[2] == 4 else 255
    return pack_channels(image[:, :, 2], image[:, :, 1], image[:, :, 0], alpha)


def argb_to_bgr(words: np.ndarray) -> np.ndarray:
    """Converte palavras ARGB (H, W) em imagem BGR (H, W, 3) para o OpenCV"""
    _, r, g, b = unpack_channels(words)
    return np.dstack([b, g, r])


class PixelBuffer:
    """
    Grade 2D row-major sobre um array numpy plano

    O array passado é usado sem cópia (empréstimo durante o quadro), então
    escrever no buffer escreve no destino original da captura.
    """

    def __init__(self, buffer: np.ndarray, width: int):
        """
        Args:
            buffer: Array com width * height elementos (plano, ou contíguo
                    para ser achatado sem cópia)
            width: Largura de cada linha em pixels
        """
        buffer = np.asarray(buffer)
        if buffer.ndim != 1:
            # reshape de um array não contíguo copiaria em silêncio
            if not buffer.flags['C_CONTIGUOUS']:
                raise ValueError("Buffer multidimensional precisa ser contíguo (C)")
            buffer = buffer.reshape(-1)
        if width <= 0 or len(buffer) % width != 0:
            raise ValueError(
                f"Tamanho do buffer ({len(buffer)}) não é múltiplo da largura ({width})"
            )
        self.pixels = buffer
        self.width = width

    @classmethod
    def new(cls, dimensions: Tuple[int, int], value: Union[Color, float, int] = 0,
            dtype=np.uint32) -> 'PixelBuffer':
        """Aloca um buffer (largura, altura) preenchido com value"""
        width, height = dimensions
        buffer = cls(np.zeros(width * height, dtype=dtype), width)
        buffer.fill(value)
        return buffer

    def __len__(self):
        return len(self.pixels)

    @property
    def height(self) -> int:
        return len(self.pixels) // self.width

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    def as_2d(self) -> np.ndarray:
        """View (altura, largura) sobre a mesma memória"""
        return self.pixels.reshape(self.height, self.width)

    def fill(self, value: Union[Color, float, int]):
        """Reescreve o buffer inteiro com um único valor"""
        if isinstance(value, Color):
            value = value.pack()
        self.pixels.fill(value)

    def fill_with(self, f):
        """
        Reescreve o buffer inteiro a partir dos índices

        Args:
            f: Função que recebe o array de índices planos (em ordem
               row-major, x = i % width, y = i // width) e retorna os
               valores desses índices
        """
        indices = np.arange(len(self.pixels))
        values = f(indices)
        if isinstance(values, Color):
            values = values.pack()
        self.pixels[:] = values

    def subview(self, top_left: Tuple[int, int], size: Tuple[int, int]) -> 'SubView':
        """
        Linhas de um retângulo do buffer, de cima para baixo

        Args:
            top_left: Canto superior esquerdo (x, y)
            size: Tamanho (largura, altura) do retângulo

        Returns:
            SubView com size.height fatias de size.width elementos

        Raises:
            OutOfBounds: se o retângulo sai do buffer
        """
        x, y = top_left
        width, height = size
        if x < 0 or y < 0 or width < 0 or height < 0 \
                or x + width > self.width or y + height > self.height:
            raise OutOfBounds(
                f"Retângulo ({x}, {y}) [{width}x{height}] fora do buffer "
                f"[{self.width}x{self.height}]"
            )
        return SubView(self, Coordinate(x, y), Size(width, height))

    def __repr__(self):
        return f"PixelBuffer({self.width}x{self.height}, dtype={self.pixels.dtype})"


class SubView:
    """Sequência preguiçosa de linhas de um retângulo; cada iteração percorre de novo"""

    def __init__(self, buffer: PixelBuffer, top_left: Coordinate, size: Size):
        self.buffer = buffer
        self.top_left = top_left
        self.size = size

    def __len__(self):
        return self.size.height

    def __iter__(self) -> Iterator[np.ndarray]:
        x, y = self.top_left
        stride = self.buffer.width
        for row in range(y, y + self.size.height):
            start = row * stride + x
            yield self.buffer.pixels[start:start + self.size.width]
