"""
Localização do tanque em duas fases (grossa e refinada) sobre um mapa de score
"""

import cv2
import numpy as np
from typing import Tuple, List, Optional
from dataclasses import dataclass
import config
from bitmap import Coordinate, Size, PixelBuffer, OutOfBounds, unpack_channels


@dataclass
class DetectionResult:
    """Resultado da detecção"""
    found: bool
    confidence: float
    position: Tuple[int, int]  # Centro (x, y)
    size: Tuple[int, int]      # (width, height) da janela de busca

    def __str__(self):
        if not self.found:
            return "Nenhum tanque detectado"
        return (f"Tanque detectado | "
                f"Confiança: {self.confidence:.2%} | "
                f"Posição: {tuple(self.position)} | "
                f"Tamanho: {tuple(self.size)}")


def tank_size_for_dimensions(dimensions: Tuple[int, int]) -> Size:
    """Tamanho da janela de busca para a resolução da captura"""
    width = dimensions[0] * config.TANK_WIDTH_FRACTION
    height = dimensions[1] * config.TANK_HEIGHT_FRACTION
    return Size(int(width), int(height))


def menu_offset_for_dimensions(dimensions: Tuple[int, int]) -> int:
    """Altura da faixa de menu no topo, excluída da busca"""
    return int(dimensions[1] * config.MENU_BAR_FRACTION)


def tank_likeliness(words: np.ndarray) -> np.ndarray:
    """
    Score de "verde" por pixel: max(0, g - r - b)

    Args:
        words: Pixels ARGB empacotados (uint32)

    Returns:
        Scores float32 com o mesmo formato
    """
    _, r, g, b = unpack_channels(words)
    score = g.astype(np.int16) - r.astype(np.int16) - b.astype(np.int16)
    return np.clip(score, 0, None).astype(np.float32)


def build_score_field(colors: PixelBuffer, out: Optional[PixelBuffer] = None) -> PixelBuffer:
    """
    Constrói o mapa de score a partir do buffer de cores

    Args:
        colors: Buffer ARGB da captura
        out: Buffer float32 do mesmo tamanho para reaproveitar (opcional)

    Returns:
        Buffer float32 com largura/altura iguais às de colors
    """
    if out is None or out.size != colors.size:
        out = PixelBuffer(np.zeros(len(colors), dtype=np.float32), colors.width)

    # escrita direta no buffer reaproveitado, sem cópia dos pixels da captura
    out.pixels[:] = tank_likeliness(colors.pixels)
    return out


def window_score(field: PixelBuffer, top_left: Tuple[int, int], size: Tuple[int, int]) -> float:
    """Soma dos scores dentro de uma janela"""
    return float(sum(row.sum(dtype=np.float64) for row in field.subview(top_left, size)))


def rolling_sum_search(
    field: PixelBuffer,
    start: Tuple[int, int],
    stop: Tuple[int, int],
    window: Tuple[int, int],
    stride: int
) -> Optional[Coordinate]:
    """
    Janela de maior soma dentro de [start, stop)

    A janela desliza com passo stride nos dois eixos. Em empate vence a
    primeira encontrada percorrendo linha a linha (y externo, x interno).
    As somas vêm de uma tabela de áreas acumuladas, com o mesmo resultado
    de somar cada janela inteira.

    Args:
        field: Mapa de score float32
        start: Canto superior esquerdo da região (x, y)
        stop: Canto inferior direito exclusivo da região (x, y)
        window: Tamanho (largura, altura) da janela
        stride: Passo em pixels

    Returns:
        Canto superior esquerdo da melhor janela, ou None se nenhuma cabe
    """
    if stride < 1:
        raise ValueError(f"Passo inválido: {stride}")

    x0, y0 = start
    x1, y1 = stop
    w, h = window

    if x0 < 0 or y0 < 0 or x1 > field.width or y1 > field.height:
        raise OutOfBounds(
            f"Região ({x0}, {y0}) → ({x1}, {y1}) fora do mapa [{field.width}x{field.height}]"
        )

    if w <= 0 or h <= 0 or x1 - x0 < w or y1 - y0 < h:
        return None

    region = np.ascontiguousarray(field.as_2d()[y0:y1, x0:x1], dtype=np.float32)
    integral = cv2.integral(region, sdepth=cv2.CV_64F)

    xs = np.arange(0, x1 - x0 - w + 1, stride)
    ys = np.arange(0, y1 - y0 - h + 1, stride)

    sums = (
        integral[np.ix_(ys + h, xs + w)]
        - integral[np.ix_(ys, xs + w)]
        - integral[np.ix_(ys + h, xs)]
        + integral[np.ix_(ys, xs)]
    )

    # argmax devolve o primeiro máximo em ordem row-major
    best = int(np.argmax(sums))
    row, col = divmod(best, len(xs))
    return Coordinate(x0 + int(xs[col]), y0 + int(ys[row]))


def refine_region(coarse: Coordinate, window: Size, dimensions: Tuple[int, int],
                  menu_offset: int = 0) -> Tuple[Coordinate, Coordinate]:
    """Região de refinamento ao redor do resultado grosso, presa aos limites da tela"""
    margin_x = window.width * config.REFINE_MARGIN
    margin_y = window.height * config.REFINE_MARGIN

    start = Coordinate(
        max(0, coarse.x - margin_x),
        max(menu_offset, coarse.y - margin_y)
    )
    stop = Coordinate(
        min(dimensions[0], coarse.x + window.width + margin_x),
        min(dimensions[1], coarse.y + window.height + margin_y)
    )
    return start, stop


def find_tank(
    colors: PixelBuffer,
    dimensions: Tuple[int, int],
    score: Optional[PixelBuffer] = None
) -> Optional[Coordinate]:
    """
    Posição mais provável do centro do tanque

    Args:
        colors: Buffer ARGB da captura
        dimensions: (largura, altura) da captura
        score: Buffer float32 reaproveitado entre quadros (opcional)

    Returns:
        Centro estimado do tanque, ou None se não houver candidato
    """
    window = tank_size_for_dimensions(dimensions)
    menu_offset = menu_offset_for_dimensions(dimensions)

    score = build_score_field(colors, out=score)

    # Fase grossa: tela inteira abaixo do menu, passo grande
    coarse = rolling_sum_search(
        score,
        Coordinate(0, menu_offset),
        Coordinate(dimensions[0], dimensions[1]),
        window,
        config.COARSE_STRIDE
    )
    if coarse is None:
        return None

    # Refinamento: vizinhança do resultado grosso, passo pequeno
    start, stop = refine_region(coarse, window, dimensions, menu_offset)
    fine = rolling_sum_search(score, start, stop, window, config.FINE_STRIDE)
    if fine is None:
        return None

    return Coordinate(fine.x + window.width // 2, fine.y + window.height // 2)


class TankDetector:
    """
    Detector do tanque para o loop em tempo real

    Reaproveita o buffer do mapa de score enquanto a resolução não muda.
    """

    def __init__(self):
        self.score = None

    def detect(self, colors: PixelBuffer) -> DetectionResult:
        """
        Detecta o tanque em um quadro

        Args:
            colors: Buffer ARGB do quadro capturado

        Returns:
            Resultado da detecção (found=False se não localizado)
        """
        dimensions = colors.size
        window = tank_size_for_dimensions(dimensions)

        if self.score is None or self.score.size != dimensions:
            self.score = PixelBuffer.new(dimensions, 0.0, dtype=np.float32)

        center = find_tank(colors, dimensions, self.score)
        if center is None:
            return DetectionResult(
                found=False,
                confidence=0.0,
                position=(0, 0),
                size=window
            )

        top_left = Coordinate(center.x - window.width // 2, center.y - window.height // 2)
        area = max(1, window.width * window.height)
        confidence = window_score(self.score, top_left, window) / area / 255.0

        if confidence < config.MIN_CONFIDENCE:
            if getattr(config, 'DEBUG_CAPTURE_LOGS', False) and confidence > 0:
                print(f"⚠ Detecção abaixo do limiar: {confidence:.2%} "
                      f"(limiar: {config.MIN_CONFIDENCE:.2%}) em {tuple(center)}")
            return DetectionResult(
                found=False,
                confidence=confidence,
                position=center,
                size=window
            )

        return DetectionResult(
            found=True,
            confidence=confidence,
            position=center,
            size=window
        )

    def visualize_detection(
        self,
        image: np.ndarray,
        result: DetectionResult,
        segments: Optional[List[Tuple[Coordinate, Coordinate]]] = None
    ) -> np.ndarray:
        """
        Desenha detecção e trajetória sobre o quadro

        Args:
            image: Imagem BGR original
            result: Resultado da detecção
            segments: Traços da trajetória pontilhada

        Returns:
            Imagem com visualização
        """
        vis_image = image.copy()

        if not result.found:
            return vis_image

        x, y = result.position
        w, h = result.size
        rect_x = x - w // 2
        rect_y = y - h // 2

        # Retângulo da janela encontrada
        color = (0, 255, 0) if result.confidence > 0.2 else (0, 255, 255)
        cv2.rectangle(vis_image, (rect_x, rect_y), (rect_x + w, rect_y + h), color, 2)

        # Cruz no centro (origem do tiro)
        center_color = (255, 0, 0)
        cross_size = 5
        cv2.line(vis_image, (x - cross_size, y), (x + cross_size, y), center_color, 2)
        cv2.line(vis_image, (x, y - cross_size), (x, y + cross_size), center_color, 2)

        # Trajetória
        pen_color = config.PEN_COLOR.bgr
        for start, end in segments or []:
            cv2.line(vis_image, tuple(start), tuple(end), pen_color, config.PEN_WIDTH)

        label = f"TANK {result.confidence:.1%}"
        cv2.putText(
            vis_image,
            label,
            (rect_x, rect_y - 10),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.5,
            color,
            2
        )

        return vis_image
