"""
Rasterização de curvas paramétricas como linha pontilhada
"""

import math
from typing import Callable, Iterator, List, Tuple

import config
from bitmap import Coordinate

Segment = Tuple[Coordinate, Coordinate]


def leaves_viewport(point: Coordinate, dimensions) -> bool:
    """True quando o ponto saiu da área visível por qualquer borda"""
    max_x, max_y = dimensions
    return point[0] > max_x or point[0] <= 0 or point[1] <= 0 or point[1] > max_y


def dotted_segments(
    curve_fn: Callable[[int], Coordinate],
    dimensions,
    dot_length: int = None,
    max_steps: int = None
) -> Iterator[Segment]:
    """
    Traços visíveis de uma linha pontilhada ao longo da curva

    Avança t de 1 em 1; sempre que a distância desde o início do trecho
    atual chega a dot_length o trecho é fechado. Trechos alternam entre
    desenhado e espaço, começando desenhado. Para quando a curva sai da
    tela, sem emitir o trecho parcial.

    Args:
        curve_fn: Função t -> (x, y)
        dimensions: (largura, altura) da área visível
        dot_length: Comprimento de cada traço/espaço em pixels
        max_steps: Limite de passos (curvas que nunca saem da tela)

    Yields:
        (início, fim) de cada traço a desenhar
    """
    if dot_length is None:
        dot_length = config.DOT_LENGTH
    if max_steps is None:
        max_steps = config.MAX_CURVE_STEPS

    solid = True
    segment_start = curve_fn(0)

    for t in range(1, max_steps + 1):
        current = curve_fn(t)

        if leaves_viewport(current, dimensions):
            return

        length = math.hypot(current[0] - segment_start[0], current[1] - segment_start[1])
        if length >= dot_length:
            if solid:
                yield (segment_start, current)
            solid = not solid
            segment_start = current


def draw_dotted_curve(
    draw_line: Callable[[Coordinate, Coordinate], None],
    curve_fn: Callable[[int], Coordinate],
    dimensions,
    dot_length: int = None
) -> List[Segment]:
    """
    Desenha a curva pontilhada chamando draw_line uma vez por traço

    Erros da primitiva de desenho são propagados para quem processa o quadro.

    Returns:
        Traços desenhados, na ordem em que foram desenhados
    """
    drawn = []
    for segment in dotted_segments(curve_fn, dimensions, dot_length):
        draw_line(*segment)
        drawn.append(segment)
    return drawn
