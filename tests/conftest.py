"""Fixtures compartilhadas pelos testes."""
import numpy as np
import pytest

from bitmap import Color, PixelBuffer
from detector import tank_size_for_dimensions


@pytest.fixture
def grid_100():
    """Buffer 10x10 onde cada pixel guarda o próprio índice (0..99)."""
    return PixelBuffer(np.arange(100, dtype=np.uint32), 10)


@pytest.fixture
def tank_frame():
    """Captura 1920x1080 preta com um retângulo verde escuro do tamanho do tanque em (800, 500)."""
    dimensions = (1920, 1080)
    frame = PixelBuffer.new(dimensions, Color(0, 0, 0))
    width, height = tank_size_for_dimensions(dimensions)
    frame.as_2d()[500:500 + height, 800:800 + width] = Color(20, 120, 20).pack()
    return frame
