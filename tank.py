"""
Modelo balístico do tanque

As constantes físicas foram medidas em um monitor 2560x1440 e são
escaladas linearmente para a resolução da captura.
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

import config
from bitmap import Coordinate, Size


class Direction(Enum):
    """Lado para o qual o tanque atira"""
    LEFT = -1
    RIGHT = 1

    @classmethod
    def parse(cls, value: str) -> 'Direction':
        """Aceita 'left'/'right', 'l'/'r', 'esquerda'/'direita', '<'/'>'"""
        text = str(value).strip().lower()
        if text in ('left', 'l', 'esquerda', 'e', '<', '-1'):
            return cls.LEFT
        if text in ('right', 'r', 'direita', 'd', '>', '1'):
            return cls.RIGHT
        raise ValueError(f"Direção inválida: {value!r}")


@dataclass
class Tank:
    """Estado do tanque: posição na tela e parâmetros do tiro"""
    screen_position: Coordinate = field(default_factory=lambda: Coordinate(0, 0))
    angle: int = config.DEFAULT_ANGLE    # Graus, -90..90
    power: int = config.DEFAULT_POWER    # 0..100
    wind: int = config.DEFAULT_WIND      # Sinal indica o sentido
    direction: Direction = Direction.parse(config.DEFAULT_DIRECTION)

    def __str__(self):
        return (f"Tanque em {tuple(self.screen_position)} | Ângulo: {self.angle}° | "
                f"Força: {self.power} | Vento: {self.wind} | "
                f"Direção: {self.direction.name.lower()}")

    def snapshot(self) -> 'FrozenTank':
        """Cópia imutável usada para construir a trajetória"""
        return FrozenTank(
            screen_position=Coordinate(*self.screen_position),
            angle=self.angle,
            power=self.power,
            wind=self.wind,
            direction=self.direction
        )

    def with_parameters(self, angle: Optional[int] = None, power: Optional[int] = None,
                        wind: Optional[int] = None,
                        direction: Optional[Direction] = None) -> 'Tank':
        """Cópia com novos parâmetros de tiro (posição preservada)"""
        changes = {
            name: value for name, value in (
                ('angle', angle), ('power', power), ('wind', wind), ('direction', direction)
            ) if value is not None
        }
        return replace(self, **changes)


@dataclass(frozen=True)
class FrozenTank:
    screen_position: Coordinate
    angle: int
    power: int
    wind: int
    direction: Direction


def curve(t: int, tank, dimensions: Size) -> Coordinate:
    """
    Posição do projétil no passo t

    Args:
        t: Passo de tempo (inteiro >= 0)
        tank: Tank ou FrozenTank com posição e parâmetros
        dimensions: (largura, altura) da captura

    Returns:
        Coordenada na tela
    """
    x_scale = dimensions[0] / config.REFERENCE_WIDTH
    y_scale = dimensions[1] / config.REFERENCE_HEIGHT

    radians = math.radians(tank.angle)

    x_t = config.POWER_CONSTANT * x_scale * tank.power * math.cos(radians)
    x_t2 = 0.5 * tank.wind * config.WIND_CONSTANT * x_scale

    y_t = config.POWER_CONSTANT * y_scale * tank.power * math.sin(radians)
    y_t2 = -0.5 * config.GRAVITY_CONSTANT * y_scale

    x = tank.direction.value * (x_t * t + x_t2 * t * t)
    y = y_t * t + y_t2 * t * t

    origin = tank.screen_position
    return Coordinate(origin[0] + int(round(x)), origin[1] + int(round(y)))


@dataclass(frozen=True)
class TrajectoryPath:
    """Trajetória congelada: chamar path(t) devolve a posição no passo t"""
    tank: FrozenTank
    dimensions: Size

    @classmethod
    def from_tank(cls, tank: Tank, dimensions) -> 'TrajectoryPath':
        return cls(tank=tank.snapshot(), dimensions=Size(*dimensions))

    def __call__(self, t: int) -> Coordinate:
        return curve(t, self.tank, self.dimensions)
