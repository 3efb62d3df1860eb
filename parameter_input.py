"""
Entrada manual dos parâmetros do tiro

O console e o painel da UI publicam no mesmo canal não bloqueante; cada
edição parcial é aplicada sobre o último snapshot publicado e o loop de
quadros consome o mais recente no início de cada tick.
"""

import queue
import sys
import threading
from typing import Callable, Optional

import config
from tank import Tank, Direction


class TankChannel:
    """
    Canal de snapshots do Tank para o loop de quadros

    Guarda o último snapshot publicado: edições parciais (console ou painel)
    são aplicadas sobre ele, então uma fonte nunca desfaz a outra.
    """

    def __init__(self, initial: Optional[Tank] = None):
        self._queue = queue.Queue()
        self._lock = threading.Lock()
        self._last = (initial or Tank()).with_parameters()

    @property
    def last_published(self) -> Tank:
        """Cópia do último snapshot publicado (ou do inicial)"""
        with self._lock:
            return self._last.with_parameters()

    def publish(self, tank: Tank):
        """Envia uma cópia completa; nunca bloqueia"""
        with self._lock:
            self._last = tank.with_parameters()
            self._queue.put_nowait(self._last.with_parameters())

    def apply(self, update: Callable[[Tank], Tank]) -> Tank:
        """
        Publica update(último snapshot) de forma atômica

        Args:
            update: Função que recebe uma cópia do último snapshot e
                    devolve o novo Tank (pode levantar ValueError)

        Returns:
            O snapshot publicado
        """
        with self._lock:
            tank = update(self._last.with_parameters())
            self._last = tank.with_parameters()
            self._queue.put_nowait(self._last.with_parameters())
            return tank

    def update(self, **changes) -> Tank:
        """Publica o último snapshot com apenas os campos informados alterados"""
        return self.apply(lambda base: base.with_parameters(**changes))

    def poll(self) -> Optional[Tank]:
        """Snapshot mais recente publicado desde o último poll, ou None"""
        latest = None
        while True:
            try:
                latest = self._queue.get_nowait()
            except queue.Empty:
                return latest


_KEYS = {
    'a': 'angle', 'angle': 'angle', 'angulo': 'angle', 'ângulo': 'angle',
    'p': 'power', 'power': 'power', 'forca': 'power', 'força': 'power',
    'w': 'wind', 'wind': 'wind', 'vento': 'wind',
    'd': 'direction', 'dir': 'direction', 'direction': 'direction', 'direcao': 'direction',
}
_POSITIONAL = ('angle', 'power', 'wind', 'direction')


def parse_parameters(line: str, base: Tank) -> Tank:
    """
    Interpreta uma linha digitada no console

    Formatos aceitos:
        "45 80 -12 left"                 (posicional: ângulo força vento direção)
        "angle=45 power=80 dir=l"        (chave=valor, campos omitidos mantidos)

    Args:
        line: Texto digitado
        base: Tank atual (campos não informados são preservados)

    Returns:
        Novo Tank com os parâmetros aplicados

    Raises:
        ValueError: se a linha não puder ser interpretada
    """
    tokens = line.replace(',', ' ').split()
    if not tokens:
        raise ValueError("Linha vazia")

    values = {}
    for index, token in enumerate(tokens):
        if '=' in token:
            key, _, raw = token.partition('=')
            name = _KEYS.get(key.strip().lower())
            if name is None:
                raise ValueError(f"Parâmetro desconhecido: {key!r}")
        else:
            if index >= len(_POSITIONAL):
                raise ValueError(f"Valores demais: {line!r}")
            name, raw = _POSITIONAL[index], token
        values[name] = raw

    angle = power = wind = direction = None
    try:
        if 'angle' in values:
            angle = int(values['angle'])
        if 'power' in values:
            power = int(values['power'])
        if 'wind' in values:
            wind = int(values['wind'])
    except ValueError as e:
        raise ValueError(f"Valor numérico inválido em {line!r}") from e
    if 'direction' in values:
        direction = Direction.parse(values['direction'])

    if angle is not None and not -90 <= angle <= 90:
        raise ValueError(f"Ângulo fora de -90..90: {angle}")
    if power is not None and not 0 <= power <= 100:
        raise ValueError(f"Força fora de 0..100: {power}")

    return base.with_parameters(angle=angle, power=power, wind=wind, direction=direction)


class ConsoleParameterReader(threading.Thread):
    """Thread que lê parâmetros do stdin e publica no canal"""

    def __init__(self, channel: TankChannel, stream=None):
        super().__init__(daemon=True, name="console-parameters")
        self.channel = channel
        self.stream = stream if stream is not None else sys.stdin

    def run(self):
        print("⌨ Digite: ângulo força vento direção (ex.: 45 80 -12 right)")
        for line in self.stream:
            if not line.strip():
                continue
            try:
                # Campos omitidos vêm do último snapshot publicado (inclusive pelo painel)
                tank = self.channel.apply(lambda base: parse_parameters(line, base))
            except ValueError as e:
                print(f"✗ {e}")
                continue

            if getattr(config, 'DEBUG_CAPTURE_LOGS', False):
                print(f"✓ Parâmetros atualizados: {tank}")
