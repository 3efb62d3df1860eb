"""Testes da entrada manual de parâmetros."""

import io

import pytest

from bitmap import Coordinate
from parameter_input import ConsoleParameterReader, TankChannel, parse_parameters
from tank import Direction, Tank


@pytest.fixture
def base_tank():
    return Tank(screen_position=Coordinate(300, 400), angle=10, power=20, wind=0,
                direction=Direction.RIGHT)


class TestParseParameters:
    """Linhas digitadas no console."""

    def test_positional(self, base_tank):
        tank = parse_parameters("45 80 -12 left", base_tank)
        assert (tank.angle, tank.power, tank.wind) == (45, 80, -12)
        assert tank.direction is Direction.LEFT
        assert tank.screen_position == base_tank.screen_position

    def test_partial_positional_keeps_rest(self, base_tank):
        tank = parse_parameters("60", base_tank)
        assert tank.angle == 60
        assert tank.power == base_tank.power

    def test_key_value(self, base_tank):
        tank = parse_parameters("power=90 dir=l wind=5", base_tank)
        assert tank.power == 90
        assert tank.wind == 5
        assert tank.direction is Direction.LEFT
        assert tank.angle == base_tank.angle

    def test_commas_are_separators(self, base_tank):
        tank = parse_parameters("30, 70, 3, r", base_tank)
        assert (tank.angle, tank.power, tank.wind) == (30, 70, 3)

    def test_base_is_not_modified(self, base_tank):
        parse_parameters("45 80 -12 left", base_tank)
        assert base_tank.angle == 10

    @pytest.mark.parametrize("line", [
        "",
        "abc",
        "95 50",
        "10 101",
        "1 2 3 left 5",
        "gravity=3",
        "10 20 3 up",
    ])
    def test_invalid(self, base_tank, line):
        with pytest.raises(ValueError):
            parse_parameters(line, base_tank)


class TestTankChannel:
    """Canal não bloqueante."""

    def test_poll_empty(self):
        assert TankChannel().poll() is None

    def test_poll_returns_latest(self, base_tank):
        channel = TankChannel()
        channel.publish(base_tank.with_parameters(angle=1))
        channel.publish(base_tank.with_parameters(angle=2))
        assert channel.poll().angle == 2
        assert channel.poll() is None

    def test_publish_copies(self, base_tank):
        channel = TankChannel()
        channel.publish(base_tank)
        base_tank.angle = 88
        assert channel.poll().angle == 10

    def test_starts_from_initial_snapshot(self, base_tank):
        channel = TankChannel(base_tank)
        assert channel.last_published.angle == 10
        assert channel.poll() is None

    def test_update_changes_only_given_fields(self, base_tank):
        channel = TankChannel(base_tank)
        channel.update(angle=30)
        tank = channel.update(wind=-4)
        assert (tank.angle, tank.power, tank.wind) == (30, 20, -4)
        assert channel.poll() == tank

    def test_last_published_is_a_copy(self, base_tank):
        channel = TankChannel(base_tank)
        channel.last_published.power = 99
        assert channel.last_published.power == 20

    def test_failed_apply_keeps_last_snapshot(self, base_tank):
        channel = TankChannel(base_tank)
        channel.update(power=70)
        channel.poll()

        with pytest.raises(ValueError):
            channel.apply(lambda base: parse_parameters("95", base))

        assert channel.last_published.power == 70
        assert channel.last_published.angle == 10
        assert channel.poll() is None


class TestConsoleParameterReader:
    """Thread de leitura do console."""

    def test_publishes_valid_lines(self, base_tank):
        channel = TankChannel(base_tank)
        stream = io.StringIO("45 80 -12 left\n\nnot valid\npower=55\n")
        reader = ConsoleParameterReader(channel, stream=stream)

        reader.run()

        tank = channel.poll()
        assert (tank.angle, tank.power, tank.wind) == (45, 55, -12)
        assert tank.direction is Direction.LEFT

    def test_partial_line_keeps_panel_edit(self, base_tank):
        channel = TankChannel(base_tank)
        # painel altera a força; depois o console envia só o ângulo
        channel.update(power=90)
        ConsoleParameterReader(channel, stream=io.StringIO("angle=45\n")).run()

        tank = channel.poll()
        assert tank.angle == 45
        assert tank.power == 90

    def test_panel_edit_keeps_console_values(self, base_tank):
        channel = TankChannel(base_tank)
        ConsoleParameterReader(channel, stream=io.StringIO("45 80 -12 left\n")).run()
        channel.update(power=30)

        tank = channel.poll()
        assert (tank.angle, tank.power, tank.wind) == (45, 30, -12)
        assert tank.direction is Direction.LEFT

    def test_is_daemon(self, base_tank):
        reader = ConsoleParameterReader(TankChannel(base_tank), stream=io.StringIO(""))
        assert reader.daemon
