"""Testes do mapa de score e da busca em duas fases."""

import numpy as np
import pytest

import config
from bitmap import Color, Coordinate, OutOfBounds, PixelBuffer, Size
from detector import (
    DetectionResult,
    TankDetector,
    build_score_field,
    find_tank,
    menu_offset_for_dimensions,
    refine_region,
    rolling_sum_search,
    tank_likeliness,
    tank_size_for_dimensions,
    window_score,
)


def score_field(width, height):
    return PixelBuffer(np.zeros(width * height, dtype=np.float32), width)


class TestScoreTransform:
    """Score de verde por pixel."""

    def test_green_pixel(self):
        words = np.array([Color(r=50, g=150, b=30).pack()], dtype=np.uint32)
        assert tank_likeliness(words)[0] == 70.0

    def test_saturates_at_zero(self):
        words = np.array([Color(r=200, g=50, b=10).pack()], dtype=np.uint32)
        assert tank_likeliness(words)[0] == 0.0

    def test_alpha_ignored(self):
        words = np.array([Color(r=0, g=255, b=0, a=0).pack()], dtype=np.uint32)
        assert tank_likeliness(words)[0] == 255.0

    def test_field_has_same_shape(self):
        colors = PixelBuffer.new((7, 3), Color(10, 40, 10))
        field = build_score_field(colors)
        assert field.size == colors.size
        assert field.pixels.dtype == np.float32
        assert np.all(field.pixels == 20.0)

    def test_field_reuses_output_buffer(self):
        colors = PixelBuffer.new((4, 4), Color(0, 100, 0))
        out = PixelBuffer.new((4, 4), 0.0, dtype=np.float32)
        backing = out.pixels
        result = build_score_field(colors, out=out)
        assert result is out
        assert result.pixels is backing
        assert np.all(backing == 100.0)

    def test_field_rewritten_each_frame(self):
        out = build_score_field(PixelBuffer.new((4, 4), Color(0, 100, 0)))
        backing = out.pixels
        next_frame = PixelBuffer.new((4, 4), Color(0, 0, 0))
        next_frame.as_2d()[1, 2] = Color(10, 60, 5).pack()

        result = build_score_field(next_frame, out=out)

        assert result.pixels is backing
        assert result.as_2d()[1, 2] == 45.0
        assert result.pixels.sum() == 45.0

    def test_field_maps_back_to_coordinates(self):
        colors = PixelBuffer.new((6, 4), Color(0, 0, 0))
        colors.as_2d()[2, 5] = Color(0, 90, 0).pack()
        field = build_score_field(colors)
        assert field.as_2d()[2, 5] == 90.0
        assert field.pixels.sum() == 90.0


class TestRollingSumSearch:
    """Janela deslizante de maior soma."""

    def test_finds_exact_rectangle(self):
        field = score_field(50, 40)
        field.as_2d()[20:25, 12:19] = 1.0
        best = rolling_sum_search(field, Coordinate(0, 0), Coordinate(50, 40), Size(7, 5), 1)
        assert best == Coordinate(12, 20)

    def test_respects_region_offset(self):
        field = score_field(50, 40)
        field.as_2d()[30:33, 40:44] = 5.0
        best = rolling_sum_search(field, (30, 25), (50, 40), (4, 3), 1)
        assert best == (40, 30)

    def test_ignores_maximum_outside_region(self):
        field = score_field(50, 40)
        field.as_2d()[0:3, 0:3] = 100.0
        field.as_2d()[30:33, 30:33] = 1.0
        best = rolling_sum_search(field, (10, 10), (50, 40), (3, 3), 1)
        assert best == (30, 30)

    def test_stride_only_visits_grid(self):
        field = score_field(40, 40)
        field.as_2d()[13:16, 13:16] = 1.0
        best = rolling_sum_search(field, (0, 0), (40, 40), (4, 4), 10)
        assert best.x % 10 == 0 and best.y % 10 == 0
        assert best == (10, 10)

    def test_tie_resolves_to_first_in_row_major_order(self):
        field = score_field(30, 30)
        best = rolling_sum_search(field, (0, 0), (30, 30), (5, 5), 1)
        assert best == (0, 0)

        field.as_2d()[2:4, 20:22] = 1.0
        field.as_2d()[10:12, 5:7] = 1.0
        best = rolling_sum_search(field, (0, 0), (30, 30), (2, 2), 1)
        assert best == (20, 2)

    def test_matches_full_window_sums(self):
        rng = np.random.default_rng(7)
        field = PixelBuffer(rng.integers(0, 256, 30 * 20).astype(np.float32), 30)
        window = Size(6, 4)
        best = rolling_sum_search(field, (0, 0), (30, 20), window, 1)

        sums = {
            (x, y): window_score(field, (x, y), window)
            for y in range(0, 20 - 4 + 1)
            for x in range(0, 30 - 6 + 1)
        }
        assert window_score(field, best, window) == max(sums.values())

    @pytest.mark.parametrize("stop", [(5, 40), (50, 4), (5, 4)])
    def test_none_when_region_smaller_than_window(self, stop):
        field = score_field(50, 40)
        assert rolling_sum_search(field, (0, 0), stop, (6, 5), 1) is None

    def test_none_for_empty_region(self):
        field = score_field(50, 40)
        assert rolling_sum_search(field, (20, 20), (20, 20), (1, 1), 1) is None

    def test_region_outside_field(self):
        field = score_field(50, 40)
        with pytest.raises(OutOfBounds):
            rolling_sum_search(field, (0, 0), (51, 40), (5, 5), 1)

    def test_invalid_stride(self):
        field = score_field(10, 10)
        with pytest.raises(ValueError):
            rolling_sum_search(field, (0, 0), (10, 10), (2, 2), 0)


class TestGeometry:
    """Tamanhos derivados da resolução."""

    def test_tank_size_1080p(self):
        assert tank_size_for_dimensions((1920, 1080)) == Size(39, 19)

    def test_tank_size_1440p(self):
        assert tank_size_for_dimensions((2560, 1440)) == Size(53, 26)

    def test_menu_offset(self):
        assert 180 <= menu_offset_for_dimensions((1920, 1080)) <= 184

    def test_refine_region_clamped_to_frame(self):
        start, stop = refine_region(Coordinate(5, 200), Size(40, 20), (100, 230), menu_offset=190)
        assert start == (0, 190)
        assert stop == (85, 230)

    def test_refine_region_spans_three_windows(self):
        start, stop = refine_region(Coordinate(500, 500), Size(40, 20), (1920, 1080))
        margin = config.REFINE_MARGIN
        assert stop.x - start.x == 40 * (2 * margin + 1)
        assert stop.y - start.y == 20 * (2 * margin + 1)


class TestFindTank:
    """Busca grossa seguida de refinamento."""

    def test_synthetic_tank_1080p(self, tank_frame):
        width, height = tank_size_for_dimensions((1920, 1080))
        center = find_tank(tank_frame, (1920, 1080))

        assert center is not None
        assert abs(center.x - (800 + width // 2)) <= 2
        assert abs(center.y - (500 + height // 2)) <= 2

    def test_reuses_score_buffer(self, tank_frame):
        score = PixelBuffer.new((1920, 1080), 0.0, dtype=np.float32)
        find_tank(tank_frame, (1920, 1080), score)
        assert score.pixels.max() == 80.0

    def test_tank_inside_menu_band_is_ignored(self):
        dimensions = (640, 360)
        colors = PixelBuffer.new(dimensions, Color(0, 0, 0))
        colors.as_2d()[5:11, 100:113] = Color(0, 255, 0).pack()
        colors.as_2d()[300:306, 400:413] = Color(0, 80, 0).pack()

        center = find_tank(colors, dimensions)
        assert center.y > menu_offset_for_dimensions(dimensions)
        assert abs(center.x - 406) <= 2

    def test_none_when_frame_too_small(self):
        dimensions = (20, 20)
        colors = PixelBuffer.new(dimensions, Color(0, 255, 0))
        assert find_tank(colors, dimensions) is None


class TestTankDetector:
    """Detector usado pelo loop em tempo real."""

    def test_detects_tank(self, tank_frame):
        result = TankDetector().detect(tank_frame)
        assert result.found
        assert result.confidence > config.MIN_CONFIDENCE
        assert result.size == tank_size_for_dimensions((1920, 1080))

    def test_dark_frame_is_not_found(self):
        colors = PixelBuffer.new((640, 360), Color(0, 0, 0))
        result = TankDetector().detect(colors)
        assert not result.found
        assert "Nenhum" in str(result)

    def test_score_buffer_follows_resolution(self, tank_frame):
        detector = TankDetector()
        detector.detect(PixelBuffer.new((320, 180), Color(0, 0, 0)))
        assert detector.score.size == (320, 180)
        detector.detect(tank_frame)
        assert detector.score.size == (1920, 1080)

    def test_visualize_does_not_modify_input(self):
        image = np.zeros((100, 200, 3), dtype=np.uint8)
        result = DetectionResult(found=True, confidence=0.5, position=(50, 50), size=(20, 10))
        segments = [((50, 50), (60, 45)), ((70, 40), (80, 35))]

        vis = TankDetector().visualize_detection(image, result, segments)

        assert vis.shape == image.shape
        assert image.sum() == 0
        assert vis.sum() > 0

    def test_visualize_not_found_is_copy(self):
        image = np.full((10, 10, 3), 7, dtype=np.uint8)
        result = DetectionResult(found=False, confidence=0.0, position=(0, 0), size=(0, 0))
        vis = TankDetector().visualize_detection(image, result)
        assert vis is not image
        assert np.array_equal(vis, image)
