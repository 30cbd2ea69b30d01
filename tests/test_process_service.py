import numpy as np
import pytest

from image_gateway.services.process_service import ProcessService, SamplingFilter

service = ProcessService()


def test_grayscale_averages_channels(make_state):
    state = make_state(color=(100, 150, 200, 128))
    service.grayscale(state)
    assert tuple(state.pixels[0, 0]) == (150, 150, 150, 128)


def test_sepia_warms_gray(make_state):
    state = make_state(color=(100, 100, 100, 255))
    service.sepia(state)
    r, g, b, a = state.pixels[0, 0]
    assert r > g > b
    assert a == 255


def test_solarize_only_touches_red(make_state):
    state = make_state(color=(50, 60, 70, 255))
    service.solarize(state)
    assert tuple(state.pixels[0, 0]) == (150, 60, 70, 255)
    bright = make_state(color=(220, 60, 70, 255))
    service.solarize(bright)
    assert bright.pixels[0, 0, 0] == 220


def test_adjust_contrast_zero_is_identity(make_state):
    state = make_state(color=(10, 128, 250, 255))
    service.adjust_contrast(state, 0.0)
    assert tuple(state.pixels[0, 0]) == (10, 128, 250, 255)


def test_adjust_contrast_spreads_values(make_state):
    state = make_state(color=(100, 128, 160, 255))
    service.adjust_contrast(state, 100.0)
    r, g, b, _ = state.pixels[0, 0]
    assert r < 100 and g == 128 and b > 160


@pytest.mark.parametrize("op", ["sharpen", "box_blur", "emboss"])
def test_kernels_keep_uniform_image(make_state, op):
    state = make_state(5, 5, (90, 120, 30, 200))
    getattr(service, op)(state)
    assert np.all(state.pixels == np.array([90, 120, 30, 200], dtype=np.uint8))


def test_edge_detection_blanks_uniform_image(make_state):
    state = make_state(5, 5, (90, 120, 30, 200))
    service.edge_detection(state)
    assert np.all(state.pixels[..., :3] == 0)
    assert np.all(state.pixels[..., 3] == 200)


def test_flips(make_state):
    state = make_state(3, 2)
    state.pixels[0, 0] = (1, 2, 3, 4)
    service.fliph(state)
    assert tuple(state.pixels[0, 2]) == (1, 2, 3, 4)
    service.flipv(state)
    assert tuple(state.pixels[1, 2]) == (1, 2, 3, 4)


@pytest.mark.parametrize("sampling", list(SamplingFilter))
def test_resize_every_filter(make_state, sampling):
    state = make_state(20, 10)
    service.resize(state, 7, 3, sampling)
    assert (state.width, state.height) == (7, 3)
    state.validate()


def test_resize_zero_is_clamped_to_one_pixel(make_state):
    state = make_state(20, 10)
    service.resize(state, 0, 0)
    assert (state.width, state.height) == (1, 1)


def test_crop_clamps_and_orders(make_state):
    state = make_state(10, 10)
    service.crop(state, 8, 8, 2, 50)
    assert (state.width, state.height) == (6, 2)


def test_crop_empty_region_is_noop(make_state):
    state = make_state(10, 10)
    service.crop(state, 4, 0, 4, 10)
    assert (state.width, state.height) == (10, 10)


def test_rotate_expands_canvas(make_state):
    state = make_state(10, 10)
    service.rotate(state, 45.0)
    assert state.width > 10 and state.height > 10


def test_watermark_outside_is_noop(make_state):
    state = make_state(4, 4, (255, 0, 0, 255))
    service.watermark(state, make_state(2, 2, (0, 0, 255, 255)), 10, 10)
    assert np.all(state.pixels[..., 0] == 255)


def test_watermark_negative_offset_is_clipped(make_state):
    state = make_state(4, 4, (255, 0, 0, 255))
    service.watermark(state, make_state(2, 2, (0, 0, 255, 255)), -1, -1)
    assert tuple(state.pixels[0, 0]) == (0, 0, 255, 255)
    assert tuple(state.pixels[1, 1]) == (255, 0, 0, 255)


def test_blend_difference_over_overlap_only(make_state):
    state = make_state(4, 4, (200, 100, 50, 255))
    service.blend(state, make_state(2, 2, (50, 100, 50, 255)), "difference")
    assert tuple(state.pixels[0, 0]) == (150, 0, 0, 255)
    assert tuple(state.pixels[3, 3]) == (200, 100, 50, 255)


def test_blend_unknown_mode_is_noop(make_state):
    state = make_state(color=(200, 100, 50, 255))
    service.blend(state, make_state(color=(0, 0, 0, 255)), "sparkle")
    assert tuple(state.pixels[0, 0]) == (200, 100, 50, 255)


def test_blend_respects_top_alpha(make_state):
    state = make_state(color=(200, 100, 50, 255))
    service.blend(state, make_state(color=(0, 0, 0, 0)), "over")
    assert tuple(state.pixels[0, 0]) == (200, 100, 50, 255)


def test_filter_preset_and_unknown_name(make_state):
    state = make_state(color=(0, 0, 0, 255))
    service.filter(state, "oceanic")
    assert tuple(state.pixels[0, 0, :3]) != (0, 0, 0)

    other = make_state(color=(0, 0, 0, 255))
    service.filter(other, "no_such_filter")
    assert tuple(other.pixels[0, 0, :3]) == (0, 0, 0)


def test_remove_channel_threshold(make_state):
    state = make_state(color=(100, 150, 200, 255))
    service.remove_channel(state, 2, 150)
    assert tuple(state.pixels[0, 0]) == (100, 150, 200, 255)
    service.remove_channel(state, 1, 151)
    assert tuple(state.pixels[0, 0]) == (100, 0, 200, 255)


def test_draw_text_marks_pixels(make_state):
    state = make_state(64, 32, (0, 0, 0, 255))
    service.draw_text(state, "Hi", 2, 2, 20.0)
    assert (state.width, state.height) == (64, 32)
    assert state.pixels[..., :3].max() > 0


def test_effects_keep_alpha(make_state):
    for op in ("colorize", "lofi", "dramatic"):
        state = make_state(6, 6, (0, 200, 200, 77))
        getattr(service, op)(state)
        assert np.all(state.pixels[..., 3] == 77)


@pytest.mark.parametrize("size", [100000.0, 1e30, -5.0])
def test_draw_text_out_of_range_size_is_clamped(make_state, size):
    state = make_state(16, 16, (0, 0, 0, 255))
    service.draw_text(state, "hi", 0, 0, size)
    assert (state.width, state.height) == (16, 16)


def test_alter_channel_saturates_large_amount(make_state):
    state = make_state(color=(200, 150, 100, 255))
    service.alter_channel(state, 0, 32767)
    assert tuple(state.pixels[0, 0]) == (255, 150, 100, 255)
    service.alter_channel(state, 1, -32768)
    assert tuple(state.pixels[0, 0]) == (255, 0, 100, 255)
