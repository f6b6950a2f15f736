import numpy as np
import pytest

from analog_lens.errors import InvalidParameter
from analog_lens.image_ops import (
    Operation,
    apply_brightness,
    apply_chain,
    apply_contrast,
    apply_grayscale,
    apply_hue_rotate,
    apply_saturation,
    apply_sepia,
    build_chain,
    filter_string,
    interpolate,
    process_rgb8,
)
from analog_lens.params import GradeParameters
from analog_lens.resolver import resolve

from conftest import make_pixels


def test_apply_contrast_neutral():
    img = np.array([0.2, 0.5, 0.8], dtype=np.float32)
    assert np.allclose(apply_contrast(img, 1.0), img)


def test_apply_contrast_increase():
    img = np.array([0.4, 0.5, 0.6], dtype=np.float32)
    # (0.4 - 0.5) * 2 + 0.5 = 0.3
    assert np.allclose(apply_contrast(img, 2.0), [0.3, 0.5, 0.7])


def test_apply_brightness_clips():
    img = np.array([0.2, 0.6, 0.9], dtype=np.float32)
    assert np.allclose(apply_brightness(img, 2.0), [0.4, 1.0, 1.0])


def test_apply_saturation_zero_is_gray():
    img = np.random.rand(8, 8, 3).astype(np.float32)
    res = apply_saturation(img, 0.0)
    assert np.allclose(res[..., 0], res[..., 1], atol=1e-6)
    assert np.allclose(res[..., 1], res[..., 2], atol=1e-6)


def test_apply_saturation_identity():
    img = np.random.rand(8, 8, 3).astype(np.float32)
    assert np.allclose(apply_saturation(img, 1.0), img, atol=1e-6)


def test_apply_grayscale_full():
    img = np.array([[[1.0, 0.0, 0.0]]], dtype=np.float32)
    assert np.allclose(apply_grayscale(img, 1.0), 0.2126, atol=1e-6)


def test_apply_grayscale_amount_is_capped_at_one():
    img = np.random.rand(4, 4, 3).astype(np.float32)
    assert np.allclose(apply_grayscale(img, 3.0), apply_grayscale(img, 1.0))


def test_apply_sepia_on_white():
    img = np.ones((1, 1, 3), dtype=np.float32)
    assert np.allclose(apply_sepia(img, 1.0), [[[1.0, 1.0, 0.937]]], atol=1e-6)


def test_apply_hue_rotate_identity_and_full_turn():
    img = np.random.rand(6, 6, 3).astype(np.float32)
    assert np.allclose(apply_hue_rotate(img, 0.0), img, atol=1e-5)
    assert np.allclose(apply_hue_rotate(img, 360.0), img, atol=1e-5)


def test_apply_hue_rotate_keeps_gray():
    img = np.full((2, 2, 3), 0.4, dtype=np.float32)
    assert np.allclose(apply_hue_rotate(img, 90.0), img, atol=1e-5)


def test_interpolate_half():
    mixed = interpolate(GradeParameters(contrast=1.2, sepia=0.4, hue_rotate=-30.0), 50)
    assert mixed.contrast == pytest.approx(1.1)
    assert mixed.sepia == pytest.approx(0.2)
    assert mixed.hue_rotate == pytest.approx(-15.0)
    assert mixed.saturation == 1.0


def test_ilford_full_intensity_chain():
    chain = build_chain(resolve("Ilford HP5 Plus 400", "general"), 100)
    assert chain == (
        Operation("brightness", 1.1),
        Operation("contrast", 1.2),
        Operation("grayscale", 1.0),
    )
    assert filter_string(chain) == "brightness(1.1) contrast(1.2) grayscale(1)"


def test_no_style_portrait_half_intensity_chain():
    chain = build_chain(resolve("None", "portrait"), 50)
    assert [op.name for op in chain] == ["contrast", "sepia"]
    assert chain[0].value == pytest.approx(0.975)
    assert chain[1].value == pytest.approx(0.025)


def test_full_intensity_applies_target_values():
    target = GradeParameters(contrast=1.15, saturation=1.3, brightness=0.95, sepia=0.25, grayscale=0.5, hue_rotate=-15.0)
    chain = build_chain(target, 100)
    assert chain == (
        Operation("brightness", 0.95),
        Operation("contrast", 1.15),
        Operation("saturate", 1.3),
        Operation("grayscale", 0.5),
        Operation("sepia", 0.25),
        Operation("hue-rotate", -15.0),
    )


def test_zero_intensity_chain_is_empty():
    target = GradeParameters(contrast=2.0, grayscale=1.0, hue_rotate=180.0)
    assert build_chain(target, 0) == ()


def test_small_values_are_dropped():
    chain = build_chain(GradeParameters(contrast=1.0005, sepia=0.0009), 100)
    assert chain == ()


def test_full_grayscale_survives_tiny_intensity():
    chain = build_chain(GradeParameters(grayscale=1.0), 0.05)
    assert [op.name for op in chain] == ["grayscale"]

    chain = build_chain(GradeParameters(grayscale=0.5), 0.1)
    assert chain == ()


def test_hue_rotation_is_whole_degrees():
    chain = build_chain(GradeParameters(hue_rotate=-15.0), 50)
    assert chain == (Operation("hue-rotate", -7.0),)
    assert filter_string(chain) == "hue-rotate(-7deg)"
    assert build_chain(GradeParameters(hue_rotate=0.4), 100) == ()


@pytest.mark.parametrize(
    "hue, intensity, expected",
    [
        (10.0, 25, 3.0),
        (-10.0, 75, -7.0),
        (-15.0, 50, -7.0),
        (15.0, 50, 8.0),
    ],
)
def test_hue_rotation_rounds_half_up(hue, intensity, expected):
    assert build_chain(GradeParameters(hue_rotate=hue), intensity) == (Operation("hue-rotate", expected),)


def test_values_keep_three_decimals():
    chain = build_chain(GradeParameters(saturation=1.3333333), 100)
    assert chain == (Operation("saturate", 1.333),)


@pytest.mark.parametrize("intensity", [150, -1, 100.01, float("nan"), "50", None])
def test_intensity_outside_range_is_rejected(intensity):
    with pytest.raises(InvalidParameter):
        build_chain(GradeParameters(contrast=1.2), intensity)


def test_empty_chain_string():
    assert filter_string(()) == "none"


def test_chain_order_matters():
    # Grayscale after sepia would drop the tint; sepia runs last here.
    img = np.random.rand(4, 4, 3).astype(np.float32)
    chain = build_chain(GradeParameters(grayscale=1.0, sepia=1.0), 100)
    res = apply_chain(img, chain)
    assert not np.allclose(res[..., 0], res[..., 2])


def test_process_rgb8_returns_new_array():
    pixels = make_pixels(16, 8)
    pixels.setflags(write=False)
    out = process_rgb8(pixels, (Operation("brightness", 0.5),))
    assert out is not pixels
    assert out.shape == pixels.shape
    assert out.dtype == np.uint8


def test_process_rgb8_keeps_alpha():
    pixels = make_pixels(10, 10, alpha=True)
    out = process_rgb8(pixels, (Operation("grayscale", 1.0),))
    assert out.shape == (10, 10, 4)
    assert np.array_equal(out[..., 3], pixels[..., 3])
    assert np.array_equal(out[..., 0], out[..., 1])


def test_process_rgb8_empty_chain_copies():
    pixels = make_pixels(10, 6)
    out = process_rgb8(pixels, ())
    assert np.array_equal(out, pixels)
    assert out is not pixels
