import pytest
from PIL import Image

from canvasfit.app import codec, formats
from canvasfit.app.errors import DecodeError, UnsupportedFormatError
from conftest import image_bytes, make_image


@pytest.mark.parametrize(
    "input_format, expected",
    [
        ("JPEG", formats.OutputFormat("JPEG", 75)),
        ("PNG", formats.OutputFormat("PNG")),
        ("GIF", formats.OutputFormat("PNG")),
        ("WEBP", formats.OutputFormat("PNG")),
    ],
)
def test_input_to_output_format(input_format, expected):
    assert formats.input_to_output_format(input_format, 75) == expected


def test_input_to_output_format_rejects_unknown_formats():
    with pytest.raises(UnsupportedFormatError):
        formats.input_to_output_format("TIFF", 75)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("png", formats.png()),
        ("jpg", formats.jpeg(80)),
        ("JPEG", formats.jpeg(80)),
        ("gif", None),
        (None, None),
    ],
)
def test_string_to_output_format(name, expected):
    assert formats.string_to_output_format(name, 80) == expected


def test_output_format_properties():
    assert formats.png().media_type == "image/png"
    assert formats.png().key == 0
    assert formats.jpeg(90).media_type == "image/jpeg"
    assert formats.jpeg(90).key == 1


def test_output_format_rejects_unknown_name_and_quality():
    with pytest.raises(UnsupportedFormatError):
        formats.OutputFormat("BMP")
    with pytest.raises(ValueError):
        formats.jpeg(0)


def test_resolve_output_format_prefers_request():
    data = image_bytes(make_image(4, 4), "PNG")

    assert formats.resolve_output_format("jpg", data, 60) == formats.jpeg(60)


def test_resolve_output_format_infers_from_input():
    data = image_bytes(make_image(4, 4), "JPEG")

    assert formats.resolve_output_format(None, data, 60) == formats.jpeg(60)


def test_guess_format_and_decode():
    data = image_bytes(make_image(6, 3), "GIF")

    assert codec.guess_format(data) == "GIF"
    assert codec.decode(data).size == (6, 3)


def test_guess_format_rejects_garbage():
    with pytest.raises(UnsupportedFormatError):
        codec.guess_format(b"definitely not an image")


def test_decode_reports_cause():
    with pytest.raises(DecodeError) as excinfo:
        codec.decode(b"\x89PNG\r\n\x1a\n truncated")

    assert excinfo.value.__cause__ is not None


def test_copy_region_copies_inside_bounds():
    source = make_image(10, 10, (1, 2, 3, 255))
    destination = codec.new_canvas(5, 5)

    assert codec.copy_region(source, 2, 2, 3, 3, destination, 1, 1)
    assert destination.getpixel((1, 1)) == (1, 2, 3, 255)
    assert destination.getpixel((0, 0)) == (0, 0, 0, 0)


@pytest.mark.parametrize(
    "args",
    [
        (8, 0, 5, 5, 0, 0),  # past the source's right edge
        (0, 0, 5, 5, 1, 0),  # past the destination's right edge
        (0, 0, 0, 5, 0, 0),
        (-1, 0, 2, 2, 0, 0),
    ],
)
def test_copy_region_refuses_regions_that_do_not_fit(args):
    source = make_image(10, 10)
    destination = codec.new_canvas(5, 5)
    source_x, source_y, width, height, destination_x, destination_y = args

    assert not codec.copy_region(
        source, source_x, source_y, width, height, destination, destination_x, destination_y
    )
    assert destination.getcolors() == [(25, (0, 0, 0, 0))]


def test_resample_filter_names():
    assert codec.resample_filter("Lanczos") == Image.Resampling.LANCZOS
    with pytest.raises(ValueError):
        codec.resample_filter("sinc")
