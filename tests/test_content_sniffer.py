import io

import pytest

from content_sniffer import (
    CONTENT_TYPE_JPEG,
    CONTENT_TYPE_OTHER,
    CONTENT_TYPE_PNG,
    CONTENT_TYPE_TEXT,
    SNIFF_LENGTH,
    detect_content_type,
    is_jpeg,
    is_png,
    main,
    sniff,
)


class FailingReader(io.BytesIO):
    def __init__(self) -> None:
        super().__init__(b"\xff\xd8\xff")
        self.seeks = []

    def read(self, size=-1):
        raise OSError("disk went away")

    def seek(self, offset, whence=0):
        self.seeks.append(offset)
        return super().seek(offset, whence)


@pytest.mark.parametrize(
    "data, expected",
    [
        (b"\xff\xd8\xff\xe0\x00\x10JFIF", CONTENT_TYPE_JPEG),
        (b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR", CONTENT_TYPE_PNG),
        (b"GIF89a\x01\x00\x01\x00", "image/gif"),
        (b"BM\x00\x00", "image/bmp"),
        (b"RIFF\x24\x00\x00\x00WEBPVP8 ", "image/webp"),
        (b"RIFF\x24\x00\x00\x00WAVEfmt ", "audio/wave"),
        (b"%PDF-1.7\n", "application/pdf"),
        (b"PK\x03\x04\x14\x00", "application/zip"),
        (b"  \n<!DOCTYPE html>", "text/html; charset=utf-8"),
        (b"<html>", "text/html; charset=utf-8"),
        (b"<?xml version='1.0'?>", "text/xml; charset=utf-8"),
        (b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom", "video/mp4"),
        (b"just some words\n", CONTENT_TYPE_TEXT),
        (b"", CONTENT_TYPE_TEXT),
        (b"\x00\x01\x02\x03binary", CONTENT_TYPE_OTHER),
    ],
)
def test_sniff_signatures(data, expected):
    assert sniff(data) == expected


def test_html_tag_needs_terminator():
    assert sniff(b"<abc") == CONTENT_TYPE_TEXT


def test_sniff_ignores_bytes_past_limit():
    data = b"plain text" + b" " * SNIFF_LENGTH + b"\x00\x01"
    assert sniff(data) == CONTENT_TYPE_TEXT


def test_detect_content_type_rewinds(png_bytes):
    fh = io.BytesIO(png_bytes)
    assert len(png_bytes) > SNIFF_LENGTH
    assert detect_content_type(fh) == CONTENT_TYPE_PNG
    assert fh.tell() == 0


def test_detect_content_type_rewinds_after_read_error():
    fh = FailingReader()
    with pytest.raises(OSError):
        detect_content_type(fh)
    assert fh.seeks == [0]


def test_read_error_counts_as_unknown():
    assert is_jpeg(FailingReader()) is False
    assert is_png(FailingReader()) is False


def test_is_jpeg_and_is_png(jpeg_bytes, png_bytes):
    assert is_jpeg(io.BytesIO(jpeg_bytes))
    assert not is_png(io.BytesIO(jpeg_bytes))
    assert is_png(io.BytesIO(png_bytes))
    assert not is_jpeg(io.BytesIO(png_bytes))


def test_cli_reports_types(tmp_path, write_file, png_bytes, capsys):
    path = write_file(tmp_path / "image.bin", png_bytes)
    assert main([str(path)]) == 0
    assert capsys.readouterr().out.strip() == f"{path}: {CONTENT_TYPE_PNG}"


def test_cli_missing_file(tmp_path):
    assert main([str(tmp_path / "nope")]) == 1
