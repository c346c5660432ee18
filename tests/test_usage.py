import pytest

from appnest.services.usage import PercentageParser, directory_size, parse_percentage


@pytest.mark.parametrize(
    "text, expected",
    [("12.5%", 12.5), ("0.00%", 0.0), (" 150.25% ", 150.25), ("7", 7.0), (3.5, 3.5)],
)
def test_parse_percentage(text, expected):
    assert parse_percentage(text) == pytest.approx(expected)


@pytest.mark.parametrize("text", ["--", "", None, "N/A", "12.5 %%x"])
def test_parse_percentage_falls_back_to_zero(text):
    assert parse_percentage(text) == 0.0


def test_parser_counts_skipped_values():
    parse = PercentageParser()

    values = [parse(v) for v in ["1%", "bad", "2%", None]]

    assert values == [1.0, 0.0, 2.0, 0.0]
    assert parse.skipped == 2


@pytest.mark.asyncio
async def test_directory_size_of_missing_directory_is_zero(tmp_path):
    assert await directory_size(tmp_path / "nope") == 0


@pytest.mark.asyncio
async def test_directory_size_skips_symlinks(tmp_path):
    (tmp_path / "data.bin").write_bytes(b"z" * 64)
    (tmp_path / "link").symlink_to(tmp_path / "data.bin")

    assert await directory_size(tmp_path) == 64
