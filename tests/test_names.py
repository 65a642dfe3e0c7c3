import pytest

from bookquest.core.names import normalize_name


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("gabriel garcía márquez", "Gabriel garcía márquez"),
        ("CIENCIA FICCIÓN", "Ciencia ficción"),
        ("  poesía ", "Poesía"),
        ("élite", "Élite"),
        ("x", "X"),
        ("", ""),
    ],
)
def test_normalize_name(raw: str, expected: str) -> None:
    assert normalize_name(raw) == expected


@pytest.mark.parametrize("raw", ["fantasía ÉPICA", "ßtraße", "123 abc", "ÑANDÚ", "o'BRIEN"])
def test_normalize_is_idempotent(raw: str) -> None:
    once = normalize_name(raw)
    assert normalize_name(once) == once


def test_case_variants_normalize_equal() -> None:
    assert normalize_name("gabriel GARCÍA") == normalize_name("GABRIEL garcía")
