import pytest

from time_accountability.names import name_tokens, normalize_name


def test_normalize_case_whitespace_and_periods():
    assert normalize_name("  Maria   GONZALEZ ") == "maria gonzalez"
    assert normalize_name("R. Smith") == "r smith"
    assert normalize_name("R.Smith") == "r smith"


def test_normalize_payroll_comma_format():
    assert normalize_name("Gonzalez, Maria") == "maria gonzalez"
    assert normalize_name("Smith, Robert J.") == "robert j smith"


def test_normalize_drops_generational_suffix():
    assert normalize_name("Robert Smith, Jr.") == "robert smith"


def test_normalize_keeps_hyphens_and_apostrophes():
    assert normalize_name("Mary-Jane O'Neil") == "mary-jane o'neil"


def test_normalize_is_deterministic():
    assert normalize_name("Dana  Whitfield") == normalize_name("dana whitfield")


def test_normalize_rejects_blank():
    with pytest.raises(ValueError):
        normalize_name("   ")


def test_name_tokens():
    assert name_tokens("maria g") == ("maria", "g")
