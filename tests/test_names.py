import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from hidb import ParseFailure, decompose, split  # noqa: E402
from hidb.names import is_cdc_name  # noqa: E402


def test_split_name_with_passage() -> None:
    parts = split("A(H3N2)/PERTH/16/2009 MDCK1")

    assert parts.virus_type == "A(H3N2)"
    assert parts.host == ""
    assert parts.location == "PERTH"
    assert parts.isolation == "16"
    assert parts.year == "2009"
    assert parts.passage == "MDCK1"


def test_split_name_with_host_and_multiword_location() -> None:
    parts = split("A(H1N1)/SWINE/HONG KONG/1197/2010")

    assert parts.host == "SWINE"
    assert parts.location == "HONG KONG"
    assert parts.isolation == "1197"
    assert parts.passage == ""


def test_virus_type_is_upper_cased() -> None:
    assert split("b/Brisbane/60/2008").virus_type == "B"


@pytest.mark.parametrize(
    "name",
    ["NY 1234", "PERTH/16/2009", "A(H3N2)/PERTH/16", "A(H3N2)/PERTH/16/09", ""],
)
def test_names_outside_grammar_do_not_decompose(name: str) -> None:
    assert decompose(name) is None
    with pytest.raises(ParseFailure):
        split(name)


def test_same_strain_ignores_passage() -> None:
    egg = split("A(H3N2)/PERTH/16/2009 E3")

    assert egg.same_strain(split("A(H3N2)/perth/16/2009 MDCK1"))
    assert not egg.same_strain(split("A(H3N2)/PERTH/16/2010 E3"))


def test_cdc_name_shape() -> None:
    assert is_cdc_name("NY 1234")
    assert not is_cdc_name("NY ")
    assert not is_cdc_name("A(H3N2)/PERTH/16/2009")
