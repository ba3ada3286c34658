import pytest
from movr.naming.parser import FilenameParser, ParsedMetadata, parse_filename


def test_letter_item_beats_leading_h_number():
    parsed = parse_filename("H478461_K123456.jpg")
    assert parsed.description == "K123456"
    assert parsed.company == "QVC"


def test_request_id_suffix_is_dropped():
    parsed = parse_filename("MO123456-2_H478461.jpg")
    assert parsed.request_id == "MO123456"
    assert parsed.company == "QVC"
    assert parsed.description == "H478461"


def test_ph_request_sets_hsn_even_with_qvc_style_item():
    parsed = parse_filename("PH98765_K123456_shot.jpg")
    assert parsed.request_id == "PH98765"
    assert parsed.company == "HSN"
    assert parsed.description == "K123456"


def test_mo_wins_over_ph():
    parsed = parse_filename("PH111_MO222.jpg")
    assert parsed.request_id == "MO222"
    assert parsed.company == "QVC"


def test_quotes_are_stripped():
    parsed = parse_filename("'MO555'_\"A123456\".png")
    assert parsed.request_id == "MO555"
    assert parsed.description == "A123456"


@pytest.mark.parametrize(
    "name,expected",
    [
        ("H478461.jpg", "H478461"),
        ("H4784612extra.jpg", "H478461"),      # start-of-name rule has no right guard
        ("shot_H478461_final.jpg", "H478461"),
        ("shot H-478461.jpg", "H478461"),
        ("shot_H_478461.jpg", "H478461"),
        ("shot H 478461.jpg", "H478461"),
    ],
)
def test_h_number_rules(name, expected):
    assert parse_filename(name).description == expected


def test_letter_item_requires_boundaries():
    # Glued to other letters/digits on either side: not an item number
    assert parse_filename("XK123456.jpg").description is None
    assert parse_filename("K1234567.jpg").description is None
    assert parse_filename("9K123456.jpg").description is None


def test_item_letter_outside_set_is_ignored():
    assert parse_filename("B123456.jpg").description is None


def test_item_number_infers_qvc_when_no_request():
    parsed = parse_filename("J654321.tif")
    assert parsed.company == "QVC"
    assert parsed.request_id is None


def test_tsv_after():
    parsed = parse_filename("TSV-Promo-123456.jpg")
    assert parsed.description == "123456"
    assert parsed.company is None


def test_tsv_before_and_case_insensitive():
    assert parse_filename("123456 tsv promo.jpg").description == "123456"


def test_tsv_needs_exactly_six_digits():
    assert parse_filename("TSV_1234567.jpg").description is None


def test_hsn_numeric_item_at_start():
    parsed = parse_filename("1234567_front.jpg")
    assert parsed.description == "1234567"
    assert parsed.company is None


def test_hsn_numeric_item_embedded():
    assert parse_filename("model_98765432_side.jpg").description == "98765432"


def test_letter_rule_outranks_tsv():
    assert parse_filename("TSV_K123456_654321.jpg").description == "K123456"


@pytest.mark.parametrize(
    "name,expected",
    [
        ("file_005.jpg", "005"),
        ("file-0123.jpg", "0123"),
        ("file 042.jpg", "042"),
        ("Ava0220.jpg", "0220"),
        ("Krystal34021.jpg", "4021"),      # trailing 3-4 digit rule fires first
        ("shotJUL115.JPG", "115"),
        ("nodigits.jpg", None),
        ("ends12.jpg", None),
    ],
)
def test_sequence_rules(name, expected):
    assert parse_filename(name).sequence == expected


def test_trailing_item_digits_read_as_sequence():
    # Nothing separates the item number from the end of the name
    assert parse_filename("MO1_K123456.jpg").sequence == "3456"


def test_sequence_ignores_extension():
    # The extension is stripped before looking at the end of the name
    assert parse_filename("file_005.cr2").sequence == "005"


def test_nothing_found_is_not_an_error():
    parsed = parse_filename("vacation.jpg")
    assert parsed == ParsedMetadata()


def test_parser_is_deterministic():
    parser = FilenameParser()
    name = "MO123456_K123456_Ava0220.jpg"
    assert parser.parse(name) == parser.parse(name) == parse_filename(name)
