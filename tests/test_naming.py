import pytest
from pathlib import Path
from movr.naming.generator import generate_filename
from movr.models import Company, ImageType, Record, apply_edit, group_by_item_number, sort_by_sequence


def gen(**overrides):
    args = dict(
        description="K123456",
        request_id="MO123456",
        company=Company.QVC,
        sequence="005",
        retouched=False,
        image_type=ImageType.LIFESTYLE,
        extension="jpg",
    )
    args.update(overrides)
    return generate_filename(**args)


def test_lifestyle_name_with_sequence():
    assert gen() == "IMG_QVC_PH_LS_MO123456_K123456_005.jpg"


def test_sequence_only_for_lifestyle():
    assert gen(image_type=ImageType.PRODUCT) == "IMG_QVC_PH_PR_MO123456_K123456.jpg"
    assert gen(image_type=ImageType.FOOD_SHOOT) == "IMG_QVC_PH_QC_MO123456_K123456.jpg"


def test_empty_sequence_is_left_out():
    assert gen(sequence="") == "IMG_QVC_PH_LS_MO123456_K123456.jpg"


def test_retouched_marker_and_company():
    assert gen(company=Company.HSN, retouched=True, request_id="PH777") == \
        "IMG_HSN_PH_LS_PH777_K123456_005_RT.jpg"


def test_extension_case_is_kept():
    assert gen(extension="JPG").endswith(".JPG")
    assert gen(extension=".png").endswith("_005.png")


@pytest.mark.parametrize("description,request_id", [("", "MO1"), ("K123456", ""), ("", "")])
@pytest.mark.parametrize("image_type", list(ImageType))
@pytest.mark.parametrize("retouched", [True, False])
def test_missing_required_field_is_always_invalid(description, request_id, image_type, retouched):
    assert gen(description=description, request_id=request_id,
               image_type=image_type, retouched=retouched) is None


def test_generator_is_idempotent():
    assert gen(retouched=True) == gen(retouched=True)


@pytest.mark.parametrize(
    "image_type,abbr,folder",
    [
        (ImageType.LIFESTYLE, "LS", "Lifestyle Images"),
        (ImageType.PRODUCT, "PR", "Product Images"),
        (ImageType.HEADSHOT, "HS", "Headshots"),
        (ImageType.PD_LIFESTYLE_LITE, "PD", "Product Photographer > Master Images – Lifestyle"),
        (ImageType.FOOD_SHOOT, "QC", "Product Photographer > Master Images – Lifestyle"),
        (ImageType.STANDARD, "PD", "Product Photographer > Master Images – Lifestyle"),
    ],
)
def test_image_type_tables(image_type, abbr, folder):
    assert image_type.abbreviation == abbr
    assert image_type.destination_folder == folder
    assert image_type.uses_sequence == (image_type is ImageType.LIFESTYLE)


def test_image_type_lookup():
    assert ImageType.from_string("food-shoot") is ImageType.FOOD_SHOOT
    assert ImageType.from_string("Standard/Custom") is ImageType.STANDARD
    assert ImageType.from_string("PRODUCT") is ImageType.PRODUCT
    with pytest.raises(ValueError):
        ImageType.from_string("panorama")


def test_record_from_path_uses_parsed_values():
    rec = Record.from_path(Path("/in/MO123456_K123456_005.JPG"))
    assert rec.asset.original_extension == "jpg"
    assert rec.description == "K123456"
    assert rec.request_id == "MO123456"
    assert rec.sequence == "005"
    assert rec.company is Company.QVC
    assert rec.image_type is ImageType.LIFESTYLE
    assert rec.canonical_name == "IMG_QVC_PH_LS_MO123456_K123456_005.jpg"


def test_record_defaults_to_qvc_and_has_no_name_without_metadata():
    rec = Record.from_path(Path("/in/vacation.png"), ImageType.HEADSHOT)
    assert rec.company is Company.QVC
    assert rec.canonical_name is None


def test_apply_edit_recomputes_name_and_keeps_id():
    rec = Record.from_path(Path("/in/MO123456_K123456_005.jpg"))
    edited = apply_edit(rec, image_type="product", retouched=True)

    assert edited.id == rec.id
    assert edited.canonical_name == "IMG_QVC_PH_PR_MO123456_K123456_RT.jpg"
    # the original is untouched
    assert rec.canonical_name == "IMG_QVC_PH_LS_MO123456_K123456_005.jpg"


def test_apply_edit_clearing_description_invalidates_name():
    rec = Record.from_path(Path("/in/MO123456_K123456.jpg"))
    assert apply_edit(rec, description="").canonical_name is None


def test_apply_edit_rejects_unknown_fields():
    rec = Record.from_path(Path("/in/a.jpg"))
    with pytest.raises(ValueError):
        apply_edit(rec, canonical_name="x.jpg")
    with pytest.raises(ValueError):
        apply_edit(rec, outcome=None)


def test_apply_edit_accepts_company_strings():
    rec = Record.from_path(Path("/in/MO1_K123456.jpg"))
    assert apply_edit(rec, company="hsn").company is Company.HSN


def test_group_by_item_number():
    recs = [
        Record.from_path(Path("/in/MO1_K111111_001.jpg")),
        Record.from_path(Path("/in/vacation.jpg")),
        Record.from_path(Path("/in/MO1_K111111_002.jpg")),
    ]
    grouped = group_by_item_number(recs)
    assert sorted(grouped) == ["K111111", "Unknown"]
    assert [r.sequence for r in grouped["K111111"]] == ["001", "002"]


def test_sort_by_sequence_numeric_first():
    recs = [Record.from_path(Path(f"/in/{n}")) for n in ("b_010.jpg", "zz.jpg", "a_002.jpg", "Ava0220.jpg")]
    recs.append(apply_edit(Record.from_path(Path("/in/c.jpg")), sequence="x1"))

    ordered = [r.original_filename for r in sort_by_sequence(recs)]
    assert ordered == ["a_002.jpg", "b_010.jpg", "Ava0220.jpg", "c.jpg", "zz.jpg"]
