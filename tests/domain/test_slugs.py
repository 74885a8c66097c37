from __future__ import annotations

import re

import pytest

from therapydir.domain.slugs import disambiguate, generate_slug, slugify


class _Index:
    def __init__(self, slugs: dict[str, str] | None = None) -> None:
        self.slugs = dict(slugs or {})

    def source_id_for_slug(self, slug: str) -> str | None:
        return self.slugs.get(slug)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Mindful Path Counseling", "mindful-path-counseling"),
        ("  Dr. Jane O'Neil, PhD  ", "dr-jane-oneil-phd"),
        ("Body & Mind / Wellness", "body-and-mind-wellness"),
        ("Café Thérapie", "cafe-therapie"),
        ("one__two---three", "one-two-three"),
    ],
)
def test_slugify(text: str, expected: str) -> None:
    assert slugify(text) == expected


def test_generate_slug_walks_the_three_tiers() -> None:
    index = _Index()

    first = generate_slug("Mindful Path Counseling", "austin", "ChIJ-aaaa-1111", index=index)
    assert first == "mindful-path-counseling"
    index.slugs[first] = "ChIJ-aaaa-1111"

    second = generate_slug("Mindful Path Counseling", "austin", "ChIJ-bbbb-2222", index=index)
    assert second == "mindful-path-counseling-austin"
    index.slugs[second] = "ChIJ-bbbb-2222"

    third = generate_slug("Mindful Path Counseling", "austin", "ChIJ-cccc-XyZ9", index=index)
    assert third == "mindful-path-counseling-austin-XyZ9"


def test_generate_slug_keeps_a_slug_owned_by_the_same_source() -> None:
    index = _Index({"mindful-path-counseling": "ChIJ-aaaa-1111"})

    slug = generate_slug("Mindful Path Counseling", "austin", "ChIJ-aaaa-1111", index=index)

    assert slug == "mindful-path-counseling"


def test_generate_slug_rejects_names_without_slug_characters() -> None:
    with pytest.raises(ValueError, match="usable slug"):
        generate_slug("!!!", "austin", "ChIJ-aaaa-1111", index=_Index())


def test_disambiguate_appends_random_hex_suffix() -> None:
    first = disambiguate("mindful-path-counseling")
    second = disambiguate("mindful-path-counseling")

    assert re.fullmatch(r"mindful-path-counseling-[0-9a-f]{6}", first)
    assert first != second


@pytest.mark.parametrize(
    ("source_id", "expected"),
    [
        ("ChIJN1t_tDeuEmsRU_b-", "mindful-path-austin-U_b-"),
        ("ChIJN1t_tDeuEms_AbCd", "mindful-path-austin-AbCd"),
        ("ChIJN1t_tDeuEms_abcd", "mindful-path-austin-abcd"),
    ],
)
def test_source_suffix_keeps_the_raw_id_tail(source_id: str, expected: str) -> None:
    index = _Index({"mindful-path": "ChIJ-other-1", "mindful-path-austin": "ChIJ-other-2"})

    assert generate_slug("Mindful Path", "austin", source_id, index=index) == expected
