import re

import pytest

from hashnotes.tags import extract_tags


@pytest.mark.parametrize(
    "text, expected",
    [
        ("", []),
        ("This is a #hashtag", ["hashtag"]),
        ("This is #one and this is #two", ["one", "two"]),
        ("This is #2", []),
        ("This is #123", []),
        ("This is #12a123", ["12a123"]),
        ("This is a [link](#heading-link)", []),
        ('<a href="#heading-link">link</a>', []),
        ("This is #a", []),
        ("Valid: #valid #valid-one #v123 Invalid: #123 #A #", ["valid", "valid-one", "v123"]),
        ("#start of the text", ["start"]),
        ("#with-hyphen", ["with-hyphen"]),
        ("#trailing- hyphen", ["trailing"]),
        ("#HashTag", []),
        ("line one\n#next-line", ["next-line"]),
    ],
)
def test_extract_tags(text, expected):
    assert extract_tags(text) == expected


def test_duplicates_keep_first_position():
    assert extract_tags("Plan for #trip and #packing, then #trip again") == ["trip", "packing"]


def test_none_is_empty():
    assert extract_tags(None) == []


def test_only_the_char_before_hash_is_checked():
    # '(' further back does not matter
    assert extract_tags("(see #notes)") == ["notes"]
    assert extract_tags('say "#quoted"') == []


def test_every_tag_is_well_formed_and_repeatable():
    text = "#ok #x #9 #-- #a-b- ##double #mixed9 (#skip) #UPPER #low-er"
    tags = extract_tags(text)
    assert tags == ["ok", "a-b", "double", "mixed9", "low-er"]
    for tag in tags:
        assert re.fullmatch(r"[a-z0-9-]+", tag)
        assert re.search(r"[a-z]", tag)
        assert len(tag) >= 2
        assert not tag.endswith("-")
    assert extract_tags(text) == tags
