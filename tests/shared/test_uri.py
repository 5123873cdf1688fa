import pytest

from findingaid_shared.errors import MalformedIdentifier, UnsupportedQualifier
from findingaid_shared.uri import (
    DEFAULT_RULES,
    QualifierRules,
    URIArgs,
    id2fname,
    id2path,
    id2relpath,
    parse_uri,
)


def test_id2path_examples():
    assert id2path(1360391327) == "136/039/132/7"
    assert id2path(102527513) == "102/527/513"
    assert id2path(123) == "123"
    assert id2path(0) == "0"


def test_id2relpath_primary():
    assert id2relpath(1360391327) == "136/039/132/7/1360391327.geojson"
    assert id2relpath(1360391327, URIArgs()) == id2relpath(1360391327)


def test_id2relpath_alternate_is_distinct():
    args = URIArgs((("alt", "sfomuseum"),))
    path = id2relpath(1360391327, args)
    assert path == "136/039/132/7/1360391327-alt-sfomuseum.geojson"
    assert path != id2relpath(1360391327)
    assert id2relpath(1360391327, args) == path


@pytest.mark.parametrize(
    "path, expected_id, qualifiers",
    [
        ("/1360391327", 1360391327, ()),
        ("/1360391327.geojson", 1360391327, ()),
        ("/136/039/132/7/1360391327.geojson", 1360391327, ()),
        ("1360391327/", 1360391327, ()),
        ("/1360391327-alt-sfomuseum.geojson", 1360391327, (("alt", "sfomuseum"),)),
        ("/1360391327-alt-sfomuseum-tiles", 1360391327, (("alt", "sfomuseum-tiles"),)),
    ],
)
def test_parse_uri_valid(path, expected_id, qualifiers):
    id, args = parse_uri(path)
    assert id == expected_id
    assert args.qualifiers == qualifiers


@pytest.mark.parametrize(
    "path",
    ["", "/", "/abc", "/-1", "/12ab", "/123.json", "/123-alt-", "/favicon.ico", "/\u0661\u0662\u0663", "/123\n"],
)
def test_parse_uri_malformed(path):
    with pytest.raises(MalformedIdentifier):
        parse_uri(path)


def test_alternate_flag():
    _, args = parse_uri("/1360391327-alt-sfomuseum.geojson")
    assert args.is_alternate
    assert args.get("alt") == "sfomuseum"
    _, args = parse_uri("/1360391327")
    assert not args.is_alternate


def test_unknown_qualifier_is_unsupported():
    _, args = parse_uri("/1360391327-foo-bar.geojson")
    with pytest.raises(UnsupportedQualifier):
        id2relpath(1360391327, args)


def test_alt_rule_rejects_empty_parts():
    with pytest.raises(UnsupportedQualifier):
        id2relpath(1, URIArgs((("alt", "sfomuseum--tiles"),)))


def test_custom_rule_table():
    rules = QualifierRules({"alt": lambda value: f"_{value}"})
    args = URIArgs((("alt", "source"),))
    assert id2fname(1360391327, args, rules) == "1360391327_source.geojson"
    assert "alt" in DEFAULT_RULES
    assert id2fname(1360391327, args) == "1360391327-alt-source.geojson"
