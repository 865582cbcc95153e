from this_that.src.snippet_filters import (
    extract_field,
    extract_item_blocks,
    keyword_pattern,
    safe_trim,
    sanitize_text,
)


def test_sanitize_text_strips_cdata_tags_and_entities():
    raw = '<![CDATA[<a href="https://x.com">Best&nbsp;hotels</a>&nbsp;in <b>Leith</b>]]>'
    assert sanitize_text(raw) == "Best hotels in Leith"


def test_sanitize_text_handles_escaped_markup():
    assert sanitize_text("&lt;p&gt;Tom &amp;amp; Jerry&lt;/p&gt;") == "Tom & Jerry"
    assert sanitize_text(None) == ""
    assert sanitize_text("  plain   text \n here ") == "plain text here"


def test_extract_field_text_and_attribute():
    block = (
        '<title><![CDATA[Where to stay in Kreuzberg]]></title>'
        '<link>https://example.com/kreuzberg</link>'
        '<media:content url="https://img.example/k.jpg" medium="image"/>'
    )
    assert extract_field(block, "title") == "Where to stay in Kreuzberg"
    assert extract_field(block, "link") == "https://example.com/kreuzberg"
    assert extract_field(block, "media:content", "url") == "https://img.example/k.jpg"
    assert extract_field(block, "description") == ""
    assert extract_field("", "title") == ""


def test_extract_item_blocks():
    xml = "<channel><item><title>a</title></item><item><title>b</title></item></channel>"
    assert extract_item_blocks(xml) == ["<title>a</title>", "<title>b</title>"]
    assert extract_item_blocks(xml, limit=1) == ["<title>a</title>"]


def test_keyword_pattern_matches_whole_words():
    pat = keyword_pattern(["police", " shooting "])
    assert pat.search("Police called to Soho")
    assert pat.search("SHOOTING near park")
    assert not keyword_pattern(["court"]).search("Courtyard cafes of Lisbon")
    assert keyword_pattern([]) is None
    assert keyword_pattern(["", "  "]) is None


def test_safe_trim_prefers_word_boundary():
    assert safe_trim("short", 10) == "short"
    assert safe_trim("the quick brown fox jumps", 12) == "the quick"
    assert len(safe_trim("x" * 50, 20)) == 20
