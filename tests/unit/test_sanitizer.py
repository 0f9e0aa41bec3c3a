"""Tests for markup sanitization before layout analysis."""

from layoutforge.core.exceptions import InputError
from layoutforge.services.sanitizer import clean_markup, sanitize_for_analysis


def _page(body: str) -> str:
    return (
        "<html><head><style>.a { color: red; }</style>"
        "<script type=\"text/javascript\">var x = '<b>';</script></head>"
        f"<body><!-- tracking --><div class=\"hero\" style=\"color:red\">{body}</div></body></html>"
    )


def test_clean_markup_strips_scripts_styles_comments_and_attributes() -> None:
    cleaned = clean_markup(_page("<p>Hello&nbsp;world &amp; friends</p>"))

    assert "<script" not in cleaned
    assert "color: red" not in cleaned
    assert "tracking" not in cleaned
    assert "class=" not in cleaned
    assert "style=" not in cleaned
    assert "<div><p>Hello world & friends</p></div>" in cleaned


def test_clean_markup_collapses_whitespace_and_trims() -> None:
    assert clean_markup("  <p>\n\n  a \t b  </p>  ") == "<p> a b </p>"


def test_sanitize_truncates_to_limit() -> None:
    result = sanitize_for_analysis("<p>" + "x" * 20000 + "</p>")

    assert result.ok
    assert len(result.text) == 8000
    assert result.source_length == 20007


def test_sanitize_is_idempotent() -> None:
    raw = _page("<h1>Title</h1>" + "<p>word   word</p> " * 900)

    once = sanitize_for_analysis(raw)
    twice = sanitize_for_analysis(once.text)

    assert once.ok and twice.ok
    assert twice.text == once.text


def test_sanitize_idempotent_when_cut_lands_on_space() -> None:
    raw = "a" * 7999 + " " + "b" * 50

    once = sanitize_for_analysis(raw)

    assert once.text == "a" * 7999
    assert sanitize_for_analysis(once.text).text == once.text


def test_sanitize_reports_too_short_without_raising() -> None:
    result = sanitize_for_analysis("<div style=\"x\"><script>long()</script>tiny</div>")

    assert not result.ok
    assert isinstance(result.error, InputError)
    assert "too short" in result.error.message


def test_sanitize_reports_missing_content() -> None:
    result = sanitize_for_analysis("   ")

    assert isinstance(result.error, InputError)
    assert result.error.message == "Missing file content"
    assert result.text == ""


def test_sanitize_respects_explicit_limits() -> None:
    result = sanitize_for_analysis("<p>" + "y" * 50 + "</p>", max_chars=20, min_chars=10)

    assert result.ok
    assert result.text == "<p>" + "y" * 17


def test_escaped_markup_is_stripped_in_one_call() -> None:
    raw = (
        "<p>" + "Intro copy about the product line. " * 4
        + "Example: &lt;script&gt;alert(1)&lt;/script&gt; and "
        + "&lt;span class=&quot;tag&quot;&gt;label&lt;/span&gt; done</p>"
    )

    once = sanitize_for_analysis(raw)
    twice = sanitize_for_analysis(once.text)

    assert once.ok
    assert "alert(1)" not in once.text
    assert "class=" not in once.text
    assert once.text.endswith("Example: and <span>label</span> done</p>")
    assert twice.text == once.text


def test_double_escaped_entities_reach_a_fixed_point() -> None:
    cleaned = clean_markup("<p>a &amp;lt;b&amp;gt; c</p>")

    assert cleaned == "<p>a <b> c</p>"
    assert clean_markup(cleaned) == cleaned
