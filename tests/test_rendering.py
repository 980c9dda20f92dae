# =============================================================================
# Tests for plain-text rendering and signature blocks
# =============================================================================

from justsend.composer import append_signature, render_signature, strip_signature
from justsend.rendering import TextRenderOptions, TextRenderer, extract_plain_text, strip_tags


class TestTextRenderer:

    def test_simple_html(self):
        assert TextRenderer().render("<p>Hello <b>World</b></p>") == "Hello World"

    def test_empty(self):
        assert TextRenderer().render("") == ""
        assert TextRenderer().render("   ") == ""

    def test_drops_style_and_script(self, sample_html_email):
        text = TextRenderer().render(sample_html_email)

        assert "Your order has shipped" in text
        assert "Anna" in text
        assert "Mug" in text
        assert "font-family" not in text
        assert "alert(" not in text

    def test_links_hidden_by_default(self, sample_html_email):
        assert "https://example.com/track" not in TextRenderer().render(sample_html_email)

    def test_display_links(self, sample_html_email):
        renderer = TextRenderer(TextRenderOptions(display_links=True))
        assert "https://example.com/track" in renderer.render(sample_html_email)

    def test_zero_width_characters_removed(self):
        assert TextRenderer().render("<p>a\u200bb\ufeffc</p>") == "abc"


class FailingRenderer(TextRenderer):
    def render(self, html_content):
        raise RuntimeError("boom")


class TestExtractPlainText:

    def test_uses_renderer(self):
        assert extract_plain_text("<div>Hi<br>there</div>") == "Hi\nthere"

    def test_falls_back_to_stripping_tags(self):
        assert extract_plain_text("<p>Hello <b>World</b></p>", FailingRenderer()) == "Hello World"

    def test_strip_tags(self):
        assert strip_tags("<a href='x'>link</a> text") == "link text"


class TestSignature:

    def test_render(self):
        assert render_signature("Best,\nAnna") == "<br><br>--<br>Best,<br>Anna"

    def test_append_and_strip(self):
        body = append_signature("<p>Hi</p>", "Anna")
        assert body == "<p>Hi</p><br><br>--<br>Anna"
        assert strip_signature(body, "Anna") == "<p>Hi</p>"

    def test_no_signature(self):
        assert append_signature("<p>Hi</p>", None) == "<p>Hi</p>"
        assert append_signature("<p>Hi</p>", "") == "<p>Hi</p>"
        assert strip_signature("<p>Hi</p>", None) == "<p>Hi</p>"

    def test_strip_requires_exact_suffix(self):
        body = "<p>Hi</p><br><br>--<br>Anna<p>later edit</p>"
        assert strip_signature(body, "Anna") == body
        assert strip_signature("<p>Hi</p><br><br>--<br>Bob", "Anna") == "<p>Hi</p><br><br>--<br>Bob"
