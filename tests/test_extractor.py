"""Tests for HTML extraction and result validation.

No browser is involved: the extractor only ever sees rendered HTML strings.
"""

from __future__ import annotations

from feednly.scraper import ExtractedContent, extract, is_valid

_URL = "https://shop.example.com/p/trail-runner"

_PRODUCT_HTML = """\
<!DOCTYPE html>
<html>
<head>
  <title>Trail Runner 2 | Shop</title>
  <meta property="og:title" content="Trail Runner 2">
  <meta property="og:description" content="Lightweight trail shoe with a grippy outsole.">
  <meta property="og:image" content="https://shop.example.com/media/trail-runner-main.jpg">
  <script type="application/ld+json">
    {"@context": "https://schema.org", "@type": "Product", "name": "Trail Runner 2",
     "image": ["https://shop.example.com/images/trail-runner-side.jpg"],
     "offers": {"@type": "Offer", "price": "129.00", "priceCurrency": "USD"}}
  </script>
  <script type="application/ld+json">{ this is not json </script>
</head>
<body>
  <h1>Trail Runner 2 (h1)</h1>
  <img src="/images/product/trail-runner-top.jpg" alt="Trail Runner top view">
  <img src="/static/logo.png" alt="Shop">
  <img src="data:image/gif;base64,R0lGODlhAQABAAAAACw=">
</body>
</html>
"""


# ---------------------------------------------------------------------------
# Title / description
# ---------------------------------------------------------------------------

class TestTitleAndDescription:
    def test_meta_title_and_description_preferred(self) -> None:
        content = extract(_PRODUCT_HTML, _URL)
        assert content.title == "Trail Runner 2"
        assert content.description == "Lightweight trail shoe with a grippy outsole."

    def test_h1_then_title_fallback(self) -> None:
        html = "<html><head><title>Doc title</title></head><body><h1> Heading </h1></body></html>"
        assert extract(html, _URL).title == "Heading"
        html = "<html><head><title>Doc title</title></head><body></body></html>"
        assert extract(html, _URL).title == "Doc title"

    def test_long_paragraph_used_as_description(self) -> None:
        long_text = "This jacket keeps you dry in heavy rain and breathes on steep climbs all day."
        html = f"<html><body><p>Short.</p><p>{long_text}</p></body></html>"
        assert extract(html, _URL).description == long_text


# ---------------------------------------------------------------------------
# Price
# ---------------------------------------------------------------------------

class TestPrice:
    def test_json_ld_price_with_currency(self) -> None:
        assert extract(_PRODUCT_HTML, _URL).price == "129.00 USD"

    def test_dom_price_text_wins(self) -> None:
        html = """
        <html><head>
          <meta property="product:price:amount" content="49.99">
          <meta property="product:price:currency" content="USD">
        </head><body><span class="product-price">$49.99</span></body></html>
        """
        assert extract(html, _URL).price == "$49.99"

    def test_no_price(self) -> None:
        assert extract("<html><body><h1>Thing</h1></body></html>", _URL).price is None


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

class TestImages:
    def test_collects_meta_dom_and_json_ld_images(self) -> None:
        images = extract(_PRODUCT_HTML, _URL).images
        assert set(images) == {
            "https://shop.example.com/media/trail-runner-main.jpg",
            "https://shop.example.com/images/trail-runner-side.jpg",
            "https://shop.example.com/images/product/trail-runner-top.jpg",
        }

    def test_placeholders_and_data_uris_excluded(self) -> None:
        images = extract(_PRODUCT_HTML, _URL).images
        assert not any("logo" in url for url in images)
        assert not any(url.startswith("data:") for url in images)

    def test_srcset_keeps_largest_variant(self) -> None:
        html = (
            '<html><body><img srcset="/media/shoe.jpg?w=200 200w, '
            '/media/shoe.jpg?w=1200 1200w"></body></html>'
        )
        assert extract(html, _URL).images == ["https://shop.example.com/media/shoe.jpg?w=1200"]

    def test_images_capped(self) -> None:
        tags = "".join(f'<img src="/media/product-{i}.jpg">' for i in range(6))
        html = f"<html><body><h1>Shoe</h1>{tags}</body></html>"
        assert len(extract(html, _URL, max_images=2, best_limit=8).images) == 2

    def test_page_without_images(self) -> None:
        content = extract("<html><head><title>Shoe</title></head><body><p>hi</p></body></html>", _URL)
        assert content.images == []
        assert is_valid(content) is False

    def test_backfill_tops_up_to_five_from_fallback_pool(self) -> None:
        plain = "".join(f'<img src="/a/{i}.jpg">' for i in range(1, 9))
        html = f'<html><body><h1>Shoe</h1><img src="/media/product-a.jpg">{plain}</body></html>'
        assert extract(html, _URL).images == [
            "https://shop.example.com/media/product-a.jpg",
            "https://shop.example.com/a/1.jpg",
            "https://shop.example.com/a/2.jpg",
            "https://shop.example.com/a/3.jpg",
            "https://shop.example.com/a/4.jpg",
        ]

    def test_backfill_stops_at_smaller_maximum(self) -> None:
        plain = "".join(f'<img src="/a/{i}.jpg">' for i in range(1, 9))
        html = f'<html><body><h1>Shoe</h1><img src="/media/product-a.jpg">{plain}</body></html>'
        assert extract(html, _URL, max_images=3, best_limit=8).images == [
            "https://shop.example.com/media/product-a.jpg",
            "https://shop.example.com/a/1.jpg",
            "https://shop.example.com/a/2.jpg",
        ]

    def test_last_resort_uses_unfiltered_dom_images(self) -> None:
        html = '<html><body><h1>Shoe</h1><img src="/a.php?id=3"><img src="/b.svg"></body></html>'
        assert extract(html, _URL).images == ["https://shop.example.com/a.php?id=3"]

    def test_inline_style_background_images(self) -> None:
        html = (
            "<html><body><h1>Shoe</h1>"
            '<div class="gallery-slide" style="background-image: url(\'/media/product-hero.jpg\')"></div>'
            '<div style="background:url(data:image/png;base64,iVBORw0KGgo=) no-repeat"></div>'
            "</body></html>"
        )
        assert extract(html, _URL).images == ["https://shop.example.com/media/product-hero.jpg"]


# ---------------------------------------------------------------------------
# Degenerate input
# ---------------------------------------------------------------------------

class TestDegenerateInput:
    def test_empty_html(self) -> None:
        assert extract("", _URL) == ExtractedContent()
        assert extract(None, _URL) == ExtractedContent()

    def test_malformed_json_ld_does_not_raise(self) -> None:
        html = '<html><head><script type="application/ld+json">[{"price": </script></head></html>'
        assert extract(html, _URL).price is None

    def test_overflowing_query_dimension(self) -> None:
        html = '<html><body><h1>Shoe</h1><img src="/media/product-a.jpg?w=1e999"></body></html>'
        content = extract(html, _URL)
        assert content.images == ["https://shop.example.com/media/product-a.jpg?w=1e999"]
        assert is_valid(content)

    def test_oversized_width_attribute(self) -> None:
        for digits in (400, 300):
            html = (
                "<html><body><h1>Shoe</h1>"
                f'<img src="/media/product-b.jpg" width="{"9" * digits}" height="{"9" * digits}">'
                "</body></html>"
            )
            assert extract(html, _URL).images == ["https://shop.example.com/media/product-b.jpg"]

    def test_deeply_nested_json_ld_is_skipped(self) -> None:
        nested = "[" * 200000 + "]" * 200000
        html = (
            f'<html><head><script type="application/ld+json">{nested}</script></head>'
            '<body><h1>Shoe</h1><img src="/media/product-a.jpg"></body></html>'
        )
        content = extract(html, _URL)
        assert content.title == "Shoe"
        assert content.images == ["https://shop.example.com/media/product-a.jpg"]

    def test_nested_json_ld_image_lists(self) -> None:
        image = "[" * 300 + '"https://shop.example.com/media/product-deep.jpg"' + "]" * 300
        html = (
            '<html><head><script type="application/ld+json">'
            f'{{"@type": "Product", "name": "Shoe", "image": {image}}}'
            "</script></head><body></body></html>"
        )
        assert extract(html, _URL).images == ["https://shop.example.com/media/product-deep.jpg"]


# ---------------------------------------------------------------------------
# Validity predicate
# ---------------------------------------------------------------------------

class TestIsValid:
    def test_title_and_image_required(self) -> None:
        assert is_valid(ExtractedContent(title="Shoe", images=["https://x.example/a.jpg"]))
        assert not is_valid(ExtractedContent(title="Shoe", images=[]))
        assert not is_valid(ExtractedContent(title="  ", images=["https://x.example/a.jpg"]))
        assert not is_valid(None)

    def test_full_product_page_is_valid(self) -> None:
        assert is_valid(extract(_PRODUCT_HTML, _URL))
