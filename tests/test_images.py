"""Tests for image URL handling, deduplication and ranking."""

from __future__ import annotations

from feednly.scraper.images import (
    dedup_key,
    dedupe,
    display_score,
    infer_dimensions,
    make_candidate,
    normalize_url,
    parse_dimension,
    parse_srcset,
    rank_for_display,
    selection_score,
)

_BASE = "https://shop.example.com/p/trail-runner"


# ---------------------------------------------------------------------------
# normalize_url
# ---------------------------------------------------------------------------

class TestNormalizeUrl:
    def test_relative_path_resolves_against_base(self) -> None:
        assert normalize_url("/media/a.jpg", _BASE) == "https://shop.example.com/media/a.jpg"

    def test_protocol_relative_forced_to_https(self) -> None:
        assert normalize_url("//cdn.example.com/a.jpg", "http://shop.example.com/") == (
            "https://cdn.example.com/a.jpg"
        )

    def test_data_uri_rejected(self) -> None:
        assert normalize_url("data:image/gif;base64,R0lGOD", _BASE) is None

    def test_non_http_scheme_rejected(self) -> None:
        assert normalize_url("javascript:void(0)", _BASE) is None

    def test_blank_rejected(self) -> None:
        assert normalize_url("   ", _BASE) is None
        assert normalize_url(None, _BASE) is None


# ---------------------------------------------------------------------------
# Dedup key / dimensions
# ---------------------------------------------------------------------------

class TestDedupKey:
    def test_cosmetic_params_ignored(self) -> None:
        a = dedup_key("https://cdn.example.com/img.jpg?w=100")
        b = dedup_key("https://cdn.example.com/img.jpg?w=500&v=3&format=webp")
        assert a == b

    def test_meaningful_params_sorted_and_lowercased(self) -> None:
        a = dedup_key("https://cdn.example.com/img.jpg?Color=RED&id=7")
        b = dedup_key("https://cdn.example.com/img.jpg?id=7&color=red")
        assert a == b

    def test_different_paths_differ(self) -> None:
        assert dedup_key("https://cdn.example.com/a.jpg") != dedup_key("https://cdn.example.com/b.jpg")

    def test_infer_dimensions_from_query(self) -> None:
        assert infer_dimensions("https://cdn.example.com/a.jpg?wid=640&hei=480") == (640, 480)
        assert infer_dimensions("https://cdn.example.com/a.jpg") == (None, None)

    def test_infer_dimensions_ignores_overflowing_values(self) -> None:
        assert infer_dimensions("https://cdn.example.com/a.jpg?w=1e999&h=inf") == (None, None)
        assert infer_dimensions("https://cdn.example.com/a.jpg?w=nan&h=480") == (None, 480)

    def test_parse_dimension_bounds(self) -> None:
        assert parse_dimension("640") == 640
        assert parse_dimension(" 12.7 ") == 12
        assert parse_dimension("0.5") is None
        assert parse_dimension("-10") is None
        assert parse_dimension("9" * 400) is None
        assert parse_dimension("9" * 300) is None
        assert parse_dimension("wide") is None
        assert parse_dimension(None) is None


# ---------------------------------------------------------------------------
# srcset
# ---------------------------------------------------------------------------

class TestParseSrcset:
    def test_width_descriptors(self) -> None:
        entries = parse_srcset("small.jpg 200w, large.jpg 1200w")
        assert entries == [("small.jpg", 200, None), ("large.jpg", 1200, None)]

    def test_density_descriptors_without_space_after_comma(self) -> None:
        entries = parse_srcset("a.jpg 1x,b.jpg 2x")
        assert entries == [("a.jpg", None, 1.0), ("b.jpg", None, 2.0)]

    def test_commas_inside_url_are_kept(self) -> None:
        entries = parse_srcset("https://cdn.example.com/c_fill,w_800/shoe.jpg 800w")
        assert entries == [("https://cdn.example.com/c_fill,w_800/shoe.jpg", 800, None)]

    def test_empty_value(self) -> None:
        assert parse_srcset("") == []
        assert parse_srcset(None) == []

    def test_degenerate_descriptors_dropped(self) -> None:
        entries = parse_srcset("a.jpg 1e999w, b.jpg nanx, c.jpg 1e999x")
        assert entries == [("a.jpg", None, None), ("b.jpg", None, None), ("c.jpg", None, None)]


# ---------------------------------------------------------------------------
# Scoring and dedupe
# ---------------------------------------------------------------------------

class TestSelection:
    def test_larger_size_variant_survives(self) -> None:
        small = make_candidate("https://cdn.example.com/img.jpg?w=100", 0)
        large = make_candidate("https://cdn.example.com/img.jpg?w=500", 1)
        assert dedupe([small, large]) == [large]
        assert dedupe([large, small]) == [large]

    def test_dedupe_is_idempotent_and_never_grows(self) -> None:
        candidates = [
            make_candidate("https://cdn.example.com/a.jpg?w=100", 0),
            make_candidate("https://cdn.example.com/b.jpg", 1),
            make_candidate("https://cdn.example.com/a.jpg?w=900", 2),
            make_candidate("https://cdn.example.com/b.jpg?v=2", 3),
        ]
        once = dedupe(candidates)
        assert len(once) <= len(candidates)
        assert dedupe(once) == once
        assert len({dedup_key(c.url) for c in once}) == len(once)

    def test_declared_area_beats_url_heuristic(self) -> None:
        sized = make_candidate("https://cdn.example.com/x.jpg", 0, width=800, height=800)
        hinted = make_candidate("https://cdn.example.com/product-large.jpg", 1)
        assert selection_score(sized) > selection_score(hinted)

    def test_large_keyword_bonus_without_dimensions(self) -> None:
        plain = make_candidate("https://cdn.example.com/aaaaaaa.jpg", 0)
        hero = make_candidate("https://cdn.example.com/hero000.jpg", 0)
        assert selection_score(hero) - selection_score(plain) == 5000

    def test_density_multiplies_score(self) -> None:
        one = make_candidate("https://cdn.example.com/a.jpg", 0, width=100, height=100)
        two = make_candidate("https://cdn.example.com/a.jpg", 0, width=100, height=100, density=2.0)
        assert selection_score(two) == 2 * selection_score(one)


class TestDisplayRanking:
    def test_svg_is_dropped(self) -> None:
        ranked = rank_for_display(
            ["https://cdn.example.com/brand.svg", "https://cdn.example.com/shoe.jpg"], 8
        )
        assert ranked == ["https://cdn.example.com/shoe.jpg"]

    def test_negative_keywords_rank_lower(self) -> None:
        assert display_score("https://cdn.example.com/shoe-thumbnail.jpg") < display_score(
            "https://cdn.example.com/shoe.jpg"
        )

    def test_quality_hints_rank_higher(self) -> None:
        assert display_score("https://cdn.example.com/shoe@2x.jpg") > display_score(
            "https://cdn.example.com/shoe.jpg"
        )

    def test_stable_order_and_limit(self) -> None:
        urls = [f"https://cdn.example.com/shoe-{i}.jpg" for i in range(5)]
        assert rank_for_display(urls, 3) == urls[:3]
