import random

import pytest

from raw_torrents.services.ranking import (
    SOURCE_MARKER,
    rank_streams,
    render_stream,
    size_fit_score,
    sort_streams,
)
from raw_torrents.services.scoring import quality_tier


@pytest.mark.parametrize(
    "size_mb, tier, expected",
    [
        (4000, 1080, 0),
        (1500, 1080, 500),
        (20000, 1080, 4000),
        (10000, 2160, 0),
        (80000, 2160, 0),
        (200, 480, 300),
        (999999, 0, 0),
        (0, 0, 0),
    ],
)
def test_size_fit_score(size_mb, tier, expected):
    assert size_fit_score(size_mb, tier) == expected


def test_sort_streams_orders_by_tier_then_fit_then_size(make_candidate):
    a = make_candidate(1, quality="1080p", size_mb=20000)
    b = make_candidate(2, quality="1080p", size_mb=1500)
    c = make_candidate(3, quality="2160p", size_mb=30000)
    d = make_candidate(4, quality="720p", size_mb=3000)
    e = make_candidate(5, quality="", size_mb=100000)

    ordered = sort_streams([a, b, c, d, e])

    assert ordered == [c, b, a, d, e]


def test_sort_streams_prefers_larger_file_when_fit_ties(make_candidate):
    small = make_candidate(1, quality="1080p", size_mb=4000)
    large = make_candidate(2, quality="1080p", size_mb=8000)
    cam = make_candidate(3, quality="CAM", size_mb=1200)
    unknown = make_candidate(4, quality="", size_mb=900)

    assert sort_streams([small, unknown, large, cam]) == [large, small, cam, unknown]


def test_sort_streams_is_stable_for_full_ties(make_candidate):
    first = make_candidate(1, quality="720p", size_mb=2000)
    second = make_candidate(2, quality="720p", size_mb=2000)

    assert sort_streams([first, second]) == [first, second]
    assert sort_streams([second, first]) == [second, first]


def test_ranking_is_a_total_order(make_candidate):
    rng = random.Random(42)
    qualities = ["2160p", "4K", "1080p", "720p", "480p", "CAM", ""]
    candidates = [
        make_candidate(
            number,
            quality=rng.choice(qualities),
            size_mb=rng.choice([0, 300, 900, 2500, 7000, 12000, 50000, 90000]),
        )
        for number in range(1, 121)
    ]

    ordered = sort_streams(candidates)

    for before, after in zip(ordered, ordered[1:]):
        tier_a = quality_tier(before.quality)
        tier_b = quality_tier(after.quality)
        assert tier_a >= tier_b
        if tier_a != tier_b:
            continue
        score_a = size_fit_score(before.size_mb, tier_a)
        score_b = size_fit_score(after.size_mb, tier_b)
        assert score_a <= score_b
        if score_a == score_b:
            assert before.size_mb >= after.size_mb


def test_rank_streams_applies_limit(make_candidate):
    candidates = [
        make_candidate(number, quality="1080p", size_mb=number * 1024)
        for number in range(1, 11)
    ]

    ranked = rank_streams(candidates, limit=3)

    assert [r.candidate.size_mb for r in ranked] == [10240, 9216, 8192]
    assert len(rank_streams(candidates)) == 10


def test_ranked_stream_presentation_fields(make_candidate):
    candidate = make_candidate(
        1,
        quality="1080p",
        size_mb=2150,
        size="2.1 GB",
        filename="Movie.2023.1080p.x265",
        source="YTS",
    )

    (ranked,) = rank_streams([candidate])

    assert ranked.quality_symbol == "🎛️"
    assert ranked.name == "🎛️ | 1080P | 2.1 GB | YTS"
    assert ranked.title == f"Movie.2023.1080p.x265\n{SOURCE_MARKER} YTS | HEVC"
    assert ranked.features == ["HEVC"]


def test_ranked_stream_omits_blank_fields(make_candidate):
    candidate = make_candidate(
        1, quality="", size_mb=0, size="", filename="Unknown", source="SRC"
    )

    (ranked,) = rank_streams([candidate])

    assert ranked.name == "🃠 | SRC"
    assert ranked.title == f"Unknown\n{SOURCE_MARKER} SRC"


def test_render_stream_output_shape(make_candidate):
    candidate = make_candidate(9, quality="720p", size="1 GB", source="P1")

    (ranked,) = rank_streams([candidate])
    rendered = render_stream(ranked)

    assert rendered == {
        "name": ranked.name,
        "title": ranked.title,
        "url": candidate.magnet_uri,
        "infoHash": f"{9:040x}",
        "behaviorHints": {"notWebReady": True},
    }
