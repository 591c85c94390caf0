import json
from unittest.mock import AsyncMock

import pytest

from raw_torrents.__main__ import build_parser, main, run

FETCH_JSON = "raw_torrents.services.fetch_client.fetch_json"


@pytest.fixture
def providers_file(tmp_path):
    path = tmp_path / "providers.yaml"
    path.write_text(
        "providers:\n  - key: only\n    url: https://only.example\n    name: Only\n",
        encoding="utf-8",
    )
    return path


def test_build_parser_parses_series_arguments():
    args = build_parser().parse_args(
        ["series", "tt0903747", "--season", "2", "--episode", "5"]
    )

    assert args.media_type == "series"
    assert args.media_id == "tt0903747"
    assert (args.season, args.episode) == (2, 5)
    assert args.config == "config.ini"
    assert args.providers is None


@pytest.mark.asyncio
async def test_run_uses_provider_override(
    mocker, tmp_path, providers_file, make_magnet
):
    fetch_mock = mocker.patch(
        FETCH_JSON,
        new=AsyncMock(
            return_value={
                "results": [{"magnetLink": make_magnet(1), "title": "Movie 1080p 3 GB"}]
            }
        ),
    )

    payload = await run(
        [
            "movie",
            "tt0111161",
            "--config",
            str(tmp_path / "config.ini"),
            "--providers",
            str(providers_file),
        ]
    )

    fetch_mock.assert_awaited_once()
    assert fetch_mock.await_args.args[0] == (
        "https://only.example/api/search?type=movie&query=tt0111161"
    )
    assert [s["infoHash"] for s in payload["streams"]] == [f"{1:040x}"]


@pytest.mark.asyncio
async def test_run_requires_season_and_episode_for_series(tmp_path):
    with pytest.raises(SystemExit):
        await run(["series", "tt0903747", "--config", str(tmp_path / "config.ini")])


def test_main_prints_json(mocker, tmp_path, providers_file, make_magnet, capsys):
    mocker.patch(
        FETCH_JSON,
        new=AsyncMock(
            return_value={
                "results": [{"magnetLink": make_magnet(2), "title": "Movie 720p 1 GB"}]
            }
        ),
    )

    main(
        [
            "movie",
            "603",
            "--config",
            str(tmp_path / "config.ini"),
            "--providers",
            str(providers_file),
        ]
    )

    printed = json.loads(capsys.readouterr().out)
    assert printed["streams"][0]["url"] == make_magnet(2)
    assert printed["streams"][0]["behaviorHints"] == {"notWebReady": True}
