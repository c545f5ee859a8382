"""
Conversions from TVmaze payloads to the client's catalog/meta models.
"""

from bs4 import BeautifulSoup

from api.tvmaze.models import TVMazeEpisode, TVMazeImage, TVMazeShow
from contracts.models import (
    PLACEHOLDER_POSTER,
    CatalogMeta,
    EpisodeVideo,
    MetaDetail,
    episode_id,
    series_id,
)

UNKNOWN_SHOW_NAME = "Unknown Show"


def strip_html(html: str | None) -> str:
    """Plain text of a TVmaze summary ('<p>Some <b>show</b></p>' -> 'Some show')."""
    if not html:
        return ""
    return BeautifulSoup(html, "html.parser").get_text().strip()


def _first_image(*images: TVMazeImage | None, prefer: str = "medium") -> str | None:
    order = ("medium", "original") if prefer == "medium" else ("original", "medium")
    for image in images:
        if image is None:
            continue
        for size in order:
            url = getattr(image, size)
            if url:
                return url
    return None


def catalog_poster(show: TVMazeShow) -> str:
    """Catalog tiles are small, so the medium image wins."""
    return _first_image(show.image, prefer="medium") or PLACEHOLDER_POSTER


def meta_poster(show: TVMazeShow | None, episodes: list[TVMazeEpisode]) -> str:
    """Detail view prefers the original image, then the first episode's still."""
    show_image = show.image if show is not None else None
    poster = _first_image(show_image, prefer="original")
    if poster is None and episodes:
        poster = _first_image(episodes[0].image, prefer="original")
    return poster or PLACEHOLDER_POSTER


def latest_airdate(episodes: list[TVMazeEpisode]) -> str | None:
    dates = [e.airdate for e in episodes if e.airdate]
    return max(dates) if dates else None


def to_catalog_meta(show: TVMazeShow, latest: str | None = None) -> CatalogMeta:
    return CatalogMeta(
        id=series_id(show.id),
        name=show.name,
        poster=catalog_poster(show),
        description=strip_html(show.summary),
        latest_airdate=latest,
    )


def to_episode_video(
    episode: TVMazeEpisode, show_id: str, series: str, include_overview: bool = False
) -> EpisodeVideo:
    return EpisodeVideo(
        id=episode_id(show_id, episode.season, episode.number),
        series=series,
        season=episode.season,
        episode=episode.number,
        name=episode.name,
        released=episode.airdate,
        thumbnail=_first_image(episode.image, prefer="medium"),
        overview=strip_html(episode.summary) if include_overview else None,
    )


def to_meta_detail(
    prefixed_id: str,
    show_id: str,
    show: TVMazeShow | None,
    episodes: list[TVMazeEpisode],
    include_overview: bool = False,
) -> MetaDetail:
    """
    Build the meta document for a show.

    A missing show still produces a document (placeholder name and poster) so
    the client always gets something to render.
    """
    return MetaDetail(
        id=prefixed_id,
        name=(show.name if show is not None and show.name else UNKNOWN_SHOW_NAME),
        poster=meta_poster(show, episodes),
        description=strip_html(show.summary) if show is not None else "",
        episodes=[
            to_episode_video(e, show_id, prefixed_id, include_overview=include_overview)
            for e in episodes
        ],
    )
