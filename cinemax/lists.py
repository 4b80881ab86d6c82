"""Logical paged lists and the TMDB endpoints that back them.

Every cached list shares the same store and mediator; only the entries below
differ between list types.
"""

from enum import Enum


class MediaType(str, Enum):
    MOVIE = "movie"
    TV = "tv"


class ContentType(str, Enum):
    UPCOMING_MOVIES = "upcoming_movies"
    TOP_RATED_MOVIES = "top_rated_movies"
    NOW_PLAYING_MOVIES = "now_playing_movies"
    POPULAR_MOVIES = "popular_movies"
    DISCOVER_MOVIES = "discover_movies"
    TRENDING_MOVIES = "trending_movies"
    TOP_RATED_TV_SHOWS = "top_rated_tv_shows"
    POPULAR_TV_SHOWS = "popular_tv_shows"
    ON_THE_AIR_TV_SHOWS = "on_the_air_tv_shows"
    DISCOVER_TV_SHOWS = "discover_tv_shows"
    TRENDING_TV_SHOWS = "trending_tv_shows"


# content type -> (endpoint path, media type)
LIST_ENDPOINTS: dict[ContentType, tuple[str, MediaType]] = {
    ContentType.UPCOMING_MOVIES: ("/movie/upcoming", MediaType.MOVIE),
    ContentType.TOP_RATED_MOVIES: ("/movie/top_rated", MediaType.MOVIE),
    ContentType.NOW_PLAYING_MOVIES: ("/movie/now_playing", MediaType.MOVIE),
    ContentType.POPULAR_MOVIES: ("/movie/popular", MediaType.MOVIE),
    ContentType.DISCOVER_MOVIES: ("/discover/movie", MediaType.MOVIE),
    ContentType.TRENDING_MOVIES: ("/trending/movie/week", MediaType.MOVIE),
    ContentType.TOP_RATED_TV_SHOWS: ("/tv/top_rated", MediaType.TV),
    ContentType.POPULAR_TV_SHOWS: ("/tv/popular", MediaType.TV),
    ContentType.ON_THE_AIR_TV_SHOWS: ("/tv/on_the_air", MediaType.TV),
    ContentType.DISCOVER_TV_SHOWS: ("/discover/tv", MediaType.TV),
    ContentType.TRENDING_TV_SHOWS: ("/trending/tv/week", MediaType.TV),
}

SEARCH_ENDPOINTS: dict[MediaType, str] = {
    MediaType.MOVIE: "/search/movie",
    MediaType.TV: "/search/tv",
}


def endpoint_for(content_type: ContentType) -> str:
    return LIST_ENDPOINTS[ContentType(content_type)][0]


def media_type_for(content_type: ContentType) -> MediaType:
    return LIST_ENDPOINTS[ContentType(content_type)][1]
