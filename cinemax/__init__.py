"""Cinemax — cached movie and TV-show lists backed by TMDB."""
