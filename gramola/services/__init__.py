#!/usr/bin/env python3
"""
Package gramola.services - clients des API externes
"""

from .spotify_client_service import SpotifyClient, SpotifyError, SpotifyResponse
from .geocoding_service import get_coordinates

__all__ = ["SpotifyClient", "SpotifyError", "SpotifyResponse", "get_coordinates"]
