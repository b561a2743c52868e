#!/usr/bin/env python3
"""
Client Spotify API - échange OAuth et appels relayés
"""

import os
import base64
import logging
from typing import Any, Optional
import requests

SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
SPOTIFY_API_URL = "https://api.spotify.com/v1"


class SpotifyError(Exception):
    """Échec de communication avec Spotify (réseau ou réponse non 200)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SpotifyResponse:
    """Réponse brute de l'API, relayée telle quelle au client."""

    def __init__(self, status_code: int, body: Any = None):
        self.status_code = status_code
        self.body = body


class SpotifyClient:
    def __init__(
        self,
        redirect_uri: Optional[str] = None,
        api_url: str = SPOTIFY_API_URL,
        token_url: str = SPOTIFY_TOKEN_URL,
        timeout: int = 10,
    ):
        self.redirect_uri = redirect_uri or os.getenv(
            "SPOTIFY_REDIRECT_URI", "http://127.0.0.1:4200/callback"
        )
        self.api_url = api_url
        self.token_url = token_url
        self.timeout = timeout

    @staticmethod
    def _basic_auth(client_id: str, client_secret: str) -> str:
        auth_string = f"{client_id}:{client_secret}"
        return base64.b64encode(auth_string.encode("utf-8")).decode("utf-8")

    def exchange_code_for_tokens(
        self, authorization_code: str, client_id: str, client_secret: str
    ) -> dict:
        """Échanger le code d'autorisation contre des tokens (JSON brut Spotify)."""
        headers = {
            "Authorization": f"Basic {self._basic_auth(client_id, client_secret)}",
            "Content-Type": "application/x-www-form-urlencoded",
        }
        data = {
            "grant_type": "authorization_code",
            "code": authorization_code,
            "redirect_uri": self.redirect_uri,
        }
        try:
            response = requests.post(
                self.token_url, headers=headers, data=data, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise SpotifyError(f"Erreur réseau Spotify: {e}") from e

        if response.status_code != 200:
            raise SpotifyError(
                f"Spotify a refusé l'échange du code: {response.text[:200]}",
                response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise SpotifyError("Réponse Spotify illisible") from e

    # === Appels relayés (pas de cache ni de retry) ===
    def _request(
        self,
        method: str,
        path: str,
        token: str,
        params: Optional[dict] = None,
    ) -> SpotifyResponse:
        headers = {"Authorization": f"Bearer {token}"}
        try:
            response = requests.request(
                method,
                f"{self.api_url}{path}",
                headers=headers,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise SpotifyError(f"Erreur réseau Spotify: {e}") from e

        body = None
        if response.content:
            try:
                body = response.json()
            except ValueError:
                body = None
        return SpotifyResponse(response.status_code, body)

    def get_devices(self, token: str) -> SpotifyResponse:
        return self._request("GET", "/me/player/devices", token)

    def get_playlists(self, token: str) -> SpotifyResponse:
        return self._request("GET", "/me/playlists", token)

    def search_tracks(self, token: str, query: str, limit: int = 10) -> SpotifyResponse:
        return self._request(
            "GET", "/search", token, params={"q": query, "type": "track", "limit": limit}
        )

    def get_currently_playing(self, token: str) -> SpotifyResponse:
        return self._request("GET", "/me/player/currently-playing", token)

    def add_to_queue(
        self, token: str, uri: str, device_id: Optional[str] = None
    ) -> SpotifyResponse:
        params = {"uri": uri}
        if device_id:
            params["device_id"] = device_id
        logging.info(f"🎵 Ajout à la file Spotify: {uri}")
        return self._request("POST", "/me/player/queue", token, params=params)
