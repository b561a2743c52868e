#!/usr/bin/env python3
"""
Client de géocodage (OpenStreetMap / Nominatim): adresse -> (lat, lng)
"""

import os
import logging
from typing import Optional, Tuple
import requests

NOMINATIM_URL = os.getenv(
    "NOMINATIM_URL", "https://nominatim.openstreetmap.org/search"
)
# Nominatim refuse les requêtes sans User-Agent explicite (403)
USER_AGENT = os.getenv("NOMINATIM_USER_AGENT", "LaGramola/1.0 (+https://gramola-app.com)")


def _fetch_coordinates(query: str) -> Optional[Tuple[float, float]]:
    """Interroger Nominatim; None si aucun résultat ou erreur."""
    try:
        logging.debug(f"[GEO] Recherche: {query}")
        response = requests.get(
            NOMINATIM_URL,
            params={"q": query, "format": "json", "limit": 1},
            headers={"User-Agent": USER_AGENT, "Referer": "https://gramola-app.com"},
            timeout=10,
        )
        if response.status_code != 200:
            logging.warning(f"[GEO] Erreur HTTP {response.status_code}: {response.text[:200]}")
            return None
        results = response.json()
        if isinstance(results, list) and results:
            first = results[0]
            lat, lng = float(first["lat"]), float(first["lon"])
            logging.info(f"[GEO] Trouvé: {lat}, {lng}")
            return lat, lng
        logging.info(f"[GEO] Aucun résultat pour: {query}")
    except (requests.RequestException, ValueError, KeyError, TypeError) as e:
        logging.warning(f"[GEO] Erreur: {e}")
    return None


def get_coordinates(address: str) -> Optional[Tuple[float, float]]:
    """Coordonnées de l'adresse complète, sinon de la partie après la dernière virgule.

    Renvoie None si les deux tentatives échouent: l'appelant doit traiter ce cas
    comme « coordonnées indisponibles », pas comme une erreur.
    """
    if not address or not address.strip():
        return None
    coords = _fetch_coordinates(address)
    if coords is None and "," in address:
        simplified = address[address.rfind(",") + 1 :].strip()
        if simplified:
            logging.info(f"[GEO] Nouvel essai simplifié: {simplified}")
            coords = _fetch_coordinates(simplified)
    return coords
