import logging
from typing import Optional
from sqlalchemy.orm import Session
from ..models.user import User
from ..services.spotify_client_service import SpotifyClient, SpotifyError, SpotifyResponse
from ..utils import encryption as enc


class SpotifyController:
    def __init__(self, client: Optional[SpotifyClient] = None):
        self.client = client or SpotifyClient()

    def get_authorization_token(self, db: Session, code: str, client_id: str) -> dict:
        users = db.query(User).filter(User.client_id == client_id).all()
        if not users:
            raise ValueError("client_id_unknown")

        client_secret = enc.decrypt_str(users[0].client_secret) or ""
        try:
            token_data = self.client.exchange_code_for_tokens(code, client_id, client_secret)
        except SpotifyError as e:
            logging.error(f"Erreur de communication avec Spotify: {e}")
            raise ValueError("spotify_exchange_failed") from e

        # Tous les comptes partageant ce client_id reçoivent le même access token
        access_token = token_data.get("access_token") if isinstance(token_data, dict) else None
        if access_token:
            try:
                stored = enc.encrypt_str(access_token)
                for u in users:
                    u.spotify_access_token = stored
                    db.add(u)
                db.commit()
                logging.info(
                    f"[SPOTIFY] Token enregistré pour {len(users)} utilisateur(s) (client_id {client_id})"
                )
            except Exception as e:
                db.rollback()
                logging.warning(f"Impossible d'enregistrer le token Spotify en base: {e}")
        return token_data

    def stored_access_token(self, db: Session, email: str) -> Optional[str]:
        u = db.get(User, email) if email else None
        if not u or not u.spotify_access_token:
            return None
        return enc.decrypt_str(u.spotify_access_token)

    def get_devices(self, token: str) -> SpotifyResponse:
        return self.client.get_devices(token)

    def get_playlists(self, token: str) -> SpotifyResponse:
        return self.client.get_playlists(token)

    def search_tracks(self, token: str, query: str) -> SpotifyResponse:
        return self.client.search_tracks(token, query)

    def get_currently_playing(self, token: str) -> SpotifyResponse:
        return self.client.get_currently_playing(token)

    def add_to_queue(self, token: str, uri: str, device_id: Optional[str] = None) -> SpotifyResponse:
        return self.client.add_to_queue(token, uri, device_id)
