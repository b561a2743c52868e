import logging
from typing import Optional
from sqlalchemy.orm import Session
from ..models.user import User, Token
from ..services import geocoding_service
from ..utils import mailer
from ..utils.geo import haversine_m, geofence_radius_m
from ..utils.security import hash_password, verify_password, needs_rehash
from ..utils import encryption as enc


class UserController:
    """Identité des bars: inscription, login, confirmation email, reset mot de passe.

    Les erreurs sont levées sous forme de ValueError(code); les routes les
    traduisent en statuts HTTP.
    """

    def _get_user(self, db: Session, email: str) -> Optional[User]:
        if not email:
            return None
        return db.get(User, email)

    def register(
        self,
        db: Session,
        bar: str,
        email: str,
        pwd: str,
        client_id: str,
        client_secret: str,
        address: str,
        signature: str,
    ) -> User:
        if self._get_user(db, email):
            raise ValueError("email_taken")

        u = User(
            email=email,
            bar=bar,
            pwd=hash_password(pwd),
            client_id=client_id,
            client_secret=enc.encrypt_str(client_secret),
            address=address,
            signature=signature,
        )

        # Géolocalisation best-effort: l'inscription aboutit même sans coordonnées
        if address and address.strip():
            try:
                coords = geocoding_service.get_coordinates(address)
            except Exception as e:
                logging.warning(f"[GEO] Géocodage impossible pour {address}: {e}")
                coords = None
            if coords:
                u.lat, u.lng = coords
                logging.info(f"[GEO] Coordonnées enregistrées pour {bar}: {coords[0]}, {coords[1]}")
            else:
                logging.warning(f"[GEO] Pas de coordonnées pour l'adresse: {address}")

        token = Token()
        u.creation_token = token
        db.add(u)
        db.commit()
        db.refresh(u)

        # L'échec d'envoi n'annule pas la création du compte
        sent = mailer.send_confirmation_email(u.email, u.bar, token.id)
        if not sent:
            logging.error(
                f"Email de confirmation non envoyé à {email}: le compte est créé malgré tout"
            )
        logging.info(f"[REGISTRE] Bar {bar} inscrit ({email})")
        return u

    def login(self, db: Session, email: str, pwd: str) -> User:
        u = self._get_user(db, email)
        if not u or not verify_password(pwd or "", u.pwd):
            raise ValueError("invalid_credentials")

        token = u.creation_token
        if token is not None and not token.is_used():
            raise ValueError("email_not_confirmed")

        # Migration transparente des anciens hash SHA-256 vers Argon2id
        if needs_rehash(u.pwd):
            u.pwd = hash_password(pwd)
            db.add(u)
            db.commit()
        return u

    def confirm_token(self, db: Session, email: str, token_id: str) -> None:
        u = self._get_user(db, email)
        if not u:
            raise ValueError("user_not_found")
        token = u.creation_token
        if token is None:
            raise ValueError("no_creation_token")
        if token.id != token_id:
            raise ValueError("token_mismatch")
        if token.is_expired():
            raise ValueError("token_expired")
        if token.is_used():
            raise ValueError("token_used")
        # Transition définitive: Pending -> Used
        token.use()
        db.add(token)
        db.commit()

    def create_password_reset_token(self, db: Session, email: str) -> str:
        if not self._get_user(db, email):
            raise ValueError("user_not_found")
        # Token indépendant du token de confirmation, lié au compte demandeur
        token = Token(reset_email=email)
        db.add(token)
        db.commit()
        return token.id

    def send_reset_password_email(self, email: str, link: str) -> bool:
        return mailer.send_password_reset_email(email, link)

    def reset_password(self, db: Session, email: str, token_id: str, new_pwd: str) -> None:
        u = self._get_user(db, email)
        if not u:
            raise ValueError("user_not_found")
        token = db.get(Token, token_id) if token_id else None
        # Un token de création ou émis pour un autre compte ne vaut rien ici
        if not token or token.reset_email != email:
            raise ValueError("token_not_found")
        if token.is_expired():
            raise ValueError("token_expired")
        if token.is_used():
            raise ValueError("token_used")
        u.pwd = hash_password(new_pwd)
        token.use()
        db.add(u)
        db.add(token)
        db.commit()

    def delete(self, db: Session, email: str) -> None:
        u = self._get_user(db, email)
        if not u:
            raise ValueError("user_not_found")
        # Le token de création part avec (cascade delete-orphan)
        db.delete(u)
        db.commit()
        logging.info(f"Compte supprimé: {email}")

    def distance_to_bar(
        self, db: Session, email: str, lat: float, lng: float
    ) -> tuple[float, float, bool]:
        u = self._get_user(db, email)
        if not u:
            raise ValueError("user_not_found")
        if u.lat is None or u.lng is None:
            raise ValueError("coordinates_unavailable")
        distance = haversine_m(u.lat, u.lng, lat, lng)
        radius = geofence_radius_m()
        return distance, radius, distance <= radius
