import os
import smtplib
import ssl
import logging
from html import escape
from email.message import EmailMessage
from urllib.parse import quote


def _smtp_settings():
    host = os.getenv("SMTP_HOST")
    port = int(os.getenv("SMTP_PORT", "587"))
    user = os.getenv("SMTP_USER")
    password = os.getenv("SMTP_PASSWORD")
    starttls = os.getenv("SMTP_STARTTLS", "true").lower() == "true"
    use_ssl = os.getenv("SMTP_SSL", "false").lower() == "true"
    from_email = os.getenv("SMTP_FROM") or user or "no-reply@gramola.app"
    from_name = os.getenv("SMTP_FROM_NAME", "La Gramola")
    return {
        "host": host,
        "port": port,
        "user": user,
        "password": password,
        "starttls": starttls,
        "use_ssl": use_ssl,
        "from_email": from_email,
        "from_name": from_name,
    }


def send_email(
    to_email: str, subject: str, text_body: str, html_body: str | None = None
) -> bool:
    """Envoi SMTP best-effort: ne lève jamais, renvoie False en cas d'échec."""
    cfg = _smtp_settings()
    if not cfg["host"] or not cfg["port"]:
        logging.warning("SMTP non configuré: SMTP_HOST/SMTP_PORT manquants")
        return False

    try:
        # Les en-têtes peuvent lever (CR/LF dans l'adresse): même traitement qu'un échec SMTP
        msg = EmailMessage()
        msg["From"] = f"{cfg['from_name']} <{cfg['from_email']}>"
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.set_content(text_body)
        if html_body:
            msg.add_alternative(html_body, subtype="html")

        if cfg["use_ssl"]:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(cfg["host"], cfg["port"], context=context) as server:
                if cfg["user"] and cfg["password"]:
                    server.login(cfg["user"], cfg["password"])
                server.send_message(msg)
        else:
            with smtplib.SMTP(cfg["host"], cfg["port"]) as server:
                server.ehlo()
                if cfg["starttls"]:
                    context = ssl.create_default_context()
                    server.starttls(context=context)
                    server.ehlo()
                if cfg["user"] and cfg["password"]:
                    server.login(cfg["user"], cfg["password"])
                server.send_message(msg)
        logging.info(f"📧 Email envoyé à {to_email}")
        return True
    except Exception as e:
        logging.error(f"Erreur envoi email à {to_email}: {e}")
        return False


def _strip_slash(url: str) -> str:
    return url[:-1] if url.endswith("/") else url


def frontend_url() -> str:
    return _strip_slash(os.getenv("FRONTEND_URL", "http://localhost:4200"))


def backend_url() -> str:
    return _strip_slash(os.getenv("BACKEND_URL", "http://localhost:8080"))


def build_confirmation_link(email: str, token_id: str) -> str:
    """Lien vers le backend (GET /users/confirmToken/{email}?token=...)."""
    return (
        f"{backend_url()}/users/confirmToken/{quote(email, safe='')}"
        f"?token={quote(token_id, safe='')}"
    )


def build_password_reset_link(email: str, token_id: str) -> str:
    return (
        f"{frontend_url()}/reset-password?email={quote(email, safe='')}"
        f"&token={quote(token_id, safe='')}"
    )


def build_payment_redirect(token_id: str) -> str:
    return f"{frontend_url()}/payments?token={quote(token_id, safe='')}"


def send_confirmation_email(email: str, bar: str, token_id: str) -> bool:
    link = build_confirmation_link(email, token_id)
    # Utile en dev sans SMTP: le lien reste visible dans les logs
    logging.info(f"🔗 Lien de confirmation pour {email}: {link}")
    subj = "Gramola: confirma tu cuenta"
    txt = (
        f"Hola {bar},\n\n"
        "Gracias por registrarte. Haz clic para continuar con el pago:\n\n"
        f"{link}\n"
    )
    html = (
        f"<p>Hola {escape(bar or '')},</p><p>Gracias por registrarte. Haz clic para continuar con el pago:</p>"
        f'<p><a href="{escape(link)}">Confirmar mi cuenta</a></p>'
    )
    return send_email(email, subj, txt, html)


def send_password_reset_email(email: str, link: str) -> bool:
    subj = "Recuperación de contraseña - La Gramola"
    txt = (
        "Hola,\n\n"
        "Hemos recibido una solicitud para restablecer tu contraseña.\n"
        "Haz clic en el siguiente enlace para crear una nueva:\n\n"
        f"{link}\n\n"
        "Este enlace caducará en 30 minutos.\n"
        "Si no has sido tú, ignora este mensaje.\n"
    )
    return send_email(email, subj, txt)
