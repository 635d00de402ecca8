"""
Outbound email through Postmark.

Without POSTMARK_SERVER_TOKEN the service runs in dev mode: messages are
logged, not sent.
"""
import html
import logging
from typing import Optional

from postmarker.core import PostmarkClient

from app.core.config import Settings
from app.core.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


class EmailService:
    def __init__(self, settings: Settings, client: Optional[PostmarkClient] = None):
        self.sender = settings.email_sender
        if client is not None:
            self.client = client
        elif settings.postmark_server_token:
            self.client = PostmarkClient(server_token=settings.postmark_server_token)
        else:
            logger.warning("POSTMARK_SERVER_TOKEN not set - emails will be logged but not sent")
            self.client = None

    def send(self, to: str, subject: str, html_body: str, text_body: str, tag: Optional[str] = None) -> Optional[str]:
        """
        Send one email.

        Returns:
            Postmark message id, or None in dev mode

        Raises:
            EmailDeliveryError: If Postmark rejects the message
        """
        if self.client is None:
            logger.info(f"[DEV MODE] Email logged (not sent) to {to}: {subject}")
            return None

        try:
            response = self.client.emails.send(
                From=self.sender,
                To=to,
                Subject=subject,
                HtmlBody=html_body,
                TextBody=text_body,
                Tag=tag,
            )
        except Exception as e:
            logger.error(f"Failed to send email to {to}: {e}", exc_info=True)
            raise EmailDeliveryError(str(e)) from e

        logger.info(f"Email sent to {to}: {response['MessageID']}")
        return response["MessageID"]

    def send_patient_invite(self, to: str, doctor_name: Optional[str], registration_url: str) -> Optional[str]:
        inviter = doctor_name or "sua clínica"
        html_body = f"""
            <div style="font-family: sans-serif; padding: 20px;">
              <p>Olá!</p>
              <p>Você foi convidado(a) por <strong>{html.escape(inviter)}</strong> para usar a plataforma UroTrack.</p>
              <p><a href="{html.escape(registration_url)}">Clique aqui para completar seu cadastro.</a></p>
              <p>Este link de convite expira em 48 horas.</p>
            </div>
        """
        text_body = (
            f"Olá! Você foi convidado(a) por {inviter} para usar a plataforma UroTrack.\n"
            f"Complete seu cadastro em: {registration_url}\n"
            f"Este link de convite expira em 48 horas."
        )
        return self.send(to, f"Convite de {inviter} para o UroTrack", html_body, text_body, tag="patient-invite")

    def send_temporary_password(self, to: str, name: str, password: str) -> Optional[str]:
        html_body = f"""
            <div style="font-family: sans-serif; padding: 20px; line-height: 1.6;">
              <p>Olá {html.escape(name or '')},</p>
              <p>Sua conta na plataforma UroTrack foi criada com sucesso!</p>
              <p><strong>Seu e-mail de acesso é:</strong> {html.escape(to)}</p>
              <p><strong>Sua senha provisória é:</strong> <strong>{html.escape(password)}</strong></p>
              <p>Recomendamos que você altere sua senha imediatamente após o primeiro login.</p>
            </div>
        """
        text_body = (
            f"Olá {name},\nSua conta na plataforma UroTrack foi criada.\n"
            f"E-mail de acesso: {to}\nSenha provisória: {password}\n"
        )
        return self.send(to, "Sua conta UroTrack foi criada - senha provisória", html_body, text_body, tag="temporary-password")
