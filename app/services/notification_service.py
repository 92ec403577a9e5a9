"""
Email Notification Service for LUNARA.

Handles transactional emails for:
- Welcome / email verification on registration
- Password reset links
- Contact form notifications to staff

Sending is best effort: when SENDGRID_API_KEY is not configured the
service logs a warning and reports the email as not sent.
"""
from typing import Dict, Any, Optional
from flask import current_app
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, Email, To, Content


class NotificationService:
    """Service for sending transactional emails."""

    TEMPLATES = {
        'welcome': {
            'subject': 'Welcome to LUNARA, {name}!',
            'text': (
                'Hi {name},\n\n'
                'Welcome to LUNARA! You have received {bonus} welcome points.\n\n'
                '{verify_line}'
                'See you soon,\nThe LUNARA Team'
            ),
        },
        'password_reset': {
            'subject': 'Reset your LUNARA password',
            'text': (
                'Hi {name},\n\n'
                'Use this link to choose a new password. It is valid for {hours} hours:\n'
                '{link}\n\n'
                'If you did not ask for this, you can ignore this email.\n\n'
                'The LUNARA Team'
            ),
        },
        'contact_notification': {
            'subject': '[Contact] {subject} from {name}',
            'text': (
                'New contact request\n\n'
                'Name: {name}\nEmail: {email}\nOrder: {order_id}\n\n{message}'
            ),
        },
    }

    def __init__(self):
        self.api_key = current_app.config.get('SENDGRID_API_KEY')
        self.from_email = current_app.config.get('MAIL_FROM', 'hallo@lunara.shop')
        self.from_name = current_app.config.get('MAIL_FROM_NAME', 'LUNARA')
        self.site_url = current_app.config.get('SITE_URL', '')

    def _get_client(self) -> Optional[SendGridAPIClient]:
        if not self.api_key:
            current_app.logger.warning('SENDGRID_API_KEY not configured; email not sent')
            return None
        return SendGridAPIClient(api_key=self.api_key)

    def _render(self, template_key: str, **variables) -> Dict[str, str]:
        template = self.TEMPLATES[template_key]
        return {
            'subject': template['subject'].format(**variables),
            'text': template['text'].format(**variables),
        }

    def _send_email(
        self,
        to_email: str,
        to_name: Optional[str],
        subject: str,
        text_content: str,
        reply_to: Optional[str] = None
    ) -> Dict[str, Any]:
        """Send a plain text email via SendGrid."""
        client = self._get_client()
        if not client:
            return {'success': False, 'error': 'SendGrid not configured'}

        try:
            message = Mail(
                from_email=Email(self.from_email, self.from_name),
                to_emails=To(to_email, to_name),
                subject=subject,
                plain_text_content=Content('text/plain', text_content),
            )
            if reply_to:
                message.reply_to = Email(reply_to)

            response = client.send(message)

            if response.status_code in (200, 202):
                current_app.logger.info(f'Email sent to {to_email}: {subject}')
                return {'success': True, 'status_code': response.status_code}

            current_app.logger.error(f'SendGrid error: {response.status_code}')
            return {'success': False, 'error': f'Status code: {response.status_code}'}

        except Exception as e:
            # Email is a side channel; the calling request still succeeds
            current_app.logger.error(f'Failed to send email to {to_email}: {e}')
            return {'success': False, 'error': str(e)}

    # ==================== Public Methods ====================

    def send_welcome_email(self, email: str, name: Optional[str], bonus: int,
                           verification_token: Optional[str] = None) -> Dict[str, Any]:
        verify_line = ''
        if verification_token:
            verify_line = (
                'Please confirm your email address:\n'
                f'{self.site_url}/verify-email.html?token={verification_token}\n\n'
            )
        content = self._render('welcome', name=name or 'there', bonus=bonus, verify_line=verify_line)
        return self._send_email(email, name, content['subject'], content['text'])

    def send_password_reset(self, email: str, name: Optional[str], token: str,
                            valid_hours: int) -> Dict[str, Any]:
        content = self._render(
            'password_reset',
            name=name or 'there',
            hours=valid_hours,
            link=f'{self.site_url}/reset-password.html?token={token}',
        )
        return self._send_email(email, name, content['subject'], content['text'])

    def send_contact_notification(self, contact) -> Dict[str, Any]:
        """Forward a contact request to the shop inbox (CONTACT_NOTIFY_EMAIL)."""
        recipient = current_app.config.get('CONTACT_NOTIFY_EMAIL')
        if not recipient:
            return {'success': False, 'error': 'CONTACT_NOTIFY_EMAIL not configured'}

        content = self._render(
            'contact_notification',
            subject=contact.subject,
            name=contact.name,
            email=contact.email,
            order_id=contact.order_id or '-',
            message=contact.message,
        )
        return self._send_email(recipient, None, content['subject'], content['text'],
                                reply_to=contact.email)
