"""
Failure alerts over Slack and email.
"""

import logging
import smtplib
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

import requests

from .config import DeployConfig
from .manifest import DeploymentReport

logger = logging.getLogger(__name__)


class AlertNotifier:
    def __init__(self, config: DeployConfig):
        self.config = config

    @property
    def enabled(self) -> bool:
        return bool(self.config.slack_webhook or self._email_configured())

    def _email_configured(self) -> bool:
        return bool(self.config.smtp_username and self.config.smtp_password and self.config.notification_email)

    def send_alert(self, message: str, report: Optional[DeploymentReport] = None):
        """Send alert via email and/or Slack"""
        logger.error(f"ALERT: {message}")
        completed = ", ".join(report.completed_stages) if report else ""

        if self._email_configured():
            try:
                self._send_email_alert(message, completed)
            except Exception as e:
                logger.error(f"Failed to send email alert: {e}")

        if self.config.slack_webhook:
            try:
                self._send_slack_alert(message, completed)
            except Exception as e:
                logger.error(f"Failed to send Slack alert: {e}")

    def _send_email_alert(self, message: str, completed: str):
        msg = MIMEMultipart()
        msg['From'] = self.config.smtp_username
        msg['To'] = self.config.notification_email
        msg['Subject'] = f"L1 deployment alert ({self.config.network_name})"

        body = f"""
        L1 Deployment Alert

        Time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}
        Network: {self.config.network_name}
        Message: {message}

        Completed stages: {completed or 'none'}
        """

        msg.attach(MIMEText(body, 'plain'))

        with smtplib.SMTP(self.config.smtp_server, self.config.smtp_port) as server:
            server.starttls()
            server.login(self.config.smtp_username, self.config.smtp_password)
            server.send_message(msg)

    def _send_slack_alert(self, message: str, completed: str):
        payload = {
            "text": f"🚨 L1 deployment alert: {message}",
            "attachments": [
                {
                    "fields": [
                        {
                            "title": "Network",
                            "value": self.config.network_name,
                            "short": True
                        },
                        {
                            "title": "Completed stages",
                            "value": completed or "none",
                            "short": False
                        }
                    ]
                }
            ]
        }

        response = requests.post(self.config.slack_webhook, json=payload, timeout=10)
        response.raise_for_status()
