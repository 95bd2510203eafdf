"""Report email composition and SMTP transport."""

from __future__ import annotations

from dataclasses import dataclass
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any

import aiosmtplib
import structlog

from cyberpulse.config import Settings
from cyberpulse.services.risk import risk_color_hex, risk_level

logger = structlog.get_logger()


@dataclass
class Attachment:
    """A file attached to an outgoing message."""

    filename: str
    content: bytes
    mime_subtype: str = "pdf"


def report_period_label(report: dict[str, Any]) -> str:
    return f"Q{report['quarter']} {report['year']}"


def report_email_subject(tenant_name: str, report: dict[str, Any]) -> str:
    return f"Cyber Risk Report - {tenant_name} - {report_period_label(report)}"


def report_attachment_name(tenant_name: str, report: dict[str, Any]) -> str:
    safe_name = "_".join(tenant_name.split())
    return f"Cyber_Risk_Report_{safe_name}_Q{report['quarter']}_{report['year']}.pdf"


def build_report_email(tenant_name: str, report: dict[str, Any], recipient_name: str | None = None) -> str:
    """HTML body summarising the report's risk scores."""
    overall = report["overall_risk_score"]
    level = risk_level(overall)
    color = risk_color_hex(overall)
    period = report_period_label(report)
    return f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <div style="padding: 20px; background-color: #f8fafc; border-bottom: 3px solid #3b82f6;">
                <h1 style="color: #1e293b; margin: 0;">Cyber Risk Report</h1>
                <p style="color: #64748b; margin: 5px 0 0 0;">{tenant_name} - {period}</p>
            </div>
            <div style="padding: 20px; background-color: white;">
                <p>Hello {recipient_name or ""},</p>
                <p>Attached is your latest cyber risk report. Here's a summary of the findings:</p>
                <div style="margin: 20px 0; padding: 15px; background-color: #f1f5f9; border-radius: 5px;">
                    <p style="margin: 0 0 10px 0; font-weight: bold;">Overall Risk Level:
                        <span style="color: {color};">{level} ({overall}%)</span>
                    </p>
                    <ul style="margin: 0; padding-left: 20px;">
                        <li>Identity Risk: {report['identity_risk_score']}%</li>
                        <li>Training Risk: {report['training_risk_score']}%</li>
                        <li>Device Risk: {report['device_risk_score']}%</li>
                        <li>Cloud Risk: {report['cloud_risk_score']}%</li>
                        <li>Threat Risk: {report['threat_risk_score']}%</li>
                    </ul>
                </div>
                <p>Please review the attached PDF for detailed information and recommendations.</p>
                <p>If you have any questions, please contact your account manager.</p>
                <p>Best regards,<br>CyberPulse Team</p>
            </div>
            <div style="padding: 15px; background-color: #f8fafc; text-align: center; font-size: 12px; color: #64748b;">
                <p>This is an automated message. Please do not reply directly to this email.</p>
            </div>
        </div>
        """


class SmtpMailTransport:
    """Sends one message per recipient through an SMTP relay."""

    def __init__(self, settings: Settings) -> None:
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.username = settings.smtp_username
        self.password = settings.smtp_password
        self.use_tls = settings.smtp_use_tls
        self.from_email = settings.smtp_from_email
        self.from_name = settings.smtp_from_name

    def build_message(
        self, to: str, subject: str, html_body: str, attachment: Attachment | None = None
    ) -> MIMEMultipart:
        msg = MIMEMultipart("mixed")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to
        msg.attach(MIMEText(html_body, "html"))
        if attachment is not None:
            part = MIMEApplication(attachment.content, _subtype=attachment.mime_subtype)
            part.add_header("Content-Disposition", "attachment", filename=attachment.filename)
            msg.attach(part)
        return msg

    async def send_one(
        self, to: str, subject: str, html_body: str, attachment: Attachment | None = None
    ) -> bool:
        if not self.host or not self.from_email:
            logger.warning("smtp_not_configured", to=to)
            return False

        message = self.build_message(to, subject, html_body, attachment)
        await aiosmtplib.send(
            message,
            hostname=self.host,
            port=self.port,
            username=self.username or None,
            password=self.password or None,
            start_tls=self.use_tls,
        )
        logger.info("email_sent", to=to, subject=subject)
        return True
