"""Report Artifact Renderer: one-page PDF for an approved report.

Rendering reads only the report record passed in, so the same report always
produces the same bytes and can be regenerated on demand.
"""

from __future__ import annotations

import io
import textwrap
from typing import Any

from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from cyberpulse.schemas.metrics import SecurityMetrics
from cyberpulse.services.risk import risk_color_rgb, risk_level

PAGE_WIDTH, PAGE_HEIGHT = letter  # 612 x 792 pt

COMMENT_WRAP_CHARS = 80
NO_COMMENTS = "No analyst comments provided."

CATEGORIES = [
    ("Identity Risk", "identity_risk_score"),
    ("Training Risk", "training_risk_score"),
    ("Device Risk", "device_risk_score"),
    ("Cloud Risk", "cloud_risk_score"),
    ("Threat Risk", "threat_risk_score"),
]

GAUGE_CENTER = (350, 600)
GAUGE_RADIUS = 40


def wrap_comments(text: str | None, width: int = COMMENT_WRAP_CHARS) -> list[str]:
    """Word-wrap analyst comments; empty comments get a placeholder line."""
    text = (text or "").strip()
    if not text:
        return [NO_COMMENTS]
    return textwrap.wrap(text, width=width, break_long_words=False) or [NO_COMMENTS]


def _draw_gauge(pdf: canvas.Canvas, score: int) -> None:
    cx, cy = GAUGE_CENTER
    box = (cx - GAUGE_RADIUS, cy - GAUGE_RADIUS, cx + GAUGE_RADIUS, cy + GAUGE_RADIUS)

    pdf.setLineWidth(8)
    pdf.setStrokeColorRGB(0.85, 0.85, 0.85)
    pdf.arc(*box, startAng=180, extent=-180)

    if score > 0:
        pdf.setStrokeColorRGB(*risk_color_rgb(score))
        pdf.arc(*box, startAng=180, extent=-180 * min(score, 100) / 100)

    pdf.setFillColorRGB(*risk_color_rgb(score))
    pdf.setFont("Helvetica-Bold", 18)
    pdf.drawCentredString(cx, cy - 5, f"{score}%")
    pdf.setFont("Helvetica-Bold", 14)
    pdf.drawCentredString(cx, cy - 25, risk_level(score))
    pdf.setFillColorRGB(0, 0, 0)
    pdf.setLineWidth(1)


def render_report_pdf(report: dict[str, Any], tenant_name: str) -> bytes:
    """Render a report record to PDF bytes."""
    metrics = SecurityMetrics.model_validate(report.get("security_data") or {})
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=letter, invariant=1)
    pdf.setTitle(report["title"])
    pdf.setAuthor("CyberPulse")
    pdf.setSubject(f"{tenant_name} - Q{report['quarter']} {report['year']}")

    pdf.setFont("Helvetica-Bold", 24)
    pdf.drawString(50, 750, "Executive Cyber Risk Report")
    pdf.setFont("Helvetica", 16)
    pdf.drawString(50, 720, f"{tenant_name} - Q{report['quarter']} {report['year']}")
    pdf.setFont("Helvetica", 10)
    pdf.drawString(
        50, 702, f"{report['start_date'].isoformat()} to {report['end_date'].isoformat()}"
    )

    pdf.setFont("Helvetica-Bold", 16)
    pdf.drawString(280, 660, "Overall Risk Level")
    _draw_gauge(pdf, report["overall_risk_score"])

    pdf.setFont("Helvetica-Bold", 16)
    pdf.drawString(50, 520, "Security Risk Categories")
    y = 490
    for label, field in CATEGORIES:
        score = report[field]
        pdf.setFont("Helvetica", 12)
        pdf.setFillColorRGB(0, 0, 0)
        pdf.drawString(50, y, label)
        pdf.setFont("Helvetica-Bold", 12)
        pdf.setFillColorRGB(*risk_color_rgb(score))
        pdf.drawString(250, y, f"{score}%")
        pdf.drawString(300, y, risk_level(score))
        y -= 30
    pdf.setFillColorRGB(0, 0, 0)

    threats = metrics.threat_metrics
    pdf.setFont("Helvetica-Bold", 16)
    pdf.drawString(50, 330, "Detected Threats")
    pdf.setFont("Helvetica", 12)
    pdf.drawString(50, 305, f"Identity Threats: {threats.identity_threats}")
    pdf.drawString(50, 287, f"Device Threats: {threats.device_threats}")
    pdf.drawString(50, 269, f"Other Threats: {threats.other_threats}")
    pdf.setFont("Helvetica-Bold", 12)
    pdf.drawString(50, 251, f"Total Threats: {threats.total_threats}")

    pdf.setFont("Helvetica-Bold", 16)
    pdf.drawString(50, 215, "Analyst Comments")
    pdf.setFont("Helvetica", 10)
    y = 190
    for line in wrap_comments(report.get("analyst_comments")):
        if y < 40:
            break
        pdf.drawString(50, y, line)
        y -= 15

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
