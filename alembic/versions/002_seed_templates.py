"""Seed demo notification templates.

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_templates = sa.table(
    "notification_templates",
    sa.column("channel", sa.String),
    sa.column("template_code", sa.String),
    sa.column("subject_template", sa.String),
    sa.column("body_template", sa.Text),
    sa.column("locale", sa.String),
    sa.column("active", sa.Boolean),
)

SEED = [
    ("email", "welcome", "Welcome to NotifyHub!",
     "Hello {{ name }}, welcome to NotifyHub! We are excited to have you on board.", "en"),
    ("email", "welcome", "Bienvenido a NotifyHub!",
     "Hola {{ name }}, bienvenido a NotifyHub! Estamos emocionados de tenerte con nosotros.", "es"),
    ("email", "password-reset", "Password Reset Request",
     "Hello {{ name }}, you requested a password reset. Click here: {{ resetLink }}", "en"),
    ("sms", "welcome", None, "Welcome {{ name }}! Thanks for joining NotifyHub.", "en"),
    ("sms", "verification-code", None, "Your verification code is: {{ code }}", "en"),
    ("push", "welcome", "Welcome!", "Welcome to NotifyHub, {{ name }}!", "en"),
    ("push", "new-message", "New Message", "You have a new message from {{ sender }}", "en"),
]


def upgrade() -> None:
    op.bulk_insert(
        _templates,
        [
            {
                "channel": channel,
                "template_code": code,
                "subject_template": subject,
                "body_template": body,
                "locale": locale,
                "active": True,
            }
            for channel, code, subject, body, locale in SEED
        ],
    )


def downgrade() -> None:
    for channel, code, _subject, _body, locale in SEED:
        op.execute(
            _templates.delete().where(
                sa.and_(
                    _templates.c.channel == channel,
                    _templates.c.template_code == code,
                    _templates.c.locale == locale,
                )
            )
        )
