"""Shared test fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from notifyhub.audit.service import SqlAuditLog
from notifyhub.channels.registry import ChannelRegistry
from notifyhub.channels.senders import default_senders
from notifyhub.database.base import Base
from notifyhub.dispatch.dispatcher import NotificationDispatcher
from notifyhub.dispatch.limiter import FixedWindowRateLimiter
from notifyhub.dispatch.retry import RetryPolicy
from notifyhub.templates.models import NotificationTemplate
from notifyhub.templates.resolver import TemplateResolver
from notifyhub.templates.service import SqlTemplateStore

from helpers import FakeClock, RecordingSleep


@pytest.fixture
def db_engine():
    """In-memory SQLite database shared by every session in the test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded_templates(db_session):
    """Demo templates plus one inactive row."""
    templates = [
        NotificationTemplate(channel="email", template_code="welcome", locale="en",
                             subject_template="Welcome {{ name }}!", body_template="Hello {{ name }}, welcome aboard."),
        NotificationTemplate(channel="email", template_code="welcome", locale="es",
                             subject_template="Bienvenido {{ name }}!", body_template="Hola {{ name }}."),
        NotificationTemplate(channel="sms", template_code="welcome", locale="en",
                             body_template="Welcome {{ name }}!"),
        NotificationTemplate(channel="push", template_code="welcome", locale="en",
                             subject_template="Welcome!", body_template="Welcome to NotifyHub, {{ name }}!"),
        NotificationTemplate(channel="email", template_code="legacy", locale="en",
                             body_template="Old body", active=False),
    ]
    db_session.add_all(templates)
    db_session.commit()
    return templates


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return FixedWindowRateLimiter({}, default_limit=50, window_seconds=60, clock=clock)


@pytest.fixture
def retry_policy(clock):
    return RetryPolicy(max_attempts=3, initial_delay=0.1, max_delay=1.0, sleep=RecordingSleep(clock), clock=clock)


@pytest.fixture
def dispatcher(session_factory, seeded_templates, limiter, retry_policy, clock):
    return NotificationDispatcher(
        registry=ChannelRegistry(default_senders()),
        resolver=TemplateResolver(SqlTemplateStore(session_factory)),
        limiter=limiter,
        retry_policy=retry_policy,
        audit_log=SqlAuditLog(session_factory),
        default_channel="email",
        clock=clock,
    )
