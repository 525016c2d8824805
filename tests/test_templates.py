"""Tests for the template store, resolver, and rendering."""

import time

import pytest
from sqlalchemy.exc import IntegrityError

from notifyhub.exceptions import TemplateNotFoundError, TemplateRenderError
from notifyhub.templates.models import NotificationTemplate
from notifyhub.templates.resolver import TemplateResolver
from notifyhub.templates.service import (
    SqlTemplateStore,
    create_template,
    deactivate_template,
    find_active_by_channel,
    find_all_by_code,
    find_by_code_and_locale,
    find_template,
    update_template,
)


class TestTemplateStore:
    def test_find_template_exact_key(self, db_session, seeded_templates):
        template = find_template(db_session, "email", "welcome", "es")
        assert template is not None
        assert template.locale == "es"
        assert template.channel == "email"

    def test_find_template_excludes_inactive(self, db_session, seeded_templates):
        assert find_template(db_session, "email", "legacy", "en") is None

    def test_find_active_by_channel(self, db_session, seeded_templates):
        templates = find_active_by_channel(db_session, "email")
        assert {(t.template_code, t.locale) for t in templates} == {("welcome", "en"), ("welcome", "es")}
        assert all(t.active for t in templates)

    def test_find_by_code_and_locale_ignores_channel(self, db_session, seeded_templates):
        template = find_by_code_and_locale(db_session, "welcome", "en")
        assert template is not None
        assert template.template_code == "welcome"
        assert find_by_code_and_locale(db_session, "legacy", "en") is None

    def test_find_all_by_code_includes_every_locale(self, db_session, seeded_templates):
        email_welcome = [t for t in find_all_by_code(db_session, "welcome") if t.channel == "email"]
        assert sorted(t.locale for t in email_welcome) == ["en", "es"]
        assert len(find_all_by_code(db_session, "legacy")) == 1

    def test_unique_key_enforced(self, db_session, seeded_templates):
        with pytest.raises(IntegrityError):
            create_template(db_session, "email", "welcome", "Different body", locale="en")

    def test_create_normalizes_channel(self, db_session):
        template = create_template(db_session, " SMS ", "otp", "Code: {{ code }}")
        db_session.commit()
        assert template.channel == "sms"
        assert template.active is True
        assert template.locale == "en"

    def test_update_refreshes_updated_at(self, db_session):
        template = create_template(db_session, "push", "ping", "Ping")
        db_session.commit()
        before = template.updated_at
        time.sleep(0.01)
        updated = update_template(db_session, template.id, body_template="Pong")
        db_session.commit()
        assert updated.body_template == "Pong"
        assert updated.updated_at > before

    def test_update_missing_returns_none(self, db_session):
        assert update_template(db_session, 9999, body_template="x") is None

    def test_deactivate_is_soft(self, db_session, seeded_templates):
        template = find_template(db_session, "sms", "welcome", "en")
        assert deactivate_template(db_session, template.id) is True
        db_session.commit()
        assert find_template(db_session, "sms", "welcome", "en") is None
        assert db_session.query(NotificationTemplate).filter_by(id=template.id).one().active is False

    def test_deactivate_missing(self, db_session):
        assert deactivate_template(db_session, 9999) is False

    def test_sql_store_uses_its_own_sessions(self, session_factory, seeded_templates):
        store = SqlTemplateStore(session_factory)
        template = store.find_template("push", "welcome", "en")
        assert template.body_template.startswith("Welcome to NotifyHub")
        assert [t.template_code for t in store.find_active_by_channel("push")] == ["welcome"]


class TestTemplateResolver:
    def test_exact_locale_wins(self, session_factory, seeded_templates):
        resolver = TemplateResolver(SqlTemplateStore(session_factory))
        assert resolver.resolve("welcome", "es", "email").locale == "es"

    def test_falls_back_to_english(self, session_factory, seeded_templates):
        resolver = TemplateResolver(SqlTemplateStore(session_factory))
        template = resolver.resolve("welcome", "fr", "email")
        assert template.locale == "en"
        assert template.channel == "email"

    def test_english_only_template_serves_other_locales(self, session_factory, seeded_templates):
        resolver = TemplateResolver(SqlTemplateStore(session_factory))
        assert resolver.resolve("welcome", "fr", "sms").locale == "en"

    def test_inactive_english_template_is_not_found(self, session_factory, seeded_templates):
        resolver = TemplateResolver(SqlTemplateStore(session_factory))
        with pytest.raises(TemplateNotFoundError):
            resolver.resolve("legacy", "en", "email")

    def test_missing_everywhere(self, session_factory, seeded_templates):
        resolver = TemplateResolver(SqlTemplateStore(session_factory))
        with pytest.raises(TemplateNotFoundError) as exc_info:
            resolver.resolve("nope", "de", "push")
        assert exc_info.value.locale == "de"

    def test_no_fallback_chain_beyond_english(self, session_factory, db_session):
        create_template(db_session, "email", "promo", "Promo pt", locale="pt")
        db_session.commit()
        resolver = TemplateResolver(SqlTemplateStore(session_factory))
        with pytest.raises(TemplateNotFoundError):
            resolver.resolve("promo", "pt-BR", "email")

    def test_english_lookup_happens_once(self):
        calls = []

        class _Store:
            def find_template(self, channel, code, locale):
                calls.append(locale)
                return None

            def find_active_by_channel(self, channel):
                return []

        with pytest.raises(TemplateNotFoundError):
            TemplateResolver(_Store()).resolve("welcome", "en", "email")
        assert calls == ["en"]


class TestRendering:
    def test_renders_subject_and_body(self, session_factory, seeded_templates):
        resolver = TemplateResolver(SqlTemplateStore(session_factory))
        template = resolver.resolve("welcome", "en", "email")
        message = resolver.render(template, {"name": "Ada"})
        assert message.subject == "Welcome Ada!"
        assert message.body == "Hello Ada, welcome aboard."

    def test_missing_variables_render_empty(self, session_factory, seeded_templates):
        resolver = TemplateResolver(SqlTemplateStore(session_factory))
        message = resolver.render(resolver.resolve("welcome", "en", "sms"), {})
        assert message.subject is None
        assert message.body == "Welcome !"

    def test_syntax_error_raises_render_error(self):
        template = NotificationTemplate(channel="email", template_code="broken", locale="en",
                                        body_template="Hello {{ name ")
        with pytest.raises(TemplateRenderError, match="broken"):
            TemplateResolver(store=None).render(template, {"name": "x"})

    def test_sandbox_blocks_unsafe_attribute_access(self):
        template = NotificationTemplate(channel="email", template_code="evil", locale="en",
                                        body_template="{{ name.__class__.__mro__ }}")
        with pytest.raises(TemplateRenderError):
            TemplateResolver(store=None).render(template, {"name": "x"})
