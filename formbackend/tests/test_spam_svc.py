"""Test honeypot spam classification."""

from __future__ import annotations

import pytest

from formbackend.services.spam_svc import classify, resolve_honeypot_field


def test_filled_honeypot_is_spam():
    assert classify("_website", {"name": "Bot", "_website": "x"}).is_spam is True


def test_missing_honeypot_is_not_spam():
    assert classify("_website", {"name": "John"}).is_spam is False


@pytest.mark.parametrize("value", ["", "   ", "\t\n", None])
def test_blank_honeypot_is_not_spam(value):
    assert classify("_website", {"name": "John", "_website": value}).is_spam is False


def test_only_configured_field_is_checked():
    fields = {"_website": "spam.example", "hp": ""}
    assert classify("hp", fields).is_spam is False
    assert classify("_website", fields).is_spam is True


@pytest.mark.parametrize("value", [0, False, []])
def test_falsy_non_string_values_are_not_spam(value):
    assert classify("trap", {"trap": value}).is_spam is False


def test_truthy_non_string_values_are_stringified():
    assert classify("trap", {"trap": 1}).is_spam is True
    assert classify("trap", {"trap": True}).is_spam is True
    assert classify("trap", {"trap": ["a"]}).is_spam is True


def test_blank_field_name_falls_back_to_default():
    assert classify("", {"_website": "filled"}).is_spam is True
    assert resolve_honeypot_field("  ") == "_website"
    assert resolve_honeypot_field(None, default="hp") == "hp"
    assert resolve_honeypot_field(" company_url ") == "company_url"
