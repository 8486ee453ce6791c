"""Audit metadata must never carry free text or secrets."""

import uuid

from tutorcenter.api.v1.audit.service import sanitize_metadata


def test_message_content_dropped_but_length_kept() -> None:
    cleaned = sanitize_metadata({"message": "my child has flu", "messageLength": 16, "reasonCode": "ILLNESS"})
    assert cleaned == {"messageLength": 16, "reasonCode": "ILLNESS"}


def test_secret_like_keys_dropped() -> None:
    cleaned = sanitize_metadata({"accessCode": "1234", "token": "abc", "passwordHash": "x", "toStatus": "APPROVED"})
    assert cleaned == {"toStatus": "APPROVED"}


def test_long_strings_replaced_by_length() -> None:
    cleaned = sanitize_metadata({"note": "x" * 250})
    assert cleaned == {"note": {"length": 250}}


def test_uuid_values_stringified_and_depth_bounded() -> None:
    sid = uuid.uuid4()
    cleaned = sanitize_metadata({"sessionId": sid, "a": {"b": {"c": {"d": 1}}}})
    assert cleaned["sessionId"] == str(sid)
    assert cleaned["a"] == {"b": {"c": {}}}


def test_empty_metadata_is_none() -> None:
    assert sanitize_metadata(None) is None
    assert sanitize_metadata({}) is None
