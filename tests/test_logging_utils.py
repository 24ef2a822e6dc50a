"""Tests for secret masking."""

import logging

from workflow_transfer.logging_utils import SecretMaskingFilter, mask_secret, mask_secrets, mask_url


def test_mask_secret():
    assert mask_secret("abcdef") == "***def"
    assert mask_secret("ab") == "***"
    assert mask_secret("") == ""


def test_mask_secrets_in_text():
    text = mask_secrets('X-N8N-API-KEY: abc123xyz and {"password": "hunter22"}')
    assert "abc123xyz" not in text
    assert "hunter22" not in text
    assert "***xyz" in text


def test_bearer_and_prefixed_keys():
    assert "eyJhbGciOi" not in mask_secrets("Authorization: Bearer eyJhbGciOi.payload")
    assert "n8n_api_0123456789" not in mask_secrets("using n8n_api_0123456789")


def test_record_ids_untouched():
    text = "record 3f2a9c1e-8d4b-4c6a-9f1e-2b7d5a0c9e11 transferred"
    assert mask_secrets(text) == text


def test_mask_url():
    url = mask_url("https://user:pw@n8n.example.com:8443/path?apikey=supersecret&x=1")
    assert url == "https://n8n.example.com:8443/path?apikey=%2A%2A%2Aret&x=1"


def test_filter_rewrites_record():
    record = logging.LogRecord("t", logging.INFO, __file__, 1, "token=%s", ("abcdef",), None)
    assert SecretMaskingFilter().filter(record)
    assert record.getMessage() == "token=***def"
