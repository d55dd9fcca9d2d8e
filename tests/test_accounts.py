"""Tests for onebox.accounts: cipher, account store and settings store."""

from __future__ import annotations

import json

import pytest

from onebox.accounts import AccountStore, PasswordCipher, SettingsStore
from onebox.models import IntegrationSettings


@pytest.fixture
def cipher() -> PasswordCipher:
    return PasswordCipher("test-secret")


@pytest.fixture
def store(tmp_path, cipher: PasswordCipher) -> AccountStore:
    return AccountStore(tmp_path / "accounts.json", cipher)


class TestPasswordCipher:
    @pytest.mark.parametrize("plaintext", ["hunter2", "", "a:b:c", "pässwörd 🔑"])
    def test_round_trip(self, cipher: PasswordCipher, plaintext: str):
        token = cipher.encrypt(plaintext)
        assert token != plaintext
        assert cipher.decrypt(token) == plaintext

    def test_tokens_are_randomized(self, cipher: PasswordCipher):
        assert cipher.encrypt("same") != cipher.encrypt("same")

    def test_wrong_key_rejected(self, cipher: PasswordCipher):
        token = cipher.encrypt("hunter2")
        with pytest.raises(ValueError):
            PasswordCipher("other-secret").decrypt(token)

    def test_garbage_rejected(self, cipher: PasswordCipher):
        with pytest.raises(ValueError):
            cipher.decrypt("not-a-token")


class TestAccountStore:
    def test_empty_when_file_missing(self, store: AccountStore):
        assert store.list_all() == []
        assert store.get("missing") is None

    def test_create_encrypts_password(self, store: AccountStore, tmp_path):
        account = store.create(email="user@test.com", password="hunter2", host="imap.test.com", port=993)

        assert account.id
        assert account.password != "hunter2"
        assert store.decrypt_password(account).get_secret_value() == "hunter2"
        raw = (tmp_path / "accounts.json").read_text(encoding="utf-8")
        assert "hunter2" not in raw

    def test_file_uses_camel_case(self, store: AccountStore, tmp_path):
        store.create(email="user@test.com", password="pw", host="imap.test.com", port=143, tls=False)
        data = json.loads((tmp_path / "accounts.json").read_text(encoding="utf-8"))
        assert set(data[0]) == {"id", "email", "password", "host", "port", "tls"}
        assert data[0]["tls"] is False

    def test_ids_are_unique(self, store: AccountStore):
        a = store.create(email="a@test.com", password="pw", host="h", port=993)
        b = store.create(email="b@test.com", password="pw", host="h", port=993)
        assert a.id != b.id
        assert [acc.id for acc in store.list_all()] == [a.id, b.id]

    def test_get(self, store: AccountStore):
        account = store.create(email="a@test.com", password="pw", host="h", port=993)
        assert store.get(account.id) == account

    def test_delete(self, store: AccountStore):
        account = store.create(email="a@test.com", password="pw", host="h", port=993)
        assert store.delete(account.id) is True
        assert store.delete(account.id) is False
        assert store.list_all() == []

    def test_public_form_omits_password(self, store: AccountStore):
        account = store.create(email="a@test.com", password="pw", host="h", port=993)
        assert "password" not in account.public()
        assert account.public()["email"] == "a@test.com"


class TestSettingsStore:
    def test_defaults_when_missing(self, tmp_path):
        assert SettingsStore(tmp_path / "settings.json").get() == IntegrationSettings()

    def test_corrupt_file_yields_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")
        assert SettingsStore(path).get() == IntegrationSettings()

    def test_partial_update_merges(self, tmp_path):
        store = SettingsStore(tmp_path / "settings.json")
        store.update({"slackWebhookUrl": "https://slack.test/a"})
        merged = store.update({"externalWebhookUrl": "https://hook.test/b"})

        assert merged.slack_webhook_url == "https://slack.test/a"
        assert merged.external_webhook_url == "https://hook.test/b"
        assert store.get() == merged

    def test_explicit_null_clears_key(self, tmp_path):
        store = SettingsStore(tmp_path / "settings.json")
        store.update({"slackWebhookUrl": "https://slack.test/a"})
        cleared = store.update({"slackWebhookUrl": None})
        assert cleared.slack_webhook_url is None

    def test_file_format(self, tmp_path):
        path = tmp_path / "settings.json"
        SettingsStore(path).update({"slackWebhookUrl": "https://slack.test/a"})
        assert json.loads(path.read_text(encoding="utf-8")) == {"slackWebhookUrl": "https://slack.test/a"}
