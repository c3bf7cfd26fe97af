"""Tests for configuration loading."""

import json

import pytest

from osp_client.config import DEFAULT_AUTH_URL, DEFAULT_REDIRECT_URI, Config
from osp_client.errors import ConfigError


class TestConfig:
    """Tests for Config."""

    def test_defaults(self):
        config = Config()

        assert config.auth_host == DEFAULT_AUTH_URL
        assert config.redirect_uri == DEFAULT_REDIRECT_URI
        assert config.notification_base_url == DEFAULT_AUTH_URL
        assert config.refresh_token_policy == "drop"
        assert config.request_timeout is None

    def test_load_missing_file(self, tmp_path):
        config = Config.load(tmp_path / "missing.json", environ={})

        assert config.client_id is None
        assert config.auth_host == DEFAULT_AUTH_URL

    def test_load_file_ignores_unknown_keys(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"client_id": "abc", "legacy_field": 1}))

        config = Config.load(path, environ={})

        assert config.client_id == "abc"

    def test_load_invalid_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{broken")

        config = Config.load(path, environ={})

        assert config.client_id is None

    def test_load_non_object_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps(["client_id", "abc"]))

        config = Config.load(path, environ={})

        assert config.client_id is None
        assert config.auth_host == DEFAULT_AUTH_URL

    def test_environment_overrides_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"client_id": "from-file", "auth_host": "http://file"}))

        config = Config.load(
            path,
            environ={
                "OSP_CLIENT_ID": "from-env",
                "OSP_CLIENT_SECRET": "s3cret",
                "OSP_NOTIFICATION_SERVICE_URL": "http://notify",
            },
        )

        assert config.client_id == "from-env"
        assert config.client_secret == "s3cret"
        assert config.auth_host == "http://file"
        assert config.notification_base_url == "http://notify"

    def test_save_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "config.json"
        Config(client_id="abc", refresh_token_policy="retain").save(path)

        config = Config.load(path, environ={})

        assert config.client_id == "abc"
        assert config.refresh_token_policy == "retain"

    def test_validate_requires_client_id(self):
        with pytest.raises(ConfigError, match="client id"):
            Config().validate()

    def test_validate_requires_auth_host(self):
        with pytest.raises(ConfigError, match="auth host"):
            Config(client_id="abc", auth_host="").validate()

    def test_validate_rejects_unknown_policy(self):
        with pytest.raises(ConfigError, match="policy"):
            Config(client_id="abc", refresh_token_policy="sometimes").validate()

    def test_discovery(self):
        doc = Config(auth_host="http://localhost:3020").discovery()

        assert doc.token_endpoint == "http://localhost:3020/auth/token"
