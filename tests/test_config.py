"""Tests for ConfigManager profile storage."""

from unittest.mock import patch

import pytest
import yaml
from keyring.errors import KeyringError

from site_doctor.config import KEYRING_REF, ConfigManager, SiteProfile


@pytest.fixture
def mock_keyring():
    with patch("site_doctor.config.keyring") as kr:
        store = {}
        kr.set_password.side_effect = lambda service, user, value: store.__setitem__((service, user), value)
        kr.get_password.side_effect = lambda service, user: store.get((service, user))
        yield kr


def test_secrets_go_to_keyring(tmp_path, mock_keyring):
    mgr = ConfigManager(config_dir=tmp_path)
    mgr.add_profile(SiteProfile(name="blog", domain="blog.example.com", api_key="AIza-secret"))

    on_disk = yaml.safe_load((tmp_path / "profiles.yaml").read_text())
    assert on_disk["blog"]["api_key"] == KEYRING_REF
    assert "AIza-secret" not in (tmp_path / "profiles.yaml").read_text()
    mock_keyring.set_password.assert_called_once_with("site-doctor", "blog:api_key", "AIza-secret")

    loaded = mgr.get_profile("blog")
    assert loaded.api_key == "AIza-secret"
    assert loaded.domain == "blog.example.com"
    assert loaded.short_cache_patterns == ["*.html", "sitemap.xml", "robots.txt"]


def test_keyring_failure_falls_back_to_plain_text(tmp_path, mock_keyring):
    mock_keyring.set_password.side_effect = KeyringError("no backend")
    mgr = ConfigManager(config_dir=tmp_path)
    mgr.add_profile(SiteProfile(name="blog", domain="blog.example.com", smtp_password="hunter2"))

    on_disk = yaml.safe_load((tmp_path / "profiles.yaml").read_text())
    assert on_disk["blog"]["smtp_password"] == "hunter2"


def test_config_dir_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("SITE_DOCTOR_CONFIG", str(tmp_path / "cfg"))
    mgr = ConfigManager()
    assert mgr.profiles_file == (tmp_path / "cfg" / "profiles.yaml").resolve()
    assert mgr.profiles_file.exists()


def test_unknown_keys_are_ignored(tmp_path, mock_keyring):
    (tmp_path / "profiles.yaml").write_text("blog:\n  domain: blog.example.com\n  colour: blue\n")
    profile = ConfigManager(config_dir=tmp_path).get_profile("blog")
    assert profile.domain == "blog.example.com"
    assert not hasattr(profile, "colour")


def test_remove_profile(tmp_path, mock_keyring):
    mgr = ConfigManager(config_dir=tmp_path)
    mgr.add_profile(SiteProfile(name="blog", domain="blog.example.com", api_key="k"))

    assert mgr.remove_profile("blog") is True
    mock_keyring.delete_password.assert_called_once_with("site-doctor", "blog:api_key")
    assert mgr.get_profile("blog") is None
    assert mgr.remove_profile("blog") is False


def test_readding_without_secret_clears_keyring_entry(tmp_path, mock_keyring):
    mgr = ConfigManager(config_dir=tmp_path)
    mgr.add_profile(SiteProfile(name="blog", domain="blog.example.com", api_key="k"))
    mgr.add_profile(SiteProfile(name="blog", domain="blog.example.com"))

    mock_keyring.delete_password.assert_called_once_with("site-doctor", "blog:api_key")
    on_disk = yaml.safe_load((tmp_path / "profiles.yaml").read_text())
    assert on_disk["blog"]["api_key"] is None


def test_readding_with_secret_keeps_keyring_entry(tmp_path, mock_keyring):
    mgr = ConfigManager(config_dir=tmp_path)
    mgr.add_profile(SiteProfile(name="blog", domain="blog.example.com", api_key="old"))
    mgr.add_profile(SiteProfile(name="blog", domain="blog.example.com", api_key="new"))

    mock_keyring.delete_password.assert_not_called()
    assert mgr.get_profile("blog").api_key == "new"


def test_threshold_is_validated():
    with pytest.raises(ValueError):
        SiteProfile(name="x", domain="x.example.com", threshold=101)


def test_missing_fields():
    profile = SiteProfile(name="x", domain="x.example.com", bucket="b")
    assert profile.missing("bucket", "distribution_id", "site_dir") == ["distribution_id", "site_dir"]
