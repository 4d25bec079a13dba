"""Configuration management for site-doctor site profiles."""

import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import keyring
import yaml
from keyring.errors import KeyringError

from site_doctor.engine.threshold import DEFAULT_THRESHOLD

logger = logging.getLogger(__name__)

KEYRING_REF = "__keyring__"
SECRET_FIELDS = ("api_key", "smtp_password")

DEFAULT_LONG_CACHE = "public, max-age=31536000, immutable"
DEFAULT_SHORT_CACHE = "public, max-age=0, must-revalidate"
DEFAULT_SHORT_PATTERNS = ["*.html", "sitemap.xml", "robots.txt"]


@dataclass
class SiteProfile:
    """Everything needed to audit and deploy one site."""

    name: str
    domain: str
    bucket: str | None = None
    distribution_id: str | None = None
    region: str = "us-east-1"
    aws_profile: str | None = None
    site_dir: str | None = None
    report_dir: str | None = None
    threshold: int = DEFAULT_THRESHOLD
    strategy: str = "mobile"
    category: str = "performance"
    timeout: int = 30
    api_key: str | None = None
    notify_email: str | None = None
    notify_from: str | None = None
    smtp_host: str = "localhost"
    smtp_port: int = 25
    smtp_user: str | None = None
    smtp_password: str | None = None
    smtp_starttls: bool = False
    sns_topic_arn: str | None = None
    long_cache_control: str = DEFAULT_LONG_CACHE
    short_cache_control: str = DEFAULT_SHORT_CACHE
    short_cache_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_SHORT_PATTERNS))

    def __post_init__(self) -> None:
        if not 0 <= int(self.threshold) <= 100:
            raise ValueError("threshold must be between 0 and 100")
        self.threshold = int(self.threshold)

    def missing(self, *names: str) -> list[str]:
        """Names of required fields that are empty."""
        return [n for n in names if not getattr(self, n, None)]


class ConfigManager:
    """Manages site profiles stored in YAML format with secure keyring for secrets."""

    def __init__(self, config_dir: Path | None = None) -> None:
        if config_dir is None:
            env_config = os.getenv("SITE_DOCTOR_CONFIG")
            if env_config:
                config_dir = Path(env_config).expanduser().resolve()
            else:
                config_dir = Path.home() / ".site-doctor"

        self.config_dir = config_dir
        self.profiles_file = config_dir / "profiles.yaml"
        self.service_id = "site-doctor"
        self._ensure_config_dir()

    def _ensure_config_dir(self) -> None:
        """Create config directory if it doesn't exist."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        if not self.profiles_file.exists():
            self._save_profiles({})

    def _load_profiles(self) -> dict[str, Any]:
        """Load all profiles from the YAML file."""
        if not self.profiles_file.exists():
            return {}

        try:
            with open(self.profiles_file, "r") as f:
                return yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error("Cannot parse %s: %s", self.profiles_file, e)
            return {}

    def _save_profiles(self, profiles: dict[str, Any]) -> None:
        """Save profiles to the YAML file with proper permissions."""
        self.profiles_file.touch(mode=0o600)
        with open(self.profiles_file, "w") as f:
            yaml.safe_dump(profiles, f, sort_keys=True)

    def default_report_dir(self, name: str) -> Path:
        return self.config_dir / "reports" / name

    def add_profile(self, profile: SiteProfile) -> None:
        """Add or update a site profile."""
        profiles = self._load_profiles()
        previous = profiles.get(profile.name) or {}
        data = asdict(profile)
        data.pop("name")

        for secret in SECRET_FIELDS:
            value = data.get(secret)
            if value:
                try:
                    keyring.set_password(self.service_id, f"{profile.name}:{secret}", value)
                    data[secret] = KEYRING_REF
                except KeyringError as e:
                    # Headless machines often have no keyring backend.
                    logger.warning("keyring unavailable, storing %s in plain text: %s", secret, e)
            if data.get(secret) != KEYRING_REF and previous.get(secret) == KEYRING_REF:
                self._delete_secret(profile.name, secret)

        profiles[profile.name] = data
        self._save_profiles(profiles)

    def get_profile(self, name: str) -> SiteProfile | None:
        """Get a SiteProfile by name."""
        data = self._load_profiles().get(name)
        if not data:
            return None

        data = dict(data)
        for secret in SECRET_FIELDS:
            if data.get(secret) == KEYRING_REF:
                try:
                    data[secret] = keyring.get_password(self.service_id, f"{name}:{secret}")
                except KeyringError as e:
                    logger.warning("cannot read %s from keyring: %s", secret, e)
                    data[secret] = None

        known = {f.name for f in fields(SiteProfile)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("ignoring unknown keys in profile %s: %s", name, ", ".join(unknown))
        return SiteProfile(name=name, **{k: v for k, v in data.items() if k in known and k != "name"})

    def list_profiles(self) -> dict[str, Any]:
        """List all available profiles."""
        return self._load_profiles()

    def remove_profile(self, name: str) -> bool:
        """Remove a site profile."""
        profiles = self._load_profiles()
        if name not in profiles:
            return False

        for secret in SECRET_FIELDS:
            if profiles[name].get(secret) == KEYRING_REF:
                self._delete_secret(name, secret)

        del profiles[name]
        self._save_profiles(profiles)
        return True

    def _delete_secret(self, name: str, secret: str) -> None:
        try:
            keyring.delete_password(self.service_id, f"{name}:{secret}")
        except KeyringError as e:
            logger.warning("cannot delete %s from keyring: %s", secret, e)
