# store_config.py
import os
import configparser
from dataclasses import dataclass
from typing import List, Mapping, Optional

DEFAULT_REGION = "us-east-1"
DEFAULT_TIMEOUT = 30
DEFAULT_MAX_ATTEMPTS = 3


@dataclass
class StoreConfig:
    """
    Connection settings, fixed once when the store is created. consistent_read
    is the read consistency level for the export scan; max_attempts and the
    timeouts are the only retry policy there is.
    """

    profile: Optional[str] = None
    region: str = DEFAULT_REGION
    endpoint_url: Optional[str] = None
    consistent_read: bool = True
    timeout: float = DEFAULT_TIMEOUT
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "StoreConfig":
        """
        Defaults, then TABLEDUMP_PROFILE / TABLEDUMP_REGION / TABLEDUMP_ENDPOINT_URL,
        then any non-None keyword override (CLI flags).
        """
        env = os.environ if environ is None else environ
        config = cls(
            profile=env.get("TABLEDUMP_PROFILE") or None,
            region=env.get("TABLEDUMP_REGION") or DEFAULT_REGION,
            endpoint_url=env.get("TABLEDUMP_ENDPOINT_URL") or None,
        )
        for key, value in overrides.items():
            if not hasattr(config, key):
                raise TypeError(f"unknown setting: {key}")
            if value is not None:
                setattr(config, key, value)
        if config.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if config.timeout <= 0:
            raise ValueError("timeout must be positive")
        return config


def get_available_aws_profiles(home: Optional[str] = None) -> List[str]:
    """Retrieve available AWS profiles from ~/.aws/credentials and ~/.aws/config."""
    profiles = []
    base = home or os.path.expanduser("~")
    aws_credentials_path = os.path.join(base, ".aws", "credentials")
    aws_config_path = os.path.join(base, ".aws", "config")

    if os.path.exists(aws_credentials_path):
        config = configparser.ConfigParser()
        config.read(aws_credentials_path)
        profiles.extend(config.sections())

    if os.path.exists(aws_config_path):
        config = configparser.ConfigParser()
        config.read(aws_config_path)
        for section in config.sections():
            if section.startswith("profile "):
                profile_name = section.replace("profile ", "")
                if profile_name not in profiles:
                    profiles.append(profile_name)
            elif section == "default" and "default" not in profiles:
                profiles.append("default")

    return profiles if profiles else ["default"]
