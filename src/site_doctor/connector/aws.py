"""AWS Connector - boto3 clients for S3, CloudFront and SNS."""

from dataclasses import dataclass

import boto3


@dataclass
class AWSConfig:
    """AWS connection settings.

    Credentials are not stored here; boto3 resolves them from its default
    chain (environment, shared credentials file, instance role).
    """

    region: str = "us-east-1"
    profile_name: str | None = None


class AWSConnector:
    """Lazily creates and caches boto3 clients."""

    def __init__(self, config: AWSConfig | None = None) -> None:
        self.config = config or AWSConfig()
        self._session: boto3.session.Session | None = None
        self._clients: dict[str, object] = {}

    @property
    def session(self) -> boto3.session.Session:
        if self._session is None:
            self._session = boto3.session.Session(
                profile_name=self.config.profile_name,
                region_name=self.config.region,
            )
        return self._session

    def client(self, service: str):
        """Get (or create) a client for an AWS service."""
        if service not in self._clients:
            self._clients[service] = self.session.client(service)
        return self._clients[service]

    @property
    def s3(self):
        return self.client("s3")

    @property
    def cloudfront(self):
        return self.client("cloudfront")

    @property
    def sns(self):
        return self.client("sns")
