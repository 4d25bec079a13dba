"""site-doctor: audit and deploy static sites behind S3 + CloudFront."""

__version__ = "0.3.0"
