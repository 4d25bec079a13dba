"""Scanner package - Data collection from external endpoints.

Scanners issue one query each and keep the raw response.
They do NOT analyze or reason - that's the checks' job.
"""

from site_doctor.scanner.certificate import CertificateScanner
from site_doctor.scanner.headers import HeaderScanner
from site_doctor.scanner.pagespeed import PageSpeedScanner

__all__ = [
    "CertificateScanner",
    "HeaderScanner",
    "PageSpeedScanner",
]
