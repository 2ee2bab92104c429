"""Public URL resolution for stored objects."""

from typing import Optional


def resolve_resource_url(
    bucket: str, key: str, region: str, cdn_domain: Optional[str] = None
) -> str:
    """
    Build a publicly addressable URL for ``bucket``/``key``.

    With a CDN domain the key is joined onto it (leading slashes stripped);
    a domain given without a scheme is served over https. Otherwise the S3
    virtual-hosted URL for ``region`` is returned.
    """
    if cdn_domain:
        domain = cdn_domain.rstrip("/")
        if "://" not in domain:
            domain = f"https://{domain}"
        return f"{domain}/{key.lstrip('/')}"
    return f"https://{bucket}.s3.{region}.amazonaws.com/{key}"
