from __future__ import annotations

from typing import Optional

from scubacheck.http_client import SourceUnavailable
from scubacheck.models import IPInfo
from scubacheck.osint.base import OsintProvider


class IpApiProvider(OsintProvider):
    """Geolocation for an IPv4 address (ipapi.co JSON)."""
    name = "ipapi"
    label = "ipapi.co"

    def fetch(self, key: str) -> IPInfo:
        data = self.http.get_json(self.config["ipapi_url"].format(ip=key))
        if not isinstance(data, dict):
            raise SourceUnavailable(f"unexpected geolocation payload for {key}")
        if data.get("error"):
            raise SourceUnavailable(f"geolocation error for {key}: {data.get('reason', 'unknown')}")

        return IPInfo(
            country=data.get("country_name"),
            country_code=data.get("country_code"),
            region=data.get("region_code"),
            region_name=data.get("region"),
            city=data.get("city"),
            zip=data.get("postal"),
            lat=data.get("latitude"),
            lon=data.get("longitude"),
            timezone=data.get("timezone"),
            isp=data.get("org"),
            org=data.get("org"),
            asn=data.get("asn"),
            asname=data.get("asn"),
        )

    def resolve(self, ip: str) -> Optional[IPInfo]:
        result = self.check(ip)
        return result.data if result.ok else None
