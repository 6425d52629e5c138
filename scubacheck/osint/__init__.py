from scubacheck.osint.ipapi import IpApiProvider
from scubacheck.osint.safebrowsing import SafeBrowsingProvider
from scubacheck.osint.urlscan import UrlScanProvider
from scubacheck.osint.whois import WhoisAgeProvider


def build_providers(config: dict, http, cache):
    """URL reputation sources, in the order they are reported."""
    return [
        WhoisAgeProvider(config, http, cache),
        UrlScanProvider(config, http, cache),
        SafeBrowsingProvider(config, http, cache),
    ]


def build_geolocator(config: dict, http, cache) -> IpApiProvider:
    return IpApiProvider(config, http, cache)
