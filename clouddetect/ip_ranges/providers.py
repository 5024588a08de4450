"""
clouddetect/ip_ranges/providers.py - Cloud Provider IP Range Fetchers

프로바이더별 IP 대역 다운로드:
- Amazon: ip-ranges.json over HTTP
- Google: recursive SPF-style DNS TXT records (_cloud-netblocks)
- Microsoft: download page scrape -> published ranges file (XML or Service Tags JSON)

Each fetcher returns the provider's complete record list or raises
ProviderFetchError; no partial lists are ever returned. Fetchers hold no
state between calls.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin

import dns.exception
import dns.resolver
import requests
from bs4 import BeautifulSoup

from clouddetect.config import DEFAULT_HTTP_TIMEOUT
from clouddetect.exceptions import ProviderFetchError

from .types import Provider, SubnetRecord, make_record

logger = logging.getLogger(__name__)

# =============================================================================
# Sources
# =============================================================================

AWS_SOURCE = "https://ip-ranges.amazonaws.com/ip-ranges.json"
GOOGLE_NETBLOCKS = "_cloud-netblocks.googleusercontent.com"
AZURE_DOWNLOAD_PAGE = "https://www.microsoft.com/en-us/download/confirmation.aspx?id=41653"

# Microsoft's download page rejects requests without a browser user agent
AZURE_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36",
}

_GOOGLE_INCLUDE_RE = re.compile(r"include:(\S+)")
_GOOGLE_IP_RE = re.compile(r"ip[46]:(\S+)")
_AZURE_FILE_RE = re.compile(r"PublicIPs.*?\.xml|ServiceTags_Public.*?\.json", re.IGNORECASE)

FetchFn = Callable[[], Sequence[SubnetRecord]]


@dataclass(frozen=True)
class RangeFetcher:
    """A provider fetcher bound to its settings"""

    provider: Provider
    fetch: FetchFn

    def __call__(self) -> Sequence[SubnetRecord]:
        return self.fetch()

    def __str__(self) -> str:
        return self.provider.value


def _parse_cidr(provider: Provider, cidr: str, region: str = "") -> SubnetRecord:
    try:
        return make_record(provider, cidr, region)
    except ValueError as e:
        raise ProviderFetchError(provider.value, f"invalid CIDR {cidr!r}", cause=e) from e


# =============================================================================
# Amazon
# =============================================================================


def parse_amazon(data: dict[str, Any]) -> list[SubnetRecord]:
    """Parse ip-ranges.json (IPv4 prefixes first, then IPv6)"""
    records = [
        _parse_cidr(Provider.AMAZON, prefix.get("ip_prefix", ""), prefix.get("region", ""))
        for prefix in data.get("prefixes", [])
    ]
    records.extend(
        _parse_cidr(Provider.AMAZON, prefix.get("ipv6_prefix", ""), prefix.get("region", ""))
        for prefix in data.get("ipv6_prefixes", [])
    )
    return records


def fetch_amazon(
    session: requests.Session | None = None,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
) -> list[SubnetRecord]:
    """Download and parse Amazon's published ranges"""
    http = session or requests
    try:
        response = http.get(AWS_SOURCE, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        raise ProviderFetchError(Provider.AMAZON.value, "failed to download ip-ranges.json", cause=e) from e

    if not isinstance(data, dict):
        raise ProviderFetchError(Provider.AMAZON.value, "unexpected ip-ranges.json payload")

    records = parse_amazon(data)
    logger.debug("Amazon: %d prefixes", len(records))
    return records


# =============================================================================
# Google
# =============================================================================


def _lookup_txt(resolver: dns.resolver.Resolver, name: str) -> list[str]:
    answer = resolver.resolve(name, "TXT")
    return [b"".join(rdata.strings).decode("utf-8", errors="replace") for rdata in answer]


def fetch_google(
    resolver: dns.resolver.Resolver | None = None,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
) -> list[SubnetRecord]:
    """Walk the _cloud-netblocks TXT records

    The root record only lists ``include:`` targets, e.g.
    ``v=spf1 include:_cloud-netblocks1.googleusercontent.com ... ?all``;
    each target lists ``ip4:``/``ip6:`` ranges and may include further names.
    Every name is looked up once, in discovery order.
    """
    if resolver is None:
        resolver = dns.resolver.Resolver()
        resolver.lifetime = timeout

    records: list[SubnetRecord] = []
    pending = [GOOGLE_NETBLOCKS]
    visited: set[str] = set()

    while pending:
        name = pending.pop(0)
        if name in visited:
            continue
        visited.add(name)

        try:
            entries = _lookup_txt(resolver, name)
        except dns.exception.DNSException as e:
            raise ProviderFetchError(Provider.GOOGLE.value, f"TXT lookup failed for {name}", cause=e) from e

        for entry in entries:
            records.extend(_parse_cidr(Provider.GOOGLE, cidr) for cidr in _GOOGLE_IP_RE.findall(entry))
            pending.extend(_GOOGLE_INCLUDE_RE.findall(entry))

    logger.debug("Google: %d prefixes from %d TXT names", len(records), len(visited))
    return records


# =============================================================================
# Microsoft
# =============================================================================


def find_azure_download_url(html: str, base_url: str = AZURE_DOWNLOAD_PAGE) -> str | None:
    """First ranges-file link on the download confirmation page"""
    soup = BeautifulSoup(html, "html.parser")
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"]
        if _AZURE_FILE_RE.search(href):
            return urljoin(base_url, href)
    return None


def parse_azure_xml(content: bytes) -> list[SubnetRecord]:
    """Parse the legacy ``AzurePublicIpAddresses`` XML

    <AzurePublicIpAddresses>
      <Region Name="australiaeast">
        <IpRange Subnet="13.70.64.0/18" />
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise ProviderFetchError(Provider.MICROSOFT.value, "invalid ranges XML", cause=e) from e

    records: list[SubnetRecord] = []
    for region in root.iter("Region"):
        name = region.get("Name", "")
        for ip_range in region.iter("IpRange"):
            records.append(_parse_cidr(Provider.MICROSOFT, ip_range.get("Subnet", ""), name))
    return records


def parse_azure_service_tags(data: dict[str, Any]) -> list[SubnetRecord]:
    """Parse Service Tags JSON, keeping each (subnet, region) pair once"""
    records: list[SubnetRecord] = []
    seen: set[tuple[str, str]] = set()
    for service in data.get("values", []):
        properties = service.get("properties", {})
        region = properties.get("region", "")
        for prefix in properties.get("addressPrefixes", []):
            key = (prefix, region)
            if key in seen:
                continue
            seen.add(key)
            records.append(_parse_cidr(Provider.MICROSOFT, prefix, region))
    return records


def fetch_microsoft(
    session: requests.Session | None = None,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
) -> list[SubnetRecord]:
    """Scrape the download page, then download and parse the linked file

    The file is requested on the same session so cookies set by the page
    are sent along.
    """
    own_session = session is None
    http = session or requests.Session()
    try:
        page = http.get(AZURE_DOWNLOAD_PAGE, headers=AZURE_HEADERS, timeout=timeout)
        page.raise_for_status()

        file_url = find_azure_download_url(page.text, page.url or AZURE_DOWNLOAD_PAGE)
        if not file_url:
            raise ProviderFetchError(Provider.MICROSOFT.value, "no ranges file link on download page")

        response = http.get(file_url, headers=AZURE_HEADERS, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise ProviderFetchError(Provider.MICROSOFT.value, "download failed", cause=e) from e
    finally:
        if own_session:
            http.close()

    if file_url.lower().endswith(".json"):
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderFetchError(Provider.MICROSOFT.value, "invalid Service Tags JSON", cause=e) from e
        records = parse_azure_service_tags(data)
    else:
        records = parse_azure_xml(response.content)

    logger.debug("Microsoft: %d prefixes from %s", len(records), file_url)
    return records


# =============================================================================
# Default fetcher set
# =============================================================================


def build_default_fetchers(http_timeout: float = DEFAULT_HTTP_TIMEOUT) -> list[RangeFetcher]:
    """Amazon, Google, Microsoft - in the order records are matched"""
    return [
        RangeFetcher(Provider.AMAZON, lambda: fetch_amazon(timeout=http_timeout)),
        RangeFetcher(Provider.GOOGLE, lambda: fetch_google(timeout=http_timeout)),
        RangeFetcher(Provider.MICROSOFT, lambda: fetch_microsoft(timeout=http_timeout)),
    ]
