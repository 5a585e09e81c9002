"""Parsing of FUNDING.yml sponsorship declarations."""

import logging
from typing import Any, Dict, List

import yaml

logger = logging.getLogger(__name__)

# Platform key -> URL template, as GitHub renders them on the "Sponsor" button
FUNDING_PLATFORMS: Dict[str, str] = {
    "github": "https://github.com/sponsors/{}",
    "patreon": "https://www.patreon.com/{}",
    "open_collective": "https://opencollective.com/{}",
    "ko_fi": "https://ko-fi.com/{}",
    "tidelift": "https://tidelift.com/funding/github/{}",
    "community_bridge": "https://funding.communitybridge.org/projects/{}",
    "liberapay": "https://liberapay.com/{}",
    "issuehunt": "https://issuehunt.io/r/{}",
    "lfx_crowdfunding": "https://crowdfunding.lfx.linuxfoundation.org/projects/{}",
    "polar": "https://polar.sh/{}",
    "buy_me_a_coffee": "https://www.buymeacoffee.com/{}",
    "thanks_dev": "https://thanks.dev/{}",
}


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if item is not None and str(item).strip()]
    text = str(value).strip()
    return [text] if text else []


def _custom_url(value: str) -> str:
    if value.startswith(("http://", "https://")):
        return value
    return f"https://{value}"


def parse_funding_file(text: str) -> List[str]:
    """Return the sponsorship URLs declared in a FUNDING.yml document.

    Platform entries keep the order of the document; ``custom`` URLs are used
    verbatim. Unknown platforms, blank values and duplicates are dropped. A
    document that is not a YAML mapping yields no links.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        logger.debug(f"Ignoring unparseable FUNDING.yml: {e}")
        return []

    if not isinstance(data, dict):
        return []

    links: List[str] = []
    for platform, value in data.items():
        key = str(platform).strip().lower()
        if key == "custom":
            candidates = [_custom_url(v) for v in _as_list(value)]
        elif key in FUNDING_PLATFORMS:
            candidates = [FUNDING_PLATFORMS[key].format(v) for v in _as_list(value)]
        else:
            continue

        for link in candidates:
            if link not in links:
                links.append(link)

    return links
