"""Read-only Jira REST client used for best-effort ticket enrichment.

``fetch_description`` never raises: every failure is logged and reported as
None so a missing ticket can never block report generation.
"""

import logging
import re

import httpx

from stability_report.config import get_settings
from stability_report.observability.metrics import TICKET_LOOKUPS_TOTAL

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15

_JIRA_KEY_RE = re.compile(r"^[A-Z]+-\d+$")


def is_jira_configured() -> bool:
    """Check whether the Jira base URL and token are both set."""
    settings = get_settings()
    return bool(settings.jira_url and settings.jira_token)


def extract_jira_key(reference: str) -> str | None:
    """Find a Jira issue key (e.g. ``OPS-12345``) in a ticket URL or bare key.

    Query strings and fragments are ignored; the first path segment shaped
    like ``LETTERS-DIGITS`` wins.
    """
    path = reference.strip().split("?", 1)[0].split("#", 1)[0]
    for part in path.split("/"):
        if _JIRA_KEY_RE.match(part):
            return part
    return None


def _jira_headers() -> dict[str, str]:
    """Bearer-token headers for the Jira REST API."""
    return {
        "Authorization": f"Bearer {get_settings().jira_token}",
        "Accept": "application/json",
    }


async def _get_issue(key: str) -> dict[str, object]:
    """GET one issue, retrying once with Basic auth if the Bearer token is rejected."""
    settings = get_settings()
    url = f"{settings.jira_url.rstrip('/')}/rest/api/2/issue/{key}"

    async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT_SECONDS) as client:
        response = await client.get(url, headers=_jira_headers())
        if not response.is_success and settings.jira_email:
            logger.debug("Bearer auth rejected for %s (%d), retrying with Basic auth", key, response.status_code)
            response = await client.get(
                url,
                headers={"Accept": "application/json"},
                auth=httpx.BasicAuth(settings.jira_email, settings.jira_token),
            )
        _ = response.raise_for_status()
        body: object = response.json()
        if not isinstance(body, dict):
            raise ValueError(f"unexpected issue payload type {type(body).__name__}")
        return body


async def fetch_description(reference: str) -> str | None:
    """Fetch the description text of the Jira issue named by ``reference``.

    Makes no request when no issue key can be found in the reference.

    Returns:
        The issue description, or None on any failure (no key, network
        error, invalid JIRA_URL, auth failure, not found, malformed body,
        empty description).
    """
    key = extract_jira_key(reference)
    if key is None:
        logger.debug("No Jira key found in ticket reference: %s", reference)
        return None

    logger.debug("Fetching Jira details for %s", key)
    try:
        issue = await _get_issue(key)
    except httpx.TimeoutException:
        logger.warning("Failed to fetch Jira details for %s: request timed out", key)
        TICKET_LOOKUPS_TOTAL.labels(status="error").inc()
        return None
    except httpx.HTTPStatusError as e:
        logger.warning("Failed to fetch Jira details for %s: HTTP %d", key, e.response.status_code)
        TICKET_LOOKUPS_TOTAL.labels(status="error").inc()
        return None
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
        logger.warning("Failed to fetch Jira details for %s: %s", key, e)
        TICKET_LOOKUPS_TOTAL.labels(status="error").inc()
        return None

    fields = issue.get("fields")
    description = fields.get("description") if isinstance(fields, dict) else None
    if not isinstance(description, str) or not description.strip():
        logger.debug("No description field found for %s", key)
        TICKET_LOOKUPS_TOTAL.labels(status="error").inc()
        return None

    TICKET_LOOKUPS_TOTAL.labels(status="success").inc()
    logger.debug("Successfully fetched Jira details for %s", key)
    return description
