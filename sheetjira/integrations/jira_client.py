"""Jira REST client for ticket creation and status lookup."""

import httpx
from typing import Optional, Dict, Any, Type
from sheetjira.errors import NotConfigured, AuthFailed, CreateFailed, FetchFailed, TrackerError
from sheetjira.models.config import AddonConfig
from sheetjira.models.ticket import TicketPayload, CreatedTicket, TicketStatus, JiraUser
from sheetjira.utils.logger import get_logger

logger = get_logger(__name__)

API_PATH = "/rest/api/2"


class JiraClient:
    """Client for the Jira REST API with basic (email + API token) authentication."""

    def __init__(
        self,
        base_url: str,
        email: str,
        api_token: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = (base_url or "").strip().rstrip('/')
        self.email = (email or "").strip()
        self.api_token = (api_token or "").strip()
        self.api_base = f"{self.base_url}{API_PATH}"
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def from_config(
        cls,
        config: AddonConfig,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "JiraClient":
        """Create a client from the stored connection settings."""
        return cls(
            base_url=config.jira_url,
            email=config.jira_email,
            api_token=config.jira_api_token,
            timeout=timeout,
            transport=transport
        )

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "JiraClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def ensure_configured(self) -> None:
        """
        Check that URL, email and token are all set.

        Raises:
            NotConfigured: If any connection setting is empty
        """
        missing = []
        if not self.base_url:
            missing.append("jiraUrl")
        if not self.email:
            missing.append("jiraEmail")
        if not self.api_token:
            missing.append("jiraApiToken")
        if missing:
            raise NotConfigured(missing)

    def browse_url(self, key: str) -> str:
        return f"{self.base_url}/browse/{key}"

    @staticmethod
    def _json_body(response: httpx.Response, error_cls: Type[TrackerError], action: str) -> Dict[str, Any]:
        """
        Decode a JSON object body.

        Raises:
            error_cls: If the body is not a JSON object (e.g. an HTML proxy or login page)
        """
        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            error_msg = f"{action}: unexpected response body (HTTP {response.status_code})"
            logger.error(f"{error_msg}: {response.text[:200]}")
            raise error_cls(error_msg, status_code=response.status_code, body=response.text)
        return data

    async def _request(
        self,
        method: str,
        endpoint: str,
        data: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        """
        Make an authenticated request to the Jira API.

        Args:
            method: HTTP method
            endpoint: API endpoint (relative to api_base)
            data: JSON body

        Returns:
            HTTP response
        """
        self.ensure_configured()

        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json"
        }
        url = f"{self.api_base}/{endpoint.lstrip('/')}"

        return await self.client.request(
            method=method,
            url=url,
            headers=headers,
            json=data,
            auth=(self.email, self.api_token)
        )

    async def create_ticket(self, payload: TicketPayload) -> CreatedTicket:
        """
        Create a Jira ticket.

        Args:
            payload: Ticket fields built from a sheet row

        Returns:
            Key and browse URL of the created ticket

        Raises:
            NotConfigured: If connection settings are incomplete
            CreateFailed: If Jira does not answer 201 Created
        """
        logger.info(f"Creating Jira ticket in {payload.project_key}: {payload.summary}")

        try:
            response = await self._request("POST", "/issue", data=payload.to_jira())
        except httpx.RequestError as e:
            logger.error(f"Request to create ticket failed: {e}")
            raise CreateFailed(f"Failed to create ticket: {e}") from e

        if response.status_code != 201:
            error_msg = f"Failed to create ticket: {response.status_code} - {response.text}"
            logger.error(error_msg)
            raise CreateFailed(error_msg, status_code=response.status_code, body=response.text)

        ticket_key = self._json_body(response, CreateFailed, "Failed to create ticket").get("key")
        if not ticket_key:
            raise CreateFailed(
                "Failed to create ticket: response has no key",
                status_code=response.status_code,
                body=response.text
            )

        logger.info(f"Successfully created ticket {ticket_key}")
        return CreatedTicket(key=ticket_key, url=self.browse_url(ticket_key))

    async def get_ticket(self, key: str) -> TicketStatus:
        """
        Fetch a ticket's status.

        Args:
            key: Jira ticket key (e.g., PROJ-123)

        Returns:
            Ticket key and status name

        Raises:
            NotConfigured: If connection settings are incomplete
            FetchFailed: If Jira does not answer 200 OK
        """
        try:
            response = await self._request("GET", f"/issue/{key}?fields=status")
        except httpx.RequestError as e:
            logger.error(f"Request to fetch {key} failed: {e}")
            raise FetchFailed(f"Failed to fetch {key}: {e}") from e

        if response.status_code != 200:
            logger.error(f"Failed to fetch {key}: {response.status_code}")
            raise FetchFailed(
                f"Failed to fetch {key}: HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text
            )

        fields = self._json_body(response, FetchFailed, f"Failed to fetch {key}").get("fields") or {}
        status = (fields.get("status") or {}).get("name", "") if isinstance(fields, dict) else ""
        return TicketStatus(key=key, status=status)

    async def test_auth(self) -> JiraUser:
        """
        Check the credentials against /myself.

        Returns:
            The authenticated Jira user

        Raises:
            NotConfigured: If connection settings are incomplete
            AuthFailed: If Jira rejects the credentials or cannot be reached
        """
        try:
            response = await self._request("GET", "/myself")
        except httpx.RequestError as e:
            logger.error(f"Cannot connect to {self.base_url}: {e}")
            raise AuthFailed(f"Cannot connect to {self.base_url}: {e}") from e

        if response.status_code != 200:
            logger.warning(f"Jira authentication failed: {response.status_code}")
            raise AuthFailed(
                f"Authentication failed: HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text
            )

        data = self._json_body(response, AuthFailed, "Authentication check failed")
        logger.info(f"Authenticated to Jira as {data.get('displayName')}")
        return JiraUser(display_name=data.get("displayName", ""), email=data.get("emailAddress"))
