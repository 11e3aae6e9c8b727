# =============================================================================
# core/graph_client.py - Microsoft Graph client for users and MFA methods
# =============================================================================

import logging
from typing import Dict, Any, List, Optional
from urllib.parse import quote

import requests
from msal import ConfidentialClientApplication


GRAPH_ENDPOINT = "https://graph.microsoft.com/v1.0"
GRAPH_SCOPE = ["https://graph.microsoft.com/.default"]
REQUEST_TIMEOUT = 30


class GraphAPIError(Exception):
    """Raised when Graph authentication or a Graph request fails"""


class GraphClient:
    """
    App-only Microsoft Graph client.

    Needs User.Read.All and UserAuthenticationMethod.Read.All application
    permissions. Use as a context manager so the token is acquired before the
    run and the HTTP session is closed afterwards.
    """

    def __init__(self, tenant_id: str, client_id: str, client_secret: str,
                 session: Optional[requests.Session] = None):
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.session = session
        self.app: Optional[ConfidentialClientApplication] = None
        self.logger = logging.getLogger(__name__)

    def __enter__(self):
        """Context manager entry"""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.close()

    def connect(self) -> None:
        """Create the MSAL application, fetch a first token and open a session"""
        self.app = ConfidentialClientApplication(
            client_id=self.client_id,
            client_credential=self.client_secret,
            authority=f"https://login.microsoftonline.com/{self.tenant_id}",
        )
        self._get_token()
        if self.session is None:
            self.session = requests.Session()
        self.logger.info("Successfully authenticated to Microsoft Graph")

    def close(self) -> None:
        """Close the HTTP session"""
        if self.session:
            self.session.close()
            self.session = None
            self.logger.info("Closed Microsoft Graph session")

    def list_all_users(self) -> List[Dict[str, Any]]:
        """Return every user in the tenant (id and userPrincipalName)"""
        url = f"{GRAPH_ENDPOINT}/users?$select=id,userPrincipalName&$top=999"
        users = self._get_paged(url)
        self.logger.info(f"Retrieved {len(users)} users from Microsoft Graph")
        return users

    def list_auth_methods(self, principal_name: str) -> List[Dict[str, Any]]:
        """Return the authentication methods registered for one user"""
        url = f"{GRAPH_ENDPOINT}/users/{quote(principal_name)}/authentication/methods"
        return self._get_paged(url)

    def _get_token(self) -> str:
        # MSAL serves the cached token until it is close to expiry
        result = self.app.acquire_token_for_client(scopes=GRAPH_SCOPE)
        if "access_token" not in result:
            raise GraphAPIError(
                f"Token acquisition failed: {result.get('error')}: {result.get('error_description')}"
            )
        return result["access_token"]

    def _get_paged(self, url: str) -> List[Dict[str, Any]]:
        """GET a collection, following @odata.nextLink until exhausted"""
        if not self.session or not self.app:
            raise GraphAPIError("Not connected to Microsoft Graph")

        items = []
        while url:
            headers = {"Authorization": f"Bearer {self._get_token()}"}
            try:
                response = self.session.get(url, headers=headers, timeout=REQUEST_TIMEOUT)
                response.raise_for_status()
                data = response.json()
            except (requests.RequestException, ValueError) as e:
                raise GraphAPIError(f"Graph request failed for {url}: {e}") from e

            items.extend(data.get("value", []))
            url = data.get("@odata.nextLink")
        return items
