"""
Jira REST API Client Module
Probes a configured tracker: Jira Cloud, Server or Datacenter.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from tracker_hub.config_manager import ConfigManager, get_config
from tracker_hub.database.models import Tracker
from tracker_hub.utils.logger import get_logger

logger = get_logger(__name__)


class JiraAPIError(Exception):
    """Custom exception for Jira API errors."""

    def __init__(self, message: str, status_code: int = None, response: Any = None):
        self.message = message
        self.status_code = status_code
        self.response = response
        super().__init__(self.message)


class JiraClient:
    """
    Jira REST API client for a single tracker.

    Jira Cloud authenticates with basic auth (email and API token). Server
    and Datacenter accept basic auth or a personal access token sent as a
    bearer token.
    """

    def __init__(
        self,
        base_url: str,
        user: str = '',
        password: str = '',
        token: str = '',
        insecure: bool = False,
        config: Optional[ConfigManager] = None
    ):
        jira_config = (config or get_config()).get_jira_config()

        self.base_url = base_url.rstrip('/')
        self.insecure = insecure
        self.timeout = jira_config.get('timeout', 30)
        self.max_retries = jira_config.get('max_retries', 2)
        self.retry_delay = jira_config.get('retry_delay', 1)

        self._session = self._create_session(user, password, token)

    @classmethod
    def for_tracker(cls, tracker: Tracker, config: Optional[ConfigManager] = None) -> 'JiraClient':
        """Build a client from a tracker and its identity."""
        identity = tracker.identity
        if identity is None:
            raise JiraAPIError(f"Tracker {tracker.name} has no identity")

        token = identity.key if identity.kind == 'bearer-token' else ''
        if tracker.kind == 'jira-cloud' and token:
            raise JiraAPIError("Jira Cloud requires basic-auth credentials")

        return cls(
            tracker.url,
            user=identity.user or '',
            password=identity.password or '',
            token=token or '',
            insecure=bool(tracker.insecure),
            config=config
        )

    def _create_session(self, user: str, password: str, token: str) -> requests.Session:
        """Create requests session with retry logic."""
        session = requests.Session()

        # Set authentication
        if token:
            session.headers['Authorization'] = f'Bearer {token}'
        else:
            session.auth = (user, password)

        session.headers.update({
            'Accept': 'application/json',
            'Content-Type': 'application/json'
        })
        session.verify = not self.insecure

        retry_strategy = Retry(
            total=self.max_retries,
            backoff_factor=self.retry_delay,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=['GET']
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount('https://', adapter)
        session.mount('http://', adapter)

        return session

    def _make_request(self, method: str, endpoint: str, params: Dict = None) -> Any:
        """
        Make HTTP request to Jira API.

        Args:
            method: HTTP method
            endpoint: API endpoint relative to /rest/
            params: Query parameters

        Returns:
            Response JSON

        Raises:
            JiraAPIError: If request fails
        """
        url = urljoin(f"{self.base_url}/rest/", endpoint)

        try:
            response = self._session.request(
                method=method,
                url=url,
                params=params,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Request to {url} failed: {e}")
            raise JiraAPIError(f"Request failed: {str(e)}")

        if response.status_code == 401:
            raise JiraAPIError("Authentication failed. Check your credentials.", 401)
        elif response.status_code == 403:
            raise JiraAPIError("Access forbidden. Check permissions.", 403)
        elif response.status_code == 404:
            raise JiraAPIError(f"Resource not found: {endpoint}", 404)
        elif response.status_code >= 400:
            raise JiraAPIError(f"API error: {response.text}", response.status_code)

        try:
            return response.json() if response.text else {}
        except ValueError:
            raise JiraAPIError(f"Invalid JSON from {endpoint}", response.status_code)

    def get_server_info(self) -> Dict:
        """Get Jira server information."""
        return self._make_request('GET', 'api/2/serverInfo')

    def fetch_projects(self) -> List[Dict]:
        """Fetch all projects visible to the identity."""
        projects = self._make_request('GET', 'api/2/project')
        return projects if isinstance(projects, list) else []
