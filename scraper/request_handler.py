# scraper/request_handler.py

import logging
from http import cookiejar
from typing import Optional

import requests

from config import (
    REQUEST_CONFIG, HOTSLOGS_BASE_URL, LEADERBOARD_PATH, MATCH_HISTORY_PATH,
    MATCH_SUMMARY_PATH, HERO_LEAGUE_GAME_MODE, GRANDMASTER_LEAGUE,
)
from errors import TransportError
from models import Region

logger = logging.getLogger(__name__)


class HotslogsRequestHandler:
    """
    Makes the three Hotslogs requests the scraper needs.
    Fixed headers, no cookie persistence, every failure raised as TransportError.
    """

    def __init__(self, config: dict = None, base_url: str = HOTSLOGS_BASE_URL,
                 session: Optional[requests.Session] = None):
        self.config = config or REQUEST_CONFIG
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        # Reject every cookie so each request starts clean
        self.session.cookies.set_policy(cookiejar.DefaultCookiePolicy(allowed_domains=[]))
        self.request_count = 0

    def _get_headers(self) -> dict:
        return {
            'Accept-Language': self.config.get('accept_language', 'en-US,en'),
            'User-Agent': self.config['user_agent'],
        }

    def get(self, path: str, params: dict) -> bytes:
        """GET base_url + path and return the raw body"""
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(
                url,
                params=params,
                headers=self._get_headers(),
                timeout=self.config.get('timeout', 30),
                allow_redirects=True,
            )
        except requests.Timeout as e:
            raise TransportError(f"Timeout for {url} {params}") from e
        except requests.RequestException as e:
            raise TransportError(f"Request failed for {url} {params}: {e}") from e

        self.request_count += 1

        if response.status_code != 200:
            raise TransportError(f"HTTP {response.status_code} for {response.url}")

        logger.debug(f"OK {response.url} ({self.request_count} requests)")
        return response.content

    def fetch_leaderboard(self, region: Region) -> bytes:
        return self.get(LEADERBOARD_PATH, {
            'Region': region.value,
            'GameMode': HERO_LEAGUE_GAME_MODE,
            'League': GRANDMASTER_LEAGUE,
        })

    def fetch_history(self, player_id: int) -> bytes:
        return self.get(MATCH_HISTORY_PATH, {'PlayerID': player_id})

    def fetch_match(self, match_id: int) -> bytes:
        return self.get(MATCH_SUMMARY_PATH, {'ReplayID': match_id})
