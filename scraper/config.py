# scraper/config.py

import os

from dotenv import load_dotenv

load_dotenv(os.path.join(os.path.dirname(__file__), '..', '.env'))

DATABASE_URL = os.environ.get('DATABASE_URL', '')

# Loop pacing (seconds)
SCRAPE_CONFIG = {
    'between_tasks': 30,                   # fixed pause after every task
    'leaderboard_every': 20,               # history scans per region between leaderboard refreshes
}

# Error handling (seconds)
ERROR_CONFIG = {
    'task_error_sleep': 60,                # transport / extraction / logic failures
    'store_error_sleep': 100,              # first pause after a store failure
    'reconnect_interval': 100,             # between reconnect attempts, no growth
}

REQUEST_CONFIG = {
    'timeout': 30,
    'user_agent': 'Matchmaking/1.0 (+http://www.ismatchmakingfixedyet.com)',
    'accept_language': 'en-US,en',
}

# Hotslogs endpoints
HOTSLOGS_BASE_URL = 'https://www.hotslogs.com'
LEADERBOARD_PATH = '/Rankings'
MATCH_HISTORY_PATH = '/Player/MatchHistory'
MATCH_SUMMARY_PATH = '/Player/MatchSummaryAjax'

HERO_LEAGUE_GAME_MODE = 4
GRANDMASTER_LEAGUE = 'Grandmaster'

# All extract_* helpers depend on these offsets. Revisit when Hotslogs changes its markup.
HOTSLOGS_DATE_FORMAT = '%m/%d/%Y %I:%M:%S %p'
LEADERBOARD_ROW_CLASSES = ['rgRow', 'rgAltRow']
LEADERBOARD_PLAYER_ID_COLUMN = 0
HISTORY_MATCH_ID_COLUMN = 1
HISTORY_PLAYED_AT_COLUMN = 10
MATCH_PLAYER_ID_COLUMN = 1
MATCH_NAME_COLUMN = 2
MATCH_SCORE_COLUMN = 21
TEAM_SIZE = 5
