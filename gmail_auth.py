"""Google OAuth helper.

Provides `get_gmail_service()` and `get_sheets_service()`. Both share one
OAuth token: client secrets come from `credentials.json`, the refresh token is
stored in `token.pickle`. The Gmail scope is read-only; the Sheets scope allows
appending rows to the job log sheet.
"""

import logging
import os
import pickle

from google.auth.transport.requests import Request
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/spreadsheets",
]

TOKEN_PATH = os.getenv("GOOGLE_TOKEN_PATH", "token.pickle")
CREDENTIALS_PATH = os.getenv("GOOGLE_CREDENTIALS_PATH", os.path.join("json", "credentials.json"))


def _save_token(creds):
    with open(TOKEN_PATH, "wb") as token:
        pickle.dump(creds, token)


def get_credentials():
    """Load, refresh or create OAuth credentials. Returns None on failure."""
    creds = None
    if os.path.exists(TOKEN_PATH):
        try:
            with open(TOKEN_PATH, "rb") as token:
                creds = pickle.load(token)
        except (OSError, pickle.UnpicklingError, EOFError) as e:
            logger.warning("Could not load token file %s: %s", TOKEN_PATH, e)

    try:
        if creds and not creds.valid:
            if creds.expired and creds.refresh_token:
                logger.info("Token expired, refreshing")
                creds.refresh(Request())
                _save_token(creds)
            else:
                creds = None

        if not creds:
            if not os.path.exists(CREDENTIALS_PATH):
                logger.error("%s not found. Please provide OAuth credentials.", CREDENTIALS_PATH)
                return None
            flow = InstalledAppFlow.from_client_secrets_file(CREDENTIALS_PATH, SCOPES)
            # open_browser=False prints the URL instead, which works over SSH
            creds = flow.run_local_server(
                port=0,
                access_type="offline",
                prompt="consent",
                open_browser=False,
            )
            _save_token(creds)
            logger.info("Authentication successful, token saved to %s", os.path.abspath(TOKEN_PATH))
    except Exception as e:
        logger.error("Error during credential flow: %s", e)
        return None

    return creds


def _build_service(api, version):
    creds = get_credentials()
    if creds is None:
        return None
    try:
        return build(api, version, credentials=creds)
    except Exception as e:
        logger.error("Error building %s service: %s", api, e)
        return None


def get_gmail_service():
    """Return a Gmail API `Resource`, or None when auth fails."""
    return _build_service("gmail", "v1")


def get_sheets_service():
    """Return a Sheets API `Resource`, or None when auth fails."""
    return _build_service("sheets", "v4")
