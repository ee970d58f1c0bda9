"""
Configuration settings for association sync runs.
Load configuration from environment variables or a .env file.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
env_file = Path(__file__).parent.parent.parent / '.env'
if env_file.exists():
    load_dotenv(env_file)


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(',') if item.strip()]


class Settings:
    """Application settings loaded from environment variables."""

    # Project paths
    PROJECT_ROOT = Path(__file__).parent.parent.parent
    DATA_DIR = PROJECT_ROOT / 'data'
    LOG_DIR = Path(os.getenv('LOG_DIR', str(PROJECT_ROOT / 'logs')))

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # ============================================================================
    # Association API (remote tree store)
    # ============================================================================
    ASSOC_BASE_URL = os.getenv('ASSOC_BASE_URL', os.getenv('BASE_URL', 'http://localhost:5001'))
    ASSOC_FETCH_ENDPOINT = os.getenv(
        'ASSOC_FETCH_ENDPOINT', '/api/v1/cordinator/association/{site_id}'
    )
    ASSOC_PUBLISH_ENDPOINT = os.getenv(
        'ASSOC_PUBLISH_ENDPOINT', '/api/v1/cordinator/create-association-v2'
    )
    ASSOC_RACK_ENDPOINT = os.getenv('ASSOC_RACK_ENDPOINT', '/api/v1/rack')
    ASSOC_HEALTH_ENDPOINT = os.getenv('ASSOC_HEALTH_ENDPOINT', '/health')
    ASSOC_API_KEY = os.getenv('ASSOC_API_KEY', '')
    ASSOC_TIMEOUT = int(os.getenv('ASSOC_TIMEOUT', '30'))
    ASSOC_RETRY_ATTEMPTS = int(os.getenv('ASSOC_RETRY_ATTEMPTS', '3'))
    ASSOC_RETRY_DELAY = int(os.getenv('ASSOC_RETRY_DELAY', '1'))
    ASSOC_STATUS_FIELD = os.getenv('ASSOC_STATUS_FIELD', 'messageCode')
    ASSOC_SUCCESS_CODES = _split_list(
        os.getenv('ASSOC_SUCCESS_CODES', 'OK,SUCCESS,CREATED,UPDATED,200,201')
    )

    # ============================================================================
    # Reconciliation
    # ============================================================================
    PUBLISH_THROTTLE_SECONDS = float(os.getenv('PUBLISH_THROTTLE_SECONDS', '0.2'))
    GROUPING_NODE_NAME = os.getenv('GROUPING_NODE_NAME', 'High Level Diagram')
    SITE_MAP_FILE = Path(os.getenv('SITE_MAP_FILE', str(PROJECT_ROOT / 'config' / 'sites.json')))
    WORKBOOK_PATH = Path(
        os.getenv('WORKBOOK_PATH', str(DATA_DIR / 'logical-connectivity-data.xlsx'))
    )
    SHEET_NAMES = _split_list(os.getenv('SHEET_NAMES', ''))

    # ============================================================================
    # Location store (PostgreSQL)
    # ============================================================================
    PG_CONNECTION_STRING = os.getenv('PG_CONNECTION_STRING', '')
    DB_HOST = os.getenv('DB_HOST', 'localhost')
    DB_PORT = int(os.getenv('DB_PORT', '5432'))
    DB_NAME = os.getenv('DB_NAME', 'ca_mgt')
    DB_USER = os.getenv('DB_USER', 'postgres')
    DB_PASSWORD = os.getenv('DB_PASSWORD', 'postgres')

    @classmethod
    def get_database_url(cls) -> str:
        """Generate database connection URL."""
        if cls.PG_CONNECTION_STRING:
            return cls.PG_CONNECTION_STRING
        return (
            f'postgresql://{cls.DB_USER}:{cls.DB_PASSWORD}@'
            f'{cls.DB_HOST}:{cls.DB_PORT}/{cls.DB_NAME}'
        )

    @classmethod
    def validate_required_settings(cls) -> list[str]:
        """
        Validate that all required settings are configured.
        Returns list of missing required settings.
        """
        missing = []

        if not cls.ASSOC_BASE_URL:
            missing.append('ASSOC_BASE_URL')
        if '{site_id}' not in cls.ASSOC_FETCH_ENDPOINT:
            missing.append('ASSOC_FETCH_ENDPOINT ({site_id} placeholder)')
        if not cls.ASSOC_PUBLISH_ENDPOINT:
            missing.append('ASSOC_PUBLISH_ENDPOINT')
        if not cls.GROUPING_NODE_NAME:
            missing.append('GROUPING_NODE_NAME')

        return missing


# Create settings instance
settings = Settings()
