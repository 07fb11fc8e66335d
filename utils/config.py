# =============================================================================
# utils/config.py - Configuration management
# =============================================================================

import os
from typing import Any, Dict, Optional, List
from dotenv import load_dotenv


class Config:
    """Reconciliation settings read from the environment or a .env file"""

    # Config property -> environment variable; all needed to reach AD
    REQUIRED_AD_VARS = {
        'ad_server': 'AD_SERVER',
        'ad_username': 'AD_USERNAME',
        'ad_password': 'AD_PASSWORD',
        'base_dn': 'BASE_DN',
    }

    DEFAULT_EMPLOYEE_ID_ATTRIBUTE = 'employeeID'

    def __init__(self, env_file: Optional[str] = None):
        load_dotenv(env_file)

    @staticmethod
    def _setting(name: str) -> Optional[str]:
        value = os.getenv(name)
        return value.strip() if value else None

    @property
    def ad_server(self) -> Optional[str]:
        return self._setting('AD_SERVER')

    @property
    def ad_username(self) -> Optional[str]:
        return self._setting('AD_USERNAME')

    @property
    def ad_password(self) -> Optional[str]:
        # Passwords may legitimately start or end with spaces
        return os.getenv('AD_PASSWORD') or None

    @property
    def base_dn(self) -> Optional[str]:
        return self._setting('BASE_DN')

    @property
    def employee_id_attribute(self) -> str:
        return self._setting('EMPLOYEE_ID_ATTRIBUTE') or self.DEFAULT_EMPLOYEE_ID_ATTRIBUTE

    @property
    def tracked_groups(self) -> List[str]:
        """Group names whose membership is reported by the group-aware workflows"""
        raw = self._setting('TRACKED_GROUPS') or ''
        return [group.strip() for group in raw.split(',') if group.strip()]

    def get_missing_ad_vars(self) -> List[str]:
        """Environment variables still needed before AD can be contacted"""
        return [env_name for prop, env_name in self.REQUIRED_AD_VARS.items() if not getattr(self, prop)]

    def validate_ad_config(self) -> bool:
        return not self.get_missing_ad_vars()

    def ad_client_settings(self) -> Dict[str, Any]:
        """Keyword arguments for ActiveDirectoryClient"""
        return {
            'server_url': self.ad_server,
            'username': self.ad_username,
            'password': self.ad_password,
            'base_dn': self.base_dn,
            'employee_id_attribute': self.employee_id_attribute,
        }
