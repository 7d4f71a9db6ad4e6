"""
Polo path helpers.

Use get_real_user_home() instead of Path.home() for user config files so
that running the bridge under sudo still reads the invoking user's config.
"""

import os
from pathlib import Path


def get_real_user_home() -> Path:
    """
    Get the real user's home directory, even when running as root via sudo.

    Returns:
        Path to the real user's home directory
    """
    sudo_user = os.environ.get('SUDO_USER')
    if sudo_user and sudo_user != 'root':
        return Path(f'/home/{sudo_user}')

    return Path.home()


class PoloPaths:
    """Paths used by the Polo bridge client"""

    @classmethod
    def get_config_dir(cls) -> Path:
        return get_real_user_home() / '.config' / 'polo'

    @classmethod
    def get_config_file(cls) -> Path:
        return cls.get_config_dir() / 'bridge.json'

    @classmethod
    def get_log_file(cls) -> Path:
        """Default rotating log file location"""
        return get_real_user_home() / '.cache' / 'polo' / 'bridge.log'
