"""
Shared fixtures for the extraction tests.
"""
from datetime import datetime

import pytest

from ..core.config import default_config

FIXED_NOW = datetime(2025, 1, 1, 9, 30)


@pytest.fixture
def config():
    """Packaged extraction configuration."""
    return default_config()


@pytest.fixture
def clock():
    """A clock that always returns the same instant."""
    return lambda: FIXED_NOW


@pytest.fixture
def sample_transcript():
    """A short chat export mixing payments, chatter and attachments."""
    return "\n".join([
        "2024/03/12, 14:05 - Alice: Lunch R250.00",
        "2024/03/12, 14:06 - Bob: thanks!",
        "[13/03/24 09:15:00] Bob: Paid you $1,234.56 for the flights",
        "14/03/2024, 18:40 - Carol: <attached: IMG-20240314-WA0001.jpg>",
        "Messages and calls are end-to-end encrypted.",
        "",
        "15.03.2024, 08:00 - Alice: Sent 300 for petrol <attached: IMG-20240315-WA0002.jpg>",
    ])
