"""autopublish: multi-platform publish dispatch for business events and promotions.

Formats an event or promotion per platform and publishes it to Telegram,
VK, Instagram and Facebook concurrently, with bounded retries and one
auditable result per platform.
"""

__version__ = "0.1.0"

from autopublish.models import Platform, ContentType, PublishContent, PublishResult, ConnectionStatus
from autopublish.credentials import PlatformCredentials, validate_credentials
from autopublish.dispatcher import Dispatcher
from autopublish.history import PublishHistory, HistoryRecord
from autopublish.config import load_config, PublishConfig
from autopublish.factory import build_dispatcher

__all__ = [
    "Platform",
    "ContentType",
    "PublishContent",
    "PublishResult",
    "ConnectionStatus",
    "PlatformCredentials",
    "validate_credentials",
    "Dispatcher",
    "PublishHistory",
    "HistoryRecord",
    "load_config",
    "PublishConfig",
    "build_dispatcher",
]
