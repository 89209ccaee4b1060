# This project was developed with assistance from AI tools.
"""Reference submitter client: REST calls, the real-time channel, and the
single owned state store every partner-side screen reads from.
"""

from .api import VerificationClient
from .channel import Backoff, ChannelEvent, ChannelStateMachine, ConnectionState, NotificationChannel
from .config import ClientSettings
from .store import SubjectStore

__all__ = [
    "Backoff",
    "ChannelEvent",
    "ChannelStateMachine",
    "ClientSettings",
    "ConnectionState",
    "NotificationChannel",
    "SubjectStore",
    "VerificationClient",
]
