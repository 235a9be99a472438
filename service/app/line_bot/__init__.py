"""
LINE bot module.

ARCHITECTURE: Thin routing layer over the reply pipeline.
- Receives webhook deliveries from LINE (signature checked in app.main)
- Classifies each message event via dispatcher
- Gates on subscription, generates, replies via handlers
- Always acknowledges so LINE never redelivers
"""

from .bot import handle_line_delivery, parse_delivery
from .handlers import ReplyOrchestrator, get_orchestrator
from .dispatcher import IntentClassifier, get_classifier
from .line_api import LineClient, get_line_client

__all__ = [
    "handle_line_delivery",
    "parse_delivery",
    "ReplyOrchestrator",
    "get_orchestrator",
    "IntentClassifier",
    "get_classifier",
    "LineClient",
    "get_line_client",
]
