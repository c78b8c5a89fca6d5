"""Built-in data sources, transforms and action sinks.

Data sources and actions are stand-ins for third party providers: they
return fixed payloads and make no network calls. Replace them through
NodeHandlerRegistry.register_data_source / register_action.
"""

import json
from typing import Any, Dict

from ..models.core import ActionConfig, DataConfig, TransformConfig
from .logging import get_logger

logger = get_logger(__name__)


# Data sources

async def fetch_weather_data(config: DataConfig) -> Dict[str, Any]:
    logger.debug(f"Fetching weather for {config.location or 'default location'}")
    return {"temperature": 72, "condition": "Sunny"}


async def fetch_calendar_data(config: DataConfig) -> Dict[str, Any]:
    return {"events": []}


async def fetch_github_data(config: DataConfig) -> Dict[str, Any]:
    return {"commits": [], "pull_requests": []}


# Transforms. Each receives a JSON-safe snapshot of the whole context.

def summarize_data(snapshot: Dict[str, Any], config: TransformConfig) -> Dict[str, Any]:
    return {"summary": json.dumps(snapshot, default=str)}


def filter_data(snapshot: Dict[str, Any], config: TransformConfig) -> Dict[str, Any]:
    return {"filtered": snapshot}


def combine_data(snapshot: Dict[str, Any], config: TransformConfig) -> Dict[str, Any]:
    return {"combined": snapshot}


# Actions

def send_email(config: ActionConfig, snapshot: Dict[str, Any]) -> Dict[str, Any]:
    logger.info(f"Sending email to: {config.to}")
    return {"sent": True, "to": config.to}


def send_sms(config: ActionConfig, snapshot: Dict[str, Any]) -> Dict[str, Any]:
    logger.info(f"Sending SMS to: {config.phone}")
    return {"sent": True, "phone": config.phone}


def post_to_social(config: ActionConfig, snapshot: Dict[str, Any]) -> Dict[str, Any]:
    logger.info(f"Posting to: {config.platform}")
    return {"posted": True, "platform": config.platform}


DEFAULT_DATA_SOURCES = {
    "weather": fetch_weather_data,
    "calendar": fetch_calendar_data,
    "github": fetch_github_data,
    "code-host": fetch_github_data,
}

DEFAULT_TRANSFORMS = {
    "summarize": summarize_data,
    "filter": filter_data,
    "combine": combine_data,
}

DEFAULT_ACTIONS = {
    "email": send_email,
    "sms": send_sms,
    "post": post_to_social,
    "social-post": post_to_social,
}
