"""
Configuration module for the meeting voice agent.

This module provides centralized configuration management for the entire application,
including protocol constants, environment-driven settings and logging setup.

Key components:
- constants: Message type tags, session defaults, voice settings bounds and
  error codes shared by the codec, the dispatcher and the client.
- settings: Values read from the environment (server binding, OpenAI engine
  models, pipeline deadlines).
- logging_config: Console and rotating-file logging for the application logger.

Usage examples:
```python
from meeting_agent.config.constants import MESSAGE_TYPE_INIT_MEETING, LOGGER_NAME
from meeting_agent.config.settings import PIPELINE_TIMEOUT_SECONDS

from meeting_agent.config.logging_config import configure_logging
logger = configure_logging()
logger.info("Application started")
```
"""
