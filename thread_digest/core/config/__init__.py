"""
Configuration Module

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: Identifier grammars, languages, key prefixes and error codes

Usage:
------
```python
from thread_digest.core.config import get_settings
from thread_digest.core.config.constants import SupportedLanguage
```
"""

from thread_digest.core.config.settings import Settings, get_settings, reload_settings

__all__ = ["Settings", "get_settings", "reload_settings"]
