"""
Configuration subsystem for Guildhall.

Static vs Dynamic Configuration
-------------------------------
**Static (Config):**
- Loaded from environment variables at startup (.env supported)
- Includes: database URL and pool sizes, environment, log settings
- Changes require a restart or an explicit `Config.load()`

**Dynamic (ConfigManager):**
- Loaded from YAML defaults under `config/`
- Includes: task durations, adventure tier costs, unlock tables, shop pricing
- In-memory overrides for live tuning and tests

`ConfigManager` lives in `guildhall.core.config.manager` and is imported from
there; it depends on the logging subsystem, which itself reads `Config`.
"""

from guildhall.core.config.config import Config, Environment

__all__ = [
    "Config",
    "Environment",
]
