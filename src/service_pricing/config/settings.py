"""
Centralized settings and path configuration for the pricing service.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


ENV_PREFIX = 'SERVICE_PRICING_'


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    # Walk up from this file to find the project root
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 4 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.environ.get(ENV_PREFIX + name)
    return value if value not in (None, '') else default


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path
    data_dir: Path

    # Price table
    prices_csv: Path

    default_currency: str = 'EUR'
    log_level: str = 'INFO'
    page_limit: int = 20

    # API server
    host: str = '0.0.0.0'
    port: int = 8000

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the environment and the project structure."""
        root = project_root or get_project_root()
        data_dir = Path(_env('DATA_DIR', str(root / 'data')))

        return cls(
            project_root=root,
            data_dir=data_dir,
            prices_csv=Path(_env('PRICES_CSV', str(data_dir / 'prices.csv'))),
            default_currency=_env('CURRENCY', 'EUR').upper(),
            log_level=_env('LOG_LEVEL', 'INFO').upper(),
            page_limit=int(_env('PAGE_LIMIT', '20')),
            host=_env('HOST', '0.0.0.0'),
            port=int(_env('PORT', '8000')),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reset_settings():
    """Forget the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
