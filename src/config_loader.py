"""
Configuration loader for the Firefox collector
Reads and validates settings.yaml
"""

import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
from datetime import datetime
import logging

from models import FirefoxOptions, GeckoProfilerParams
from profiler_defaults import DEFAULT_BUFFER_SIZE, DEFAULT_FEATURES, DEFAULT_THREADS

logger = logging.getLogger(__name__)

RESPONSE_BODY_POLICIES = ("none", "html", "all")


class ConfigValidationError(ValueError):
    """Raised when configuration fails invariant validation."""
    pass


def _validate_positive(value: Any, field: str) -> None:
    """Validate that a numeric value is positive (> 0)."""
    if value is not None and float(value) <= 0:
        raise ConfigValidationError(
            f"Invalid config: '{field}' must be positive (> 0), got {value}"
        )


def _validate_choice(value: Any, choices: tuple, field: str) -> None:
    if value is not None and value not in choices:
        raise ConfigValidationError(
            f"Invalid config: '{field}' must be one of {', '.join(choices)}, got {value!r}"
        )


def _validate_csv(value: Any, field: str) -> None:
    if value is None:
        return
    if not isinstance(value, str) or not [v for v in value.split(",") if v.strip()]:
        raise ConfigValidationError(
            f"Invalid config: '{field}' must be a non-empty comma separated list, got {value!r}"
        )


class ConfigLoader:
    """Loads and validates configuration from YAML file"""

    def __init__(self, config_path: str = "config/settings.yaml", data: Optional[Dict[str, Any]] = None):
        self.config_path = Path(config_path)
        self.config: Dict[str, Any] = {}
        if data is not None:
            self.config = data
            self._validate_invariants()
        else:
            self._load()

    def _load(self) -> None:
        """Load config from YAML file"""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        try:
            with open(self.config_path, 'r') as f:
                self.config = yaml.safe_load(f) or {}
            logger.info(f"Config loaded from {self.config_path}")
        except yaml.YAMLError as e:
            logger.error(f"Error parsing config file: {e}")
            raise

        self._validate_invariants()

    def _validate_invariants(self) -> None:
        """Validate configuration invariants. Raises ConfigValidationError on failure."""
        _validate_choice(
            self.get('firefox.include_response_bodies'),
            RESPONSE_BODY_POLICIES,
            'firefox.include_response_bodies',
        )
        _validate_positive(self.get('firefox.gecko_profiler_params.interval'),
                           'firefox.gecko_profiler_params.interval')
        _validate_positive(self.get('firefox.gecko_profiler_params.buffer_size'),
                           'firefox.gecko_profiler_params.buffer_size')
        _validate_csv(self.get('firefox.gecko_profiler_params.features'),
                      'firefox.gecko_profiler_params.features')
        _validate_csv(self.get('firefox.gecko_profiler_params.threads'),
                      'firefox.gecko_profiler_params.threads')

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get config value using dot notation
        Example: config.get('firefox.gecko_profiler')
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default

            if value is None:
                return default

        return value

    # === Firefox Config ===

    def skip_har(self) -> bool:
        """Check if HAR collection is turned off"""
        return bool(self.get('firefox.skip_har', False))

    def get_include_response_bodies(self) -> str:
        """Get the response body policy: none, html or all"""
        return self.get('firefox.include_response_bodies', 'none')

    def is_gecko_profiler_enabled(self) -> bool:
        """Check if the Gecko profiler should run each iteration"""
        return bool(self.get('firefox.gecko_profiler', False))

    def is_moz_log_enabled(self) -> bool:
        """Check if moz_log.txt should be kept per iteration"""
        return bool(self.get('firefox.collect_moz_log', False))

    def get_gecko_profiler_params(self) -> GeckoProfilerParams:
        interval = self.get('firefox.gecko_profiler_params.interval')
        return GeckoProfilerParams(
            features=self.get('firefox.gecko_profiler_params.features', DEFAULT_FEATURES),
            threads=self.get('firefox.gecko_profiler_params.threads', DEFAULT_THREADS),
            interval=float(interval) if interval is not None else None,
            buffer_size=int(self.get('firefox.gecko_profiler_params.buffer_size', DEFAULT_BUFFER_SIZE)),
        )

    # === Android Config ===

    def is_android_configured(self) -> bool:
        """Check if the browser runs on an Android device"""
        return bool(self.get('android.enabled', False))

    def get_android_device_id(self) -> Optional[str]:
        return self.get('android.device_id') or None

    # === Storage Config ===

    def get_result_dir(self) -> Path:
        """Get the run result directory with timestamp if templated"""
        template = self.get('storage.result_dir', 'browsertime-results/{timestamp}')
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        return Path(template.replace('{timestamp}', timestamp))

    def use_hash(self) -> bool:
        """Check if the URL fragment should be part of per-URL folders"""
        return bool(self.get('storage.use_hash', False))

    def get_firefox_options(self) -> FirefoxOptions:
        """Collect everything the Firefox delegate reads into one model"""
        return FirefoxOptions(
            skip_har=self.skip_har(),
            include_response_bodies=self.get_include_response_bodies(),
            gecko_profiler=self.is_gecko_profiler_enabled(),
            gecko_profiler_params=self.get_gecko_profiler_params(),
            collect_moz_log=self.is_moz_log_enabled(),
            android=self.is_android_configured(),
            android_device_id=self.get_android_device_id(),
            use_hash=self.use_hash(),
        )

    # === Logging Config ===

    def get_log_level(self) -> str:
        """Get logging level"""
        return self.get('logging.level', 'INFO')

    def get_log_file(self) -> Path:
        """Get log file path with timestamp"""
        template = self.get('logging.log_file', 'logs/firefox_collector.log')
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        filename = template.replace('{timestamp}', timestamp)
        return Path(filename)

    def get_enabled_collectors(self) -> List[str]:
        enabled = []
        if not self.skip_har():
            enabled.append('har')
        if self.is_gecko_profiler_enabled():
            enabled.append('gecko_profiler')
        if self.is_moz_log_enabled():
            enabled.append('moz_log')
        return enabled

    def __repr__(self) -> str:
        return f"<Config: collectors={self.get_enabled_collectors()}, android={self.is_android_configured()}>"


# Convenience function
def load_config(config_path: str = "config/settings.yaml") -> ConfigLoader:
    """Load configuration from file"""
    return ConfigLoader(config_path)
