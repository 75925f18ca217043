"""
Structured Logging for the Booth Simulator

Provides readable, structured logging with:
- Color-coded log levels
- Per-component icons
- Section separators for session lifecycle events
- Turn and outcome-trace helpers for debugging probabilistic outcomes
"""

import logging
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional


class Colors:
    """ANSI color codes for terminal output."""
    RESET = '\033[0m'
    BOLD = '\033[1m'

    DEBUG = '\033[36m'      # Cyan
    INFO = '\033[32m'       # Green
    WARNING = '\033[33m'    # Yellow
    ERROR = '\033[31m'      # Red
    CRITICAL = '\033[35m'   # Magenta

    SECTION = '\033[94m'    # Bright Blue
    KEY = '\033[93m'        # Bright Yellow
    VALUE = '\033[92m'      # Bright Green
    TIMESTAMP = '\033[90m'  # Dark Gray


class ColoredFormatter(logging.Formatter):
    """Formatter with level colors and component icons."""

    ICONS = {
        'DEBUG': '🔍',
        'INFO': 'ℹ️',
        'WARNING': '⚠️',
        'ERROR': '❌',
        'CRITICAL': '🚨',
    }

    # Keyed by the last segment of the logger name (module name)
    COMPONENT_ICONS = {
        'conversation_engine': '🎭',
        'outcome_resolver': '🎲',
        'phase_machine': '🧭',
        'guardrail_analyzer': '🚧',
        'intent_classifier': '🏷️',
        'scoring': '📊',
        'session_manager': '💾',
        'session_factory': '🆕',
        'chat_provider': '🤖',
        'enrichment': '🧪',
    }

    LEVEL_COLORS = {
        'DEBUG': Colors.DEBUG,
        'INFO': Colors.INFO,
        'WARNING': Colors.WARNING,
        'ERROR': Colors.ERROR,
        'CRITICAL': Colors.CRITICAL,
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        icon = self.COMPONENT_ICONS.get(record.name.split('.')[-1], self.ICONS.get(record.levelname, '•'))
        timestamp = datetime.fromtimestamp(record.created).strftime('%H:%M:%S.%f')[:-3]

        if self.use_colors:
            level_color = self.LEVEL_COLORS.get(record.levelname, Colors.RESET)
            reset, bold, timestamp_color = Colors.RESET, Colors.BOLD, Colors.TIMESTAMP
        else:
            level_color = reset = bold = timestamp_color = ''

        formatted = (
            f"{timestamp_color}[{timestamp}]{reset} "
            f"{icon} {level_color}{record.levelname:8s}{reset} "
            f"{bold}{record.name}{reset} "
            f"| {record.getMessage()}"
        )
        if record.exc_info:
            formatted += f"\n{self.formatException(record.exc_info)}"
        return formatted


class StructuredLogger:
    """Logger wrapper with section grouping and pretty-printed data."""

    def __init__(self, name: str, logger: Optional[logging.Logger] = None):
        self.name = name
        self.logger = logger or logging.getLogger(name)

    def _format_data(self, data: Any, indent: int = 2) -> str:
        """Indented key/value rendering; long lists are truncated."""
        pad = ' ' * indent
        if isinstance(data, dict):
            lines = [f"{pad}{key}: {self._format_data(value, indent + 2)}" for key, value in data.items()]
            return "{\n" + "\n".join(lines) + f"\n{' ' * (indent - 2)}}}"
        if isinstance(data, list):
            if len(data) > 5:
                shown = ", ".join(str(item) for item in data[:3])
                return f"[{shown}, ... ({len(data)} items total)]"
            return "[" + ", ".join(str(item) for item in data) + "]"
        return str(data)

    def _with_data(self, message: str, data: Optional[Dict[str, Any]]) -> str:
        return f"{message}\n{self._format_data(data)}" if data else message

    def section(self, title: str, data: Optional[Dict[str, Any]] = None):
        """Log a separated section header (session start, completion...)."""
        separator = "=" * 80
        body = f"\n{separator}\n📋 {title.upper()}"
        if data:
            body += f"\n{self._format_data(data)}"
        self.logger.info(f"{body}\n{separator}")

    def debug(self, message: str, data: Optional[Dict[str, Any]] = None):
        self.logger.debug(self._with_data(message, data))

    def info(self, message: str, data: Optional[Dict[str, Any]] = None):
        self.logger.info(self._with_data(message, data))

    def warning(self, message: str, data: Optional[Dict[str, Any]] = None):
        self.logger.warning(self._with_data(message, data))

    def error(self, message: str, error: Optional[Exception] = None, data: Optional[Dict[str, Any]] = None):
        """Log error message with exception and optional data."""
        error_info = f" Error: {type(error).__name__}: {error}" if error else ""
        self.logger.error(self._with_data(f"{message}{error_info}", data), exc_info=error)

    def success(self, message: str, data: Optional[Dict[str, Any]] = None):
        self.logger.info(self._with_data(f"✅ {message}", data))

    def turn(
        self,
        session_id: str,
        turn_index: int,
        phase: str,
        source: str,
        intent: str,
        violations: Optional[List[str]] = None,
    ):
        """One line summary of a processed trainee turn."""
        self.logger.info(
            f"💬 TURN {turn_index} [{session_id[:8]}] phase={phase} source={source} intent={intent}"
            + (f" violations={violations}" if violations else "")
        )

    def outcome(self, session_id: str, trace: Dict[str, Any]):
        """Outcome decision with its full trace (reason, eligibility, band, weights)."""
        self.logger.info(self._with_data(f"🎯 OUTCOME [{session_id[:8]}] {trace.get('outcome')}", trace))


def setup_logging(level: int = logging.INFO, use_colors: bool = True):
    """Install the colored console handler on the root logger."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(use_colors=use_colors))

    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    # Suppress noisy loggers
    logging.getLogger('asyncio').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('openai').setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name, logging.getLogger(name))
