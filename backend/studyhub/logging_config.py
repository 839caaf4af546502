import logging
from typing import Optional

from .settings import settings


DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
	"""Initialize the root logger with a single stream handler."""
	resolved_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
	formatter = logging.Formatter(fmt or DEFAULT_FORMAT)

	root = logging.getLogger()
	root.setLevel(resolved_level)

	# Clear existing handlers to avoid duplicate logs in reloads
	for h in list(root.handlers):
		root.removeHandler(h)

	handler = logging.StreamHandler()
	handler.setFormatter(formatter)
	root.addHandler(handler)

	# httpx logs every request URL, which carries the API key in the query string
	logging.getLogger("httpx").setLevel(logging.WARNING)
