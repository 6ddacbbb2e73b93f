"""Process-wide logging for ergorate, configured in two steps.

``setup_logging()`` runs first, before anything imports litellm (the
model rater does, transitively). ``cleanup_third_party_handlers()`` runs
once every import has happened and strips the handlers litellm attaches
to its own loggers, so rater-call messages print once via the root
logger.

Each step runs at most once per process.
"""

import logging
import os

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s] - %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"

_LITELLM_LOGGERS = ("LiteLLM", "LiteLLM Router", "LiteLLM Proxy")

# Held at WARNING whatever level ergorate itself logs at
_SUPPRESSED_LOGGERS = (
    *_LITELLM_LOGGERS,
    "openai._base_client",
    "httpx",
)

_completed: set[str] = set()


def resolve_level(level: str | int) -> int:
    """Map a level name (any case) or number onto a logging level."""
    if isinstance(level, int):
        return level
    levels = logging.getLevelNamesMapping()
    try:
        return levels[level.strip().upper()]
    except KeyError:
        msg = (
            f"Unknown log level '{level}'. "
            f"Valid: {', '.join(sorted(levels))}"
        )
        raise ValueError(msg) from None


def setup_logging(level: str | int = "INFO") -> None:
    """Configure the root logger and quiet third-party chatter.

    Call before importing ``ergorate.raters.llm`` or anything else that
    pulls in litellm. Later calls do nothing.
    """
    if "setup" in _completed:
        return
    resolved = resolve_level(level)
    _completed.add("setup")

    # Read by litellm when it is first imported
    os.environ.setdefault("LITELLM_LOG", "WARNING")

    logging.basicConfig(
        level=resolved,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
    for name in _SUPPRESSED_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def cleanup_third_party_handlers() -> None:
    """Drop litellm's own StreamHandlers and let records reach root.

    Call after all imports are done. Later calls do nothing.
    """
    if "cleanup" in _completed:
        return
    _completed.add("cleanup")

    for name in _LITELLM_LOGGERS:
        lg = logging.getLogger(name)
        lg.handlers.clear()
        lg.propagate = True
