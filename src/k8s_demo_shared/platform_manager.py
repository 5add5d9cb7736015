import logging
import os
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any


def create_logger(
    log_level: str = "INFO",
    logger_name: str = "k8s-demo",
    logs_dir: str | Path | None = None,
) -> logging.Logger:
    """
    Create a logger that outputs to console and optionally to a file.

    Args:
        log_level (str): Logging level (e.g., "INFO", "DEBUG").
        logger_name (str): Name for the logger instance, also used as the log file name.
        logs_dir (str | Path | None): Directory for log files. If None, only console
            logging is configured.

    Returns:
        logging.Logger: Configured logger instance.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(getattr(logging, log_level.upper(), logging.DEBUG))
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")

    if not logger.handlers:  # Prevent handler duplication
        # Console handler (stdio) - always add this
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        if logs_dir is not None:
            try:
                logs_path = Path(logs_dir)
                logs_path.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(logs_path / logger_name)
                file_handler.setFormatter(formatter)
                logger.addHandler(file_handler)
            except OSError:
                # If file logging fails, just continue with console logging
                logger.warning(f"File logging disabled, cannot write to {logs_dir}")

    return logger


def get_parameters(param_names: list[str] | str) -> dict[str, str | None]:
    """
    Read parameters from environment variables.

    Parameters are stored in the environment in uppercase but returned keyed
    in lowercase, e.g. ``MONGO_URL`` is returned as ``mongo_url``.

    Args:
        param_names: A parameter name or a list of parameter names.

    Returns:
        dict[str, str | None]: Value per parameter, None when the variable is unset.
    """
    if isinstance(param_names, str):
        param_names = [param_names]

    result = {}
    for param_name in param_names:
        result[param_name.lower()] = os.getenv(param_name.upper())
    return result


def retry_with_backoff(
    func: Callable[..., Any],
    *args: Any,
    max_retries: int = 5,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_multiplier: float = 2.0,
    sleep: Callable[[float], Any] = time.sleep,
    logger: logging.Logger | None = None,
    retry_on: tuple[type[Exception], ...] = (Exception,),
    **kwargs: Any,
) -> Any:
    """
    Retry a function with exponential backoff.

    Args:
        func: Function to retry
        *args: Positional arguments for the function
        max_retries: Maximum number of retry attempts
        base_delay: Initial delay in seconds
        max_delay: Maximum delay in seconds
        backoff_multiplier: Multiplier for exponential backoff
        sleep: Callable used to wait between attempts
        logger: Logger for attempt failures; defaults to the "k8s-demo" logger
        retry_on: Exception types worth another attempt; anything else is raised at once
        **kwargs: Keyword arguments for the function

    Returns:
        The result of the function call

    Raises:
        The last exception if all retries are exhausted
    """
    log = logger or logging.getLogger("k8s-demo")
    last_exception: Exception | None = None
    delay = base_delay

    for attempt in range(max_retries + 1):
        try:
            return func(*args, **kwargs)
        except retry_on as e:
            last_exception = e
            if attempt == max_retries:
                break

            log.info(f"Attempt {attempt + 1} failed: {e}")
            log.info(f"Retrying in {delay:.1f} seconds...")
            sleep(delay)
            delay = min(delay * backoff_multiplier, max_delay)

    if last_exception is not None:
        raise last_exception
    raise RuntimeError("Retry logic failed without exception")
