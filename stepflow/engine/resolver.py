"""
Handler name resolution.

Handlers are referenced by dotted Python paths ("package.module.ClassName").
This module turns those names into classes, derives the short labels used
in the call stack, and provides the default construction strategy.
"""

from typing import Any, Callable, Union
import importlib
import logging

from stepflow.engine.errors import ConfigurationError


logger = logging.getLogger(__name__)


HandlerFactory = Callable[[str], Any]


def handler_name_of(handler: Union[str, type]) -> str:
    """Normalise a class or dotted string to a dotted handler name."""
    if isinstance(handler, type):
        return f"{handler.__module__}.{handler.__qualname__}"
    if isinstance(handler, str) and handler:
        return handler
    raise ConfigurationError(f"Invalid handler reference: {handler!r}")


def resolve_handler(handler_name: str) -> type:
    """
    Import the class a dotted handler name points to.

    Nested classes ("module.Outer.Inner") are supported by importing the
    longest importable module prefix and walking the remaining attributes.

    Raises:
        ConfigurationError: If the name does not resolve to a class
    """
    parts = handler_name.split(".")
    if not all(part.isidentifier() for part in parts):
        raise ConfigurationError(f'Handler class "{handler_name}" is not a valid dotted name')

    for split in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:split])
        try:
            target: Any = importlib.import_module(module_name)
        except ModuleNotFoundError:
            continue
        except Exception as e:
            raise ConfigurationError(
                f'Handler class "{handler_name}" could not be imported: {e}'
            ) from e
        try:
            for attr in parts[split:]:
                target = getattr(target, attr)
        except AttributeError:
            break
        if isinstance(target, type):
            return target
        break

    raise ConfigurationError(f'Handler class "{handler_name}" does not exist')


def short_label(handler_name: str) -> str:
    """Final dotted segment of a handler name."""
    return handler_name.rsplit(".", 1)[-1]


def default_factory(handler_name: str) -> Any:
    """Instantiate the handler class with no arguments."""
    return resolve_handler(handler_name)()
