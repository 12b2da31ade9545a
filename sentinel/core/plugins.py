# sentinel/core/plugins.py
"""
Score-adjusting plugins.

A plugin is anything with a string `name` and `evaluate(context, score) -> int`;
`on_event(event)` is optional. Plugins run in configured load order and every
call is isolated: an exception is logged and the fold carries on with the
score it had before that plugin.

Locations in the `plugins:` config list are either the identifier of a
built-in plugin (see `sentinel.plugins`) or a path to a `.py` file exporting
`plugin`, or module-level `name` + `evaluate` (+ `on_event`).
"""
from __future__ import annotations

import dataclasses
import importlib.util
import logging
import math
import os
import pathlib
from typing import Any, Callable, Dict, Iterable, List, Optional, Type

from ..errors import PluginLoadError
from ..utils.schema import TelemetryEvent
from .context import CommandContext
from .risk import Assessment, clamp_score, classify


class Plugin:
    """Base class for built-in plugins. Subclasses override `evaluate`."""

    name: str = "plugin"

    def evaluate(self, context: CommandContext, score: int) -> int:
        return score

    def on_event(self, event: TelemetryEvent) -> None:
        return None


_REGISTRY: Dict[str, Type[Plugin]] = {}


def register(identifier: str) -> Callable[[Type[Plugin]], Type[Plugin]]:
    def deco(cls: Type[Plugin]) -> Type[Plugin]:
        _REGISTRY[identifier] = cls
        return cls
    return deco


def registered_plugins() -> Dict[str, Type[Plugin]]:
    from .. import plugins  # noqa: F401  (registers the built-ins)
    return dict(_REGISTRY)


def is_valid_plugin(obj: Any) -> bool:
    if obj is None:
        return False
    try:
        return isinstance(getattr(obj, "name", None), str) and callable(getattr(obj, "evaluate", None))
    except Exception:
        return False


def _load_file(location: str, path: pathlib.Path) -> Any:
    if not path.is_file():
        raise PluginLoadError(location, f"file not found: {path}")
    if path.suffix != ".py":
        raise PluginLoadError(location, "only .py plugin files are supported")
    spec = importlib.util.spec_from_file_location(f"sentinel_plugin_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise PluginLoadError(location, "not an importable module")
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise PluginLoadError(location, f"error while importing: {e!r}") from e
    obj = getattr(module, "plugin", module)
    if isinstance(obj, type):
        try:
            obj = obj()
        except Exception as e:
            raise PluginLoadError(location, f"error while instantiating {obj.__name__}: {e!r}") from e
    return obj


def load_plugin(location: str, cwd: Optional[str] = None) -> Any:
    """Resolve one config entry into a plugin object. Raises PluginLoadError."""
    builtins = registered_plugins()
    if location in builtins:
        try:
            return builtins[location]()
        except Exception as e:
            raise PluginLoadError(location, f"error while instantiating built-in: {e!r}") from e
    path = pathlib.Path(os.path.expanduser(location))
    if not path.is_absolute():
        path = pathlib.Path(cwd or os.getcwd()) / path
    obj = _load_file(location, path)
    if not is_valid_plugin(obj):
        raise PluginLoadError(location, "a plugin needs a string `name` and a callable `evaluate`")
    return obj


class PluginPipeline:
    def __init__(self, plugins: Iterable[Any] = (), logger: Optional[logging.Logger] = None):
        self.log = logger or logging.getLogger(__name__)
        self.plugins: List[Any] = list(plugins)

    @classmethod
    def from_locations(cls, locations: Iterable[str], cwd: Optional[str] = None,
                       logger: Optional[logging.Logger] = None) -> "PluginPipeline":
        pipeline = cls(logger=logger)
        for location in locations:
            try:
                plugin = load_plugin(location, cwd=cwd)
            except PluginLoadError as e:
                pipeline.log.error("%s", e)
                continue
            pipeline.plugins.append(plugin)
            pipeline.log.info("plugin loaded: %s", plugin.name)
        return pipeline

    @property
    def names(self) -> List[str]:
        return [p.name for p in self.plugins]

    def apply(self, context: CommandContext, score: int) -> int:
        for plugin in self.plugins:
            try:
                new_score = plugin.evaluate(context, score)
                if isinstance(new_score, bool) or not isinstance(new_score, (int, float)):
                    raise TypeError(f"evaluate returned {type(new_score).__name__}, expected a number")
                if not math.isfinite(new_score):
                    raise ValueError(f"evaluate returned {new_score!r}, expected a finite number")
                new_score = int(new_score)
            except Exception as e:
                self.log.error("plugin %s failed in evaluate: %r", plugin.name, e)
                continue
            self.log.debug("plugin %s: score %s -> %s", plugin.name, score, new_score)
            score = new_score
        return score

    def reassess(self, context: CommandContext, assessment: Assessment) -> Assessment:
        """Fold the plugins over the score; the level is recomputed only when the score moved."""
        score = clamp_score(self.apply(context, assessment.score))
        if score == assessment.score:
            return assessment
        return dataclasses.replace(assessment, score=score, level=classify(score))

    def notify(self, event: TelemetryEvent) -> None:
        for plugin in self.plugins:
            handler = getattr(plugin, "on_event", None)
            if not callable(handler):
                continue
            try:
                handler(event)
            except Exception as e:
                self.log.error("plugin %s failed in on_event: %r", plugin.name, e)
