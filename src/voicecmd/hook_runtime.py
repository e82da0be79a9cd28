"""Hook execution runtime with per-observer fault isolation."""

from __future__ import annotations

import inspect
from typing import Any

import pluggy
from loguru import logger

from voicecmd.hookspecs import VOICECMD_HOOK_NAMESPACE, VoiceCmdHookSpecs


def create_plugin_manager() -> pluggy.PluginManager:
    plugin_manager = pluggy.PluginManager(VOICECMD_HOOK_NAMESPACE)
    plugin_manager.add_hookspecs(VoiceCmdHookSpecs)
    return plugin_manager


class HookRuntime:
    """Safe wrapper around pluggy hook execution."""

    def __init__(self, plugin_manager: pluggy.PluginManager | None = None) -> None:
        self._plugin_manager = plugin_manager or create_plugin_manager()

    @property
    def plugin_manager(self) -> pluggy.PluginManager:
        return self._plugin_manager

    def register(self, plugin: object, *, name: str | None = None) -> None:
        self._plugin_manager.register(plugin, name=name)

    async def call_many(self, hook_name: str, **kwargs: Any) -> list[Any]:
        """Run all implementations and collect successful return values."""

        results: list[Any] = []
        for impl in self._iter_hookimpls(hook_name):
            call_kwargs = self._kwargs_for_impl(impl, kwargs)
            try:
                value = impl.function(**call_kwargs)
                if inspect.isawaitable(value):
                    value = await value
            except Exception as error:
                await self.notify_error(
                    stage=f"{hook_name}:{impl.plugin_name or '<unknown>'}",
                    error=error,
                    command=kwargs.get("command"),
                )
                continue
            results.append(value)
        return results

    async def notify_error(self, *, stage: str, error: Exception, command: str | None) -> None:
        """Call on_error hooks, swallowing observer failures."""

        logger.opt(exception=error).warning("hook.error stage={} command={}", stage, command)
        for impl in self._iter_hookimpls("on_error"):
            call_kwargs = self._kwargs_for_impl(impl, {"stage": stage, "error": error, "command": command})
            try:
                value = impl.function(**call_kwargs)
                if inspect.isawaitable(value):
                    await value
            except Exception:
                logger.opt(exception=True).warning(
                    "hook.on_error_failed stage={} adapter={}",
                    stage,
                    impl.plugin_name or "<unknown>",
                )

    def hook_report(self) -> dict[str, list[str]]:
        """Build a hook->adapters mapping for diagnostics."""

        report: dict[str, list[str]] = {}
        for hook_name, hook_caller in sorted(self._plugin_manager.hook.__dict__.items()):
            if hook_name.startswith("_") or not hasattr(hook_caller, "get_hookimpls"):
                continue
            adapter_names = [impl.plugin_name for impl in hook_caller.get_hookimpls()]
            if adapter_names:
                report[hook_name] = adapter_names
        return report

    def _iter_hookimpls(self, hook_name: str) -> list[Any]:
        hook = getattr(self._plugin_manager.hook, hook_name, None)
        if hook is None or not hasattr(hook, "get_hookimpls"):
            return []
        return list(reversed(hook.get_hookimpls()))

    @staticmethod
    def _kwargs_for_impl(impl: Any, kwargs: dict[str, Any]) -> dict[str, Any]:
        return {name: kwargs[name] for name in impl.argnames if name in kwargs}
